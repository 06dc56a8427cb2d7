"""Root test configuration: isolated environment and stand-in Graphviz executables"""

import os
import sys

import pytest


FAKE_DOT = '#!/bin/sh\ncat > "$3"\n'
FAILING_DOT = '#!/bin/sh\ncat > /dev/null\necho "syntax error in line 1" >&2\nexit 1\n'


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop MDGRAPHVIZ_* variables inherited from the developer's shell."""
    for name in list(os.environ):
        if name.startswith("MDGRAPHVIZ_"):
            monkeypatch.delenv(name)


def _script(path, body):
    if sys.platform == "win32":
        pytest.skip("shell script stand-in for dot")
    path.write_text(body)
    path.chmod(0o755)
    return path


@pytest.fixture(name="fake_dot")
def fake_dot_fixture(tmp_path):
    """Executable taking dot's arguments that copies stdin to the -o file."""
    return _script(tmp_path / "fake-dot", FAKE_DOT)


@pytest.fixture(name="failing_dot")
def failing_dot_fixture(tmp_path):
    """Executable taking dot's arguments that always exits 1."""
    return _script(tmp_path / "failing-dot", FAILING_DOT)
