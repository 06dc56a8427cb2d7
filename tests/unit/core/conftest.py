"""Shared fixtures for core unit tests"""

import asyncio

import pytest

from mdgraphviz.core.parse import make_parser


class RecordingRenderer:
    """Records render calls instead of spawning Graphviz."""

    def __init__(self, delays=None):
        self.calls = []
        self.finished = []
        self._delays = list(delays or [])

    async def render(self, code, output_path):
        self.calls.append((code, output_path))
        if self._delays:
            await asyncio.sleep(self._delays.pop(0))
        self.finished.append(output_path.name)


class FailingRenderer:
    """Raises the given error for every render."""

    def __init__(self, error):
        self.error = error
        self.calls = []

    async def render(self, code, output_path):
        self.calls.append((code, output_path))
        raise self.error


@pytest.fixture(name="parser")
def parser_fixture():
    return make_parser("commonmark")


@pytest.fixture(name="renderer")
def renderer_fixture():
    return RecordingRenderer()


@pytest.fixture(name="slow_renderer")
def slow_renderer_fixture():
    """Earlier blocks finish later, so completion order is the reverse of document order."""
    return RecordingRenderer(delays=[0.06, 0.03, 0.0])


@pytest.fixture(name="failing_renderer")
def failing_renderer_fixture():
    """Factory: failing_renderer(error) -> renderer raising error on every call."""
    return FailingRenderer
