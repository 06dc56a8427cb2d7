"""Rendering dot source to SVG through the Graphviz command line"""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Optional, Protocol

from mdgraphviz.config import Settings
from mdgraphviz.errors import IoFailure, RenderFailed, SpawnExhausted


MAX_SPAWN_ATTEMPTS = 5
BACKOFF_MS = 10

_log = logging.getLogger(__name__)


class GraphvizRenderer(Protocol):
    async def render(self, code: str, output_path: Path) -> None:
        """Write the rendered image for ``code`` to ``output_path``."""


def backoff_delay(attempt: int, base_ms: int = BACKOFF_MS) -> float:
    """Seconds to wait after failed spawn attempt ``attempt`` (1-based): attempt² × base_ms."""
    return attempt ** 2 * base_ms / 1000


class CommandLineGraphviz:
    """Runs ``dot -Tsvg -o <path>`` with the source on stdin."""

    def __init__(
        self,
        command: str = "dot",
        max_attempts: int = MAX_SPAWN_ATTEMPTS,
        backoff_ms: int = BACKOFF_MS,
        timeout: Optional[float] = None,
        ):
        self.command = command
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "CommandLineGraphviz":
        return cls(
            command=settings.graphviz_command,
            max_attempts=settings.max_spawn_attempts,
            backoff_ms=settings.backoff_ms,
            timeout=settings.timeout,
        )

    def args(self, output_path: Path) -> list[str]:
        return [self.command, "-Tsvg", "-o", str(output_path)]

    async def _spawn(self, output_path: Path) -> asyncio.subprocess.Process:
        """Start the renderer, retrying with quadratic backoff on spawn errors."""
        last_error: Optional[OSError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.create_subprocess_exec(
                    *self.args(output_path),
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=None,                     # dot diagnostics go to our stderr
                )
            except OSError as e:
                last_error = e
                delay = backoff_delay(attempt, self.backoff_ms)
                _log.warning("Failed to spawn %s (attempt %d/%d), retrying in %dms: %s",
                             self.command, attempt, self.max_attempts, round(delay * 1000), e)
                await asyncio.sleep(delay)
        raise SpawnExhausted(f"Couldn't spawn '{self.command}' after {self.max_attempts} attempts") from last_error

    async def render(self, code: str, output_path: Path) -> None:
        if not output_path.parent.is_dir():
            raise IoFailure(f"Output directory does not exist: {output_path.parent}")

        process = await self._spawn(output_path)

        try:
            process.stdin.write(code.encode('utf-8'))
            await process.stdin.drain()
            process.stdin.close()
            await process.stdin.wait_closed()
        except OSError as e:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise IoFailure(f"Failed writing to '{self.command}': {e}") from e

        try:
            returncode = await asyncio.wait_for(process.wait(), self.timeout)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise RenderFailed(f"'{self.command}' timed out after {self.timeout}s")

        if returncode != 0:
            raise RenderFailed(f"Error response from Graphviz (exit status {returncode})")
        _log.debug("Rendered %s", output_path)
