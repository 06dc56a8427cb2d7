"""Error kinds raised while preprocessing a book"""


class GraphvizError(Exception):
    """Base error; carries the chapter and block it was raised for, when known."""

    def __init__(self, message: str, *, node: str | None = None, block: str | None = None):
        super().__init__(message)
        self.message = message
        self.node = node
        self.block = block

    def __str__(self) -> str:
        context = []
        if self.node is not None:
            context.append(f"chapter '{self.node}'")
        if self.block is not None:
            context.append(f"block '{self.block}'")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class SpawnExhausted(GraphvizError):
    """The renderer process could not be started after every attempt."""


class RenderFailed(GraphvizError):
    """The renderer ran but exited with a failure status."""


class IoFailure(GraphvizError):
    """Writing to the renderer or resolving the output path failed."""


class SerializationFailed(GraphvizError):
    """The rewritten token stream could not be serialized back to markdown."""


class MalformedBlock(GraphvizError):
    """A graphviz block was closed without being opened, or never closed."""
