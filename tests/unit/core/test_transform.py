"""Unit tests for core/transform.py"""

import asyncio
from pathlib import Path

import pytest

from mdgraphviz.core.transform import process_content
from mdgraphviz.errors import RenderFailed, SerializationFailed, SpawnExhausted


CHAPTER_NAME = "Test Chapter"
NORMALIZED_CHAPTER_NAME = "test_chapter"
DIRECTORY = Path("./")

DOT_BLOCK = """\
```dot process{name}
digraph Test {{
    a -> b
}}
```
"""


def _block(name=""):
    return DOT_BLOCK.format(name=f" {name}" if name else "")


def _process(content, renderer, parser, name=CHAPTER_NAME):
    return asyncio.run(process_content(content, name, DIRECTORY, renderer, parser))


def test_only_preprocess_flagged_blocks(renderer, parser):
    """Content without 'dot process' blocks is returned byte-for-byte."""
    content = "# Chapter\n\n````dot\ndigraph Test {\n    a -> b\n}\n````"
    assert _process(content, renderer, parser) == content
    assert renderer.calls == []


def test_no_name(renderer, parser):
    """An unnamed block becomes an image with empty alt text and no title."""
    result = _process("# Chapter\n" + _block(), renderer, parser)
    assert result == f"# Chapter\n\n![]({NORMALIZED_CHAPTER_NAME}_0.generated.svg)\n\n"
    assert renderer.calls == [("digraph Test {\n    a -> b\n}", DIRECTORY / "test_chapter_0.generated.svg")]


def test_named_block(renderer, parser):
    """A named block uses the graph name in the file name, alt text, and title."""
    result = _process("# Chapter\n" + _block("Graph Name"), renderer, parser)
    assert result == (
        "# Chapter\n\n"
        f'![Graph Name]({NORMALIZED_CHAPTER_NAME}_graph_name_0.generated.svg "Graph Name")\n\n'
    )


def test_multiple_blocks(renderer, parser):
    """Repeated blocks get consecutive indices and keep their positions."""
    content = "# Chapter\n" + "\n".join(_block("Graph Name") for _ in range(3))
    result = _process(content, renderer, parser)
    expected = "# Chapter\n\n" + "\n\n".join(
        f'![Graph Name]({NORMALIZED_CHAPTER_NAME}_graph_name_{i}.generated.svg "Graph Name")'
        for i in range(3)
    ) + "\n\n"
    assert result == expected
    assert len(renderer.calls) == 3


def test_surrounding_paragraphs_are_separated(renderer, parser):
    """The image is its own paragraph between the text around the block."""
    content = "Before the graph.\n\n" + _block() + "\nAfter the graph.\n"
    result = _process(content, renderer, parser)
    assert result == (
        "Before the graph.\n\n"
        f"![]({NORMALIZED_CHAPTER_NAME}_0.generated.svg)\n\n"
        "After the graph.\n"
    )


def test_order_kept_under_concurrent_rendering(slow_renderer, parser):
    """Blocks finishing out of order are still spliced back in document order."""
    content = "".join(_block(f"G{i}") + "\n" for i in range(3))
    result = _process(content, slow_renderer, parser)
    assert slow_renderer.finished != sorted(slow_renderer.finished)
    positions = [result.index(f"test_chapter_g{i}_{i}.generated.svg") for i in range(3)]
    assert positions == sorted(positions)


def test_render_failure_propagates_with_context(failing_renderer, parser):
    """A render error aborts the chapter and names the chapter and block."""
    renderer = failing_renderer(RenderFailed("Error response from Graphviz (exit status 1)"))
    with pytest.raises(RenderFailed) as exc_info:
        _process("# Chapter\n" + _block("Broken"), renderer, parser)
    assert exc_info.value.node == CHAPTER_NAME
    assert exc_info.value.block == "test_chapter_broken_0.generated"
    assert "chapter 'Test Chapter'" in str(exc_info.value)


def test_spawn_exhausted_propagates(failing_renderer, parser):
    """SpawnExhausted from the renderer reaches the caller unchanged in kind."""
    renderer = failing_renderer(SpawnExhausted("Couldn't spawn 'dot' after 5 attempts"))
    with pytest.raises(SpawnExhausted):
        _process(_block(), renderer, parser)


def test_serializer_error_is_serialization_failed(renderer, parser, monkeypatch):
    """Exceptions from the markdown serializer surface as SerializationFailed."""
    def broken_render(*args, **kwargs):
        raise KeyError("image")

    monkeypatch.setattr(parser.renderer, "render", broken_render)
    with pytest.raises(SerializationFailed, match="Markdown serialization failed"):
        _process(_block(), renderer, parser)


def test_trailing_image_ends_with_blank_line(renderer, parser):
    """Text appended after a chapter ending in an image starts a new paragraph."""
    result = _process("Intro.\n\n" + _block(), renderer, parser)
    assert result.endswith("\n\n")
    tokens = parser.parse(result + "More text.\n")
    assert [t.type for t in tokens].count("paragraph_open") == 3


def _images(tokens):
    return [c for t in tokens if t.type == "inline" for c in t.children if c.type == "image"]


def test_graph_name_with_quotes_and_brackets(renderer, parser):
    """Quotes and brackets in a graph name survive as the image's alt text and title."""
    name = 'A "quoted" [x]'
    result = _process("# Chapter\n" + _block(name), renderer, parser)
    image, = _images(parser.parse(result))
    assert image.attrGet("src") == "test_chapter_a_quoted_x_0.generated.svg"
    assert image.attrGet("title") == name
    assert "".join(c.content for c in image.children) == name


class _OneFailsRenderer:
    """Fails the 'Broken' block at once; every other render waits until cancelled."""

    def __init__(self):
        self.cancelled = []

    async def render(self, code, output_path):
        if "broken" in output_path.name:
            raise RenderFailed("Error response from Graphviz (exit status 1)")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.cancelled.append(output_path.name)
            raise


def test_render_failure_cancels_other_blocks(parser):
    """The first failing block cancels the renders still running for the chapter."""
    renderer = _OneFailsRenderer()
    content = _block("Slow A") + "\n" + _block("Broken") + "\n" + _block("Slow B")
    with pytest.raises(RenderFailed) as exc_info:
        _process(content, renderer, parser)
    assert exc_info.value.block == "test_chapter_broken_1.generated"
    assert sorted(renderer.cancelled) == [
        "test_chapter_slow_a_0.generated.svg",
        "test_chapter_slow_b_2.generated.svg",
    ]
