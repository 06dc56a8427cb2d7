"""Rewrite one chapter's markdown: render graphviz blocks and splice in image references"""

import asyncio
import logging
from pathlib import Path

from markdown_it import MarkdownIt

from mdgraphviz.core.blocks import accumulate_blocks
from mdgraphviz.core.events import ImageRef, MarkupEvent, events_to_tokens, tokens_to_events
from mdgraphviz.core.models import Block
from mdgraphviz.core.parse import serialize
from mdgraphviz.core.renderer import GraphvizRenderer
from mdgraphviz.errors import GraphvizError, SerializationFailed


_log = logging.getLogger(__name__)


def image_ref(block: Block) -> ImageRef:
    """Image reference replacing a rendered block; the graph name is both alt and title."""
    return ImageRef(
        src=block.file_name,
        alt=block.graph_name,
        title=block.graph_name or None,
    )


async def render_block(renderer: GraphvizRenderer, block: Block, node_name: str) -> None:
    """Render a block, tagging any failure with the chapter and block it belongs to."""
    try:
        await renderer.render(block.code, block.output_path)
    except GraphvizError as e:
        e.node, e.block = node_name, block.image_name
        raise


async def gather_or_cancel(*aws):
    """Await all awaitables concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # collect the cancelled siblings so none is left running or unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def process_content(
    content: str,
    node_name: str,
    directory: Path,
    renderer: GraphvizRenderer,
    parser: MarkdownIt,
    ) -> str:
    """Return ``content`` with every graphviz block rendered and replaced by an image.

    Content without graphviz blocks is returned untouched. Every image is
    followed by a blank line, including one that ends the chapter.
    """
    env: dict = {}
    events: list[MarkupEvent] = []
    blocks: list[Block] = []

    for item in accumulate_blocks(tokens_to_events(parser.parse(content, env)), node_name, directory):
        if isinstance(item, Block):
            blocks.append(item)
            events.append(image_ref(item))
        else:
            events.append(item)

    if not blocks:
        return content

    _log.debug("Rendering %d graphviz block(s) for %s", len(blocks), node_name)
    await gather_or_cancel(*(render_block(renderer, b, node_name) for b in blocks))

    try:
        text = serialize(parser, events_to_tokens(events), env)
    except Exception as e:
        raise SerializationFailed(f"Markdown serialization failed: {e}", node=node_name) from e
    if isinstance(events[-1], ImageRef):
        text += "\n"
    return text
