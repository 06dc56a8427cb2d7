"""Tree walker: transform every chapter of a document tree, preserving its shape"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from mdgraphviz.config import Settings
from mdgraphviz.core.models import DocumentNode, TreeItem
from mdgraphviz.core.parse import make_parser
from mdgraphviz.core.renderer import CommandLineGraphviz, GraphvizRenderer
from mdgraphviz.core.transform import gather_or_cancel, process_content


PREPROCESSOR_NAME = "graphviz"

_log = logging.getLogger(__name__)


class Preprocessor:
    """Renders ``dot process`` blocks in every chapter of a tree."""

    name = PREPROCESSOR_NAME

    def __init__(self, renderer: GraphvizRenderer, parser_config: str = "commonmark"):
        self.renderer = renderer
        self.parser = make_parser(parser_config)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Preprocessor":
        settings = settings or Settings()
        return cls(CommandLineGraphviz.from_settings(settings), settings.parser_config)

    def supports_renderer(self, renderer: str) -> bool:
        # only plain markdown images are emitted, so every renderer can consume the output
        return True

    def run_tree(self, items: list[TreeItem], src_dir: Path) -> list[TreeItem]:
        """Transform a whole tree; raises on the first failure and returns nothing partial."""
        result = asyncio.run(self.process_items(items, src_dir))
        _log.info("Processed %d top-level item(s) under %s", len(result), src_dir)
        return result

    async def process_items(self, items: list[TreeItem], src_dir: Path) -> list[TreeItem]:
        """Transform siblings concurrently; results keep the original order, the first error cancels the rest."""
        return list(await gather_or_cancel(*(self.process_item(i, src_dir) for i in items)))

    async def process_item(self, item: TreeItem, src_dir: Path) -> TreeItem:
        if not isinstance(item, DocumentNode):
            return item

        content = item.content
        if item.path is not None:
            # chapter files sit next to their rendered images
            directory = (src_dir / item.path).parent
            content = await process_content(item.content, item.name, directory, self.renderer, self.parser)

        children = await self.process_items(item.children, src_dir)
        return item.model_copy(update={"content": content, "children": children})
