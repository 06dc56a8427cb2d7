"""Detection and accumulation of ``dot process`` code blocks in an event stream"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from mdgraphviz.core.events import CodeBlockEnd, CodeBlockStart, MarkupEvent, Text
from mdgraphviz.core.models import Block
from mdgraphviz.core.utils.normalize import normalize_id
from mdgraphviz.errors import MalformedBlock


INFO_STRING_PREFIX = "dot process"

_log = logging.getLogger(__name__)


def is_graphviz_info(info: str) -> bool:
    return info.startswith(INFO_STRING_PREFIX)


class BlockBuilder:
    """Collects the source of one open graphviz block."""

    def __init__(self, info_string: str, node_name: str, directory: Path):
        graph_name = ""
        # a name may follow the prefix after a single space
        if info_string[len(INFO_STRING_PREFIX):len(INFO_STRING_PREFIX) + 1] == " ":
            graph_name = info_string[len(INFO_STRING_PREFIX) + 1:].strip()
        self.node_name = node_name.strip()
        self.graph_name = graph_name
        self.directory = directory
        self.code = ""

    def append_code(self, code: str) -> None:
        self.code += code

    def image_name(self, index: int) -> str:
        if self.graph_name:
            return f"{normalize_id(self.node_name)}_{normalize_id(self.graph_name)}_{index}.generated"
        return f"{normalize_id(self.node_name)}_{index}.generated"

    def build(self, index: int) -> Block:
        return Block(
            graph_name=self.graph_name,
            image_name=self.image_name(index),
            code=self.code.strip(),
            directory=self.directory,
        )


def accumulate_blocks(
    events: Iterable[MarkupEvent],
    node_name: str,
    directory: Path,
    ) -> Iterator[Union[MarkupEvent, Block]]:
    """Yield events outside graphviz blocks unchanged and one Block per closed block.

    Block indices start at 0 and follow the order in which blocks close.
    Raises MalformedBlock on a stray or missing block end.
    """
    builder: Optional[BlockBuilder] = None
    index = 0

    for event in events:
        if builder is None:
            if isinstance(event, CodeBlockStart) and is_graphviz_info(event.info):
                builder = BlockBuilder(event.info, node_name, directory)
                continue
            if isinstance(event, CodeBlockEnd) and is_graphviz_info(event.info):
                raise MalformedBlock(f"Graphviz block end without a matching start: '{event.info}'",
                                     node=node_name)
            yield event
        elif isinstance(event, Text):
            builder.append_code(event.text)
        elif isinstance(event, CodeBlockEnd):
            if not is_graphviz_info(event.info):
                raise MalformedBlock(f"Graphviz block closed by a '{event.info}' block end",
                                     node=node_name)
            block = builder.build(index)
            _log.debug("Found graphviz block %s in %s", block.image_name, node_name)
            index += 1
            builder = None
            yield block
        # anything else inside an open block belongs to the block and is dropped

    if builder is not None:
        raise MalformedBlock("Graphviz block was never closed", node=node_name)
