"""Data models for the document tree and rendered graphviz blocks"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Placeholder(BaseModel):
    """A tree entry without content (separator, part title); passed through as-is."""
    raw: Any


class DocumentNode(BaseModel):
    """A chapter: name and path are identity, content and children are rewritten."""
    model_config = ConfigDict(extra="allow")   # host fields (number, source_path, ...) round-trip

    name:     str
    content:  str = ""
    path:     Optional[Path] = None            # None for draft chapters
    children: list[Union["DocumentNode", Placeholder]] = Field(default_factory=list)


DocumentNode.model_rebuild()

TreeItem = Union[DocumentNode, Placeholder]


@dataclass(frozen=True)
class Block:
    """A finished graphviz block, ready to render."""
    graph_name: str
    image_name: str            # artifact base name, without extension
    code:       str            # trimmed dot source
    directory:  Path           # containing directory of the owning chapter

    @property
    def file_name(self) -> str:
        return f"{self.image_name}.svg"

    @property
    def output_path(self) -> Path:
        return self.directory / self.file_name
