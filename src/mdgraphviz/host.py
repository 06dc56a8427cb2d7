"""mdBook preprocessor protocol: ``[context, book]`` JSON in, book JSON out"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from mdgraphviz.core.models import DocumentNode, Placeholder, TreeItem
from mdgraphviz.core.pipeline import PREPROCESSOR_NAME, Preprocessor


class PreprocessorContext(BaseModel):
    """The parts of mdBook's preprocessor context the pipeline reads."""
    root:           Path
    config:         dict[str, Any] = Field(default_factory=dict)
    renderer:       str = "html"
    mdbook_version: str = ""

    @property
    def src_dir(self) -> Path:
        return self.root / self.config.get("book", {}).get("src", "src")

    @property
    def preprocessor_config(self) -> dict[str, Any]:
        """The ``[preprocessor.graphviz]`` table of book.toml, if any."""
        return self.config.get("preprocessor", {}).get(PREPROCESSOR_NAME, {}) or {}


def item_from_json(value: Any) -> TreeItem:
    """Convert one mdBook book item into a tree item."""
    if isinstance(value, dict) and "Chapter" in value:
        chapter = dict(value["Chapter"])
        children = [item_from_json(v) for v in chapter.pop("sub_items", None) or []]
        return DocumentNode(**chapter, children=children)
    return Placeholder(raw=value)


def item_to_json(item: TreeItem) -> Any:
    """Convert a tree item back into mdBook's book item shape."""
    if isinstance(item, Placeholder):
        return item.raw
    chapter = item.model_dump(mode="json", exclude={"children"})
    chapter["sub_items"] = [item_to_json(c) for c in item.children]
    return {"Chapter": chapter}


def parse_input(raw: str) -> tuple[PreprocessorContext, dict[str, Any]]:
    """Split mdBook's stdin payload into (context, book)."""
    try:
        ctx_data, book = json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid preprocessor input: {e}") from e
    if not isinstance(book, dict):
        raise ValueError("Invalid preprocessor input: book must be a JSON object")
    return PreprocessorContext.model_validate(ctx_data), book


def run_book(preprocessor: Preprocessor, ctx: PreprocessorContext, book: dict[str, Any]) -> dict[str, Any]:
    """Transform every section of ``book``; keys other than ``sections`` are kept as-is."""
    items = [item_from_json(s) for s in book.get("sections", [])]
    processed = preprocessor.run_tree(items, ctx.src_dir)
    return {**book, "sections": [item_to_json(i) for i in processed]}
