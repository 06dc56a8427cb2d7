"""Markdown tokenization and serialization, file discovery, and frontmatter"""

import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdformat.renderer import MDRenderer


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx'}


def make_parser(preset: str = 'commonmark') -> MarkdownIt:
    """Build a MarkdownIt instance whose renderer writes markdown back out."""
    mdit = MarkdownIt(preset, renderer_cls=MDRenderer)
    mdit.options["mdformat"] = {}
    mdit.options["store_labels"] = True     # keep reference labels on link/image tokens
    mdit.options["parser_extension"] = []
    mdit.options["codeformatters"] = {}
    return mdit


def serialize(parser: MarkdownIt, tokens: list[Token], env: dict[str, Any]) -> str:
    """Render tokens produced by ``parser`` back to markdown text."""
    return parser.renderer.render(tokens, parser.options, env)


def strip_frontmatter(text: str) -> tuple[dict[str, Any], str, str]:
    """Return (frontmatter_dict, header, body); header is the raw YAML block or ''."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[:m.end()], text[m.end():]
    return {}, '', text


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)
