"""CLI command implementations"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdgraphviz.config import Settings, load_config
from mdgraphviz.core.models import DocumentNode
from mdgraphviz.core.parse import discover_files, strip_frontmatter
from mdgraphviz.core.pipeline import Preprocessor
from mdgraphviz.errors import GraphvizError
from mdgraphviz.host import parse_input, run_book


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _setup_logging(settings: Settings) -> None:
    # stdout carries the book, so logs go to stderr
    logging.basicConfig(
        level=settings.log_level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main_callback(ctx: typer.Context):
    """Without a subcommand, act as an mdBook preprocessor: book JSON on stdin -> stdout."""
    if ctx.invoked_subcommand is not None:
        return
    try:
        pp_ctx, book = parse_input(sys.stdin.read())
    except ValueError as e:
        _fail(str(e))

    settings = _settings(overrides=pp_ctx.preprocessor_config)
    _setup_logging(settings)
    preprocessor = Preprocessor.from_settings(settings)
    try:
        processed = run_book(preprocessor, pp_ctx, book)
    except GraphvizError as e:
        _fail(f"{type(e).__name__}: {e}", e.__cause__)
    typer.echo(json.dumps(processed))


def supports_cmd(
    renderer: Annotated[str, typer.Argument(help="mdBook renderer name")],
    ):
    """Check renderer support; exit code 0 means supported."""
    if not Preprocessor.from_settings().supports_renderer(renderer):
        raise typer.Exit(1)


def build_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory to process")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    command: Annotated[Optional[str], typer.Option("--graphviz-command", help="Graphviz executable")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Render graphviz blocks of standalone markdown files into an output directory."""
    settings = _settings(overrides={"output_dir": out, "graphviz_command": command, "parser_config": parser})
    _setup_logging(settings)
    root = Path(path)
    base = root.parent if root.is_file() else root
    output_dir = Path(settings.output_dir)

    nodes, headers = [], {}
    try:
        for p in discover_files(root):
            rel = p.relative_to(base)
            frontmatter, header, body = strip_frontmatter(p.read_text(encoding='utf-8'))
            headers[rel] = header
            nodes.append(DocumentNode(name=str(frontmatter.get('title') or p.stem), path=rel, content=body))
            (output_dir / rel).parent.mkdir(parents=True, exist_ok=True)
    except (OSError, ValueError) as e:
        _fail(f"Failed to read {path}", e)

    try:
        processed = Preprocessor.from_settings(settings).run_tree(nodes, output_dir)
    except GraphvizError as e:
        _fail(f"{type(e).__name__}: {e}", e.__cause__)

    for node in processed:
        out_file = output_dir / node.path
        out_file.write_text(headers[node.path] + node.content, encoding='utf-8')
        typer.echo(f"  {base / node.path} -> {out_file}")
    typer.echo(f"Processed {len(processed)} document(s) into {output_dir}/")
