"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdgraphviz.cli.commands import build_cmd, main_callback, supports_cmd


app = typer.Typer(name="mdgraphviz", help="mdBook preprocessor rendering 'dot process' blocks to SVG")

app.callback(invoke_without_command=True)(main_callback)
app.command(name="supports")(supports_cmd)
app.command(name="build")(build_cmd)
