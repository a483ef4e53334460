"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from mdsite.cli.commands import build_cmd, check_cmd, init_cmd, list_cmd, show_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Static blog generator for frontmatter-tagged markdown")


@app.callback()
def main(
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="-v for progress, -vv for debug")] = 0,
    ):
    """Configure logging before any command runs."""
    if verbose:
        level = logging.INFO if verbose == 1 else logging.DEBUG
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="check")(check_cmd)
app.command(name="show")(show_cmd)
app.command(name="init")(init_cmd)
