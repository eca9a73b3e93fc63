"""Main Typer application — entry point for the ``apichain`` CLI."""

from __future__ import annotations

import typer

from apichain import __version__
from apichain.cli.init_cmd import init_cmd
from apichain.cli.run import run_cmd

app = typer.Typer(
    name="apichain",
    help="Run declarative, chained HTTP endpoint tests.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run a scenario file.")(run_cmd)
app.command("init", help="Scaffold a new scenario file.")(init_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"apichain {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """apichain — run declarative, chained HTTP endpoint tests."""
