from __future__ import annotations

import os
from pathlib import Path

import typer

from relman import __version__
from relman.cli.commands.update_cmd import update
from relman.cli.commands.versions_cmd import versions
from relman.core.errors import ErrorCode
from relman.core.store import STORE_ROOT_ENV


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(update)
app.command()(versions)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    store: Path | None = typer.Option(
        None,
        "--store",
        help="Store root holding the channel directories (overrides auto detection)",
    ),
) -> None:
    if store is not None:
        try:
            root = store.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --store: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.ERROR))

        if not root.is_dir():
            typer.echo(f"error: --store '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ERROR))

        os.environ[STORE_ROOT_ENV] = str(root)


def main() -> None:
    app()
