"""Optional human edit of release notes before they are written."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Mapping

import click
import typer

from relman.output.console import ConsoleProtocol, Style
from relman.release.notes import COMMENT_MARKER, finalize_release_notes

EDIT_HEADER = (
    f"{COMMENT_MARKER} Edit the release notes below. Remove this comment line\n"
    f"{COMMENT_MARKER} and any separator lines.\n"
    f"{COMMENT_MARKER} Lines starting with '{COMMENT_MARKER}' will be removed automatically.\n"
    "\n"
)
_RULE = "-" * 40

ConfirmFn = Callable[..., bool]
EditFn = Callable[..., str | None]


def is_interactive(env: Mapping[str, str] | None = None) -> bool:
    """False under CI or when stdin is not a terminal."""
    env = os.environ if env is None else env
    if env.get("CI", ""):
        return False
    return sys.stdin is not None and sys.stdin.isatty()


def prompt_release_notes(
    default: str,
    *,
    console: ConsoleProtocol,
    interactive: bool,
    confirm: ConfirmFn = typer.confirm,
    edit: EditFn = click.edit,
) -> str:
    """Offer to edit ``default`` in ``$EDITOR``; the result is always cleaned.

    Non-interactive runs return the cleaned default. An edit that leaves
    nothing after cleaning falls back to the default as well.
    """
    fallback = finalize_release_notes(default, default)
    if not interactive:
        return fallback

    console.newline()
    console.print("Release notes for this update:")
    console.print(_RULE, Style.DIM)
    for line in default.splitlines():
        console.print(line)
    console.print(_RULE, Style.DIM)

    if not confirm("Edit release notes?", default=False):
        return fallback

    try:
        edited = edit(EDIT_HEADER + default + "\n", extension=".md")
    except click.ClickException as e:
        console.warning(f"editor failed ({e.format_message()}), using default notes")
        return fallback

    if edited is None:
        console.info("release notes not changed")
        return fallback
    return finalize_release_notes(edited, fallback)
