"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from relman.core.errors import ErrorCode
from relman.core.result import Err, Result
from relman.output.console import Style
from relman.release.errors import NoChangeError

if TYPE_CHECKING:
    from relman.cli.context import CLIContext

T = TypeVar("T")
E = TypeVar("E")


def error_code_for(error: object) -> ErrorCode:
    """An unchanged bundle is NO_CHANGES; every other error is ERROR."""
    if isinstance(error, NoChangeError):
        return ErrorCode.NO_CHANGES
    return ErrorCode.ERROR


def exit_on_error(result: Result[T, E], ctx: CLIContext) -> None:
    """Exit if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    A NoChangeError is reported as information, not as an error.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        code = error_code_for(error)
        if code == ErrorCode.NO_CHANGES:
            ctx.console.info(message)
            ctx.console.print("No changes needed.", Style.DIM)
        else:
            ctx.console.error(message)
            if hint:
                ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(code))
