from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relman.cli.commands._helpers import error_code_for, exit_on_error
from relman.cli.context import CLIContext
from relman.core.config import Config
from relman.core.errors import ErrorCode
from relman.core.result import Err, Ok
from relman.git.repository import GitError
from relman.output.console import MockConsole
from relman.release.errors import FileError, NoChangeError, NoVersionFound


def _ctx() -> tuple[CLIContext, MockConsole]:
    console = MockConsole()
    return CLIContext(store_root=Path("."), config=Config(), console=console), console


def test_error_code_for() -> None:
    assert error_code_for(NoChangeError()) == ErrorCode.NO_CHANGES
    assert error_code_for(NoVersionFound(service="backend", channel="stable")) == ErrorCode.ERROR
    assert error_code_for(GitError(command="push", message="denied")) == ErrorCode.ERROR


def test_exit_on_error_ok_returns() -> None:
    ctx, console = _ctx()
    exit_on_error(Ok(1), ctx)
    assert console.messages == []


def test_exit_on_error_reports_message_and_hint() -> None:
    ctx, console = _ctx()
    error = FileError(path=Path("/store/app/umbrel-app.yml"), reason="missing version")

    with pytest.raises(typer.Exit) as exc:
        exit_on_error(Err(error), ctx)

    assert exc.value.exit_code == 1
    assert console.find("umbrel-app.yml: missing version")
    assert console.find("hint: /store/app/umbrel-app.yml")


def test_exit_on_error_no_change_is_not_an_error() -> None:
    ctx, console = _ctx()

    with pytest.raises(typer.Exit) as exc:
        exit_on_error(Err(NoChangeError()), ctx)

    assert exc.value.exit_code == 2
    assert not console.has_error()
