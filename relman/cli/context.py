from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relman.core.config import Config, load_store_config
from relman.core.errors import ErrorCode
from relman.core.result import Err
from relman.core.store import detect_store_root
from relman.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    store_root: Path
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    store_result = detect_store_root()
    if isinstance(store_result, Err):
        typer.echo(f"error: {store_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ERROR))

    store_root = store_result.value
    config_result = load_store_config(store_root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ERROR))

    return CLIContext(
        store_root=store_root,
        config=config_result.value,
        console=RichConsole(),
    )
