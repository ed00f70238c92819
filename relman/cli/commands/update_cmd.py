"""Update command - re-resolve a channel's images and bump its app version."""

from __future__ import annotations

from enum import StrEnum

import typer

from relman.cli.commands._helpers import exit_on_error
from relman.cli.context import build_context
from relman.output.console import Style
from relman.platform.http import RealHttpClient
from relman.services.editor import is_interactive
from relman.services.registry import GhcrRegistryClient
from relman.services.timeouts import HTTP_TIMEOUT_SECONDS
from relman.services.updater import update_channel


class ChannelOption(StrEnum):
    stable = "stable"
    beta = "beta"


def update(
    channel: ChannelOption = typer.Option(..., "--channel", "-c", help="Channel to update"),
    no_commit: bool = typer.Option(False, "--no-commit", help="Skip git commit and push"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change, write nothing"),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Skip the release notes editor"),
) -> None:
    """Update a channel to the latest published service images.

    Exit codes: 0 updated (or would update), 1 error, 2 nothing to update.
    """
    ctx = build_context()
    config = ctx.config
    ctx.console.print(f"store: {ctx.store_root}", Style.DIM)

    http = RealHttpClient(token=config.github_token, timeout=HTTP_TIMEOUT_SECONDS)
    registry = GhcrRegistryClient(
        config=config.registry,
        http=http,
        token=config.github_token,
        cwd=ctx.store_root,
    )

    result = update_channel(
        store_root=ctx.store_root,
        config=config,
        channel=channel.value,
        registry=registry,
        http=http,
        console=ctx.console,
        dry_run=dry_run,
        commit=not no_commit,
        interactive=not no_prompt and is_interactive(),
    )
    exit_on_error(result, ctx)
