"""Versions command - show what each channel currently ships."""

from __future__ import annotations

from relman.cli.context import build_context
from relman.output.console import Style
from relman.services.listing import collect_channel_summaries, print_channel_summaries


def versions() -> None:
    """List the app version and image tags of each channel."""
    ctx = build_context()
    ctx.console.print(f"store: {ctx.store_root}", Style.DIM)
    summaries = collect_channel_summaries(ctx.store_root, ctx.config)
    print_channel_summaries(summaries, ctx.config, ctx.console)
