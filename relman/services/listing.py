"""Read-only summary of what each channel currently ships."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relman.core.config import Config
from relman.core.result import Err
from relman.output.console import ConsoleProtocol, Style
from relman.release.model import CHANNELS, Channel
from relman.services.compose import read_bundle
from relman.services.manifest import read_manifest

UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ChannelSummary:
    channel: Channel
    directory: str
    app_version: str
    # (service, image tag) in configured service order.
    image_tags: tuple[tuple[str, str], ...]


def collect_channel_summary(
    store_root: Path, config: Config, channel: Channel
) -> ChannelSummary | None:
    """Summary of ``channel``, or None when its files are missing."""
    directory = config.channels.directory(channel)
    app_dir = store_root / directory
    manifest_path = app_dir / config.app.manifest_file
    compose_path = app_dir / config.app.compose_file
    if not manifest_path.is_file() or not compose_path.is_file():
        return None

    manifest = read_manifest(manifest_path)
    app_version = UNKNOWN if isinstance(manifest, Err) else str(manifest.value.manifest.version)

    bundle = read_bundle(compose_path)
    tags: list[tuple[str, str]] = []
    for service in config.app.services:
        image = None if isinstance(bundle, Err) else bundle.value.image(service)
        tag = image.tag if image is not None and image.tag else UNKNOWN
        tags.append((service, tag))

    return ChannelSummary(
        channel=channel,
        directory=directory,
        app_version=app_version,
        image_tags=tuple(tags),
    )


def collect_channel_summaries(store_root: Path, config: Config) -> list[ChannelSummary]:
    out: list[ChannelSummary] = []
    for channel in CHANNELS:
        summary = collect_channel_summary(store_root, config, channel)
        if summary is not None:
            out.append(summary)
    return out


def print_channel_summaries(
    summaries: list[ChannelSummary],
    config: Config,
    console: ConsoleProtocol,
) -> None:
    console.header("Current configuration in this repository")
    if not summaries:
        console.warning("no channel directories found")
    for summary in summaries:
        console.newline()
        console.print(f"{summary.channel.capitalize()} channel ({summary.directory}):")
        console.print(f"  app version: {summary.app_version}")
        width = max((len(s) for s, _ in summary.image_tags), default=0)
        for service, tag in summary.image_tags:
            console.print(f"  {service.ljust(width)}  {tag}")

    first = config.app.services[0]
    console.newline()
    console.print("To check that a specific version exists:", Style.DIM)
    console.print(
        f"  docker buildx imagetools inspect {config.registry.image_repository(first)}:<version>",
        Style.DIM,
    )
    console.print(
        "Run `relman update --channel stable|beta` to re-resolve image digests.", Style.DIM
    )
