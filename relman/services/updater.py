"""Per-channel update flow.

``plan_update`` does every lookup and computation up front, renders and
verifies both channel files, and returns an ``UpdatePlan``. Nothing is written
until ``apply_update``, which writes the bundle and then the manifest.
``update_channel`` ties planning, dry-run reporting, writing and publishing
together for the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from relman.core.config import Config
from relman.core.result import Err, Ok, Result
from relman.git.repository import GitError, Repository
from relman.output.console import ConsoleProtocol, Style
from relman.platform.files import atomic_write_text
from relman.platform.http import HttpClient
from relman.release.bump import next_app_version
from relman.release.changelog import extract_release_notes
from relman.release.channel import select_version
from relman.release.errors import FileError, UpdateError
from relman.release.fingerprint import bundle_fingerprint
from relman.release.model import Channel, ChangeSeverity, ImageRef, ServiceChange
from relman.release.notes import default_release_notes
from relman.release.semver import SemVer, classify, parse_version
from relman.services.changelog_source import fetch_changelog
from relman.services.compose import ComposeDocument, read_bundle, render_bundle
from relman.services.editor import prompt_release_notes
from relman.services.manifest import read_manifest, render_manifest
from relman.services.publish import commit_message, publish_channel
from relman.services.registry import DIGEST_ALGORITHM, RegistryClient

DRY_RUN_PREFIX = "[dry-run]"


@dataclass(frozen=True, slots=True)
class ChannelFiles:
    channel: Channel
    directory: Path
    manifest: Path
    compose: Path

    @classmethod
    def for_channel(cls, store_root: Path, config: Config, channel: Channel) -> ChannelFiles:
        directory = store_root / config.channels.directory(channel)
        return cls(
            channel=channel,
            directory=directory,
            manifest=directory / config.app.manifest_file,
            compose=directory / config.app.compose_file,
        )


@dataclass(frozen=True, slots=True)
class UpdatePlan:
    """The complete next state of a channel, computed before any write."""

    channel: Channel
    files: ChannelFiles
    changes: tuple[ServiceChange, ...]
    current_bundle: dict[str, ImageRef]
    next_bundle: dict[str, ImageRef]
    fingerprint_before: str
    fingerprint_after: str
    current_version: SemVer
    next_version: SemVer
    release_notes: str
    # Verified file contents to write, and the bundle as it was read.
    bundle_text: str
    manifest_text: str
    bundle_before: str


class _Log:
    """Console wrapper that tags every line in dry-run mode."""

    def __init__(self, console: ConsoleProtocol, *, dry_run: bool) -> None:
        self.console = console
        self.dry_run = dry_run

    def _tag(self, message: str) -> str:
        return f"{DRY_RUN_PREFIX} {message}" if self.dry_run else message

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.console.print(self._tag(message), style)

    def info(self, message: str) -> None:
        self.console.info(self._tag(message))

    def warning(self, message: str) -> None:
        self.console.warning(self._tag(message))


def _current_versions(
    compose: ComposeDocument,
    services: tuple[str, ...],
    *,
    path: Path,
    log: _Log,
) -> Result[dict[str, SemVer], FileError]:
    out: dict[str, SemVer] = {}
    for service in services:
        image = compose.image(service)
        if image is None or not image.tag:
            return Err(FileError(path=path, reason=f"no versioned image for service {service}"))
        parsed = parse_version(image.tag)
        if isinstance(parsed, Err):
            return Err(FileError(path=path, reason=f"service {service}: {parsed.error.message}"))
        out[service] = parsed.value
        log.print(f"  {service}: current version {parsed.value}")
    return Ok(out)


def _select_targets(
    current: dict[str, SemVer],
    *,
    channel: Channel,
    registry: RegistryClient,
    log: _Log,
) -> Result[list[ServiceChange], UpdateError]:
    changes: list[ServiceChange] = []
    for service, current_version in current.items():
        versions = registry.list_versions(service)
        if isinstance(versions, Err):
            return versions
        target = select_version(versions.value, channel)
        if isinstance(target, Err):
            return target

        severity = classify(current_version, target.value)
        changes.append(
            ServiceChange(
                service=service,
                current=current_version,
                target=target.value,
                severity=severity,
            )
        )
        if current_version != target.value:
            log.print(f"  {service}: {current_version} -> {target.value} ({severity} change)")
        else:
            log.print(f"  {service}: {current_version} (no change)")
    return Ok(changes)


def _resolve_images(
    changes: list[ServiceChange],
    *,
    config: Config,
    registry: RegistryClient,
    log: _Log,
) -> Result[dict[str, ImageRef], UpdateError]:
    images: dict[str, ImageRef] = {}
    for change in changes:
        repository = config.registry.image_repository(change.service)
        tag = str(change.target)
        digest = registry.resolve_digest(f"{repository}:{tag}")
        if isinstance(digest, Err):
            return digest
        image = ImageRef(
            repository=repository, tag=tag, digest=f"{DIGEST_ALGORITHM}:{digest.value}"
        )
        images[change.service] = image
        log.print(f"  {change.service}: resolved {image}", Style.DIM)
    return Ok(images)


def _release_notes(
    next_version: SemVer,
    *,
    channel: Channel,
    config: Config,
    http: HttpClient,
    log: _Log,
) -> str:
    """Notes from the changelog for stable, the default line otherwise."""
    default = default_release_notes(next_version)
    if channel != "stable":
        return default

    log.print("Fetching release notes from the changelog...")
    document = fetch_changelog(
        http,
        config.changelog,
        token=config.github_token,
        api_url=config.registry.api_url,
    )
    if isinstance(document, Err):
        detail = f" ({document.error.hint})" if document.error.hint else ""
        log.warning(f"{document.error.message}{detail}; using default release notes")
        return default

    notes = extract_release_notes(document.value, next_version)
    if notes is None:
        log.warning(f"no changelog entry for version {next_version}; using default release notes")
        return default
    log.print(f"Found release notes for version {next_version}")
    return notes


def plan_update(
    *,
    files: ChannelFiles,
    config: Config,
    registry: RegistryClient,
    http: HttpClient,
    console: ConsoleProtocol,
    dry_run: bool = False,
    interactive: bool = False,
) -> Result[UpdatePlan, UpdateError]:
    log = _Log(console, dry_run=dry_run)
    channel = files.channel

    for path in (files.manifest, files.compose):
        if not path.is_file():
            return Err(FileError(path=path, reason=f"missing app file in {files.directory}"))

    compose = read_bundle(files.compose)
    if isinstance(compose, Err):
        return compose
    manifest = read_manifest(files.manifest)
    if isinstance(manifest, Err):
        return manifest

    log.print(f"Extracting current versions from {files.compose.name}...")
    current = _current_versions(
        compose.value, config.app.services, path=files.compose, log=log
    )
    if isinstance(current, Err):
        return current

    console.newline()
    log.print(f"Checking the registry for latest versions (channel: {channel})...")
    changes = _select_targets(current.value, channel=channel, registry=registry, log=log)
    if isinstance(changes, Err):
        return changes

    console.newline()
    log.print("Resolving image digests for target versions...")
    images = _resolve_images(changes.value, config=config, registry=registry, log=log)
    if isinstance(images, Err):
        return images

    next_compose = compose.value.with_images(images.value)
    fingerprint_before = bundle_fingerprint(compose.value.bundle)
    fingerprint_after = bundle_fingerprint(next_compose.bundle)
    log.print(f"Current fingerprint: {fingerprint_before}", Style.DIM)
    log.print(f"New fingerprint:     {fingerprint_after}", Style.DIM)

    current_version = manifest.value.manifest.version
    severities = {c.service: c.severity for c in changes.value}
    next_version = next_app_version(
        severities, fingerprint_before, fingerprint_after, current_version, channel
    )
    if isinstance(next_version, Err):
        return next_version

    console.newline()
    if all(s == ChangeSeverity.NONE for s in severities.values()):
        log.print("Bundle changed but versions did not; bumping patch version.")
    else:
        log.print(f"Highest change type: {max(severities.values())}")
    log.print(f"Current app version: {current_version}")
    log.print(f"New app version:     {next_version.value}")

    notes = _release_notes(
        next_version.value, channel=channel, config=config, http=http, log=log
    )
    notes = prompt_release_notes(
        notes, console=console, interactive=interactive and not dry_run
    )

    next_manifest = replace(
        manifest.value.manifest, version=next_version.value, release_notes=notes
    )
    bundle_text = render_bundle(next_compose, path=files.compose)
    if isinstance(bundle_text, Err):
        return bundle_text
    manifest_text = render_manifest(manifest.value, next_manifest, path=files.manifest)
    if isinstance(manifest_text, Err):
        return manifest_text

    return Ok(
        UpdatePlan(
            channel=channel,
            files=files,
            changes=tuple(changes.value),
            current_bundle=compose.value.bundle,
            next_bundle=next_compose.bundle,
            fingerprint_before=fingerprint_before,
            fingerprint_after=fingerprint_after,
            current_version=current_version,
            next_version=next_version.value,
            release_notes=notes,
            bundle_text=bundle_text.value,
            manifest_text=manifest_text.value,
            bundle_before=compose.value.render(),
        )
    )


def _write(path: Path, text: str) -> Result[None, FileError]:
    try:
        atomic_write_text(path, text, encoding="utf-8")
    except OSError as e:
        return Err(FileError(path=path, reason=f"failed to write: {e}"))
    return Ok(None)


def apply_update(plan: UpdatePlan) -> Result[None, FileError]:
    """Write the bundle, then the manifest.

    Both texts were rendered and verified by ``plan_update``. A failed bundle
    write leaves both files untouched; a failed manifest write puts the
    previous bundle back.
    """
    written = _write(plan.files.compose, plan.bundle_text)
    if isinstance(written, Err):
        return written

    written = _write(plan.files.manifest, plan.manifest_text)
    if isinstance(written, Err):
        restored = _write(plan.files.compose, plan.bundle_before)
        if isinstance(restored, Err):
            return Err(
                FileError(
                    path=plan.files.manifest,
                    reason=(
                        f"{written.error.reason}; {plan.files.compose.name} could not be "
                        f"restored ({restored.error.reason})"
                    ),
                )
            )
        return written
    return Ok(None)


def report_dry_run(
    plan: UpdatePlan, *, app_title: str, commit: bool, console: ConsoleProtocol
) -> None:
    log = _Log(console, dry_run=True)
    console.newline()
    log.print(f"Would update {plan.files.manifest}:")
    log.print(f'  version: "{plan.current_version}" -> "{plan.next_version}"')
    log.print("  releaseNotes:")
    for line in plan.release_notes.splitlines():
        log.print(f"    {line}")
    log.print(f"Would update {plan.files.compose} with new image digests:")
    for service, image in plan.next_bundle.items():
        if plan.current_bundle.get(service) != image:
            log.print(f"  {service}: {image}")

    if commit:
        log.print("Would commit and push changes with message:")
        for line in commit_message(app_title, plan.channel, plan.next_version).splitlines():
            if line:
                log.print(f"  {line}")
    else:
        log.print("Would skip commit (--no-commit)")


def update_channel(
    *,
    store_root: Path,
    config: Config,
    channel: Channel,
    registry: RegistryClient,
    http: HttpClient,
    console: ConsoleProtocol,
    dry_run: bool = False,
    commit: bool = True,
    interactive: bool = False,
) -> Result[UpdatePlan, UpdateError | GitError]:
    """Run one channel update end to end. NoChangeError means nothing to do."""
    files = ChannelFiles.for_channel(store_root, config, channel)
    if dry_run:
        console.info("running in dry-run mode (no changes will be made)")

    plan = plan_update(
        files=files,
        config=config,
        registry=registry,
        http=http,
        console=console,
        dry_run=dry_run,
        interactive=interactive,
    )
    if isinstance(plan, Err):
        return plan

    if dry_run:
        report_dry_run(plan.value, app_title=config.app.title, commit=commit, console=console)
        console.success("dry run complete; review the output above")
        return plan

    applied = apply_update(plan.value)
    if isinstance(applied, Err):
        return applied
    console.success(f"updated {files.manifest.name} and {files.compose.name}")

    if not commit:
        console.info(
            f"changes not committed (--no-commit); new app version {plan.value.next_version}"
        )
        return plan

    published = publish_channel(
        Repository(store_root),
        files=[files.manifest, files.compose],
        message=commit_message(config.app.title, channel, plan.value.next_version),
        console=console,
    )
    if isinstance(published, Err):
        return published
    return plan
