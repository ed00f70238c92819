"""Release engine: version selection, change detection and release notes.

Modules here are pure: no I/O, no console. Adapters live in
``relman.services``.
"""

from __future__ import annotations

from relman.release.bump import bump_beta, bump_stable, next_app_version
from relman.release.changelog import extract_release_notes
from relman.release.channel import select_version, versions_from_tags
from relman.release.fingerprint import bundle_fingerprint
from relman.release.model import ChangeSeverity, Channel, ImageRef, ServiceVersionSet
from relman.release.notes import clean_release_notes, finalize_release_notes
from relman.release.semver import PreRelease, SemVer, classify, parse_version

__all__ = [
    "ChangeSeverity",
    "Channel",
    "ImageRef",
    "PreRelease",
    "SemVer",
    "ServiceVersionSet",
    "bump_beta",
    "bump_stable",
    "bundle_fingerprint",
    "classify",
    "clean_release_notes",
    "extract_release_notes",
    "finalize_release_notes",
    "next_app_version",
    "parse_version",
    "select_version",
    "versions_from_tags",
]
