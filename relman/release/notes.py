"""Release notes cleanup.

Every notes text goes through ``clean_release_notes`` before it is written,
whether it came from the changelog or from a human edit. Cleaning drops
editor comments, leaked log lines and separator rules, collapses repeated
``Version X.Y.Z`` lines and blank runs, and trims the ends.
``finalize_release_notes`` guarantees the published text is never empty.
"""

from __future__ import annotations

import re

from relman.output.console import LOG_TAG
from relman.release.semver import SemVer

COMMENT_MARKER = "#"
SEPARATOR_MIN_DASHES = 10

_DASHES = "-‐‑‒–—―"
_VERSION_LINE_RE = re.compile(r"^\s*Version\s+\d+\.\d+\.\d+(-\S+)?\s*$")


def default_release_notes(version: SemVer) -> str:
    return f"Version {version}"


def _is_separator(trimmed: str) -> bool:
    dashes = sum(1 for ch in trimmed if ch in _DASHES)
    if dashes < SEPARATOR_MIN_DASHES:
        return False
    return all(ch in _DASHES or ch.isspace() for ch in trimmed)


def _keep_line(line: str) -> bool:
    trimmed = line.strip()
    if trimmed.startswith(COMMENT_MARKER):
        return False
    if LOG_TAG in trimmed:
        return False
    if _is_separator(trimmed):
        return False
    return True


def clean_release_notes(text: str) -> str:
    kept = [line for line in text.splitlines() if _keep_line(line)]

    deduped: list[str] = []
    previous_version_line: str | None = None
    for line in kept:
        if _VERSION_LINE_RE.match(line):
            if line == previous_version_line:
                continue
            previous_version_line = line
        else:
            previous_version_line = None
        deduped.append(line)

    collapsed: list[str] = []
    for line in deduped:
        if not line.strip():
            if collapsed and not collapsed[-1].strip():
                continue
            line = ""
        collapsed.append(line)

    while collapsed and not collapsed[0]:
        collapsed.pop(0)
    while collapsed and not collapsed[-1]:
        collapsed.pop()
    return "\n".join(collapsed)


def finalize_release_notes(text: str, default: str) -> str:
    """Clean ``text``; fall back to ``default`` if nothing is left."""
    cleaned = clean_release_notes(text)
    if not cleaned.strip():
        return default
    return cleaned
