"""Release notes extraction from a markdown changelog.

Changelogs document base versions only, so ``1.4.0-beta.2`` is looked up as
``1.4.0``. Header shapes are tried in a fixed order and the first shape that
matches any header in the document wins:

    ## [v1.4.0]   ## [1.4.0]   ## v1.4.0   ## 1.4.0
    ### [v1.4.0]  ### [1.4.0]  ### v1.4.0  ### 1.4.0

The section body runs until the next ``##`` or ``###`` header.
"""

from __future__ import annotations

import re

from relman.release.model import ChangelogDocument
from relman.release.semver import SemVer

MAX_NOTES_LINES = 30

_HEADING_LEVELS = ("##", "###")
_NEXT_HEADER_RE = re.compile(r"^\s*#{2,3}\s")


def _header_shapes(base: str) -> list[str]:
    return [f"[v{base}]", f"[{base}]", f"v{base}", base]


def _header_pattern(level: str, shape: str) -> re.Pattern[str]:
    # The shape must not run on into a longer version (1.4.0 vs 1.4.01 or 1.4.0-beta.0).
    return re.compile(rf"^\s*{level}\s+{re.escape(shape)}(?![0-9A-Za-z.\-])")


def _find_section_start(lines: list[str], base: str) -> int | None:
    for level in _HEADING_LEVELS:
        for shape in _header_shapes(base):
            pattern = _header_pattern(level, shape)
            for i, line in enumerate(lines):
                if pattern.match(line):
                    return i
    return None


def _normalize(body: list[str]) -> list[str]:
    stripped = [line.strip() for line in body]
    while stripped and not stripped[0]:
        stripped.pop(0)
    stripped = stripped[:MAX_NOTES_LINES]
    while stripped and not stripped[-1]:
        stripped.pop()
    return stripped


def extract_release_notes(document: ChangelogDocument | None, version: SemVer) -> str | None:
    """Notes for ``version``'s base, or None when there is no usable section."""
    if document is None:
        return None

    lines = document.lines
    base = str(version.release())
    start = _find_section_start(lines, base)
    if start is None:
        return None

    body: list[str] = []
    for line in lines[start + 1 :]:
        if _NEXT_HEADER_RE.match(line):
            break
        body.append(line)

    notes = _normalize(body)
    if not notes:
        return None
    return "\n".join(notes)
