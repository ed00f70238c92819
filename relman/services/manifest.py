"""App manifest I/O for ``umbrel-app.yml``.

Only two things change on an update: the value of the top-level ``version:``
line, which keeps its quoting, and the ``releaseNotes:`` block, which is
rewritten as a folded scalar with each notes line indented two spaces:

    releaseNotes: >
      First line
      Second line

The block runs until the next line starting in column one. Every other line
is left untouched, key order included.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from relman.core.result import Err, Ok, Result
from relman.core.structured import as_str_dict, get_str
from relman.release.errors import FileError
from relman.release.model import AppManifest
from relman.release.semver import parse_version

NOTES_KEY = "releaseNotes"
NOTES_INDENT = "  "

_VERSION_LINE_RE = re.compile(
    r"^version:(?P<sep>[ \t]*)(?P<value>\"[^\"]*\"|'[^']*'|[^\s#\"']+)(?P<rest>.*)$"
)
_NOTES_LINE_RE = re.compile(rf"^{NOTES_KEY}:")


@dataclass(frozen=True, slots=True)
class ManifestDocument:
    lines: tuple[str, ...]
    manifest: AppManifest
    version_line: int
    newline: str = "\n"


def _body(line: str) -> str:
    return line.rstrip("\r\n")


def _detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def parse_manifest(text: str, *, path: Path) -> Result[ManifestDocument, FileError]:
    try:
        data_obj: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(FileError(path=path, reason=f"invalid YAML: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(FileError(path=path, reason="manifest root must be a mapping"))

    raw_version = get_str(data, "version")
    if raw_version is None:
        return Err(FileError(path=path, reason="missing top-level version"))
    version = parse_version(raw_version)
    if isinstance(version, Err):
        return Err(FileError(path=path, reason=version.error.message))

    lines = tuple(text.splitlines(keepends=True))
    version_line = next(
        (i for i, line in enumerate(lines) if _VERSION_LINE_RE.match(_body(line))),
        None,
    )
    if version_line is None:
        return Err(FileError(path=path, reason="version must be a single-line scalar"))

    notes = get_str(data, NOTES_KEY) or ""
    return Ok(
        ManifestDocument(
            lines=lines,
            manifest=AppManifest(version=version.value, release_notes=notes.strip()),
            version_line=version_line,
            newline=_detect_newline(text),
        )
    )


def read_manifest(path: Path) -> Result[ManifestDocument, FileError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(FileError(path=path, reason=f"failed to read: {e}"))
    return parse_manifest(text, path=path)


def notes_block(notes: str, newline: str = "\n") -> list[str]:
    """``releaseNotes`` lines as written to the manifest.

    Each line is stripped so every content line sits at the same indent; a
    more-indented first line would otherwise change the scalar's indentation.
    """
    if not notes.strip():
        return [f'{NOTES_KEY}: ""{newline}']
    out = [f"{NOTES_KEY}: >{newline}"]
    for line in notes.splitlines():
        line = line.strip()
        out.append(f"{NOTES_INDENT}{line}{newline}" if line else newline)
    return out


def folded_notes(notes: str) -> str:
    """The stripped value a YAML parser reads back from ``notes_block(notes)``.

    Adjacent lines fold into one separated by a space; a run of N blank lines
    becomes N line breaks.
    """
    out: list[str] = []
    blanks = 0
    for line in notes.splitlines():
        line = line.strip()
        if not line:
            blanks += 1
            continue
        if out:
            out.append("\n" * blanks if blanks else " ")
        out.append(line)
        blanks = 0
    return "".join(out)


def _replace_version(line: str, version: str) -> str:
    body = _body(line)
    ending = line[len(body) :]
    m = _VERSION_LINE_RE.match(body)
    if m is None:
        raise AssertionError(f"not a version line: {body!r}")
    value = m.group("value")
    quote = value[0] if value[0] in "\"'" else ""
    return f"version:{m.group('sep')}{quote}{version}{quote}{m.group('rest')}{ending}"


def _notes_span(lines: list[str]) -> tuple[int, int] | None:
    """(start, end) of the releaseNotes block; trailing blank lines stay outside."""
    start = next((i for i, line in enumerate(lines) if _NOTES_LINE_RE.match(line)), None)
    if start is None:
        return None
    end = start + 1
    last_content = start + 1
    while end < len(lines):
        body = _body(lines[end])
        if body and not body[0].isspace():
            break
        end += 1
        if body.strip():
            last_content = end
    return start, last_content


def render_manifest(
    document: ManifestDocument,
    manifest: AppManifest,
    *,
    path: Path,
) -> Result[str, FileError]:
    """Render ``document`` with ``manifest``'s version and notes, then verify it."""
    nl = document.newline
    lines = list(document.lines)
    lines[document.version_line] = _replace_version(
        lines[document.version_line], str(manifest.version)
    )

    block = notes_block(manifest.release_notes, nl)
    span = _notes_span(lines)
    if span is None:
        if lines and not lines[-1].endswith(("\n", "\r")):
            lines[-1] += nl
        lines.extend(block)
    else:
        start, end = span
        lines[start:end] = block

    text = "".join(lines)
    reparsed = parse_manifest(text, path=path)
    if isinstance(reparsed, Err):
        return reparsed
    if reparsed.value.manifest.version != manifest.version:
        return Err(FileError(path=path, reason="rendered manifest has the wrong version"))
    if reparsed.value.manifest.release_notes != folded_notes(manifest.release_notes):
        return Err(FileError(path=path, reason="rendered manifest has the wrong release notes"))
    return Ok(text)
