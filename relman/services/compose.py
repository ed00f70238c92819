"""Bundle file I/O for ``docker-compose.yml``.

The compose file is parsed into a ``ComposeDocument``: the raw lines plus, for
each service with an ``image:``, the parsed ``ImageRef`` and the index of the
line holding it. YAML structure comes from PyYAML; the line index lets a
structured edit rewrite exactly one token.

Serialization contract: ``render()`` reproduces the input byte for byte
except the image value of each changed service, which keeps its original
quoting. Rendered output is re-parsed before writing and must yield exactly
the requested images.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

from relman.core.result import Err, Ok, Result
from relman.core.structured import as_str_dict, get_table
from relman.release.errors import FileError
from relman.release.model import ImageRef

_SERVICES_KEY_RE = re.compile(r"^services:\s*(#.*)?$")
_KEY_LINE_RE = re.compile(r"^(?P<indent>[ ]*)(?P<key>[^\s:#][^:#]*?|\"[^\"]+\"|'[^']+'):\s*(#.*)?$")
_IMAGE_LINE_RE = re.compile(
    r"^(?P<indent>[ ]+)image:(?P<sep>[ \t]*)"
    r"(?P<value>\"[^\"]*\"|'[^']*'|[^\s#\"']+)"
    r"(?P<rest>.*)$"
)


@dataclass(frozen=True, slots=True)
class ServiceImage:
    service: str
    image: ImageRef
    line: int
    quote: str


@dataclass(frozen=True, slots=True)
class ComposeDocument:
    lines: tuple[str, ...]
    services: tuple[ServiceImage, ...]

    @property
    def bundle(self) -> dict[str, ImageRef]:
        return {s.service: s.image for s in self.services}

    def image(self, service: str) -> ImageRef | None:
        for s in self.services:
            if s.service == service:
                return s.image
        return None

    def with_images(self, images: Mapping[str, ImageRef]) -> ComposeDocument:
        """Replace the image of each named service.

        Raises:
            KeyError: if a named service has no image in this document.
        """
        known = {s.service for s in self.services}
        missing = sorted(set(images) - known)
        if missing:
            raise KeyError(f"services without an image line: {', '.join(missing)}")

        lines = list(self.lines)
        services: list[ServiceImage] = []
        for s in self.services:
            new_image = images.get(s.service)
            if new_image is None or new_image == s.image:
                services.append(s)
                continue
            lines[s.line] = _replace_image_token(lines[s.line], str(new_image), s.quote)
            services.append(replace(s, image=new_image))
        return ComposeDocument(lines=tuple(lines), services=tuple(services))

    def render(self) -> str:
        return "".join(self.lines)


def _split_ending(line: str) -> tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body) :]


def _replace_image_token(line: str, value: str, quote: str) -> str:
    body, ending = _split_ending(line)
    m = _IMAGE_LINE_RE.match(body)
    if m is None:
        raise AssertionError(f"not an image line: {body!r}")
    token = f"{quote}{value}{quote}"
    return f"{m.group('indent')}image:{m.group('sep')}{token}{m.group('rest')}{ending}"


def _indent(body: str) -> int:
    return len(body) - len(body.lstrip(" "))


def _is_content(body: str) -> bool:
    stripped = body.strip()
    return bool(stripped) and not stripped.startswith("#")


def _locate_image_lines(lines: list[str]) -> dict[str, tuple[int, str, str]]:
    """Map service name -> (line index, raw value, quote) for direct ``image:`` keys."""
    bodies = [_split_ending(line)[0] for line in lines]
    start = next((i for i, b in enumerate(bodies) if _SERVICES_KEY_RE.match(b)), None)
    if start is None:
        return {}

    found: dict[str, tuple[int, str, str]] = {}
    service_indent: int | None = None
    child_indent: int | None = None
    current: str | None = None

    for i in range(start + 1, len(bodies)):
        body = bodies[i]
        if not _is_content(body):
            continue
        indent = _indent(body)
        if indent == 0:
            break
        if service_indent is None:
            service_indent = indent
        if indent == service_indent:
            m = _KEY_LINE_RE.match(body)
            current = m.group("key").strip("\"'") if m else None
            child_indent = None
            continue
        if current is None or indent < service_indent:
            continue
        if child_indent is None:
            child_indent = indent
        if indent != child_indent or current in found:
            continue
        image = _IMAGE_LINE_RE.match(body)
        if image is not None:
            value = image.group("value")
            quote = value[0] if value[0] in "\"'" else ""
            found[current] = (i, value.strip("\"'"), quote)
    return found


def parse_compose(text: str, *, path: Path) -> Result[ComposeDocument, FileError]:
    try:
        data_obj: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(FileError(path=path, reason=f"invalid YAML: {e}"))

    data = as_str_dict(data_obj)
    services = get_table(data, "services") if data is not None else None
    if services is None:
        return Err(FileError(path=path, reason="missing top-level services mapping"))

    lines = text.splitlines(keepends=True)
    located = _locate_image_lines(lines)

    entries: list[ServiceImage] = []
    for name, spec in services.items():
        table = as_str_dict(spec)
        image_value = table.get("image") if table is not None else None
        if image_value is None:
            continue
        if not isinstance(image_value, str):
            return Err(FileError(path=path, reason=f"service {name}: image must be a string"))
        hit = located.get(name)
        if hit is None or ImageRef.parse(hit[1]) != ImageRef.parse(image_value):
            return Err(
                FileError(
                    path=path,
                    reason=f"service {name}: image must be a single-line 'image:' entry",
                )
            )
        line, _, quote = hit
        entries.append(
            ServiceImage(service=name, image=ImageRef.parse(image_value), line=line, quote=quote)
        )

    return Ok(ComposeDocument(lines=tuple(lines), services=tuple(entries)))


def read_bundle(path: Path) -> Result[ComposeDocument, FileError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(FileError(path=path, reason=f"failed to read: {e}"))
    return parse_compose(text, path=path)


def render_bundle(document: ComposeDocument, *, path: Path) -> Result[str, FileError]:
    """Render ``document`` and check the output parses back to the same bundle."""
    text = document.render()
    reparsed = parse_compose(text, path=path)
    if isinstance(reparsed, Err):
        return reparsed
    if reparsed.value.bundle != document.bundle:
        return Err(FileError(path=path, reason="rendered compose file does not match the bundle"))
    return Ok(text)
