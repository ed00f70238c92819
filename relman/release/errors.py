"""Error payloads for the release engine.

Errors are returned inside ``Err`` rather than raised. Each payload exposes
``message`` and ``hint`` so the CLI renders them the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "ExternalUnavailable",
    "FileError",
    "NoChangeError",
    "NoVersionFound",
    "ParseError",
    "UpdateError",
]


@dataclass(frozen=True, slots=True)
class ParseError:
    """A version string does not match ``MAJOR.MINOR.PATCH[-preRelease]``."""

    text: str
    reason: str

    @property
    def message(self) -> str:
        return f"invalid version {self.text!r}: {self.reason}"

    @property
    def hint(self) -> str:
        return "expected MAJOR.MINOR.PATCH[-preRelease], e.g. 1.4.0 or 1.4.0-beta.2"


@dataclass(frozen=True, slots=True)
class NoVersionFound:
    """Channel selection had nothing to choose from."""

    service: str
    channel: str

    @property
    def message(self) -> str:
        return f"no published version of {self.service} for channel {self.channel}"

    @property
    def hint(self) -> str | None:
        return "check the registry tags for this service"


@dataclass(frozen=True, slots=True)
class NoChangeError:
    """The bundle is unchanged; nothing to release. Not a failure."""

    message: str = "bundle unchanged; nothing to update"
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ExternalUnavailable:
    """A registry or changelog call failed (network, auth, bad payload)."""

    source: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class FileError:
    """A channel file is unreadable, unwritable or malformed."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"{self.path.name}: {self.reason}"

    @property
    def hint(self) -> str:
        return str(self.path)


UpdateError = ParseError | NoVersionFound | NoChangeError | ExternalUnavailable | FileError
