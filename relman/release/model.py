from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from relman.release.semver import SemVer


Channel = Literal["stable", "beta"]
CHANNELS: tuple[Channel, ...] = ("stable", "beta")


class ChangeSeverity(IntEnum):
    """How coarse a version change is; ordered NONE < PATCH < MINOR < MAJOR."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class ServiceVersionSet:
    """Every published version of one service, split by tag lineage."""

    service: str
    release_versions: frozenset[SemVer]
    pre_release_versions: frozenset[SemVer]


@dataclass(frozen=True, slots=True)
class ImageRef:
    """A container image reference: ``repository[:tag][@digest]``."""

    repository: str
    tag: str | None = None
    # Full digest including the algorithm, e.g. "sha256:<hex>".
    digest: str | None = None

    @classmethod
    def parse(cls, text: str) -> ImageRef:
        ref = text.strip().strip("\"'")
        digest: str | None = None
        if "@" in ref:
            ref, digest = ref.split("@", 1)
        tag: str | None = None
        # A colon before the last slash belongs to a registry port.
        colon = ref.rfind(":")
        if colon > ref.rfind("/"):
            ref, tag = ref[:colon], ref[colon + 1 :]
        return cls(repository=ref, tag=tag or None, digest=digest or None)

    def with_version(self, tag: str, digest: str) -> ImageRef:
        return ImageRef(repository=self.repository, tag=tag, digest=digest)

    def __str__(self) -> str:
        out = self.repository
        if self.tag:
            out += f":{self.tag}"
        if self.digest:
            out += f"@{self.digest}"
        return out


# Service name -> image, in document order.
Bundle = Mapping[str, ImageRef]


@dataclass(frozen=True, slots=True)
class AppManifest:
    version: SemVer
    release_notes: str


@dataclass(frozen=True, slots=True)
class ChangelogDocument:
    """Raw changelog markdown, fetched once per run and passed explicitly."""

    text: str

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines()


@dataclass(frozen=True, slots=True)
class ServiceChange:
    service: str
    current: SemVer
    target: SemVer
    severity: ChangeSeverity
