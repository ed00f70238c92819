from __future__ import annotations

import re
from dataclasses import dataclass

from relman.core.result import Err, Ok, Result
from relman.release.errors import ParseError
from relman.release.model import ChangeSeverity


_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z][0-9A-Za-z.\-]*))?$")
_BETA_RE = re.compile(r"^beta\.(\d+)$")

BaseTriple = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class PreRelease:
    """A pre-release suffix. Only ``beta.N`` is structured; anything else is opaque."""

    raw: str

    @classmethod
    def beta(cls, n: int) -> PreRelease:
        return cls(f"beta.{n}")

    @property
    def beta_number(self) -> int | None:
        m = _BETA_RE.match(self.raw)
        if m is None:
            return None
        return int(m.group(1))

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    pre_release: PreRelease | None = None

    @property
    def base(self) -> BaseTriple:
        return (self.major, self.minor, self.patch)

    def release(self) -> SemVer:
        """This version without its pre-release suffix."""
        return SemVer(self.major, self.minor, self.patch)

    def with_beta(self, n: int) -> SemVer:
        return SemVer(self.major, self.minor, self.patch, PreRelease.beta(n))

    def bump(self, severity: ChangeSeverity) -> SemVer:
        """Bump the base triple; the result never carries a suffix."""
        match severity:
            case ChangeSeverity.MAJOR:
                return SemVer(self.major + 1, 0, 0)
            case ChangeSeverity.MINOR:
                return SemVer(self.major, self.minor + 1, 0)
            case ChangeSeverity.PATCH:
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump severity: {severity}")

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release is not None:
            out += f"-{self.pre_release}"
        return out


def parse_version(text: str) -> Result[SemVer, ParseError]:
    """Parse ``MAJOR.MINOR.PATCH[-preRelease]``; surrounding whitespace is ignored."""
    candidate = text.strip()
    if not candidate:
        return Err(ParseError(text=text, reason="empty version"))

    m = _VERSION_RE.match(candidate)
    if m is None:
        head = candidate.split("-", 1)[0]
        parts = head.split(".")
        if len(parts) != 3:
            reason = "expected a dot-separated MAJOR.MINOR.PATCH triple"
        elif not all(p.isdigit() for p in parts):
            reason = "version components must be non-negative integers"
        else:
            reason = "malformed pre-release suffix"
        return Err(ParseError(text=text, reason=reason))

    pre = PreRelease(m.group(4)) if m.group(4) else None
    return Ok(SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), pre))


def compare_base(a: SemVer, b: SemVer) -> int:
    """Compare base triples numerically: -1, 0 or 1. Suffixes are ignored."""
    if a.base == b.base:
        return 0
    return -1 if a.base < b.base else 1


def precedence_key(v: SemVer) -> tuple[int, int, int, int, int, str]:
    """Total order used for selection.

    Higher base always wins. On equal base a release outranks any
    pre-release, then ``beta.N`` ranks by N, then opaque suffixes by text.
    """
    if v.pre_release is None:
        return (*v.base, 1, 0, "")
    n = v.pre_release.beta_number
    return (*v.base, 0, -1 if n is None else n, v.pre_release.raw)


def classify(old: SemVer, new: SemVer) -> ChangeSeverity:
    """Severity of moving from ``old`` to ``new``, in either direction.

    Pre-release-only differences on the same base are NONE.
    """
    if old.major != new.major:
        return ChangeSeverity.MAJOR
    if old.minor != new.minor:
        return ChangeSeverity.MINOR
    if old.patch != new.patch:
        return ChangeSeverity.PATCH
    return ChangeSeverity.NONE
