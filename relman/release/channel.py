"""Per-service target version selection for a channel.

Stable takes the highest release. Beta takes the highest release too, unless
a pre-release with a strictly higher base exists and has not been released
yet:

- 1.1.3 and 1.1.3-beta.0 published -> 1.1.3
- 1.1.3 and 1.1.4-beta.0 published -> 1.1.4-beta.0
- only 1.0.0-beta.0 published      -> 1.0.0-beta.0
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from relman.core.result import Err, Ok, Result
from relman.release.errors import NoVersionFound
from relman.release.model import Channel, ServiceVersionSet
from relman.release.semver import SemVer, parse_version, precedence_key


_RELEASE_TAG_RE = re.compile(r"^\d+\.\d+\.\d+$")
_PRE_RELEASE_TAG_RE = re.compile(r"^\d+\.\d+\.\d+(-beta\.\d+)?$")


def _parse_tags(tags: Iterable[str], pattern: re.Pattern[str]) -> frozenset[SemVer]:
    out: set[SemVer] = set()
    for tag in tags:
        tag = tag.strip()
        if not pattern.match(tag):
            continue
        parsed = parse_version(tag)
        if isinstance(parsed, Ok):
            out.add(parsed.value)
    return frozenset(out)


def versions_from_tags(
    service: str,
    release_tags: Iterable[str],
    pre_release_tags: Iterable[str],
) -> ServiceVersionSet:
    """Build a version set from raw registry tags.

    Floating tags such as ``latest``, ``beta`` or ``sha-<commit>`` are skipped.
    """
    return ServiceVersionSet(
        service=service,
        release_versions=_parse_tags(release_tags, _RELEASE_TAG_RE),
        pre_release_versions=_parse_tags(pre_release_tags, _PRE_RELEASE_TAG_RE),
    )


def beta_candidates(versions: ServiceVersionSet) -> frozenset[SemVer]:
    """Releases plus pre-releases whose base has not been released."""
    released_bases = {v.base for v in versions.release_versions}
    unreleased = {v for v in versions.pre_release_versions if v.base not in released_bases}
    return versions.release_versions | unreleased


def select_version(
    versions: ServiceVersionSet,
    channel: Channel,
) -> Result[SemVer, NoVersionFound]:
    if channel == "stable":
        if not versions.release_versions:
            return Err(NoVersionFound(service=versions.service, channel=channel))
        return Ok(max(versions.release_versions, key=precedence_key))

    candidates = beta_candidates(versions)
    if candidates:
        return Ok(max(candidates, key=precedence_key))
    if versions.release_versions:
        return Ok(max(versions.release_versions, key=precedence_key))
    return Err(NoVersionFound(service=versions.service, channel=channel))
