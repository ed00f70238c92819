"""Aggregate application version bump.

Per-service severities collapse into one bump of the app manifest version:
the highest severity wins, a digest-only change still earns a patch, and an
unchanged bundle is a no-op.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from relman.core.result import Err, Ok, Result
from relman.release.errors import NoChangeError
from relman.release.model import ChangeSeverity, Channel
from relman.release.semver import SemVer, compare_base


def highest_severity(severities: Iterable[ChangeSeverity]) -> ChangeSeverity:
    return max(severities, default=ChangeSeverity.NONE)


def effective_severity(
    severities: Mapping[str, ChangeSeverity],
    fingerprint_before: str,
    fingerprint_after: str,
) -> Result[ChangeSeverity, NoChangeError]:
    """The bump to apply, or NoChangeError when nothing moved."""
    highest = highest_severity(severities.values())
    if highest != ChangeSeverity.NONE:
        return Ok(highest)
    if fingerprint_before != fingerprint_after:
        return Ok(ChangeSeverity.PATCH)
    return Err(NoChangeError())


def bump_beta(current: SemVer, base: SemVer) -> SemVer:
    """``base-beta.0`` on a new base, else the next ``beta.N`` of ``current``.

    A missing or non-``beta.N`` suffix on the same base restarts at beta.0.
    """
    if base.base != current.base or current.pre_release is None:
        return base.release().with_beta(0)
    n = current.pre_release.beta_number
    if n is None:
        return base.release().with_beta(0)
    return base.release().with_beta(n + 1)


def bump_stable(current: SemVer | None, base: SemVer) -> SemVer:
    """Adopt ``base`` if it is ahead of ``current``, else bump current's patch."""
    if current is None:
        return base.release()
    if compare_base(base, current) > 0:
        return base.release()
    return current.bump(ChangeSeverity.PATCH)


def next_app_version(
    severities: Mapping[str, ChangeSeverity],
    fingerprint_before: str,
    fingerprint_after: str,
    current: SemVer,
    channel: Channel,
) -> Result[SemVer, NoChangeError]:
    """Next manifest version for ``channel``.

    Stable gets the bumped base with no suffix. Beta gets ``-beta.0`` when
    the base moved and ``beta.N+1`` otherwise.
    """
    severity = effective_severity(severities, fingerprint_before, fingerprint_after)
    if isinstance(severity, Err):
        return severity

    new_base = current.bump(severity.value)
    if channel == "stable":
        return Ok(new_base)
    return Ok(bump_beta(current, new_base))
