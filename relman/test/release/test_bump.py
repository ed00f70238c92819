from __future__ import annotations

import pytest

from relman.core.result import Err, Ok
from relman.release.bump import (
    bump_beta,
    bump_stable,
    effective_severity,
    highest_severity,
    next_app_version,
)
from relman.release.errors import NoChangeError
from relman.release.fingerprint import bundle_fingerprint
from relman.release.model import ChangeSeverity, ImageRef
from relman.release.semver import SemVer, classify, parse_version

NONE = ChangeSeverity.NONE
PATCH = ChangeSeverity.PATCH
MINOR = ChangeSeverity.MINOR
MAJOR = ChangeSeverity.MAJOR


def v(text: str) -> SemVer:
    return parse_version(text).unwrap()  # type: ignore[return-value]


class TestEffectiveSeverity:
    def test_highest_wins(self) -> None:
        assert highest_severity([PATCH, MAJOR, MINOR]) == MAJOR
        assert highest_severity([]) == NONE

    def test_digest_only_change_is_patch(self) -> None:
        assert effective_severity({"backend": NONE}, "fp1", "fp2") == Ok(PATCH)

    def test_unchanged_bundle_is_no_change(self) -> None:
        result = effective_severity({"backend": NONE, "frontend": NONE}, "fp", "fp")
        assert result == Err(NoChangeError())

    def test_version_change_wins_even_with_equal_fingerprints(self) -> None:
        assert effective_severity({"backend": MINOR}, "fp", "fp") == Ok(MINOR)


class TestNextAppVersion:
    @pytest.mark.parametrize(
        ("severity", "expected"),
        [(MAJOR, "2.0.0"), (MINOR, "1.3.0"), (PATCH, "1.2.4")],
    )
    def test_stable(self, severity: ChangeSeverity, expected: str) -> None:
        result = next_app_version({"backend": severity}, "a", "b", v("1.2.3"), "stable")
        assert str(result.unwrap()) == expected

    def test_stable_drops_suffix(self) -> None:
        result = next_app_version({"backend": PATCH}, "a", "b", v("1.2.3-beta.1"), "stable")
        assert str(result.unwrap()) == "1.2.4"

    def test_beta_suffix_resets_on_new_base(self) -> None:
        result = next_app_version({"backend": MINOR}, "a", "b", v("1.2.0-beta.3"), "beta")
        assert str(result.unwrap()) == "1.3.0-beta.0"

    def test_beta_from_release(self) -> None:
        result = next_app_version({"backend": NONE}, "a", "b", v("1.2.0"), "beta")
        assert str(result.unwrap()) == "1.2.1-beta.0"

    def test_no_change(self) -> None:
        result = next_app_version({"backend": NONE}, "a", "a", v("1.2.0"), "beta")
        assert isinstance(result, Err)
        assert isinstance(result.error, NoChangeError)
        assert result.error.hint is None

    def test_rerun_with_same_inputs_is_no_change(self) -> None:
        before = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.0.0", "sha256:" + "1" * 64)}
        after = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.1.0", "sha256:" + "2" * 64)}

        first = next_app_version(
            {"backend": classify(v("1.0.0"), v("1.1.0"))},
            bundle_fingerprint(before),
            bundle_fingerprint(after),
            v("3.0.0"),
            "stable",
        )
        assert first == Ok(SemVer(3, 1, 0))

        # Second run: the bundle on disk is now ``after`` and the registry has not moved.
        second = next_app_version(
            {"backend": classify(v("1.1.0"), v("1.1.0"))},
            bundle_fingerprint(after),
            bundle_fingerprint(after),
            first.unwrap(),
            "stable",
        )
        assert second == Err(NoChangeError())

    def test_same_base_flip_from_pre_release_to_release_is_patch(self) -> None:
        # 1.2.3-beta.0 superseded by 1.2.3: same base so NONE, but the tag
        # and digest move, so the bundle changes and the app gets a patch bump.
        old = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.2.3-beta.0", "sha256:" + "1" * 64)}
        new = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.2.3", "sha256:" + "2" * 64)}
        severity = classify(v("1.2.3-beta.0"), v("1.2.3"))
        assert severity == NONE

        for channel, expected in (("stable", "0.5.1"), ("beta", "0.5.1-beta.0")):
            result = next_app_version(
                {"backend": severity},
                bundle_fingerprint(old),
                bundle_fingerprint(new),
                v("0.5.0"),
                channel,  # type: ignore[arg-type]
            )
            assert str(result.unwrap()) == expected

    def test_same_base_flip_with_identical_image_is_still_patch(self) -> None:
        digest = "sha256:" + "7" * 64
        old = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.2.3-beta.0", digest)}
        new = {"backend": ImageRef("ghcr.io/x/pluto-backend", "1.2.3", digest)}
        result = next_app_version(
            {"backend": NONE}, bundle_fingerprint(old), bundle_fingerprint(new), v("0.5.0"), "stable"
        )
        assert result == Ok(SemVer(0, 5, 1))


class TestBumpBeta:
    def test_new_base_resets(self) -> None:
        assert str(bump_beta(v("1.2.0-beta.3"), v("1.3.0"))) == "1.3.0-beta.0"

    def test_same_base_increments(self) -> None:
        assert str(bump_beta(v("1.3.0-beta.3"), v("1.3.0"))) == "1.3.0-beta.4"

    def test_same_base_without_beta_suffix(self) -> None:
        assert str(bump_beta(v("1.3.0"), v("1.3.0"))) == "1.3.0-beta.0"
        assert str(bump_beta(v("1.3.0-rc.1"), v("1.3.0"))) == "1.3.0-beta.0"


class TestBumpStable:
    def test_no_current(self) -> None:
        assert bump_stable(None, v("1.4.0")) == SemVer(1, 4, 0)

    def test_adopts_higher_base(self) -> None:
        assert bump_stable(v("1.3.9"), v("1.4.0")) == SemVer(1, 4, 0)

    def test_bumps_patch_otherwise(self) -> None:
        assert bump_stable(v("1.4.0"), v("1.4.0")) == SemVer(1, 4, 1)
        assert bump_stable(v("1.10.0"), v("1.9.0")) == SemVer(1, 10, 1)
