"""Order-independent bundle fingerprint.

Each entry becomes ``<service>=<image reference>`` with quotes stripped; the
lines are sorted and hashed with SHA-256. Two bundles with the same
(service, reference) pairs fingerprint identically whatever their order or
quoting in the compose file.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping

from relman.release.model import ImageRef

_QUOTES = "\"'"


def fingerprint_lines(bundle: Mapping[str, ImageRef | str]) -> list[str]:
    lines = [
        f"{service}={str(image).strip().strip(_QUOTES)}" for service, image in bundle.items()
    ]
    return sorted(lines)


def bundle_fingerprint(bundle: Mapping[str, ImageRef | str]) -> str:
    """Hex SHA-256 of the sorted ``service=image`` lines."""
    payload = "".join(f"{line}\n" for line in fingerprint_lines(bundle))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
