"""Store root detection.

The store is the checkout holding one app directory per channel (for example
``pluto-mining-pluto/`` and ``pluto-mining-pluto-next/``), each with its
manifest and compose file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME, ChannelsConfig
from .result import Err, Ok, Result

__all__ = ["StoreError", "detect_store_root", "is_store_root"]

STORE_ROOT_ENV = "RELMAN_STORE_ROOT"


@dataclass(frozen=True, slots=True)
class StoreError:
    """Error when the store root cannot be determined."""

    message: str
    hint: str | None = None


def is_store_root(path: Path, channels: ChannelsConfig | None = None) -> bool:
    """True if ``path`` has a relman.toml or both default channel directories."""
    if (path / CONFIG_FILE_NAME).is_file():
        return True
    channels = channels or ChannelsConfig()
    return (path / channels.stable).is_dir() and (path / channels.beta).is_dir()


def detect_store_root(
    explicit: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Result[Path, StoreError]:
    """Resolve the store root.

    Order: explicit path, ``RELMAN_STORE_ROOT``, nearest ancestor of ``cwd``
    that looks like a store, then ``cwd`` itself.
    """
    if explicit is not None:
        root = explicit.expanduser().resolve()
        if not root.is_dir():
            return Err(StoreError(f"store root does not exist: {root}", hint="check --store"))
        return Ok(root)

    env = os.environ if env is None else env
    from_env = env.get(STORE_ROOT_ENV, "").strip()
    if from_env:
        root = Path(from_env).expanduser().resolve()
        if not root.is_dir():
            return Err(
                StoreError(f"store root does not exist: {root}", hint=f"check {STORE_ROOT_ENV}")
            )
        return Ok(root)

    start = (cwd or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if is_store_root(candidate):
            return Ok(candidate)
    return Ok(start)
