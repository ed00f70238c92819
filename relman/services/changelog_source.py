"""Changelog transport: fetch the upstream CHANGELOG.md from GitHub.

The document is fetched at most once per run and handed to the extractor as
a ``ChangelogDocument`` value. Failures are ``ExternalUnavailable``; callers
treat them like a missing section and fall back to default notes.
"""

from __future__ import annotations

import base64
import binascii

from relman.core.config import ChangelogConfig
from relman.core.result import Err, Ok, Result
from relman.core.structured import as_str_dict, get_str
from relman.platform.http import HttpClient
from relman.release.errors import ExternalUnavailable
from relman.release.model import ChangelogDocument


def changelog_url(config: ChangelogConfig, *, api_url: str = "https://api.github.com") -> str:
    return f"{api_url}/repos/{config.owner}/{config.repo}/contents/{config.path}"


def _unavailable(message: str, hint: str | None = None) -> Err[ExternalUnavailable]:
    return Err(ExternalUnavailable(source="changelog", message=message, hint=hint))


def fetch_changelog(
    http: HttpClient,
    config: ChangelogConfig,
    *,
    token: str | None,
    api_url: str = "https://api.github.com",
) -> Result[ChangelogDocument, ExternalUnavailable]:
    if not token:
        return _unavailable("GITHUB_TOKEN not set, cannot fetch changelog")

    url = changelog_url(config, api_url=api_url)
    fetched = http.get_json(url)
    if isinstance(fetched, Err):
        return _unavailable(f"failed to fetch {config.path}", str(fetched.error))

    data = as_str_dict(fetched.value)
    if data is None:
        return _unavailable(f"unexpected contents payload for {config.path}")
    if "content" not in data and "message" in data:
        return _unavailable("GitHub API error fetching changelog", get_str(data, "message"))

    encoded = data.get("content")
    if not isinstance(encoded, str) or not encoded.strip():
        return _unavailable(f"{config.path} has no content")

    try:
        text = base64.b64decode("".join(encoded.split()), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        return _unavailable(f"failed to decode {config.path}", str(e))

    if not text.strip():
        return _unavailable(f"{config.path} is empty")
    return Ok(ChangelogDocument(text=text))
