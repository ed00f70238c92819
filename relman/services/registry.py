"""Container registry adapter.

Versions come from the GitHub packages API; digests come from
``docker buildx imagetools inspect``. Both return ``ExternalUnavailable`` on
any failure, which aborts the update before any file is touched.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from relman.core.config import RegistryConfig
from relman.core.result import Err, Ok, Result
from relman.core.structured import as_obj_list, as_str_dict, get_str, get_table
from relman.platform.http import HttpClient
from relman.platform.process import run as run_process
from relman.release.channel import versions_from_tags
from relman.release.errors import ExternalUnavailable
from relman.release.model import ServiceVersionSet
from relman.services.timeouts import REGISTRY_INSPECT_TIMEOUT_SECONDS

BETA_TAG = "beta"
DIGEST_ALGORITHM = "sha256"
# GitHub caps per_page at 100.
PAGE_SIZE = 100
MAX_PAGES = 50


class RegistryClient(Protocol):
    def list_versions(self, service: str) -> Result[ServiceVersionSet, ExternalUnavailable]:
        """All published release and pre-release versions of ``service``."""
        ...

    def resolve_digest(self, image: str) -> Result[str, ExternalUnavailable]:
        """Content digest (hex, no algorithm prefix) of ``image``."""
        ...


def _container_tags(entry: object) -> list[str]:
    data = as_str_dict(entry)
    if data is None:
        return []
    container = get_table(get_table(data, "metadata") or {}, "container") or {}
    tags = as_obj_list(container.get("tags")) or []
    return [t for t in tags if isinstance(t, str)]


def tags_from_package_versions(payload: list[object]) -> tuple[list[str], list[str]]:
    """Split package versions into (release tags, pre-release tags).

    Release tags are every tag of every package version; the version parser
    keeps only strict ``X.Y.Z``. Pre-release tags are the tags of package
    versions that also carry the floating ``beta`` tag.
    """
    release_tags: list[str] = []
    pre_release_tags: list[str] = []
    for entry in payload:
        tags = _container_tags(entry)
        release_tags.extend(tags)
        if BETA_TAG in tags:
            pre_release_tags.extend(tags)
    return release_tags, pre_release_tags


class GhcrRegistryClient:
    """GitHub Container Registry client."""

    def __init__(
        self,
        *,
        config: RegistryConfig,
        http: HttpClient,
        token: str | None,
        cwd: Path,
    ) -> None:
        self.config = config
        self.http = http
        self.token = token
        self.cwd = cwd

    def versions_url(self, service: str, page: int = 1) -> str:
        package = self.config.package_name(service)
        return (
            f"{self.config.api_url}/orgs/{self.config.owner}/packages/container/"
            f"{package}/versions?per_page={PAGE_SIZE}&page={page}"
        )

    def _fetch_page(self, service: str, page: int) -> Result[list[object], ExternalUnavailable]:
        fetched = self.http.get_json(self.versions_url(service, page))
        if isinstance(fetched, Err):
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message=f"failed to list versions of {service}",
                    hint=str(fetched.error),
                )
            )

        api_error = as_str_dict(fetched.value)
        if api_error is not None:
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message=f"GitHub API error listing {service}",
                    hint=get_str(api_error, "message") or "unknown error",
                )
            )

        entries = as_obj_list(fetched.value)
        if entries is None:
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message=f"unexpected package versions payload for {service}",
                )
            )
        return Ok(entries)

    def list_versions(self, service: str) -> Result[ServiceVersionSet, ExternalUnavailable]:
        if not self.token:
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message="GITHUB_TOKEN is required to determine image versions",
                    hint="set GITHUB_TOKEN in the environment or in .env",
                )
            )

        # A short page is the last one.
        payload: list[object] = []
        for page in range(1, MAX_PAGES + 1):
            entries = self._fetch_page(service, page)
            if isinstance(entries, Err):
                return Err(entries.error)
            payload.extend(entries.value)
            if len(entries.value) < PAGE_SIZE:
                break
        else:
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message=f"{service} has more than {MAX_PAGES * PAGE_SIZE} package versions",
                    hint="delete old untagged package versions on GitHub",
                )
            )

        release_tags, pre_release_tags = tags_from_package_versions(payload)
        return Ok(versions_from_tags(service, release_tags, pre_release_tags))

    def resolve_digest(self, image: str) -> Result[str, ExternalUnavailable]:
        result = run_process(
            ["docker", "buildx", "imagetools", "inspect", image, "--format", "{{json .Manifest}}"],
            cwd=self.cwd,
            timeout=REGISTRY_INSPECT_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(
                ExternalUnavailable(
                    source="registry",
                    message=f"failed to inspect image {image}",
                    hint=result.error.detail or str(result.error),
                )
            )
        return parse_manifest_digest(image, result.value)


def parse_manifest_digest(image: str, output: str) -> Result[str, ExternalUnavailable]:
    """Extract the hex digest from ``imagetools inspect`` JSON output."""
    try:
        manifest = as_str_dict(json.loads(output))
    except json.JSONDecodeError:
        manifest = None
    digest = get_str(manifest, "digest") if manifest is not None else None
    prefix = f"{DIGEST_ALGORITHM}:"
    if digest is None or not digest.startswith(prefix) or len(digest) == len(prefix):
        return Err(
            ExternalUnavailable(
                source="registry",
                message=f"could not extract {DIGEST_ALGORITHM} digest from {image}",
            )
        )
    return Ok(digest[len(prefix) :])
