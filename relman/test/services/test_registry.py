from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from relman.core.config import RegistryConfig
from relman.core.result import Err, Ok
from relman.platform.http import HttpError, MockHttpClient
from relman.release.semver import SemVer
from relman.services import registry
from relman.services.registry import (
    PAGE_SIZE,
    GhcrRegistryClient,
    parse_manifest_digest,
    tags_from_package_versions,
)

VERSIONS_URL = (
    "https://api.github.com/orgs/plutomining/packages/container/pluto-backend/versions"
    "?per_page=100&page=1"
)

VERSIONS_URL_PAGE_2 = VERSIONS_URL.replace("page=1", "page=2")


def _package(*tags: str) -> dict[str, object]:
    return {"id": 1, "metadata": {"package_type": "container", "container": {"tags": list(tags)}}}


def _client(http: MockHttpClient, tmp_path: Path, token: str | None = "t") -> GhcrRegistryClient:
    return GhcrRegistryClient(config=RegistryConfig(), http=http, token=token, cwd=tmp_path)


class TestTagsFromPackageVersions:
    def test_split(self) -> None:
        payload: list[object] = [
            _package("1.1.3", "latest"),
            _package("1.1.4-beta.0", "beta"),
            _package(),
            {"unexpected": True},
            "garbage",
        ]
        release, pre = tags_from_package_versions(payload)
        assert release == ["1.1.3", "latest", "1.1.4-beta.0", "beta"]
        assert pre == ["1.1.4-beta.0", "beta"]


class TestListVersions:
    def test_versions_url(self, tmp_path: Path) -> None:
        assert _client(MockHttpClient(), tmp_path).versions_url("backend") == VERSIONS_URL

    def test_lists_versions(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json(
            VERSIONS_URL,
            [
                _package("1.1.3", "latest"),
                _package("1.1.2"),
                _package("1.1.4-beta.0", "beta"),
                _package("sha-deadbee"),
            ],
        )

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Ok)
        assert result.value.service == "backend"
        assert result.value.release_versions == {SemVer(1, 1, 2), SemVer(1, 1, 3)}
        assert {str(x) for x in result.value.pre_release_versions} == {"1.1.4-beta.0"}

    def test_missing_token(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        result = _client(http, tmp_path, token=None).list_versions("backend")

        assert isinstance(result, Err)
        assert "GITHUB_TOKEN" in result.error.message
        assert result.error.hint is not None
        assert http.calls == []

    def test_http_failure(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json(VERSIONS_URL, HttpError(url=VERSIONS_URL, status=500, message="boom"))

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Err)
        assert result.error.source == "registry"
        assert "HTTP 500" in (result.error.hint or "")

    def test_api_error_payload(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json(VERSIONS_URL, {"message": "Bad credentials"})

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Err)
        assert result.error.hint == "Bad credentials"

    def test_follows_pages_until_a_short_page(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        first_page = [_package(f"sha-{i:07x}") for i in range(PAGE_SIZE - 1)] + [_package("1.1.3")]
        http.set_json(VERSIONS_URL, first_page)
        http.set_json(VERSIONS_URL_PAGE_2, [_package("1.0.0"), _package("0.9.0-beta.1", "beta")])

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Ok)
        assert result.value.release_versions == {SemVer(1, 1, 3), SemVer(1, 0, 0)}
        assert {str(x) for x in result.value.pre_release_versions} == {"0.9.0-beta.1"}
        assert http.calls == [VERSIONS_URL, VERSIONS_URL_PAGE_2]

    def test_later_page_failure_aborts(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json(VERSIONS_URL, [_package("1.1.3")] * PAGE_SIZE)

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Err)
        assert "page=2" in (result.error.hint or "")

    def test_too_many_pages(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(registry, "MAX_PAGES", 2)
        http = MockHttpClient()
        http.set_json(VERSIONS_URL, [_package("1.1.3")] * PAGE_SIZE)
        http.set_json(VERSIONS_URL_PAGE_2, [_package("1.1.2")] * PAGE_SIZE)

        result = _client(http, tmp_path).list_versions("backend")

        assert isinstance(result, Err)
        assert "more than 200 package versions" in result.error.message
        assert len(http.calls) == 2


class TestResolveDigest:
    def test_parse_manifest_digest(self) -> None:
        output = json.dumps({"mediaType": "x", "digest": "sha256:" + "ab" * 32, "size": 1})
        assert parse_manifest_digest("img", output) == Ok("ab" * 32)

    @pytest.mark.parametrize(
        "output", ["", "not json", "{}", '{"digest": "md5:abc"}', '{"digest": "sha256:"}']
    )
    def test_parse_manifest_digest_rejects(self, output: str) -> None:
        result = parse_manifest_digest("img:1", output)
        assert isinstance(result, Err)
        assert "img:1" in result.error.message

    @patch("subprocess.run")
    def test_resolve_digest_runs_imagetools(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=["docker"], returncode=0, stdout=json.dumps({"digest": "sha256:" + "c" * 64}), stderr=""
        )

        result = _client(MockHttpClient(), tmp_path).resolve_digest("ghcr.io/x/y:1.0.0")

        assert result == Ok("c" * 64)
        cmd = mock_run.call_args.args[0]
        assert cmd == [
            "docker",
            "buildx",
            "imagetools",
            "inspect",
            "ghcr.io/x/y:1.0.0",
            "--format",
            "{{json .Manifest}}",
        ]
        assert mock_run.call_args.kwargs["timeout"] == 60.0

    @patch("subprocess.run")
    def test_resolve_digest_failure(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=["docker"], returncode=1, stdout="", stderr="manifest unknown"
        )

        result = _client(MockHttpClient(), tmp_path).resolve_digest("ghcr.io/x/y:9.9.9")

        assert isinstance(result, Err)
        assert result.error.hint == "manifest unknown"
