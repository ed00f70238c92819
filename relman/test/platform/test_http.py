from __future__ import annotations

import io
import json
import urllib.error
import urllib.request
from typing import Any

import pytest

from relman.core.result import Err, Ok
from relman.platform.http import HttpClient, HttpError, MockHttpClient, RealHttpClient


class _Response(io.BytesIO):
    def __enter__(self) -> _Response:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def test_mock_client_returns_configured_json() -> None:
    client = MockHttpClient()
    client.set_json("https://api.example.com/a", [{"id": 1}])

    assert client.get_json("https://api.example.com/a") == Ok([{"id": 1}])
    assert client.calls == ["https://api.example.com/a"]


def test_mock_client_unknown_url_is_404() -> None:
    result = MockHttpClient().get_json("https://api.example.com/missing")
    assert isinstance(result, Err)
    assert result.error.status == 404


def test_mock_client_configured_error() -> None:
    client = MockHttpClient()
    error = HttpError(url="u", status=500, message="boom")
    client.set_json("u", error)
    assert client.get_json("u") == Err(error)


def test_clients_satisfy_protocol() -> None:
    assert isinstance(MockHttpClient(), HttpClient)
    assert isinstance(RealHttpClient(), HttpClient)


def test_http_error_str() -> None:
    assert str(HttpError(url="u", status=403, message="Forbidden")) == "HTTP 403: Forbidden (u)"
    assert str(HttpError(url="u", status=0, message="timed out")) == "timed out (u)"


def test_real_client_sends_token_and_parses_json(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    def fake_urlopen(req: urllib.request.Request, **kwargs: Any) -> _Response:
        seen["auth"] = req.get_header("Authorization")
        seen["timeout"] = kwargs["timeout"]
        return _Response(json.dumps({"ok": True}).encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    result = RealHttpClient(token="abc", timeout=3.0).get_json("https://api.github.com/x")

    assert result == Ok({"ok": True})
    assert seen == {"auth": "token abc", "timeout": 3.0}


def test_real_client_maps_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req: urllib.request.Request, **_: Any) -> _Response:
        raise urllib.error.HTTPError(req.full_url, 401, "Unauthorized", {}, None)  # type: ignore[arg-type]

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    result = RealHttpClient().get_json("https://api.github.com/x")

    assert isinstance(result, Err)
    assert result.error.status == 401


def test_real_client_rejects_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda *_a, **_k: _Response(b"<html>"))

    result = RealHttpClient().get_json("https://api.github.com/x")

    assert isinstance(result, Err)
    assert "JSON parse error" in result.error.message
