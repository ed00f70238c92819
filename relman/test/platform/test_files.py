from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from relman.platform.files import atomic_write_text


def test_atomic_write_text_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "docker-compose.yml"
    atomic_write_text(path, "services: {}\n")

    assert path.read_text(encoding="utf-8") == "services: {}\n"


def test_atomic_write_text_replaces_existing_content(tmp_path: Path) -> None:
    path = tmp_path / "umbrel-app.yml"
    path.write_text("old", encoding="utf-8")

    atomic_write_text(path, "new", encoding="utf-8")

    assert path.read_text(encoding="utf-8") == "new"


def test_atomic_write_text_keeps_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "crlf.yml"
    atomic_write_text(path, "a: 1\r\nb: 2\r\n")

    assert path.read_bytes() == b"a: 1\r\nb: 2\r\n"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_atomic_write_text_preserves_mode(tmp_path: Path) -> None:
    path = tmp_path / "umbrel-app.yml"
    path.write_text("old", encoding="utf-8")
    path.chmod(0o640)

    atomic_write_text(path, "new")

    assert stat.S_IMODE(path.stat().st_mode) == 0o640


def test_atomic_write_text_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "docker-compose.yml"
    path.write_text("original", encoding="utf-8")

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_text(path, "payload", encoding="utf-8")

    assert path.read_text(encoding="utf-8") == "original"
    leftovers = list(path.parent.glob(f".{path.name}.*.tmp"))
    assert leftovers == []
