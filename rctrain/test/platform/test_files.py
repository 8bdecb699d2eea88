from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from rctrain.platform.files import atomic_write_text


def test_atomic_write_text_replaces_existing_content(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text('{"version": "1.0.0"}\n', encoding="utf-8")

    atomic_write_text(path, '{"version": "1.1.0"}\n')

    assert path.read_text(encoding="utf-8") == '{"version": "1.1.0"}\n'


def test_atomic_write_text_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "crates" / "app" / "Cargo.toml"
    atomic_write_text(path, "[package]\n")

    assert path.read_text(encoding="utf-8") == "[package]\n"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_atomic_write_text_keeps_permission_bits(tmp_path: Path) -> None:
    path = tmp_path / "pyproject.toml"
    path.write_text("old", encoding="utf-8")
    path.chmod(0o664)

    atomic_write_text(path, "new")

    assert stat.S_IMODE(path.stat().st_mode) == 0o664


def test_atomic_write_text_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "package.json"

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_text(path, "payload")

    assert list(tmp_path.glob(f".{path.name}.*.tmp")) == []
    assert not path.exists()
