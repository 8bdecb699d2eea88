"""Version marker: the ``version`` field of the project manifest.

Supported manifests:
- JSON (``package.json`` and friends): top-level ``"version"``
- ``Cargo.toml``: ``[package] version``
- ``pyproject.toml``: ``[project] version``
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from rctrain.core.result import Err, Ok, Result
from rctrain.core.structured import as_str_dict, get_str
from rctrain.platform.files import atomic_write_text
from rctrain.services.train.errors import TrainError

_TOML_SECTIONS = {
    "Cargo.toml": "package",
    "pyproject.toml": "project",
}
_TOML_VERSION_RE = re.compile(r'(?m)^version\s*=\s*"([^"]+)"\s*$')


def read_marker(path: Path) -> Result[str, TrainError]:
    text = _read_text(path)
    if isinstance(text, Err):
        return text
    return marker_from_text(path, text.value)


def marker_from_text(path: Path, text: str) -> Result[str, TrainError]:
    """Version field of manifest content, e.g. as stored in some commit.

    ``path`` selects the manifest format and names it in errors.
    """
    if path.suffix == ".json":
        data = _parse_json(path, text)
        if isinstance(data, Err):
            return data
        value = get_str(data.value, "version")
        if value is None:
            return Err(_invalid(path, "missing version"))
        return Ok(value)

    section = _toml_section(path)
    if isinstance(section, Err):
        return section
    m = _find_toml_version(text, section.value)
    if m is None:
        return Err(_invalid(path, f"missing [{section.value}] version"))
    return Ok(m.group(1))


def write_marker(path: Path, version: str) -> Result[bool, TrainError]:
    """Set the version field. Returns False when it already had that value."""
    if path.suffix == ".json":
        data = _load_json(path)
        if isinstance(data, Err):
            return data
        if get_str(data.value, "version") == version:
            return Ok(False)
        data.value["version"] = version
        return _write(path, json.dumps(data.value, indent=2) + "\n")

    section = _toml_section(path)
    if isinstance(section, Err):
        return section
    text = _read_text(path)
    if isinstance(text, Err):
        return text

    src = text.value
    m = _find_toml_version(src, section.value)
    if m is None:
        return Err(_invalid(path, f"missing [{section.value}] version"))
    if m.group(1) == version:
        return Ok(False)

    out = src[: m.start()] + f'version = "{version}"' + src[m.end() :]
    return _write(path, out)


def _find_toml_version(text: str, section: str) -> re.Match[str] | None:
    header = f"[{section}]"
    start = text.find(header)
    if start < 0:
        return None
    body_start = start + len(header)
    nxt = re.search(r"(?m)^\[", text[body_start:])
    body_end = body_start + nxt.start() if nxt else len(text)
    return _TOML_VERSION_RE.search(text, body_start, body_end)


def _toml_section(path: Path) -> Result[str, TrainError]:
    section = _TOML_SECTIONS.get(path.name)
    if section is None:
        return Err(
            TrainError(
                kind="validation",
                message=f"unsupported manifest: {path.name}",
                hint="Use a .json manifest, Cargo.toml or pyproject.toml",
            )
        )
    return Ok(section)


def _read_text(path: Path) -> Result[str, TrainError]:
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except OSError as e:
        return Err(
            TrainError(
                kind="precondition",
                message=f"failed to read {path.name}: {e}",
                hint=str(path),
            )
        )


def _load_json(path: Path) -> Result[dict[str, object], TrainError]:
    text = _read_text(path)
    if isinstance(text, Err):
        return text
    return _parse_json(path, text.value)


def _parse_json(path: Path, text: str) -> Result[dict[str, object], TrainError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(_invalid(path, f"invalid JSON: {e}"))
    data = as_str_dict(obj)
    if data is None:
        return Err(_invalid(path, "invalid JSON root"))
    return Ok(data)


def _write(path: Path, content: str) -> Result[bool, TrainError]:
    try:
        atomic_write_text(path, content, encoding="utf-8")
    except OSError as e:
        return Err(
            TrainError(
                kind="precondition",
                message=f"failed to write {path.name}: {e}",
                hint=str(path),
            )
        )
    return Ok(True)


def _invalid(path: Path, reason: str) -> TrainError:
    return TrainError(kind="validation", message=f"{path.name}: {reason}", hint=str(path))
