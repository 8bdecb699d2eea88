"""Typed configuration loading.

The optional ``rctrain.toml`` at the repository root tunes the remote,
the mainline branch, the version manifest and release publishing. Every
key has a default, so a repository without the file works out of the box.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_table

__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "ManifestConfig",
    "PublishConfig",
    "RemoteConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "rctrain.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_MAINLINE = "main"
DEFAULT_MANIFEST = "package.json"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    name: str = DEFAULT_REMOTE
    mainline: str = DEFAULT_MAINLINE


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    """Where the persisted version marker lives (relative to the repo root)."""

    path: str = DEFAULT_MANIFEST
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class PublishConfig:
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        remote: StrDict = get_table(data, "remote") or {}
        manifest: StrDict = get_table(data, "manifest") or {}
        publish: StrDict = get_table(data, "publish") or {}

        manifest_enabled = get_bool(manifest, "enabled")
        publish_enabled = get_bool(publish, "enabled")

        return cls(
            remote=RemoteConfig(
                name=get_str(remote, "name") or DEFAULT_REMOTE,
                mainline=get_str(remote, "mainline") or DEFAULT_MAINLINE,
            ),
            manifest=ManifestConfig(
                path=get_str(manifest, "path") or DEFAULT_MANIFEST,
                enabled=True if manifest_enabled is None else manifest_enabled,
            ),
            publish=PublishConfig(
                enabled=True if publish_enabled is None else publish_enabled,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to rctrain.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, otherwise return defaults.

    An existing but unreadable file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
