"""YAML configuration files.

A file holds the :class:`NamingConfig` fields, either at the top level or
under an ``aduib_naming`` section. String values may reference environment
variables as ``${NAME}`` or ``${NAME:-fallback}``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from aduib_naming.exceptions import ConfigError

from .models import NamingConfig

__all__ = [
    "CONFIG_PATH_ENV",
    "expand_env",
    "get_default_config_path",
    "load_config",
    "load_config_with_overrides",
]

CONFIG_PATH_ENV = "ADUIB_NAMING_CONFIG"
SECTION = "aduib_naming"
SUFFIXES = (".yaml", ".yml")

_VARIABLE = re.compile(r"\$\{(?P<name>[A-Za-z_]\w*)(?::-(?P<fallback>[^}]*))?\}")


def _search_path() -> list[Path]:
    paths = []
    if os.getenv(CONFIG_PATH_ENV):
        paths.append(Path(os.environ[CONFIG_PATH_ENV]).expanduser())
    paths += [Path.cwd() / f"aduib_naming{suffix}" for suffix in SUFFIXES]
    paths += [Path.home() / ".aduib_naming.yaml", Path("/etc/aduib_naming/config.yaml")]
    return paths


def get_default_config_path() -> Path | None:
    """Return the config file used when none is given.

    ``$ADUIB_NAMING_CONFIG`` is tried first, then ``./aduib_naming.yaml``,
    ``./aduib_naming.yml``, ``~/.aduib_naming.yaml`` and
    ``/etc/aduib_naming/config.yaml``.
    """
    return next((path for path in _search_path() if path.is_file()), None)


def load_config(path: str | Path | None = None) -> NamingConfig:
    """Read ``path`` (or the default config file) into a NamingConfig.

    Without any file the built-in defaults are returned.

    Raises:
        ConfigError: The file is missing, unreadable or holds invalid values.
    """
    path = path or get_default_config_path()
    if path is None:
        return NamingConfig()
    return NamingConfig.from_dict(_read(Path(path)))


def load_config_with_overrides(base_path: str | Path, *override_paths: str | Path) -> NamingConfig:
    """Read a base file and deep-merge each override file over it, in order."""
    data = _read(Path(base_path))
    for override in override_paths:
        data = _deep_merge(data, _read(Path(override)))
    return NamingConfig.from_dict(data)


def expand_env(value: Any) -> Any:
    """Substitute environment variables in every string of a parsed document.

    Raises:
        ConfigError: A variable is unset or empty and has no fallback.
    """
    if isinstance(value, Mapping):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match[str]) -> str:
        resolved = os.getenv(match["name"])
        if resolved:
            return resolved
        if match["fallback"] is None:
            raise ConfigError(message=f"Environment variable '{match['name']}' is not set and has no default")
        return match["fallback"]

    return _VARIABLE.sub(substitute, value)


def _read(path: Path) -> dict[str, Any]:
    path = path.expanduser()
    if path.suffix.lower() not in SUFFIXES:
        raise ConfigError(message=f"Unsupported config file type: {path.suffix or path.name}")
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(message=f"Config file not found: {path}", cause=exc) from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(message=f"Failed to read config file {path}", cause=exc) from exc
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ConfigError(message=f"Config file {path} must hold a mapping")
    return _unwrap(expand_env(document))


def _unwrap(document: dict[str, Any]) -> dict[str, Any]:
    """Lift the ``aduib_naming`` section to the top level; top-level keys win."""
    section = document.pop(SECTION, None)
    if section is None:
        return document
    if not isinstance(section, Mapping):
        raise ConfigError(message=f"{SECTION} section must be a mapping")
    return {**section, **document}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged
