"""
Configuration file loading for the embedder.

Operators may keep their run settings in a JSON, YAML, or TOML document and
pass it with ``--config``. This module deserialises those documents into plain
mappings; validation and precedence handling live in
:mod:`DocsToVec.Embedder.settings`.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

__all__ = [
    "ConfigLoadError",
    "load_config_mapping",
    "load_toml_mapping",
    "load_yaml_mapping",
]


@dataclass(slots=True)
class ConfigLoadError(RuntimeError):
    """Raised when configuration documents cannot be deserialized or applied."""

    message: str

    def __str__(self) -> str:  # pragma: no cover - dataclass convenience
        return self.message


def load_yaml_mapping(raw: str) -> Any:
    """Deserialize a configuration document expressed as YAML."""

    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Failed to parse YAML configuration payload: {exc}") from exc


def load_toml_mapping(raw: str) -> Any:
    """Deserialize a configuration document expressed as TOML."""

    try:
        return tomllib.loads(raw)
    except (tomllib.TOMLDecodeError, ValueError, TypeError) as exc:
        raise ConfigLoadError(f"Failed to parse TOML configuration payload: {exc}") from exc


def load_config_mapping(path: Path) -> Dict[str, Any]:
    """Load a configuration mapping from JSON, YAML, or TOML.

    The format is chosen from the file suffix; anything other than ``.yaml``,
    ``.yml`` or ``.toml`` is parsed as JSON. An empty YAML document yields an
    empty mapping.
    """

    if not path.is_file():
        raise ConfigLoadError(f"Configuration file not found: {path}")
    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = load_yaml_mapping(raw)
        if data is None:
            data = {}
    elif suffix == ".toml":
        data = load_toml_mapping(raw)
    else:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigLoadError(f"Failed to parse JSON configuration payload: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"Configuration file {path} must contain an object; received {type(data).__name__}."
        )
    return data
