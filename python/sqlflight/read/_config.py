"""Configuration helpers for cursor batch reads."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import InvalidConfigError

DEFAULT_BATCH_SIZE = 1024
DEFAULT_PLACEHOLDER_NAME = "?"
DEFAULT_LOG_BATCHES = False


@dataclass(slots=True)
class ReaderConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME
    log_batches: bool = DEFAULT_LOG_BATCHES


def _load_yaml_config() -> dict[str, Any]:
    """Load the YAML configuration file if one exists."""

    config_env = os.environ.get("SQLFLIGHT_CONFIG")
    candidate_paths: list[Path] = []
    if config_env:
        candidate_paths.append(Path(config_env).expanduser())
    candidate_paths.append(Path.home() / ".config" / "sqlflight" / "config.yaml")

    for path in candidate_paths:
        if not path.is_file():
            continue
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        if isinstance(data, dict):
            return data
    return {}


def _extract_read_section(raw: dict[str, Any]) -> dict[str, Any]:
    nested = raw.get("sqlflight", {})
    candidates = [
        nested.get("read", {}) if isinstance(nested, dict) else {},
        raw.get("sqlflight.read", {}),
    ]
    for candidate in candidates:
        if isinstance(candidate, dict) and candidate:
            return candidate
    return {}


def _env_override(key: str) -> str | None:
    return os.environ.get(f"SQLFLIGHT_READ_{key.upper()}")


def load_config() -> ReaderConfig:
    """
    Load configuration from env variables or YAML.

    Raises:
        InvalidConfigError: If a configured value cannot be parsed or the
            batch size is not positive
    """

    yaml_config = _extract_read_section(_load_yaml_config())

    def lookup(key: str, default: Any) -> tuple[str, Any]:
        env_value = _env_override(key)
        if env_value is not None:
            return f"SQLFLIGHT_READ_{key.upper()}", env_value
        return f"sqlflight.read.{key}", yaml_config.get(key, default)

    def resolve_int(key: str, default: int) -> int:
        source, value = lookup(key, default)
        if isinstance(value, bool):
            raise InvalidConfigError(f"{source} must be an integer, got: {value!r}")
        if isinstance(value, int):
            return value
        try:
            return int(value)
        except (TypeError, ValueError) as err:
            raise InvalidConfigError(f"{source} must be an integer, got: {value!r}") from err

    def resolve_str(key: str, default: str) -> str:
        env_value = _env_override(key)
        if env_value:
            return env_value
        value = yaml_config.get(key, default)
        if isinstance(value, str) and value:
            return value
        return default

    def resolve_bool(key: str, default: bool) -> bool:
        source, value = lookup(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lower = value.lower()
            if lower in {"1", "true", "yes"}:
                return True
            if lower in {"0", "false", "no"}:
                return False
        raise InvalidConfigError(f"{source} must be a boolean, got: {value!r}")

    batch_size = resolve_int("batch_size", DEFAULT_BATCH_SIZE)
    if batch_size < 1:
        raise InvalidConfigError(f"batch_size must be >= 1, got: {batch_size}")

    return ReaderConfig(
        batch_size=batch_size,
        placeholder_name=resolve_str("placeholder_name", DEFAULT_PLACEHOLDER_NAME),
        log_batches=resolve_bool("log_batches", DEFAULT_LOG_BATCHES),
    )
