from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


class ConfigError(RuntimeError):
    pass


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise ConfigError(f"Config not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ConfigError("Config root must be a mapping")
    return loaded


def section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return value


def resolve_api_key(classifier_cfg: dict[str, Any]) -> str:
    """Explicit ``api_key`` wins; otherwise read the variable named by ``api_key_env``."""
    key = classifier_cfg.get("api_key") or os.environ.get(classifier_cfg.get("api_key_env", "ANTHROPIC_API_KEY"), "")
    key = str(key).strip()
    if not key:
        raise ConfigError("Classifier API key is not configured")
    return key
