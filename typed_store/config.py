"""
Load config from typed_store.yaml with optional env overrides.
Single source of truth for the default blob store path, decode strictness and log level.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

# Defaults if no YAML or env
_DEFAULTS = {
    "db": {"path": "typed_store.sqlite"},
    "codec": {"strict_decode": False},
    "logging": {"level": "WARNING"},
}

_TRUE_TOKENS = {"1", "true", "yes", "on"}


def _config_yaml_path() -> Path:
    """typed_store.yaml lives at repo root (parent of package dir) unless TYPED_STORE_CONFIG is set."""
    override = os.environ.get("TYPED_STORE_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "typed_store.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    path = os.environ.get("TYPED_STORE_DB_PATH")
    if path:
        overrides.setdefault("db", {})["path"] = path
    strict = os.environ.get("TYPED_STORE_STRICT_DECODE")
    if strict:
        overrides.setdefault("codec", {})["strict_decode"] = strict.strip().lower() in _TRUE_TOKENS
    level = os.environ.get("TYPED_STORE_LOG_LEVEL")
    if level:
        overrides.setdefault("logging", {})["level"] = level
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- typed_store.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def db_path() -> str:
    return str(get_config()["db"]["path"])


def strict_decode() -> bool:
    return bool(get_config()["codec"]["strict_decode"])


def log_level() -> str:
    return str(get_config()["logging"]["level"]).upper()
