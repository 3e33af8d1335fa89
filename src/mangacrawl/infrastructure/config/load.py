"""Layered configuration loading: defaults < YAML < env vars < CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .schema import AppConfig, EnvOverrides

# Flat keys (env vars, CLI flags) and their place in the YAML layout.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "site_dir": ("sites", "site_dir"),
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "http_user_agent_list_url": ("http", "user_agent_list_url"),
    "http_rotate_user_agent": ("http", "rotate_user_agent"),
    "rate_limit_default_permits": ("rate_limit", "default_permits"),
    "rate_limit_default_window_seconds": ("rate_limit", "default_window_seconds"),
    "render_mode": ("preferences", "render_mode"),
    "dedup_mode": ("preferences", "dedup_mode"),
    "sfw_mode": ("preferences", "sfw_mode"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}
_SECTIONS = frozenset(section for section, _ in _FLAT_KEYS.values())
_TOP_LEVEL = ("app_name", "environment")


def _merge(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Reshape a layer into the YAML layout. Unknown keys are dropped."""
    out: dict[str, Any] = {key: layer[key] for key in _TOP_LEVEL if key in layer}
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)
    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]
    return out


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Merge the YAML file, ``MANGACRAWL_*`` env vars and CLI overrides.

    Later layers win. Anything left unset keeps its ``AppConfig`` default.
    A ``.env`` file feeds the env layer without replacing variables that
    are already set. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers = [
        _read_yaml(config_path) if config_path is not None else {},
        EnvOverrides().to_update_dict(),
        cli_overrides or {},
    ]
    merged: dict[str, Any] = {}
    for layer in layers:
        _merge(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
