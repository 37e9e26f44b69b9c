"""Load and merge configuration from .dockopt.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dockopt.config.schema import (
    FAIL_ON_LEVELS,
    OUTPUT_FORMATS,
    AnalysisConfig,
    DockoptConfig,
    OutputConfig,
    RulesConfig,
)

CONFIG_FILENAME = ".dockopt.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: DockoptConfig) -> None:
    if cfg.analysis.fail_on not in FAIL_ON_LEVELS:
        raise ConfigError(f"Invalid fail_on: {cfg.analysis.fail_on!r}")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if not isinstance(cfg.analysis.workers, int) or cfg.analysis.workers < 1:
        raise ConfigError(f"workers must be a positive integer, got {cfg.analysis.workers!r}")


def _merge_env_overrides(cfg: DockoptConfig) -> None:
    """Apply DOCKOPT_* environment variable overrides."""
    if val := os.environ.get("DOCKOPT_FAIL_ON"):
        if val in FAIL_ON_LEVELS:
            cfg.analysis.fail_on = val  # type: ignore[assignment]
    if val := os.environ.get("DOCKOPT_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("DOCKOPT_DISABLE_RULES"):
        cfg.rules.disable.extend(r.strip() for r in val.split(",") if r.strip())
    if val := os.environ.get("DOCKOPT_WORKERS"):
        try:
            workers = int(val)
        except ValueError:
            workers = 0
        if workers >= 1:
            cfg.analysis.workers = workers


def load_config(root: Path, config_override: Optional[str] = None) -> DockoptConfig:
    """Load, validate, and return a DockoptConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = DockoptConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = DockoptConfig(
                version=str(raw.get("version", "1.0")),
                analysis=_build_section(raw, AnalysisConfig, "analysis"),
                output=_build_section(raw, OutputConfig, "output"),
                rules=_build_section(raw, RulesConfig, "rules"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
