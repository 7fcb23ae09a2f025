"""Load and merge configuration from .diffscribe.toml and env vars."""

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

from loguru import logger

from diffscribe.config.schema import (
    MODES,
    DiffScribeConfig,
    ExportConfig,
    HistoryConfig,
    RenderConfig,
    RulesConfig,
    SupervisorConfig,
)

CONFIG_FILENAME = ".diffscribe.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
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
    unknown = set(raw) - valid_fields
    if unknown:
        logger.debug(f"Ignoring unknown keys in [{section}]: {', '.join(sorted(unknown))}")
    return cls(**{k: v for k, v in raw.items() if k in valid_fields})


def _merge_env_overrides(cfg: DiffScribeConfig) -> None:
    """Apply DIFFSCRIBE_* environment variable overrides."""
    if val := os.environ.get("DIFFSCRIBE_MODE"):
        if val in MODES:
            cfg.export.mode = val  # type: ignore[assignment]
    if val := os.environ.get("DIFFSCRIBE_MAX_FILE_BYTES"):
        try:
            cfg.render.max_file_bytes = int(val)
        except ValueError:
            pass
    if val := os.environ.get("DIFFSCRIBE_OUTPUT_DIR"):
        cfg.export.output_dir = val
    if val := os.environ.get("DIFFSCRIBE_DISABLE_RULES"):
        cfg.rules.disable.extend(r.strip() for r in val.split(",") if r.strip())


def _check_export(cfg: DiffScribeConfig) -> None:
    for name, minimum in (("unified_context", 0), ("max_commits", 1)):
        value = getattr(cfg.export, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
            raise ConfigError(
                f"[export] {name} must be an integer of at least {minimum}, got {value!r}"
            )


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> DiffScribeConfig:
    """Load and return a DiffScribeConfig.

    Export limits are checked here; render and supervisor values are checked
    when render options are built.
    """
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = DiffScribeConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = DiffScribeConfig(
                version=str(raw.get("version", "1.0")),
                export=_build_section(raw, ExportConfig, "export"),
                render=_build_section(raw, RenderConfig, "render"),
                supervisor=_build_section(raw, SupervisorConfig, "supervisor"),
                rules=_build_section(raw, RulesConfig, "rules"),
                history=_build_section(raw, HistoryConfig, "history"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        logger.debug(f"Loaded config from {config_path}")

    _merge_env_overrides(cfg)
    if cfg.export.mode not in MODES:
        raise ConfigError(f"Unknown export mode: {cfg.export.mode!r}")
    _check_export(cfg)
    return cfg
