"""
YAML → typed settings loader.

Starts from the Python defaults in config.py and optionally merges user
overrides from ~/.lift-cycle/config.yaml (or an explicit --config path).
Environment variables win over both.

Usage:
    from lift_cycle.core.engine.config_loader import load_app_config
    settings = load_app_config()
    settings.workbook_dir   # Path to the CSV workbook

If the user override file exists but has parse errors, a warning is
printed and the file is ignored.

Example config.yaml:

    workbook: ~/training/workbook
    user_id: alex
    cache:
      ttl_seconds: 120
    logging:
      level: DEBUG
    equipment:
      barbell_totals: [35, 45, 55, 65, 75]
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    AVAILABLE_SINGLE_DUMBBELL_WEIGHTS,
    AVAILABLE_TOTAL_BARBELL_WEIGHTS,
    CACHE_EXPIRATION_SECONDS,
    DEFAULT_USER_ID,
    EZ_BAR_PLATE_INCREMENT,
    EZ_BAR_WEIGHT,
    FINE_INCREMENT,
)
from ..equipment import EquipmentCatalog

HOME_ENV_VAR = "LIFT_CYCLE_HOME"
WORKBOOK_ENV_VAR = "LIFT_CYCLE_WORKBOOK"
USER_ENV_VAR = "LIFT_CYCLE_USER"
LOG_LEVEL_ENV_VAR = "LIFT_CYCLE_LOG_LEVEL"

CONFIG_FILENAME = "config.yaml"

DEFAULTS: dict[str, Any] = {
    "workbook": None,  # None -> <home>/workbook
    "user_id": DEFAULT_USER_ID,
    "cache": {
        "ttl_seconds": CACHE_EXPIRATION_SECONDS,
        "to_disk": True,
    },
    "logging": {
        "level": "INFO",
        "to_console": False,
        "path": None,  # None -> <home>/logs/lift_cycle.log
    },
    "equipment": {
        "dumbbell_singles": list(AVAILABLE_SINGLE_DUMBBELL_WEIGHTS),
        "barbell_totals": list(AVAILABLE_TOTAL_BARBELL_WEIGHTS),
        "ez_bar_weight": EZ_BAR_WEIGHT,
        "ez_bar_increment": EZ_BAR_PLATE_INCREMENT,
        "fine_increment": FINE_INCREMENT,
    },
}


@dataclass(frozen=True)
class AppSettings:
    """Resolved runtime settings."""

    home: Path
    workbook_dir: Path
    user_id: str
    cache_ttl_seconds: int
    cache_to_disk: bool
    log_path: Path
    log_level: str
    log_to_console: bool
    catalog: EquipmentCatalog


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} when it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        _warn(f"ignoring config file {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _warn(message: str) -> None:
    print(f"lift-cycle: {message}", file=sys.stderr)


def _fill_sections(config: dict[str, Any]) -> dict[str, Any]:
    """Put the default back for any section the user set to a non-mapping."""
    for name, default in DEFAULTS.items():
        if isinstance(default, dict) and not isinstance(config.get(name), dict):
            _warn(f"ignoring config section '{name}': expected a mapping, got {config.get(name)!r}")
            config[name] = _deep_merge({}, default)
    return config


def _as_int(value: Any, default: int, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        _warn(f"ignoring {name}={value!r}: not an integer")
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _build_catalog(section: dict[str, Any]) -> EquipmentCatalog:
    return EquipmentCatalog(
        dumbbell_singles=tuple(float(w) for w in section["dumbbell_singles"]),
        barbell_totals=tuple(float(w) for w in section["barbell_totals"]),
        ez_bar_weight=float(section["ez_bar_weight"]),
        ez_bar_increment=float(section["ez_bar_increment"]),
        fine_increment=float(section["fine_increment"]),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_home_dir() -> Path:
    """Return $LIFT_CYCLE_HOME, or ~/.lift-cycle."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".lift-cycle"


def get_user_yaml_path() -> Path | None:
    """Return <home>/config.yaml if it exists, else None."""
    p = get_home_dir() / CONFIG_FILENAME
    return p if p.exists() else None


def load_raw_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Merge DEFAULTS with the user YAML file.

    Args:
        config_path: Explicit file to use instead of <home>/config.yaml

    Returns:
        Merged dict of config sections
    """
    config = _deep_merge({}, DEFAULTS)
    path = config_path if config_path is not None else get_user_yaml_path()
    if path is not None:
        user_cfg = _load_yaml_file(Path(path).expanduser())
        if user_cfg:
            config = _deep_merge(config, user_cfg)
    return _fill_sections(config)


def load_app_config(config_path: Path | None = None) -> AppSettings:
    """
    Load settings from defaults, YAML overrides and the environment.

    Load order (later overrides earlier):
    1. DEFAULTS above
    2. <home>/config.yaml or config_path
    3. LIFT_CYCLE_WORKBOOK, LIFT_CYCLE_USER, LIFT_CYCLE_LOG_LEVEL

    Raises:
        ValueError: the equipment section describes an impossible catalog
    """
    home = get_home_dir()
    config = load_raw_config(config_path)

    workbook = os.environ.get(WORKBOOK_ENV_VAR) or config.get("workbook")
    workbook_dir = Path(workbook).expanduser() if workbook else home / "workbook"

    user_id = os.environ.get(USER_ENV_VAR) or str(config.get("user_id") or DEFAULT_USER_ID)

    cache = config["cache"]
    logging_cfg = config["logging"]
    log_path = logging_cfg.get("path")

    return AppSettings(
        home=home,
        workbook_dir=workbook_dir,
        user_id=user_id,
        cache_ttl_seconds=_as_int(cache.get("ttl_seconds"), CACHE_EXPIRATION_SECONDS, "cache.ttl_seconds"),
        cache_to_disk=_as_bool(cache.get("to_disk", True)),
        log_path=Path(log_path).expanduser() if log_path else home / "logs" / "lift_cycle.log",
        log_level=str(os.environ.get(LOG_LEVEL_ENV_VAR) or logging_cfg.get("level") or "INFO"),
        log_to_console=_as_bool(logging_cfg.get("to_console", False)),
        catalog=_build_catalog(config["equipment"]),
    )
