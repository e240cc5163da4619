from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

CONFIG_HOME_ENV = "BOXCSG_HOME"
CONFIG_FILENAME = "boxcsg.cfg"
DEFAULT_CONFIG = {
    "_comment": "max_samples caps voxel grid size; log_level is one of DEBUG, INFO, WARNING, ERROR.",
    "max_samples": 2_000_000,
    "default_resolution": 1.0,
    "log_level": "INFO",
}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class UserConfig:
    """Resolved values from boxcsg.cfg."""

    max_samples: int
    default_resolution: float
    log_level: str


def config_dir() -> Path:
    override = os.environ.get(CONFIG_HOME_ENV)
    if override:
        return Path(override)
    return Path.home() / ".boxcsg"


def config_file() -> Path:
    return config_dir() / CONFIG_FILENAME


def ensure_user_config() -> None:
    """Ensure the config file exists with sane defaults."""

    directory = config_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        return

    path = directory / CONFIG_FILENAME
    if path.exists():
        return

    try:
        path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n")
    except OSError:
        return


def _load_user_config() -> Dict[str, Any]:
    ensure_user_config()
    try:
        data = json.loads(config_file().read_text())
    except (OSError, json.JSONDecodeError):
        return DEFAULT_CONFIG.copy()
    if not isinstance(data, dict):
        return DEFAULT_CONFIG.copy()
    return data


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _positive_float(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) and number > 0 else default


def get_user_config() -> UserConfig:
    """Return the configured limits, falling back to defaults for bad values."""

    raw = _load_user_config()
    level = str(raw.get("log_level", DEFAULT_CONFIG["log_level"])).strip().upper()
    if level not in _LOG_LEVELS:
        level = DEFAULT_CONFIG["log_level"]
    return UserConfig(
        max_samples=_positive_int(raw.get("max_samples"), DEFAULT_CONFIG["max_samples"]),
        default_resolution=_positive_float(
            raw.get("default_resolution"), DEFAULT_CONFIG["default_resolution"]
        ),
        log_level=level,
    )
