"""
Configuration loading for gfcli.

The configuration is an optional YAML mapping stored in the platformdirs user
config directory. Every key has a default, so a missing file is not an error;
invalid values are logged and replaced with their defaults.
"""

import os
from typing import Any, Dict, Optional

import platformdirs
import yaml

from gfcli.constants import (
    APP_NAME,
    CACHE_TTL_HOURS,
    CONFIG_FILE_ENV_VAR,
    CONFIG_FILE_NAME,
    DEFAULT_FONT_FORMAT,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT,
)
from gfcli.exceptions import ConfigFileError
from gfcli.log_utils import logger

DEFAULT_CONFIG: Dict[str, Any] = {
    "CACHE_ENABLED": True,
    "CACHE_TTL_HOURS": CACHE_TTL_HOURS,
    "REQUEST_TIMEOUT": DEFAULT_REQUEST_TIMEOUT,
    "MAX_REDIRECTS": DEFAULT_MAX_REDIRECTS,
    "FONT_FORMAT": DEFAULT_FONT_FORMAT,
    "DOWNLOAD_DIR": None,
    "LOG_LEVEL": None,
    "LOG_TO_FILE": False,
}

FONT_FORMAT_CHOICES = ("ttf", "woff2")


def get_config_file_path() -> str:
    """
    Return the path of the configuration file.

    The `GFCLI_CONFIG` environment variable overrides the platformdirs location.
    """
    override = os.environ.get(CONFIG_FILE_ENV_VAR)
    if override:
        return override
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("yes", "true", "1", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("no", "false", "0", "off"):
        return False
    logger.warning(f"Invalid {key} value {value!r}; using default {DEFAULT_CONFIG[key]!r}")
    return DEFAULT_CONFIG[key]


def _coerce_number(key: str, value: Any, minimum: float, as_int: bool = False) -> Any:
    """
    Parse a numeric setting, falling back to its default on parse errors and clamping to `minimum`.
    """
    default = DEFAULT_CONFIG[key]
    if isinstance(value, bool):
        logger.warning(f"Invalid {key} value {value!r}; using default of {default!r}")
        return default
    try:
        parsed = int(value) if as_int else float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid {key} value {value!r}; using default of {default!r}")
        return default
    if parsed < minimum:
        logger.warning(f"{key} must be >= {minimum}; clamping {parsed} to {minimum}")
        return int(minimum) if as_int else minimum
    return parsed


def normalize_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a raw configuration mapping over the defaults and validate every known key.

    Unknown keys are kept as-is so newer configuration files keep working.

    Parameters:
        raw (Dict[str, Any]): Mapping as read from YAML (keys are case-insensitive).

    Returns:
        Dict[str, Any]: A complete configuration with validated values.
    """
    config = dict(DEFAULT_CONFIG)
    for key, value in raw.items():
        config[str(key).upper()] = value

    config["CACHE_ENABLED"] = _coerce_bool("CACHE_ENABLED", config["CACHE_ENABLED"])
    config["LOG_TO_FILE"] = _coerce_bool("LOG_TO_FILE", config["LOG_TO_FILE"])
    config["CACHE_TTL_HOURS"] = _coerce_number(
        "CACHE_TTL_HOURS", config["CACHE_TTL_HOURS"], 0
    )
    config["REQUEST_TIMEOUT"] = _coerce_number(
        "REQUEST_TIMEOUT", config["REQUEST_TIMEOUT"], 1
    )
    config["MAX_REDIRECTS"] = _coerce_number(
        "MAX_REDIRECTS", config["MAX_REDIRECTS"], 0, as_int=True
    )

    font_format = str(config["FONT_FORMAT"] or "").strip().lower()
    if font_format not in FONT_FORMAT_CHOICES:
        logger.warning(
            f"Invalid FONT_FORMAT value {config['FONT_FORMAT']!r}; "
            f"using default {DEFAULT_FONT_FORMAT!r}"
        )
        font_format = DEFAULT_FONT_FORMAT
    config["FONT_FORMAT"] = font_format

    if config["DOWNLOAD_DIR"] is not None and not isinstance(config["DOWNLOAD_DIR"], str):
        logger.warning(
            f"Invalid DOWNLOAD_DIR value {config['DOWNLOAD_DIR']!r}; "
            f"using the current directory"
        )
        config["DOWNLOAD_DIR"] = None
    if config["DOWNLOAD_DIR"]:
        config["DOWNLOAD_DIR"] = os.path.expanduser(config["DOWNLOAD_DIR"])

    return config


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the gfcli configuration.

    Parameters:
        path (Optional[str]): Explicit configuration file; defaults to `get_config_file_path()`.

    Returns:
        Dict[str, Any]: Validated configuration; the defaults when no file exists.

    Raises:
        ConfigFileError: If the file exists but cannot be read, is not valid YAML,
            or does not contain a mapping.
    """
    config_path = path or get_config_file_path()
    if not os.path.exists(config_path):
        logger.debug(f"No configuration file at {config_path}; using defaults")
        return normalize_config({})

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            f"Could not read configuration file {config_path}", details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            f"Could not parse configuration file {config_path}", details=str(e)
        ) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigFileError(
            f"Configuration file {config_path} must contain a mapping",
            details=f"got {type(raw).__name__}",
        )

    logger.debug(f"Loaded configuration from {config_path}")
    return normalize_config(raw)
