"""Logger configuration: frozen dataclass built from a mapping, YAML or env vars."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from logengine.levels import ConfigError, Severity, parse_level

logger = logging.getLogger(__name__)

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Wire key -> dataclass attribute.
_KEYS = {
    "std": "std",
    "path": "path",
    "maxsize": "max_size",
    "link": "link",
    "level": "level",
    "timeformat": "time_format",
    "fileline": "file_line",
    "writer": "writer",
    "max_size": "max_size",
    "time_format": "time_format",
    "file_line": "file_line",
}

_ENV_KEYS = {
    "LOG_STD": "std",
    "LOG_PATH": "path",
    "LOG_MAXSIZE": "maxsize",
    "LOG_LINK": "link",
    "LOG_LEVEL": "level",
    "LOG_TIMEFORMAT": "timeformat",
    "LOG_FILELINE": "fileline",
}


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_size(value) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid maxsize {value!r}") from None
    if size < 0:
        raise ConfigError(f"maxsize must not be negative, got {size}")
    return size


@dataclass(frozen=True)
class LoggerConfig:
    std: bool = False
    path: str = ""
    max_size: int = 0
    link: str = ""
    level: Severity = Severity.DEBUG
    time_format: str = DEFAULT_TIME_FORMAT
    file_line: bool = False
    writer: Any = field(default=None, compare=False, repr=False)


def config_from_mapping(data: Mapping | None) -> LoggerConfig:
    """Decode a mapping that uses the wire keys (``maxsize``, ``timeformat``...)."""
    if not data:
        return LoggerConfig()
    values = {}
    for key, value in data.items():
        attr = _KEYS.get(str(key).lower())
        if attr is None:
            logger.warning("Ignoring unknown logger config key %r", key)
            continue
        values[attr] = value

    if "level" in values:
        values["level"] = parse_level(values["level"])
    if "max_size" in values:
        values["max_size"] = _parse_size(values["max_size"])
    for attr in ("std", "file_line"):
        if attr in values:
            values[attr] = _parse_bool(values[attr])
    for attr in ("path", "link", "time_format"):
        if attr in values:
            values[attr] = "" if values[attr] is None else str(values[attr])
    if values.get("time_format") == "":
        values["time_format"] = DEFAULT_TIME_FORMAT
    return LoggerConfig(**values)


def load_yaml_config(path: str | None) -> dict:
    """Load logger settings from a YAML file. Returns an empty dict if no path.

    Settings may sit at the top level or under a ``logger:`` section.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")
    section = data.get("logger", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected a mapping under 'logger' in {path}")
    logger.info("Loaded logger config from %s", path)
    return section


def load_config(yaml_data: Mapping | None = None) -> LoggerConfig:
    """Build a LoggerConfig from YAML data overlaid with LOG_* env vars."""
    merged = dict(yaml_data or {})
    for env_key, key in _ENV_KEYS.items():
        value = os.environ.get(env_key)
        if value is not None:
            merged[key] = value
    return config_from_mapping(merged)
