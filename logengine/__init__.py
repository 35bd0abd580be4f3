"""Structured JSON logging with pooled entries and a self-rotating file sink."""

from logengine.config import ConfigError, LoggerConfig, config_from_mapping, load_config, load_yaml_config
from logengine.entry import Entry
from logengine.levels import Severity, parse_level
from logengine.logger import Logger
from logengine.writer import FileWriter, RotatingWriter, StdoutWriter, new_writer

__all__ = [
    "ConfigError",
    "Entry",
    "FileWriter",
    "Logger",
    "LoggerConfig",
    "RotatingWriter",
    "Severity",
    "StdoutWriter",
    "config_from_mapping",
    "load_config",
    "load_yaml_config",
    "new_writer",
    "parse_level",
]
