"""Severity levels shared by the logger, entries and config decoding."""

from enum import IntEnum


class ConfigError(ValueError):
    """Raised for configuration values that cannot be decoded."""


class Severity(IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4

    def marshal_text(self) -> bytes:
        return LEVEL_NAMES[self]


LEVEL_NAMES = {
    Severity.DEBUG: b"DEBUG",
    Severity.INFO: b"INFO",
    Severity.WARNING: b"WARNING",
    Severity.ERROR: b"ERROR",
    Severity.FATAL: b"FATAL",
}

_ALIASES = {
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "error": Severity.ERROR,
    "fatal": Severity.FATAL,
}


def parse_level(value) -> Severity:
    """Turn a Severity, an int or a level name into a Severity.

    Raises ConfigError for anything it does not recognise.
    """
    if isinstance(value, Severity):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid log level {value!r}")
    if isinstance(value, int):
        try:
            return Severity(value)
        except ValueError:
            raise ConfigError(f"Invalid log level {value!r}") from None
    if isinstance(value, str):
        key = value.strip().lower()
        if key.isdigit():
            return parse_level(int(key))
        if key in _ALIASES:
            return _ALIASES[key]
    raise ConfigError(f"Invalid log level {value!r}")
