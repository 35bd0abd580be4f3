"""Log entries: field accumulation, severity filtering and line rendering.

An entry is either a *template* (the logger's base entry, or a context handle
returned by ``with_fields(None)``) or a *working* entry. Templates are shared
and never rendered; every call on a template forks a private working entry
out of the logger's pool. Working entries are single use: once rendered or
dropped they go back to the pool.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime

from logengine.caller import caller_location
from logengine.encoder import append_string, append_value, error_text
from logengine.levels import LEVEL_NAMES, Severity

logger = logging.getLogger(__name__)

ENTRY_PREFIX = b'{"time":"'
_LEVEL_KEY = b'","level":"'
_FIELDS_KEY = b'","fields":{'
_LEVEL_END = b'"'
_MESSAGE_KEY = b',"message":"'
_MESSAGE_END = b'"}\n'
_LINE_END = b"}\n"


@dataclass(frozen=True)
class CallerCapture:
    enabled: bool = False
    depth: int = 0


class EntryPool:
    """Thread-safe free list of working entries."""

    def __init__(self, factory, max_idle: int = 256):
        self._factory = factory
        self._max_idle = max_idle
        self._idle: list = []
        self._lock = threading.Lock()

    def get(self) -> "Entry":
        with self._lock:
            if self._idle:
                entry = self._idle.pop()
                entry.pooled = False
                return entry
        return self._factory()

    def put(self, entry: "Entry"):
        if entry.template:
            return
        entry.reset()
        with self._lock:
            if entry.pooled:
                return
            if len(self._idle) < self._max_idle:
                entry.pooled = True
                self._idle.append(entry)

    def __len__(self):
        with self._lock:
            return len(self._idle)


class Entry:
    def __init__(self, owner, time_format: str, caller: CallerCapture):
        self._owner = owner
        self._time_format = time_format
        self.caller = caller
        self.severity = Severity.DEBUG
        self.threshold = Severity.DEBUG
        self.time: datetime | None = None
        self.message = ""
        self.data = bytearray()
        self._line = bytearray()
        self.template = False
        self.pooled = False

    def reset(self):
        self.severity = Severity.DEBUG
        self.time = None
        self.message = ""
        self.data.clear()
        self._line.clear()

    def fork(self) -> "Entry":
        """Return a private working entry carrying this entry's fields,
        caller settings and the logger's current threshold."""
        entry = self._owner.new_entry()
        entry.data += self.data
        entry.caller = self.caller
        return entry

    def _working(self) -> "Entry":
        return self.fork() if self.template else self

    # -- field accumulation ------------------------------------------------

    def with_field(self, key: str, value) -> "Entry":
        entry = self._working()
        if key == "depth":
            if isinstance(value, int) and not isinstance(value, bool):
                entry.caller = replace(entry.caller, depth=entry.caller.depth + value)
                return entry
            if isinstance(value, str):
                if value == "enable":
                    entry.caller = replace(entry.caller, enabled=True)
                elif value == "disable":
                    entry.caller = replace(entry.caller, enabled=False)
                return entry
        elif key == "time" and isinstance(value, datetime):
            entry.time = value
            return entry

        data = entry.data
        data += b'"'
        append_string(data, key)
        data += b'":'
        append_value(data, value)
        data += b","
        return entry

    def with_fields(self, fields) -> "Entry":
        """Add every pair of *fields*; with no fields, return a new template
        entry that can be shared as a logging context."""
        if not fields:
            entry = self.fork()
            entry.template = True
            return entry
        entry = self._working()
        for key, value in fields.items():
            entry.with_field(key, value)
        return entry

    # -- severity methods --------------------------------------------------

    def debug(self, *args):
        self._log(Severity.DEBUG, args)

    def info(self, *args):
        self._log(Severity.INFO, args)

    def warning(self, *args):
        self._log(Severity.WARNING, args)

    def error(self, *args):
        self._log(Severity.ERROR, args)

    def fatal(self, *args):
        self._log(Severity.FATAL, args)

    def debugf(self, fmt: str, *args):
        self._logf(Severity.DEBUG, fmt, args)

    def infof(self, fmt: str, *args):
        self._logf(Severity.INFO, fmt, args)

    def warningf(self, fmt: str, *args):
        self._logf(Severity.WARNING, fmt, args)

    def errorf(self, fmt: str, *args):
        self._logf(Severity.ERROR, fmt, args)

    def fatalf(self, fmt: str, *args):
        self._logf(Severity.FATAL, fmt, args)

    def _enabled_for(self, level: Severity) -> bool:
        return level == Severity.FATAL or level >= self.threshold

    def _log(self, level, args):
        entry = self._working()
        if not entry._enabled_for(level):
            entry._owner.release(entry)
            return
        entry.message = " ".join(_arg_text(arg) for arg in args)
        entry._emit(level)

    def _logf(self, level, fmt, args):
        entry = self._working()
        if not entry._enabled_for(level):
            entry._owner.release(entry)
            return
        entry.message = _format_message(fmt, args)
        entry._emit(level)

    def _emit(self, level):
        self.severity = level
        self._owner.write_entry(self)

    # -- rendering ---------------------------------------------------------

    def render(self) -> bytes:
        """Assemble the JSON line for this entry and clear its field buffer."""
        line = self._line
        line.clear()
        line += ENTRY_PREFIX
        append_string(line, self.time.strftime(self._time_format))
        line += _LEVEL_KEY
        line += LEVEL_NAMES[self.severity]

        if self.caller.enabled:
            name, file, lineno = caller_location(self.caller.depth)
            self.with_field("name", name)
            self.with_field("file", file)
            self.with_field("line", lineno)

        if self.data:
            line += _FIELDS_KEY
            self.data[-1] = 0x7D
            line += self.data
            self.data.clear()
        else:
            line += _LEVEL_END

        if self.message:
            line += _MESSAGE_KEY
            append_string(line, self.message)
            line += _MESSAGE_END
        else:
            line += _LINE_END
        return bytes(line)


def _format_message(fmt: str, args: tuple) -> str:
    if not args:
        return fmt
    try:
        return fmt % args
    except Exception as exc:
        logger.warning("Bad log format %r: %s", fmt, exc)
        return " ".join([fmt] + [_arg_text(arg) for arg in args])


def _arg_text(arg) -> str:
    try:
        return str(arg)
    except Exception as exc:
        return error_text(exc)
