"""Logger façade: owns the config, the sink, the write lock and the entry pool."""

import logging
import threading
from datetime import datetime
from typing import Mapping

from logengine.config import LoggerConfig, config_from_mapping
from logengine.entry import CallerCapture, Entry, EntryPool
from logengine.levels import Severity, parse_level
from logengine.writer import link_updater, new_writer

logger = logging.getLogger(__name__)


class Logger:
    """Structured JSON logger.

    Every logging call goes through the logger's template entry, which forks a
    pooled working entry, so one Logger (and any context derived from it with
    ``with_fields(None)``) can be shared between threads.

    Raises OSError when the configured destination cannot be opened.
    """

    def __init__(self, config: LoggerConfig | Mapping | None = None, time_func=None):
        if not isinstance(config, LoggerConfig):
            config = config_from_mapping(config)
        self.config = config
        self._level = config.level
        self._time_func = time_func or datetime.now
        self._lock = threading.Lock()
        self._closed = False
        self._caller = CallerCapture(enabled=config.file_line)
        self._pool = EntryPool(self._make_entry)
        self.writer = config.writer or self._open_writer()
        self._entry = self._pool.get()
        self._entry.template = True

    def _open_writer(self):
        callbacks = [link_updater(self.config.link)] if self.config.link else []
        return new_writer(
            self.config.path,
            std=self.config.std,
            max_size=self.config.max_size,
            callbacks=callbacks,
        )

    def _make_entry(self) -> Entry:
        return Entry(self, self.config.time_format, self._caller)

    @property
    def level(self) -> Severity:
        return self._level

    def set_level(self, level):
        level = parse_level(level)
        with self._lock:
            self._level = level

    def sync(self):
        with self._lock:
            self.writer.sync()

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # -- entry lifecycle ---------------------------------------------------

    def new_entry(self) -> Entry:
        """Take a private working entry from the pool, stamped with the
        current time and threshold."""
        entry = self._pool.get()
        entry.time = self._time_func()
        # A single attribute read; set_level swaps the reference under the lock.
        entry.threshold = self._level
        entry.caller = self._caller
        return entry

    def release(self, entry: Entry):
        self._pool.put(entry)

    def write_entry(self, entry: Entry):
        try:
            with self._lock:
                line = entry.render()
                if self._closed:
                    return
                try:
                    self.writer.write(line)
                except OSError as exc:
                    logger.warning("Log sink write failed: %s", exc)
        finally:
            self._pool.put(entry)

    # -- template delegation -----------------------------------------------

    def with_field(self, key: str, value) -> Entry:
        return self._entry.with_field(key, value)

    def with_fields(self, fields) -> Entry:
        return self._entry.with_fields(fields)

    def debug(self, *args):
        self._entry.debug(*args)

    def info(self, *args):
        self._entry.info(*args)

    def warning(self, *args):
        self._entry.warning(*args)

    def error(self, *args):
        self._entry.error(*args)

    def fatal(self, *args):
        self._entry.fatal(*args)

    def debugf(self, fmt: str, *args):
        self._entry.debugf(fmt, *args)

    def infof(self, fmt: str, *args):
        self._entry.infof(fmt, *args)

    def warningf(self, fmt: str, *args):
        self._entry.warningf(fmt, *args)

    def errorf(self, fmt: str, *args):
        self._entry.errorf(fmt, *args)

    def fatalf(self, fmt: str, *args):
        self._entry.fatalf(fmt, *args)
