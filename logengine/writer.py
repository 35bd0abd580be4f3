"""Log sinks: stdout, plain append-only file, and a self-rotating file.

A rotating path may contain the size placeholder ``index`` and the date
tokens ``yyyy``, ``yy``, ``MM``, ``dd`` and ``HH``, e.g.
``logs/app-yyyyMMdd-index.log``.
"""

import logging
import os
import sys
from datetime import datetime, timedelta
from typing import Callable, Iterable, Protocol

from logengine.entry import ENTRY_PREFIX

logger = logging.getLogger(__name__)

INDEX_TOKEN = "index"
UNBOUNDED = 0xFFFFFFFF
_DATE_TOKENS = (
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("HH", "%H"),
)


class Sink(Protocol):
    def write(self, data: bytes) -> int: ...

    def sync(self) -> None: ...

    def close(self) -> None: ...


def format_date_name(name: str, now: datetime | None = None) -> str:
    """Replace the first occurrence of each date token with *now*'s value."""
    now = now or datetime.now()
    for token, directive in _DATE_TOKENS:
        name = name.replace(token, now.strftime(directive), 1)
    return name


def next_hour(now: datetime) -> datetime:
    return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


def _ensure_directory(path: str):
    dir_path = os.path.dirname(path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)


def _write_stdout(data: bytes):
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is not None:
        buffer.write(data)
    else:
        sys.stdout.write(data.decode("utf-8", "replace"))


class StdoutWriter:
    def write(self, data: bytes) -> int:
        _write_stdout(data)
        return len(data)

    def sync(self):
        sys.stdout.flush()

    def close(self):
        self.sync()


class FileWriter:
    """Buffered append-only file, optionally teed to stdout."""

    def __init__(self, name: str, std: bool = False):
        self.filename = format_date_name(name)
        self._std = std
        _ensure_directory(self.filename)
        self._file = open(self.filename, "ab")

    def write(self, data: bytes) -> int:
        n = self._file.write(data)
        if self._std:
            _write_stdout(data)
        return n

    def sync(self):
        if self._file.closed:
            return
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self):
        if not self._file.closed:
            self.sync()
            self._file.close()


class RotatingWriter:
    """File sink that moves to a new segment on size or date changes.

    Size rotation only happens on a write that starts a new entry, so a line
    is never split between two segments. The date check runs on every write
    once the wall clock passes the next hour boundary.
    """

    def __init__(self, name: str, std: bool = False, max_size: int = UNBOUNDED,
                 callbacks: Iterable[Callable[[str], None]] = (), time_func=None):
        self._name = name
        self._std = std
        self.max_size = max_size
        self._callbacks = list(callbacks)
        self._time_func = time_func or datetime.now
        self._file = None
        self.filename: str | None = None
        self._nbytes = 0
        self._next_index = 0
        self._next_time = next_hour(self._time_func())
        self._rotate()

    @property
    def bytes_written(self) -> int:
        """Size of the current segment, including bytes it held when opened."""
        return self._nbytes

    def _segment_name(self, index: int, now: datetime) -> str:
        return format_date_name(self._name, now).replace(INDEX_TOKEN, str(index))

    def _rotate(self):
        now = self._time_func()
        while True:
            name = self._segment_name(self._next_index, now)
            _ensure_directory(name)
            handle = open(name, "ab")
            self._next_index += 1
            size = os.fstat(handle.fileno()).st_size
            # Skip segments that were already filled before a restart.
            if size < self.max_size:
                break
            handle.close()

        if self._file is not None:
            self._close_file()
        self._file = handle
        self.filename = name
        self._nbytes = size
        logger.info("Logging to segment %s (%d bytes already present)", name, size)
        for callback in self._callbacks:
            callback(name)

    def _close_file(self):
        self._file.flush()
        os.fsync(self._file.fileno())
        self._file.close()

    def write(self, data: bytes) -> int:
        """Write *data*, rotating first if needed.

        If opening the next segment fails, *data* still goes to the current
        segment and the OSError is raised afterwards.
        """
        try:
            self._check_rotation(data)
        except OSError:
            self._write(data)
            raise
        return self._write(data)

    def _check_rotation(self, data: bytes):
        if (
            data[:len(ENTRY_PREFIX)] == ENTRY_PREFIX
            and self._nbytes > 0
            and self._nbytes + len(data) >= self.max_size
        ):
            self._rotate()

        now = self._time_func()
        if now > self._next_time:
            self._next_time = next_hour(now)
            # The date part of the name moved on: restart numbering.
            if self._segment_name(self._next_index - 1, now) != self.filename:
                self._next_index = 0
                self._rotate()

    def _write(self, data: bytes) -> int:
        n = self._file.write(data)
        if self._std:
            _write_stdout(data)
        self._nbytes += n
        return n

    def sync(self):
        if self._file is None:
            return
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self):
        if self._file is not None:
            self._close_file()
            self._file = None


def link_updater(link: str) -> Callable[[str], None]:
    """Return a rotation callback that points *link* at the newest segment."""

    def update(name: str):
        target = os.path.abspath(name)
        try:
            _ensure_directory(link)
            if os.path.lexists(link):
                os.remove(link)
            os.symlink(target, link)
        except OSError as exc:
            logger.warning("Could not point link %s at %s: %s", link, target, exc)

    return update


def new_writer(name: str, std: bool = False, max_size: int = 0,
               callbacks: Iterable[Callable[[str], None]] = (), time_func=None) -> Sink:
    """Build the sink that fits *name*.

    Without the ``index`` placeholder the size limit is ignored. With neither
    a size limit nor date tokens there is nothing to rotate, so a plain
    FileWriter (or stdout, for an empty name) is returned.
    """
    name = name.strip()
    if INDEX_TOKEN not in name:
        max_size = 0
    if max_size <= 0:
        if name == format_date_name(name):
            if not name:
                return StdoutWriter()
            return FileWriter(name, std)
        max_size = UNBOUNDED
    return RotatingWriter(name, std, max_size, callbacks, time_func)
