import json
from datetime import datetime

import pytest

from logengine import Logger, LoggerConfig, Severity

FIXED_TIME = datetime(2025, 1, 15, 12, 30, 45)


class MemorySink:
    """Sink that keeps every write in memory."""

    def __init__(self):
        self.writes: list[bytes] = []
        self.syncs = 0
        self.closed = False

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data)

    def sync(self):
        self.syncs += 1

    def close(self):
        self.closed = True

    @property
    def lines(self) -> list[str]:
        return [w.decode("utf-8") for w in self.writes]

    def records(self) -> list[dict]:
        return [json.loads(w) for w in self.writes]


class FailingSink(MemorySink):
    def write(self, data: bytes) -> int:
        raise OSError("disk full")


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def make_logger(sink):
    def factory(**overrides):
        overrides.setdefault("writer", sink)
        overrides.setdefault("level", Severity.DEBUG)
        return Logger(LoggerConfig(**overrides), time_func=lambda: FIXED_TIME)

    return factory


@pytest.fixture
def log(make_logger):
    return make_logger()
