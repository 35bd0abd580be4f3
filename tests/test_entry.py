"""Tests for entry pooling and the template/working entry lifecycle."""

import threading

from logengine.entry import CallerCapture, Entry, EntryPool
from logengine.levels import Severity


def _factory():
    return Entry(None, "%Y", CallerCapture())


class TestEntryPool:
    def test_get_creates_when_empty(self):
        pool = EntryPool(_factory)
        first = pool.get()
        second = pool.get()
        assert first is not second
        assert len(pool) == 0

    def test_put_then_get_reuses(self):
        pool = EntryPool(_factory)
        entry = pool.get()
        entry.data += b'"a":1,'
        entry.message = "stale"
        pool.put(entry)
        reused = pool.get()
        assert reused is entry
        assert reused.data == bytearray()
        assert reused.message == ""

    def test_double_put_is_ignored(self):
        pool = EntryPool(_factory)
        entry = pool.get()
        pool.put(entry)
        pool.put(entry)
        assert len(pool) == 1
        assert pool.get() is entry
        assert pool.get() is not entry

    def test_templates_are_never_pooled(self):
        pool = EntryPool(_factory)
        entry = pool.get()
        entry.template = True
        pool.put(entry)
        assert len(pool) == 0

    def test_idle_limit(self):
        pool = EntryPool(_factory, max_idle=2)
        entries = [pool.get() for _ in range(5)]
        for entry in entries:
            pool.put(entry)
        assert len(pool) == 2

    def test_concurrent_get_gives_distinct_entries(self):
        pool = EntryPool(_factory)
        for _ in range(4):
            pool.put(_factory())
        num_threads = 16
        barrier = threading.Barrier(num_threads)
        results = [None] * num_threads

        def worker(i):
            barrier.wait()
            entry = pool.get()
            for _ in range(50):
                entry.data += b"%d," % i
            results[i] = entry

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(e) for e in results}) == num_threads
        for i, entry in enumerate(results):
            assert bytes(entry.data) == b"%d," % i * 50


class TestForking:
    def test_fork_copies_fields_and_caller(self, log):
        ctx = log.with_field("a", 1).with_fields(None)
        ctx.caller = CallerCapture(enabled=True, depth=3)
        working = ctx.fork()
        assert working is not ctx
        assert not working.template
        assert bytes(working.data) == b'"a":1,'
        assert working.caller == CallerCapture(enabled=True, depth=3)

    def test_fork_snapshots_logger_threshold(self, log):
        log.set_level(Severity.WARNING)
        working = log.with_field("a", 1)
        assert working.threshold == Severity.WARNING

    def test_mutating_fork_leaves_template_alone(self, log):
        ctx = log.with_field("a", 1).with_fields(None)
        before = bytes(ctx.data)
        ctx.with_field("b", 2).with_field("depth", "enable")
        assert bytes(ctx.data) == before
        assert ctx.caller.enabled is False

    def test_with_field_on_working_entry_chains_in_place(self, log):
        working = log.with_field("a", 1)
        assert working.with_field("b", 2) is working
        assert bytes(working.data) == b'"a":1,"b":2,'

    def test_depth_adjustments(self, log):
        working = log.with_field("depth", 2).with_field("depth", -1)
        assert working.caller == CallerCapture(enabled=False, depth=1)
        working.with_field("depth", "enable").with_field("depth", "enable")
        assert working.caller == CallerCapture(enabled=True, depth=1)

    def test_keys_are_escaped(self, log, sink):
        log.with_field('we"ird', 1).info()
        assert sink.records()[0]["fields"] == {'we"ird': 1}


class TestRelease:
    def test_rendered_entries_return_to_pool(self, log):
        log.info("a")
        log.with_field("x", 1).info("b")
        log.info("c")
        assert len(log._pool) == 1

    def test_filtered_entries_return_to_pool(self, make_logger, sink):
        log = make_logger(level=Severity.ERROR)
        log.debug("dropped")
        log.with_field("x", 1).info("dropped")
        assert sink.writes == []
        assert len(log._pool) == 1

    def test_reused_entry_starts_clean(self, log, sink):
        log.with_field("secret", "s3cr3t").info("first")
        log.info("second")
        assert b"s3cr3t" not in sink.writes[1]
