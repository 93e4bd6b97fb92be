"""Tests for alert sinks and the non-blocking dispatcher."""

import io
import threading
import time

import pytest

from seatwatch.models import MonitorTarget, SeatSnapshot
from seatwatch.notify import AlertDispatcher, CompositeSink, MessageFormatter, TerminalBellSink


@pytest.fixture
def snapshot():
    return SeatSnapshot(target=MonitorTarget(term=1770, course_id=12345), open_seats=3)


class BlockingSink:
    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()
        self.calls = 0

    def alert(self, snapshot):
        self.calls += 1
        self.started.set()
        self.release.wait(5)


class RecordingSink:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.snapshots = []

    def alert(self, snapshot):
        self.snapshots.append(snapshot)
        if self.fail:
            raise RuntimeError("speaker unplugged")


class TestAlertDispatcher:

    def test_dispatch_does_not_wait_for_sink(self, snapshot):
        sink = BlockingSink()
        dispatcher = AlertDispatcher(sink)
        try:
            started = time.monotonic()
            future = dispatcher.dispatch(snapshot)
            elapsed = time.monotonic() - started

            assert future is not None
            assert elapsed < 1.0
            assert sink.started.wait(2)
            assert not future.done()
        finally:
            sink.release.set()
            dispatcher.shutdown(wait=True)

    def test_backlog_is_bounded(self, snapshot):
        sink = BlockingSink()
        dispatcher = AlertDispatcher(sink, max_pending=2)
        try:
            assert dispatcher.dispatch(snapshot) is not None
            assert dispatcher.dispatch(snapshot) is not None
            assert dispatcher.dispatch(snapshot) is None
            assert dispatcher.dropped == 1
        finally:
            sink.release.set()
            dispatcher.shutdown(wait=True)
        assert dispatcher.pending == 0
        assert sink.calls == 2

    def test_on_done_runs_after_sink(self, snapshot):
        dispatcher = AlertDispatcher(RecordingSink())
        done = threading.Event()
        seen = []

        def on_done(s):
            seen.append(s)
            done.set()

        dispatcher.dispatch(snapshot, on_done=on_done)

        assert done.wait(2)
        assert seen == [snapshot]
        dispatcher.shutdown(wait=True)
        assert dispatcher.delivered == 1

    def test_sink_failure_is_contained(self, snapshot):
        dispatcher = AlertDispatcher(RecordingSink(fail=True))
        done = threading.Event()

        future = dispatcher.dispatch(snapshot, on_done=lambda s: done.set())

        assert done.wait(2)
        assert isinstance(future.exception(), RuntimeError)
        dispatcher.shutdown(wait=True)
        assert dispatcher.delivered == 0
        assert dispatcher.pending == 0

    def test_dispatch_after_shutdown_is_dropped(self, snapshot):
        dispatcher = AlertDispatcher(RecordingSink())
        dispatcher.shutdown(wait=True)

        assert dispatcher.dispatch(snapshot) is None
        assert dispatcher.pending == 0


class TestSinks:

    def test_terminal_bell(self, snapshot):
        stream = io.StringIO()

        TerminalBellSink(repeats=2, interval=0, stream=stream).alert(snapshot)

        output = stream.getvalue()
        assert output.count("\a") == 2
        assert "12345" in output

    def test_composite_continues_after_failure(self, snapshot):
        failing = RecordingSink(fail=True)
        working = RecordingSink()

        CompositeSink([failing, working]).alert(snapshot)

        assert failing.snapshots == [snapshot]
        assert working.snapshots == [snapshot]


class TestMessageFormatter:

    def test_seat_alert(self, snapshot):
        message = MessageFormatter.format_seat_alert(snapshot)

        assert "SEAT OPEN" in message
        assert "*Class:* 12345" in message
        assert "*Term:* 1770" in message
        assert "*Open seats:* 3" in message
