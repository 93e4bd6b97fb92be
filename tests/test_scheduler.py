"""Tests for fixed-rate periodic tasks."""

import threading
import time

import pytest

from seatwatch.scheduler import PeriodicTask


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_runs_repeatedly_until_stopped():
    calls = []
    task = PeriodicTask("test", 0.02, lambda: calls.append(time.monotonic()))

    task.start()
    assert wait_until(lambda: len(calls) >= 3)
    task.stop()
    task.join(1)

    assert not task.is_running
    count = len(calls)
    time.sleep(0.1)
    assert len(calls) == count


def test_exceptions_do_not_stop_the_schedule():
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("cycle failed")

    task = PeriodicTask("flaky", 0.02, flaky)
    task.start()
    assert wait_until(lambda: len(calls) >= 3)
    task.stop()
    task.join(1)

    assert task.errors >= 3


def test_initial_delay_postpones_first_run():
    ran = threading.Event()
    task = PeriodicTask("delayed", 10, ran.set, initial_delay=10)

    task.start()
    assert not ran.wait(0.1)
    task.stop()
    task.join(1)

    assert task.runs == 0


def test_fixed_rate_skips_missed_ticks():
    calls = []

    def slow():
        calls.append(time.monotonic())
        if len(calls) == 1:
            time.sleep(0.35)

    task = PeriodicTask("slow", 0.1, slow)
    task.start()
    assert wait_until(lambda: len(calls) >= 3)
    task.stop()
    task.join(1)

    # The stall covered three ticks; they are skipped, not replayed back to back
    assert task.skipped >= 2
    assert calls[2] - calls[1] > 0.05


def test_shared_stop_event_stops_all_tasks():
    stop = threading.Event()
    tasks = [PeriodicTask(f"t{i}", 0.02, lambda: None, stop_event=stop) for i in range(2)]
    for task in tasks:
        task.start()

    stop.set()
    for task in tasks:
        task.join(1)

    assert not any(task.is_running for task in tasks)


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PeriodicTask("bad", 0, lambda: None)
