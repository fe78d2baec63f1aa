import threading

import pytest

from livepeer_exporter.tasks import PeriodicTask


def test_run_once_is_synchronous():
    calls = []
    task = PeriodicTask("t", 60, lambda: calls.append(1))
    task.run_once()
    task.run_once()
    assert calls == [1, 1]
    assert not task.running


def test_run_once_swallows_tick_errors():
    def boom():
        raise RuntimeError("boom")

    PeriodicTask("t", 60, boom).run_once()


def test_start_ticks_immediately_and_stops_promptly():
    ticked = threading.Event()
    task = PeriodicTask("t", 3600, ticked.set)
    task.start()
    try:
        assert ticked.wait(5)
        assert task.running
    finally:
        task.stop(timeout=5)
    assert not task.running


def test_loop_keeps_running_after_failing_tick():
    count = 0
    done = threading.Event()

    def flaky():
        nonlocal count
        count += 1
        if count == 1:
            raise RuntimeError("first tick fails")
        done.set()

    task = PeriodicTask("t", 0.01, flaky)
    task.start()
    try:
        assert done.wait(5)
    finally:
        task.stop(timeout=5)


@pytest.mark.parametrize("interval", [0, -1])
def test_rejects_non_positive_interval(interval):
    with pytest.raises(ValueError):
        PeriodicTask("t", interval, lambda: None)
