import threading
import time

import pytest

from plot_scheduler import PlotScheduler


@pytest.fixture
def scheduler():
    s = PlotScheduler(max_workers=2, timeout=5.0)
    yield s
    s.shutdown()


def test_result_carries_data(scheduler):
    result = scheduler.request("plot", lambda deadline=None: 42)
    assert result.ok
    assert result.data == 42
    assert result.generation == 1


def test_jobs_receive_a_deadline(scheduler):
    before = time.monotonic()
    result = scheduler.request("plot", lambda deadline=None: deadline)
    assert before + 4.0 < result.data <= time.monotonic() + 5.0


def test_last_submitted_wins(scheduler):
    gate = threading.Event()

    def slow(deadline=None):
        gate.wait(5)
        return "old"

    first = scheduler.submit("plot", slow)
    second = scheduler.submit("plot", lambda deadline=None: "new")
    gate.set()

    old = first.result(timeout=5)
    assert old.stale
    assert old.data is None
    new = second.result(timeout=5)
    assert not new.stale
    assert new.data == "new"
    assert new.generation == old.generation + 1


def test_plots_are_independent(scheduler):
    gate = threading.Event()

    def slow(deadline=None):
        gate.wait(5)
        return "a"

    a = scheduler.submit("a", slow)
    b = scheduler.submit("b", lambda deadline=None: "b")
    gate.set()
    assert a.result(timeout=5).data == "a"
    assert b.result(timeout=5).data == "b"


def test_cancel_marks_in_flight_job_stale(scheduler):
    gate = threading.Event()
    future = scheduler.submit("plot", lambda deadline=None: gate.wait(5))
    scheduler.cancel("plot")
    gate.set()
    assert future.result(timeout=5).stale


def test_errors_are_reported(scheduler):
    def broken(deadline=None):
        raise ValueError("bad input")

    result = scheduler.request("plot", broken)
    assert not result.stale
    assert result.error == "bad input"
    assert not result.ok
