import threading
from concurrent.futures import Future, ThreadPoolExecutor

import pytest

from flyby_planner.control.search import (
    CancellationToken,
    ProgressReporter,
    ProgressSnapshot,
    SearchHandle,
    SearchOutcome,
    SearchStatus,
)
from flyby_planner.errors import InfeasibleTrajectoryError, PlannerError, SearchCancelled


def test_token_is_idempotent():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    token.cancel()
    assert token.cancelled

def test_snapshot_fraction():
    assert ProgressSnapshot(5, 20).fraction == 0.25
    assert ProgressSnapshot(5, 20).percent == 25.0
    assert ProgressSnapshot(5).fraction is None
    assert ProgressSnapshot(0, 0).fraction == 1.0
    assert ProgressSnapshot(30, 20).fraction == 1.0

def test_outcomes():
    assert SearchOutcome.succeeded([1]).unwrap() == [1]

    cancelled = SearchOutcome.cancelled()
    assert cancelled.status is SearchStatus.CANCELLED
    with pytest.raises(SearchCancelled):
        cancelled.unwrap()
    # Cancellation is not a planner failure
    assert not issubclass(SearchCancelled, PlannerError)

    error = InfeasibleTrajectoryError("nothing")
    failed = SearchOutcome.failed(error)
    assert failed.is_failed
    with pytest.raises(InfeasibleTrajectoryError):
        failed.unwrap()

def test_reporter_delivers_last_snapshot():
    received = []
    reporter = ProgressReporter(received.append)
    for i in range(1, 101):
        reporter.report(ProgressSnapshot(i, 100))
    reporter.close(timeout=5.0)

    # Coalesced: some snapshots may be skipped, never reordered, the last one always arrives
    assert received[-1] == ProgressSnapshot(100, 100)
    evaluated = [s.evaluated for s in received]
    assert evaluated == sorted(evaluated)
    assert reporter.latest == ProgressSnapshot(100, 100)

def test_reporter_does_not_block_on_slow_callback():
    release = threading.Event()
    received = []

    def slow(snapshot):
        release.wait(5.0)
        received.append(snapshot)

    reporter = ProgressReporter(slow)
    for i in range(1000):
        reporter.report(ProgressSnapshot(i))
    # All reports returned while the callback is still blocked
    assert len(received) == 0
    release.set()
    reporter.close(timeout=5.0)
    assert received[-1].evaluated == 999

def test_reporter_survives_callback_errors(caplog):
    calls = []

    def failing(snapshot):
        calls.append(snapshot)
        raise RuntimeError("display failed")

    reporter = ProgressReporter(failing)
    reporter.report(ProgressSnapshot(1))
    reporter.close(timeout=5.0)

    assert calls == [ProgressSnapshot(1)]
    assert "Progress callback failed" in caplog.text

def test_reporter_ignores_reports_after_close():
    reporter = ProgressReporter()
    reporter.close()
    reporter.report(ProgressSnapshot(1))
    assert reporter.latest is None

def test_handle_result_and_callback():
    with ThreadPoolExecutor(max_workers=1) as executor:
        reporter = ProgressReporter()
        future = executor.submit(lambda: SearchOutcome.succeeded(42))
        handle = SearchHandle(future, CancellationToken(), reporter)

        done = threading.Event()
        handle.add_done_callback(lambda h: done.set())

        assert handle.result(timeout=5.0) == 42
        assert done.wait(5.0)
        assert handle.done()

def test_handle_cancel_queued_future():
    future = Future()
    token = CancellationToken()
    handle = SearchHandle(future, token, ProgressReporter())

    handle.cancel()

    assert token.cancelled
    assert handle.outcome(timeout=1.0).is_cancelled
    with pytest.raises(SearchCancelled):
        handle.result(timeout=1.0)

def test_cancel_after_success_keeps_outcome():
    future = Future()
    future.set_result(SearchOutcome.succeeded(42))
    handle = SearchHandle(future, CancellationToken(), ProgressReporter())

    handle.cancel()

    assert not handle.cancelled
    assert handle.outcome().is_succeeded
    assert handle.result() == 42

def test_handle_cancelled_follows_cancelled_outcome():
    future = Future()
    handle = SearchHandle(future, CancellationToken(), ProgressReporter())
    assert not handle.cancelled

    future.set_running_or_notify_cancel()
    future.set_result(SearchOutcome.cancelled())

    assert handle.cancelled

if __name__ == "__main__":
    pytest.main([__file__])
