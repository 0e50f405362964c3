import logging
import threading
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from flyby_planner.errors import SearchCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Thread-safe cancellation flag shared between a caller and a running search.
    The search observes it at its checkpoints only.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    Progress of a search at one checkpoint.

    Attributes:
        evaluated (int): Units done so far (sequences found, generations run), non-decreasing.
        total (int): Known total of units, None when unknown.
        best_delta_v (float): Best delta-v found so far [km/s] (trajectory search only).
    """
    evaluated: int
    total: Optional[int] = None
    best_delta_v: Optional[float] = None

    @property
    def fraction(self) -> Optional[float]:
        if self.total is None:
            return None
        if self.total <= 0:
            return 1.0
        return min(1.0, self.evaluated / self.total)

    @property
    def percent(self) -> Optional[float]:
        fraction = self.fraction
        return None if fraction is None else 100.0 * fraction


class ProgressReporter:
    """
    Delivers progress snapshots to a callback without blocking the search.

    report() only stores the snapshot; a notifier thread hands the most recent
    one to the callback, so intermediate snapshots are dropped when the callback
    is slower than the search. Exceptions raised by the callback are logged and
    do not reach the search.
    """

    def __init__(self, callback: Optional[Callable[[ProgressSnapshot], Any]] = None, name: str = "progress"):
        self._callback = callback
        self._condition = threading.Condition()
        self._latest: Optional[ProgressSnapshot] = None
        self._pending = False
        self._closed = False
        self._thread = None
        if callback is not None:
            self._thread = threading.Thread(target=self._notify_loop, name=f"{name}-notifier", daemon=True)
            self._thread.start()

    @property
    def latest(self) -> Optional[ProgressSnapshot]:
        """Most recent snapshot, for callers polling instead of subscribing."""
        with self._condition:
            return self._latest

    def report(self, snapshot: ProgressSnapshot):
        with self._condition:
            if self._closed:
                return
            self._latest = snapshot
            self._pending = True
            self._condition.notify()

    def close(self, timeout: Optional[float] = None):
        """
        Stops accepting snapshots and waits (at most timeout seconds) for the
        last pending one to reach the callback.
        """
        with self._condition:
            self._closed = True
            self._condition.notify()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _notify_loop(self):
        while True:
            with self._condition:
                while not self._pending and not self._closed:
                    self._condition.wait()
                if not self._pending:
                    return
                snapshot = self._latest
                self._pending = False
            try:
                self._callback(snapshot)
            except Exception:
                logger.exception("Progress callback failed; the search goes on")


class SearchStatus(Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchOutcome:
    """
    Result of a background search: exactly one of success (with a value),
    cancellation (no value, no partial result) or failure (with the error).
    """
    status: SearchStatus
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def succeeded(cls, value) -> "SearchOutcome":
        return cls(SearchStatus.SUCCEEDED, value=value)

    @classmethod
    def cancelled(cls) -> "SearchOutcome":
        return cls(SearchStatus.CANCELLED)

    @classmethod
    def failed(cls, error: BaseException) -> "SearchOutcome":
        return cls(SearchStatus.FAILED, error=error)

    @property
    def is_succeeded(self) -> bool:
        return self.status is SearchStatus.SUCCEEDED

    @property
    def is_cancelled(self) -> bool:
        return self.status is SearchStatus.CANCELLED

    @property
    def is_failed(self) -> bool:
        return self.status is SearchStatus.FAILED

    def unwrap(self):
        """
        Returns the value of a successful search.

        Raises:
            SearchCancelled: If the search was cancelled.
            PlannerError: The error of a failed search.
        """
        if self.status is SearchStatus.CANCELLED:
            raise SearchCancelled("The search was cancelled.")
        if self.status is SearchStatus.FAILED:
            raise self.error
        return self.value


class SearchHandle:
    """
    Caller side of a search running on an executor.
    """

    def __init__(self, future: Future, token: CancellationToken, reporter: ProgressReporter):
        self._future = future
        self._token = token
        self._reporter = reporter

    def cancel(self):
        """Requests cancellation; a search still waiting in the queue never starts."""
        self._token.cancel()
        self._future.cancel()

    @property
    def cancelled(self) -> bool:
        """True once cancellation was requested, or, after the search ended, if it ended cancelled."""
        if self._future.cancelled():
            return True
        if self._future.done() and self._future.exception() is None:
            return self._future.result().is_cancelled
        return self._token.cancelled

    def done(self) -> bool:
        return self._future.done()

    def outcome(self, timeout: Optional[float] = None) -> SearchOutcome:
        """
        Waits for the search to end.

        Raises:
            concurrent.futures.TimeoutError: If the search is still running after timeout seconds.
        """
        try:
            return self._future.result(timeout)
        except CancelledError:
            return SearchOutcome.cancelled()

    def result(self, timeout: Optional[float] = None):
        return self.outcome(timeout).unwrap()

    @property
    def progress(self) -> Optional[ProgressSnapshot]:
        return self._reporter.latest

    def add_done_callback(self, fn: Callable[["SearchHandle"], Any]):
        self._future.add_done_callback(lambda _: fn(self))
