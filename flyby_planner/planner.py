import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from flyby_planner.config import PlannerConfig
from flyby_planner.control.search import CancellationToken, ProgressReporter, ProgressSnapshot, SearchHandle, SearchOutcome
from flyby_planner.errors import PlannerError
from flyby_planner.mission.constraints import TrajectoryConstraints
from flyby_planner.mission.sequence import FlybySequence
from flyby_planner.mission.sequence_generator import FlybySequenceGenerator, SearchParameters
from flyby_planner.optimization.trajectory_solver import TrajectorySolver
from flyby_planner.system.system import System

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], Any]


class TrajectoryPlanner:
    """
    Entry point of the planner: runs sequence generations and trajectory searches
    in the background, one of each kind at a time.

    Inputs are validated on the calling thread, so precondition errors are raised
    by the start methods. Starting a search cancels the previous one of the same
    kind if it is still running.

    Example:
        with TrajectoryPlanner(kerbol_system()) as planner:
            handle = planner.generate_sequences(SearchParameters(KERBIN, DUNA, max_swing_bys=1))
            sequences = handle.result()
    """

    def __init__(self, system: System, config: Optional[PlannerConfig] = None):
        self.system = system
        self.config = config or PlannerConfig()
        self._generator = FlybySequenceGenerator(system)
        self._lock = threading.Lock()
        self._sequence_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sequence-generation")
        self._trajectory_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="trajectory-search")
        self._sequence_handle: Optional[SearchHandle] = None
        self._trajectory_handle: Optional[SearchHandle] = None
        self._solver: Optional[TrajectorySolver] = None

    def _submit(self, executor: ThreadPoolExecutor, name: str, run: Callable, on_progress) -> SearchHandle:
        token = CancellationToken()
        reporter = ProgressReporter(on_progress, name=name)
        timeout = self.config.progress_flush_timeout

        def task() -> SearchOutcome:
            try:
                return run(token, reporter)
            except PlannerError as e:
                logger.info("%s failed: %s", name, e)
                return SearchOutcome.failed(e)
            finally:
                reporter.close(timeout)

        future = executor.submit(task)
        # A search cancelled while queued never runs its task
        future.add_done_callback(lambda _: reporter.close(0))
        return SearchHandle(future, token, reporter)

    # Flyby sequences

    def generate_sequences(self, params: SearchParameters,
                           on_progress: Optional[ProgressCallback] = None) -> SearchHandle:
        """
        Starts enumerating the flyby sequences allowed by params.

        Raises:
            PreconditionError: Invalid parameters (raised here, before anything runs).
        """
        self._generator.validate(params)
        with self._lock:
            if self._sequence_handle is not None:
                self._sequence_handle.cancel()
            handle = self._submit(
                self._sequence_executor, "sequence-generation",
                lambda token, reporter: self._generator.generate(params, token, reporter), on_progress
            )
            self._sequence_handle = handle
        return handle

    def cancel_sequence_generation(self):
        with self._lock:
            if self._sequence_handle is not None:
                self._sequence_handle.cancel()

    # Trajectories

    def search_optimal_trajectory(self, sequence: FlybySequence, constraints: TrajectoryConstraints,
                                  on_progress: Optional[ProgressCallback] = None) -> SearchHandle:
        """
        Starts searching the minimum delta-v trajectory flying the given sequence.

        Raises:
            PreconditionError: Invalid sequence or constraints.
            InfeasibleTrajectoryError: No mission can fit the maximum duration.
        """
        solver = TrajectorySolver(self.system, self.config.solver)
        problem = solver.prepare(sequence, constraints)
        with self._lock:
            if self._trajectory_handle is not None:
                self._trajectory_handle.cancel()
            handle = self._submit(
                self._trajectory_executor, "trajectory-search",
                lambda token, reporter: solver.search(problem, token, reporter), on_progress
            )
            self._trajectory_handle = handle
            self._solver = solver
        return handle

    def cancel_trajectory_search(self):
        with self._lock:
            if self._trajectory_handle is not None:
                self._trajectory_handle.cancel()

    def current_best_delta_v(self) -> Optional[float]:
        """Best delta-v [km/s] of the running or last trajectory search, None before any feasible one."""
        with self._lock:
            solver = self._solver
        if solver is None or not math.isfinite(solver.best_delta_v):
            return None
        return solver.best_delta_v

    # Lifecycle

    def close(self):
        """Cancels the running searches and waits for the workers to stop."""
        self.cancel_sequence_generation()
        self.cancel_trajectory_search()
        self._sequence_executor.shutdown(wait=True)
        self._trajectory_executor.shutdown(wait=True)

    def __enter__(self) -> "TrajectoryPlanner":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
