import logging
import math
import time
from typing import Optional

import numpy as np
from scipy.optimize import differential_evolution

from flyby_planner.config import SolverSettings
from flyby_planner.control.search import CancellationToken, ProgressReporter, ProgressSnapshot, SearchOutcome
from flyby_planner.errors import InfeasibleTrajectoryError, NumericalError
from flyby_planner.mission.constraints import TrajectoryConstraints
from flyby_planner.mission.sequence import FlybySequence
from flyby_planner.optimization.mga import MGAProblem, is_feasible_cost
from flyby_planner.system.system import System

logger = logging.getLogger(__name__)


class TrajectorySolver:
    """
    Searches the minimum delta-v realisation of a flyby sequence with
    differential evolution.

    Every generation is a checkpoint: the cancellation token is checked and a
    snapshot (generation index, generation budget, best delta-v) is reported.
    The search ends when the best delta-v has improved by less than the
    convergence tolerance for stall_generations generations, when the
    generation budget is spent, or when cancelled.
    """

    def __init__(self, system: System, settings: Optional[SolverSettings] = None):
        self.system = system
        self.settings = settings or SolverSettings()
        self._best_delta_v = math.inf

    @property
    def best_delta_v(self) -> float:
        """Best feasible total delta-v of the current or last search [km/s], inf if none yet."""
        return self._best_delta_v

    def prepare(self, sequence: FlybySequence, constraints: TrajectoryConstraints) -> MGAProblem:
        """
        Validates the inputs and builds the search space.

        Raises:
            PreconditionError: Invalid sequence, window or parking altitudes.
            InfeasibleTrajectoryError: No mission can fit the maximum duration.
        """
        problem = MGAProblem(self.system, sequence, constraints, self.settings)
        logger.debug("Search space for %s: %d parameters", sequence, problem.dimension)
        return problem

    def search(self, problem: MGAProblem, token: Optional[CancellationToken] = None,
               reporter: Optional[ProgressReporter] = None) -> SearchOutcome:
        """
        Runs the optimisation.

        Returns:
            SearchOutcome: Succeeded with the best Trajectory, cancelled, or failed with an
                InfeasibleTrajectoryError when no feasible candidate was found.
        """
        token = token or CancellationToken()
        s = self.settings
        self._best_delta_v = math.inf
        if token.cancelled:
            return SearchOutcome.cancelled()

        generation = 0
        stalled = 0

        def checkpoint(intermediate_result):
            nonlocal generation, stalled
            generation += 1
            fun = float(intermediate_result.fun)
            if is_feasible_cost(fun):
                previous = self._best_delta_v
                if math.isfinite(previous) and previous - fun < s.convergence_tolerance:
                    stalled += 1
                else:
                    stalled = 0
                self._best_delta_v = min(previous, fun)

            best = self._best_delta_v if math.isfinite(self._best_delta_v) else None
            if reporter is not None:
                reporter.report(ProgressSnapshot(generation, s.max_generations, best))
            if token.cancelled:
                return True
            if stalled >= s.stall_generations:
                logger.debug("No improvement for %d generations, stopping at generation %d", stalled, generation)
                return True
            return False

        logger.info("Optimizing %s (%d parameters, population %d x %d)",
                    problem.sequence, problem.dimension, s.population_size, problem.dimension)
        t_start = time.perf_counter()
        result = differential_evolution(
            problem.objective,
            problem.bounds,
            popsize=s.population_size,
            maxiter=s.max_generations,
            mutation=tuple(s.mutation),
            recombination=s.recombination,
            rng=np.random.default_rng(s.seed),
            # Only the stagnation rule and the generation budget end the search
            tol=0.0,
            atol=-1.0,
            init='latinhypercube',
            updating='immediate',
            workers=1,
            polish=False,
            callback=checkpoint,
        )
        elapsed = time.perf_counter() - t_start

        if token.cancelled:
            logger.info("Trajectory search cancelled after %d generations (%.2f s)", generation, elapsed)
            return SearchOutcome.cancelled()

        if not is_feasible_cost(result.fun):
            logger.info("No feasible trajectory for %s after %d generations", problem.sequence, generation)
            return SearchOutcome.failed(InfeasibleTrajectoryError(
                f"No feasible trajectory found for {problem.sequence} in {generation} generations"
            ))

        try:
            trajectory = problem.build_trajectory(result.x)
        except NumericalError as e:
            return SearchOutcome.failed(e)
        self._best_delta_v = min(self._best_delta_v, float(result.fun))

        logger.info("Best %s trajectory: %.4f km/s after %d generations (%.2f s)",
                    problem.sequence, trajectory.total_delta_v, generation, elapsed)
        return SearchOutcome.succeeded(trajectory)

    def solve(self, sequence: FlybySequence, constraints: TrajectoryConstraints,
              token: Optional[CancellationToken] = None,
              reporter: Optional[ProgressReporter] = None) -> SearchOutcome:
        """prepare() then search() on the calling thread."""
        return self.search(self.prepare(sequence, constraints), token, reporter)
