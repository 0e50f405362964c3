"""
Flyby Planner
Plans multiple gravity assist transfers in a patched conic planetary system:
- Flyby sequence enumeration between an origin and a destination body
- Continuous trajectory optimization of a fixed sequence (minimum delta-v)
- Cancellable, progress reporting background searches
"""
import logging

from flyby_planner.errors import (
    PlannerError,
    PreconditionError,
    InfeasibleTrajectoryError,
    NumericalError,
    LambertError,
    SearchCancelled,
)
from flyby_planner.config import PlannerConfig, SolverSettings, CalendarSettings
from flyby_planner.system.body import Body, OrbitalElements
from flyby_planner.system.system import System
from flyby_planner.mission.sequence import FlybySequence
from flyby_planner.mission.sequence_generator import SearchParameters, FlybySequenceGenerator
from flyby_planner.mission.constraints import TrajectoryConstraints
from flyby_planner.mission.trajectory import Trajectory, Maneuver, ManeuverKind, FlybyDetails
from flyby_planner.optimization.trajectory_solver import TrajectorySolver
from flyby_planner.control.search import (
    CancellationToken,
    ProgressReporter,
    ProgressSnapshot,
    SearchHandle,
    SearchOutcome,
    SearchStatus,
)
from flyby_planner.planner import TrajectoryPlanner

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
