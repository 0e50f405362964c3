import logging
import time
from dataclasses import dataclass
from typing import Optional

from flyby_planner.control.search import CancellationToken, ProgressReporter, ProgressSnapshot, SearchOutcome
from flyby_planner.errors import PreconditionError
from flyby_planner.mission.sequence import FlybySequence, is_back_leg, mission_direction
from flyby_planner.system.system import System

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchParameters:
    """
    Bounds of a flyby sequence enumeration. All bounds are inclusive.

    Attributes:
        departure_id (int): Origin body.
        destination_id (int): Destination body.
        max_swing_bys (int): Maximum number of gravity assists (intermediate bodies).
        max_resonant_swing_bys (int): Maximum number of legs returning to the body they left.
        max_back_legs (int): Maximum number of legs moving against the mission direction.
        max_back_spacing (int): Maximum number of legs between two consecutive back legs.
    """
    departure_id: int
    destination_id: int
    max_swing_bys: int = 0
    max_resonant_swing_bys: int = 0
    max_back_legs: int = 0
    max_back_spacing: int = 0


@dataclass(frozen=True)
class _State:
    """Search node. gap is the index of the next leg minus the last back leg index (None before any)."""
    body: int
    swing_bys: int
    resonant: int
    back_legs: int
    gap: Optional[int]


class FlybySequenceGenerator:
    """
    Enumerates the flyby sequences between two bodies orbiting the same attractor.

    At every step the next body is any body orbiting the shared attractor. Reaching
    the destination ends a sequence; any other body is a gravity assist. Returning
    to the body just left is a resonant swing-by, which uses both the resonant and the
    swing-by budgets. A leg against the mission direction is a back leg and is checked
    against the back-leg budget and the spacing from the previous back leg.
    Branches are pruned as soon as one bound is exceeded.
    """

    def __init__(self, system: System):
        self.system = system

    def validate(self, params: SearchParameters):
        """
        Raises:
            PreconditionError: Unknown bodies, identical origin and destination, bodies
                orbiting different attractors or invalid bounds.
        """
        for name in ('max_swing_bys', 'max_resonant_swing_bys', 'max_back_legs', 'max_back_spacing'):
            value = getattr(params, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise PreconditionError(f"{name} must be a non-negative integer, got {value!r}")
        origin = self.system.body(params.departure_id)
        destination = self.system.body(params.destination_id)
        if origin.id == destination.id:
            raise PreconditionError(f"Origin and destination are both {origin.name}")
        if origin.is_central or destination.is_central:
            raise PreconditionError("The central body cannot be an origin or a destination")
        self.system.common_attractor([origin, destination])

    def _candidates(self, params: SearchParameters) -> list[int]:
        attractor = self.system.attractor(params.departure_id)
        return [b.id for b in self.system.children(attractor.id)]

    def _step(self, state: _State, target: int, params: SearchParameters, direction: int) -> Optional[_State]:
        """State after flying from state.body to target, None if a bound is exceeded."""
        terminal = target == params.destination_id
        swing_bys = state.swing_bys if terminal else state.swing_bys + 1
        if swing_bys > params.max_swing_bys:
            return None

        resonant = state.resonant
        if target == state.body:
            resonant += 1
            if resonant > params.max_resonant_swing_bys:
                return None

        back_legs = state.back_legs
        gap = None if state.gap is None else state.gap + 1
        if is_back_leg(self.system, state.body, target, direction):
            back_legs += 1
            if back_legs > params.max_back_legs:
                return None
            if state.gap is not None and state.gap > params.max_back_spacing:
                return None
            gap = 1
        return _State(target, swing_bys, resonant, back_legs, gap)

    def count_feasible(self, params: SearchParameters) -> int:
        """
        Number of sequences generate() returns for these parameters, computed
        without enumerating them (memoised over the search state).
        """
        self.validate(params)
        candidates = self._candidates(params)
        direction = mission_direction(self.system, params.departure_id, params.destination_id)
        memo: dict[_State, int] = {}

        root = _State(params.departure_id, 0, 0, 0, None)
        # Post-order walk: a state is counted once all its successors are
        stack = [root]
        while stack:
            state = stack[-1]
            if state in memo:
                stack.pop()
                continue
            total = 0
            pending = []
            for target in candidates:
                nxt = self._step(state, target, params, direction)
                if nxt is None:
                    continue
                if target == params.destination_id:
                    total += 1
                elif nxt in memo:
                    total += memo[nxt]
                else:
                    pending.append(nxt)
            if pending:
                stack.extend(pending)
            else:
                memo[state] = total
                stack.pop()
        return memo[root]

    def generate(self, params: SearchParameters, token: Optional[CancellationToken] = None,
                 reporter: Optional[ProgressReporter] = None) -> SearchOutcome:
        """
        Depth-first enumeration of the admissible sequences.

        The cancellation token is checked, and a progress snapshot (sequences found
        against the feasible total) reported, once per expanded branch.

        Returns:
            SearchOutcome: Succeeded with the sequences in discovery order, or
                cancelled without any partial result.
        """
        token = token or CancellationToken()
        total = self.count_feasible(params)
        candidates = self._candidates(params)
        direction = mission_direction(self.system, params.departure_id, params.destination_id)
        logger.info("Generating flyby sequences %s -> %s (%d feasible)",
                    self.system.body(params.departure_id).name,
                    self.system.body(params.destination_id).name, total)
        t_start = time.perf_counter()

        found: list[FlybySequence] = []
        stack = [((params.departure_id,), _State(params.departure_id, 0, 0, 0, None))]
        while stack:
            if token.cancelled:
                logger.info("Flyby sequence generation cancelled after %d sequences", len(found))
                return SearchOutcome.cancelled()
            ids, state = stack.pop()
            children = []
            for target in candidates:
                nxt = self._step(state, target, params, direction)
                if nxt is None:
                    continue
                if target == params.destination_id:
                    found.append(FlybySequence.from_ids(ids + (target,), self.system))
                else:
                    children.append((ids + (target,), nxt))
            # Reversed so branches are explored in candidate order
            stack.extend(reversed(children))
            if reporter is not None:
                reporter.report(ProgressSnapshot(len(found), total))

        logger.info("Generated %d flyby sequences in %.3f s", len(found), time.perf_counter() - t_start)
        return SearchOutcome.succeeded(found)
