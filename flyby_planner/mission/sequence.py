from dataclasses import dataclass, field
from typing import Iterable

from flyby_planner.errors import PreconditionError
from flyby_planner.system.system import System

SEPARATOR = "-"


def mission_direction(system: System, origin: int, destination: int) -> int:
    """
    +1 when the destination orbits farther out than the origin (or on the same orbit),
    -1 when it orbits closer to the attractor.
    """
    return 1 if system.orbit_rank(destination) >= system.orbit_rank(origin) else -1


def is_back_leg(system: System, source: int, target: int, direction: int) -> bool:
    """
    A leg is a back leg when it moves against the mission direction.
    Resonant legs (same body at both ends) never are.
    """
    if source == target:
        return False
    return (system.orbit_rank(target) - system.orbit_rank(source)) * direction < 0


def back_leg_spacings(back_legs: Iterable[int]) -> list[int]:
    """Differences between the indices of consecutive back legs."""
    back_legs = list(back_legs)
    return [b - a for a, b in zip(back_legs, back_legs[1:])]


@dataclass(frozen=True)
class FlybySequence:
    """
    Ordered body ids from the origin to the destination, every intermediate
    body being a gravity assist. Leg k flies from ids[k] to ids[k + 1].

    Equality and hashing only use the ids; the names and back legs are
    metadata filled in when the sequence is built against a system.
    """
    ids: tuple
    names: tuple = field(default=(), compare=False)
    back_legs: tuple = field(default=(), compare=False)

    def __post_init__(self):
        ids = tuple(int(i) for i in self.ids)
        if len(ids) < 2:
            raise PreconditionError(f"A flyby sequence needs an origin and a destination, got {ids}")
        object.__setattr__(self, 'ids', ids)

    @classmethod
    def from_ids(cls, ids: Iterable[int], system: System) -> "FlybySequence":
        """
        Builds a sequence and its metadata.

        Raises:
            PreconditionError: Unknown body, bodies orbiting different attractors,
                or a direct leg from a body to itself.
        """
        bodies = [system.body(i) for i in ids]
        if len(bodies) == 2 and bodies[0].id == bodies[1].id:
            raise PreconditionError(f"Origin and destination are both {bodies[0].name}")
        system.common_attractor(bodies)
        ids = tuple(b.id for b in bodies)
        direction = mission_direction(system, ids[0], ids[-1])
        back_legs = tuple(k for k in range(len(ids) - 1) if is_back_leg(system, ids[k], ids[k + 1], direction))
        return cls(ids, names=tuple(b.name for b in bodies), back_legs=back_legs)

    @classmethod
    def from_string(cls, text: str, system: System) -> "FlybySequence":
        """
        Parses "3-2-3-4" or "Kerbin-Eve-Kerbin-Duna" (names are case-insensitive,
        ids and names can be mixed).
        """
        tokens = [t.strip() for t in text.split(SEPARATOR)]
        if any(not t for t in tokens):
            raise PreconditionError(f"Malformed flyby sequence {text!r}")
        keys = [int(t) if t.lstrip('+').isdigit() else t for t in tokens]
        return cls.from_ids([system.body(k).id for k in keys], system)

    def to_string(self) -> str:
        """Canonical form: ids joined with '-'."""
        return SEPARATOR.join(str(i) for i in self.ids)

    def __str__(self) -> str:
        if self.names:
            return SEPARATOR.join(self.names)
        return self.to_string()

    @property
    def origin(self) -> int:
        return self.ids[0]

    @property
    def destination(self) -> int:
        return self.ids[-1]

    @property
    def flybys(self) -> tuple:
        return self.ids[1:-1]

    @property
    def length(self) -> int:
        return len(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def legs(self) -> list[tuple[int, int]]:
        return list(zip(self.ids, self.ids[1:]))

    @property
    def swing_bys(self) -> int:
        return len(self.ids) - 2

    @property
    def resonant_swing_bys(self) -> int:
        return sum(1 for a, b in self.legs if a == b)

    @property
    def max_back_spacing(self) -> int:
        """Largest spacing between consecutive back legs, 0 with fewer than two."""
        return max(back_leg_spacings(self.back_legs), default=0)
