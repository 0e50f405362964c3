import logging
import math
from typing import Iterable, Iterator, Union

import numpy as np

from flyby_planner.errors import PreconditionError
from flyby_planner.system.body import Body, body_from_dict

logger = logging.getLogger(__name__)

BodyKey = Union[int, str, Body]


class System:
    """
    Immutable planetary system: one central body and the bodies orbiting it
    (or orbiting each other). Bodies reference their attractor by id; the
    downward index (children) is built once at construction.

    The object is never mutated after construction, so it can be shared by
    concurrent searches.
    """

    def __init__(self, bodies: Iterable[Body]):
        bodies = list(bodies)
        self._by_id: dict[int, Body] = {}
        self._by_name: dict[str, Body] = {}
        for body in bodies:
            if body.id in self._by_id:
                raise PreconditionError(f"Duplicate body id {body.id}")
            key = body.name.lower()
            if key in self._by_name:
                raise PreconditionError(f"Duplicate body name {body.name!r}")
            self._by_id[body.id] = body
            self._by_name[key] = body

        centrals = [b for b in bodies if b.is_central]
        if len(centrals) != 1:
            raise PreconditionError(f"A system needs exactly one central body, found {len(centrals)}")
        self._central = centrals[0]

        self._children: dict[int, list[int]] = {b.id: [] for b in bodies}
        for body in bodies:
            self._check_body(body)
            if not body.is_central:
                self._children[body.attractor_id].append(body.id)
        for ids in self._children.values():
            ids.sort(key=lambda i: self._by_id[i].elements.sma)

        # Every body must reach the central body by following its attractors
        for body in bodies:
            self.ancestors(body.id)

        logger.debug("System built with %d bodies around %s", len(bodies), self._central.name)

    def _check_body(self, body: Body):
        if body.mu <= 0.0 or body.radius <= 0.0:
            raise PreconditionError(f"{body.name}: mu and radius must be positive")
        if body.soi <= body.radius:
            raise PreconditionError(f"{body.name}: sphere of influence smaller than the body")
        if body.atmosphere < 0.0:
            raise PreconditionError(f"{body.name}: negative atmosphere height")
        if body.is_central:
            return
        if body.attractor_id not in self._by_id:
            raise PreconditionError(f"{body.name}: unknown attractor {body.attractor_id}")
        if body.attractor_id == body.id:
            raise PreconditionError(f"{body.name} orbits itself")
        el = body.elements
        if el is None:
            raise PreconditionError(f"{body.name}: orbiting body without orbital elements")
        if el.sma <= 0.0 or not 0.0 <= el.ecc < 1.0:
            raise PreconditionError(f"{body.name}: only closed orbits are supported (sma={el.sma}, ecc={el.ecc})")

    @classmethod
    def from_dicts(cls, data: Iterable[dict]) -> "System":
        """
        Builds a system from body mappings (see body_from_dict). The attractor
        gravitational parameters are looked up to fill in missing SOI radii.
        """
        data = list(data)
        try:
            mus = {d['id']: d['mu'] for d in data}
        except KeyError as e:
            raise PreconditionError(f"Missing body field {e}") from e
        return cls(body_from_dict(d, mus.get(d.get('attractor'))) for d in data)

    # Lookup

    def body(self, key: BodyKey) -> Body:
        """Body by id, by name (case-insensitive) or the body itself."""
        if isinstance(key, Body):
            key = key.id
        if isinstance(key, str):
            body = self._by_name.get(key.strip().lower())
        else:
            body = self._by_id.get(key)
        if body is None:
            raise PreconditionError(f"Unknown body {key!r}")
        return body

    def __contains__(self, key) -> bool:
        if isinstance(key, Body):
            return self._by_id.get(key.id) == key
        if isinstance(key, str):
            return key.strip().lower() in self._by_name
        return key in self._by_id

    def __iter__(self) -> Iterator[Body]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    @property
    def central(self) -> Body:
        return self._central

    # Tree queries

    def attractor(self, key: BodyKey) -> Body:
        body = self.body(key)
        if body.is_central:
            raise PreconditionError(f"{body.name} is the central body and has no attractor")
        return self._by_id[body.attractor_id]

    def ancestors(self, key: BodyKey) -> list[Body]:
        """Attractors of a body, nearest first, ending with the central body."""
        body = self.body(key)
        chain = []
        seen = {body.id}
        while not body.is_central:
            body = self._by_id[body.attractor_id]
            if body.id in seen:
                raise PreconditionError(f"Cycle in the attractor tree at {body.name}")
            seen.add(body.id)
            chain.append(body)
        return chain

    def children(self, key: BodyKey) -> list[Body]:
        """Bodies orbiting the given body, ordered by semi-major axis."""
        body = self.body(key)
        return [self._by_id[i] for i in self._children[body.id]]

    def descendants(self, key: BodyKey) -> list[Body]:
        result = []
        stack = list(reversed(self.children(key)))
        while stack:
            body = stack.pop()
            result.append(body)
            stack.extend(reversed(self.children(body.id)))
        return result

    def siblings(self, key: BodyKey) -> list[Body]:
        """Bodies sharing the attractor of the given body (itself included)."""
        return self.children(self.attractor(key).id)

    def orbit_rank(self, key: BodyKey) -> int:
        """Position of the body among its siblings, innermost first."""
        body = self.body(key)
        return self._children[self.attractor(body).id].index(body.id)

    def common_attractor(self, keys: Iterable[BodyKey]) -> Body:
        """
        Attractor shared by all the given bodies.

        Raises:
            PreconditionError: If the bodies do not orbit the same attractor.
        """
        attractors = {self.attractor(k).id for k in keys}
        if len(attractors) != 1:
            names = sorted(self._by_id[i].name for i in attractors)
            raise PreconditionError(f"Bodies do not share one attractor: {names}")
        return self._by_id[attractors.pop()]

    # Ephemeris

    def state(self, key: BodyKey, t: float) -> np.ndarray:
        """
        State [x, y, z, vx, vy, vz] of a body relative to its attractor at time t [s].
        """
        body = self.body(key)
        if body.is_central:
            return np.zeros(6)
        return body.state(t, self._by_id[body.attractor_id].mu)

    def period(self, key: BodyKey) -> float:
        body = self.body(key)
        if body.is_central:
            return math.inf
        return body.period(self._by_id[body.attractor_id].mu)

    def hohmann_time(self, origin: BodyKey, target: BodyKey) -> float:
        """
        Half period of the ellipse tangent to both orbits (semi-major axes used as radii).
        For the same body this is half of its orbital period.
        """
        a1 = self.body(origin).elements.sma
        a2 = self.body(target).elements.sma
        mu = self.common_attractor([origin, target]).mu
        a_t = 0.5 * (a1 + a2)
        return math.pi * math.sqrt(a_t**3 / mu)
