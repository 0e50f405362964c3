import math
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np

from flyby_planner.errors import PreconditionError
from flyby_planner.spice.manager import spice_manager


@dataclass(frozen=True)
class OrbitalElements:
    """
    Keplerian elements of a body around its attractor.

    Attributes:
        sma (float): Semi-major axis [km].
        ecc (float): Eccentricity (elliptic orbits only, 0 <= ecc < 1).
        inc (float): Inclination [rad].
        lan (float): Longitude of the ascending node [rad].
        argp (float): Argument of periapsis [rad].
        mean_anomaly (float): Mean anomaly at epoch [rad].
        epoch (float): Epoch of the elements [s].
    """
    sma: float
    ecc: float = 0.0
    inc: float = 0.0
    lan: float = 0.0
    argp: float = 0.0
    mean_anomaly: float = 0.0
    epoch: float = 0.0

    @classmethod
    def from_degrees(cls, sma: float, ecc: float = 0.0, inc_deg: float = 0.0, lan_deg: float = 0.0,
                     argp_deg: float = 0.0, mean_anomaly: float = 0.0, epoch: float = 0.0) -> "OrbitalElements":
        return cls(sma, ecc, math.radians(inc_deg), math.radians(lan_deg), math.radians(argp_deg),
                   mean_anomaly, epoch)

    @property
    def periapsis(self) -> float:
        return self.sma * (1.0 - self.ecc)

    @property
    def apoapsis(self) -> float:
        return self.sma * (1.0 + self.ecc)


@dataclass(frozen=True)
class Body:
    """
    A body of the planetary system. The central star has no attractor and no elements.

    Attributes:
        id (int): Unique identifier.
        name (str): Display name.
        mu (float): Gravitational parameter [km^3/s^2].
        radius (float): Mean radius [km].
        attractor_id (int): Id of the body it orbits, None for the central body.
        elements (OrbitalElements): Orbit around the attractor, None for the central body.
        soi (float): Sphere of influence radius [km], infinite for the central body.
        atmosphere (float): Atmosphere height [km], flybys must stay above it.
    """
    id: int
    name: str
    mu: float
    radius: float
    attractor_id: Optional[int] = None
    elements: Optional[OrbitalElements] = None
    soi: float = math.inf
    atmosphere: float = 0.0

    @property
    def is_central(self) -> bool:
        return self.attractor_id is None

    def state(self, t: float, attractor_mu: float) -> np.ndarray:
        """
        State [x, y, z, vx, vy, vz] relative to the attractor at time t [s].
        """
        if self.elements is None:
            return np.zeros(6)
        el = self.elements
        return spice_manager.state_from_elements(
            el.periapsis, el.ecc, el.inc, el.lan, el.argp, el.mean_anomaly, el.epoch, attractor_mu, t
        )

    def period(self, attractor_mu: float) -> float:
        if self.elements is None:
            return math.inf
        return 2.0 * math.pi * math.sqrt(self.elements.sma**3 / attractor_mu)

    def orbit_normal(self) -> np.ndarray:
        """Unit angular momentum direction of the body's orbit."""
        if self.elements is None:
            return np.array([0.0, 0.0, 1.0])
        inc, lan = self.elements.inc, self.elements.lan
        return np.array([np.sin(inc) * np.sin(lan), -np.sin(inc) * np.cos(lan), np.cos(inc)])

    def min_flyby_radius(self, margin: float = 0.0) -> float:
        return self.radius + self.atmosphere + margin


def laplace_soi(sma: float, mu: float, attractor_mu: float) -> float:
    """Laplace sphere of influence: a * (m / M)^(2/5)."""
    return sma * (mu / attractor_mu)**0.4


def body_from_dict(data: dict, attractor_mu: Optional[float] = None) -> Body:
    """
    Builds a Body from a mapping with keys
    id, name, mu, radius, [attractor, orbit{sma, ecc, inc, lan, argp, mean_anomaly, epoch}, soi, atmosphere].
    Angles of the 'orbit' mapping are in degrees, except the mean anomaly (radians).
    """
    try:
        orbit = data.get('orbit')
        elements = None
        if orbit is not None:
            elements = OrbitalElements.from_degrees(
                orbit['sma'], orbit.get('ecc', 0.0), orbit.get('inc', 0.0), orbit.get('lan', 0.0),
                orbit.get('argp', 0.0), orbit.get('mean_anomaly', 0.0), orbit.get('epoch', 0.0)
            )
        soi = data.get('soi')
        if soi is None:
            if elements is None or attractor_mu is None:
                soi = math.inf
            else:
                warnings.warn(f"No SOI radius given for {data['name']}, using the Laplace approximation.")
                soi = laplace_soi(elements.sma, data['mu'], attractor_mu)
        return Body(
            id=int(data['id']),
            name=str(data['name']),
            mu=float(data['mu']),
            radius=float(data['radius']),
            attractor_id=data.get('attractor'),
            elements=elements,
            soi=float(soi),
            atmosphere=float(data.get('atmosphere', 0.0)),
        )
    except KeyError as e:
        raise PreconditionError(f"Missing body field {e} in {data!r}") from e
