from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from flyby_planner.mission.sequence import FlybySequence


class ManeuverKind(Enum):
    DEPARTURE = "departure"
    CORRECTION = "correction"
    INSERTION = "insertion"


@dataclass(eq=False)
class Maneuver:
    """
    An impulsive burn.

    Attributes:
        kind (ManeuverKind): Departure, mid-course correction or insertion.
        date (float): Burn time [s].
        position (np.ndarray): Position in the attractor frame [km].
        components (np.ndarray): [prograde, normal, radial] delta-v [km/s]. Parking orbit
            burns are tangential, so only their prograde component is non-zero.
        body_id (int): Body the burn relates to (departure body, flyby body of the leg, destination).
        ejection_angle (float): Departure only: angle [rad] from the body's prograde direction
            to the burn point on the parking orbit.
    """
    kind: ManeuverKind
    date: float
    position: np.ndarray
    components: np.ndarray
    body_id: int
    ejection_angle: Optional[float] = None

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.components))


@dataclass(frozen=True)
class FlybyDetails:
    """
    Geometry of one unpowered flyby.

    Attributes:
        body_id (int): Flyby body.
        periapsis_date (float): Closest approach [s].
        soi_enter_date (float): Entry into the sphere of influence [s].
        soi_exit_date (float): Exit from the sphere of influence [s].
        periapsis_radius (float): [km].
        periapsis_altitude (float): Above the surface [km].
        inclination (float): Hyperbola plane to the body's orbital plane [rad].
        turn_angle (float): Deflection of the excess velocity [rad].
    """
    body_id: int
    periapsis_date: float
    soi_enter_date: float
    soi_exit_date: float
    periapsis_radius: float
    periapsis_altitude: float
    inclination: float
    turn_angle: float


@dataclass(eq=False)
class Trajectory:
    """
    Realisation of a flyby sequence: one maneuver per body of the sequence
    (departure, one correction per flyby, insertion).

    leg_dates holds the departure date, every flyby periapsis date and the arrival date.
    """
    sequence: FlybySequence
    maneuvers: list[Maneuver]
    leg_dates: list[float]
    flybys: list[FlybyDetails] = field(default_factory=list)
    parameters: Optional[np.ndarray] = None

    @property
    def total_delta_v(self) -> float:
        return sum(m.magnitude for m in self.maneuvers)

    @property
    def departure_date(self) -> float:
        return self.leg_dates[0]

    @property
    def arrival_date(self) -> float:
        return self.leg_dates[-1]

    @property
    def duration(self) -> float:
        return self.arrival_date - self.departure_date

    @property
    def leg_durations(self) -> list[float]:
        return [b - a for a, b in zip(self.leg_dates, self.leg_dates[1:])]

    def maneuvers_of_kind(self, kind: ManeuverKind) -> list[Maneuver]:
        return [m for m in self.maneuvers if m.kind is kind]
