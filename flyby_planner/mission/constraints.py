from dataclasses import dataclass
from typing import Optional

from flyby_planner.config import CalendarSettings
from flyby_planner.errors import PreconditionError


@dataclass(frozen=True)
class TrajectoryConstraints:
    """
    Envelope of a trajectory search.

    Attributes:
        start_date (float): Earliest departure [s].
        end_date (float): Latest departure [s].
        departure_altitude (float): Altitude of the circular parking orbit at the origin [km].
        destination_altitude (float): Altitude of the circular capture orbit at the destination [km].
        max_duration (float): Maximum duration from departure to arrival [s], None for no cap.
        no_insertion (bool): Fly past the destination instead of capturing.
    """
    start_date: float
    end_date: float
    departure_altitude: float
    destination_altitude: float
    max_duration: Optional[float] = None
    no_insertion: bool = False

    @classmethod
    def from_days(cls, start_day: float, end_day: float, departure_altitude: float, destination_altitude: float,
                  max_duration_days: Optional[float] = None, no_insertion: bool = False,
                  calendar: CalendarSettings = CalendarSettings()) -> "TrajectoryConstraints":
        """Constraints with dates and maximum duration given in days of the given calendar."""
        max_duration = None if max_duration_days is None else calendar.days_to_seconds(max_duration_days)
        return cls(calendar.days_to_seconds(start_day), calendar.days_to_seconds(end_day),
                   departure_altitude, destination_altitude, max_duration, no_insertion)

    def validate(self):
        """
        Checks that do not need the system (altitudes are checked against the bodies
        when the search space is built).
        """
        if self.end_date < self.start_date:
            raise PreconditionError(
                f"Departure window ends before it starts ({self.end_date} < {self.start_date})"
            )
        if self.max_duration is not None and self.max_duration <= 0.0:
            raise PreconditionError(f"Maximum duration must be positive, got {self.max_duration}")

    @property
    def window(self) -> float:
        return self.end_date - self.start_date
