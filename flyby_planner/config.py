from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class CalendarSettings:
    """
    Calendar of the simulated system. Durations entered in days are converted
    with the local day length (stock Kerbal time: 6 hour days, 426 day years).
    """
    hours_per_day: float = 6.0
    days_per_year: int = 426

    @property
    def seconds_per_day(self) -> float:
        return self.hours_per_day * 3600.0

    @property
    def seconds_per_year(self) -> float:
        return self.days_per_year * self.seconds_per_day

    def days_to_seconds(self, days: float) -> float:
        return days * self.seconds_per_day

    def seconds_to_days(self, seconds: float) -> float:
        return seconds / self.seconds_per_day


@dataclass(frozen=True)
class SolverSettings:
    """
    Tuning of the differential evolution search over trajectory parameters.

    Attributes:
        population_size (int): Population multiplier (individuals = population_size * dimension).
        max_generations (int): Generation budget; progress is reported as a fraction of it.
        convergence_tolerance (float): Best delta-v improvement [km/s] below which a generation counts as stalled.
        stall_generations (int): Number of consecutive stalled generations ending the search.
        mutation (tuple): Differential weight dithering range.
        recombination (float): Crossover probability.
        seed (int): Seed of the random generator (None for a random run).
        flyby_altitude_margin (float): Clearance [km] kept above radius + atmosphere at flyby periapsis.
        max_periapsis_radii (float): Largest flyby periapsis searched, in body radii (capped by the SOI).
        coast_fraction_bounds (tuple): Bounds of the fraction of a leg flown before its correction burn.
        leg_duration_factors (tuple): Leg duration bounds as multiples of the Hohmann transfer time.
        resonant_duration_factors (tuple): Resonant leg duration bounds as multiples of the body period.
    """
    population_size: int = 20
    max_generations: int = 500
    convergence_tolerance: float = 1e-4
    stall_generations: int = 60
    mutation: Tuple[float, float] = (0.5, 1.0)
    recombination: float = 0.7
    seed: Optional[int] = None
    flyby_altitude_margin: float = 5.0
    max_periapsis_radii: float = 30.0
    coast_fraction_bounds: Tuple[float, float] = (0.05, 0.95)
    leg_duration_factors: Tuple[float, float] = (0.35, 2.5)
    resonant_duration_factors: Tuple[float, float] = (1.0, 3.0)


@dataclass(frozen=True)
class PlannerConfig:
    calendar: CalendarSettings = field(default_factory=CalendarSettings)
    solver: SolverSettings = field(default_factory=SolverSettings)
    progress_flush_timeout: float = 1.0  # seconds

    @classmethod
    def from_dict(cls, data: dict) -> "PlannerConfig":
        """
        Builds a configuration from a nested mapping, e.g.
        {'calendar': {'hours_per_day': 24}, 'solver': {'max_generations': 200}}.
        Missing keys keep their defaults; unknown keys raise a ValueError.
        """
        data = dict(data)
        calendar = _build(CalendarSettings, data.pop('calendar', {}))
        solver = _build(SolverSettings, data.pop('solver', {}))
        base = _build(cls, data)
        return replace(base, calendar=calendar, solver=solver)

    def with_solver(self, **overrides) -> "PlannerConfig":
        return replace(self, solver=replace(self.solver, **overrides))


def _build(kind, values: dict):
    known = {f.name for f in fields(kind)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {kind.__name__} keys: {sorted(unknown)}")
    converted = {}
    for key, value in values.items():
        # tuples arrive as lists from JSON/YAML documents
        converted[key] = tuple(value) if isinstance(value, list) else value
    return kind(**converted)
