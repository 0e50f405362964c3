import logging
import math
from typing import Optional

import numpy as np

from flyby_planner.config import SolverSettings
from flyby_planner.errors import InfeasibleTrajectoryError, NumericalError, PreconditionError
from flyby_planner.mission.constraints import TrajectoryConstraints
from flyby_planner.mission.sequence import FlybySequence
from flyby_planner.mission.trajectory import FlybyDetails, Maneuver, ManeuverKind, Trajectory
from flyby_planner.spice.manager import spice_manager
from flyby_planner.system.system import System
from flyby_planner.trajectory.flyby import (
    compute_outgoing_v_inf,
    compute_turn_angle,
    hyperbola_inclination,
    hyperbolic_time_to_radius,
)
from flyby_planner.trajectory.lambert import LambertSolver
from flyby_planner.trajectory.maneuver import decompose_delta_v, ejection_angle, hyperbolic_burn

logger = logging.getLogger(__name__)

# Any candidate violating a constraint costs more than a real trajectory.
INFEASIBLE_COST = 1.0e6
# Candidates whose evaluation failed numerically rank below every infeasible one.
NUMERICAL_PENALTY = 1.0e7


class MGAProblem:
    """
    Multiple gravity assist trajectory with one correction burn per flyby leg.

    Decision vector:
        x = [t0, T_1, ..., T_{n-1}, rp_1, beta_1, eta_1, ..., rp_{n-2}, beta_{n-2}, eta_{n-2}]

    t0 is the departure date, T_k the duration of leg k. At flyby i the incoming
    excess velocity is bent by an unpowered hyperbola of periapsis rp_i and B-plane
    angle beta_i; the spacecraft coasts for eta_i * T of the next leg, then a correction
    burn puts it on the Lambert arc reaching the next body at the end of the leg.
    Departure and insertion are tangential burns from/to circular parking orbits.

    Raises (on construction):
        PreconditionError: Sequence not on the system, bodies orbiting different
            attractors, inverted departure window or parking altitude out of range.
        InfeasibleTrajectoryError: Shortest possible mission longer than the maximum duration.
    """

    def __init__(self, system: System, sequence: FlybySequence, constraints: TrajectoryConstraints,
                 settings: Optional[SolverSettings] = None):
        self.system = system
        self.sequence = sequence
        self.constraints = constraints
        self.settings = settings or SolverSettings()

        constraints.validate()
        self.bodies = [system.body(i) for i in sequence.ids]
        if len(self.bodies) == 2 and self.bodies[0].id == self.bodies[1].id:
            raise PreconditionError(f"Origin and destination are both {self.bodies[0].name}")
        self.attractor = system.common_attractor(self.bodies)

        origin, destination = self.bodies[0], self.bodies[-1]
        self.r_park_departure = self._parking_radius(origin, constraints.departure_altitude)
        self.r_park_arrival = self._parking_radius(destination, constraints.destination_altitude)

        self.n_legs = len(self.bodies) - 1
        self.n_flybys = len(self.bodies) - 2
        self.bounds = self._build_bounds()

    @staticmethod
    def _parking_radius(body, altitude: float) -> float:
        if not 0.0 <= altitude <= body.soi - body.radius:
            raise PreconditionError(
                f"Parking altitude {altitude} km out of range for {body.name} [0, {body.soi - body.radius:.1f}]"
            )
        return body.radius + altitude

    def _leg_duration_bounds(self, k: int) -> tuple[float, float]:
        source, target = self.bodies[k], self.bodies[k + 1]
        if source.id == target.id:
            lo_f, hi_f = self.settings.resonant_duration_factors
            reference = self.system.period(source)
        else:
            lo_f, hi_f = self.settings.leg_duration_factors
            reference = self.system.hohmann_time(source, target)
        return lo_f * reference, hi_f * reference

    def _build_bounds(self) -> list[tuple[float, float]]:
        c = self.constraints
        # Differential evolution needs a non-degenerate interval
        t0_hi = c.end_date if c.end_date > c.start_date else c.start_date + 1.0
        bounds = [(c.start_date, t0_hi)]

        legs = [self._leg_duration_bounds(k) for k in range(self.n_legs)]
        if c.max_duration is not None:
            shortest = sum(lo for lo, _ in legs)
            if shortest > c.max_duration:
                raise InfeasibleTrajectoryError(
                    f"Shortest {self.sequence} mission lasts {shortest:.0f} s, "
                    f"more than the maximum duration {c.max_duration:.0f} s"
                )
            legs = [(lo, max(min(hi, c.max_duration), lo + 1.0)) for lo, hi in legs]
        bounds.extend(legs)

        s = self.settings
        for body in self.bodies[1:-1]:
            rp_hi = min(body.soi, body.radius * s.max_periapsis_radii)
            bounds.append((body.radius, rp_hi))
            bounds.append((0.0, 2.0 * np.pi))
            bounds.append(tuple(s.coast_fraction_bounds))
        return bounds

    @property
    def dimension(self) -> int:
        return len(self.bounds)

    def decode(self, x: np.ndarray) -> tuple[float, np.ndarray, np.ndarray]:
        """
        Returns:
            tuple: (t0, leg durations, flyby parameters as rows [rp, beta, eta])
        """
        x = np.asarray(x, dtype=float)
        t0 = float(x[0])
        tofs = x[1:1 + self.n_legs]
        flybys = x[1 + self.n_legs:].reshape(self.n_flybys, 3)
        return t0, tofs, flybys

    def _simulate(self, x: np.ndarray, detailed: bool = False) -> dict:
        """
        Flies the trajectory encoded by x.

        Returns:
            dict: 'delta_v' (total, km/s) and 'violation' (0 when feasible), plus when
                detailed is set the 'maneuvers', 'flybys' and 'dates' of the trajectory.

        Raises:
            NumericalError: Degenerate geometry or a failed Lambert / SPICE evaluation.
        """
        t0, tofs, flybys = self.decode(x)
        mu = self.attractor.mu
        dates = t0 + np.concatenate(([0.0], np.cumsum(tofs)))
        states = [self.system.state(b, t) for b, t in zip(self.bodies, dates)]

        violation = 0.0
        max_duration = self.constraints.max_duration
        if max_duration is not None and dates[-1] - t0 > max_duration:
            violation += (dates[-1] - t0 - max_duration) / max_duration

        maneuvers = []
        details = []

        # Departure
        origin = self.bodies[0]
        r0, v_body0 = states[0][:3], states[0][3:]
        v_dep, v_arr = LambertSolver.solve(r0, states[1][:3], tofs[0], mu)
        v_inf_dep = v_dep - v_body0
        dv_dep = hyperbolic_burn(np.linalg.norm(v_inf_dep), origin.mu, self.r_park_departure)
        total = dv_dep
        if detailed:
            maneuvers.append(Maneuver(
                ManeuverKind.DEPARTURE, float(dates[0]), r0.copy(), np.array([dv_dep, 0.0, 0.0]), origin.id,
                ejection_angle(v_inf_dep, r0, v_body0, origin.mu, self.r_park_departure)
            ))

        # Flybys and correction burns
        margin = self.settings.flyby_altitude_margin
        for i, (rp, beta, eta) in enumerate(flybys):
            k = i + 1
            body = self.bodies[k]
            r_body, v_body = states[k][:3], states[k][3:]
            v_inf_in = v_arr - v_body
            v_inf_out, b_vec, _ = compute_outgoing_v_inf(v_inf_in, beta, rp, body.mu, pole=body.orbit_normal())

            floor = body.min_flyby_radius(margin)
            if rp < floor:
                violation += (floor - rp) / floor

            coast = eta * tofs[k]
            t_dsm = dates[k] + coast
            state_dsm = spice_manager.propagate(np.concatenate((r_body, v_body + v_inf_out)), coast, mu)
            r_dsm, v_before = state_dsm[:3], state_dsm[3:]

            body_at_dsm = self.system.state(body, t_dsm)[:3]
            distance = np.linalg.norm(r_dsm - body_at_dsm)
            if distance < body.soi:
                violation += (body.soi - distance) / body.soi

            v_after, v_arr = LambertSolver.solve(r_dsm, states[k + 1][:3], tofs[k] - coast, mu)
            dsm = v_after - v_before
            total += np.linalg.norm(dsm)

            if detailed:
                maneuvers.append(Maneuver(
                    ManeuverKind.CORRECTION, float(t_dsm), r_dsm.copy(), decompose_delta_v(dsm, r_dsm, v_before), body.id
                ))
                v_inf_mag = np.linalg.norm(v_inf_in)
                dt_soi = hyperbolic_time_to_radius(v_inf_mag, body.mu, rp, body.soi)
                details.append(FlybyDetails(
                    body_id=body.id,
                    periapsis_date=float(dates[k]),
                    soi_enter_date=float(dates[k] - dt_soi),
                    soi_exit_date=float(dates[k] + dt_soi),
                    periapsis_radius=float(rp),
                    periapsis_altitude=float(rp - body.radius),
                    inclination=hyperbola_inclination(v_inf_in, b_vec, body.orbit_normal()),
                    turn_angle=float(compute_turn_angle(v_inf_mag, body.mu, rp)),
                ))

        # Insertion
        destination = self.bodies[-1]
        v_inf_arr = v_arr - states[-1][3:]
        if self.constraints.no_insertion:
            dv_ins = 0.0
        else:
            dv_ins = hyperbolic_burn(np.linalg.norm(v_inf_arr), destination.mu, self.r_park_arrival)
        total += dv_ins
        if detailed:
            # Capture burns are retrograde
            maneuvers.append(Maneuver(
                ManeuverKind.INSERTION, float(dates[-1]), states[-1][:3].copy(), np.array([-dv_ins, 0.0, 0.0]),
                destination.id
            ))

        if not np.isfinite(total):
            raise NumericalError("Non-finite delta-v")
        result = {'delta_v': float(total), 'violation': float(violation)}
        if detailed:
            result.update(maneuvers=maneuvers, flybys=details, dates=[float(d) for d in dates])
        return result

    def evaluate(self, x: np.ndarray) -> tuple[float, float]:
        """
        Returns:
            tuple: (total delta-v [km/s], constraint violation, 0 when feasible)
        """
        result = self._simulate(x)
        return result['delta_v'], result['violation']

    def objective(self, x: np.ndarray) -> float:
        """
        Cost minimised by the solver: the total delta-v of feasible candidates,
        INFEASIBLE_COST plus the violation for infeasible ones, NUMERICAL_PENALTY
        for candidates that cannot be evaluated. Always finite.
        """
        try:
            delta_v, violation = self.evaluate(x)
        except (ArithmeticError, ValueError) as e:
            logger.debug("Rejected candidate %s: %s", x, e)
            return NUMERICAL_PENALTY
        if violation > 0.0:
            return INFEASIBLE_COST + min(violation, NUMERICAL_PENALTY - INFEASIBLE_COST - 1.0)
        return delta_v

    def build_trajectory(self, x: np.ndarray) -> Trajectory:
        """Materialises a candidate into a Trajectory (dates, positions, burn components)."""
        result = self._simulate(x, detailed=True)
        return Trajectory(
            sequence=self.sequence,
            maneuvers=result['maneuvers'],
            leg_dates=result['dates'],
            flybys=result['flybys'],
            parameters=np.array(x, dtype=float),
        )


def is_feasible_cost(cost: float) -> bool:
    return math.isfinite(cost) and cost < INFEASIBLE_COST
