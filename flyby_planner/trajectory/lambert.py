import math

import numpy as np
from scipy.optimize import brentq

from flyby_planner.errors import LambertError

# Single revolution transfers live in z < (2 pi)^2
Z_MAX = 4.0 * math.pi**2
# Upper bracket, far enough below Z_MAX for C(z) to stay representable
Z_HI = (2.0 * math.pi - 1e-4)**2


class LambertSolver:
    """
    A robust Lambert solver using Universal Variables.
    This implementation solves the boundary value problem: finding the velocity vectors
    at two points (r1, r2) given the time of flight (dt).
    The time of flight is monotonic in z for single revolution transfers, so the root
    is bracketed and found with Brent's method instead of a Newton iteration.
    """

    @staticmethod
    def solve(r1: np.ndarray, r2: np.ndarray, dt: float, mu: float, prograde: bool = True, tol: float = 1e-12) -> tuple[np.ndarray, np.ndarray]:
        """
        Solves Lambert's problem for the transfer between position vectors r1 and r2
        with time of flight dt.

        Args:
            r1 (np.ndarray): Initial position vector [km].
            r2 (np.ndarray): Final position vector [km].
            dt (float): Time of flight [seconds].
            mu (float): Gravitational parameter [km^3/s^2].
            prograde (bool): If True, solve for prograde orbit (inclination < 90).
                             If False, retrograde.
            tol (float): Absolute tolerance on the universal variable z.

        Returns:
            tuple[np.ndarray, np.ndarray]: (v1, v2) - Velocity vectors at r1 and r2 [km/s].

        Raises:
            LambertError: Degenerate geometry (zero radius, 180 degree transfer) or no root.
        """
        r1_mag = np.linalg.norm(r1)
        r2_mag = np.linalg.norm(r2)
        if r1_mag == 0.0 or r2_mag == 0.0:
            raise LambertError("Lambert problem with a position at the attractor centre.")
        if dt <= 0.0:
            raise LambertError(f"Non-positive time of flight: {dt}")

        cross_12 = np.cross(r1, r2)

        # Determine the change in true anomaly, dnu
        cos_dnu = np.dot(r1, r2) / (r1_mag * r2_mag)

        # Numerical stability clamp
        cos_dnu = min(1.0, max(-1.0, cos_dnu))

        dnu = math.acos(cos_dnu)
        if prograde:
            if cross_12[2] < 0:
                dnu = 2*math.pi - dnu
        else:
            if cross_12[2] >= 0:
                dnu = 2*math.pi - dnu

        # "A" constant
        one_minus_cos = 1.0 - math.cos(dnu)
        if one_minus_cos < 1e-14:
            raise LambertError("Zero transfer angle, the transfer plane is undefined.")
        A = math.sin(dnu) * math.sqrt((r1_mag * r2_mag) / one_minus_cos)

        if abs(A) < 1e-10 * math.sqrt(r1_mag * r2_mag):
            raise LambertError("Limit case A=0 (180 degree transfer) not handled.")

        sqrt_mu = math.sqrt(mu)

        def tof_equation(z):
            # Universal variable time of flight equation
            c_z = LambertSolver.stumpC(z)
            if c_z <= 0.0:
                raise LambertError(f"Stumpff C(z) vanished at z={z}")
            s_z = LambertSolver.stumpS(z)
            y = r1_mag + r2_mag + A * (z * s_z - 1.0) / math.sqrt(c_z)
            if y <= 0.0:
                # TOF tends to 0 when y -> 0+, keeps the function monotonic
                return -dt
            x = math.sqrt(y / c_z)
            return (x**3 * s_z + A * math.sqrt(y)) / sqrt_mu - dt

        z_hi = Z_HI
        if tof_equation(z_hi) < 0.0:
            raise LambertError("Time of flight too long for a single revolution transfer.")

        try:
            z_lo = -Z_MAX
            for _ in range(12):
                if tof_equation(z_lo) < 0.0:
                    break
                z_lo *= 2.0
            else:
                raise LambertError("Could not bracket the hyperbolic Lambert solution.")

            z = brentq(tof_equation, z_lo, z_hi, xtol=tol, maxiter=200)
        except (RuntimeError, ValueError, OverflowError) as e:
            raise LambertError(f"Lambert solver failed to converge: {e}") from e

        C = LambertSolver.stumpC(z)
        S = LambertSolver.stumpS(z)
        y = r1_mag + r2_mag + A * (z * S - 1.0) / math.sqrt(C)
        if y <= 0.0:
            raise LambertError("Lambert solution collapsed to y <= 0.")

        f = 1 - (y / r1_mag)
        g = A * math.sqrt(y / mu)
        g_dot = 1 - (y / r2_mag)

        v1 = (r2 - f * r1) / g
        v2 = (g_dot * r2 - r1) / g

        return v1, v2

    @staticmethod
    def stumpS(z):
        if z > 1e-6:
            sz = math.sqrt(z)
            return (sz - math.sin(sz)) / sz**3
        elif z < -1e-6:
            sz = math.sqrt(-z)
            return (math.sinh(sz) - sz) / sz**3
        else:
            return 1.0/6.0 - z/120.0

    @staticmethod
    def stumpC(z):
        if z > 1e-6:
            return (1 - math.cos(math.sqrt(z))) / z
        elif z < -1e-6:
            return (math.cosh(math.sqrt(-z)) - 1) / (-z)
        else:
            return 0.5 - z/24.0
