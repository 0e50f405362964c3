import threading

import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from flyby_planner.errors import NumericalError


class SpiceManager:
    """
    A singleton-like class wrapping the SPICE two-body routines (conics, prop2b, oscelt).
    No kernel is needed: body ephemerides come from osculating elements, so every
    state is a closed-form conic evaluation.

    CSPICE keeps global error state and is not thread-safe, so every call is serialized
    through one lock shared by all searches running in the process.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SpiceManager, cls).__new__(cls)
        return cls._instance

    def state_from_elements(self, rp: float, ecc: float, inc: float, lnode: float, argp: float,
                            m0: float, t0: float, mu: float, et: float) -> np.ndarray:
        """
        State of a conic orbit at a given epoch.

        Args:
            rp (float): Periapsis radius [km].
            ecc (float): Eccentricity (0 and equatorial inclinations are handled by SPICE).
            inc (float): Inclination [rad].
            lnode (float): Longitude of the ascending node [rad].
            argp (float): Argument of periapsis [rad].
            m0 (float): Mean anomaly at t0 [rad].
            t0 (float): Epoch of the elements [s].
            mu (float): Gravitational parameter of the attractor [km^3/s^2].
            et (float): Epoch of the requested state [s].

        Returns:
            np.ndarray: 6-element state [x, y, z, vx, vy, vz] in km and km/s.
        """
        if rp <= 0.0 or mu <= 0.0:
            raise NumericalError(f"Degenerate conic: rp={rp}, mu={mu}")
        elts = [rp, ecc, inc, lnode, argp, m0, t0, mu]
        try:
            with self._lock:
                return np.asarray(spice.conics(elts, et), dtype=float)
        except SpiceyError as e:
            raise NumericalError(f"SPICE conics failed: {e}") from e

    def propagate(self, state: np.ndarray, dt: float, mu: float) -> np.ndarray:
        """
        Propagates a two-body state by dt seconds (any conic, forwards or backwards).
        """
        if mu <= 0.0 or not np.any(state[0:3]):
            raise NumericalError("Cannot propagate a state at the attractor centre.")
        try:
            with self._lock:
                return np.asarray(spice.prop2b(mu, list(state), dt), dtype=float)
        except SpiceyError as e:
            raise NumericalError(f"SPICE prop2b failed: {e}") from e

    def elements_from_state(self, state: np.ndarray, et: float, mu: float) -> dict:
        """
        Osculating elements of a state.

        Returns:
            dict: {'rp', 'ecc', 'inc', 'lnode', 'argp', 'm0', 't0', 'mu'} (angles in radians).
        """
        try:
            with self._lock:
                elts = spice.oscelt(list(state), et, mu)
        except SpiceyError as e:
            raise NumericalError(f"SPICE oscelt failed: {e}") from e
        keys = ('rp', 'ecc', 'inc', 'lnode', 'argp', 'm0', 't0', 'mu')
        return dict(zip(keys, (float(v) for v in elts[:8])))

# Global accessibility
spice_manager = SpiceManager()
