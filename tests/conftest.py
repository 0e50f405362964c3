import numpy as np
import pytest

from flyby_planner.system.body import Body, OrbitalElements
from flyby_planner.system.system import System
from flyby_planner.trajectory.maneuver import hyperbolic_burn

MU_SUN = 1.32712440018e11
MU_EARTH = 398600.4418
MU_MARS = 42828.37
R_EARTH_ORBIT = 1.496e8
R_MARS_ORBIT = 2.279e8
PARKING_ALTITUDE = 200.0


@pytest.fixture(scope="session")
def inner_system():
    """Coplanar circular Earth and Mars orbits around the Sun."""
    return System([
        Body(0, "Sun", MU_SUN, 696000.0),
        Body(1, "Earth", MU_EARTH, 6378.137, attractor_id=0, soi=924000.0, atmosphere=100.0,
             elements=OrbitalElements(R_EARTH_ORBIT)),
        Body(2, "Mars", MU_MARS, 3396.19, attractor_id=0, soi=577000.0, atmosphere=50.0,
             elements=OrbitalElements(R_MARS_ORBIT)),
    ])


@pytest.fixture(scope="session")
def hohmann_delta_v():
    """Closed-form Hohmann transfer between circular parking orbits at both planets."""
    r1, r2 = R_EARTH_ORBIT, R_MARS_ORBIT
    v_inf_dep = np.sqrt(MU_SUN / r1) * (np.sqrt(2 * r2 / (r1 + r2)) - 1)
    v_inf_arr = np.sqrt(MU_SUN / r2) * (1 - np.sqrt(2 * r1 / (r1 + r2)))
    return (hyperbolic_burn(v_inf_dep, MU_EARTH, 6378.137 + PARKING_ALTITUDE)
            + hyperbolic_burn(v_inf_arr, MU_MARS, 3396.19 + PARKING_ALTITUDE))
