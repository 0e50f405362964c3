import math

import numpy as np

from flyby_planner.errors import NumericalError
from flyby_planner.trajectory.flyby import rotate_vector


def local_orbital_frame(r: np.ndarray, v: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Prograde / normal / radial-out unit vectors of the orbit through (r, v).

    prograde = v / |v|
    normal   = (r x v) / |r x v|
    radial   = prograde x normal (points away from the attractor on a circular orbit)

    The frame only depends on r and v, never on orbital elements, so circular and
    equatorial orbits are not singular. When r is parallel to v (rectilinear motion)
    the normal is taken from an arbitrary axis perpendicular to v.

    Raises:
        NumericalError: If the velocity is zero.
    """
    v_mag = np.linalg.norm(v)
    if v_mag < 1e-14:
        raise NumericalError("Local orbital frame undefined for a zero velocity.")
    prograde = v / v_mag

    h = np.cross(r, v)
    h_norm = np.linalg.norm(h)
    if h_norm < 1e-9 * max(np.linalg.norm(r), 1.0) * v_mag:
        # Singularity: Rectilinear trajectory (r parallel to v)
        perp_arbitrary = np.array([0.0, 0.0, 1.0]) if np.abs(prograde[2]) < 0.9 else np.array([0.0, 1.0, 0.0])
        normal = np.cross(prograde, perp_arbitrary)
        normal /= np.linalg.norm(normal)
    else:
        normal = h / h_norm

    radial = np.cross(prograde, normal)
    return prograde, normal, radial

def decompose_delta_v(delta_v: np.ndarray, r: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Projects an inertial delta-v vector on the local orbital frame of the
    pre-burn state (r, v).

    Returns:
        np.ndarray: [prograde, normal, radial] components [km/s].
    """
    prograde, normal, radial = local_orbital_frame(r, v)
    return np.array([np.dot(delta_v, prograde), np.dot(delta_v, normal), np.dot(delta_v, radial)])

def compose_delta_v(components: np.ndarray, r: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Inverse of decompose_delta_v: inertial vector from [prograde, normal, radial].
    """
    prograde, normal, radial = local_orbital_frame(r, v)
    return components[0] * prograde + components[1] * normal + components[2] * radial

def circular_velocity(mu: float, r: float) -> float:
    if r <= 0.0:
        raise NumericalError(f"Circular velocity at non-positive radius: {r}")
    return math.sqrt(mu / r)

def hyperbolic_burn(v_inf_mag: float, mu: float, r_park: float) -> float:
    """
    Delta-v of a tangential periapsis burn between a circular parking orbit of radius r_park
    and a hyperbola of excess velocity v_inf_mag (escape or capture, Oberth effect included).

    Delta V = sqrt(V_inf^2 + 2*mu/r) - sqrt(mu/r)
    """
    v_circ = circular_velocity(mu, r_park)
    v_peri = math.sqrt(v_inf_mag**2 + 2.0 * mu / r_park)
    return v_peri - v_circ

def ejection_angle(v_inf: np.ndarray, r_body: np.ndarray, v_body: np.ndarray, mu: float, r_park: float) -> float:
    """
    Angle [rad, 0..2pi) in the body's orbital plane from the body's prograde direction
    to the periapsis of the escape hyperbola, i.e. where the departure burn happens
    on a prograde equatorial parking orbit.

    Args:
        v_inf (np.ndarray): Departure excess velocity [km/s].
        r_body (np.ndarray): Body position relative to its attractor [km].
        v_body (np.ndarray): Body velocity relative to its attractor [km/s].
        mu (float): Gravitational parameter of the departure body [km^3/s^2].
        r_park (float): Parking orbit radius [km].
    """
    h = np.cross(r_body, v_body)
    n_hat = h / np.linalg.norm(h)

    # Excess velocity projected in the body's orbital plane
    u = v_inf - np.dot(v_inf, n_hat) * n_hat
    u_norm = np.linalg.norm(u)
    if u_norm < 1e-12:
        return 0.0
    u /= u_norm

    e = 1.0 + r_park * np.dot(v_inf, v_inf) / mu
    theta_inf = np.arccos(-1.0 / e)  # true anomaly of the outgoing asymptote
    periapsis_dir = rotate_vector(u, -theta_inf, n_hat)

    prograde = v_body - np.dot(v_body, n_hat) * n_hat
    prograde /= np.linalg.norm(prograde)

    angle = np.arctan2(np.dot(n_hat, np.cross(prograde, periapsis_dir)), np.dot(prograde, periapsis_dir))
    return float(angle % (2.0 * np.pi))
