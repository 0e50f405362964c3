import math

import numpy as np

from flyby_planner.errors import NumericalError


def compute_turn_angle(v_inf_mag: float, mu: float, rp: float) -> float:
    """
    Computes the turn angle (delta) for a hyperbolic flyby.

    Args:
        v_inf_mag (float): Hyperbolic excess velocity magnitude [km/s].
        mu (float): Gravitational parameter of the flyby body [km^3/s^2].
        rp (float): Periapsis radius [km].

    Returns:
        float: Turn angle in radians.
    """
    # delta = 2 * arcsin(1 / (1 + rp * v_inf^2 / mu))
    e = 1.0 + (rp * v_inf_mag**2) / mu
    delta = 2.0 * np.arcsin(1.0 / e)
    return delta

def compute_aiming_radius(v_inf_mag: float, mu: float, rp: float) -> float:
    """
    Computes the aiming radius (b), also known as the impact parameter.

    Args:
        v_inf_mag (float): Hyperbolic excess velocity magnitude [km/s].
        mu (float): Gravitational parameter [km^3/s^2].
        rp (float): Periapsis radius [km].

    Returns:
        float: Aiming radius [km].

    Note:
        b = rp * sqrt(1 + 2*mu/(rp*v_inf^2))
    """
    term = 1.0 + (2.0 * mu) / (rp * v_inf_mag**2)
    b = rp * np.sqrt(term)
    return b

def rotate_vector(vec: np.ndarray, angle: float, axis: np.ndarray) -> np.ndarray:
    """
    Rotates a vector by a given angle around a specified axis using Rodrigues' rotation formula.

    Args:
        vec (np.ndarray): Vector to rotate.
        angle (float): Rotation angle [radians].
        axis (np.ndarray): Axis of rotation (normalized internally).

    Returns:
        np.ndarray: Rotated vector.
    """
    axis = axis / np.linalg.norm(axis)
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)

    # Rodrigues formula: v_rot = v*cos(a) + (k x v)*sin(a) + k*(k.v)*(1 - cos(a))
    cross_prod = np.cross(axis, vec)
    dot_prod = np.dot(axis, vec)

    return vec * cos_a + cross_prod * sin_a + axis * dot_prod * (1 - cos_a)

def bplane_axes(s_hat: np.ndarray, pole: np.ndarray = None) -> tuple[np.ndarray, np.ndarray]:
    """
    T and R axes of the B-plane for an incoming asymptote direction S.
    T = (S x pole) / |S x pole|, R = S x T. When S is nearly parallel to the pole
    an arbitrary perpendicular axis is used instead.
    """
    if pole is None:
        pole = np.array([0.0, 0.0, 1.0])
    pole = pole / np.linalg.norm(pole)
    if np.abs(np.dot(s_hat, pole)) > 0.999:
        T = np.cross(s_hat, np.array([1.0, 0.0, 0.0]))
        if np.linalg.norm(T) < 1e-6:
            T = np.cross(s_hat, np.array([0.0, 1.0, 0.0]))
    else:
        T = np.cross(s_hat, pole)
    T = T / np.linalg.norm(T)
    R = np.cross(s_hat, T)
    return T, R

def compute_outgoing_v_inf(v_inf_in: np.ndarray, beta: float, rp: float, mu: float,
                           pole: np.ndarray = None) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Computes the outgoing V-infinity vector based on B-plane targeting.

    Args:
        v_inf_in (np.ndarray): Incoming V-infinity vector [vx, vy, vz] relative to the flyby body.
        beta (float): B-plane angle, measured from the T axis towards the R axis [radians].
        rp (float): Periapsis radius [km].
        mu (float): Gravitational parameter [km^3/s^2].
        pole (np.ndarray): Reference pole defining the T axis (default +Z, the system's reference plane).

    Returns:
        tuple: (v_inf_out, B_vector, S_vector)
            v_inf_out (np.ndarray): Outgoing V-infinity vector.
            B_vector (np.ndarray): B-vector (aiming point) in body-centered frame.
            S_vector (np.ndarray): S-vector (direction of incoming asymptote).
    """
    v_inf_mag = np.linalg.norm(v_inf_in)
    if v_inf_mag < 1e-12:
        raise NumericalError("Flyby with zero hyperbolic excess velocity.")
    if rp <= 0.0:
        raise NumericalError(f"Non-positive flyby periapsis radius: {rp}")
    S = v_inf_in / v_inf_mag  # S vector acts as the Z-axis of the B-plane frame
    T, R = bplane_axes(S, pole)

    b = compute_aiming_radius(v_inf_mag, mu, rp)
    delta = compute_turn_angle(v_inf_mag, mu, rp)

    B_vec = b * (np.cos(beta) * T + np.sin(beta) * R)

    # The hyperbola lies in the plane of S and B; at infinity r ~ B and v ~ S,
    # so the angular momentum is along B x S and gravity rotates S about it.
    h_vec = np.cross(B_vec, S)
    h_hat = h_vec / np.linalg.norm(h_vec)

    v_inf_out = rotate_vector(v_inf_in, delta, h_hat)

    return v_inf_out, B_vec, S

def hyperbolic_time_to_radius(v_inf_mag: float, mu: float, rp: float, radius: float) -> float:
    """
    Time spent on a flyby hyperbola between periapsis and a given radius
    (e.g. the sphere of influence), from Kepler's equation for hyperbolas.

    Args:
        v_inf_mag (float): Hyperbolic excess velocity magnitude [km/s].
        mu (float): Gravitational parameter [km^3/s^2].
        rp (float): Periapsis radius [km].
        radius (float): Target radius [km].

    Returns:
        float: Time from periapsis [s]; 0 if radius <= rp.
    """
    if radius <= rp:
        return 0.0
    if v_inf_mag <= 0.0:
        raise NumericalError("Flyby with zero hyperbolic excess velocity.")
    a = -mu / v_inf_mag**2
    e = 1.0 - rp / a
    # r = a (1 - e cosh F)
    cosh_F = (1.0 - radius / a) / e
    F = math.acosh(cosh_F)
    M = e * math.sinh(F) - F
    n = math.sqrt(mu / (-a)**3)
    return M / n

def hyperbola_inclination(v_inf_in: np.ndarray, B_vec: np.ndarray, reference_normal: np.ndarray) -> float:
    """
    Inclination [rad] of the flyby hyperbola plane with respect to a reference plane,
    usually the flyby body's orbital plane. Prograde flybys are below 90 degrees.
    """
    h_vec = np.cross(B_vec, v_inf_in)
    h_norm = np.linalg.norm(h_vec)
    n_norm = np.linalg.norm(reference_normal)
    if h_norm == 0.0 or n_norm == 0.0:
        return 0.0
    cos_i = np.dot(h_vec, reference_normal) / (h_norm * n_norm)
    return float(np.arccos(np.clip(cos_i, -1.0, 1.0)))
