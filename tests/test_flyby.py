import numpy as np
import pytest

from flyby_planner.errors import NumericalError
from flyby_planner.trajectory.flyby import (
    bplane_axes,
    compute_aiming_radius,
    compute_outgoing_v_inf,
    compute_turn_angle,
    hyperbola_inclination,
    hyperbolic_time_to_radius,
    rotate_vector,
)

def test_compute_turn_angle():
    # Test case: Earth flyby
    mu = 398600.4418
    v_inf = 5.0 # km/s
    rp = 6378.137 + 500 # 500 km altitude

    delta = compute_turn_angle(v_inf, mu, rp)

    # Validation calculation
    e = 1 + rp * v_inf**2 / mu
    expected_delta = 2 * np.arcsin(1/e)

    assert np.isclose(delta, expected_delta, atol=1e-8)

    # Check bounds
    assert delta > 0
    assert delta < np.pi

def test_compute_aiming_radius():
    mu = 398600.4418
    v_inf = 3.0
    rp = 7000.0

    b = compute_aiming_radius(v_inf, mu, rp)

    # From formula: b = rp * sqrt(1 + 2mu/(rp v^2))
    expected = rp * np.sqrt(1 + 2*mu/(rp * v_inf**2))

    assert np.isclose(b, expected, atol=1e-8)

def test_rotate_vector_simple():
    # Rotate X around Z by 90 degrees -> Y
    vec = np.array([1.0, 0.0, 0.0])
    axis = np.array([0.0, 0.0, 1.0])
    angle = np.pi / 2

    rotated = rotate_vector(vec, angle, axis)

    expected = np.array([0.0, 1.0, 0.0])
    assert np.allclose(rotated, expected, atol=1e-8)

def test_compute_outgoing_v_inf_planar():
    # Planar case: V_inf along X, Beta=0
    v_inf_in = np.array([5.0, 0.0, 0.0])
    beta = 0.0
    rp = 7000.0
    mu = 398600.0

    v_out, B_vec, S_vec = compute_outgoing_v_inf(v_inf_in, beta, rp, mu)

    # Check magnitude conservation
    assert np.isclose(np.linalg.norm(v_out), np.linalg.norm(v_inf_in), atol=1e-8)

    # Check turn angle consistency
    delta = compute_turn_angle(5.0, mu, rp)
    calculated_delta = np.arccos(np.dot(v_inf_in, v_out) / (np.linalg.norm(v_inf_in)**2))

    assert np.isclose(delta, calculated_delta, atol=1e-8)

    # B is perpendicular to S and has the aiming radius length
    assert np.isclose(np.dot(B_vec, S_vec), 0.0, atol=1e-8)
    assert np.isclose(np.linalg.norm(B_vec), compute_aiming_radius(5.0, mu, rp))

def test_outgoing_v_inf_bends_towards_the_body():
    """The excess velocity turns towards the side of the body, i.e. away from B."""
    v_inf_in = np.array([5.0, 0.0, 0.0])
    v_out, B_vec, _ = compute_outgoing_v_inf(v_inf_in, 0.3, 7000.0, 398600.0)

    assert np.dot(v_out - v_inf_in, B_vec) < 0.0

def test_outgoing_v_inf_along_the_pole():
    """Incoming asymptote parallel to the reference pole falls back on another axis."""
    v_inf_in = np.array([0.0, 0.0, 3.0])
    v_out, B_vec, _ = compute_outgoing_v_inf(v_inf_in, 1.0, 7000.0, 398600.0)

    assert np.all(np.isfinite(v_out))
    assert np.isclose(np.linalg.norm(v_out), 3.0)

def test_bplane_axes_orthonormal():
    s_hat = np.array([1.0, 1.0, 0.5])
    s_hat /= np.linalg.norm(s_hat)
    T, R = bplane_axes(s_hat)

    assert np.isclose(np.linalg.norm(T), 1.0)
    assert np.isclose(np.linalg.norm(R), 1.0)
    assert np.isclose(np.dot(T, R), 0.0, atol=1e-12)
    assert np.isclose(np.dot(T, s_hat), 0.0, atol=1e-12)
    # T lies in the reference plane
    assert np.isclose(T[2], 0.0, atol=1e-12)

@pytest.mark.parametrize("v_inf_in, rp", [
    (np.zeros(3), 7000.0),
    (np.array([5.0, 0.0, 0.0]), 0.0),
])
def test_outgoing_v_inf_degenerate(v_inf_in, rp):
    with pytest.raises(NumericalError):
        compute_outgoing_v_inf(v_inf_in, 0.0, rp, 398600.0)

def test_hyperbolic_time_to_radius():
    mu = 398600.0
    v_inf = 4.0
    rp = 7000.0

    assert hyperbolic_time_to_radius(v_inf, mu, rp, rp) == 0.0

    t1 = hyperbolic_time_to_radius(v_inf, mu, rp, 50000.0)
    t2 = hyperbolic_time_to_radius(v_inf, mu, rp, 100000.0)
    assert 0.0 < t1 < t2

    # Far from the body the spacecraft moves at roughly v_inf
    far = hyperbolic_time_to_radius(v_inf, mu, rp, 2.0e7) - hyperbolic_time_to_radius(v_inf, mu, rp, 1.0e7)
    assert np.isclose(far, 1.0e7 / v_inf, rtol=0.01)

def test_hyperbola_inclination():
    normal = np.array([0.0, 0.0, 1.0])
    v_inf_in = np.array([5.0, 0.0, 0.0])

    # B along -Y: angular momentum B x S along +Z, prograde and in plane
    _, B_vec, _ = compute_outgoing_v_inf(v_inf_in, 0.0, 7000.0, 398600.0)
    inc = hyperbola_inclination(v_inf_in, B_vec, normal)
    assert np.isclose(inc, 0.0, atol=1e-8) or np.isclose(inc, np.pi, atol=1e-8)

    # Out of plane aiming point
    _, B_polar, _ = compute_outgoing_v_inf(v_inf_in, np.pi / 2, 7000.0, 398600.0)
    assert np.isclose(hyperbola_inclination(v_inf_in, B_polar, normal), np.pi / 2, atol=1e-8)

if __name__ == "__main__":
    pytest.main([__file__])
