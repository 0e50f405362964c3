import threading

import numpy as np
import pytest

from flyby_planner.errors import NumericalError
from flyby_planner.spice.manager import SpiceManager, spice_manager

MU = 3531.6

def test_singleton():
    assert SpiceManager() is spice_manager

def test_circular_equatorial_state():
    """e = 0 and i = 0 leave the node and periapsis undefined; the state must still be exact."""
    r = 700.0
    state = spice_manager.state_from_elements(r, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, MU, 0.0)

    np.testing.assert_allclose(state[0:3], [r, 0.0, 0.0], atol=1e-9)
    np.testing.assert_allclose(state[3:6], [0.0, np.sqrt(MU / r), 0.0], rtol=1e-12, atol=1e-12)

def test_quarter_period_propagation():
    r = 700.0
    period = 2 * np.pi * np.sqrt(r**3 / MU)
    state = spice_manager.state_from_elements(r, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, MU, period / 4)

    np.testing.assert_allclose(state[0:3], [0.0, r, 0.0], atol=1e-6)

    propagated = spice_manager.propagate(np.array([r, 0.0, 0.0, 0.0, np.sqrt(MU / r), 0.0]), period / 4, MU)
    np.testing.assert_allclose(propagated, state, atol=1e-6)

def test_elements_round_trip_near_circular():
    rp, ecc, inc, lnode, argp, m0 = 12000.0, 1e-4, np.radians(6.0), np.radians(78.0), np.radians(38.0), 0.9
    state = spice_manager.state_from_elements(rp, ecc, inc, lnode, argp, m0, 0.0, MU, 0.0)

    elts = spice_manager.elements_from_state(state, 0.0, MU)

    assert np.isclose(elts['rp'], rp, rtol=1e-9)
    assert np.isclose(elts['ecc'], ecc, atol=1e-9)
    assert np.isclose(elts['inc'], inc, atol=1e-9)
    assert np.isclose(elts['lnode'], lnode, atol=1e-9)
    assert np.isclose(elts['mu'], MU)

def test_degenerate_inputs():
    with pytest.raises(NumericalError):
        spice_manager.state_from_elements(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, MU, 0.0)
    with pytest.raises(NumericalError):
        spice_manager.propagate(np.zeros(6), 10.0, MU)

def test_concurrent_calls_are_consistent():
    expected = spice_manager.state_from_elements(700.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.0, MU, 1234.0)
    results = []

    def worker():
        for _ in range(50):
            results.append(spice_manager.state_from_elements(700.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.0, MU, 1234.0))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 200
    for state in results:
        np.testing.assert_allclose(state, expected)

if __name__ == "__main__":
    pytest.main([__file__])
