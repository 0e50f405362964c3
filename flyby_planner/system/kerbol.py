"""
Stock Kerbol system.

Distances in km, gravitational parameters in km^3/s^2, angles in degrees
(mean anomaly at epoch in radians), epoch 0 for every body.
"""
from flyby_planner.system.system import System

KERBOL = 0
MOHO, EVE, KERBIN, DUNA, DRES, JOOL, EELOO = 1, 2, 3, 4, 5, 6, 7
GILLY, MUN, MINMUS, IKE, LAYTHE, VALL, TYLO, BOP, POL = 8, 9, 10, 11, 12, 13, 14, 15, 16


def _orbit(sma, ecc=0.0, inc=0.0, lan=0.0, argp=0.0, mean_anomaly=0.0):
    return {'sma': sma, 'ecc': ecc, 'inc': inc, 'lan': lan, 'argp': argp, 'mean_anomaly': mean_anomaly}


KERBOL_SYSTEM = [
    {'id': KERBOL, 'name': 'Kerbol', 'mu': 1.1723328e9, 'radius': 261600.0},

    # Planets
    {'id': MOHO, 'name': 'Moho', 'attractor': KERBOL, 'mu': 168.60938, 'radius': 250.0, 'soi': 9646.663,
     'orbit': _orbit(5263138.304, 0.2, 7.0, 70.0, 15.0, 3.14)},
    {'id': EVE, 'name': 'Eve', 'attractor': KERBOL, 'mu': 8171.7302, 'radius': 700.0, 'soi': 85109.365,
     'atmosphere': 90.0, 'orbit': _orbit(9832684.544, 0.01, 2.1, 15.0, 0.0, 3.14)},
    {'id': KERBIN, 'name': 'Kerbin', 'attractor': KERBOL, 'mu': 3531.6, 'radius': 600.0, 'soi': 84159.286,
     'atmosphere': 70.0, 'orbit': _orbit(13599840.256, 0.0, 0.0, 0.0, 0.0, 3.14)},
    {'id': DUNA, 'name': 'Duna', 'attractor': KERBOL, 'mu': 301.36321, 'radius': 320.0, 'soi': 47921.949,
     'atmosphere': 50.0, 'orbit': _orbit(20726155.264, 0.051, 0.06, 135.5, 0.0, 3.14)},
    {'id': DRES, 'name': 'Dres', 'attractor': KERBOL, 'mu': 21.484489, 'radius': 138.0, 'soi': 32832.84,
     'orbit': _orbit(40839348.203, 0.145, 5.0, 280.0, 90.0, 3.14)},
    {'id': JOOL, 'name': 'Jool', 'attractor': KERBOL, 'mu': 282528.0, 'radius': 6000.0, 'soi': 2455985.2,
     'atmosphere': 200.0, 'orbit': _orbit(68773560.320, 0.05, 1.304, 52.0, 0.0, 0.1)},
    {'id': EELOO, 'name': 'Eeloo', 'attractor': KERBOL, 'mu': 74.410815, 'radius': 210.0, 'soi': 119082.94,
     'orbit': _orbit(90118820.0, 0.26, 6.15, 50.0, 260.0, 3.14)},

    # Moons
    {'id': GILLY, 'name': 'Gilly', 'attractor': EVE, 'mu': 0.0082894498, 'radius': 13.0, 'soi': 126.12327,
     'orbit': _orbit(31500.0, 0.55, 12.0, 80.0, 10.0, 0.9)},
    {'id': MUN, 'name': 'Mun', 'attractor': KERBIN, 'mu': 65.138398, 'radius': 200.0, 'soi': 2429.5591,
     'orbit': _orbit(12000.0, mean_anomaly=1.7)},
    {'id': MINMUS, 'name': 'Minmus', 'attractor': KERBIN, 'mu': 1.7658, 'radius': 60.0, 'soi': 2247.4284,
     'orbit': _orbit(47000.0, 0.0, 6.0, 78.0, 38.0, 0.9)},
    {'id': IKE, 'name': 'Ike', 'attractor': DUNA, 'mu': 18.568369, 'radius': 130.0, 'soi': 1049.5989,
     'orbit': _orbit(3200.0, 0.03, 0.2, 0.0, 0.0, 1.7)},
    {'id': LAYTHE, 'name': 'Laythe', 'attractor': JOOL, 'mu': 1962.0, 'radius': 500.0, 'soi': 3723.6458,
     'atmosphere': 50.0, 'orbit': _orbit(27184.0, mean_anomaly=3.14)},
    {'id': VALL, 'name': 'Vall', 'attractor': JOOL, 'mu': 207.4815, 'radius': 300.0, 'soi': 2406.4014,
     'orbit': _orbit(43152.0, mean_anomaly=0.9)},
    {'id': TYLO, 'name': 'Tylo', 'attractor': JOOL, 'mu': 2825.28, 'radius': 600.0, 'soi': 10856.518,
     'orbit': _orbit(68500.0, mean_anomaly=3.14)},
    {'id': BOP, 'name': 'Bop', 'attractor': JOOL, 'mu': 2.4868349, 'radius': 65.0, 'soi': 1221.0609,
     'orbit': _orbit(128500.0, 0.235, 15.0, 10.0, 25.0, 0.9)},
    {'id': POL, 'name': 'Pol', 'attractor': JOOL, 'mu': 0.72170208, 'radius': 44.0, 'soi': 1042.1389,
     'orbit': _orbit(179890.0, 0.171, 4.25, 2.0, 15.0, 0.9)},
]


def kerbol_system() -> System:
    """Builds the stock Kerbol system."""
    return System.from_dicts(KERBOL_SYSTEM)
