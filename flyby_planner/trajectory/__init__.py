"""
Trajectory Package
Closed-form two-body building blocks:
- Lambert solver (universal variables)
- Hyperbolic flyby geometry (B-plane, turn angle)
- Maneuver decomposition and parking orbit burns
"""
