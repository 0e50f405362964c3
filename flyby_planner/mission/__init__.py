"""
Mission Analysis Package
Contains tools for high-level mission design, including:
- Flyby sequences and their enumeration
- Trajectory constraints
- Trajectory results (maneuvers, flyby details)
"""
