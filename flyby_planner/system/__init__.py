"""
System Package
Immutable model of a planetary system (bodies, attractor tree, ephemeris)
and the bundled stock Kerbol system.
"""
