"""
SPICE Package
Thread-safe access to the SPICE two-body routines used as the system ephemeris.
"""
