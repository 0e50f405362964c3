"""
Optimization Package
Multiple gravity assist trajectory model and its differential evolution solver.
"""
