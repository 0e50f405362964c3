"""
Control Package
Cancellation tokens, progress reporting and handles shared by background searches.
"""
