"""
Falling-ball viscometer: an interactive Stokes' law laboratory.
"""
