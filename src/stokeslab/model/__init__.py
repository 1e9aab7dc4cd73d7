"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of the GUI (Qt).
It deals with the fluid catalog, Stokes' law physics, the measurement
history and its export.
"""
