"""
The VIEW layer: PySide6 widgets that render a `Session` and forward user
input to it. Nothing here computes physics.
"""
