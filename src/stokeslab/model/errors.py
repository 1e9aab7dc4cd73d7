"""User-facing error kinds of the experiment.

Every error here is recoverable: the view turns it into a message box and
the session carries on.
"""
from __future__ import annotations


class StokesLabError(RuntimeError):
    """Base class for recoverable experiment errors."""


class NoPriorMeasurement(StokesLabError):
    """Raised when viscosity is requested before a run completed the timed window."""

    def __init__(self, message: str = "Run the experiment through the measurement window first.") -> None:
        super().__init__(message)


class EmptyHistory(StokesLabError):
    """Raised when exporting a history that holds no measurements."""

    def __init__(self, message: str = "There are no measurements to export.") -> None:
        super().__init__(message)


class InvalidGeometry(StokesLabError, ValueError):
    """Raised when configuration values make the measurement window impossible."""


class InvalidMeasurement(StokesLabError):
    """Raised when a timed run back-calculates to a non-physical viscosity."""


class UnknownFluidError(StokesLabError, KeyError):
    """Raised when a fluid key is not in the catalog."""

    def __str__(self) -> str:
        # KeyError would otherwise wrap the message in quotes
        return str(self.args[0]) if self.args else ""
