"""
Configuration & Global Constants
================================
This module serves as the central registry for physical constants, scene
geometry conventions and the input bounds of the experiment controls.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (margins, frame rates, slider
   limits) scattered throughout the model, controller and view.
2. Consistency: The state machine, the validation of the configuration and
   the sliders in the control panel all read the same limits.

Units: scene geometry in millimetres (1 mm is drawn as 1 px), physics
formulas in SI units.
"""
from __future__ import annotations

from dataclasses import dataclass
from importlib.metadata import version, PackageNotFoundError

try:
    APP_VERSION = version("stokeslab")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

VISIBLE_APP_NAME = "Stokes' Law Lab"

# Physics
GRAVITY: float = 9.81  # m/s²
MIN_VISUAL_VELOCITY: float = 0.01  # m/s, animation floor for near-neutral buoyancy

# Scene geometry (mm)
BALL_TOP_OFFSET_MM: float = 5.0  # visual origin of the ball inside the tube
WINDOW_ENTRY_MM: float = 50.0  # upper mark, measured from the start position
BOTTOM_MARGIN_MM: float = 40.0  # room for the ball itself at the tube bottom

# Animation
NOMINAL_FRAME_DT: float = 1.0 / 60.0  # s
FRAME_INTERVAL_MS: int = 1000 // 60

DEFAULT_EXPORT_FILENAME = "stokes_method_results.csv"


@dataclass(frozen=True)
class ParameterBounds:
    minimum: float
    maximum: float
    step: float = 1.0
    unit: str = ""

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


BALL_DENSITY_BOUNDS = ParameterBounds(100.0, 8000.0, 10.0, "kg/m³")
BALL_RADIUS_BOUNDS = ParameterBounds(1.0, 50.0, 0.5, "mm")
TUBE_HEIGHT_BOUNDS = ParameterBounds(100.0, 2000.0, 10.0, "mm")
MEASURE_DISTANCE_BOUNDS = ParameterBounds(1.0, TUBE_HEIGHT_BOUNDS.maximum - 90.0, 5.0, "mm")

# Defaults of a fresh session (a steel ball in water)
DEFAULT_BALL_DENSITY: float = 7800.0
DEFAULT_BALL_RADIUS: float = 5.0
DEFAULT_TUBE_HEIGHT: float = 500.0
DEFAULT_MEASURE_DISTANCE: float = 200.0


def max_measure_distance(tube_height: float) -> float:
    """Largest window length that still leaves the exit mark above the bottom margin."""
    return tube_height - BOTTOM_MARGIN_MM - WINDOW_ENTRY_MM
