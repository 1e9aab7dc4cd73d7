"""
Experiment State (Data Model)
=============================
This module defines the data structures shared by the physics engine, the
run state machine and the views.

Why is this file needed?
------------------------
1. Configuration: `ExperimentConfig` holds the user's fluid and ball
   choices. It is immutable; the session swaps in a new instance on every
   edit, so a running experiment can keep a consistent snapshot.
2. Run State: `RunState` is the transient per-run data (phase, position,
   stopwatch) owned by the state machine.
3. Results: `MeasurementRecord` is one immutable row of the results table.

Classes:
    ExperimentConfig: Fluid choice and ball/tube parameters.
    Phase: Top-level run phases.
    Stage: Workflow indicator shown above the controls.
    RunState: Mutable per-run data.
    CompletedMeasurement: Timed window handed from the run to the recorder.
    Readout: Speed / time / force display values.
    MeasurementRecord: One row of the results history.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Optional

from stokeslab import config as cfg
from stokeslab.model.errors import InvalidGeometry
from stokeslab.model.fluids import FluidSpec, DEFAULT_FLUID, get_fluid


class Phase(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    REACHED_BOTTOM = "reached_bottom"


class Stage(IntEnum):
    """The steps of the lab workflow."""
    SETUP = 1
    EXPERIMENT = 2
    RESULTS = 3


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Fluid and ball parameters of an experiment.
    Distances are in millimetres (scene units), densities in kg/m³.
    """
    fluid: FluidSpec = field(default_factory=lambda: get_fluid(DEFAULT_FLUID))
    ball_density: float = cfg.DEFAULT_BALL_DENSITY
    ball_radius: float = cfg.DEFAULT_BALL_RADIUS
    tube_height: float = cfg.DEFAULT_TUBE_HEIGHT
    measure_distance: float = cfg.DEFAULT_MEASURE_DISTANCE

    @property
    def radius_m(self) -> float:
        return self.ball_radius / 1000.0

    @property
    def distance_m(self) -> float:
        return self.measure_distance / 1000.0

    @property
    def window_start_mm(self) -> float:
        return cfg.WINDOW_ENTRY_MM

    @property
    def window_end_mm(self) -> float:
        return cfg.WINDOW_ENTRY_MM + self.measure_distance

    @property
    def bottom_limit_mm(self) -> float:
        return self.tube_height - cfg.BOTTOM_MARGIN_MM

    def validate(self) -> None:
        """
        Check the slider bounds and that the exit mark lies above the tube bottom.

        Raises:
            InvalidGeometry: If any value is out of range, or if the ball would
                reach the bottom before leaving the measurement window.
        """
        checks = (
            ("Ball density", self.ball_density, cfg.BALL_DENSITY_BOUNDS),
            ("Ball radius", self.ball_radius, cfg.BALL_RADIUS_BOUNDS),
            ("Tube height", self.tube_height, cfg.TUBE_HEIGHT_BOUNDS),
            ("Measured distance", self.measure_distance, cfg.MEASURE_DISTANCE_BOUNDS),
        )
        for label, value, bounds in checks:
            if not bounds.contains(value):
                raise InvalidGeometry(
                    f"{label} {value:g} {bounds.unit} is outside "
                    f"[{bounds.minimum:g}, {bounds.maximum:g}] {bounds.unit}."
                )

        if not self.bottom_limit_mm > self.window_end_mm:
            raise InvalidGeometry(
                f"A {self.measure_distance:g} mm window does not fit into a "
                f"{self.tube_height:g} mm tube; the distance must stay below "
                f"{cfg.max_measure_distance(self.tube_height):g} mm."
            )


@dataclass
class RunState:
    """Transient data of the current run. Owned by the state machine."""
    phase: Phase = Phase.IDLE
    position_mm: float = 0.0
    terminal_velocity: float = 0.0  # m/s
    measuring: bool = False
    # Clock reading when the current timing segment began (None when not timing)
    measurement_start: Optional[float] = None
    # Seconds banked from earlier segments, or the final time once the window is done
    measurement_elapsed: float = 0.0
    window_completed: bool = False


@dataclass(frozen=True)
class CompletedMeasurement:
    elapsed_time: float  # s
    distance_m: float
    config: ExperimentConfig
    # False when the ball entered and left the window on the same frame
    timed: bool = True


@dataclass(frozen=True)
class Readout:
    velocity: float = 0.0  # m/s
    elapsed_time: Optional[float] = None  # s
    drag_force: Optional[float] = None  # N


@dataclass(frozen=True)
class MeasurementRecord:
    sequence_number: int
    distance: float  # m
    elapsed_time: float  # s
    observed_velocity: float  # m/s
    computed_viscosity: float  # Pa·s
    percent_error: float
    reference_viscosity: float  # Pa·s, true value of the fluid the run was made in
