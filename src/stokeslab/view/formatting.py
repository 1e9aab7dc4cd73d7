"""Display strings for readouts and labels."""
from __future__ import annotations

from typing import Optional

from stokeslab.model.fluids import FluidSpec
from stokeslab.model.state import Phase, Readout, Stage

PHASE_LABELS = {
    Phase.IDLE: "Ready",
    Phase.RUNNING: "Falling...",
    Phase.PAUSED: "Paused",
    Phase.REACHED_BOTTOM: "Reached the bottom",
}

STAGE_LABELS = {
    Stage.SETUP: "1. Set parameters",
    Stage.EXPERIMENT: "2. Run the experiment",
    Stage.RESULTS: "3. Evaluate results",
}

# Start/Pause button text per phase
START_BUTTON_LABELS = {
    Phase.IDLE: "Start experiment",
    Phase.RUNNING: "Pause",
    Phase.PAUSED: "Continue",
    Phase.REACHED_BOTTOM: "Start experiment",
}


def format_velocity(velocity: float) -> str:
    return f"{velocity:.4f} m/s"


def format_time(seconds: Optional[float]) -> str:
    if seconds is None:
        return "0 s"
    return f"{seconds:.2f} s"


def format_force(force: Optional[float]) -> str:
    if force is None:
        return "0 N"
    return f"{force:.6f} N"


def format_readout(readout: Readout) -> tuple[str, str, str]:
    """(speed, time, force) label texts."""
    velocity = format_velocity(readout.velocity) if readout.velocity else "0 m/s"
    return velocity, format_time(readout.elapsed_time), format_force(readout.drag_force)


def format_fluid(fluid: FluidSpec) -> tuple[str, str]:
    """(density, viscosity) label texts of a catalog fluid."""
    return f"{fluid.density:g} kg/m³", f"{fluid.viscosity:g} Pa·s"


def start_button_label(phase: Phase, window_completed: bool = False) -> str:
    # After a timed window the next start begins a new run
    if phase == Phase.PAUSED and window_completed:
        return START_BUTTON_LABELS[Phase.IDLE]
    return START_BUTTON_LABELS[phase]
