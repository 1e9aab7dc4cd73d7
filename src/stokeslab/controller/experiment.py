"""
Experiment State Machine
========================
Owns the lifecycle of one falling-ball run, the position integrator and the
stopwatch of the measurement window.

Phases::

    IDLE ──start──> RUNNING ──pause──> PAUSED ──start──> RUNNING
                      │  └──leaves window──> PAUSED (window completed)
                      └──hits bottom──> REACHED_BOTTOM
    any ──reset──> IDLE

`measuring` is a flag on top of RUNNING/PAUSED: it is set while the ball is
between the two marks. Starting from IDLE, REACHED_BOTTOM or a PAUSED state
reached by completing the window begins a fresh run from the top; resuming
after a manual pause continues where the ball stopped.

The machine has no knowledge of Qt. A `RenderSink` receives every frame and
readout, and the caller drives `tick()` from whatever scheduler it has.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from stokeslab.config import NOMINAL_FRAME_DT
from stokeslab.controller.clock import Clock, MonotonicClock
from stokeslab.model.physics import terminal_velocity, drag_force
from stokeslab.model.state import ExperimentConfig, RunState, Phase, CompletedMeasurement, Readout

logger = logging.getLogger(__name__)


class RenderSink(Protocol):
    def on_frame(self, position_mm: float, phase: Phase) -> None:
        ...

    def on_readout(self, readout: Readout) -> None:
        ...


class ExperimentStateMachine:
    def __init__(
        self,
        config: ExperimentConfig,
        clock: Optional[Clock] = None,
        sink: Optional[RenderSink] = None,
        fixed_frame_dt: Optional[float] = None,
    ) -> None:
        """
        Args:
            config: Configuration the next `start()` will use.
            clock: Stopwatch time source. Defaults to the monotonic wall clock.
            sink: Receiver of frames and readouts. Optional.
            fixed_frame_dt: If set, every tick advances by this many seconds
                regardless of the delta passed in. Reproduces the classic
                1/60 s per frame animation for comparison runs.
        """
        self._config = config
        self._run_config: Optional[ExperimentConfig] = None
        self.clock: Clock = clock if clock is not None else MonotonicClock()
        self.sink = sink
        self.fixed_frame_dt = fixed_frame_dt
        self._state = RunState()

    # --- Read access ---

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def measuring(self) -> bool:
        return self._state.measuring

    @property
    def position(self) -> float:
        return self._state.position_mm

    @property
    def config(self) -> ExperimentConfig:
        return self._config

    @property
    def run_config(self) -> Optional[ExperimentConfig]:
        """Snapshot the current run was started with (None before the first start)."""
        return self._run_config

    def set_config(self, config: ExperimentConfig) -> None:
        """Replace the configuration. A run in progress keeps its snapshot until the next start()."""
        self._config = config

    def current_elapsed(self) -> float:
        """Stopwatch reading: seconds spent inside the window so far (live while measuring)."""
        state = self._state
        if state.measuring and state.measurement_start is not None:
            return state.measurement_elapsed + (self.clock.now() - state.measurement_start)
        return state.measurement_elapsed

    # --- Transitions ---

    def start(self) -> None:
        state = self._state
        if state.phase == Phase.RUNNING:
            return

        fresh = (
            state.phase in (Phase.IDLE, Phase.REACHED_BOTTOM)
            or (state.phase == Phase.PAUSED and state.window_completed)
        )
        if fresh:
            state = self._state = RunState()

        # Velocity is recomputed on every start so edits made while paused apply
        self._run_config = self._config
        state.terminal_velocity = terminal_velocity(self._run_config)
        state.phase = Phase.RUNNING
        if state.measuring:
            state.measurement_start = self.clock.now()

        logger.info(
            f"Run {'started' if fresh else 'resumed'} at {state.position_mm:.1f} mm, "
            f"v={state.terminal_velocity:.4f} m/s"
        )
        self._emit_readout(Readout(velocity=state.terminal_velocity))
        self._emit_frame()

    def pause(self) -> None:
        state = self._state
        if state.phase != Phase.RUNNING:
            return

        if state.measuring and state.measurement_start is not None:
            state.measurement_elapsed += self.clock.now() - state.measurement_start
            state.measurement_start = None

        state.phase = Phase.PAUSED
        logger.info(f"Run paused at {state.position_mm:.1f} mm")
        self._emit_frame()

    def reset(self) -> None:
        self._state = RunState()
        self._run_config = None
        logger.info("Run reset.")
        self._emit_readout(Readout())
        self._emit_frame()

    def tick(self, delta_seconds: Optional[float] = None) -> Optional[CompletedMeasurement]:
        """
        Advance the ball by one frame.

        Args:
            delta_seconds: Real time since the previous frame. Ignored when
                `fixed_frame_dt` is set; defaults to the nominal 1/60 s.

        Returns:
            The completed measurement if the ball left the window on this frame.
        """
        state = self._state
        if state.phase != Phase.RUNNING:
            return None

        if self.fixed_frame_dt is not None:
            dt = self.fixed_frame_dt
        elif delta_seconds is not None:
            dt = delta_seconds
        else:
            dt = NOMINAL_FRAME_DT

        config = self._run_config
        velocity = state.terminal_velocity
        # m/s -> mm/s, one scene millimetre per pixel
        state.position_mm += velocity * 1000.0 * dt

        completed: Optional[CompletedMeasurement] = None
        entered_this_frame = False

        if not state.measuring and not state.window_completed and state.position_mm > config.window_start_mm:
            state.measuring = True
            state.measurement_start = self.clock.now()
            state.measurement_elapsed = 0.0
            entered_this_frame = True
            logger.debug(f"Entered measurement window at {state.position_mm:.1f} mm")

        if state.measuring and state.position_mm > config.window_end_mm:
            # Entry and exit on one frame leave nothing to time
            timed = not entered_this_frame
            elapsed = state.measurement_elapsed + (self.clock.now() - state.measurement_start) if timed else 0.0
            state.measuring = False
            state.measurement_start = None
            state.measurement_elapsed = elapsed
            state.window_completed = True
            state.phase = Phase.PAUSED

            completed = CompletedMeasurement(
                elapsed_time=elapsed, distance_m=config.distance_m, config=config, timed=timed
            )
            logger.info(f"Left measurement window at {state.position_mm:.1f} mm after {elapsed:.2f} s")
            self._emit_readout(Readout(
                velocity=velocity,
                elapsed_time=elapsed,
                drag_force=drag_force(config, velocity),
            ))

        if state.position_mm > config.bottom_limit_mm:
            state.position_mm = config.bottom_limit_mm
            state.measuring = False
            state.measurement_start = None
            state.phase = Phase.REACHED_BOTTOM
            logger.info("Ball reached the bottom of the tube.")

        self._emit_frame()
        return completed

    # --- Sink helpers ---

    def _emit_frame(self) -> None:
        if self.sink is not None:
            self.sink.on_frame(self._state.position_mm, self._state.phase)

    def _emit_readout(self, readout: Readout) -> None:
        if self.sink is not None:
            self.sink.on_readout(readout)
