"""
Lab Session (Store)
===================
The single object that holds everything an open lab session knows: the
current configuration, the running experiment, the pending timed window,
the displayed result and the measurement history.

Why is this file needed?
------------------------
1. State Management: Views read from the session and call its methods;
   they never touch the state machine or the recorder directly.
2. Signals: Every change is announced with a Qt signal, so the tube canvas,
   readouts and results table stay in sync without knowing about each other.
3. Scheduling: The session starts the frame scheduler when a run starts and
   stops it as soon as the run leaves the RUNNING phase.
"""
from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Optional

from PySide6.QtCore import QObject, Signal

from stokeslab.controller.clock import Clock
from stokeslab.controller.experiment import ExperimentStateMachine
from stokeslab.controller.scheduler import FrameScheduler, QtFrameScheduler
from stokeslab.model.errors import InvalidGeometry, NoPriorMeasurement
from stokeslab.model.fluids import FluidKey, get_fluid
from stokeslab.model.io import ExportManager
from stokeslab.model.recorder import MeasurementRecorder
from stokeslab.model.state import (
    ExperimentConfig, Phase, Stage, Readout, CompletedMeasurement, MeasurementRecord
)

logger = logging.getLogger(__name__)


class Session(QObject):
    """Central lab state with signals for the views."""
    config_changed = Signal(object)  # ExperimentConfig
    frame_changed = Signal(float, object)  # position_mm, Phase
    phase_changed = Signal(object)  # Phase
    readout_changed = Signal(object)  # Readout
    measurement_completed = Signal(object)  # CompletedMeasurement
    result_changed = Signal(object)  # MeasurementRecord | None
    record_added = Signal(object)  # MeasurementRecord
    history_cleared = Signal()
    stage_changed = Signal(int)

    def __init__(
        self,
        config: Optional[ExperimentConfig] = None,
        scheduler: Optional[FrameScheduler] = None,
        clock: Optional[Clock] = None,
        fixed_frame_dt: Optional[float] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._config = config if config is not None else ExperimentConfig()
        self._config.validate()

        self.recorder = MeasurementRecorder()
        self.machine = ExperimentStateMachine(
            self._config, clock=clock, sink=self, fixed_frame_dt=fixed_frame_dt
        )
        self.scheduler: FrameScheduler = scheduler if scheduler is not None else QtFrameScheduler(parent=self)

        self._pending: Optional[CompletedMeasurement] = None
        self._result: Optional[MeasurementRecord] = None
        self._readout = Readout()
        self._last_phase = Phase.IDLE
        self._stage = Stage.SETUP

    # --- Read access ---

    @property
    def config(self) -> ExperimentConfig:
        return self._config

    @property
    def phase(self) -> Phase:
        return self.machine.phase

    @property
    def readout(self) -> Readout:
        return self._readout

    @property
    def pending(self) -> Optional[CompletedMeasurement]:
        """Timed window waiting for a viscosity calculation."""
        return self._pending

    @property
    def result(self) -> Optional[MeasurementRecord]:
        return self._result

    @property
    def history(self) -> tuple[MeasurementRecord, ...]:
        return self.recorder.history

    @property
    def stage(self) -> Stage:
        return self._stage

    # --- Configuration ---

    def update_config(self, **changes: Any) -> ExperimentConfig:
        """
        Apply user edits to the configuration.

        A run in progress is not affected until the next start().

        Raises:
            InvalidGeometry: If the edited configuration is not usable. The
                previous configuration stays in place.
        """
        candidate = replace(self._config, **changes)
        try:
            candidate.validate()
        except InvalidGeometry as e:
            logger.warning(f"Rejected configuration change {changes}: {e}")
            raise

        self._config = candidate
        self.machine.set_config(candidate)
        logger.debug(f"Configuration updated: {changes}")
        self.config_changed.emit(candidate)
        return candidate

    def select_fluid(self, key: FluidKey | str) -> ExperimentConfig:
        return self.update_config(fluid=get_fluid(key))

    # --- Run control ---

    def start(self) -> None:
        if self.machine.phase == Phase.RUNNING:
            return
        self.machine.start()
        self._set_stage(Stage.EXPERIMENT)
        self.scheduler.start(self._on_scheduled_frame)

    def pause(self) -> None:
        self.machine.pause()

    def toggle(self) -> None:
        """Start/Pause button behaviour."""
        if self.machine.phase == Phase.RUNNING:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        self.scheduler.stop()
        self.machine.reset()
        self._pending = None
        self._set_result(None)
        # Back to "run the experiment", the parameters stay as they are
        self._set_stage(Stage.EXPERIMENT)

    def new_experiment(self) -> None:
        self.recorder.clear()
        self.history_cleared.emit()
        self.reset()
        logger.info("New experiment started.")

    def advance(self, delta_seconds: Optional[float] = None) -> Optional[CompletedMeasurement]:
        """Run one frame of the experiment (called by the scheduler)."""
        completed = self.machine.tick(delta_seconds)
        if completed is not None:
            self._pending = completed
            self.measurement_completed.emit(completed)
        return completed

    def _on_scheduled_frame(self, delta_seconds: float) -> None:
        self.advance(delta_seconds)

    # --- Results ---

    def calculate_viscosity(self) -> MeasurementRecord:
        """
        Turn the pending timed window into a results-table row.

        Raises:
            NoPriorMeasurement: If no run has completed the window since the
                last calculation or reset.
            InvalidMeasurement: If the window gives a non-physical viscosity
                or the ball crossed it within a single frame.
        """
        if self._pending is None:
            logger.warning("Viscosity requested without a completed measurement.")
            raise NoPriorMeasurement()

        record = self.recorder.record(self._pending)
        self._pending = None
        self.record_added.emit(record)
        self._set_result(record)
        self._set_stage(Stage.RESULTS)
        return record

    def export_history(self) -> bytes:
        return self.recorder.export_history(self._config)

    def save_history(self, filepath: str) -> str:
        return ExportManager.save_csv(self.recorder, self._config, filepath)

    # --- RenderSink ---

    def on_frame(self, position_mm: float, phase: Phase) -> None:
        self.frame_changed.emit(position_mm, phase)
        if phase != Phase.RUNNING:
            self.scheduler.stop()
        if phase != self._last_phase:
            self._last_phase = phase
            self.phase_changed.emit(phase)

    def on_readout(self, readout: Readout) -> None:
        self._readout = readout
        self.readout_changed.emit(readout)

    # --- Helpers ---

    def _set_result(self, record: Optional[MeasurementRecord]) -> None:
        if record is None and self._result is None:
            return
        self._result = record
        self.result_changed.emit(record)

    def _set_stage(self, stage: Stage) -> None:
        if stage != self._stage:
            self._stage = stage
            self.stage_changed.emit(int(stage))
