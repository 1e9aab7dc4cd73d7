from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

import matplotlib
import pytest

from stokeslab.controller.clock import SimulatedClock
from stokeslab.controller.experiment import ExperimentStateMachine
from stokeslab.model.fluids import FluidKey, get_fluid
from stokeslab.model.state import ExperimentConfig, Phase, Readout

matplotlib.use("Agg")

FRAME_DT = 1.0 / 60.0


class RecordingSink:
    """Keeps every frame and readout the state machine emits."""

    def __init__(self) -> None:
        self.frames: list[tuple[float, Phase]] = []
        self.readouts: list[Readout] = []

    def on_frame(self, position_mm: float, phase: Phase) -> None:
        self.frames.append((position_mm, phase))

    def on_readout(self, readout: Readout) -> None:
        self.readouts.append(readout)


class FakeScheduler:
    """Frame scheduler stepped by hand."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[float], None]] = None
        self.active = False
        self.starts = 0

    def start(self, callback: Callable[[float], None]) -> None:
        self.callback = callback
        self.active = True
        self.starts += 1

    def stop(self) -> None:
        self.active = False

    def is_active(self) -> bool:
        return self.active

    def fire(self, delta_seconds: float) -> None:
        assert self.active and self.callback is not None
        self.callback(delta_seconds)


def run_frames(machine: ExperimentStateMachine, clock: SimulatedClock, until: Callable[[], bool],
               dt: float = FRAME_DT, limit: int = 100_000):
    """Tick with a clock that moves in step, until `until()` holds. Returns the last completed measurement."""
    completed = None
    for _ in range(limit):
        if until():
            return completed
        clock.advance(dt)
        completed = machine.tick(dt) or completed
    raise AssertionError("condition not reached")


@pytest.fixture()
def clock() -> SimulatedClock:
    return SimulatedClock()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def water_config() -> ExperimentConfig:
    """Steel ball (7800 kg/m³, 5 mm) in water, 500 mm tube, 200 mm window."""
    return ExperimentConfig()


@pytest.fixture()
def short_tube_config(water_config: ExperimentConfig) -> ExperimentConfig:
    """Window marks at 50 mm and 150 mm, bottom at 260 mm."""
    return replace(water_config, tube_height=300.0, measure_distance=100.0)


@pytest.fixture()
def glycerin_config(water_config: ExperimentConfig) -> ExperimentConfig:
    return replace(water_config, fluid=get_fluid(FluidKey.GLYCERIN))


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
