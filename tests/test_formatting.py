from __future__ import annotations

import pytest

from stokeslab.model.fluids import get_fluid
from stokeslab.model.state import Phase, Readout, Stage
from stokeslab.view.formatting import (
    format_readout, format_fluid, format_time, start_button_label, PHASE_LABELS, STAGE_LABELS,
)

pytestmark = pytest.mark.view


def test_idle_readout() -> None:
    assert format_readout(Readout()) == ("0 m/s", "0 s", "0 N")


def test_completed_readout() -> None:
    readout = Readout(velocity=0.416632, elapsed_time=0.4833, drag_force=0.0349)

    assert format_readout(readout) == ("0.4166 m/s", "0.48 s", "0.034900 N")


def test_running_readout_shows_velocity_only() -> None:
    assert format_readout(Readout(velocity=0.01)) == ("0.0100 m/s", "0 s", "0 N")


def test_format_time() -> None:
    assert format_time(None) == "0 s"
    assert format_time(12.345) == "12.35 s"


def test_format_fluid() -> None:
    assert format_fluid(get_fluid("glycerin")) == ("1260 kg/m³", "12.3 Pa·s")
    assert format_fluid(get_fluid("water")) == ("1000 kg/m³", "0.89 Pa·s")


def test_start_button_label() -> None:
    assert start_button_label(Phase.IDLE) == "Start experiment"
    assert start_button_label(Phase.RUNNING) == "Pause"
    assert start_button_label(Phase.PAUSED) == "Continue"
    assert start_button_label(Phase.PAUSED, window_completed=True) == "Start experiment"
    assert start_button_label(Phase.REACHED_BOTTOM) == "Start experiment"


def test_every_phase_and_stage_has_a_label() -> None:
    assert set(PHASE_LABELS) == set(Phase)
    assert set(STAGE_LABELS) == set(Stage)
