from __future__ import annotations

from dataclasses import replace

import pytest

from stokeslab.controller.experiment import ExperimentStateMachine
from stokeslab.model.physics import terminal_velocity, drag_force
from stokeslab.model.state import Phase, Readout

from conftest import FRAME_DT, run_frames

pytestmark = pytest.mark.experiment


@pytest.fixture()
def machine(short_tube_config, clock, sink) -> ExperimentStateMachine:
    return ExperimentStateMachine(short_tube_config, clock=clock, sink=sink)


def test_start_from_idle(machine, sink, short_tube_config) -> None:
    machine.start()

    assert machine.phase == Phase.RUNNING
    assert machine.position == 0.0
    assert machine.run_config is short_tube_config
    assert sink.readouts == [Readout(velocity=terminal_velocity(short_tube_config))]
    assert sink.frames == [(0.0, Phase.RUNNING)]


def test_tick_advances_by_velocity_times_delta(machine, short_tube_config) -> None:
    machine.start()
    machine.tick(0.05)

    assert machine.position == pytest.approx(terminal_velocity(short_tube_config) * 1000.0 * 0.05)


def test_tick_defaults_to_nominal_frame(machine, short_tube_config) -> None:
    machine.start()
    machine.tick()

    assert machine.position == pytest.approx(terminal_velocity(short_tube_config) * 1000.0 / 60.0)


def test_measurement_window_thresholds(machine, clock) -> None:
    machine.start()

    run_frames(machine, clock, until=lambda: machine.measuring)
    step_mm = machine.state.terminal_velocity * 1000.0 * FRAME_DT
    assert machine.position > 50.0
    assert machine.position - step_mm <= 50.0
    assert machine.phase == Phase.RUNNING

    completed = run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING)
    assert completed is not None
    assert machine.position > 150.0
    assert machine.position - step_mm <= 150.0
    assert machine.measuring is False
    assert machine.state.window_completed is True
    assert machine.phase == Phase.PAUSED


def test_completed_measurement_and_final_readout(machine, clock, sink, short_tube_config) -> None:
    machine.start()
    completed = run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING)

    v = terminal_velocity(short_tube_config)
    assert completed.distance_m == pytest.approx(0.1)
    assert completed.config is short_tube_config
    assert completed.elapsed_time == pytest.approx(0.1 / v, abs=2 * FRAME_DT)
    assert machine.current_elapsed() == completed.elapsed_time

    final = sink.readouts[-1]
    assert final.velocity == v
    assert final.elapsed_time == completed.elapsed_time
    assert final.drag_force == pytest.approx(drag_force(short_tube_config, v))


def test_pause_preserves_position_and_excludes_paused_time(machine, clock) -> None:
    machine.start()
    run_frames(machine, clock, until=lambda: machine.measuring)
    run_frames(machine, clock, until=lambda: machine.current_elapsed() >= 0.05)

    machine.pause()
    position = machine.position
    banked = machine.current_elapsed()
    assert machine.phase == Phase.PAUSED

    clock.advance(30.0)
    assert machine.tick(FRAME_DT) is None
    assert machine.position == position
    assert machine.current_elapsed() == banked

    machine.start()
    assert machine.position == position
    assert machine.measuring is True

    completed = run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING)
    assert completed.elapsed_time == pytest.approx(0.1 / machine.state.terminal_velocity, abs=2 * FRAME_DT)


def test_start_after_completed_window_begins_fresh_run(machine, clock) -> None:
    machine.start()
    run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING)

    machine.start()

    assert machine.phase == Phase.RUNNING
    assert machine.position == 0.0
    assert machine.state.window_completed is False
    assert machine.current_elapsed() == 0.0


def test_config_edit_applies_at_next_start(machine, clock, short_tube_config) -> None:
    machine.start()
    velocity = machine.state.terminal_velocity

    edited = replace(short_tube_config, ball_radius=2.0)
    machine.set_config(edited)
    machine.tick(FRAME_DT)

    assert machine.state.terminal_velocity == velocity
    assert machine.run_config is short_tube_config
    assert machine.config is edited

    machine.pause()
    machine.start()
    assert machine.run_config is edited
    assert machine.state.terminal_velocity == pytest.approx(terminal_velocity(edited))


def test_fixed_frame_dt_ignores_real_delta(short_tube_config, clock) -> None:
    machine = ExperimentStateMachine(short_tube_config, clock=clock, fixed_frame_dt=1.0 / 60.0)
    machine.start()

    machine.tick(5.0)

    assert machine.position == pytest.approx(terminal_velocity(short_tube_config) * 1000.0 / 60.0)


def test_large_step_stops_at_bottom(machine, clock, short_tube_config) -> None:
    machine.start()
    clock.advance(1.0)

    completed = machine.tick(1.0)

    assert completed is not None
    assert completed.timed is False
    assert machine.phase == Phase.REACHED_BOTTOM
    assert machine.position == short_tube_config.bottom_limit_mm
    assert machine.measuring is False
    assert machine.tick(FRAME_DT) is None

    machine.start()
    assert machine.position == 0.0
    assert machine.phase == Phase.RUNNING


def test_reset(machine, clock, sink) -> None:
    machine.start()
    run_frames(machine, clock, until=lambda: machine.measuring)

    machine.reset()

    assert machine.phase == Phase.IDLE
    assert machine.position == 0.0
    assert machine.measuring is False
    assert machine.run_config is None
    assert sink.readouts[-1] == Readout()
    assert sink.frames[-1] == (0.0, Phase.IDLE)


def test_guards_are_silent_no_ops(machine, sink) -> None:
    assert machine.tick(FRAME_DT) is None
    machine.pause()
    assert sink.frames == [] and sink.readouts == []

    machine.start()
    machine.start()
    assert len(sink.frames) == 1
    assert len(sink.readouts) == 1


def test_light_ball_still_sinks_slowly(short_tube_config, clock) -> None:
    light = replace(short_tube_config, ball_density=500.0)
    machine = ExperimentStateMachine(light, clock=clock)
    machine.start()

    completed = run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING, dt=0.05)

    assert machine.state.terminal_velocity == 0.01
    assert completed.elapsed_time == pytest.approx(10.0, abs=0.15)


def test_window_crossed_within_one_frame_is_untimed(water_config) -> None:
    fast = replace(water_config, ball_radius=35.0)
    machine = ExperimentStateMachine(fast)
    machine.start()
    step_mm = machine.state.terminal_velocity * 1000.0 * FRAME_DT
    assert step_mm > fast.measure_distance

    completed = machine.tick(FRAME_DT)

    assert completed is not None
    assert completed.timed is False
    assert completed.elapsed_time == 0.0
    assert machine.phase == Phase.PAUSED
    assert machine.state.window_completed is True


def test_window_crossed_over_several_frames_is_timed(machine, clock) -> None:
    machine.start()

    completed = run_frames(machine, clock, until=lambda: machine.phase != Phase.RUNNING)

    assert completed.timed is True
    assert completed.elapsed_time > 0
