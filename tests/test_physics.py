from __future__ import annotations

from dataclasses import replace

import matplotlib.pyplot as plt
import numpy as np
import pytest

from stokeslab.config import MIN_VISUAL_VELOCITY
from stokeslab.model.fluids import list_fluids
from stokeslab.model.physics import (
    terminal_velocity, drag_force, stokes_viscosity, percent_error,
    terminal_velocity_curve, plot_terminal_velocity,
)

pytestmark = pytest.mark.physics


def test_terminal_velocity_steel_ball_in_water(water_config) -> None:
    expected = 2 * 6800 * 9.81 * 0.005 ** 2 / (9 * 0.89)

    assert terminal_velocity(water_config) == pytest.approx(expected, rel=1e-6)
    assert terminal_velocity(water_config) == pytest.approx(0.41663, rel=1e-4)


@pytest.mark.parametrize("ball_density", [100.0, 880.0, 920.0, 1000.0])
def test_terminal_velocity_never_below_visual_floor(water_config, ball_density: float) -> None:
    for fluid in list_fluids():
        config = replace(water_config, fluid=fluid, ball_density=ball_density, ball_radius=1.0)
        assert terminal_velocity(config) >= MIN_VISUAL_VELOCITY


def test_neutral_buoyancy_is_clamped(water_config) -> None:
    config = replace(water_config, ball_density=water_config.fluid.density)

    assert terminal_velocity(config) == MIN_VISUAL_VELOCITY


def test_drag_force_is_linear_in_velocity(water_config) -> None:
    v = terminal_velocity(water_config)

    assert drag_force(water_config, 2 * v) == pytest.approx(2 * drag_force(water_config, v))
    assert drag_force(water_config, 0.0) == 0.0
    assert drag_force(water_config, 1.0) == pytest.approx(6 * np.pi * 0.89 * 0.005)


def test_inverse_recovers_reference_viscosity(water_config, glycerin_config) -> None:
    for config in (water_config, glycerin_config):
        v = terminal_velocity(config)
        assert stokes_viscosity(config, v) == pytest.approx(config.fluid.viscosity, rel=1e-9)


def test_slower_fall_means_higher_viscosity(water_config) -> None:
    v = terminal_velocity(water_config)

    assert stokes_viscosity(water_config, v / 2) == pytest.approx(2 * water_config.fluid.viscosity)


def test_percent_error() -> None:
    assert percent_error(0.89, 0.89) == 0.0
    assert percent_error(0.979, 0.89) == pytest.approx(10.0)
    assert percent_error(0.801, 0.89) == pytest.approx(10.0)


def test_velocity_curve_default_range(water_config) -> None:
    radii, velocities = terminal_velocity_curve(water_config)

    assert radii.shape == velocities.shape == (200,)
    assert radii[0] == 1.0 and radii[-1] == 50.0
    assert np.all(np.diff(velocities) > 0)


def test_velocity_curve_matches_scalar_formula(water_config) -> None:
    radii, velocities = terminal_velocity_curve(water_config, [water_config.ball_radius])

    assert velocities[0] == pytest.approx(terminal_velocity(water_config))


def test_velocity_curve_applies_floor(water_config) -> None:
    light = replace(water_config, ball_density=500.0)

    _, velocities = terminal_velocity_curve(light, [1.0, 10.0, 50.0])

    assert np.all(velocities == MIN_VISUAL_VELOCITY)


def test_plot_terminal_velocity(water_config) -> None:
    fig = plot_terminal_velocity(water_config, show=False)
    try:
        ax, = fig.axes
        assert len(ax.lines) == 2
        assert "Water" in ax.get_title()
        assert ax.get_xlabel() == "Ball radius (mm)"
    finally:
        plt.close(fig)
