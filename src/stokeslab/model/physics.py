"""
Stokes' Law Physics
===================
Pure functions for a sphere falling at terminal velocity through a viscous
fluid. All inputs come from an `ExperimentConfig`; the ball radius is
converted from millimetres to metres here.

Forward:  v = 2 (rho_ball - rho_fluid) g r² / (9 eta)
Drag:     F = 6 pi eta r v
Inverse:  eta = (2/9) (rho_ball - rho_fluid) g r² / v
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np
import matplotlib.pyplot as plt

from stokeslab.config import GRAVITY, MIN_VISUAL_VELOCITY, BALL_RADIUS_BOUNDS
from stokeslab.model.state import ExperimentConfig

if TYPE_CHECKING:
    import numpy.typing as npt
    from matplotlib.figure import Figure


def _buoyant_weight_term(config: ExperimentConfig, radius_m: float | npt.NDArray[np.float64]):
    """(rho_ball - rho_fluid) * g * r², shared by the forward and inverse formulas."""
    return (config.ball_density - config.fluid.density) * GRAVITY * radius_m ** 2


def terminal_velocity(config: ExperimentConfig) -> float:
    """
    Terminal velocity of the ball in m/s.

    The result is clamped to MIN_VISUAL_VELOCITY. This is a floor for the
    animation, not physics: a ball lighter than the fluid would really rise,
    but the lab always shows it sinking slowly so a run can finish.
    """
    velocity = 2.0 * _buoyant_weight_term(config, config.radius_m) / (9.0 * config.fluid.viscosity)
    return max(velocity, MIN_VISUAL_VELOCITY)


def drag_force(config: ExperimentConfig, velocity: float) -> float:
    """Stokes drag in N on the ball moving at `velocity` (m/s) through the reference fluid."""
    return 6.0 * np.pi * config.fluid.viscosity * config.radius_m * velocity


def stokes_viscosity(config: ExperimentConfig, observed_velocity: float) -> float:
    """Viscosity in Pa·s that explains a ball falling at `observed_velocity` (m/s)."""
    return (2.0 / 9.0) * _buoyant_weight_term(config, config.radius_m) / observed_velocity


def percent_error(computed: float, reference: float) -> float:
    return abs(computed - reference) / reference * 100.0


def terminal_velocity_curve(
    config: ExperimentConfig,
    radii_mm: Optional[npt.ArrayLike] = None,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Terminal velocity for a range of ball radii, other parameters taken from `config`.

    Args:
        config: Source of fluid and ball density.
        radii_mm: Radii in mm. Defaults to the full slider range.

    Returns:
        (radii in mm, velocities in m/s), with the visual floor applied element-wise.
    """
    if radii_mm is None:
        radii = np.linspace(BALL_RADIUS_BOUNDS.minimum, BALL_RADIUS_BOUNDS.maximum, 200)
    else:
        radii = np.asarray(radii_mm, dtype=np.float64)

    velocities = 2.0 * _buoyant_weight_term(config, radii / 1000.0) / (9.0 * config.fluid.viscosity)
    return radii, np.maximum(velocities, MIN_VISUAL_VELOCITY)


def plot_terminal_velocity(
    config: ExperimentConfig,
    radii_mm: Optional[npt.ArrayLike] = None,
    show: bool = True,
) -> Figure:
    """
    Plot terminal velocity against ball radius and mark the configured ball.
    """
    radii, velocities = terminal_velocity_curve(config, radii_mm)

    plt.rcParams["figure.constrained_layout.use"] = True
    fig = plt.figure(figsize=(7, 5))
    ax = fig.add_subplot()

    ax.plot(radii, velocities, 'b', lw=2)
    ax.plot([config.ball_radius], [terminal_velocity(config)], 'ro')

    ax.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
    ax.minorticks_on()
    ax.grid(visible=True, which='minor', axis='both', linestyle=':', color='gray', lw=0.5)

    ax.set_title(f"Terminal velocity in {config.fluid.name} (ball {config.ball_density:g} kg/m³)")
    ax.set_xlabel("Ball radius (mm)")
    ax.set_ylabel("Terminal velocity (m/s)")

    if show:
        plt.show()
    return fig
