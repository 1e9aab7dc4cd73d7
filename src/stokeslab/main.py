"""
Application Initialization
==========================
Command line entry point. Sets up logging and either starts the Qt event
loop or runs a headless measurement.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Parses the runtime options (log level, log file, frame mode).
2. Instantiates the lab `Session` (model + controller).
3. Instantiates the Main Window (view) and passes the session into it.
4. Offers `simulate` and `fluids` for use without a display.

Commands::

    stokeslab [gui]
    stokeslab simulate --fluid glycerin --ball-radius 8 --runs 3
    stokeslab fluids
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from stokeslab.config import (
    VISIBLE_APP_NAME, APP_VERSION, NOMINAL_FRAME_DT,
    DEFAULT_BALL_DENSITY, DEFAULT_BALL_RADIUS, DEFAULT_TUBE_HEIGHT, DEFAULT_MEASURE_DISTANCE,
)
from stokeslab.controller.clock import SimulatedClock
from stokeslab.controller.experiment import ExperimentStateMachine
from stokeslab.logging_config import setup_logging, parse_level
from stokeslab.model.errors import StokesLabError
from stokeslab.model.fluids import FluidKey, DEFAULT_FLUID, get_fluid, list_fluids
from stokeslab.model.io import ExportManager
from stokeslab.model.recorder import MeasurementRecorder
from stokeslab.model.state import ExperimentConfig, Phase

logger = logging.getLogger(__name__)


def _positive_float(text: str) -> float:
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stokeslab", description=VISIBLE_APP_NAME)
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    parser.add_argument("--log-file", help="Also write the log to this file.")
    parser.add_argument(
        "--fixed-frame-dt",
        type=_positive_float,
        help="Advance every frame by this many seconds instead of the measured frame time.",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("gui", help="Open the interactive lab (default)")

    simulate = subparsers.add_parser("simulate", help="Run measurements headless and print the CSV")
    simulate.add_argument(
        "--fluid",
        default=DEFAULT_FLUID.value,
        choices=[k.value for k in FluidKey],
        help="Fluid in the tube.",
    )
    simulate.add_argument("--ball-density", type=float, default=DEFAULT_BALL_DENSITY, help="kg/m³")
    simulate.add_argument("--ball-radius", type=float, default=DEFAULT_BALL_RADIUS, help="mm")
    simulate.add_argument("--tube-height", type=float, default=DEFAULT_TUBE_HEIGHT, help="mm")
    simulate.add_argument("--distance", type=float, default=DEFAULT_MEASURE_DISTANCE, help="Measured distance in mm.")
    simulate.add_argument("--dt", type=_positive_float, default=NOMINAL_FRAME_DT, help="Frame time in seconds.")
    simulate.add_argument("--runs", type=int, default=1, help="Number of measurements to record.")
    simulate.add_argument("--output", help="Write the CSV to this file instead of stdout.")

    subparsers.add_parser("fluids", help="List the fluid catalog")

    return parser


def simulate_measurements(
    config: ExperimentConfig,
    runs: int = 1,
    dt: float = NOMINAL_FRAME_DT,
    fixed_frame_dt: Optional[float] = None,
) -> MeasurementRecorder:
    """
    Drop the ball `runs` times with a simulated clock and record each timed window.

    Raises:
        InvalidGeometry: If `config` is not usable.
        InvalidMeasurement: If a run gives a non-physical viscosity.
    """
    config.validate()
    clock = SimulatedClock()
    machine = ExperimentStateMachine(config, clock=clock, fixed_frame_dt=fixed_frame_dt)
    recorder = MeasurementRecorder()
    step = fixed_frame_dt if fixed_frame_dt is not None else dt

    for _ in range(runs):
        machine.start()
        completed = None
        while machine.phase == Phase.RUNNING:
            clock.advance(step)
            completed = machine.tick(step) or completed
        if completed is not None:
            recorder.record(completed)
        machine.reset()

    return recorder


def _run_gui(fixed_frame_dt: Optional[float]) -> int:
    from PySide6.QtWidgets import QApplication

    from stokeslab.controller.session import Session
    from stokeslab.view.main_window import MainWindow

    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    session = Session(fixed_frame_dt=fixed_frame_dt)

    window = MainWindow(session)
    window.show()

    return app.exec()


def _run_simulate(args: argparse.Namespace) -> int:
    config = ExperimentConfig(
        fluid=get_fluid(args.fluid),
        ball_density=args.ball_density,
        ball_radius=args.ball_radius,
        tube_height=args.tube_height,
        measure_distance=args.distance,
    )
    recorder = simulate_measurements(config, runs=args.runs, dt=args.dt, fixed_frame_dt=args.fixed_frame_dt)

    if args.output:
        path = ExportManager.save_csv(recorder, config, args.output)
        print(f"Saved {recorder.count} measurement(s) to {path}")
    else:
        sys.stdout.write(recorder.export_history(config).decode("utf-8"))
    return 0


def _run_fluids() -> int:
    for fluid in list_fluids():
        print(f"{fluid.key.value:<15}{fluid.name:<16}{fluid.density:>8g} kg/m³{fluid.viscosity:>8g} Pa·s")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=parse_level(args.log_level), log_file=args.log_file)

    command = args.command or "gui"

    if command == "gui":
        return _run_gui(args.fixed_frame_dt)

    if command == "fluids":
        return _run_fluids()

    if command == "simulate":
        if args.runs < 1:
            parser.error("--runs must be at least 1")
        try:
            return _run_simulate(args)
        except StokesLabError as e:
            logger.warning(f"Simulation failed: {e}")
            parser.error(str(e))

    parser.error(f"Unknown command: {command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
