"""
Measurement Recorder
====================
Turns a timed fall into a viscosity estimate and keeps the session's
results history.

The history is append-only: records are immutable, and their order is the
order of their sequence numbers. Sequence numbers keep counting across run
resets and start again from 1 only after `clear()`.
"""
from __future__ import annotations

import csv
import io
import logging
import math
from typing import Optional, Sequence

from stokeslab.config import GRAVITY
from stokeslab.model.errors import NoPriorMeasurement, EmptyHistory, InvalidMeasurement
from stokeslab.model.physics import stokes_viscosity, percent_error
from stokeslab.model.state import ExperimentConfig, CompletedMeasurement, MeasurementRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ["No.", "Distance (m)", "Time (s)", "Velocity (m/s)", "Viscosity (Pa·s)", "Error (%)"]


class MeasurementRecorder:
    def __init__(self) -> None:
        self._history: list[MeasurementRecord] = []
        self._sequence: int = 0

    @property
    def history(self) -> tuple[MeasurementRecord, ...]:
        return tuple(self._history)

    @property
    def count(self) -> int:
        return len(self._history)

    @property
    def last(self) -> Optional[MeasurementRecord]:
        return self._history[-1] if self._history else None

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent record (0 when nothing was recorded yet)."""
        return self._sequence

    def record(self, completed: CompletedMeasurement) -> MeasurementRecord:
        """
        Record a window handed over by the state machine.

        Raises:
            InvalidMeasurement: If the ball crossed the whole window within a
                single frame, so there is no time to divide the distance by.
            Otherwise as `record_completed_measurement`.
        """
        if not completed.timed:
            logger.warning(f"Rejected untimed window of {completed.distance_m * 1000:g} mm")
            raise InvalidMeasurement(
                f"The ball is too fast for a {completed.distance_m * 1000:g} mm window: it crossed "
                "both marks within one frame. Lengthen the measured distance or use a smaller ball."
            )
        return self.record_completed_measurement(completed.elapsed_time, completed.config)

    def record_completed_measurement(self, elapsed_seconds: float, config: ExperimentConfig) -> MeasurementRecord:
        """
        Back-calculate the viscosity from a timed window and append it to the history.

        Args:
            elapsed_seconds: Time the ball needed to cross the measurement window.
            config: Configuration the run was made with.

        Raises:
            NoPriorMeasurement: If no window was timed (elapsed time is zero).
            InvalidMeasurement: If the result is not a finite positive viscosity,
                e.g. for a ball that is not denser than the fluid.
        """
        if elapsed_seconds <= 0:
            raise NoPriorMeasurement()

        distance = config.distance_m
        velocity = distance / elapsed_seconds
        viscosity = stokes_viscosity(config, velocity)

        if not math.isfinite(viscosity) or viscosity <= 0:
            logger.warning(
                f"Rejected measurement: t={elapsed_seconds:.3f} s gives viscosity {viscosity!r} Pa·s"
            )
            raise InvalidMeasurement(
                f"The measured fall gives a viscosity of {viscosity:.3g} Pa·s, which is not physical. "
                f"Stokes' law needs a ball denser than {config.fluid.name.lower()} "
                f"({config.fluid.density:g} kg/m³)."
            )

        self._sequence += 1
        record = MeasurementRecord(
            sequence_number=self._sequence,
            distance=distance,
            elapsed_time=elapsed_seconds,
            observed_velocity=velocity,
            computed_viscosity=viscosity,
            percent_error=percent_error(viscosity, config.fluid.viscosity),
            reference_viscosity=config.fluid.viscosity,
        )
        self._history.append(record)
        logger.info(
            f"Measurement #{record.sequence_number}: v={velocity:.4f} m/s, "
            f"eta={viscosity:.3f} Pa·s, error={record.percent_error:.2f} %"
        )
        return record

    def clear(self) -> None:
        self._history.clear()
        self._sequence = 0
        logger.info("Measurement history cleared.")

    def export_history(self, config: ExperimentConfig) -> bytes:
        """
        Serialize the history as CSV followed by a block describing the experiment.

        Raises:
            EmptyHistory: If there is nothing to export.
        """
        if not self._history:
            raise EmptyHistory()

        buffer = io.StringIO(newline="")
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for record in self._history:
            writer.writerow(format_record(record))

        fluid = config.fluid
        buffer.write("\n")
        buffer.write("Experiment parameters:\n")
        buffer.write(f"Fluid: {fluid.name}\n")
        buffer.write(f"Fluid density: {fluid.density:g} kg/m³\n")
        buffer.write(f"True viscosity: {fluid.viscosity:g} Pa·s\n")
        buffer.write(f"Ball density: {config.ball_density:g} kg/m³\n")
        buffer.write(f"Ball radius: {config.ball_radius:g} mm\n")
        buffer.write(f"Gravitational acceleration: {GRAVITY:g} m/s²\n")

        return buffer.getvalue().encode("utf-8")


def format_record(record: MeasurementRecord) -> list[str]:
    """Table cells of a record with the precision used on screen and in the CSV."""
    return [
        str(record.sequence_number),
        f"{record.distance:.3f}",
        f"{record.elapsed_time:.2f}",
        f"{record.observed_velocity:.4f}",
        f"{record.computed_viscosity:.3f}",
        f"{record.percent_error:.2f}",
    ]


def common_reference(records: Sequence[MeasurementRecord], current: float) -> Optional[float]:
    """
    Reference viscosity all `records` were measured against.

    Returns `current` for an empty history and None when the history mixes
    fluids, so no single reference line applies.
    """
    references = {r.reference_viscosity for r in records}
    if not references:
        return current
    if len(references) == 1:
        return references.pop()
    return None
