"""Chart of the back-calculated viscosity per measurement."""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget

from stokeslab.model.recorder import common_reference
from stokeslab.model.state import MeasurementRecord


class ViscosityPlot(pg.PlotWidget):
    """Scatter of computed viscosity against measurement number, with the reference value as a line."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setBackground('w')
        self.showGrid(x=True, y=True, alpha=0.3)
        self.setLabel('bottom', 'Measurement No.', color='black')
        self.setLabel('left', 'Viscosity [Pa·s]', color='black')
        self.setTitle('Measured viscosity', color='black', size='11pt')
        for axis in ('bottom', 'left'):
            self.getAxis(axis).setPen('k')
            self.getAxis(axis).setTextPen('k')

        self._current_reference = 0.0
        self._records: Sequence[MeasurementRecord] = ()
        self._reference_line = pg.InfiniteLine(
            angle=0,
            pen=pg.mkPen(color='r', width=2, style=Qt.PenStyle.DashLine),
            label='true {value:.3g} Pa·s',
            labelOpts={'position': 0.9, 'color': 'r', 'fill': (255, 255, 255, 150)},
        )
        self.addItem(self._reference_line)
        self._reference_line.setVisible(False)

        self._curve = self.plot(
            [], [],
            pen=pg.mkPen(color='#1f77b4', width=1),
            symbol='o',
            symbolSize=8,
            symbolBrush='#1f77b4',
            symbolPen=None,
        )
        # Per-record true values, shown when the history mixes fluids
        self._reference_marks = self.plot(
            [], [],
            pen=None,
            symbol='x',
            symbolSize=10,
            symbolBrush='r',
            symbolPen='r',
        )

    def set_reference(self, viscosity: float) -> None:
        """True viscosity of the fluid currently selected."""
        self._current_reference = viscosity
        self._update_reference()

    def set_records(self, records: Sequence[MeasurementRecord]) -> None:
        self._records = tuple(records)
        numbers = np.array([r.sequence_number for r in self._records], dtype=float)
        values = np.array([r.computed_viscosity for r in self._records], dtype=float)
        self._curve.setData(numbers, values)
        self._update_reference()
        if len(self._records) > 0:
            self.autoRange()

    def _update_reference(self) -> None:
        reference = common_reference(self._records, self._current_reference)
        if reference is None:
            self._reference_line.setVisible(False)
            numbers = np.array([r.sequence_number for r in self._records], dtype=float)
            truths = np.array([r.reference_viscosity for r in self._records], dtype=float)
            self._reference_marks.setData(numbers, truths)
        else:
            self._reference_line.setPos(reference)
            self._reference_line.setVisible(True)
            self._reference_marks.setData([], [])
