from __future__ import annotations

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import QWidget, QHBoxLayout, QSlider, QDoubleSpinBox, QSizePolicy

from stokeslab.config import ParameterBounds


class ParameterSlider(QWidget):
    """
    Slider with a linked spin box for one experiment parameter.

    QSlider only knows integers, so positions are counted in `bounds.step`
    units. `value_changed` is emitted for user edits only; `set_value()` is
    silent so the panel can sync from the session without feedback loops.
    """
    value_changed = Signal(float)

    def __init__(self, bounds: ParameterBounds, value: float, decimals: int = 0, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._bounds = bounds
        self._step = bounds.step

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.slider = QSlider(Qt.Orientation.Horizontal, self)
        self.slider.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        layout.addWidget(self.slider, 1)

        self.spin = QDoubleSpinBox(self)
        self.spin.setDecimals(decimals)
        self.spin.setSingleStep(self._step)
        self.spin.setKeyboardTracking(False)
        if bounds.unit:
            self.spin.setSuffix(f" {bounds.unit}")
        layout.addWidget(self.spin, 0)

        self.set_range(bounds.minimum, bounds.maximum)
        self.set_value(value)

        self.slider.valueChanged.connect(self._on_slider_moved)
        self.spin.valueChanged.connect(self._on_spin_changed)

    def value(self) -> float:
        return self.spin.value()

    def set_range(self, minimum: float, maximum: float) -> None:
        self.slider.blockSignals(True)
        self.spin.blockSignals(True)
        try:
            self.slider.setRange(self._to_ticks(minimum), self._to_ticks(maximum))
            self.spin.setRange(minimum, maximum)
        finally:
            self.slider.blockSignals(False)
            self.spin.blockSignals(False)

    def set_value(self, value: float) -> None:
        self.slider.blockSignals(True)
        self.spin.blockSignals(True)
        try:
            self.spin.setValue(value)
            self.slider.setValue(self._to_ticks(value))
        finally:
            self.slider.blockSignals(False)
            self.spin.blockSignals(False)

    def _to_ticks(self, value: float) -> int:
        return int(round(value / self._step))

    @Slot(int)
    def _on_slider_moved(self, ticks: int) -> None:
        value = ticks * self._step
        self.spin.blockSignals(True)
        self.spin.setValue(value)
        self.spin.blockSignals(False)
        self.value_changed.emit(self.spin.value())

    @Slot(float)
    def _on_spin_changed(self, value: float) -> None:
        self.slider.blockSignals(True)
        self.slider.setValue(self._to_ticks(value))
        self.slider.blockSignals(False)
        self.value_changed.emit(value)
