"""
Tube Canvas
===========
Draws the glass tube, the fluid, the two timing marks and the ball.

Scene units are millimetres with the origin at the top of the tube; the
whole tube is scaled to fit the widget height.
"""
from __future__ import annotations

from PySide6.QtCore import Qt, QRectF, QPointF, Slot
from PySide6.QtGui import QPainter, QColor, QPen, QBrush, QLinearGradient
from PySide6.QtWidgets import QWidget, QSizePolicy

from stokeslab.config import BALL_TOP_OFFSET_MM
from stokeslab.model.fluids import FluidKey
from stokeslab.model.state import ExperimentConfig, Phase

FLUID_COLORS = {
    FluidKey.WATER: QColor(120, 180, 240, 150),
    FluidKey.SUNFLOWER_OIL: QColor(240, 200, 60, 170),
    FluidKey.MOTOR_OIL: QColor(150, 100, 30, 190),
    FluidKey.GLYCERIN: QColor(220, 230, 235, 190),
}

TUBE_WIDTH_MM = 120.0
MARGIN_PX = 20.0
MIN_BALL_RADIUS_PX = 4.0


class TubeCanvas(QWidget):
    def __init__(self, config: ExperimentConfig, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(220, 300)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._config = config
        self._position = 0.0
        self._phase = Phase.IDLE
        self._measuring = False

    # --- Slots connected to the session ---

    @Slot(object)
    def set_config(self, config: ExperimentConfig) -> None:
        self._config = config
        self.update()

    @Slot(float, object)
    def set_frame(self, position_mm: float, phase: Phase) -> None:
        self._position = position_mm
        self._phase = phase
        self.update()

    def set_measuring(self, measuring: bool) -> None:
        if measuring != self._measuring:
            self._measuring = measuring
            self.update()

    # --- Painting ---

    def _scale(self) -> float:
        """Pixels per scene millimetre."""
        available = max(1.0, self.height() - 2 * MARGIN_PX)
        return available / self._config.tube_height

    def paintEvent(self, event, /) -> None:
        cfg = self._config
        scale = self._scale()
        tube_w = TUBE_WIDTH_MM * scale
        tube_h = cfg.tube_height * scale
        left = (self.width() - tube_w) / 2
        top = MARGIN_PX

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Fluid
        tube = QRectF(left, top, tube_w, tube_h)
        painter.fillRect(tube, FLUID_COLORS.get(cfg.fluid.key, QColor(180, 180, 180, 150)))

        # Glass
        glass = QLinearGradient(tube.topLeft(), tube.topRight())
        glass.setColorAt(0.0, QColor(255, 255, 255, 90))
        glass.setColorAt(0.2, QColor(255, 255, 255, 0))
        glass.setColorAt(1.0, QColor(255, 255, 255, 60))
        painter.fillRect(tube, QBrush(glass))
        painter.setPen(QPen(QColor(60, 60, 60), 2))
        painter.drawRect(tube)

        # Timing marks, measured from the ball's start position
        mark_pen = QPen(QColor(200, 30, 30), 1.5, Qt.PenStyle.DashLine)
        painter.setPen(mark_pen)
        for mark_mm, label in ((cfg.window_start_mm, "start"), (cfg.window_end_mm, "stop")):
            y = top + (BALL_TOP_OFFSET_MM + mark_mm) * scale
            painter.drawLine(QPointF(left - 10, y), QPointF(left + tube_w + 10, y))
            painter.drawText(QPointF(left + tube_w + 14, y + 4), label)

        painter.setPen(QPen(QColor(60, 60, 60)))
        painter.drawText(
            QRectF(left, top + tube_h + 2, tube_w, MARGIN_PX),
            Qt.AlignmentFlag.AlignCenter,
            f"{cfg.measure_distance:g} mm window",
        )

        # Ball
        radius_px = max(MIN_BALL_RADIUS_PX, cfg.ball_radius * scale)
        center = QPointF(left + tube_w / 2, top + (BALL_TOP_OFFSET_MM + self._position) * scale + radius_px)
        ball_color = QColor(220, 60, 40) if self._measuring else QColor(70, 70, 80)
        shade = QLinearGradient(center - QPointF(radius_px, radius_px), center + QPointF(radius_px, radius_px))
        shade.setColorAt(0.0, ball_color.lighter(170))
        shade.setColorAt(1.0, ball_color)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(shade))
        painter.drawEllipse(center, radius_px, radius_px)

        painter.end()
