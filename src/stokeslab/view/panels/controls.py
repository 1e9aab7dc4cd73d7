"""
Experiment Control Panel
"""
from __future__ import annotations

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox, QFormLayout, QComboBox, QLabel, QPushButton,
    QStyle, QMessageBox
)

from stokeslab import config as cfg
from stokeslab.controller.session import Session
from stokeslab.model.errors import StokesLabError
from stokeslab.model.fluids import list_fluids
from stokeslab.model.state import ExperimentConfig, Phase, Readout, Stage
from stokeslab.view.formatting import (
    format_fluid, format_readout, start_button_label, PHASE_LABELS, STAGE_LABELS
)
from stokeslab.view.widgets.parameter_slider import ParameterSlider


class ControlPanel(QWidget):
    """Workflow steps, fluid and ball parameters, run buttons and the live readouts."""

    def __init__(self, session: Session, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.session = session
        config = session.config

        layout = QVBoxLayout(self)

        # --- Workflow steps ---
        steps = QHBoxLayout()
        self.step_labels: dict[Stage, QLabel] = {}
        for stage in Stage:
            lbl = QLabel(STAGE_LABELS[stage])
            lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
            steps.addWidget(lbl)
            self.step_labels[stage] = lbl
        layout.addLayout(steps)

        # --- Fluid ---
        grp_fluid = QGroupBox("Fluid")
        form_fluid = QFormLayout(grp_fluid)

        self.combo_fluid = QComboBox()
        for fluid in list_fluids():
            self.combo_fluid.addItem(fluid.name, userData=fluid.key)
        self.combo_fluid.setCurrentIndex(self.combo_fluid.findData(config.fluid.key))
        self.combo_fluid.currentIndexChanged.connect(self.on_fluid_changed)
        form_fluid.addRow("Fluid:", self.combo_fluid)

        self.lbl_fluid_density = QLabel()
        self.lbl_fluid_viscosity = QLabel()
        form_fluid.addRow("Density:", self.lbl_fluid_density)
        form_fluid.addRow("Viscosity:", self.lbl_fluid_viscosity)

        layout.addWidget(grp_fluid)

        # --- Ball & tube ---
        grp_ball = QGroupBox("Ball and tube")
        form_ball = QFormLayout(grp_ball)

        self.sld_density = ParameterSlider(cfg.BALL_DENSITY_BOUNDS, config.ball_density)
        self.sld_density.value_changed.connect(lambda v: self._apply(ball_density=v))
        form_ball.addRow("Ball density:", self.sld_density)

        self.sld_radius = ParameterSlider(cfg.BALL_RADIUS_BOUNDS, config.ball_radius, decimals=1)
        self.sld_radius.value_changed.connect(lambda v: self._apply(ball_radius=v))
        form_ball.addRow("Ball radius:", self.sld_radius)

        self.sld_height = ParameterSlider(cfg.TUBE_HEIGHT_BOUNDS, config.tube_height)
        self.sld_height.value_changed.connect(self.on_tube_height_changed)
        form_ball.addRow("Tube height:", self.sld_height)

        self.sld_distance = ParameterSlider(cfg.MEASURE_DISTANCE_BOUNDS, config.measure_distance)
        self.sld_distance.value_changed.connect(lambda v: self._apply(measure_distance=v))
        form_ball.addRow("Measured distance:", self.sld_distance)

        self.lbl_config_error = QLabel()
        self.lbl_config_error.setWordWrap(True)
        self.lbl_config_error.setStyleSheet("QLabel { color: #b00020; }")
        self.lbl_config_error.setVisible(False)
        form_ball.addRow(self.lbl_config_error)

        layout.addWidget(grp_ball)

        # --- Run ---
        grp_run = QGroupBox("Experiment")
        l_run = QVBoxLayout(grp_run)

        hbox = QHBoxLayout()
        self.btn_start = QPushButton()
        self.btn_start.setMinimumHeight(36)
        self.btn_start.clicked.connect(self.session.toggle)
        hbox.addWidget(self.btn_start)

        self.btn_reset = QPushButton("Reset")
        self.btn_reset.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        self.btn_reset.setMinimumHeight(36)
        self.btn_reset.clicked.connect(self.session.reset)
        hbox.addWidget(self.btn_reset)
        l_run.addLayout(hbox)

        self.btn_calculate = QPushButton("Calculate viscosity")
        self.btn_calculate.setMinimumHeight(36)
        self.btn_calculate.clicked.connect(self.on_calculate_clicked)
        l_run.addWidget(self.btn_calculate)

        self.lbl_phase = QLabel()
        self.lbl_phase.setAlignment(Qt.AlignmentFlag.AlignCenter)
        l_run.addWidget(self.lbl_phase)

        layout.addWidget(grp_run)

        # --- Readouts ---
        grp_readout = QGroupBox("Readouts")
        form_readout = QFormLayout(grp_readout)
        self.lbl_speed = QLabel()
        self.lbl_time = QLabel()
        self.lbl_force = QLabel()
        form_readout.addRow("Ball speed:", self.lbl_speed)
        form_readout.addRow("Time in window:", self.lbl_time)
        form_readout.addRow("Drag force:", self.lbl_force)
        layout.addWidget(grp_readout)

        layout.addStretch()

        # --- Session wiring ---
        self.session.config_changed.connect(self.load_from_config)
        self.session.phase_changed.connect(self.on_phase_changed)
        self.session.readout_changed.connect(self.on_readout_changed)
        self.session.stage_changed.connect(self.on_stage_changed)

        self.load_from_config(config)
        self.on_phase_changed(session.phase)
        self.on_readout_changed(session.readout)
        self.on_stage_changed(int(session.stage))

    # --- Session -> widgets ---

    @Slot(object)
    def load_from_config(self, config: ExperimentConfig) -> None:
        self.combo_fluid.blockSignals(True)
        self.combo_fluid.setCurrentIndex(self.combo_fluid.findData(config.fluid.key))
        self.combo_fluid.blockSignals(False)

        density, viscosity = format_fluid(config.fluid)
        self.lbl_fluid_density.setText(density)
        self.lbl_fluid_viscosity.setText(viscosity)

        self.sld_distance.set_range(cfg.MEASURE_DISTANCE_BOUNDS.minimum, cfg.max_measure_distance(config.tube_height) - 1)
        for slider, value in (
            (self.sld_density, config.ball_density),
            (self.sld_radius, config.ball_radius),
            (self.sld_height, config.tube_height),
            (self.sld_distance, config.measure_distance),
        ):
            slider.set_value(value)

    @Slot(object)
    def on_phase_changed(self, phase: Phase) -> None:
        window_done = self.session.machine.state.window_completed
        self.btn_start.setText(start_button_label(phase, window_done))
        icon = QStyle.StandardPixmap.SP_MediaPause if phase == Phase.RUNNING else QStyle.StandardPixmap.SP_MediaPlay
        self.btn_start.setIcon(self.style().standardIcon(icon))
        self.lbl_phase.setText(PHASE_LABELS[phase])

    @Slot(object)
    def on_readout_changed(self, readout: Readout) -> None:
        speed, elapsed, force = format_readout(readout)
        self.lbl_speed.setText(speed)
        self.lbl_time.setText(elapsed)
        self.lbl_force.setText(force)

    @Slot(int)
    def on_stage_changed(self, stage: int) -> None:
        for s, lbl in self.step_labels.items():
            active = s == stage
            done = s < stage
            if active:
                lbl.setStyleSheet("QLabel { font-weight: bold; color: #1e3c72; }")
            elif done:
                lbl.setStyleSheet("QLabel { color: #2e7d32; }")
            else:
                lbl.setStyleSheet("QLabel { color: gray; }")

    # --- Widgets -> session ---

    @Slot(int)
    def on_fluid_changed(self, index: int) -> None:
        self._apply(fluid_key=self.combo_fluid.itemData(index))

    @Slot(float)
    def on_tube_height_changed(self, height: float) -> None:
        # Shrink the window with the tube instead of rejecting the edit
        limit = cfg.max_measure_distance(height) - 1
        distance = min(self.session.config.measure_distance, limit)
        self._apply(tube_height=height, measure_distance=distance)

    def _apply(self, fluid_key=None, **changes) -> None:
        try:
            if fluid_key is not None:
                self.session.select_fluid(fluid_key)
            else:
                self.session.update_config(**changes)
        except StokesLabError as e:
            self.lbl_config_error.setText(str(e))
            self.lbl_config_error.setVisible(True)
            # Put the widgets back to the configuration still in force
            self.load_from_config(self.session.config)
            return
        self.lbl_config_error.setVisible(False)

    def on_calculate_clicked(self) -> None:
        try:
            self.session.calculate_viscosity()
        except StokesLabError as e:
            QMessageBox.warning(self, "Viscosity", str(e))
