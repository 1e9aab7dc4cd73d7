"""
Main Application Window
=======================
The primary GUI container: controls on the left, the tube in the middle and
the results on the right.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects menu actions and the session's signals to the
   panels and the tube canvas.
"""
from __future__ import annotations


from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QMainWindow, QSplitter, QMessageBox, QLabel

from stokeslab.config import VISIBLE_APP_NAME, APP_VERSION
from stokeslab.controller.session import Session
from stokeslab.model.physics import plot_terminal_velocity
from stokeslab.model.state import Phase
from stokeslab.view.formatting import format_time
from stokeslab.view.panels import ControlPanel, ResultsPanel
from stokeslab.view.widgets.tube_canvas import TubeCanvas



class MainWindow(QMainWindow):
    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1300, 800)

        # --- Left | Centre | Right ---
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        self.controls = ControlPanel(session)
        splitter.addWidget(self.controls)

        self.canvas = TubeCanvas(session.config)
        splitter.addWidget(self.canvas)

        self.results = ResultsPanel(session)
        splitter.addWidget(self.results)

        splitter.setSizes([380, 300, 620])

        self.lbl_stopwatch = QLabel()
        self.statusBar().addPermanentWidget(self.lbl_stopwatch)

        # --- Signal connections ---
        session.config_changed.connect(self.canvas.set_config)
        session.frame_changed.connect(self.on_frame)
        session.phase_changed.connect(self.on_phase_changed)
        session.measurement_completed.connect(self.on_measurement_completed)

        self._create_actions()
        self._create_menus()
        self.on_phase_changed(session.phase)

    def _create_actions(self) -> None:
        self.act_export = QAction("Export CSV...", self)
        self.act_export.setShortcut("Ctrl+E")
        self.act_export.triggered.connect(self.results.on_export_clicked)

        self.act_new = QAction("New Experiment", self)
        self.act_new.setShortcut("Ctrl+N")
        self.act_new.triggered.connect(self.results.on_new_experiment_clicked)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        self.act_toggle = QAction("Start / Pause", self)
        self.act_toggle.setShortcut("Space")
        self.act_toggle.triggered.connect(self.session.toggle)

        self.act_reset = QAction("Reset", self)
        self.act_reset.setShortcut("Ctrl+R")
        self.act_reset.triggered.connect(self.session.reset)

        self.act_calculate = QAction("Calculate Viscosity", self)
        self.act_calculate.setShortcut("Ctrl+Return")
        self.act_calculate.triggered.connect(self.controls.on_calculate_clicked)

        self.act_curve = QAction("Terminal Velocity Curve...", self)
        self.act_curve.triggered.connect(self.on_show_velocity_curve)

        self.act_about = QAction("About", self)
        self.act_about.triggered.connect(self.on_about)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_new)
        file_menu.addAction(self.act_export)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        run_menu = menu_bar.addMenu("&Experiment")
        run_menu.addAction(self.act_toggle)
        run_menu.addAction(self.act_reset)
        run_menu.addSeparator()
        run_menu.addAction(self.act_calculate)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_curve)

        help_menu = menu_bar.addMenu("&Help")
        help_menu.addAction(self.act_about)

    # --- Slots ---

    @Slot(float, object)
    def on_frame(self, position_mm: float, phase: Phase) -> None:
        machine = self.session.machine
        self.canvas.set_measuring(machine.measuring)
        self.canvas.set_frame(position_mm, phase)
        if machine.measuring:
            self.lbl_stopwatch.setText(f"Timing: {format_time(machine.current_elapsed())}")

    @Slot(object)
    def on_phase_changed(self, phase: Phase) -> None:
        if phase == Phase.REACHED_BOTTOM:
            self.statusBar().showMessage("The ball reached the bottom. Reset or start a new run.")
        elif phase == Phase.IDLE:
            self.lbl_stopwatch.clear()
            self.statusBar().clearMessage()

    @Slot(object)
    def on_measurement_completed(self, completed) -> None:
        self.lbl_stopwatch.setText(f"Measured: {format_time(completed.elapsed_time)}")
        self.statusBar().showMessage("Measurement complete. Calculate the viscosity or run again.", 5000)

    def on_show_velocity_curve(self) -> None:
        fig = plot_terminal_velocity(self.session.config, show=False)
        fig.show()

    def on_about(self) -> None:
        QMessageBox.about(
            self,
            VISIBLE_APP_NAME,
            f"<b>{VISIBLE_APP_NAME}</b> {APP_VERSION}<br><br>"
            "Time a ball falling through a viscous fluid and recover the fluid's "
            "viscosity from Stokes' law.",
        )

    def closeEvent(self, event, /) -> None:
        """Stop the animation before the window goes away."""
        self.session.scheduler.stop()
        event.accept()
