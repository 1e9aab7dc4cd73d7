"""
Results Panel
"""
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox, QFormLayout, QLabel, QPushButton, QTableWidget,
    QTableWidgetItem, QHeaderView, QAbstractItemView, QFileDialog, QMessageBox
)

from stokeslab.controller.session import Session
from stokeslab.model.errors import StokesLabError
from stokeslab.model.io import ExportManager
from stokeslab.model.recorder import CSV_HEADER, format_record
from stokeslab.model.state import ExperimentConfig, MeasurementRecord
from stokeslab.view.widgets.viscosity_plot import ViscosityPlot


class ResultsPanel(QWidget):
    def __init__(self, session: Session, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.session = session

        layout = QVBoxLayout(self)

        # --- Latest result ---
        self.grp_result = QGroupBox("Latest measurement")
        form = QFormLayout(self.grp_result)
        self.lbl_velocity = QLabel("-")
        self.lbl_viscosity = QLabel("-")
        self.lbl_error = QLabel("-")
        form.addRow("Measured speed [m/s]:", self.lbl_velocity)
        form.addRow("Calculated viscosity [Pa·s]:", self.lbl_viscosity)
        form.addRow("Error [%]:", self.lbl_error)
        layout.addWidget(self.grp_result)

        # --- History table ---
        grp_table = QGroupBox("Measurements")
        l_table = QVBoxLayout(grp_table)

        self.table = QTableWidget(0, len(CSV_HEADER))
        self.table.setHorizontalHeaderLabels(CSV_HEADER)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        l_table.addWidget(self.table)

        hbox = QHBoxLayout()
        self.btn_export = QPushButton("Export CSV...")
        self.btn_export.clicked.connect(self.on_export_clicked)
        self.btn_export.setEnabled(False)  # Disabled until a measurement exists
        hbox.addWidget(self.btn_export)

        self.btn_new = QPushButton("New experiment")
        self.btn_new.clicked.connect(self.on_new_experiment_clicked)
        hbox.addWidget(self.btn_new)
        l_table.addLayout(hbox)

        layout.addWidget(grp_table, 1)

        # --- Chart ---
        self.plot = ViscosityPlot()
        self.plot.setMinimumHeight(220)
        self.plot.set_reference(session.config.fluid.viscosity)
        layout.addWidget(self.plot, 1)

        # --- Session wiring ---
        self.session.record_added.connect(self.on_record_added)
        self.session.result_changed.connect(self.on_result_changed)
        self.session.history_cleared.connect(self.on_history_cleared)
        self.session.config_changed.connect(self.on_config_changed)

        self.load_from_state()

    def load_from_state(self) -> None:
        """Rebuild table, chart and result labels from the session."""
        self.table.setRowCount(0)
        for record in self.session.history:
            self._append_row(record)
        self.plot.set_records(self.session.history)
        self.on_result_changed(self.session.result)
        self.btn_export.setEnabled(bool(self.session.history))

    @Slot(object)
    def on_record_added(self, record: MeasurementRecord) -> None:
        self._append_row(record)
        self.plot.set_records(self.session.history)
        self.btn_export.setEnabled(True)

    @Slot(object)
    def on_result_changed(self, record: Optional[MeasurementRecord]) -> None:
        if record is None:
            self.grp_result.setVisible(False)
            return
        cells = format_record(record)
        self.lbl_velocity.setText(cells[3])
        self.lbl_viscosity.setText(cells[4])
        self.lbl_error.setText(cells[5])
        self.grp_result.setVisible(True)

    @Slot()
    def on_history_cleared(self) -> None:
        self.table.setRowCount(0)
        self.plot.set_records([])
        self.btn_export.setEnabled(False)

    @Slot(object)
    def on_config_changed(self, config: ExperimentConfig) -> None:
        self.plot.set_reference(config.fluid.viscosity)

    def _append_row(self, record: MeasurementRecord) -> None:
        row = self.table.rowCount()
        self.table.insertRow(row)
        for col, text in enumerate(format_record(record)):
            item = QTableWidgetItem(text)
            item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
            self.table.setItem(row, col, item)
        self.table.scrollToBottom()

    def on_export_clicked(self) -> None:
        """Save the history as CSV."""
        fname, _ = QFileDialog.getSaveFileName(
            self, "Export measurements", ExportManager.default_path(), "CSV Files (*.csv)"
        )
        if not fname:
            return
        try:
            path = self.session.save_history(fname)
            QMessageBox.information(self, "Export", f"Measurements saved to:\n{path}")
        except StokesLabError as e:
            QMessageBox.warning(self, "Export", str(e))
        except OSError as e:
            QMessageBox.critical(self, "Export Error", f"Could not write the file:\n{e}")

    def on_new_experiment_clicked(self) -> None:
        if self.session.history:
            reply = QMessageBox.question(
                self,
                "New experiment",
                "Discard all measurements and start a new experiment?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        self.session.new_experiment()
