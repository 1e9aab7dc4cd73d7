"""
Input/Output Manager (CSV)
Writes the measurement history to a CSV file the user can open in a spreadsheet.
"""
import logging
import os

from stokeslab.config import DEFAULT_EXPORT_FILENAME
from stokeslab.model.recorder import MeasurementRecorder
from stokeslab.model.state import ExperimentConfig

# Get module logger
logger = logging.getLogger(__name__)


class ExportManager:
    @staticmethod
    def default_path(directory: str = "") -> str:
        return os.path.join(directory, DEFAULT_EXPORT_FILENAME) if directory else DEFAULT_EXPORT_FILENAME

    @staticmethod
    def save_csv(recorder: MeasurementRecorder, config: ExperimentConfig, filepath: str) -> str:
        """
        Serialize the recorder's history and write it to `filepath`.

        A missing '.csv' extension is appended. Returns the path written.

        Raises:
            EmptyHistory: If there is nothing to export (nothing is written).
            OSError: If the file cannot be written.
        """
        if not filepath.lower().endswith(".csv"):
            filepath += ".csv"

        # Serialize first so an empty history never leaves an empty file behind
        payload = recorder.export_history(config)

        logger.info(f"Exporting {recorder.count} measurements to: {filepath}")
        try:
            with open(filepath, "wb") as f:
                f.write(payload)
        except OSError as e:
            logger.exception(f"Failed to export measurements: {e}")
            raise

        logger.info(f"Measurements exported to: {filepath}")
        return filepath
