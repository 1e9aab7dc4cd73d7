from .controls import ControlPanel
from .results import ResultsPanel

__all__ = [
    "ControlPanel",
    "ResultsPanel",
]
