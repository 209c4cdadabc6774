"""
Pixel-to-millimeter calibration.

The workflow lives in `Calibrator`; `CalibrationStore` persists completed
calibrations and `measure` turns detections into labelled measurements.
"""

from .errors import (
    CalibrationError,
    IncompleteSelection,
    InvalidReferenceSize,
    InvalidState,
    MissingReferenceSize,
)
from .state_machine import CalibrationMode, CalibrationSnapshot, Calibrator, diameter_px
from .store import CalibrationStore
from .annotate import Measurement, format_label, measure

__all__ = [
    "CalibrationError",
    "IncompleteSelection",
    "InvalidReferenceSize",
    "InvalidState",
    "MissingReferenceSize",
    "CalibrationMode",
    "CalibrationSnapshot",
    "Calibrator",
    "diameter_px",
    "CalibrationStore",
    "Measurement",
    "format_label",
    "measure",
]
