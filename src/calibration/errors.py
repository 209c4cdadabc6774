"""
Calibration workflow errors.

All of these are recoverable: the calibrator leaves its state untouched and
the caller surfaces the message to the user.
"""

from __future__ import annotations


class CalibrationError(Exception):
    """Base class for calibration workflow errors."""


class InvalidReferenceSize(CalibrationError):
    """Reference size is not a positive, finite number."""


class MissingReferenceSize(CalibrationError):
    """Calibration was started before a reference size was set."""


class IncompleteSelection(CalibrationError):
    """Calibration cannot complete without a reference detection and size."""


class InvalidState(CalibrationError):
    """Operation is not allowed in the current calibration mode."""
