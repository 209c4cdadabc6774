"""
Pixel-to-millimeter calibration workflow.

The user declares the diameter of a reference O-ring, starts calibration,
picks the matching detection, then completes calibration. The resulting
pixels-per-millimeter factor converts any detection's size into millimeters.

    UNCALIBRATED -> AWAITING_REFERENCE_SELECTION -> CALIBRATED
          ^                                            |
          +------------------- reset() ----------------+

A single scale factor is used (no perspective correction): reference and
measured parts are assumed to lie in the same plane at the same distance.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from models.detection import Detection
from .errors import IncompleteSelection, InvalidReferenceSize, InvalidState, MissingReferenceSize


DEFAULT_INPUT_SIZE = 640


class CalibrationMode(str, Enum):
    UNCALIBRATED = "uncalibrated"
    AWAITING_REFERENCE_SELECTION = "awaiting-reference-selection"
    CALIBRATED = "calibrated"


def _is_valid_size(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def diameter_px(detection: Detection, input_size: int = DEFAULT_INPUT_SIZE) -> float:
    """Mean of width and height, in model-input pixels."""
    return (detection.width + detection.height) / 2 * input_size


@dataclass(frozen=True)
class CalibrationSnapshot:
    """Read-only view of the calibrator at one point in time."""
    mode: CalibrationMode
    reference_size_mm: Optional[float]
    pixels_per_mm: Optional[float]
    selected_reference: Optional[Detection]
    input_size: int = DEFAULT_INPUT_SIZE

    @property
    def is_calibrated(self) -> bool:
        return self.mode == CalibrationMode.CALIBRATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "reference_size_mm": self.reference_size_mm,
            "pixels_per_mm": self.pixels_per_mm,
            "selected_reference": (
                self.selected_reference.to_dict() if self.selected_reference else None
            ),
            "input_size": self.input_size,
        }


class Calibrator:
    """
    Calibration state machine.

    Rejected operations raise a `CalibrationError` subclass and leave every
    field as it was. Mutations and queries are serialized with a lock so the
    web thread and the frame loop can share one instance.

    Example:
        cal = Calibrator()
        cal.set_reference_size(10)
        cal.start_calibration()
        cal.select_reference(detections[0])
        cal.complete_calibration()
        size_mm = cal.physical_size(other_detection)
    """

    def __init__(self, input_size: int = DEFAULT_INPUT_SIZE):
        if input_size <= 0:
            raise ValueError(f"input_size must be positive, got {input_size}")
        self.input_size = input_size
        self._lock = threading.RLock()
        self._mode = CalibrationMode.UNCALIBRATED
        self._reference_size_mm: Optional[float] = None
        self._selected: Optional[Detection] = None
        self._pixels_per_mm: Optional[float] = None

    @property
    def mode(self) -> CalibrationMode:
        return self._mode

    @property
    def reference_size_mm(self) -> Optional[float]:
        return self._reference_size_mm

    @property
    def selected_reference(self) -> Optional[Detection]:
        return self._selected

    @property
    def pixels_per_mm(self) -> Optional[float]:
        return self._pixels_per_mm

    @property
    def is_calibrated(self) -> bool:
        return self._mode == CalibrationMode.CALIBRATED

    def snapshot(self) -> CalibrationSnapshot:
        with self._lock:
            return CalibrationSnapshot(
                mode=self._mode,
                reference_size_mm=self._reference_size_mm,
                pixels_per_mm=self._pixels_per_mm,
                selected_reference=self._selected,
                input_size=self.input_size,
            )

    def set_reference_size(self, mm: Any) -> float:
        """
        Store the physical diameter of the reference object.

        Accepts numbers or numeric strings. Does not change the mode.

        Raises:
            InvalidReferenceSize: If the value is not a positive finite number.
        """
        if isinstance(mm, bool):
            raise InvalidReferenceSize(f"Reference size must be a number, got {mm!r}")
        try:
            value = float(mm)
        except (TypeError, ValueError):
            raise InvalidReferenceSize(f"Reference size must be a number, got {mm!r}") from None
        if not _is_valid_size(value):
            raise InvalidReferenceSize(f"Reference size must be positive and finite, got {mm!r}")

        with self._lock:
            self._reference_size_mm = value
        logging.info(f"Calibration reference size set to {value} mm")
        return value

    def start_calibration(self) -> None:
        """
        Begin waiting for the user to pick a reference detection.

        Raises:
            InvalidState: If not currently uncalibrated.
            MissingReferenceSize: If no valid reference size has been set.
        """
        with self._lock:
            if self._mode != CalibrationMode.UNCALIBRATED:
                raise InvalidState(f"Cannot start calibration while {self._mode.value}")
            if not _is_valid_size(self._reference_size_mm):
                raise MissingReferenceSize("Please enter a valid reference size first")
            self._mode = CalibrationMode.AWAITING_REFERENCE_SELECTION
            self._selected = None
        logging.info("Calibration started, awaiting reference selection")

    def select_reference(self, detection: Detection) -> None:
        """
        Record a snapshot of the detection chosen as the reference.

        Selecting again replaces the previous choice.

        Raises:
            InvalidState: If not awaiting a reference selection.
        """
        with self._lock:
            if self._mode != CalibrationMode.AWAITING_REFERENCE_SELECTION:
                raise InvalidState(f"Cannot select a reference while {self._mode.value}")
            self._selected = dataclasses.replace(detection)
        logging.info(
            f"Calibration reference selected: {detection.label} "
            f"conf={detection.confidence:.2f} size={detection.width:.4f}x{detection.height:.4f}"
        )

    def is_selected(self, detection: Detection) -> bool:
        """Value comparison against the selected reference snapshot."""
        with self._lock:
            return self._selected is not None and self._selected == detection

    def complete_calibration(self) -> float:
        """
        Derive pixels-per-millimeter from the selected reference.

        Returns:
            The new pixels_per_mm factor.

        Raises:
            IncompleteSelection: If no reference is selected, the reference
                size is invalid, or the derived factor is unusable.
        """
        with self._lock:
            if (
                self._mode != CalibrationMode.AWAITING_REFERENCE_SELECTION
                or self._selected is None
                or not _is_valid_size(self._reference_size_mm)
            ):
                raise IncompleteSelection("Please select a reference object and ensure valid size")

            ppm = diameter_px(self._selected, self.input_size) / self._reference_size_mm
            if not _is_valid_size(ppm):
                raise IncompleteSelection(f"Reference object has no usable size (ppm={ppm})")

            self._pixels_per_mm = ppm
            self._mode = CalibrationMode.CALIBRATED
        logging.info(f"Calibration complete: {ppm:.2f} pixels/mm")
        return ppm

    def restore(self, pixels_per_mm: Any, reference_size_mm: Any) -> None:
        """
        Re-enter CALIBRATED from a persisted result.

        Raises:
            InvalidReferenceSize: If either value is not positive and finite.
        """
        try:
            ppm = float(pixels_per_mm)
            size = float(reference_size_mm)
        except (TypeError, ValueError):
            raise InvalidReferenceSize(
                f"Cannot restore calibration from ppm={pixels_per_mm!r}, size={reference_size_mm!r}"
            ) from None
        if not (_is_valid_size(ppm) and _is_valid_size(size)):
            raise InvalidReferenceSize(
                f"Cannot restore calibration from ppm={pixels_per_mm!r}, size={reference_size_mm!r}"
            )

        with self._lock:
            self._reference_size_mm = size
            self._pixels_per_mm = ppm
            self._selected = None
            self._mode = CalibrationMode.CALIBRATED
        logging.info(f"Calibration restored: {ppm:.2f} pixels/mm")

    def reset(self) -> None:
        """Return to UNCALIBRATED from any state. The reference size is kept."""
        with self._lock:
            self._mode = CalibrationMode.UNCALIBRATED
            self._pixels_per_mm = None
            self._selected = None
        logging.info("Calibration reset")

    def physical_size(self, detection: Detection) -> Optional[float]:
        """
        Diameter of a detection in millimeters.

        Returns None when uncalibrated or when the factor is zero/non-finite.
        """
        with self._lock:
            ppm = self._pixels_per_mm
            if self._mode != CalibrationMode.CALIBRATED or not ppm or not math.isfinite(ppm):
                return None
        return diameter_px(detection, self.input_size) / ppm
