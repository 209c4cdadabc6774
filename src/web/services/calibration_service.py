"""
Calibration service behind the REST API.

Wraps the runtime's Calibrator with the things the HTTP layer needs:
choosing the reference from the latest published detections, and keeping
the persisted calibration file in step with the state machine.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from algorithms.geometry import hit_test
from calibration.annotate import measure
from calibration.state_machine import CalibrationSnapshot
from models.detection import Detection
from runtime.context import RuntimeContext


class NoDetectionSelected(LookupError):
    """The requested index or click position matches no current detection."""


class CalibrationService:
    def __init__(self, ctx: RuntimeContext):
        self.ctx = ctx

    @property
    def calibrator(self):
        return self.ctx.calibrator

    def status(self) -> Dict[str, Any]:
        return snapshot_to_dict(self.calibrator.snapshot())

    def set_reference_size(self, size_mm: Any) -> Dict[str, Any]:
        self.calibrator.set_reference_size(size_mm)
        return self.status()

    def start(self) -> Dict[str, Any]:
        self.calibrator.start_calibration()
        return self.status()

    def select(
        self,
        index: Optional[int] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
        display_width: Optional[float] = None,
        display_height: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Select the reference from the latest detections.

        Raises:
            NoDetectionSelected: If nothing matches the index or position.
            ValueError: If neither an index nor a full click position is given.
            InvalidState: If calibration is not awaiting a selection.
        """
        detections = self.ctx.latest_detections()

        if index is not None:
            if not 0 <= index < len(detections):
                raise NoDetectionSelected(
                    f"No detection at index {index} ({len(detections)} available)"
                )
            chosen: Optional[Detection] = detections[index]
        elif None not in (x, y, display_width, display_height):
            chosen = hit_test(detections, x, y, display_width, display_height)
            if chosen is None:
                raise NoDetectionSelected(f"No detection at ({x:.0f}, {y:.0f})")
        else:
            raise ValueError("Provide either index or x, y, display_width and display_height")

        self.calibrator.select_reference(chosen)
        return self.status()

    def complete(self) -> Dict[str, Any]:
        self.calibrator.complete_calibration()
        if self.ctx.store is not None:
            try:
                self.ctx.store.save(self.calibrator.snapshot())
            except OSError as e:
                # The in-memory calibration is still valid; only persistence failed.
                logging.error(f"Calibration not persisted: {e}")
        return self.status()

    def reset(self) -> Dict[str, Any]:
        self.calibrator.reset()
        if self.ctx.store is not None:
            try:
                self.ctx.store.clear()
            except OSError as e:
                logging.error(
                    f"Calibration file not removed, it will be restored on next start: {e}"
                )
        return self.status()

    def detections(self) -> Dict[str, Any]:
        """Latest detections with physical sizes and annotation text."""
        latest = self.ctx.get_latest_result()
        items = []
        if latest is not None:
            for m in measure(latest.detections, self.calibrator):
                item = m.to_dict()
                item["selected"] = self.calibrator.is_selected(m.detection)
                items.append(item)

        return {
            "sequence": latest.sequence if latest else None,
            "timestamp": latest.timestamp if latest else None,
            "inference_ms": latest.inference_ms if latest else None,
            "error": latest.error if latest else None,
            "calibrated": self.calibrator.is_calibrated,
            "detections": items,
        }


def snapshot_to_dict(snapshot: CalibrationSnapshot) -> Dict[str, Any]:
    d = snapshot.to_dict()
    if snapshot.selected_reference is not None:
        d["selected_reference"]["selected"] = True
    return d
