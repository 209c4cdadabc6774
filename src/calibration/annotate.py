"""
Measurement annotations for the rendering layer.

Only `OK` parts are sized; defects (SCAR, TEAR, ...) get a label without a
diameter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from models.detection import Detection
from .state_machine import Calibrator


MEASURED_LABEL = "OK"


@dataclass(frozen=True)
class Measurement:
    detection: Detection
    diameter_mm: Optional[float]
    label: str

    def to_dict(self) -> Dict[str, Any]:
        d = self.detection.to_dict()
        d["diameter_mm"] = self.diameter_mm
        d["annotation"] = self.label
        return d


def format_label(detection: Detection, diameter_mm: Optional[float] = None) -> str:
    """Build display text, e.g. "OK (81%) - Ø10.0mm"."""
    text = f"{detection.label} ({detection.confidence * 100:.0f}%)"
    if diameter_mm is not None:
        text += f" - Ø{diameter_mm:.1f}mm"
    return text


def measure(detections: Sequence[Detection], calibrator: Calibrator) -> List[Measurement]:
    """Attach physical diameters (OK detections only) and labels."""
    out: List[Measurement] = []
    for det in detections:
        diameter = calibrator.physical_size(det) if det.label == MEASURED_LABEL else None
        out.append(Measurement(detection=det, diameter_mm=diameter, label=format_label(det, diameter)))
    return out
