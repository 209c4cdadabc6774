"""
Frame models: captured frames in, decoded results out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .detection import Detection


@dataclass
class FrameData:
    """
    A captured video frame.

    Attributes:
        frame: Pixel data as a numpy array (BGR, HxWx3).
        timestamp: Unix timestamp when the frame was captured.
        sequence: Monotonic frame number since the source opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    timestamp: float
    sequence: int = 0
    source: Optional[str] = None

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


@dataclass
class FrameResult:
    """
    Suppressed detections for one inference pass.

    `sequence` is the sequence of the frame the inference ran on, so results
    arriving after a newer one has been shown can be recognised as stale.
    `error` is set when the output tensor could not be decoded; detections are
    then empty.
    """
    sequence: int
    timestamp: float
    detections: List[Detection] = field(default_factory=list)
    candidates: int = 0
    inference_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "candidates": self.candidates,
            "inference_ms": self.inference_ms,
            "error": self.error,
            "detections": [d.to_dict() for d in self.detections],
        }
