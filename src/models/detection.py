"""
Detection models for decoded model output.

Coordinates are normalized to the square model input: a value of 1.0 spans
the full input resolution (see `DetectionConfig.input_size`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple


# Order must match the model's class-score columns.
CLASS_NAMES: Tuple[str, ...] = ("BLOCK", "INNER", "OK", "OUTER", "SCAR", "TEAR")
UNKNOWN_LABEL = "unknown"


def label_for(class_id: int, class_names: Sequence[str] = CLASS_NAMES) -> str:
    """Resolve a class index to its name, or "unknown" when out of range."""
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return UNKNOWN_LABEL


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in normalized model-input coordinates.

    Attributes:
        x1: Left edge.
        y1: Top edge.
        x2: Right edge.
        y2: Bottom edge.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) tuple."""
        return cls(x1=float(t[0]), y1=float(t[1]), x2=float(t[2]), y2=float(t[3]))

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from center-form (cx, cy, width, height)."""
        return cls(x1=cx - w / 2, y1=cy - h / 2, x2=cx + w / 2, y2=cy + h / 2)


@dataclass(frozen=True)
class Detection:
    """
    A single decoded detection.

    Attributes:
        bbox: Corner-form box in normalized model-input coordinates.
        width: Raw center-form width reported by the model.
        height: Raw center-form height reported by the model.
        class_id: Index into the class list.
        label: Class name resolved from class_id.
        confidence: Objectness times the winning class score.
    """
    bbox: BoundingBox
    width: float
    height: float
    class_id: int
    label: str
    confidence: float

    @property
    def x1(self) -> float:
        return self.bbox.x1

    @property
    def y1(self) -> float:
        return self.bbox.y1

    @property
    def x2(self) -> float:
        return self.bbox.x2

    @property
    def y2(self) -> float:
        return self.bbox.y2

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    @classmethod
    def from_center(
        cls,
        cx: float,
        cy: float,
        w: float,
        h: float,
        class_id: int,
        confidence: float,
        class_names: Sequence[str] = CLASS_NAMES,
    ) -> "Detection":
        """Create a Detection from a center-form model row."""
        return cls(
            bbox=BoundingBox.from_center(cx, cy, w, h),
            width=w,
            height=h,
            class_id=class_id,
            label=label_for(class_id, class_names),
            confidence=confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "width": self.width,
            "height": self.height,
            "class_id": self.class_id,
            "label": self.label,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Detection":
        """Adapter: rebuild a Detection from `to_dict()` output."""
        class_id = int(d["class_id"])
        label: Optional[str] = d.get("label")
        return cls(
            bbox=BoundingBox(
                x1=float(d["x1"]),
                y1=float(d["y1"]),
                x2=float(d["x2"]),
                y2=float(d["y2"]),
            ),
            width=float(d["width"]),
            height=float(d["height"]),
            class_id=class_id,
            label=label if label is not None else label_for(class_id),
            confidence=float(d["confidence"]),
        )
