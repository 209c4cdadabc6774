"""
Class-wise greedy non-maximum suppression.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import Detection
from .geometry import intersection_over_union


DEFAULT_IOU_THRESHOLD = 0.5


def non_max_suppression(
    detections: Sequence[Detection],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> List[Detection]:
    """
    Remove near-duplicate detections of the same class.

    Detections are visited in descending confidence (Python's sort is stable,
    so equal confidences keep their input order). Each accepted detection
    drops every remaining detection of the same class whose IoU with it is
    strictly greater than `iou_threshold`. Different classes never suppress
    each other.

    Args:
        detections: Candidate detections; not modified.
        iou_threshold: Overlap above which a same-class box is discarded.

    Returns:
        New list of survivors in descending confidence order.
    """
    remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)
    selected: List[Detection] = []

    while remaining:
        best = remaining[0]
        selected.append(best)
        remaining = [
            d for d in remaining[1:]
            if d.class_id != best.class_id
            or intersection_over_union(best, d) <= iou_threshold
        ]

    return selected
