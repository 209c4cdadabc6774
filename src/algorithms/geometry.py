"""
Box geometry helpers.

Boxes are either (x1, y1, x2, y2) sequences or objects exposing x1..y2
attributes (BoundingBox, Detection).
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple


def _corners(box: Any) -> Tuple[float, float, float, float]:
    if hasattr(box, "x1"):
        return (box.x1, box.y1, box.x2, box.y2)
    x1, y1, x2, y2 = box
    return (x1, y1, x2, y2)


def intersection_over_union(box_a: Any, box_b: Any) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Non-overlapping boxes clamp the intersection to zero. A zero-area union
    (two degenerate boxes) returns 0.0.

    Args:
        box_a: First box (x1, y1, x2, y2)
        box_b: Second box (x1, y1, x2, y2)

    Returns:
        IoU value, normally between 0 and 1
    """
    ax1, ay1, ax2, ay2 = _corners(box_a)
    bx1, by1, bx2, by2 = _corners(box_b)

    inter_w = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0.0, min(ay2, by2) - max(ay1, by1))
    intersection = inter_w * inter_h

    area_a = (ax2 - ax1) * (ay2 - ay1)
    area_b = (bx2 - bx1) * (by2 - by1)
    union = area_a + area_b - intersection

    if union <= 0:
        return 0.0

    return intersection / union


def scale_to_display(
    box: Any,
    display_width: float,
    display_height: float,
) -> Tuple[float, float, float, float]:
    """
    Map a normalized box onto a display surface.

    Returns:
        (x, y, w, h) in display pixels.
    """
    x1, y1, x2, y2 = _corners(box)
    return (
        x1 * display_width,
        y1 * display_height,
        (x2 - x1) * display_width,
        (y2 - y1) * display_height,
    )


def hit_test(
    detections: Sequence[Any],
    x: float,
    y: float,
    display_width: float,
    display_height: float,
    margin: float = 10.0,
) -> Optional[Any]:
    """
    Find the detection under a display-space point.

    Each box is grown by `margin` pixels on every side so small objects stay
    clickable. The first match in list order wins.
    """
    for det in detections:
        bx, by, bw, bh = scale_to_display(det, display_width, display_height)
        if bx - margin <= x <= bx + bw + margin and by - margin <= y <= by + bh + margin:
            return det
    return None
