"""
Geometry and suppression algorithms for decoded detections.
"""

from .geometry import hit_test, intersection_over_union, scale_to_display
from .suppression import DEFAULT_IOU_THRESHOLD, non_max_suppression

__all__ = [
    "hit_test",
    "intersection_over_union",
    "scale_to_display",
    "DEFAULT_IOU_THRESHOLD",
    "non_max_suppression",
]
