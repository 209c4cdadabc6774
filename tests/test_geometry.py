"""
Tests for box geometry helpers.
"""

import numpy as np
import pytest

from algorithms.geometry import (
    hit_test,
    intersection_over_union,
    scale_to_display,
)
from models.detection import BoundingBox


class TestIntersectionOverUnion:
    def test_identical_boxes(self):
        box = (0.1, 0.1, 0.3, 0.4)
        assert intersection_over_union(box, box) == pytest.approx(1.0)

    def test_disjoint_boxes(self):
        assert intersection_over_union((0, 0, 1, 1), (2, 2, 3, 3)) == 0.0

    def test_touching_edges_have_no_overlap(self):
        assert intersection_over_union((0, 0, 1, 1), (1, 0, 2, 1)) == 0.0

    def test_partial_overlap(self):
        # intersection 1x1 = 1, union 4 + 4 - 1 = 7
        iou = intersection_over_union((0, 0, 2, 2), (1, 1, 3, 3))
        assert iou == pytest.approx(1 / 7)

    def test_contained_box(self):
        iou = intersection_over_union((0, 0, 4, 4), (1, 1, 3, 3))
        assert iou == pytest.approx(4 / 16)

    def test_zero_union_returns_zero(self):
        point = (0.5, 0.5, 0.5, 0.5)
        assert intersection_over_union(point, point) == 0.0

    def test_inverted_box_clamps_intersection(self):
        iou = intersection_over_union((0, 0, 1, 1), (0.8, 0.8, 0.2, 0.2))
        assert iou == 0.0

    def test_accepts_box_objects(self, make_detection):
        det = make_detection(cx=0.5, cy=0.5, w=0.2, h=0.2)
        box = BoundingBox(0.4, 0.4, 0.6, 0.6)
        assert intersection_over_union(det, box) == pytest.approx(1.0)

    def test_symmetry_random_boxes(self):
        rng = np.random.default_rng(7)
        for _ in range(200):
            a = np.sort(rng.random((2, 2)), axis=0).T.reshape(-1)[[0, 2, 1, 3]]
            b = np.sort(rng.random((2, 2)), axis=0).T.reshape(-1)[[0, 2, 1, 3]]
            assert intersection_over_union(a, b) == pytest.approx(intersection_over_union(b, a))


class TestConversions:
    def test_scale_to_display(self):
        box = BoundingBox(0.25, 0.5, 0.75, 1.0)
        x, y, w, h = scale_to_display(box, 1280, 720)
        assert (x, y, w, h) == pytest.approx((320, 360, 640, 360))


class TestHitTest:
    def test_click_inside_box(self, make_detection):
        det = make_detection(cx=0.5, cy=0.5, w=0.2, h=0.2)
        assert hit_test([det], 640, 360, 1280, 720) is det

    def test_click_within_margin(self, make_detection):
        # right edge at 0.6 * 1000 = 600
        det = make_detection(cx=0.5, cy=0.5, w=0.2, h=0.2)
        assert hit_test([det], 608, 500, 1000, 1000) is det
        assert hit_test([det], 611, 500, 1000, 1000) is None

    def test_first_match_wins(self, make_detection):
        a = make_detection(cx=0.5, cy=0.5, w=0.4, h=0.4, confidence=0.6)
        b = make_detection(cx=0.5, cy=0.5, w=0.2, h=0.2, confidence=0.9)
        assert hit_test([a, b], 500, 500, 1000, 1000) is a

    def test_no_detections(self):
        assert hit_test([], 10, 10, 100, 100) is None
