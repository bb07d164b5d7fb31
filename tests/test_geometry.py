"""Tests for the plane-geometry helpers in geometry.py."""
from __future__ import annotations

import math

import pytest

from geometry import (
    Circle,
    circle_from_three_points,
    det,
    distance,
    map_point,
    nearest_index,
    point_on_circle,
)


# ─────────────────────────────────────────────────────────
# Circle through three points
# ─────────────────────────────────────────────────────────


class TestCircleFromThreePoints:
    def test_unit_circle(self):
        c = circle_from_three_points(0, 0, 2, 0, 1, 1)
        assert c == pytest.approx(Circle(1.0, 0.0, 1.0))

    def test_curved_transition_circle(self):
        c = circle_from_three_points(0, 0, 100, 0, 50, 20)
        assert (c.x, c.y, c.radius) == pytest.approx((50.0, -52.5, 72.5))

    def test_collinear_returns_none(self):
        assert circle_from_three_points(0, 0, 1, 1, 2, 2) is None

    def test_coincident_returns_none(self):
        assert circle_from_three_points(5, 5, 5, 5, 5, 5) is None

    def test_nearly_collinear_returns_none(self):
        assert circle_from_three_points(0, 0, 100, 0, 50, 1e-12) is None

    def test_guard_independent_of_scale(self):
        small = circle_from_three_points(0, 0, 1, 0, 0.5, 0.2)
        large = circle_from_three_points(0, 0, 1e4, 0, 5e3, 2e3)
        assert small is not None and large is not None
        assert large.radius == pytest.approx(small.radius * 1e4)


class TestHelpers:
    def test_det_identity(self):
        assert det(1, 0, 0, 0, 1, 0, 0, 0, 1) == pytest.approx(1.0)

    def test_distance(self):
        assert distance(0, 0, 3, 4) == 5.0

    def test_map_point_flips_and_scales(self):
        assert map_point(22.9, -33.2, 10.0) == pytest.approx((229.0, 332.0))

    def test_point_on_circle(self):
        assert point_on_circle(1, 1, 2, math.pi / 2) == pytest.approx((1.0, 3.0))


# ─────────────────────────────────────────────────────────
# Nearest-point search
# ─────────────────────────────────────────────────────────


class TestNearestIndex:
    def test_picks_nearest(self):
        assert nearest_index([(0, 0), (10, 0), (4, 0)], 5, 0, 100) == 2

    def test_threshold_is_exclusive(self):
        assert nearest_index([(0, 0)], 3, 4, 5.0) is None
        assert nearest_index([(0, 0)], 3, 4, 5.001) == 0

    def test_tie_goes_to_first(self):
        assert nearest_index([(-1, 0), (1, 0)], 0, 0, 10) == 0

    def test_empty(self):
        assert nearest_index([], 0, 0, 10) is None
