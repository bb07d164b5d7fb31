"""
geometry.py

Plane geometry shared by the graph model and the TikZ importer.

All functions work in canvas space (y grows downwards) unless noted.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]


class Circle(NamedTuple):
    """Centre and radius of a circle."""
    x: float
    y: float
    radius: float


def det(a: float, b: float, c: float,
        d: float, e: float, f: float,
        g: float, h: float, i: float) -> float:
    """Determinant of the row-major 3x3 matrix ``[[a, b, c], [d, e, f], [g, h, i]]``."""
    return float(np.linalg.det(np.array([[a, b, c], [d, e, f], [g, h, i]], dtype=float)))


def circle_from_three_points(
    x1: float, y1: float,
    x2: float, y2: float,
    x3: float, y3: float,
    epsilon: float = 1e-9,
) -> Optional[Circle]:
    """Return the circle through three points, or ``None`` if they are collinear.

    This is the construction the editor uses to draw curved transitions.
    The collinearity test compares the orientation determinant against
    *epsilon* scaled by the squared extent of the points, so the guard
    does not depend on the diagram's size.

    Args:
        x1, y1, x2, y2, x3, y3: The three points.
        epsilon: Relative tolerance below which the points count as collinear.

    Returns:
        The ``Circle`` through the points, or ``None`` for degenerate input.
    """
    a = det(x1, y1, 1, x2, y2, 1, x3, y3, 1)
    extent = max(abs(x2 - x1), abs(y2 - y1), abs(x3 - x1), abs(y3 - y1))
    if extent == 0.0 or abs(a) <= epsilon * extent * extent:
        return None

    s1 = x1 * x1 + y1 * y1
    s2 = x2 * x2 + y2 * y2
    s3 = x3 * x3 + y3 * y3
    bx = -det(s1, y1, 1, s2, y2, 1, s3, y3, 1)
    by = det(s1, x1, 1, s2, x2, 1, s3, x3, 1)
    c = -det(s1, x1, y1, s2, x2, y2, s3, x3, y3)

    radius = math.sqrt(max(bx * bx + by * by - 4 * a * c, 0.0)) / (2 * abs(a))
    cx = -bx / (2 * a)
    cy = -by / (2 * a)
    if not all(math.isfinite(v) for v in (cx, cy, radius)):
        return None
    return Circle(cx, cy, radius)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def map_point(x: float, y: float, scale: float) -> Point:
    """Map a markup coordinate into canvas space.

    The exporter multiplies by ``1 / scale`` and negates the vertical
    axis; this undoes both.
    """
    return x * scale, -y * scale


def point_on_circle(cx: float, cy: float, radius: float, angle: float) -> Point:
    """Point on a circle at *angle* radians."""
    return cx + radius * math.cos(angle), cy + radius * math.sin(angle)


def nearest_index(
    points: Sequence[Point], x: float, y: float, threshold: float
) -> Optional[int]:
    """Index of the point nearest to ``(x, y)`` strictly closer than *threshold*.

    Ties resolve to the earliest point.

    Args:
        points: Candidate points.
        x, y: Query point.
        threshold: Exclusive distance limit.

    Returns:
        Index into *points*, or ``None`` if nothing is close enough.
    """
    if not points:
        return None
    arr = np.asarray(points, dtype=float)
    dists = np.hypot(arr[:, 0] - x, arr[:, 1] - y)
    idx = int(np.argmin(dists))
    if dists[idx] < threshold:
        return idx
    return None
