"""
Badge outline construction for Poster Tags.

Builds the closed polygon used as a badge background. Curvature runs from 0
(sharp rectangle) to 100 (pill with semicircular ends).
"""

import math
from typing import List, Tuple

from .constants import ARC_STEPS

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]


def corner_radius(width: float, height: float, curvature: int) -> float:
    """Effective corner radius for a box, never more than half its short side."""
    half_short_side = min(width, height) / 2.0
    if curvature <= 0 or half_short_side <= 0:
        return 0.0
    return min(curvature / 100.0 * half_short_side, half_short_side)


def _arc_points(cx: float, cy: float, radius: float, start_deg: float,
                sweep_deg: float, steps: int = ARC_STEPS) -> List[Point]:
    points = []
    for i in range(1, steps + 1):
        angle = math.radians(start_deg + sweep_deg * i / steps)
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def build_outline(rect: Rect, curvature: int) -> List[Point]:
    """
    Build the closed outline of a badge box.

    Args:
        rect: (x, y, width, height) of the box
        curvature: corner rounding percentage, 0-100

    Returns:
        Polygon points, clockwise in image coordinates. The figure is
        implicitly closed; the first point is not repeated.
    """
    x, y, width, height = rect
    left, top = float(x), float(y)
    right, bottom = left + width, top + height
    r = corner_radius(width, height, curvature)

    if r <= 0:
        return [(left, top), (right, top), (right, bottom), (left, bottom)]

    points: List[Point] = [(left + r, top), (right - r, top)]
    # Angles follow image coordinates (y grows downward), so 270 is "up"
    points.extend(_arc_points(right - r, top + r, r, 270, 90))
    points.append((right, bottom - r))
    points.extend(_arc_points(right - r, bottom - r, r, 0, 90))
    points.append((left + r, bottom))
    points.extend(_arc_points(left + r, bottom - r, r, 90, 90))
    points.append((left, top + r))
    # The top-left arc ends where the top edge starts
    points.extend(_arc_points(left + r, top + r, r, 180, 90)[:-1])
    return points


def translate(points: List[Point], dx: float, dy: float) -> List[Point]:
    return [(px + dx, py + dy) for px, py in points]
