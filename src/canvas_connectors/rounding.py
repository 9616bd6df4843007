"""Rounded-corner path data from orthogonal waypoints."""

from __future__ import annotations

import math
from typing import Sequence

from .config import CORNER_RADIUS
from .types import LineTo, MoveTo, PathData, Point, QuadTo

_MIN_RADIUS = 1.0
_EPS = 1e-9


def round_path(waypoints: Sequence[Point], radius: float = CORNER_RADIUS) -> PathData:
    """Convert waypoints into move/line/quadratic commands with rounded corners.

    Each interior corner is trimmed back by ``min(radius, half of each
    adjacent segment)`` on both sides and joined with a quadratic curve
    whose control point is the corner itself. Corners whose usable radius is
    under 1px, and points where the path runs straight on or reverses, stay
    sharp.

    Args:
        waypoints: Ordered points, e.g. from ``route_path``.
        radius: Requested corner radius.

    Returns:
        Path commands starting with a single MoveTo.
    """
    points = _dedupe(waypoints)
    if not points:
        return []

    first = points[0]
    commands: PathData = [MoveTo(*first)]
    if len(points) == 1:
        commands.append(LineTo(*first))
        return commands

    for i in range(1, len(points) - 1):
        prev = points[i - 1]
        corner = points[i]
        nxt = points[i + 1]

        len_in = max(math.hypot(corner[0] - prev[0], corner[1] - prev[1]), _EPS)
        len_out = max(math.hypot(nxt[0] - corner[0], nxt[1] - corner[1]), _EPS)
        used = min(radius, len_in / 2, len_out / 2)

        if used < _MIN_RADIUS or not _is_turn(prev, corner, nxt):
            commands.append(LineTo(*corner))
            continue

        t_in = used / len_in
        t_out = used / len_out
        start = (corner[0] + (prev[0] - corner[0]) * t_in, corner[1] + (prev[1] - corner[1]) * t_in)
        end = (corner[0] + (nxt[0] - corner[0]) * t_out, corner[1] + (nxt[1] - corner[1]) * t_out)
        commands.append(LineTo(*start))
        commands.append(QuadTo(corner[0], corner[1], end[0], end[1]))

    commands.append(LineTo(*points[-1]))
    return commands


def _dedupe(points: Sequence[Point]) -> list[Point]:
    result: list[Point] = []
    for pt in points:
        if result and abs(pt[0] - result[-1][0]) < _EPS and abs(pt[1] - result[-1][1]) < _EPS:
            continue
        result.append((float(pt[0]), float(pt[1])))
    return result


def _is_turn(prev: Point, corner: Point, nxt: Point) -> bool:
    """Check if the path changes direction at ``corner`` without reversing."""
    ax, ay = corner[0] - prev[0], corner[1] - prev[1]
    bx, by = nxt[0] - corner[0], nxt[1] - corner[1]
    cross = ax * by - ay * bx
    return abs(cross) > _EPS * max(1.0, abs(ax) + abs(ay)) * max(1.0, abs(bx) + abs(by))


__all__ = [
    "round_path",
]
