"""
Route quality metrics.

Provides quantitative measures of routed connectors:
- Path length and bend count
- Escape length: how far a route runs straight out of its card
- Clearance: whether any segment passes through a rectangle
- Corner radii actually used by rounded path data

All metrics work on waypoint lists from ``route_path`` or on path data from
``round_path``.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Optional, Sequence

import numpy as np

from .types import PathData, Point, QuadTo, Rect, RectId, RoutedConnection, Side

_EPS = 1e-6


def _as_array(points: Sequence[Point]) -> np.ndarray:
    return np.asarray(points, dtype=float).reshape(-1, 2)


def path_length(points: Sequence[Point]) -> float:
    """
    Total length of a polyline.

    Args:
        points: Ordered waypoints

    Returns:
        Sum of segment lengths (0.0 for fewer than two points)
    """
    arr = _as_array(points)
    if len(arr) < 2:
        return 0.0
    return float(np.hypot(*np.diff(arr, axis=0).T).sum())


def is_orthogonal(points: Sequence[Point]) -> bool:
    """Check that every segment is axis-aligned."""
    arr = _as_array(points)
    if len(arr) < 2:
        return True
    deltas = np.abs(np.diff(arr, axis=0))
    return bool(np.all((deltas[:, 0] < _EPS) | (deltas[:, 1] < _EPS)))


def bend_count(points: Sequence[Point]) -> int:
    """
    Number of direction changes along a polyline.

    Zero-length segments are ignored; a reversal counts as a bend.
    """
    arr = _as_array(points)
    if len(arr) < 3:
        return 0
    deltas = np.diff(arr, axis=0)
    deltas = deltas[np.hypot(deltas[:, 0], deltas[:, 1]) > _EPS]
    if len(deltas) < 2:
        return 0
    directions = np.sign(np.where(np.abs(deltas) < _EPS, 0.0, deltas))
    changes = np.any(directions[1:] != directions[:-1], axis=1)
    return int(changes.sum())


def escape_length(points: Sequence[Point], side: Side, at_end: bool = False) -> float:
    """
    Length of the first (or last) segment along the side's outward direction.

    Returns a negative value when the segment heads back into the card.

    Args:
        points: Ordered waypoints
        side: Side the route leaves from (or enters at, with ``at_end``)
        at_end: Measure the final segment, walking backwards from the target
    """
    if len(points) < 2:
        return 0.0
    if at_end:
        start, nxt = points[-1], points[-2]
    else:
        start, nxt = points[0], points[1]
    ox, oy = side.outward
    return (nxt[0] - start[0]) * ox + (nxt[1] - start[1]) * oy


def segment_intersects_rect(p1: Point, p2: Point, rect: Rect) -> bool:
    """Check if an axis-aligned segment passes through a rectangle's interior."""
    x1, y1 = p1
    x2, y2 = p2

    if abs(x1 - x2) < _EPS:
        # Vertical segment
        min_y = min(y1, y2)
        max_y = max(y1, y2)
        return (rect.left < x1 < rect.right) and (min_y < rect.bottom) and (max_y > rect.top)
    elif abs(y1 - y2) < _EPS:
        # Horizontal segment
        min_x = min(x1, x2)
        max_x = max(x1, x2)
        return (rect.top < y1 < rect.bottom) and (min_x < rect.right) and (max_x > rect.left)

    return False


def route_clears(points: Sequence[Point], rects: Sequence[Rect]) -> bool:
    """Check that no segment of the route enters any of the rectangles."""
    for i in range(len(points) - 1):
        for rect in rects:
            if segment_intersects_rect(points[i], points[i + 1], rect):
                return False
    return True


def corner_radii(path: PathData) -> list[float]:
    """
    Radii used at each rounded corner of a path.

    For every quadratic curve the radius is the distance from the control
    point (the original corner) to the curve's end point.
    """
    radii: list[float] = []
    for cmd in path:
        if isinstance(cmd, QuadTo):
            radii.append(math.hypot(cmd.x - cmd.cx, cmd.y - cmd.cy))
    return radii


def routing_quality_summary(
    routes: Sequence[RoutedConnection],
    geometry_of: Optional[Callable[[RectId], Optional[Rect]]] = None,
) -> dict[str, Any]:
    """
    Compute quality metrics for a routing pass.

    Args:
        routes: Routed connections
        geometry_of: Optional geometry query; when given, endpoint clearance
            is checked for every non-fallback route

    Returns:
        Dictionary with route count, fallback count, total/mean length,
        total/max bends, orthogonality and clearance counts
    """
    lengths = [path_length(r.waypoints) for r in routes]
    bends = [bend_count(r.waypoints) for r in routes if not r.fallback]
    summary: dict[str, Any] = {
        "routes": len(routes),
        "fallbacks": sum(1 for r in routes if r.fallback),
        "total_length": float(np.sum(lengths)) if lengths else 0.0,
        "mean_length": float(np.mean(lengths)) if lengths else 0.0,
        "total_bends": int(np.sum(bends)) if bends else 0,
        "max_bends": int(np.max(bends)) if bends else 0,
        "non_orthogonal": sum(
            1 for r in routes if not r.fallback and not is_orthogonal(r.waypoints)
        ),
    }

    if geometry_of is not None:
        blocked = 0
        for r in routes:
            if r.fallback:
                continue
            ends = [geometry_of(r.from_id), geometry_of(r.to_id)]
            if not route_clears(r.waypoints, [b for b in ends if b is not None]):
                blocked += 1
        summary["endpoint_crossings"] = blocked

    return summary


__all__ = [
    "path_length",
    "is_orthogonal",
    "bend_count",
    "escape_length",
    "segment_intersects_rect",
    "route_clears",
    "corner_radii",
    "routing_quality_summary",
]
