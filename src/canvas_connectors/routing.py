"""Orthogonal path routing between two rectangle ports.

Every route leaves its card by an escape leg of ``min_escape`` before it
turns, then joins the two escape points with one of a few fixed shapes:

- free-drag preview (no target side): one bend toward the cursor
- same side on both cards: U-shape beyond the farther escape
- opposite sides facing each other: S-shape through the midpoint
- opposite sides facing away: U-shape around both cards, or through the
  gap between them when going around would cut a card
- perpendicular sides: L-bend, or a Z-shape when the L would double back

When a fixed shape would still cut through one of the two endpoint
rectangles, a shortest-path search over channels one escape outside the
cards replaces it. Only the two endpoint rectangles are cleared; other cards
are ignored.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Optional, Sequence

from .config import DEGENERATE_THRESHOLD, MIN_ESCAPE
from .types import Point, Rect, Side

_EPS = 1e-9
_INF = float("inf")

# Extra cost of one turn in the clear-route search, in canvas units
_BEND_COST = 40.0

_STEPS = ((1, 0), (-1, 0), (0, 1), (0, -1))

_Cell = tuple[int, int]
_Step = tuple[int, int]
_State = tuple[Optional[_Cell], Optional[_Step]]


def escape_point(point: Point, side: Side, min_escape: float = MIN_ESCAPE) -> Point:
    """Move a port point ``min_escape`` outward along the side's escape vector."""
    ex, ey = side.escape_vector
    return (point[0] + ex * min_escape, point[1] + ey * min_escape)


def _make(axis: int, along: float, across: float) -> Point:
    """Build a point from a coordinate on ``axis`` and one on the other axis."""
    return (along, across) if axis == 0 else (across, along)


def route_path(
    source: Point,
    source_side: Side,
    target: Point,
    target_side: Optional[Side] = None,
    *,
    target_half_width: Optional[float] = None,
    source_box: Optional[Rect] = None,
    target_box: Optional[Rect] = None,
    min_escape: float = MIN_ESCAPE,
    degenerate_threshold: float = DEGENERATE_THRESHOLD,
) -> list[Point]:
    """Route one connection as a list of orthogonal waypoints.

    Args:
        source: Source port point.
        source_side: Side of the source rectangle the port sits on.
        target: Target port point, or the cursor during an unsnapped drag.
        target_side: Side of the target port; None for a free-drag preview.
        target_half_width: Half the target card's width, used to keep the
            final approach clear of the card when it would otherwise come in
            through the card (e.g. from above into a BOTTOM port).
        source_box: Source rectangle, used to clear it when routing around.
        target_box: Target rectangle; takes precedence over
            ``target_half_width`` when both are given.
        min_escape: Length of the escape leg.
        degenerate_threshold: Below this distance on both axes the route is
            a direct segment.

    Returns:
        Waypoints starting exactly at ``source`` and ending exactly at
        ``target``.
    """
    sx, sy = source
    tx, ty = target

    if abs(sx - tx) < degenerate_threshold and abs(sy - ty) < degenerate_threshold:
        return [source, target]

    src_escape = escape_point(source, source_side, min_escape)

    if target_side is None:
        if source_side.is_horizontal():
            bend = (src_escape[0], ty)
        else:
            bend = (tx, src_escape[1])
        return simplify_path([source, src_escape, bend, target])

    tgt_escape = escape_point(target, target_side, min_escape)

    if source_side.is_horizontal() == target_side.is_horizontal():
        middle = _route_aligned(
            src_escape, source_side, tgt_escape, target_side, source_box, target_box, min_escape
        )
    else:
        band = _clearance_band(target, target_side, target_half_width, target_box, min_escape)
        middle = _route_mixed(
            src_escape, source_side, tgt_escape, target_side, band, source_box, min_escape
        )

    path = simplify_path([source, src_escape, *middle, tgt_escape, target])
    boxes = [box for box in (source_box, target_box) if box is not None]
    if boxes and not _clears(path, boxes):
        # The fixed shape cuts a card; search the channels around them
        found = _search_route(
            source,
            source_side,
            target,
            target_side,
            src_escape,
            tgt_escape,
            source_box,
            target_box,
            min_escape,
        )
        if found is not None:
            return found
    return path


def _route_aligned(
    src_escape: Point,
    source_side: Side,
    tgt_escape: Point,
    target_side: Side,
    source_box: Optional[Rect],
    target_box: Optional[Rect],
    min_escape: float,
) -> list[Point]:
    """Bends between two escapes that travel along the same axis."""
    axis = 0 if source_side.is_horizontal() else 1
    cross = 1 - axis
    out = source_side.outward[axis]

    if source_side == target_side:
        # U-shape: shared leg one escape beyond the farther escape point
        reach = max(out * src_escape[axis], out * tgt_escape[axis]) + min_escape
        leg = out * reach
        if target_box is not None and _run_hits(
            target_box, axis, src_escape[cross], src_escape[axis], leg
        ):
            # The outbound run would cut through the target card
            det = _detour(target_box, cross, src_escape[cross], min_escape)
            return [
                _make(axis, src_escape[axis], det),
                _make(axis, leg, det),
                _make(axis, leg, tgt_escape[cross]),
            ]
        if source_box is not None and _run_hits(
            source_box, axis, tgt_escape[cross], tgt_escape[axis], leg
        ):
            # The inbound run would cut through the source card
            det = _detour(source_box, cross, tgt_escape[cross], min_escape)
            return [
                _make(axis, leg, src_escape[cross]),
                _make(axis, leg, det),
                _make(axis, tgt_escape[axis], det),
            ]
        return [_make(axis, leg, src_escape[cross]), _make(axis, leg, tgt_escape[cross])]

    if out * (tgt_escape[axis] - src_escape[axis]) >= 0:
        # Facing each other: S-shape, straight when the escapes line up
        mid = (src_escape[axis] + tgt_escape[axis]) / 2
        return [_make(axis, mid, src_escape[cross]), _make(axis, mid, tgt_escape[cross])]

    # Facing away: go around both cards on the side toward the target
    direction = 1 if tgt_escape[cross] >= src_escape[cross] else -1
    extents = [src_escape[cross], tgt_escape[cross]]
    for box in (source_box, target_box):
        if box is not None:
            extents.extend(_span(box, cross))
    leg = direction * (max(direction * v for v in extents) + min_escape)

    blocked = (
        target_box is not None
        and _run_hits(target_box, cross, src_escape[axis], src_escape[cross], leg)
    ) or (
        source_box is not None
        and _run_hits(source_box, cross, tgt_escape[axis], tgt_escape[cross], leg)
    )
    gap = _gap(source_box, target_box, cross)
    if blocked and gap is not None:
        # Going around would cut a card; cross over between them instead
        leg = (gap[0] + gap[1]) / 2
    return [_make(axis, src_escape[axis], leg), _make(axis, tgt_escape[axis], leg)]


def _route_mixed(
    src_escape: Point,
    source_side: Side,
    tgt_escape: Point,
    target_side: Side,
    band: tuple[float, float],
    source_box: Optional[Rect],
    min_escape: float,
) -> list[Point]:
    """Bends between a horizontal and a vertical escape."""
    axis = 0 if source_side.is_horizontal() else 1
    cross = 1 - axis
    out_s = source_side.outward[axis]
    out_t = target_side.outward[cross]

    backtracks = out_s * (tgt_escape[axis] - src_escape[axis]) < 0
    enters_through_card = out_t * (src_escape[cross] - tgt_escape[cross]) < 0

    if enters_through_card:
        # Step outside the target's clearance band before turning in
        lo, hi = band
        if lo < src_escape[axis] < hi:
            clear = hi if out_s > 0 else lo
        else:
            clear = src_escape[axis]
        return [_make(axis, clear, src_escape[cross]), _make(axis, clear, tgt_escape[cross])]

    if backtracks:
        # Z-shape: perpendicular leg halfway between the escapes
        mid = (src_escape[cross] + tgt_escape[cross]) / 2
        if source_box is not None:
            lo, hi = _span(source_box, cross)
            if lo < mid < hi:
                # Doubling back at mid would cross the source card
                if out_t > 0:
                    mid = max(hi + min_escape, tgt_escape[cross])
                else:
                    mid = min(lo - min_escape, tgt_escape[cross])
        return [_make(axis, src_escape[axis], mid), _make(axis, tgt_escape[axis], mid)]

    return [_make(axis, tgt_escape[axis], src_escape[cross])]


def _span(box: Rect, axis: int) -> tuple[float, float]:
    return (box.left, box.right) if axis == 0 else (box.top, box.bottom)


def _gap(
    a: Optional[Rect], b: Optional[Rect], axis: int
) -> Optional[tuple[float, float]]:
    """Open interval between two boxes along ``axis``, if they are separated."""
    if a is None or b is None:
        return None
    a_lo, a_hi = _span(a, axis)
    b_lo, b_hi = _span(b, axis)
    if a_hi < b_lo:
        return (a_hi, b_lo)
    if b_hi < a_lo:
        return (b_hi, a_lo)
    return None


def _run_hits(box: Rect, axis: int, fixed: float, start: float, end: float) -> bool:
    """Check if a run along ``axis`` at cross coordinate ``fixed`` enters the box."""
    lo_c, hi_c = _span(box, 1 - axis)
    lo_a, hi_a = _span(box, axis)
    return lo_c < fixed < hi_c and min(start, end) < hi_a and max(start, end) > lo_a


def _detour(box: Rect, axis: int, near: float, min_escape: float) -> float:
    """Coordinate one escape past the box edge closer to ``near``."""
    lo, hi = _span(box, axis)
    return lo - min_escape if near - lo <= hi - near else hi + min_escape


def _clears(points: Sequence[Point], boxes: Sequence[Rect]) -> bool:
    """Check that no axis-aligned segment enters the interior of a box."""
    for (x1, y1), (x2, y2) in zip(points, points[1:]):
        if abs(y1 - y2) < _EPS:
            axis, fixed, start, end = 0, y1, x1, x2
        else:
            axis, fixed, start, end = 1, x1, y1, y2
        if any(_run_hits(box, axis, fixed, start, end) for box in boxes):
            return False
    return True


def _search_route(
    source: Point,
    source_side: Side,
    target: Point,
    target_side: Side,
    src_escape: Point,
    tgt_escape: Point,
    source_box: Optional[Rect],
    target_box: Optional[Rect],
    min_escape: float,
) -> Optional[list[Point]]:
    """
    Cheapest clear route between the escape points over a sparse grid.

    Grid lines run through both escapes, one ``min_escape`` outside every
    box edge and through the middle of any gap between the boxes. Cost is
    length plus ``_BEND_COST`` per turn. A route never doubles back over an
    escape leg, and an end without an escape leg (TOP) is left and entered
    straight along its outward normal.

    Returns:
        Waypoints from ``source`` to ``target``, or None when the escapes
        themselves lie inside a card and no clear route exists.
    """
    boxes = [box for box in (source_box, target_box) if box is not None]
    if any(box.contains(p) for box in boxes for p in (src_escape, tgt_escape)):
        return None
    if not (_clears([source, src_escape], boxes) and _clears([tgt_escape, target], boxes)):
        return None

    xs = {src_escape[0], tgt_escape[0]}
    ys = {src_escape[1], tgt_escape[1]}
    for end, side in ((source, source_side), (target, target_side)):
        ox, oy = side.outward
        xs.add(end[0] + ox * min_escape)
        ys.add(end[1] + oy * min_escape)
    for box in boxes:
        xs.update((box.left - min_escape, box.right + min_escape))
        ys.update((box.top - min_escape, box.bottom + min_escape))
    for axis, coords in ((0, xs), (1, ys)):
        gap = _gap(source_box, target_box, axis)
        if gap is not None:
            coords.add((gap[0] + gap[1]) / 2)
    grid_x = sorted(xs)
    grid_y = sorted(ys)

    start = (grid_x.index(src_escape[0]), grid_y.index(src_escape[1]))
    goal = (grid_x.index(tgt_escape[0]), grid_y.index(tgt_escape[1]))
    first = source_side.outward
    pinned_start = source_side.escape_vector == (0, 0)
    pinned_goal = target_side.escape_vector == (0, 0)
    inward = (-target_side.outward[0], -target_side.outward[1])

    done: _State = (None, None)
    best: dict[_State, float] = {(start, first): 0.0}
    parent: dict[_State, tuple[_Cell, _Step]] = {}
    order = itertools.count()
    heap: list[tuple[float, int, Optional[_Cell], Optional[_Step]]] = [
        (0.0, next(order), start, first)
    ]

    while heap:
        cost, _, node, heading = heapq.heappop(heap)
        state = (node, heading)
        if cost > best.get(state, _INF):
            continue
        if node is None or heading is None:
            break

        if node == goal and heading != target_side.outward:
            if not pinned_goal or heading == inward:
                total = cost + (0.0 if heading == inward else _BEND_COST)
                if total < best.get(done, _INF):
                    best[done] = total
                    parent[done] = (node, heading)
                    heapq.heappush(heap, (total, next(order), None, None))

        i, j = node
        for step in _STEPS:
            if step == (-heading[0], -heading[1]):
                continue
            if pinned_start and state == (start, first) and step != first:
                continue
            ni, nj = i + step[0], j + step[1]
            if not (0 <= ni < len(grid_x) and 0 <= nj < len(grid_y)):
                continue
            a = (grid_x[i], grid_y[j])
            b = (grid_x[ni], grid_y[nj])
            if not _clears([a, b], boxes):
                continue
            nxt: _State = ((ni, nj), step)
            ncost = cost + abs(b[0] - a[0]) + abs(b[1] - a[1])
            if step != heading:
                ncost += _BEND_COST
            if ncost < best.get(nxt, _INF):
                best[nxt] = ncost
                parent[nxt] = (node, heading)
                heapq.heappush(heap, (ncost, next(order), (ni, nj), step))

    if done not in parent:
        return None

    waypoints = [target]
    cell, arrived = parent[done]
    while True:
        waypoints.append((grid_x[cell[0]], grid_y[cell[1]]))
        prev = parent.get((cell, arrived))
        if prev is None:
            break
        cell, arrived = prev
    waypoints.append(source)
    waypoints.reverse()
    return simplify_path(waypoints)


def _clearance_band(
    target: Point,
    target_side: Side,
    target_half_width: Optional[float],
    target_box: Optional[Rect],
    min_escape: float,
) -> tuple[float, float]:
    """Interval along the target side that the final approach must avoid."""
    axis = 1 if target_side.is_horizontal() else 0
    if target_box is not None:
        lo, hi = _span(target_box, axis)
    else:
        half = target_half_width if target_half_width and target_side.is_vertical() else 0.0
        lo = target[axis] - half
        hi = target[axis] + half
    return (lo - min_escape, hi + min_escape)


def simplify_path(points: Sequence[Point]) -> list[Point]:
    """Drop duplicate and straight pass-through waypoints.

    Reversals are kept so a route that doubles back stays visible. The first
    and last points are preserved exactly.
    """
    if len(points) < 2:
        return list(points)

    result: list[Point] = []
    for pt in points:
        if result and _same(result[-1], pt):
            continue
        result.append(pt)
        while len(result) >= 3 and _passes_through(result[-3], result[-2], result[-1]):
            del result[-2]

    if len(result) == 1:
        result.append(points[-1])
    result[0] = points[0]
    result[-1] = points[-1]
    return result


def _same(a: Point, b: Point) -> bool:
    return abs(a[0] - b[0]) < _EPS and abs(a[1] - b[1]) < _EPS


def _passes_through(prev: Point, mid: Point, nxt: Point) -> bool:
    """Check if ``mid`` lies strictly between its neighbours on one axis line."""
    if abs(prev[0] - mid[0]) < _EPS and abs(mid[0] - nxt[0]) < _EPS:
        return (mid[1] - prev[1]) * (nxt[1] - mid[1]) > 0
    if abs(prev[1] - mid[1]) < _EPS and abs(mid[1] - nxt[1]) < _EPS:
        return (mid[0] - prev[0]) * (nxt[0] - mid[0]) > 0
    return False


__all__ = [
    "escape_point",
    "route_path",
    "simplify_path",
]
