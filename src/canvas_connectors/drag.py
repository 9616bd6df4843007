"""
Connection drag sessions.

A drag session is the only stateful value in a routing pass, and it is owned
by the caller: every transition takes the current session and returns the
next one. ``None`` stands for the idle state.

    Idle --start_drag--> Unsnapped <--update_drag--> Snapped
    Unsnapped/Snapped --release_drag / cancel_drag--> Idle

Releasing a snapped session commits a connection with both sides fixed to
the ports the user dragged between.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Sequence, Union

from .config import DEFAULT_CONFIG, RoutingConfig
from .rounding import round_path
from .routing import escape_point, route_path
from .types import Connection, Fixed, PathData, Point, PortKey, PortSlots, Rect, RectId, Side
from .validation import DragStateError

GeometryFn = Callable[[RectId], Optional[Rect]]
PortsLike = Union[Mapping[PortKey, PortSlots], Iterable[PortSlots]]


class DragState(Enum):
    """Lifecycle state of a connection drag."""

    IDLE = "idle"
    UNSNAPPED = "unsnapped"
    SNAPPED = "snapped"


@dataclass(frozen=True)
class DragSession:
    """
    A connection being dragged out of a port.

    Attributes:
        source_id: Card the drag started on
        source_side: Side of the port the drag started from
        source_point: Port position on the source card
        source_escape: End of the source escape leg
        cursor: Live cursor position in canvas space
        target_id: Snapped card, or None while unsnapped
        target_side: Snapped side, or None while unsnapped
        target_point: Snapped port position, or None while unsnapped
    """

    source_id: RectId
    source_side: Side
    source_point: Point
    source_escape: Point
    cursor: Point
    target_id: Optional[RectId] = None
    target_side: Optional[Side] = None
    target_point: Optional[Point] = None

    @property
    def state(self) -> DragState:
        """SNAPPED when a target port is held, else UNSNAPPED."""
        return DragState.SNAPPED if self.snapped else DragState.UNSNAPPED

    @property
    def snapped(self) -> bool:
        """Check if the session holds a target port."""
        return self.target_id is not None


def drag_state(session: Optional[DragSession]) -> DragState:
    """State of a possibly idle session."""
    return DragState.IDLE if session is None else session.state


def start_drag(
    slots: PortSlots,
    cursor: Optional[Point] = None,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> DragSession:
    """Start dragging a new connection out of a side's free port.

    Any previous session is simply replaced by the returned one.

    Raises:
        DragStateError: If the side offers no free port (full or not offered)
    """
    if slots.free is None:
        raise DragStateError(
            f"Rect {slots.rect_id!r} offers no free port on its {slots.side.value} side"
        )
    point = slots.free
    return DragSession(
        source_id=slots.rect_id,
        source_side=slots.side,
        source_point=point,
        source_escape=escape_point(point, slots.side, config.min_escape),
        cursor=cursor if cursor is not None else point,
    )


def update_drag(
    session: Optional[DragSession],
    cursor: Point,
    ports: PortsLike,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> DragSession:
    """Move the cursor and snap to the nearest free port of another card.

    Args:
        session: Current session.
        cursor: Cursor position in canvas space.
        ports: Published ports (mapping or iterable of PortSlots).
        config: Supplies ``snap_distance``.

    Raises:
        DragStateError: If no drag is in progress
    """
    if session is None:
        raise DragStateError("Cannot update a drag while idle")

    candidates = ports.values() if isinstance(ports, Mapping) else ports
    nearest: Optional[PortSlots] = None
    nearest_dist = math.inf
    for slots in candidates:
        if slots.rect_id == session.source_id or slots.free is None:
            continue
        d = math.hypot(cursor[0] - slots.free[0], cursor[1] - slots.free[1])
        if d < nearest_dist:
            nearest_dist = d
            nearest = slots

    if nearest is not None and nearest_dist < config.snap_distance:
        return replace(
            session,
            cursor=cursor,
            target_id=nearest.rect_id,
            target_side=nearest.side,
            target_point=nearest.free,
        )
    return replace(session, cursor=cursor, target_id=None, target_side=None, target_point=None)


def preview_waypoints(
    session: DragSession,
    geometry_of: Optional[GeometryFn] = None,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> list[Point]:
    """Waypoints of the line drawn while dragging.

    Unsnapped sessions route a single-bend preview to the cursor; snapped
    sessions route exactly as the committed connection would.
    """
    source_box = geometry_of(session.source_id) if geometry_of else None
    if session.target_point is None or session.target_side is None:
        return route_path(
            session.source_point,
            session.source_side,
            session.cursor,
            None,
            min_escape=config.min_escape,
            degenerate_threshold=config.degenerate_threshold,
        )

    target_box = geometry_of(session.target_id) if geometry_of else None
    return route_path(
        session.source_point,
        session.source_side,
        session.target_point,
        session.target_side,
        target_half_width=target_box.width / 2 if target_box else None,
        source_box=source_box,
        target_box=target_box,
        min_escape=config.min_escape,
        degenerate_threshold=config.degenerate_threshold,
    )


def preview_path(
    session: DragSession,
    geometry_of: Optional[GeometryFn] = None,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> PathData:
    """Rounded path data for the drag preview."""
    return round_path(preview_waypoints(session, geometry_of, config), config.corner_radius)


def release_drag(
    session: Optional[DragSession],
    connections: Sequence[Connection],
) -> tuple[None, Optional[Connection]]:
    """Finish a drag, committing a connection when snapped.

    Nothing is committed when the session is unsnapped, when it is snapped
    back onto its own card, or when the two cards are already connected.

    Returns:
        (None, new connection or None); the first item is the idle session.

    Raises:
        DragStateError: If no drag is in progress
    """
    if session is None:
        raise DragStateError("Cannot release a drag while idle")

    if not session.snapped or session.target_side is None:
        return (None, None)
    if session.target_id == session.source_id:
        return (None, None)
    if any(conn.joins(session.source_id, session.target_id) for conn in connections):
        return (None, None)

    committed = Connection(
        from_id=session.source_id,
        to_id=session.target_id,
        from_side=Fixed(session.source_side),
        to_side=Fixed(session.target_side),
    )
    return (None, committed)


def cancel_drag(session: Optional[DragSession]) -> None:
    """Discard a drag (e.g. the pointer left the canvas)."""
    return None


__all__ = [
    "DragState",
    "DragSession",
    "drag_state",
    "start_drag",
    "update_drag",
    "preview_waypoints",
    "preview_path",
    "release_drag",
    "cancel_drag",
]
