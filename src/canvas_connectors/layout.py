"""
Per-pass orchestration of side resolution, port stacking, routing and rounding.

``route_connections`` is the functional core: it takes the connection list and
a geometry query and returns renderable path data plus the occupied/free port
lists for the input layer. ``CanvasLayout`` wraps it for callers that keep
cards and connections as plain store records.

Example:
    layout = CanvasLayout(
        rects=[
            {"id": "a", "x": 0, "y": 0, "width": 160, "height": 80, "colorKey": "blue"},
            {"id": "b", "x": 400, "y": 0, "width": 160, "height": 80},
        ],
        connections=[{"fromId": "a", "toId": "b", "fromSide": None, "toSide": None}],
    )
    layout.run()

    for route in layout.routes:
        print(route.from_id, route.to_id, route.path)
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from typing_extensions import Self

from .config import COLOR_STROKES, DEFAULT_CONFIG, DEFAULT_STROKE, RoutingConfig
from .ports import allocate_ports, assign_port_points, publish_ports
from .rounding import round_path
from .routing import route_path
from .sides import SideFn, resolve_sides
from .types import (
    Connection,
    Point,
    PortKey,
    PortSlots,
    Rect,
    RectId,
    RoutedConnection,
    Side,
    parse_side_choice,
)
from .validation import RoutingFallbackWarning, validate_connection_ids

GeometryFn = Callable[[RectId], Optional[Rect]]
StrokeFn = Callable[[Rect], str]


def default_stroke(rect: Rect) -> str:
    """Stroke identifier derived from the card's color key."""
    if rect.color_key is None:
        return DEFAULT_STROKE
    return COLOR_STROKES.get(rect.color_key, DEFAULT_STROKE)


@dataclass
class RoutingResult:
    """Output of one routing pass."""

    routes: list[RoutedConnection] = field(default_factory=list)
    ports: dict[PortKey, PortSlots] = field(default_factory=dict)


def route_connections(
    connections: Sequence[Connection],
    geometry_of: GeometryFn,
    *,
    rect_ids: Iterable[RectId] = (),
    config: Optional[RoutingConfig] = None,
    stroke_for: Optional[StrokeFn] = None,
    side_fn: Optional[SideFn] = None,
) -> RoutingResult:
    """Route every connection from scratch.

    Pipeline:
    1. Resolve sides (stored Fixed sides, or the heuristic for Auto ends)
    2. Stack ports per (rect, side) in connection-list order
    3. Route each connection between its stacked port points
    4. Round the waypoints into path commands
    5. Publish occupied/free ports per (rect, side)

    Args:
        connections: Connections in stable insertion order.
        geometry_of: Query returning the current rectangle for an id, or
            None for unknown ids.
        rect_ids: Rectangles to publish ports for in addition to those
            referenced by connections.
        config: Routing parameters, defaults to ``DEFAULT_CONFIG``.
        stroke_for: Maps the source rectangle to a stroke identifier.
        side_fn: Optional custom side heuristic.

    Returns:
        RoutingResult with one RoutedConnection per input connection, in
        input order.
    """
    config = config or DEFAULT_CONFIG
    stroke_for = stroke_for or default_stroke

    # Step 1: Determine port sides for each connection
    sides: list[Optional[tuple[Side, Side]]] = []
    for conn in connections:
        rect_from = geometry_of(conn.from_id)
        rect_to = geometry_of(conn.to_id)
        if rect_from is None or rect_to is None:
            sides.append(None)
            continue
        sides.append(resolve_sides(conn, rect_from, rect_to, side_fn))

    # Step 2: Stack ports on shared sides
    buckets = allocate_ports(connections, sides)
    port_points = assign_port_points(buckets, geometry_of, config)

    # Step 3: Route and round each connection
    routes: list[RoutedConnection] = []
    for ci, (conn, resolved) in enumerate(zip(connections, sides)):
        rect_from = geometry_of(conn.from_id)
        rect_to = geometry_of(conn.to_id)

        if resolved is None or rect_from is None or rect_to is None:
            routes.append(_fallback_route(ci, conn, rect_from, rect_to, stroke_for, config))
            continue

        src_side, tgt_side = resolved
        src_pt = port_points[(ci, True)]
        tgt_pt = port_points[(ci, False)]
        waypoints = route_path(
            src_pt,
            src_side,
            tgt_pt,
            tgt_side,
            target_half_width=rect_to.width / 2,
            source_box=rect_from,
            target_box=rect_to,
            min_escape=config.min_escape,
            degenerate_threshold=config.degenerate_threshold,
        )
        routes.append(
            RoutedConnection(
                index=ci,
                from_id=conn.from_id,
                to_id=conn.to_id,
                source_side=src_side,
                target_side=tgt_side,
                source_point=src_pt,
                target_point=tgt_pt,
                waypoints=waypoints,
                path=round_path(waypoints, config.corner_radius),
                stroke=stroke_for(rect_from),
            )
        )

    # Step 4: Publish ports for the input layer
    ports = publish_ports(buckets, rect_ids, geometry_of, config)

    return RoutingResult(routes=routes, ports=ports)


def _fallback_route(
    index: int,
    conn: Connection,
    rect_from: Optional[Rect],
    rect_to: Optional[Rect],
    stroke_for: StrokeFn,
    config: RoutingConfig,
) -> RoutedConnection:
    """Direct segment for a connection that cannot be routed."""
    if rect_from is None or rect_to is None:
        missing = [rid for rid, r in ((conn.from_id, rect_from), (conn.to_id, rect_to)) if r is None]
        reason = "unknown rect " + ", ".join(repr(rid) for rid in missing)
    else:
        reason = "stale side value"
    warnings.warn(
        f"Connection {index} ({conn.from_id!r} -> {conn.to_id!r}): {reason}; "
        "drawing a straight segment.",
        RoutingFallbackWarning,
        stacklevel=3,
    )

    origin: Point = (0.0, 0.0)
    a = rect_from.center if rect_from is not None else None
    b = rect_to.center if rect_to is not None else None
    src_pt = a or b or origin
    tgt_pt = b or a or origin
    waypoints = [src_pt, tgt_pt]

    return RoutedConnection(
        index=index,
        from_id=conn.from_id,
        to_id=conn.to_id,
        source_side=None,
        target_side=None,
        source_point=src_pt,
        target_point=tgt_pt,
        waypoints=waypoints,
        path=round_path(waypoints, config.corner_radius),
        stroke=stroke_for(rect_from) if rect_from is not None else DEFAULT_STROKE,
        fallback=True,
    )


class CanvasLayout:
    """
    Connector layout for a canvas of cards.

    Holds the current cards and connections and recomputes every route from
    scratch on ``run()``. Nothing is carried over between runs, so calling
    ``run()`` twice with unchanged inputs yields identical results.

    Example:
        layout = CanvasLayout(rects=rects, connections=connections).run()
        for (rect_id, side), slots in layout.ports.items():
            if slots.free is not None:
                draw_port(slots.free)
    """

    def __init__(
        self,
        *,
        rects: Optional[Sequence[Any]] = None,
        connections: Optional[Sequence[Any]] = None,
        config: Optional[RoutingConfig] = None,
        stroke_for: Optional[StrokeFn] = None,
        side_fn: Optional[SideFn] = None,
    ) -> None:
        """
        Initialize layout with cards and connections.

        Args:
            rects: Rect objects, or dicts with id/x/y/width/height/colorKey
            connections: Connection objects, or dicts with
                fromId/toId/fromSide/toSide (snake_case keys also accepted)
            config: Routing parameters
            stroke_for: Maps a source card to its stroke identifier
            side_fn: Optional custom side heuristic
        """
        self._rects: dict[RectId, Rect] = {}
        self._connections: list[Connection] = []
        self._result = RoutingResult()
        self.config = config or DEFAULT_CONFIG
        self.stroke_for = stroke_for
        self.side_fn = side_fn

        if rects is not None:
            self.rects = rects
        if connections is not None:
            self.connections = connections

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def rects(self) -> list[Rect]:
        """Get the cards in insertion order."""
        return list(self._rects.values())

    @rects.setter
    def rects(self, value: Sequence[Any]) -> None:
        """Set cards from Rect objects, dicts, or objects with attributes."""
        self._rects = {}
        for rect_data in value:
            rect = _to_rect(rect_data)
            self._rects[rect.id] = rect

    @property
    def connections(self) -> list[Connection]:
        """Get the connections in insertion order."""
        return self._connections

    @connections.setter
    def connections(self, value: Sequence[Any]) -> None:
        """Set connections from Connection objects or store records."""
        self._connections = [_to_connection(conn_data) for conn_data in value]

    @property
    def routes(self) -> list[RoutedConnection]:
        """Routes from the last run, in connection order."""
        return self._result.routes

    @property
    def ports(self) -> dict[PortKey, PortSlots]:
        """Published ports from the last run."""
        return self._result.ports

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def geometry_of(self, rect_id: RectId) -> Optional[Rect]:
        """Current geometry of a card, or None if it is unknown."""
        return self._rects.get(rect_id)

    def free_ports(self, exclude: Optional[RectId] = None) -> list[tuple[RectId, Side, Point]]:
        """Free port positions from the last run, optionally skipping one card."""
        return [
            (rect_id, side, slots.free)
            for (rect_id, side), slots in self._result.ports.items()
            if slots.free is not None and rect_id != exclude
        ]

    def route_for(self, from_id: RectId, to_id: RectId) -> Optional[RoutedConnection]:
        """Route joining two cards in either direction, if any."""
        for route in self._result.routes:
            if {route.from_id, route.to_id} == {from_id, to_id}:
                return route
        return None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Check that every connection references a known card.

        ``run()`` does not call this: a dangling connection is drawn as a
        fallback segment and the rest of the pass is unaffected. Call it
        early for fail-fast behavior.

        Returns:
            self (for chaining)

        Raises:
            InvalidRectError: If any connection references an unknown card.
        """
        if self._connections:
            validate_connection_ids(self._connections, list(self._rects), strict=True)
        return self

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(self) -> Self:
        """Recompute all routes and ports."""
        self._result = route_connections(
            self._connections,
            self.geometry_of,
            rect_ids=list(self._rects),
            config=self.config,
            stroke_for=self.stroke_for,
            side_fn=self.side_fn,
        )
        return self


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _to_rect(rect_data: Any) -> Rect:
    if isinstance(rect_data, Rect):
        return rect_data
    if isinstance(rect_data, dict):
        return Rect(
            id=rect_data["id"],
            x=float(rect_data.get("x", 0.0)),
            y=float(rect_data.get("y", 0.0)),
            width=float(_first(rect_data, "width", "w", default=0.0)),
            height=float(_first(rect_data, "height", "h", default=0.0)),
            color_key=_first(rect_data, "colorKey", "color_key", "color"),
        )
    # Generic object - copy attributes
    return Rect(
        id=getattr(rect_data, "id"),
        x=float(getattr(rect_data, "x", 0.0)),
        y=float(getattr(rect_data, "y", 0.0)),
        width=float(getattr(rect_data, "width", 0.0)),
        height=float(getattr(rect_data, "height", 0.0)),
        color_key=getattr(rect_data, "color_key", None),
    )


def _to_connection(conn_data: Any) -> Connection:
    if isinstance(conn_data, Connection):
        return conn_data
    if isinstance(conn_data, dict):
        from_id = _first(conn_data, "fromId", "from_id", "from")
        to_id = _first(conn_data, "toId", "to_id", "to")
        from_side = _first(conn_data, "fromSide", "from_side")
        to_side = _first(conn_data, "toSide", "to_side")
    else:
        from_id = getattr(conn_data, "from_id")
        to_id = getattr(conn_data, "to_id")
        from_side = getattr(conn_data, "from_side", None)
        to_side = getattr(conn_data, "to_side", None)
    return Connection(
        from_id=from_id,
        to_id=to_id,
        from_side=parse_side_choice(from_side, strict=False),
        to_side=parse_side_choice(to_side, strict=False),
    )


__all__ = [
    "RoutingResult",
    "route_connections",
    "default_stroke",
    "CanvasLayout",
]
