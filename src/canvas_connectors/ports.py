"""Port stacking for connectors that share a rectangle side.

Every pass regroups the connection list by (rect, side) and hands out slot
indices in list order. Slot ``i`` maps to a signed offset from the side's
midpoint, alternating outward from the center:

    slot:    0   1    2    3     4
    offset:  0  +S   -S  +2S   -2S

so existing lines keep their place when a new connection is appended.
"""

from __future__ import annotations

import math
import warnings
from collections import defaultdict
from typing import Callable, Iterable, Optional, Sequence

from .config import CORNER_CLEARANCE, DEFAULT_CONFIG, PORT_SPACING, RoutingConfig
from .types import (
    OFFERED_SIDES,
    Connection,
    Point,
    PortEntry,
    PortKey,
    PortSlots,
    Rect,
    RectId,
    Side,
)
from .validation import PortCapacityWarning

GeometryFn = Callable[[RectId], Optional[Rect]]


def slot_offset(index: int, spacing: float = PORT_SPACING) -> float:
    """Signed offset of a slot from the side's midpoint."""
    if index <= 0:
        return 0.0
    magnitude = math.ceil(index / 2) * spacing
    return magnitude if index % 2 == 1 else -magnitude


def port_position(
    rect: Rect,
    side: Side,
    offset: float = 0.0,
    corner_clearance: float = CORNER_CLEARANCE,
) -> Point:
    """
    Get the (x, y) position of a port on a rectangle side.

    The offset is applied along the side from its midpoint, then clamped so
    the port stays at least ``corner_clearance`` away from both corners.

    Args:
        rect: The rectangle
        side: Which side of the rectangle
        offset: Signed distance from the side's midpoint
        corner_clearance: Minimum distance to either corner

    Returns:
        (x, y) coordinates of the port
    """
    length = rect.side_length(side)
    if length < 2 * corner_clearance:
        along = length / 2
    else:
        along = min(max(length / 2 + offset, corner_clearance), length - corner_clearance)

    if side == Side.TOP:
        return (rect.left + along, rect.top)
    elif side == Side.BOTTOM:
        return (rect.left + along, rect.bottom)
    elif side == Side.LEFT:
        return (rect.left, rect.top + along)
    else:  # RIGHT
        return (rect.right, rect.top + along)


def allocate_ports(
    connections: Sequence[Connection],
    sides: Sequence[Optional[tuple[Side, Side]]],
) -> dict[PortKey, list[PortEntry]]:
    """Group connection ends by (rect, side) in connection-list order.

    Args:
        connections: Connections for this pass.
        sides: Resolved (source_side, target_side) per connection, or None
            for connections that fall back to a straight segment.

    Returns:
        Mapping (rect_id, side) -> ordered entries; an entry's position in
        its list is its slot index.
    """
    buckets: dict[PortKey, list[PortEntry]] = defaultdict(list)

    for ci, (conn, resolved) in enumerate(zip(connections, sides)):
        if resolved is None:
            continue
        src_side, tgt_side = resolved
        buckets[(conn.from_id, src_side)].append(PortEntry(ci, True))
        buckets[(conn.to_id, tgt_side)].append(PortEntry(ci, False))

    return dict(buckets)


def assign_port_points(
    buckets: dict[PortKey, list[PortEntry]],
    geometry_of: GeometryFn,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> dict[tuple[int, bool], Point]:
    """Compute the stacked port point of every allocated connection end.

    Returns:
        Mapping (connection_index, is_source) -> (x, y).
    """
    points: dict[tuple[int, bool], Point] = {}

    for (rect_id, side), entries in buckets.items():
        rect = geometry_of(rect_id)
        if rect is None:
            continue
        for i, entry in enumerate(entries):
            offset = slot_offset(i, config.port_spacing)
            points[(entry.connection_index, entry.is_source)] = port_position(
                rect, side, offset, config.corner_clearance
            )

    return points


def port_slots(
    rect: Rect,
    side: Side,
    occupied_count: int,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> PortSlots:
    """Occupied port positions plus at most one free slot for a side.

    The free slot takes the next index after the occupied ones and is only
    offered on sides in ``OFFERED_SIDES`` while the side holds fewer than
    ``max_ports_per_side`` slots.
    """
    occupied = [
        port_position(rect, side, slot_offset(i, config.port_spacing), config.corner_clearance)
        for i in range(occupied_count)
    ]
    free: Optional[Point] = None
    if side in OFFERED_SIDES and occupied_count < config.max_ports_per_side:
        free = port_position(
            rect, side, slot_offset(occupied_count, config.port_spacing), config.corner_clearance
        )
    return PortSlots(rect_id=rect.id, side=side, occupied=occupied, free=free)


def publish_ports(
    buckets: dict[PortKey, list[PortEntry]],
    rect_ids: Iterable[RectId],
    geometry_of: GeometryFn,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> dict[PortKey, PortSlots]:
    """Publish occupied and free ports for every known rectangle.

    Each rectangle gets an entry for every offered side, plus any other side
    (TOP) that already carries connections.
    """
    published: dict[PortKey, PortSlots] = {}

    seen: list[RectId] = []
    for rect_id in list(rect_ids) + [key[0] for key in buckets]:
        if rect_id not in seen:
            seen.append(rect_id)

    for rect_id in seen:
        rect = geometry_of(rect_id)
        if rect is None:
            continue
        for side in Side:
            count = len(buckets.get((rect_id, side), ()))
            if side not in OFFERED_SIDES and count == 0:
                continue
            if count > config.max_ports_per_side:
                warnings.warn(
                    f"Rect {rect_id!r} has {count} connections on its {side.value} side; "
                    f"only {config.max_ports_per_side} ports are offered per side.",
                    PortCapacityWarning,
                    stacklevel=3,
                )
            published[(rect_id, side)] = port_slots(rect, side, count, config)

    return published


__all__ = [
    "slot_offset",
    "port_position",
    "allocate_ports",
    "assign_port_points",
    "port_slots",
    "publish_ports",
]
