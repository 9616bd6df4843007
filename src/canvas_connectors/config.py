"""
Routing constants and configuration.

All distances are in canvas units (pixels at scale 1.0). The module-level
constants are the defaults observed on the card canvas; ``RoutingConfig``
bundles them so callers can override any of them per invocation.
"""

from __future__ import annotations

from dataclasses import dataclass

from .validation import validate_config

MIN_ESCAPE = 28.0  # length of the mandatory first leg leaving a card
CORNER_RADIUS = 12.0  # radius of rounded bends
PORT_SPACING = 18.0  # distance between stacked port centers on one side
MAX_PORTS_PER_SIDE = 5
CORNER_CLEARANCE = 8.0  # minimum distance from a port to the side's corners
DEGENERATE_THRESHOLD = 2.0
SNAP_DISTANCE = 60.0  # drag snaps to a port closer than this

DEFAULT_STROKE = "var(--border-strong)"

COLOR_STROKES: dict[str, str] = {
    "yellow": "var(--warn)",
    "blue": "var(--info)",
    "green": "var(--ok)",
    "red": "var(--danger)",
    "teal": "var(--accent-2)",
}


@dataclass(frozen=True)
class RoutingConfig:
    """
    Tunable parameters for port layout and routing.

    Attributes:
        min_escape: Length of the escape leg leaving each card
        corner_radius: Requested radius of rounded bends
        port_spacing: Spacing between stacked ports on one side
        max_ports_per_side: Upper bound on slots exposed per side
        corner_clearance: Minimum distance from ports to side corners
        degenerate_threshold: Below this delta on both axes a route is straight
        snap_distance: Radius within which a drag snaps to a free port
    """

    min_escape: float = MIN_ESCAPE
    corner_radius: float = CORNER_RADIUS
    port_spacing: float = PORT_SPACING
    max_ports_per_side: int = MAX_PORTS_PER_SIDE
    corner_clearance: float = CORNER_CLEARANCE
    degenerate_threshold: float = DEGENERATE_THRESHOLD
    snap_distance: float = SNAP_DISTANCE

    def __post_init__(self) -> None:
        validate_config(self)


DEFAULT_CONFIG = RoutingConfig()


__all__ = [
    "MIN_ESCAPE",
    "CORNER_RADIUS",
    "PORT_SPACING",
    "MAX_PORTS_PER_SIDE",
    "CORNER_CLEARANCE",
    "DEGENERATE_THRESHOLD",
    "SNAP_DISTANCE",
    "DEFAULT_STROKE",
    "COLOR_STROKES",
    "RoutingConfig",
    "DEFAULT_CONFIG",
]
