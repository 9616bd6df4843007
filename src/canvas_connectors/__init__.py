"""
canvas-connectors: Orthogonal connector routing for card canvases.

This package computes where connector lines attach to rectangular cards and
how they travel between them: axis-aligned routes with rounded corners that
leave each card by a fixed escape distance and never fold back into it.

Pipeline stages:
- sides: choose the facing sides of two cards
- ports: stack several connectors on one side
- routing: orthogonal waypoints between two ports
- rounding: rounded-corner path commands
- layout: the per-pass orchestrator
- drag: caller-owned connection drag sessions
"""

__version__ = "0.1.0"

# Configuration
from .config import (
    CORNER_RADIUS,
    DEFAULT_CONFIG,
    MAX_PORTS_PER_SIDE,
    MIN_ESCAPE,
    PORT_SPACING,
    RoutingConfig,
)

# Drag sessions
from .drag import (
    DragSession,
    DragState,
    cancel_drag,
    drag_state,
    preview_path,
    release_drag,
    start_drag,
    update_drag,
)

# Orchestration
from .layout import CanvasLayout, RoutingResult, route_connections

# Pipeline stages
from .ports import allocate_ports, port_position, port_slots, slot_offset
from .rounding import round_path
from .routing import escape_point, route_path
from .sides import choose_sides, resolve_sides

# Shared types
from .types import (
    AUTO,
    OFFERED_SIDES,
    Auto,
    Connection,
    Fixed,
    LineTo,
    MoveTo,
    PortSlots,
    QuadTo,
    Rect,
    RoutedConnection,
    Side,
    Stale,
    parse_side_choice,
)

# Validation utilities
from .validation import (
    DragStateError,
    InvalidConfigError,
    InvalidRectError,
    InvalidSideError,
    PortCapacityWarning,
    RoutingFallbackWarning,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "RoutingConfig",
    "DEFAULT_CONFIG",
    "MIN_ESCAPE",
    "CORNER_RADIUS",
    "PORT_SPACING",
    "MAX_PORTS_PER_SIDE",
    # Shared types
    "Side",
    "OFFERED_SIDES",
    "Auto",
    "Fixed",
    "Stale",
    "AUTO",
    "parse_side_choice",
    "Rect",
    "Connection",
    "PortSlots",
    "MoveTo",
    "LineTo",
    "QuadTo",
    "RoutedConnection",
    # Pipeline stages
    "choose_sides",
    "resolve_sides",
    "slot_offset",
    "port_position",
    "allocate_ports",
    "port_slots",
    "escape_point",
    "route_path",
    "round_path",
    # Orchestration
    "CanvasLayout",
    "RoutingResult",
    "route_connections",
    # Drag sessions
    "DragState",
    "DragSession",
    "drag_state",
    "start_drag",
    "update_drag",
    "preview_path",
    "release_drag",
    "cancel_drag",
    # Validation
    "ValidationError",
    "InvalidRectError",
    "InvalidSideError",
    "InvalidConfigError",
    "DragStateError",
    "RoutingFallbackWarning",
    "PortCapacityWarning",
]
