"""
Type definitions for connector routing.

Provides the data structures shared by every stage of a routing pass:
rectangles, sides and side choices, connections, port slots, path commands
and the per-connection routing result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Optional, Union

from .validation import InvalidSideError, validate_rect_geometry

Point = tuple[float, float]
RectId = Hashable


class Side(Enum):
    """Edge of a rectangle where a connector attaches."""

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    def opposite(self) -> Side:
        """Get the opposite side."""
        opposites = {
            Side.TOP: Side.BOTTOM,
            Side.BOTTOM: Side.TOP,
            Side.LEFT: Side.RIGHT,
            Side.RIGHT: Side.LEFT,
        }
        return opposites[self]

    def is_horizontal(self) -> bool:
        """Check if a connector leaving this side travels along the x axis."""
        return self in (Side.LEFT, Side.RIGHT)

    def is_vertical(self) -> bool:
        """Check if a connector leaving this side travels along the y axis."""
        return self in (Side.TOP, Side.BOTTOM)

    @property
    def outward(self) -> tuple[int, int]:
        """Unit outward normal of the side."""
        return _OUTWARD[self]

    @property
    def escape_vector(self) -> tuple[int, int]:
        """Direction of the escape leg; the top side does not escape."""
        return _ESCAPE[self]


_OUTWARD: dict[Side, tuple[int, int]] = {
    Side.TOP: (0, -1),
    Side.RIGHT: (1, 0),
    Side.BOTTOM: (0, 1),
    Side.LEFT: (-1, 0),
}

_ESCAPE: dict[Side, tuple[int, int]] = {
    Side.TOP: (0, 0),
    Side.RIGHT: (1, 0),
    Side.BOTTOM: (0, 1),
    Side.LEFT: (-1, 0),
}

# Sides offered as new free ports. TOP is kept off so drags never start from
# a card's header region, but stored TOP values are still routed.
OFFERED_SIDES: tuple[Side, ...] = (Side.RIGHT, Side.BOTTOM, Side.LEFT)


# ---------------------------------------------------------------------------
# Side choices
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Auto:
    """Side is resolved from the relative card positions on every pass."""

    def __repr__(self) -> str:
        return "AUTO"


@dataclass(frozen=True)
class Fixed:
    """Side was chosen explicitly by the user and is reused verbatim."""

    side: Side


@dataclass(frozen=True)
class Stale:
    """A stored side value that no longer names a side."""

    raw: Any


SideChoice = Union[Auto, Fixed, Stale]

AUTO = Auto()


def parse_side_choice(value: Any, strict: bool = True) -> SideChoice:
    """
    Convert a stored side value into a SideChoice.

    Accepts ``None`` or ``"auto"`` (Auto), a ``Side`` or side name (Fixed),
    or an existing SideChoice.

    Args:
        value: Value read from the connection store
        strict: If True, raises on unknown values. If False, returns Stale.

    Raises:
        InvalidSideError: If strict=True and the value names no side
    """
    if isinstance(value, (Auto, Fixed, Stale)):
        return value
    if value is None:
        return AUTO
    if isinstance(value, Side):
        return Fixed(value)
    if isinstance(value, str):
        name = value.strip().lower()
        if name in ("", "auto"):
            return AUTO
        try:
            return Fixed(Side(name))
        except ValueError:
            pass
    if strict:
        raise InvalidSideError(f"Unknown side value: {value!r}")
    return Stale(value)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rect:
    """
    A card on the canvas.

    Rectangles use a top-left origin; the engine only ever reads them.
    """

    id: RectId
    x: float
    y: float
    width: float
    height: float
    color_key: Optional[str] = None

    def __post_init__(self) -> None:
        validate_rect_geometry(self.x, self.y, self.width, self.height)

    @property
    def left(self) -> float:
        """Left edge x coordinate."""
        return self.x

    @property
    def right(self) -> float:
        """Right edge x coordinate."""
        return self.x + self.width

    @property
    def top(self) -> float:
        """Top edge y coordinate."""
        return self.y

    @property
    def bottom(self) -> float:
        """Bottom edge y coordinate."""
        return self.y + self.height

    @property
    def center(self) -> Point:
        """Center point."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def side_length(self, side: Side) -> float:
        """Length of the given side."""
        return self.height if side.is_horizontal() else self.width

    def side_midpoint(self, side: Side) -> Point:
        """
        Get the midpoint of a side.

        Args:
            side: Which side of the rectangle

        Returns:
            (x, y) coordinates of the side's midpoint
        """
        cx, cy = self.center
        if side == Side.TOP:
            return (cx, self.top)
        elif side == Side.BOTTOM:
            return (cx, self.bottom)
        elif side == Side.LEFT:
            return (self.left, cy)
        else:  # RIGHT
            return (self.right, cy)

    def contains(self, point: Point) -> bool:
        """Check if a point lies strictly inside the rectangle."""
        px, py = point
        return self.left < px < self.right and self.top < py < self.bottom


# ---------------------------------------------------------------------------
# Connections and ports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connection:
    """
    A link between two cards.

    The pair is unordered for duplicate detection, but ``from_id`` decides
    which card's color strokes the line.
    """

    from_id: RectId
    to_id: RectId
    from_side: SideChoice = AUTO
    to_side: SideChoice = AUTO

    def joins(self, a: RectId, b: RectId) -> bool:
        """Check if this connection joins a and b in either direction."""
        return {self.from_id, self.to_id} == {a, b}


PortKey = tuple[RectId, Side]


@dataclass(frozen=True)
class PortEntry:
    """One connection end anchored on a (rect, side) bucket."""

    connection_index: int
    is_source: bool


@dataclass
class PortSlots:
    """
    Ports published for one (rect, side) pair.

    ``occupied`` lists the positions of slots used this pass, in slot order;
    ``free`` is the single extra slot offered for new drags, or None when the
    side is full or not offered.
    """

    rect_id: RectId
    side: Side
    occupied: list[Point] = field(default_factory=list)
    free: Optional[Point] = None

    @property
    def count(self) -> int:
        """Number of occupied slots."""
        return len(self.occupied)


# ---------------------------------------------------------------------------
# Path data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MoveTo:
    """Start a path at (x, y)."""

    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    """Straight segment to (x, y)."""

    x: float
    y: float


@dataclass(frozen=True)
class QuadTo:
    """Quadratic curve with control point (cx, cy) ending at (x, y)."""

    cx: float
    cy: float
    x: float
    y: float


PathCommand = Union[MoveTo, LineTo, QuadTo]
PathData = list[PathCommand]


@dataclass
class RoutedConnection:
    """
    Renderable result for one connection.

    ``fallback`` is True when the connection could not be routed (dangling
    id or stale side) and was drawn as a direct segment instead.
    """

    index: int
    from_id: RectId
    to_id: RectId
    source_side: Optional[Side]
    target_side: Optional[Side]
    source_point: Point
    target_point: Point
    waypoints: list[Point] = field(default_factory=list)
    path: PathData = field(default_factory=list)
    stroke: str = ""
    fallback: bool = False


__all__ = [
    "Point",
    "RectId",
    "Side",
    "OFFERED_SIDES",
    "Auto",
    "Fixed",
    "Stale",
    "SideChoice",
    "AUTO",
    "parse_side_choice",
    "Rect",
    "Connection",
    "PortKey",
    "PortEntry",
    "PortSlots",
    "MoveTo",
    "LineTo",
    "QuadTo",
    "PathCommand",
    "PathData",
    "RoutedConnection",
]
