"""Port side selection for connections whose sides were not chosen by the user."""

from __future__ import annotations

from typing import Callable, Optional

from .types import Auto, Connection, Fixed, Rect, Side

SideFn = Callable[[Rect, Rect], tuple[Side, Side]]


def choose_sides(rect_a: Rect, rect_b: Rect) -> tuple[Side, Side]:
    """Pick the pair of sides that face each other.

    Compares the center-to-center displacement: a dominant (or equal)
    horizontal offset gives a RIGHT/LEFT pair, otherwise a BOTTOM/TOP pair,
    oriented toward the displacement.
    """
    ax, ay = rect_a.center
    bx, by = rect_b.center
    dx = bx - ax
    dy = by - ay

    if abs(dx) >= abs(dy):
        if dx >= 0:
            return (Side.RIGHT, Side.LEFT)
        return (Side.LEFT, Side.RIGHT)
    if dy >= 0:
        return (Side.BOTTOM, Side.TOP)
    return (Side.TOP, Side.BOTTOM)


def resolve_sides(
    connection: Connection,
    rect_from: Rect,
    rect_to: Rect,
    side_fn: Optional[SideFn] = None,
) -> Optional[tuple[Side, Side]]:
    """Resolve the concrete (source, target) sides of a connection.

    Fixed ends keep their stored side; Auto ends take the heuristic's
    choice for that end. The heuristic only runs when at least one end is
    Auto.

    Args:
        connection: Connection to resolve.
        rect_from: Geometry of ``connection.from_id``.
        rect_to: Geometry of ``connection.to_id``.
        side_fn: Optional custom heuristic, defaults to ``choose_sides``.

    Returns:
        (source_side, target_side), or None if either stored side is stale.
    """
    from_choice = connection.from_side
    to_choice = connection.to_side

    if isinstance(from_choice, Fixed) and isinstance(to_choice, Fixed):
        return (from_choice.side, to_choice.side)
    if not isinstance(from_choice, (Auto, Fixed)) or not isinstance(to_choice, (Auto, Fixed)):
        return None

    heuristic = (side_fn or choose_sides)(rect_from, rect_to)
    final_from = from_choice.side if isinstance(from_choice, Fixed) else heuristic[0]
    final_to = to_choice.side if isinstance(to_choice, Fixed) else heuristic[1]
    return (final_from, final_to)


__all__ = [
    "choose_sides",
    "resolve_sides",
]
