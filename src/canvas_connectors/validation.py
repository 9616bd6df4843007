"""
Input validation utilities for connector routing.

Provides centralized validation for rectangles, side values and routing
configuration, plus the warning categories used for recoverable input
problems. Validation functions raise descriptive exceptions on invalid input;
the ``strict=False`` variants collect issues instead.
"""

from __future__ import annotations

import math
from typing import Any, Sequence


class ValidationError(ValueError):
    """Base exception for routing validation errors."""

    pass


class InvalidRectError(ValidationError):
    """Raised when a rectangle is malformed."""

    pass


class InvalidSideError(ValidationError):
    """Raised when a side value cannot be interpreted."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when routing configuration values are out of range."""

    pass


class DragStateError(ValidationError):
    """Raised on a drag transition that is not valid from the current state."""

    pass


class RoutingFallbackWarning(UserWarning):
    """A connection was drawn as a straight segment because its input is unusable."""

    pass


class PortCapacityWarning(UserWarning):
    """More connections are anchored on a side than free ports would allow."""

    pass


def validate_rect_geometry(x: float, y: float, width: float, height: float) -> None:
    """
    Validate rectangle geometry.

    Args:
        x: Left edge
        y: Top edge
        width: Width (must be >= 0)
        height: Height (must be >= 0)

    Raises:
        InvalidRectError: If a value is not finite or a dimension is negative
    """
    for name, value in (("x", x), ("y", y), ("width", width), ("height", height)):
        if not math.isfinite(value):
            raise InvalidRectError(f"Rect {name} must be finite, got {value}")
    if width < 0:
        raise InvalidRectError(f"Rect width must be non-negative, got {width}")
    if height < 0:
        raise InvalidRectError(f"Rect height must be non-negative, got {height}")


def validate_config(config: Any) -> None:
    """
    Validate a RoutingConfig.

    Raises:
        InvalidConfigError: If any parameter is out of range
    """
    if config.min_escape <= 0:
        raise InvalidConfigError(f"min_escape must be positive, got {config.min_escape}")
    if config.corner_radius < 0:
        raise InvalidConfigError(
            f"corner_radius must be non-negative, got {config.corner_radius}"
        )
    if config.port_spacing <= 0:
        raise InvalidConfigError(f"port_spacing must be positive, got {config.port_spacing}")
    if config.max_ports_per_side < 1:
        raise InvalidConfigError(
            f"max_ports_per_side must be >= 1, got {config.max_ports_per_side}"
        )
    if config.corner_clearance < 0:
        raise InvalidConfigError(
            f"corner_clearance must be non-negative, got {config.corner_clearance}"
        )
    if config.degenerate_threshold < 0:
        raise InvalidConfigError(
            f"degenerate_threshold must be non-negative, got {config.degenerate_threshold}"
        )
    if config.snap_distance < 0:
        raise InvalidConfigError(
            f"snap_distance must be non-negative, got {config.snap_distance}"
        )


def validate_connection_ids(
    connections: Sequence[Any],
    rect_ids: Sequence[Any],
    strict: bool = True,
) -> list[tuple[int, str]]:
    """
    Validate that every connection references known rectangles.

    Args:
        connections: Sequence of Connection objects
        rect_ids: Known rectangle ids
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of (connection_index, issue_description) tuples

    Raises:
        InvalidRectError: If strict=True and dangling ids were found
    """
    known = set(rect_ids)
    issues: list[tuple[int, str]] = []

    for i, conn in enumerate(connections):
        if conn.from_id not in known:
            issues.append((i, f"Connection {i}: unknown source rect {conn.from_id!r}"))
        if conn.to_id not in known:
            issues.append((i, f"Connection {i}: unknown target rect {conn.to_id!r}"))

    if strict and issues:
        msg = "Invalid connection references:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidRectError(msg)

    return issues


__all__ = [
    "ValidationError",
    "InvalidRectError",
    "InvalidSideError",
    "InvalidConfigError",
    "DragStateError",
    "RoutingFallbackWarning",
    "PortCapacityWarning",
    "validate_rect_geometry",
    "validate_config",
    "validate_connection_ids",
]
