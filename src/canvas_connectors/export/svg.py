"""
SVG export for routed connectors.

Turns path commands into SVG path data, and renders a whole canvas (cards,
connector paths and free ports) as a standalone SVG document for previews
and debugging.
"""

from __future__ import annotations

from typing import Optional, Sequence
from xml.sax.saxutils import escape

from ..types import LineTo, MoveTo, PathData, PortKey, PortSlots, QuadTo, Rect, RoutedConnection


def _fmt(value: float, precision: int) -> str:
    """Format a coordinate without trailing zeros."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def to_path_data(path: PathData, precision: int = 2) -> str:
    """
    Render path commands as an SVG ``d`` attribute value.

    Args:
        path: Commands from ``round_path``
        precision: Maximum number of decimals per coordinate

    Returns:
        Path data such as ``"M 160 40 L 188 40 Q 200 40 200 52"``
    """
    parts: list[str] = []
    for cmd in path:
        if isinstance(cmd, MoveTo):
            parts.append(f"M {_fmt(cmd.x, precision)} {_fmt(cmd.y, precision)}")
        elif isinstance(cmd, LineTo):
            parts.append(f"L {_fmt(cmd.x, precision)} {_fmt(cmd.y, precision)}")
        elif isinstance(cmd, QuadTo):
            parts.append(
                f"Q {_fmt(cmd.cx, precision)} {_fmt(cmd.cy, precision)} "
                f"{_fmt(cmd.x, precision)} {_fmt(cmd.y, precision)}"
            )
    return " ".join(parts)


def to_svg(
    rects: Sequence[Rect],
    routes: Sequence[RoutedConnection],
    *,
    ports: Optional[dict[PortKey, PortSlots]] = None,
    card_color: str = "#fdf6d8",
    card_stroke: str = "#9a8c5a",
    card_stroke_width: float = 1.0,
    edge_width: float = 2.0,
    port_radius: float = 4.0,
    port_color: str = "#ffffff",
    show_labels: bool = True,
    label_color: str = "#000000",
    font_size: float = 12.0,
    font_family: str = "sans-serif",
    padding: float = 40.0,
    background: Optional[str] = None,
    precision: int = 2,
) -> str:
    """
    Export cards and their routed connectors to SVG format.

    Connector strokes use each route's stroke identifier verbatim, so CSS
    variables such as ``var(--info)`` resolve when the SVG is inlined in a
    page that defines them.

    Args:
        rects: Cards to draw
        routes: Routed connections from ``route_connections``
        ports: Published ports; free ports are drawn as small circles
        card_color: Fill color for cards
        card_stroke: Stroke color for cards
        card_stroke_width: Stroke width for cards
        edge_width: Stroke width for connectors
        port_radius: Radius of free-port dots
        port_color: Fill color of free-port dots
        show_labels: Whether to label cards with their ids
        label_color: Color for labels
        font_size: Font size for labels
        font_family: Font family for labels
        padding: Padding around the drawing
        background: Background color (None for transparent)
        precision: Decimals used in path data

    Returns:
        SVG string representation of the canvas
    """
    if not rects:
        return _empty_svg(100, 100, background)

    # Calculate bounding box from cards and waypoints
    min_x = min(r.left for r in rects)
    max_x = max(r.right for r in rects)
    min_y = min(r.top for r in rects)
    max_y = max(r.bottom for r in rects)
    for route in routes:
        for px, py in route.waypoints:
            min_x = min(min_x, px)
            max_x = max(max_x, px)
            min_y = min(min_y, py)
            max_y = max(max_y, py)

    width = max_x - min_x + 2 * padding
    height = max_y - min_y + 2 * padding
    offset_x = padding - min_x
    offset_y = padding - min_y

    svg_parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">'
    ]

    if background:
        svg_parts.append(f'  <rect width="100%" height="100%" fill="{escape(background)}"/>')

    svg_parts.append(f'  <g transform="translate({offset_x:.1f} {offset_y:.1f})">')

    # Connectors sit under the cards
    svg_parts.append('    <g class="connections">')
    for route in routes:
        svg_parts.append(_render_route(route, edge_width, precision))
    svg_parts.append("    </g>")

    svg_parts.append('    <g class="cards">')
    for rect in rects:
        svg_parts.append(_render_card(rect, card_color, card_stroke, card_stroke_width))
    svg_parts.append("    </g>")

    if ports:
        svg_parts.append('    <g class="ports">')
        for slots in ports.values():
            if slots.free is not None:
                svg_parts.append(_render_port(slots, port_radius, port_color, card_stroke))
        svg_parts.append("    </g>")

    if show_labels:
        svg_parts.append('    <g class="labels">')
        for rect in rects:
            svg_parts.append(_render_label(rect, label_color, font_size, font_family))
        svg_parts.append("    </g>")

    svg_parts.append("  </g>")
    svg_parts.append("</svg>")

    return "\n".join(svg_parts)


def _empty_svg(width: float, height: float, background: Optional[str]) -> str:
    """Create an empty SVG."""
    bg = ""
    if background:
        bg = f'\n  <rect width="100%" height="100%" fill="{escape(background)}"/>'
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{width:.1f}" height="{height:.1f}" '
        f'viewBox="0 0 {width:.1f} {height:.1f}">{bg}\n</svg>'
    )


def _render_route(route: RoutedConnection, width: float, precision: int) -> str:
    """Render one connector path."""
    d = to_path_data(route.path, precision)
    css_class = "conn-path conn-fallback" if route.fallback else "conn-path"
    return (
        f'      <path d="{d}" class="{css_class}" fill="none" '
        f'style="stroke: {escape(route.stroke)}" stroke-width="{width}" '
        f'data-from="{escape(str(route.from_id))}" data-to="{escape(str(route.to_id))}"/>'
    )


def _render_card(rect: Rect, fill: str, stroke: str, stroke_width: float) -> str:
    """Render a card rectangle."""
    return (
        f'      <rect x="{rect.x:.1f}" y="{rect.y:.1f}" '
        f'width="{rect.width:.1f}" height="{rect.height:.1f}" '
        f'fill="{escape(fill)}" stroke="{escape(stroke)}" '
        f'stroke-width="{stroke_width}" rx="6"/>'
    )


def _render_port(slots: PortSlots, radius: float, fill: str, stroke: str) -> str:
    """Render a free port dot."""
    assert slots.free is not None
    x, y = slots.free
    return (
        f'      <circle cx="{x:.1f}" cy="{y:.1f}" r="{radius:.1f}" '
        f'class="conn-dot conn-dot-{slots.side.value}" '
        f'fill="{escape(fill)}" stroke="{escape(stroke)}"/>'
    )


def _render_label(rect: Rect, color: str, font_size: float, font_family: str) -> str:
    """Render a card label."""
    x, y = rect.center
    return (
        f'      <text x="{x:.1f}" y="{y:.1f}" '
        f'fill="{escape(color)}" font-size="{font_size}" '
        f'font-family="{escape(font_family)}" '
        f'text-anchor="middle" dominant-baseline="central">'
        f"{escape(str(rect.id))}</text>"
    )


__all__ = [
    "to_path_data",
    "to_svg",
]
