#!/usr/bin/env python3
"""
Visualization script for connector routing.

Generates PNG and SVG images of a few card arrangements into ./build/

Usage:
    uv run python scripts/visualize.py
"""

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, PathPatch
from matplotlib.path import Path as MplPath

from canvas_connectors import CanvasLayout, LineTo, MoveTo, QuadTo
from canvas_connectors.export import to_svg

# Output directory
BUILD_DIR = Path(__file__).parent.parent / "build"

# CSS variables used as strokes, resolved for matplotlib
STROKE_COLORS = {
    "var(--warn)": "#d4a72c",
    "var(--info)": "#3b82f6",
    "var(--ok)": "#22a06b",
    "var(--danger)": "#e5484d",
    "var(--accent-2)": "#12a594",
    "var(--border-strong)": "#8b8d98",
}


def ensure_build_dir():
    """Create build directory if it doesn't exist."""
    BUILD_DIR.mkdir(exist_ok=True)


def to_mpl_path(path):
    """Convert path commands into a matplotlib Path."""
    vertices = []
    codes = []
    for cmd in path:
        if isinstance(cmd, MoveTo):
            vertices.append((cmd.x, cmd.y))
            codes.append(MplPath.MOVETO)
        elif isinstance(cmd, LineTo):
            vertices.append((cmd.x, cmd.y))
            codes.append(MplPath.LINETO)
        elif isinstance(cmd, QuadTo):
            vertices.extend([(cmd.cx, cmd.cy), (cmd.x, cmd.y)])
            codes.extend([MplPath.CURVE3, MplPath.CURVE3])
    return MplPath(vertices, codes)


def visualize(layout, title="Connector Routing", ax=None):
    """Draw cards, routed connectors and free ports on an axis."""
    # Draw connectors under the cards
    for route in layout.routes:
        color = STROKE_COLORS.get(route.stroke, "#8b8d98")
        patch = PathPatch(
            to_mpl_path(route.path),
            facecolor="none",
            edgecolor=color,
            linewidth=2,
            linestyle="--" if route.fallback else "-",
            zorder=1,
        )
        ax.add_patch(patch)

    # Draw cards
    for rect in layout.rects:
        ax.add_patch(
            FancyBboxPatch(
                (rect.x, rect.y),
                rect.width,
                rect.height,
                boxstyle="round,pad=0,rounding_size=6",
                facecolor="#fdf6d8",
                edgecolor="#9a8c5a",
                zorder=2,
            )
        )
        cx, cy = rect.center
        ax.annotate(str(rect.id), (cx, cy), ha="center", va="center", fontsize=9, zorder=3)

    # Draw free ports
    free = layout.free_ports()
    if free:
        xs = [pt[0] for _, _, pt in free]
        ys = [pt[1] for _, _, pt in free]
        ax.scatter(xs, ys, s=18, c="white", edgecolors="#9a8c5a", zorder=4)

    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_aspect("equal")
    ax.autoscale_view()
    ax.invert_yaxis()  # canvas y grows downward
    ax.axis("off")


def save_scenario(name, rects, connections, filename):
    """Route a scenario and save it as PNG and SVG."""
    layout = CanvasLayout(rects=rects, connections=connections).run()

    fig, ax = plt.subplots(figsize=(8, 6))
    visualize(layout, name, ax=ax)
    plt.tight_layout()

    filepath = BUILD_DIR / filename
    fig.savefig(filepath, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"  Saved: {filepath}")

    svg_path = filepath.with_suffix(".svg")
    svg_path.write_text(to_svg(layout.rects, layout.routes, ports=layout.ports, background="white"))
    print(f"  Saved: {svg_path}")


def card(rect_id, x, y, color=None):
    return {"id": rect_id, "x": x, "y": y, "width": 160, "height": 80, "colorKey": color}


def create_scenarios():
    """Card arrangements covering each route shape."""
    return [
        (
            "Side by side",
            [card("A", 0, 0, "blue"), card("B", 400, 0)],
            [{"fromId": "A", "toId": "B"}],
            "side_by_side.png",
        ),
        (
            "Stacked ports",
            [card("A", 0, 0, "green"), card("B", 400, -120), card("C", 400, 40), card("D", 400, 200)],
            [
                {"fromId": "A", "toId": "B"},
                {"fromId": "A", "toId": "C"},
                {"fromId": "A", "toId": "D"},
            ],
            "stacked_ports.png",
        ),
        (
            "Same side U-shape",
            [card("A", 0, 0, "yellow"), card("B", 0, 300)],
            [{"fromId": "A", "toId": "B", "fromSide": "right", "toSide": "right"}],
            "u_shape.png",
        ),
        (
            "Facing away",
            [card("A", 0, 0, "red"), card("B", -400, 0), card("C", 100, 300)],
            [
                {"fromId": "A", "toId": "B", "fromSide": "right", "toSide": "left"},
                {"fromId": "A", "toId": "C", "fromSide": "right", "toSide": "left"},
            ],
            "facing_away.png",
        ),
        (
            "Perpendicular sides",
            [card("A", 0, 0, "teal"), card("B", 400, 200), card("C", -300, -300)],
            [
                {"fromId": "A", "toId": "B", "fromSide": "right", "toSide": "bottom"},
                {"fromId": "A", "toId": "C", "fromSide": "right", "toSide": "bottom"},
            ],
            "perpendicular.png",
        ),
    ]


def generate_all():
    """Generate all visualization images."""
    ensure_build_dir()

    print("Generating connector routing images...")
    for name, rects, connections, filename in create_scenarios():
        save_scenario(name, rects, connections, filename)

    print(f"\nAll images saved to: {BUILD_DIR}")


if __name__ == "__main__":
    generate_all()
