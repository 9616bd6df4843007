"""
Export functionality for routed connectors.

This module provides functions to turn routing results into SVG:
- to_path_data: Path commands as an SVG ``d`` string
- to_svg: A standalone SVG document of cards and connectors

Example usage:
    from canvas_connectors import CanvasLayout
    from canvas_connectors.export import to_path_data, to_svg

    layout = CanvasLayout(rects=rects, connections=connections).run()

    for route in layout.routes:
        print(to_path_data(route.path))

    with open("canvas.svg", "w") as f:
        f.write(to_svg(layout.rects, layout.routes, ports=layout.ports))
"""

from .svg import to_path_data, to_svg

__all__ = [
    "to_path_data",
    "to_svg",
]
