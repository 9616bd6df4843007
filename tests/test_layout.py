"""Tests for the routing pass orchestrator."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import pytest

from canvas_connectors import (
    AUTO,
    CanvasLayout,
    Connection,
    Fixed,
    LineTo,
    MoveTo,
    Rect,
    RoutingConfig,
    Side,
    Stale,
    route_connections,
)
from canvas_connectors.config import DEFAULT_STROKE
from canvas_connectors.layout import default_stroke
from canvas_connectors.metrics import escape_length, is_orthogonal, route_clears
from canvas_connectors.validation import InvalidRectError, RoutingFallbackWarning


def _card(rect_id: str, x: float, y: float, color: str | None = None) -> Rect:
    return Rect(id=rect_id, x=x, y=y, width=160, height=80, color_key=color)


def _geometry(*rects: Rect):
    table = {r.id: r for r in rects}
    return table.get


# ---------------------------------------------------------------------------
# route_connections
# ---------------------------------------------------------------------------


class TestRouteConnections:
    def test_single_connection(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)
        result = route_connections([Connection("a", "b")], _geometry(a, b), rect_ids=["a", "b"])

        assert len(result.routes) == 1
        route = result.routes[0]
        assert route.source_side == Side.RIGHT
        assert route.target_side == Side.LEFT
        assert route.source_point == (160, 40)
        assert route.target_point == (400, 40)
        assert route.path == [MoveTo(160, 40), LineTo(400, 40)]
        assert not route.fallback

    def test_stacked_ports_on_shared_side(self) -> None:
        a, b, c = _card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 200)
        conns = [Connection("a", "b"), Connection("a", "c")]
        result = route_connections(conns, _geometry(a, b, c))

        assert result.routes[0].source_point == (160, 40)
        assert result.routes[1].source_point == (160, 58)
        assert result.routes[0].source_side == Side.RIGHT
        assert result.routes[1].source_side == Side.RIGHT

    def test_appending_keeps_existing_ports(self) -> None:
        a, b, c = _card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 200)
        before = route_connections([Connection("a", "b")], _geometry(a, b, c))
        after = route_connections(
            [Connection("a", "b"), Connection("a", "c")], _geometry(a, b, c)
        )
        assert after.routes[0].waypoints == before.routes[0].waypoints

    def test_routes_in_input_order(self) -> None:
        a, b, c = _card("a", 0, 0), _card("b", 400, 0), _card("c", 0, 300)
        conns = [Connection("c", "a"), Connection("a", "b"), Connection("b", "c")]
        result = route_connections(conns, _geometry(a, b, c))
        assert [(r.from_id, r.to_id) for r in result.routes] == [("c", "a"), ("a", "b"), ("b", "c")]
        assert [r.index for r in result.routes] == [0, 1, 2]

    def test_fixed_sides_are_honored(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 0, 300)
        conn = Connection("a", "b", Fixed(Side.RIGHT), Fixed(Side.RIGHT))
        route = route_connections([conn], _geometry(a, b)).routes[0]

        assert route.source_side == Side.RIGHT
        assert route.target_side == Side.RIGHT
        assert route.waypoints == [(160, 40), (216, 40), (216, 340), (160, 340)]

    def test_every_route_escapes_and_clears(self) -> None:
        cards = [_card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 300), _card("d", -400, 200)]
        conns = [
            Connection("a", "b"),
            Connection("a", "c", Fixed(Side.BOTTOM), Fixed(Side.LEFT)),
            Connection("d", "a", Fixed(Side.RIGHT), AUTO),
            Connection("c", "b", Fixed(Side.RIGHT), Fixed(Side.RIGHT)),
        ]
        geometry = _geometry(*cards)
        result = route_connections(conns, geometry)

        for route in result.routes:
            assert route.waypoints[0] == route.source_point
            assert route.waypoints[-1] == route.target_point
            assert is_orthogonal(route.waypoints)
            assert escape_length(route.waypoints, route.source_side) >= 28 - 1e-9
            assert escape_length(route.waypoints, route.target_side, at_end=True) >= 28 - 1e-9
            ends = [geometry(route.from_id), geometry(route.to_id)]
            assert route_clears(route.waypoints, ends)

    def test_stored_perpendicular_sides_clear_source(self) -> None:
        a = _card("a", 0, 0)
        b = Rect(id="b", x=357.96, y=-88.86, width=240, height=140)
        conn = Connection("a", "b", Fixed(Side.LEFT), Fixed(Side.BOTTOM))
        route = route_connections([conn], _geometry(a, b)).routes[0]

        assert route.waypoints[0] == (0, 40)
        assert route.waypoints[-1] == route.target_point
        assert is_orthogonal(route.waypoints)
        assert route_clears(route.waypoints, [a, b])

    def test_idempotent(self) -> None:
        a, b, c = _card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 200)
        conns = [Connection("a", "b"), Connection("a", "c"), Connection("b", "c")]
        first = route_connections(conns, _geometry(a, b, c), rect_ids=["a", "b", "c"])
        second = route_connections(conns, _geometry(a, b, c), rect_ids=["a", "b", "c"])
        assert first == second

    def test_empty_input(self) -> None:
        result = route_connections([], _geometry())
        assert result.routes == []
        assert result.ports == {}

    def test_custom_config(self) -> None:
        a, b, c = _card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 200)
        config = RoutingConfig(port_spacing=10)
        conns = [Connection("a", "b"), Connection("a", "c")]
        result = route_connections(conns, _geometry(a, b, c), config=config)
        assert result.routes[1].source_point == (160, 50)

    def test_custom_side_fn(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)

        def bottoms(r1: Rect, r2: Rect) -> tuple[Side, Side]:
            return (Side.BOTTOM, Side.BOTTOM)

        route = route_connections([Connection("a", "b")], _geometry(a, b), side_fn=bottoms).routes[0]
        assert route.source_side == Side.BOTTOM
        assert route.target_side == Side.BOTTOM


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


class TestPublishedPorts:
    def test_free_port_next_to_occupied(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)
        result = route_connections([Connection("a", "b")], _geometry(a, b), rect_ids=["a", "b"])

        right = result.ports[("a", Side.RIGHT)]
        assert right.occupied == [(160, 40)]
        assert right.free == (160, 58)
        assert result.ports[("a", Side.LEFT)].free == (0, 40)

    def test_unconnected_rect_gets_ports(self) -> None:
        lone = _card("lone", 0, 0)
        result = route_connections([], _geometry(lone), rect_ids=["lone"])
        assert set(result.ports) == {("lone", s) for s in (Side.RIGHT, Side.BOTTOM, Side.LEFT)}

    def test_top_target_published_without_free_slot(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 0, 300)
        result = route_connections([Connection("a", "b")], _geometry(a, b), rect_ids=["a", "b"])
        top = result.ports[("b", Side.TOP)]
        assert top.occupied == [(80, 300)]
        assert top.free is None


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


class TestFallbacks:
    def test_dangling_id_draws_straight_segment(self) -> None:
        a = _card("a", 0, 0)
        with pytest.warns(RoutingFallbackWarning, match="unknown rect 'ghost'"):
            result = route_connections([Connection("a", "ghost")], _geometry(a))

        route = result.routes[0]
        assert route.fallback
        assert route.waypoints == [(80, 40), (80, 40)]
        assert route.source_side is None

    def test_stale_side_draws_center_line(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)
        conn = Connection("a", "b", Stale("diagonal"), AUTO)
        with pytest.warns(RoutingFallbackWarning, match="stale side value"):
            result = route_connections([conn], _geometry(a, b), rect_ids=["a", "b"])

        route = result.routes[0]
        assert route.fallback
        assert route.waypoints == [(80, 40), (480, 40)]
        assert result.ports[("a", Side.RIGHT)].occupied == []

    def test_fallback_does_not_disturb_others(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)
        conns = [Connection("a", "ghost"), Connection("a", "b")]
        with pytest.warns(RoutingFallbackWarning):
            result = route_connections(conns, _geometry(a, b))

        assert result.routes[1].source_point == (160, 40)
        assert not result.routes[1].fallback

    def test_both_ends_missing(self) -> None:
        with pytest.warns(RoutingFallbackWarning, match="'x', 'y'"):
            result = route_connections([Connection("x", "y")], _geometry())
        route = result.routes[0]
        assert route.waypoints == [(0.0, 0.0), (0.0, 0.0)]
        assert route.stroke == DEFAULT_STROKE


# ---------------------------------------------------------------------------
# Strokes
# ---------------------------------------------------------------------------


class TestStrokes:
    @pytest.mark.parametrize(
        "color,stroke",
        [
            ("yellow", "var(--warn)"),
            ("blue", "var(--info)"),
            ("green", "var(--ok)"),
            ("red", "var(--danger)"),
            ("teal", "var(--accent-2)"),
            ("purple", DEFAULT_STROKE),
            (None, DEFAULT_STROKE),
        ],
    )
    def test_default_stroke(self, color, stroke) -> None:
        assert default_stroke(_card("a", 0, 0, color)) == stroke

    def test_stroke_follows_source_card(self) -> None:
        a, b = _card("a", 0, 0, "blue"), _card("b", 400, 0, "red")
        result = route_connections(
            [Connection("a", "b"), Connection("b", "a")], _geometry(a, b)
        )
        assert result.routes[0].stroke == "var(--info)"
        assert result.routes[1].stroke == "var(--danger)"

    def test_custom_stroke_fn(self) -> None:
        a, b = _card("a", 0, 0), _card("b", 400, 0)
        result = route_connections(
            [Connection("a", "b")], _geometry(a, b), stroke_for=lambda r: f"stroke-{r.id}"
        )
        assert result.routes[0].stroke == "stroke-a"


# ---------------------------------------------------------------------------
# CanvasLayout
# ---------------------------------------------------------------------------


@dataclass
class _StoreCard:
    id: str
    x: float
    y: float
    width: float
    height: float
    color_key: str | None = None


class TestCanvasLayout:
    def test_accepts_store_records(self) -> None:
        layout = CanvasLayout(
            rects=[
                {"id": "a", "x": 0, "y": 0, "w": 160, "h": 80, "colorKey": "green"},
                {"id": "b", "x": 400, "y": 0, "width": 160, "height": 80},
            ],
            connections=[{"fromId": "a", "toId": "b", "fromSide": None, "toSide": "left"}],
        ).run()

        route = layout.routes[0]
        assert route.source_side == Side.RIGHT
        assert route.target_side == Side.LEFT
        assert route.stroke == "var(--ok)"
        assert layout.connections[0].to_side == Fixed(Side.LEFT)

    def test_accepts_objects(self) -> None:
        layout = CanvasLayout(
            rects=[_StoreCard("a", 0, 0, 160, 80), _StoreCard("b", 400, 0, 160, 80)],
            connections=[Connection("a", "b")],
        ).run()
        assert layout.routes[0].source_point == (160, 40)

    def test_stale_store_value_falls_back(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0)],
            connections=[{"from_id": "a", "to_id": "b", "from_side": "north"}],
        )
        assert layout.connections[0].from_side == Stale("north")
        with pytest.warns(RoutingFallbackWarning):
            layout.run()
        assert layout.routes[0].fallback

    def test_run_returns_self(self) -> None:
        layout = CanvasLayout(rects=[_card("a", 0, 0)])
        assert layout.run() is layout

    def test_rerun_after_move(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0)],
            connections=[Connection("a", "b")],
        ).run()
        assert layout.routes[0].source_side == Side.RIGHT

        layout.rects = [_card("a", 0, 0), _card("b", 0, 300)]
        layout.run()
        assert layout.routes[0].source_side == Side.BOTTOM
        assert layout.routes[0].target_side == Side.TOP

    def test_repeated_runs_identical(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0), _card("c", 400, 200)],
            connections=[Connection("a", "b"), Connection("a", "c")],
        )
        first = [r.path for r in layout.run().routes]
        second = [r.path for r in layout.run().routes]
        assert first == second

    def test_free_ports_excludes_card(self) -> None:
        layout = CanvasLayout(rects=[_card("a", 0, 0), _card("b", 400, 0)]).run()
        free = layout.free_ports(exclude="a")
        assert {rect_id for rect_id, _, _ in free} == {"b"}
        assert len(free) == 3

    def test_route_for_either_direction(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0)],
            connections=[Connection("a", "b")],
        ).run()
        assert layout.route_for("b", "a") is layout.routes[0]
        assert layout.route_for("a", "c") is None

    def test_validate_rejects_dangling_ids(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0)],
            connections=[Connection("a", "ghost")],
        )
        with pytest.raises(InvalidRectError, match="ghost"):
            layout.validate()

    def test_validate_returns_self(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0)],
            connections=[Connection("a", "b")],
        )
        assert layout.validate() is layout
        assert layout.validate().run().routes[0].source_side == Side.RIGHT

    def test_geometry_of_unknown(self) -> None:
        layout = CanvasLayout(rects=[_card("a", 0, 0)])
        assert layout.geometry_of("a") == _card("a", 0, 0)
        assert layout.geometry_of("zzz") is None

    def test_no_warnings_for_clean_input(self) -> None:
        layout = CanvasLayout(
            rects=[_card("a", 0, 0), _card("b", 400, 0)],
            connections=[Connection("a", "b")],
        )
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            layout.run()
