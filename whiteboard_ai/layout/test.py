"""Tests for the layout engine."""

import math

import pytest

from ..board import FrameInfo
from ..plan import RANDOM_SHAPE_PALETTE, RANDOM_STICKY_PALETTE, CompositionPlan, PlanNode
from .geometry import (
    Box,
    Size,
    layout_bounds,
    layout_grid,
    layout_radial,
    node_size,
    round_half_up,
    scale_to_fit,
)
from .lib import branch_boxes, content_bounds, plan_to_tool_calls


def sticky(text: str = "", **kwargs) -> PlanNode:
    return PlanNode(type="sticky", text=text, **kwargs)


def shape(kind: str = "rect", **kwargs) -> PlanNode:
    return PlanNode(type="shape", shape=kind, **kwargs)


def names(result) -> list[str]:
    return [call.name for call in result.tool_calls]


class TestSizing:
    """Tests for node sizes and layout bounds."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "node,expected",
        [
            (PlanNode(type="sticky"), Size(200, 200)),
            (PlanNode(type="shape", aspect="wide"), Size(300, 150)),
            (PlanNode(type="shape", aspect="tall_narrow"), Size(75, 300)),
            (PlanNode(type="shape", aspect="small"), Size(90, 90)),
            (PlanNode(type="shape", aspect="large"), Size(225, 225)),
            (PlanNode(type="text"), Size(120, 30)),
            (PlanNode(type="textBubble"), Size(200, 100)),
            (PlanNode(type="mystery", aspect="odd"), Size(150, 150)),
        ],
    )
    def test_node_size(self, node, expected):
        """Base size times aspect, with shape and square fallbacks."""
        assert node_size(node) == expected

    @pytest.mark.unit
    def test_round_half_up(self):
        """Halves round upward, including negatives."""
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(37.4) == 37

    @pytest.mark.unit
    def test_horizontal_and_flow_bounds(self):
        """Flow layouts use the wider gap."""
        sizes = [Size(100, 50), Size(100, 80)]
        assert layout_bounds(sizes, "columns") == Size(220, 80)
        assert layout_bounds(sizes, "flow_horizontal") == Size(280, 80)
        assert layout_bounds(sizes, "stack_vertical") == Size(100, 150)
        assert layout_bounds(sizes, "flow_vertical") == Size(100, 210)

    @pytest.mark.unit
    def test_empty_bounds(self):
        """An empty child list measures 200x200."""
        assert layout_bounds([], "grid") == Size(200, 200)


class TestGrid:
    """Tests for grid placement."""

    @pytest.mark.unit
    @pytest.mark.parametrize("count", [1, 2, 4, 5, 9, 10])
    def test_grid_math(self, count):
        """ceil(sqrt(n)) columns, ceil(n/cols) rows, cells never overlap."""
        sizes = [Size(100, 60)] * count
        boxes = layout_grid(sizes, 0, 0)
        cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / cols)

        assert len({b.x for b in boxes}) == min(cols, count)
        assert len({b.y for b in boxes}) == rows
        assert layout_bounds(sizes, "grid") == Size(cols * 100 + (cols - 1) * 20, rows * 60 + (rows - 1) * 20)
        for i, a in enumerate(boxes):
            for b in boxes[i + 1 :]:
                assert a.right <= b.x or b.right <= a.x or a.bottom <= b.y or b.bottom <= a.y

    @pytest.mark.unit
    def test_uniform_cells_use_largest_child(self):
        """Cells are sized by the largest child plus the gap."""
        boxes = layout_grid([Size(50, 50), Size(100, 30), Size(10, 10)], 10, 10)
        assert [(b.x, b.y) for b in boxes] == [(10, 10), (130, 10), (10, 80)]


class TestRadial:
    """Tests for radial placement."""

    @pytest.mark.unit
    def test_first_item_at_top(self):
        """Items start at the top of the circle and go clockwise."""
        boxes = layout_radial([Size(200, 200)] * 4, 0, 0)
        assert (boxes[0].x, boxes[0].y) == (400, 0)
        assert (boxes[1].x, boxes[1].y) == (800, 400)
        assert (boxes[2].x, boxes[2].y) == (400, 800)

    @pytest.mark.unit
    def test_bounds_contain_layout(self):
        """Measured radial bounds contain every placed item."""
        sizes = [Size(150, 150)] * 7
        bounds = layout_bounds(sizes, "radial")
        for box in layout_radial(sizes, 0, 0):
            assert box.x >= 0 and box.y >= 0
            assert box.right <= bounds.width and box.bottom <= bounds.height

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "sizes,expected",
        [
            ([Size(150, 150)] * 7, Size(750, 750)),
            ([Size(50, 50)] * 12, Size(890, 890)),
        ],
    )
    def test_bounds_use_placement_radius(self, sizes, expected):
        """Radial bounds are sized from the same radius that placement uses."""
        assert layout_bounds(sizes, "radial") == expected


class TestScaleToFit:
    """Tests for frame-constrained scaling."""

    @pytest.mark.unit
    def test_no_scaling_when_fits(self):
        """Fitting content is returned unchanged."""
        boxes = [Box(0, 0, 50, 50)]
        assert scale_to_fit(boxes, Box(0, 0, 100, 100)) is boxes

    @pytest.mark.unit
    def test_uniform_scale_down(self):
        """Overflowing content shrinks by one factor on both axes."""
        scaled = scale_to_fit([Box(0, 0, 100, 100), Box(100, 0, 100, 100)], Box(0, 0, 100, 400))
        assert scaled == [Box(0, 0, 50, 50), Box(50, 0, 50, 50)]


class TestPlanToToolCalls:
    """Tests for the plan-to-request conversion."""

    @pytest.mark.unit
    def test_empty_plan(self):
        """No children produces no requests."""
        result = plan_to_tool_calls(CompositionPlan(title="Nothing"))
        assert result.tool_calls == []
        assert "nothing" in result.summary.lower()

    @pytest.mark.unit
    def test_single_sticky_gets_color(self):
        """A colorless sticky takes the first palette entry."""
        result = plan_to_tool_calls(
            CompositionPlan(layout="stack_vertical", wrapInFrame=False, children=[sticky("Hi")])
        )
        assert names(result) == ["createStickyNote"]
        assert result.tool_calls[0].arguments["color"] == RANDOM_STICKY_PALETTE[0]
        assert result.tool_calls[0].id == "plan_tc_0"

    @pytest.mark.unit
    def test_named_and_hex_colors(self):
        """Names resolve through the tables, hex passes through, unknowns fall back."""
        result = plan_to_tool_calls(
            CompositionPlan(
                wrapInFrame=False,
                children=[
                    sticky(color="pink"),
                    sticky(color="mauve"),
                    shape(color="teal"),
                    shape(color="#123456"),
                    shape(color="mauve"),
                ],
            )
        )
        assert [c.arguments["color"] for c in result.tool_calls] == [
            "#F48FB1",
            "#FFF59D",
            "#14B8A6",
            "#123456",
            "#6B7280",
        ]

    @pytest.mark.unit
    def test_random_colors_cycle_palette(self):
        """N random shapes take the palette in order, cycling."""
        plan = CompositionPlan(
            wrapInFrame=False, children=[shape(color="random") for _ in range(10)]
        )
        colors = [c.arguments["color"] for c in plan_to_tool_calls(plan).tool_calls]
        assert colors == [RANDOM_SHAPE_PALETTE[i % len(RANDOM_SHAPE_PALETTE)] for i in range(10)]

    @pytest.mark.unit
    def test_deterministic(self):
        """Repeated runs produce identical requests."""
        plan = CompositionPlan(
            layout="radial", children=[sticky(color="random") for _ in range(6)]
        )
        first = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True)
        second = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True)
        assert [c.to_dict() for c in first.tool_calls] == [c.to_dict() for c in second.tool_calls]

    @pytest.mark.unit
    def test_circle_uses_center(self):
        """Circles are positioned by their center point."""
        result = plan_to_tool_calls(
            CompositionPlan(wrapInFrame=False, children=[shape("circle", text="Start")]),
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        args = result.tool_calls[0].arguments
        assert args["type"] == "circle"
        assert (args["x"], args["y"]) == (75, 75)
        assert args["text"] == "Start"

    @pytest.mark.unit
    def test_shared_centerline(self):
        """Horizontal children are centered on one line."""
        result = plan_to_tool_calls(
            CompositionPlan(
                layout="stack_horizontal",
                wrapInFrame=False,
                children=[sticky(), shape(aspect="small")],
            ),
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        second = result.tool_calls[1].arguments
        assert (second["x"], second["y"]) == (220, 55)

    @pytest.mark.unit
    def test_positions_omitted_without_explicit(self):
        """Top-level leaves outside a frame carry no coordinates by default."""
        result = plan_to_tool_calls(CompositionPlan(wrapInFrame=False, children=[sticky()]))
        assert "x" not in result.tool_calls[0].arguments

    @pytest.mark.unit
    def test_freeform_offsets(self):
        """Freeform children are translated by the anchor."""
        result = plan_to_tool_calls(
            CompositionPlan(
                layout="freeform",
                wrapInFrame=False,
                children=[shape(x=10, y=20), shape(x=200, y=0)],
            ),
            anchor=(100, 100),
            use_explicit_positions=True,
        )
        coords = [(c.arguments["x"], c.arguments["y"]) for c in result.tool_calls]
        assert coords == [(110, 120), (300, 100)]

    @pytest.mark.unit
    def test_freeform_fallback(self):
        """A freeform child without coordinates switches to horizontal."""
        result = plan_to_tool_calls(
            CompositionPlan(
                layout="freeform",
                wrapInFrame=False,
                children=[shape(x=500, y=500), shape()],
            ),
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        coords = [(c.arguments["x"], c.arguments["y"]) for c in result.tool_calls]
        assert coords == [(0, 0), (170, 0)]

    @pytest.mark.unit
    def test_grid_of_four(self):
        """A 2x2 grid of stickies."""
        result = plan_to_tool_calls(
            CompositionPlan(layout="grid", wrapInFrame=False, children=[sticky() for _ in range(4)]),
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        assert names(result) == ["createStickyNote"] * 4
        coords = [(c.arguments["x"], c.arguments["y"]) for c in result.tool_calls]
        assert coords == [(0, 0), (220, 0), (0, 220), (220, 220)]

    @pytest.mark.unit
    def test_columns_with_wrapper(self):
        """Two columns of two stickies: 4 stickies, 2 column frames, 1 wrapper."""
        plan = CompositionPlan(
            title="Board",
            layout="columns",
            children=[
                PlanNode(type="column", title="Todo", children=[sticky("a"), sticky("b")]),
                PlanNode(type="column", title="Done", children=[sticky("c"), sticky("d")]),
            ],
        )
        result = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True)

        assert names(result) == [
            "createStickyNote",
            "createStickyNote",
            "createFrame",
            "createStickyNote",
            "createStickyNote",
            "createFrame",
            "createFrame",
        ]
        args = [c.arguments for c in result.tool_calls]
        assert (args[0]["x"], args[0]["y"]) == (40, 40)
        assert (args[1]["x"], args[1]["y"]) == (40, 260)
        assert args[2] == {"title": "Todo", "width": 280, "height": 500, "x": 0, "y": 0}
        assert (args[3]["x"], args[3]["y"]) == (340, 40)
        assert args[5]["x"] == 300
        assert args[6] == {
            "title": "Board",
            "width": 740,
            "height": 660,
            "fill": "transparent",
            "x": -80,
            "y": -80,
        }
        assert result.summary == 'Composed "Board" with 7 objects'

    @pytest.mark.unit
    def test_wrapper_suppressed(self):
        """wrapInFrame=false emits no outer frame."""
        plan = CompositionPlan(
            layout="columns",
            wrapInFrame=False,
            children=[PlanNode(type="column", children=[sticky(), sticky()])],
        )
        assert names(plan_to_tool_calls(plan)).count("createFrame") == 1

    @pytest.mark.unit
    def test_empty_column(self):
        """A column with no children is a plain frame."""
        result = plan_to_tool_calls(
            CompositionPlan(wrapInFrame=False, children=[PlanNode(type="column", title="Empty")]),
            anchor=(0, 0),
        )
        assert result.tool_calls[0].arguments == {
            "title": "Empty",
            "x": 0,
            "y": 0,
            "width": 150,
            "height": 150,
        }

    @pytest.mark.unit
    def test_group_has_no_frame(self):
        """Groups lay out children without a frame of their own."""
        result = plan_to_tool_calls(
            CompositionPlan(
                wrapInFrame=False,
                children=[PlanNode(type="group", children=[sticky(), sticky(), sticky()])],
            ),
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        assert names(result) == ["createStickyNote"] * 3
        assert [c.arguments["y"] for c in result.tool_calls] == [0, 220, 440]

    @pytest.mark.unit
    def test_unknown_node_degrades_to_rect(self):
        """Unknown kinds become rectangles instead of failing."""
        result = plan_to_tool_calls(
            CompositionPlan(wrapInFrame=False, children=[PlanNode(type="hexagon", text="?")])
        )
        assert result.tool_calls[0].name == "createShape"
        assert result.tool_calls[0].arguments["type"] == "rect"

    @pytest.mark.unit
    def test_accepts_raw_arguments(self):
        """Raw createPlan arguments are parsed."""
        result = plan_to_tool_calls(
            {"title": "T", "layout": "grid", "wrapInFrame": False, "children": [{"type": "sticky"}]}
        )
        assert names(result) == ["createStickyNote"]

    @pytest.mark.unit
    def test_node_without_type_becomes_rect(self):
        """Nodes missing a kind are emitted as rectangles alongside typed siblings."""
        result = plan_to_tool_calls(
            {
                "layout": "columns",
                "wrapInFrame": False,
                "children": [{"text": "no type"}, {"type": "sticky"}],
            }
        )
        assert names(result) == ["createShape", "createStickyNote"]
        assert result.tool_calls[0].arguments["type"] == "rect"
        assert result.tool_calls[0].arguments["text"] == "no type"

    @pytest.mark.unit
    def test_null_layout_title_and_direction(self):
        """Null layout, title and branch direction fall back to their defaults."""
        result = plan_to_tool_calls(
            {
                "title": None,
                "layout": None,
                "children": [
                    {"type": "column", "title": "Only", "children": [{"type": "sticky"}]},
                    {"type": "shape", "branch": {"direction": None, "steps": [{"type": "sticky"}]}},
                ],
            },
            anchor=(0, 0),
            use_explicit_positions=True,
        )
        frames = [c.arguments for c in result.tool_calls if c.name == "createFrame"]
        assert frames[-1]["title"] == "Composition"
        assert "createConnector" in names(result)
        assert result.summary.startswith('Composed "design"')


class TestConnectors:
    """Tests for connector and branch emission."""

    @pytest.mark.unit
    def test_chain_to_next_sibling(self):
        """connectTo links each child to its next sibling only."""
        plan = CompositionPlan(
            layout="flow_horizontal",
            wrapInFrame=False,
            children=[
                shape(connectTo="straight"),
                shape(connectTo="curved"),
                shape(),
            ],
        )
        result = plan_to_tool_calls(plan)
        connectors = [c.arguments for c in result.tool_calls if c.name == "createConnector"]
        assert connectors == [
            {"fromIndex": 0, "toIndex": 1, "style": "straight"},
            {"fromIndex": 1, "toIndex": 2, "style": "curved"},
        ]

    @pytest.mark.unit
    def test_connectors_reference_earlier_objects(self):
        """Every connector endpoint is an earlier non-connector request."""
        plan = CompositionPlan(
            layout="columns",
            children=[
                PlanNode(
                    type="column",
                    children=[sticky(connectTo="straight"), sticky(connectTo="straight"), sticky()],
                    connectTo="straight",
                ),
                PlanNode(type="column", children=[sticky()]),
            ],
        )
        calls = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True).tool_calls
        connectors = [(i, c) for i, c in enumerate(calls) if c.name == "createConnector"]
        assert len(connectors) == 3
        for index, connector in connectors:
            for end in (connector.arguments["fromIndex"], connector.arguments["toIndex"]):
                assert end < index
                assert calls[end].name != "createConnector"

    @pytest.mark.unit
    def test_branch_down_from_horizontal_flow(self):
        """A branch hangs below its source and is chained from it."""
        plan = CompositionPlan(
            layout="flow_horizontal",
            wrapInFrame=False,
            children=[
                PlanNode.model_validate(
                    {
                        "type": "shape",
                        "connectTo": "straight",
                        "branch": {
                            "direction": "down",
                            "steps": [
                                {"type": "shape", "text": "no link", "color": "amber"},
                                {"type": "shape", "text": "ERROR", "color": "red"},
                            ],
                        },
                    }
                ),
                shape(),
            ],
        )
        calls = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True).tool_calls
        assert [c.name for c in calls] == ["createShape"] * 2 + ["createConnector"] + ["createShape"] * 2 + [
            "createConnector"
        ] * 2
        assert (calls[3].arguments["x"], calls[3].arguments["y"]) == (0, 230)
        assert (calls[4].arguments["x"], calls[4].arguments["y"]) == (0, 400)
        assert calls[4].arguments["color"] == "#EF4444"
        assert [(c.arguments["fromIndex"], c.arguments["toIndex"]) for c in calls[5:]] == [(0, 3), (3, 4)]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "direction,expected",
        [
            ("up", [(0, -400), (0, -230)]),
            ("right", [(230, 0), (400, 0)]),
            ("left", [(-230, 0), (-400, 0)]),
            ("sideways", [(0, 230), (0, 400)]),
        ],
    )
    def test_branch_directions(self, direction, expected):
        """Branches extend outward from the source box."""
        steps = [shape(), shape()]
        boxes = branch_boxes(Box(0, 0, 150, 150), steps, direction)
        assert [(b.x, b.y) for b in boxes] == expected


class TestFrameContext:
    """Tests for composing inside an existing frame."""

    @pytest.mark.unit
    def test_scaled_into_frame_interior(self):
        """Overflowing content is scaled into the padded interior, no wrapper."""
        frame = FrameInfo(id="f1", x=0, y=0, width=300, height=300)
        plan = CompositionPlan(
            layout="stack_horizontal", children=[sticky() for _ in range(3)]
        )
        calls = plan_to_tool_calls(plan, frame_info=frame).tool_calls

        assert names_of(calls) == ["createStickyNote"] * 3
        assert [c.arguments["frameId"] for c in calls] == ["f1"] * 3
        assert [c.arguments["x"] for c in calls] == [40, 116, 191]
        assert all(c.arguments["y"] == 40 for c in calls)


class TestContentBounds:
    """Tests for wrapper bounds."""

    @pytest.mark.unit
    def test_circle_boxed_from_center(self):
        """Circle requests are boxed around their center."""
        bounds = content_bounds(
            [
                ("createShape", {"type": "circle", "x": 75, "y": 75, "width": 150, "height": 150}),
                ("createConnector", {"fromIndex": 0, "toIndex": 0}),
            ]
        )
        assert bounds == Box(0, 0, 150, 150)

    @pytest.mark.unit
    def test_defaults_for_unplaced(self):
        """Unplaced requests count as 200x200 at the origin."""
        assert content_bounds([("createStickyNote", {"text": ""})]) == Box(0, 0, 200, 200)

    @pytest.mark.unit
    def test_empty(self):
        """Connectors alone have no bounds."""
        assert content_bounds([("createConnector", {})]) is None


def names_of(calls) -> list[str]:
    return [call.name for call in calls]
