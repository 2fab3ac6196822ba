"""Tests for the composition plan schema."""

import pytest

from .lib import (
    CREATE_PLAN_TOOL,
    LAYOUT_TYPES,
    NODE_TYPES,
    SHAPE_COLOR_MAP,
    STICKY_COLOR_MAP,
    CompositionPlan,
    PlanNode,
    is_valid_plan,
    validate_plan,
)


class TestVocabularies:
    """Tests for layout, node and color tables."""

    @pytest.mark.unit
    def test_layout_types(self):
        """All layouts are present without duplicates."""
        for layout in ("columns", "grid", "freeform", "stack_vertical", "flow_horizontal"):
            assert layout in LAYOUT_TYPES
        assert len(set(LAYOUT_TYPES)) == len(LAYOUT_TYPES)

    @pytest.mark.unit
    def test_node_types(self):
        """Leaf and container kinds are present."""
        for node_type in ("sticky", "shape", "frame", "composition", "textBubble"):
            assert node_type in NODE_TYPES

    @pytest.mark.unit
    def test_sticky_colors(self):
        """Exactly five sticky colors with fixed hex values."""
        assert STICKY_COLOR_MAP == {
            "yellow": "#FFF59D",
            "pink": "#F48FB1",
            "blue": "#81D4FA",
            "green": "#A5D6A7",
            "orange": "#FFCC80",
        }

    @pytest.mark.unit
    def test_shape_colors(self):
        """Shape colors include the primaries plus black and white."""
        assert SHAPE_COLOR_MAP["red"] == "#EF4444"
        assert SHAPE_COLOR_MAP["blue"] == "#3B82F6"
        assert SHAPE_COLOR_MAP["black"] == "#000000"
        assert SHAPE_COLOR_MAP["white"] == "#FFFFFF"


class TestCreatePlanTool:
    """Tests for the planner function tool."""

    @pytest.mark.unit
    def test_function_definition(self):
        """createPlan is a described function tool."""
        assert CREATE_PLAN_TOOL["type"] == "function"
        assert CREATE_PLAN_TOOL["function"]["name"] == "createPlan"
        assert CREATE_PLAN_TOOL["function"]["description"]

    @pytest.mark.unit
    def test_required_parameters(self):
        """title, layout and children are required."""
        params = CREATE_PLAN_TOOL["function"]["parameters"]
        assert set(params["required"]) == {"title", "layout", "children"}
        assert params["properties"]["layout"]["enum"] == LAYOUT_TYPES

    @pytest.mark.unit
    def test_recursive_node_definition(self):
        """Children and branch steps refer back to PlanNode."""
        node = CREATE_PLAN_TOOL["function"]["parameters"]["$defs"]["PlanNode"]
        assert node["required"] == ["type"]
        assert node["properties"]["children"]["items"] == {"$ref": "#/$defs/PlanNode"}
        branch = node["properties"]["branch"]
        assert branch["properties"]["steps"]["items"] == {"$ref": "#/$defs/PlanNode"}


class TestPlanModels:
    """Tests for parsing planner output."""

    @pytest.mark.unit
    def test_parse_nested_plan(self):
        """Camel-case keys and nested children parse."""
        plan = CompositionPlan.model_validate(
            {
                "title": "Kanban",
                "layout": "columns",
                "wrapInFrame": False,
                "children": [
                    {
                        "type": "column",
                        "title": "To Do",
                        "children": [{"type": "sticky", "text": "A", "connectTo": "straight"}],
                    }
                ],
            }
        )
        assert plan.wrap_in_frame is False
        column = plan.children[0]
        assert column.is_container
        assert column.children[0].connect_to == "straight"

    @pytest.mark.unit
    def test_branch_steps_parse(self):
        """Branch steps are PlanNodes."""
        node = PlanNode.model_validate(
            {
                "type": "shape",
                "branch": {"direction": "down", "steps": [{"type": "shape", "text": "ERROR"}]},
            }
        )
        assert node.branch.steps[0].text == "ERROR"

    @pytest.mark.unit
    def test_unknown_node_type_survives_parsing(self):
        """Unknown kinds parse so the engine can degrade them."""
        node = PlanNode(type="hexagon")
        assert node.type == "hexagon"
        assert not node.is_container

    @pytest.mark.unit
    def test_loose_children_parse(self):
        """Null children become empty and bare strings become untyped nodes."""
        plan = CompositionPlan.model_validate(
            {"children": [{"type": "column", "children": None}, "loose idea"]}
        )
        assert plan.children[0].children == []
        assert plan.children[1].type is None
        assert plan.children[1].text == "loose idea"

    @pytest.mark.unit
    def test_defaults(self):
        """An empty plan defaults to columns with no wrap decision."""
        plan = CompositionPlan()
        assert plan.layout == "columns"
        assert plan.wrap_in_frame is None
        assert plan.children == []


class TestValidatePlan:
    """Tests for validate_plan."""

    @pytest.mark.unit
    def test_clean_plan(self):
        """A well-formed plan has no issues."""
        plan = CompositionPlan(
            layout="grid",
            children=[PlanNode(type="sticky", text="A"), PlanNode(type="shape", shape="circle")],
        )
        assert is_valid_plan(plan)

    @pytest.mark.unit
    def test_freeform_missing_positions(self):
        """Freeform children without x,y are reported by index."""
        plan = CompositionPlan(
            layout="freeform",
            children=[PlanNode(type="shape", x=0, y=0), PlanNode(type="shape", x=10)],
        )
        issues = validate_plan(plan)
        assert [i.issue_type for i in issues] == ["freeform_missing_position"]
        assert "[1]" in issues[0].message

    @pytest.mark.unit
    def test_nested_unknowns(self):
        """Unknown kinds, shapes and layouts are reported with their path."""
        plan = CompositionPlan(
            layout="spiral",
            children=[
                PlanNode(
                    type="column",
                    layout="zigzag",
                    children=[PlanNode(type="blob"), PlanNode(type="shape", shape="hexagon")],
                )
            ],
        )
        issues = {(i.path, i.issue_type) for i in validate_plan(plan)}
        assert ("layout", "unknown_layout") in issues
        assert ("children[0]", "unknown_layout") in issues
        assert ("children[0].children[0]", "unknown_node_type") in issues
        assert ("children[0].children[1]", "unknown_shape") in issues

    @pytest.mark.unit
    def test_branch_direction_checked(self):
        """Branch steps and direction are validated."""
        plan = CompositionPlan(
            layout="flow_horizontal",
            children=[
                PlanNode.model_validate(
                    {"type": "shape", "branch": {"direction": "sideways", "steps": [{"type": "x"}]}}
                )
            ],
        )
        kinds = {i.issue_type for i in validate_plan(plan)}
        assert kinds == {"unknown_branch_direction", "unknown_node_type"}

    @pytest.mark.unit
    def test_missing_values_reported(self):
        """Null layout, missing node kinds and null branch directions are reported."""
        plan = CompositionPlan.model_validate(
            {
                "title": None,
                "layout": None,
                "children": [
                    {"text": "untyped"},
                    {"type": "shape", "branch": {"direction": None, "steps": ["next"]}},
                ],
            }
        )
        issues = {(i.path, i.issue_type) for i in validate_plan(plan)}
        assert issues == {
            ("layout", "missing_layout"),
            ("children[0]", "missing_node_type"),
            ("children[1].branch", "missing_branch_direction"),
            ("children[1].branch.steps[0]", "missing_node_type"),
        }
