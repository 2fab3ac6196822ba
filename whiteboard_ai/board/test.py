"""Tests for board models, color naming and local analysis."""

import json

import pytest

from .analysis import (
    analyze_objects,
    build_board_context,
    color_name_for_hex,
    hex_to_rgb,
)
from .lib import AgentResult, BoardObject, BoardState, FrameInfo, OperationName, ToolCall


@pytest.fixture
def shapes_board() -> BoardState:
    """Three red circles, one star and one uncolored frame."""
    return BoardState(
        objects=[
            BoardObject(id="c1", type="circle", x=10, y=10, radius=40, color="#EF4444"),
            BoardObject(id="c2", type="circle", x=100, y=10, radius=40, color="#EF4444"),
            BoardObject(id="c3", type="circle", x=200, y=10, radius=40, fill="#EF4444"),
            BoardObject(id="s1", type="star", x=300, y=10, width=80, height=80, color="#3B82F6"),
            BoardObject(id="f1", type="frame", x=0, y=200, width=400, height=300, name="Ideas"),
        ],
        selectedIds=["s1", "missing"],
    )


class TestBoardModels:
    """Tests for BoardState helpers and ToolCall."""

    @pytest.mark.unit
    def test_selected_objects_skip_unknown_ids(self, shapes_board):
        """Ids that are not on the board are ignored."""
        assert [o.id for o in shapes_board.selected_objects()] == ["s1"]

    @pytest.mark.unit
    def test_selected_frame_only_for_single_frame(self, shapes_board):
        """selected_frame is set only when exactly one frame is selected."""
        assert shapes_board.selected_frame is None
        frame_board = shapes_board.model_copy(update={"selected_ids": ["f1"]})
        assert frame_board.selected_frame.id == "f1"

    @pytest.mark.unit
    def test_board_accepts_camel_case_selection(self):
        """Both selectedIds and selected_ids populate the selection."""
        a = BoardState.model_validate({"objects": [], "selectedIds": ["x"]})
        b = BoardState(selected_ids=["x"])
        assert a.selected_ids == b.selected_ids == ["x"]

    @pytest.mark.unit
    def test_extra_object_keys_preserved(self):
        """Unknown object keys survive validation."""
        obj = BoardObject.model_validate({"id": "a", "type": "line", "rotation": 45})
        assert obj.model_dump()["rotation"] == 45

    @pytest.mark.unit
    def test_frame_info_from_object(self, shapes_board):
        """FrameInfo copies frame geometry."""
        info = FrameInfo.from_object(shapes_board.by_id("f1"))
        assert (info.x, info.y, info.width, info.height) == (0, 200, 400, 300)

    @pytest.mark.unit
    def test_tool_call_is_creation(self):
        """Creation requests are recognised by name."""
        create = ToolCall(id="a", name=OperationName.CREATE_SHAPE.value)
        delete = ToolCall(id="b", name="deleteObject", arguments={"objectIds": []})
        assert create.is_creation
        assert not delete.is_creation
        assert delete.to_dict() == {
            "id": "b",
            "name": "deleteObject",
            "arguments": {"objectIds": []},
        }

    @pytest.mark.unit
    def test_agent_result_created_ids(self):
        """Only creation requests count as created objects."""
        result = AgentResult(
            agent_name="CreateAgent",
            tool_calls=[
                ToolCall(id="t1", name="createShape"),
                ToolCall(id="t2", name="createConnector"),
                ToolCall(id="t3", name="createStickyNote"),
            ],
        )
        assert result.created_ids() == ["t1", "t3"]


class TestColorNaming:
    """Tests for HSL color classification."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "hex_value,expected",
        [
            ("#EF4444", "red"),
            ("#3B82F6", "blue"),
            ("#10B981", "green"),
            ("#FFF59D", "yellow"),
            ("#F97316", "orange"),
            ("#7E22CE", "purple"),
            ("#A855F7", "pink"),
            ("#06B6D4", "cyan"),
            ("#000000", "black"),
            ("#FFFFFF", "white"),
            ("#6B7280", "gray"),
            ("#C0C0C0", "light gray"),
            ("#E5E7EB", "white"),
            ("#92400E", "brown"),
            ("#F48FB1", "pink"),
        ],
    )
    def test_named_palette(self, hex_value, expected):
        """Palette colors map to their expected names."""
        assert color_name_for_hex(hex_value) == expected

    @pytest.mark.unit
    def test_short_hex(self):
        """Three-digit hex expands."""
        assert hex_to_rgb("#f00") == (255, 0, 0)
        assert color_name_for_hex("#f00") == "red"

    @pytest.mark.unit
    def test_invalid_values(self):
        """Non-hex input is unknown."""
        assert color_name_for_hex("banana") == "unknown"
        assert color_name_for_hex("") == "unknown"
        assert color_name_for_hex(None) == "unknown"


class TestAnalyzeObjects:
    """Tests for local analysis counts."""

    @pytest.mark.unit
    def test_counts_all_objects_when_no_ids(self, shapes_board):
        """Empty id list analyzes the whole board."""
        result = analyze_objects([], shapes_board)
        assert result.total_objects == 5
        assert result.count_by_type == {"circle": 3, "star": 1, "frame": 1}
        assert result.count_by_color["red"] == 3
        assert result.count_by_color["none"] == 1

    @pytest.mark.unit
    def test_counts_only_requested_ids(self, shapes_board):
        """Only the requested ids are counted."""
        result = analyze_objects(["c1", "s1", "nope"], shapes_board)
        assert result.total_objects == 2

    @pytest.mark.unit
    def test_breakdown_sorted_and_pluralised(self, shapes_board):
        """Breakdown lists largest groups first and drops the none color."""
        breakdown = analyze_objects(None, shapes_board).format_breakdown()
        assert breakdown == "3 red circles, 1 blue star, 1 frame"

    @pytest.mark.unit
    def test_tool_payload(self, shapes_board):
        """Payload carries totals, breakdown and both count maps."""
        payload = json.loads(analyze_objects(["c1"], shapes_board).to_tool_payload())
        assert payload == {
            "totalObjects": 1,
            "breakdown": "1 red circle",
            "countByType": {"circle": 1},
            "countByColor": {"red": 1},
        }


class TestBuildBoardContext:
    """Tests for prompt context rendering."""

    @pytest.mark.unit
    def test_empty_board(self):
        """Empty boards render a fixed sentence."""
        assert build_board_context(BoardState()) == "The board is currently empty."

    @pytest.mark.unit
    def test_object_lines(self, shapes_board):
        """Each object renders on one line with color names."""
        context = build_board_context(shapes_board)
        assert context.startswith("Board has 5 object(s):")
        assert "id=c1 type=circle pos=(10,10) r=40 color=red" in context
        assert 'id=f1 type=frame pos=(0,200) w=400 h=300 name="Ideas"' in context

    @pytest.mark.unit
    def test_selection_section(self, shapes_board):
        """Valid selected ids are listed in the selection section."""
        context = build_board_context(shapes_board)
        assert "## User Selection (IMPORTANT)" in context
        assert "1 object(s) selected: s1." in context
        assert "missing" not in context

    @pytest.mark.unit
    def test_selection_area_note(self, shapes_board):
        """A drag selection box is described."""
        context = build_board_context(
            shapes_board, {"x": 10.4, "y": 20, "width": 300, "height": 200}
        )
        assert "region at (10, 20) with width 300px and height 200px" in context
