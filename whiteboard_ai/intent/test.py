"""Tests for intent classification, corrections and direct execution."""

import pytest

from ..board import BoardObject, BoardState
from ..llm import CompletionResult, RateLimitError
from .corrections import (
    apply_corrections,
    color_name_to_hex,
    expand_color_groups,
    force_single_step_for_varied_colors,
    parse_color_groups,
)
from .execute import execute_from_intent, find_matching_objects
from .lib import CLASSIFIER_CONFIG, INTENT_TOOL_NAME, classify_intent
from .models import Intent, IntentOperation, TargetFilter


@pytest.fixture
def shapes_board() -> BoardState:
    """A red circle, a blue star and a yellow sticky note."""
    return BoardState(
        objects=[
            BoardObject(id="obj-1", type="circle", x=100, y=100, color="#EF4444"),
            BoardObject(id="obj-2", type="star", x=200, y=200, fill="#3B82F6"),
            BoardObject(id="obj-3", type="sticky", x=300, y=300, color="#FFF59D"),
        ]
    )


def make_intent(**fields) -> Intent:
    return Intent.model_validate(fields)


class TestColorNames:
    """Tests for color name resolution."""

    @pytest.mark.unit
    def test_names_resolve(self):
        """Known names map to hex regardless of case and padding."""
        assert color_name_to_hex("red") == "#EF4444"
        assert color_name_to_hex(" Grey ") == "#6B7280"
        assert color_name_to_hex("white") == "#FFFFFF"

    @pytest.mark.unit
    def test_hex_and_unknown_pass_through(self):
        """Hex values and unknown names are returned unchanged."""
        assert color_name_to_hex("#123456") == "#123456"
        assert color_name_to_hex("lemon lime") == "lemon lime"
        assert color_name_to_hex(None) is None


class TestCorrections:
    """Tests for the post-classification correction stage."""

    @pytest.mark.unit
    def test_varied_colors_forces_single_step(self):
        """A bulk create with random colors is never multi-step."""
        intent = make_intent(
            operation="MULTI_STEP",
            isMultiStep=True,
            steps=[{"operation": "CREATE"}, {"operation": "CHANGE_COLOR"}],
        )
        fixed = force_single_step_for_varied_colors(intent, "create 8 stars in random colors")

        assert fixed.operation == IntentOperation.CREATE
        assert fixed.is_multi_step is False
        assert fixed.steps == []
        assert fixed.quantity == 8
        assert fixed.color == "random"
        assert (fixed.object_type, fixed.shape_type) == ("shape", "star")

    @pytest.mark.unit
    def test_varied_colors_keeps_model_fields(self):
        """Fields the model did extract survive the override."""
        intent = make_intent(
            operation="CREATE",
            objectType="sticky",
            quantity=6,
            isMultiStep=True,
        )
        fixed = force_single_step_for_varied_colors(intent, "add 6 sticky notes with different colors")
        assert fixed.is_multi_step is False
        assert fixed.object_type == "sticky"
        assert fixed.quantity == 6

    @pytest.mark.unit
    def test_override_ignores_other_commands(self):
        """Genuine multi-step commands are left alone."""
        intent = make_intent(operation="MULTI_STEP", isMultiStep=True)
        assert force_single_step_for_varied_colors(intent, "create 3 circles connected by lines") is intent

    @pytest.mark.unit
    def test_parse_color_groups(self):
        """Count/name groups are extracted in text order."""
        assert parse_color_groups("create 3 red and 2 Blue circles") == [(3, "#EF4444"), (2, "#3B82F6")]
        assert parse_color_groups("create 5 circles") == []

    @pytest.mark.unit
    def test_color_groups_replace_model_colors(self):
        """Two or more groups are authoritative over the model's array."""
        intent = make_intent(
            operation="CREATE",
            objectType="shape",
            shapeType="circle",
            quantity=4,
            colors=["#EF4444", "#3B82F6"],
        )
        fixed = expand_color_groups(intent, "create 3 red and 2 blue circles")
        assert fixed.colors == ["#EF4444"] * 3 + ["#3B82F6"] * 2
        assert fixed.quantity == 5

    @pytest.mark.unit
    def test_color_groups_padded_to_larger_quantity(self):
        """A larger requested quantity keeps cycling the expansion."""
        intent = make_intent(operation="CREATE", objectType="shape", shapeType="star", quantity=6)
        fixed = expand_color_groups(intent, "create 6 stars: 1 red and 1 green")
        assert fixed.colors == ["#EF4444", "#10B981"] * 3
        assert fixed.quantity == 6

    @pytest.mark.unit
    def test_short_color_list_padded(self):
        """Without groups, a short model array is padded cyclically."""
        intent = make_intent(
            operation="CREATE",
            objectType="shape",
            shapeType="rect",
            quantity=5,
            colors=["red", "#3B82F6"],
        )
        fixed = expand_color_groups(intent, "create 5 rectangles alternating red and blue")
        assert fixed.colors == ["#EF4444", "#3B82F6", "#EF4444", "#3B82F6", "#EF4444"]

    @pytest.mark.unit
    def test_custom_correction_stage(self):
        """The stage runs any callables in order."""

        def upper_text(intent: Intent, message: str) -> Intent:
            return intent.model_copy(update={"text": message.upper()})

        intent = make_intent(operation="CREATE", objectType="text")
        assert apply_corrections(intent, "hello", [upper_text]).text == "HELLO"


class TestFindMatchingObjects:
    """Tests for target filter resolution."""

    @pytest.mark.unit
    def test_no_filter_matches_nothing(self, shapes_board):
        """A missing filter never targets the whole board."""
        assert find_matching_objects(shapes_board, None) == []

    @pytest.mark.unit
    def test_shape_type_matches_all_shapes(self, shapes_board):
        """type=shape covers every shape kind but not stickies."""
        matches = find_matching_objects(shapes_board, TargetFilter(type="shape"))
        assert [obj.id for obj in matches] == ["obj-1", "obj-2"]

    @pytest.mark.unit
    def test_color_equivalence(self, shapes_board):
        """Names match hex fills and sticky palette colors."""
        assert [o.id for o in find_matching_objects(shapes_board, TargetFilter(color="blue"))] == ["obj-2"]
        assert [o.id for o in find_matching_objects(shapes_board, TargetFilter(color="yellow"))] == ["obj-3"]
        assert [o.id for o in find_matching_objects(shapes_board, TargetFilter(color="#ef4444"))] == ["obj-1"]


class TestExecuteFromIntent:
    """Tests for intent execution without model calls."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "fields",
        [
            {"operation": "CONVERSATION"},
            {"operation": "CREATIVE", "creativeDescription": "kanban board"},
            {"operation": "FIT_FRAME_TO_CONTENTS", "objectType": "frame"},
            {"operation": "CONNECT"},
            {"operation": "CREATE", "isMultiStep": True, "objectType": "shape", "shapeType": "circle"},
            {"operation": "UNKNOWN"},
        ],
    )
    def test_escalates(self, fields, shapes_board):
        """Intents needing board reasoning return None."""
        assert execute_from_intent(make_intent(**fields), shapes_board) is None

    @pytest.mark.unit
    def test_create_red_circles(self):
        """'create 5 red circles' is one request with quantity and hex color."""
        intent = make_intent(operation="CREATE", objectType="shape", shapeType="circle", quantity=5, color="red")
        [request] = execute_from_intent(intent, None)
        assert request.name == "createShape"
        assert request.arguments == {"type": "circle", "quantity": 5, "color": "#EF4444"}

    @pytest.mark.unit
    def test_create_single_with_position(self):
        """Coordinates and dimensions apply to a single object."""
        intent = make_intent(
            operation="CREATE",
            objectType="shape",
            shapeType="star",
            quantity=1,
            color="#10B981",
            coordinates={"x": 100, "y": 200},
            dimensions={"width": 80, "height": 80},
        )
        [request] = execute_from_intent(intent)
        assert request.arguments == {
            "type": "star",
            "color": "#10B981",
            "x": 100,
            "y": 200,
            "width": 80,
            "height": 80,
        }

    @pytest.mark.unit
    def test_create_grid_ignores_coordinates(self):
        """Bulk creation carries grid hints, never a single position."""
        intent = make_intent(
            operation="CREATE",
            objectType="sticky",
            quantity=14,
            rows=7,
            columns=2,
            coordinates={"x": 5, "y": 5},
        )
        [request] = execute_from_intent(intent)
        assert request.name == "createStickyNote"
        assert request.arguments == {"text": "", "quantity": 14, "rows": 7, "columns": 2}

    @pytest.mark.unit
    def test_random_color_omitted(self):
        """'random' leaves color cycling to the document layer."""
        intent = make_intent(operation="CREATE", objectType="shape", shapeType="rect", quantity=3, color="random")
        [request] = execute_from_intent(intent)
        assert "color" not in request.arguments

    @pytest.mark.unit
    def test_sticky_color_uses_sticky_palette(self):
        """Sticky color names resolve to the sticky palette."""
        intent = make_intent(operation="CREATE", objectType="sticky", text="Todo", color="yellow")
        [request] = execute_from_intent(intent)
        assert request.arguments == {"text": "Todo", "color": "#FFF59D"}

    @pytest.mark.unit
    def test_create_with_color_groups(self):
        """Expanded per-object colors travel as a colors array."""
        intent = make_intent(
            operation="CREATE",
            objectType="shape",
            shapeType="circle",
            quantity=3,
            colors=["#EF4444", "#EF4444", "#3B82F6"],
        )
        [request] = execute_from_intent(intent)
        assert request.arguments["colors"] == ["#EF4444", "#EF4444", "#3B82F6"]
        assert "color" not in request.arguments

    @pytest.mark.unit
    def test_create_inside_selected_frame(self, frame_board):
        """A selected frame scopes the creation."""
        intent = make_intent(operation="CREATE", objectType="shape", shapeType="circle", quantity=3)
        [request] = execute_from_intent(intent, frame_board)
        assert request.arguments["frameId"] == "f1"

    @pytest.mark.unit
    def test_create_without_kind_escalates(self):
        """A CREATE the executor cannot map falls through."""
        assert execute_from_intent(make_intent(operation="CREATE", objectType="shape")) is None
        assert execute_from_intent(make_intent(operation="CREATE", objectType="mixed")) is None

    @pytest.mark.unit
    def test_delete_all_circles(self):
        """All matches are batched into one delete request."""
        board = BoardState(
            objects=[
                BoardObject(id="c1", type="circle"),
                BoardObject(id="c2", type="circle"),
                BoardObject(id="s1", type="star"),
                BoardObject(id="c3", type="circle"),
            ]
        )
        intent = make_intent(operation="DELETE", targetFilter={"type": "circle"})
        [request] = execute_from_intent(intent, board)
        assert request.name == "deleteObject"
        assert request.arguments == {"objectIds": ["c1", "c2", "c3"]}

    @pytest.mark.unit
    def test_delete_without_matches_is_empty(self, shapes_board):
        """Zero matches produce zero requests, not an error."""
        intent = make_intent(operation="DELETE", targetFilter={"type": "frame"})
        assert execute_from_intent(intent, shapes_board) == []

    @pytest.mark.unit
    def test_change_color_per_object(self, shapes_board):
        """One changeColor per match, with the name resolved."""
        intent = make_intent(operation="CHANGE_COLOR", color="blue", targetFilter={"type": "circle"})
        [request] = execute_from_intent(intent, shapes_board)
        assert request.arguments == {"objectId": "obj-1", "color": "#3B82F6"}

    @pytest.mark.unit
    def test_change_color_uses_selection(self, shapes_board):
        """useSelection restricts targets to selected ids."""
        board = shapes_board.model_copy(update={"selected_ids": ["obj-2"]})
        intent = make_intent(operation="CHANGE_COLOR", color="red", targetFilter={"useSelection": True})
        [request] = execute_from_intent(intent, board)
        assert request.arguments["objectId"] == "obj-2"

    @pytest.mark.unit
    def test_move_prefers_direction(self, shapes_board):
        """Direction wins over coordinates."""
        intent = make_intent(
            operation="MOVE",
            direction="right",
            coordinates={"x": 1, "y": 2},
            targetFilter={"type": "sticky"},
        )
        [request] = execute_from_intent(intent, shapes_board)
        assert request.arguments == {"objectId": "obj-3", "direction": "right"}

    @pytest.mark.unit
    def test_move_without_target_position(self, shapes_board):
        """A move with nowhere to go emits nothing."""
        intent = make_intent(operation="MOVE", targetFilter={"type": "sticky"})
        assert execute_from_intent(intent, shapes_board) == []

    @pytest.mark.unit
    def test_resize_and_rotate(self, shapes_board):
        """Resize and rotate emit one request per match."""
        resize = make_intent(
            operation="RESIZE",
            dimensions={"width": 300, "height": 200},
            targetFilter={"type": "star"},
        )
        rotate = make_intent(operation="ROTATE", rotation=45, targetFilter={"type": "shape"})
        [resized] = execute_from_intent(resize, shapes_board)
        rotated = execute_from_intent(rotate, shapes_board)

        assert resized.arguments == {"objectId": "obj-2", "width": 300, "height": 200}
        assert [r.name for r in rotated] == ["rotateObject", "rotateObject"]
        assert rotated[1].arguments == {"objectId": "obj-2", "rotation": 45}

    @pytest.mark.unit
    def test_arrange_method(self, shapes_board):
        """method=resize selects arrangeInGridAndResize."""
        intent = make_intent(operation="ARRANGE", method="resize", targetFilter={"type": "shape"})
        [request] = execute_from_intent(intent, shapes_board)
        assert request.name == "arrangeInGridAndResize"
        assert request.arguments == {"objectIds": ["obj-1", "obj-2"]}

    @pytest.mark.unit
    def test_analyze(self, shapes_board):
        """One analysis request over the matched ids, or all when unfiltered."""
        [filtered] = execute_from_intent(
            make_intent(operation="ANALYZE", targetFilter={"type": "circle"}), shapes_board
        )
        [unfiltered] = execute_from_intent(make_intent(operation="ANALYZE"), shapes_board)
        assert filtered.arguments == {"objectIds": ["obj-1"]}
        assert unfiltered.arguments == {"objectIds": []}

    @pytest.mark.unit
    def test_analyze_without_matches(self, shapes_board):
        """A filter matching nothing emits no request instead of analyzing the board."""
        intent = make_intent(operation="ANALYZE", targetFilter={"shapeType": "star", "color": "purple"})
        assert execute_from_intent(intent, shapes_board) == []

    @pytest.mark.unit
    def test_update(self, shapes_board):
        """UPDATE writes text into each match and refuses without text."""
        [request] = execute_from_intent(
            make_intent(operation="UPDATE", text="Updated", targetFilter={"type": "sticky"}),
            shapes_board,
        )
        assert request.arguments == {"objectId": "obj-3", "newText": "Updated"}
        assert execute_from_intent(make_intent(operation="UPDATE", targetFilter={"type": "sticky"}), shapes_board) is None


class TestClassifyIntent:
    """Tests for the classifier call."""

    @pytest.mark.asyncio
    async def test_forced_tool_call(self, mock_backend, reply):
        """The classifier forces its tool at low temperature."""
        mock_backend.queue(
            reply(
                (
                    INTENT_TOOL_NAME,
                    {
                        "operation": "CREATE",
                        "objectType": "shape",
                        "shapeType": "circle",
                        "quantity": 5,
                        "color": "#EF4444",
                    },
                )
            )
        )
        intent = await classify_intent(mock_backend, "create 5 red circles")

        assert intent.operation == IntentOperation.CREATE
        assert intent.quantity == 5
        call = mock_backend.calls[0]
        assert call.tool_choice == INTENT_TOOL_NAME
        assert call.tool_names == [INTENT_TOOL_NAME]
        assert call.config is CLASSIFIER_CONFIG
        assert call.user == 'Analyze this command: "create 5 red circles"'

    @pytest.mark.asyncio
    async def test_corrections_applied(self, mock_backend, reply):
        """Model output passes through the correction stage."""
        mock_backend.queue(reply((INTENT_TOOL_NAME, {"operation": "MULTI_STEP", "isMultiStep": True})))
        intent = await classify_intent(mock_backend, "create 10 circles with random colors")
        assert intent.operation == IntentOperation.CREATE
        assert intent.shape_type == "circle"
        assert intent.quantity == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            CompletionResult(content="I think you want circles"),
            RateLimitError("slow down", retry_after=1.0),
        ],
    )
    async def test_failure_returns_none(self, mock_backend, response):
        """No tool call or a backend error is a recoverable failure."""
        mock_backend.queue(response)
        assert await classify_intent(mock_backend, "create a circle") is None

    @pytest.mark.asyncio
    async def test_invalid_operation_returns_none(self, mock_backend, reply):
        """An operation outside the enum fails validation."""
        mock_backend.queue(reply((INTENT_TOOL_NAME, {"operation": "EXPLODE"})))
        assert await classify_intent(mock_backend, "explode everything") is None
