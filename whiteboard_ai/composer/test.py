"""Tests for the creative composer."""

import pytest

from ..board import FrameInfo
from ..llm import CompletionResult, LLMError, ToolInvocation
from .lib import (
    CompositionError,
    build_frame_context_instruction,
    build_planner_messages,
    execute_creative_composer,
    parse_plan,
)

FLOWCHART_PLAN = {
    "title": "Signup",
    "layout": "flow_horizontal",
    "wrapInFrame": False,
    "children": [
        {"type": "shape", "shape": "circle", "text": "Start", "color": "green", "connectTo": "straight"},
        {"type": "shape", "shape": "rect", "text": "Enter Email", "connectTo": "straight"},
        {"type": "shape", "shape": "circle", "text": "Done", "color": "green"},
    ],
}


def raw_plan_reply(raw: str) -> CompletionResult:
    return CompletionResult(
        tool_calls=[ToolInvocation(id="call_0", name="createPlan", raw_arguments=raw)]
    )


class TestPlannerMessages:
    """Tests for planner prompt assembly."""

    @pytest.mark.unit
    def test_user_content(self):
        """The request is quoted and the description appended as context."""
        messages = build_planner_messages("draw a cat", "A sitting orange cat")
        assert messages[0]["role"] == "system"
        assert "createPlan" in messages[0]["content"]
        assert messages[1]["content"] == (
            'Create the following on the whiteboard: "draw a cat"'
            "\n\nContext: A sitting orange cat"
        )

    @pytest.mark.unit
    def test_frame_context(self):
        """Composing inside a frame adds its size and forbids an outer frame."""
        frame = FrameInfo(id="f1", x=0, y=0, width=600.4, height=400)
        instruction = build_frame_context_instruction(frame)
        assert "600x400" in instruction
        assert "Do NOT create an outer frame" in instruction
        assert build_frame_context_instruction(None) == ""
        assert instruction in build_planner_messages("kanban", frame_info=frame)[1]["content"]


class TestParsePlan:
    """Tests for planner output parsing."""

    @pytest.mark.unit
    def test_valid_plan(self, reply):
        """A createPlan call parses into a CompositionPlan."""
        plan = parse_plan(reply(("createPlan", FLOWCHART_PLAN)))
        assert plan.title == "Signup"
        assert plan.wrap_in_frame is False
        assert len(plan.children) == 3

    @pytest.mark.unit
    def test_missing_call(self, reply):
        """A text-only reply is a composition error."""
        with pytest.raises(CompositionError, match="did not output a plan"):
            parse_plan(reply(content="Here is a cat!"))

    @pytest.mark.unit
    def test_invalid_json(self):
        """Broken argument JSON is a composition error."""
        with pytest.raises(CompositionError, match="invalid JSON"):
            parse_plan(raw_plan_reply('{"title": "Cat", "children": ['))

    @pytest.mark.unit
    def test_malformed_plan(self):
        """Arguments that do not fit the plan model are rejected."""
        with pytest.raises(CompositionError, match="malformed"):
            parse_plan(raw_plan_reply('{"children": "not a list"}'))


class TestExecuteCreativeComposer:
    """Tests for the end-to-end composer."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_flowchart(self, mock_backend, reply):
        """A flowchart plan yields shapes, connectors and explicit positions."""
        mock_backend.queue(reply(("createPlan", FLOWCHART_PLAN)))

        result = await execute_creative_composer(mock_backend, "flowchart for signup")

        call = mock_backend.calls[0]
        assert call.tool_choice == "createPlan"
        assert call.tool_names == ["createPlan"]

        assert result.agent_name == "CreativeComposer"
        assert [c.name for c in result.tool_calls] == [
            "createShape",
            "createShape",
            "createShape",
            "createConnector",
            "createConnector",
        ]
        assert [c.id for c in result.tool_calls] == [f"plan_tc_{i}" for i in range(5)]
        assert all("x" in c.arguments for c in result.tool_calls[:3])
        assert result.tool_calls[3].arguments["fromIndex"] == 0
        assert result.tool_calls[4].arguments["toIndex"] == 2
        assert result.summary == 'Composed "Signup" with 3 objects'

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_anchored_at_origin(self, mock_backend, reply):
        """Compositions are laid out from (0, 0)."""
        plan = {"title": "One", "layout": "stack_vertical", "wrapInFrame": False,
                "children": [{"type": "sticky", "text": "Hi"}]}
        mock_backend.queue(reply(("createPlan", plan)))

        result = await execute_creative_composer(mock_backend, "a sticky")
        assert (result.tool_calls[0].arguments["x"], result.tool_calls[0].arguments["y"]) == (0, 0)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inside_frame(self, mock_backend, reply):
        """With a frame, children carry frameId and no wrapper is added."""
        plan = {"title": "Board", "layout": "stack_horizontal",
                "children": [{"type": "sticky"}, {"type": "sticky"}]}
        mock_backend.queue(reply(("createPlan", plan)))
        frame = FrameInfo(id="f1", x=100, y=100, width=800, height=600)

        result = await execute_creative_composer(mock_backend, "two stickies", frame_info=frame)

        assert [c.name for c in result.tool_calls] == ["createStickyNote"] * 2
        assert all(c.arguments["frameId"] == "f1" for c in result.tool_calls)
        assert "INSIDE an existing frame (800x600)" in mock_backend.calls[0].user

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_vocabulary_is_tolerated(self, mock_backend, reply):
        """Unknown layouts and node types still produce requests."""
        plan = {"title": "Odd", "layout": "spiral", "wrapInFrame": False,
                "children": [{"type": "sticky"}, {"type": "hologram"}]}
        mock_backend.queue(reply(("createPlan", plan)))

        result = await execute_creative_composer(mock_backend, "something odd")
        assert [c.name for c in result.tool_calls] == ["createStickyNote", "createShape"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_planner_failure_propagates(self, mock_backend, reply):
        """Missing plans and backend errors surface to the caller."""
        mock_backend.queue(reply(content="no"), LLMError("boom"))

        with pytest.raises(CompositionError):
            await execute_creative_composer(mock_backend, "draw a cat")
        with pytest.raises(LLMError):
            await execute_creative_composer(mock_backend, "draw a cat")
