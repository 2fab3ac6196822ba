"""Tests for the tier chain and the command-level result."""

import pytest

from ..llm import CompletionResult
from ..orchestrator import ExecutionPlanError
from ..router import Tier
from .lib import Backends, CommandDispatcher

KANBAN_PLAN = {
    "title": "Sprint",
    "layout": "columns",
    "children": [
        {"type": "column", "title": "To Do", "children": [{"type": "sticky", "text": "Write tests"}]},
        {"type": "column", "title": "Done", "children": [{"type": "sticky", "text": "Plan"}]},
    ],
}


@pytest.fixture
def dispatcher(mock_backend) -> CommandDispatcher:
    """Dispatcher with the classifier enabled and one scripted backend."""
    return CommandDispatcher(Backends.shared(mock_backend), use_intent_classifier=True)


@pytest.fixture
def agent_dispatcher(mock_backend) -> CommandDispatcher:
    """Dispatcher with the classifier disabled."""
    return CommandDispatcher(Backends.shared(mock_backend), use_intent_classifier=False)


class TestIntentTier:
    """Tests for commands handled by the classifier."""

    @pytest.mark.asyncio
    async def test_create_red_circles(self, dispatcher, mock_backend, reply, empty_board):
        """One classifier call yields one creation request."""
        mock_backend.queue(
            reply(
                (
                    "classifyIntent",
                    {"operation": "CREATE", "objectType": "shape", "shapeType": "circle", "quantity": 5, "color": "red"},
                )
            )
        )
        result = await dispatcher.dispatch("create 5 red circles", empty_board)

        assert result.tier == Tier.INTENT
        assert len(mock_backend.calls) == 1
        assert result.to_dict() == {
            "toolCalls": [
                {
                    "id": "create_shapes",
                    "name": "createShape",
                    "arguments": {"type": "circle", "quantity": 5, "color": "#EF4444"},
                }
            ],
            "summary": "Created 5 circles",
            "needsFollowUp": False,
        }

    @pytest.mark.asyncio
    async def test_delete_all_circles(self, dispatcher, mock_backend, reply, circles_board):
        """Deletion batches every match into one request."""
        mock_backend.queue(reply(("classifyIntent", {"operation": "DELETE", "targetFilter": {"type": "circle"}})))
        result = await dispatcher.dispatch("delete all circles", circles_board)

        [request] = result.tool_calls
        assert request.arguments == {"objectIds": ["c1", "c2", "c3"]}
        assert result.summary == "Deleted 3 objects"

    @pytest.mark.asyncio
    async def test_analysis_never_leaves(self, dispatcher, mock_backend, reply, circles_board):
        """Counts go into the summary; the analyze request is stripped."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "ANALYZE", "targetFilter": {"shapeType": "circle"}}))
        )
        result = await dispatcher.dispatch("how many circles", circles_board)

        assert result.tool_calls == []
        assert result.summary == "Found 3 objects: 3 red circles"

    @pytest.mark.asyncio
    async def test_zero_matches_is_not_an_error(self, dispatcher, mock_backend, reply, empty_board):
        """An empty target set reports a zero count."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "CHANGE_COLOR", "color": "blue", "targetFilter": {"type": "star"}}))
        )
        result = await dispatcher.dispatch("color all stars blue", empty_board)
        assert result.tool_calls == []
        assert result.summary == "Recolored 0 objects"

    @pytest.mark.asyncio
    async def test_analysis_with_no_matches(self, dispatcher, mock_backend, reply, circles_board):
        """Counting a kind that is absent reports zero, not the whole board."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "ANALYZE", "targetFilter": {"shapeType": "star", "color": "purple"}}))
        )
        result = await dispatcher.dispatch("how many purple stars", circles_board)

        assert result.tool_calls == []
        assert result.summary == "Found 0 objects"

    @pytest.mark.asyncio
    async def test_creative_inside_selected_frame(self, dispatcher, mock_backend, reply, frame_board):
        """CREATIVE intents go to the composer, scoped to the selected frame."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "CREATIVE", "creativeDescription": "kanban with two columns"})),
            reply(("createPlan", KANBAN_PLAN)),
        )
        result = await dispatcher.dispatch("create a kanban board", frame_board)

        assert result.tier == Tier.INTENT
        assert result.agent_name == "CreativeComposer"
        assert all(call.id.startswith("plan_tc_") for call in result.tool_calls)
        stickies = [c for c in result.tool_calls if c.name == "createStickyNote"]
        assert len(stickies) == 2
        planner_call = mock_backend.calls[1]
        assert planner_call.tool_choice == "createPlan"
        assert "INSIDE an existing frame (600x400)" in planner_call.user
        assert "Context: kanban with two columns" in planner_call.user


class TestFallthrough:
    """Tests for escalation along the tier chain."""

    @pytest.mark.asyncio
    async def test_failed_classification_falls_to_mini(self, dispatcher, mock_backend, reply, empty_board):
        """A classifier without a tool call hands over to the mini-agent."""
        mock_backend.queue(
            CompletionResult(content="not sure"),
            reply(("createShape", {"type": "circle", "x": 100, "y": 100})),
        )
        result = await dispatcher.dispatch("create a circle", empty_board)

        assert result.tier == Tier.MINI
        assert result.agent_name == "MiniCreate"
        assert mock_backend.calls[1].config.temperature == 0.1
        assert [c.name for c in result.tool_calls] == ["createShape"]

    @pytest.mark.asyncio
    async def test_failed_composition_falls_to_single(self, dispatcher, mock_backend, reply, empty_board):
        """A planner reply without a plan escalates past the intent tier."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "CREATIVE", "creativeDescription": "kanban"})),
            CompletionResult(content="Here is your kanban!"),
            reply(("createFrame", {"title": "Kanban", "x": 0, "y": 0, "width": 900, "height": 600})),
        )
        result = await dispatcher.dispatch("create a kanban board", empty_board)

        assert result.tier == Tier.SINGLE
        assert result.agent_name == "CreateAgent"
        assert len(mock_backend.calls) == 3

    @pytest.mark.asyncio
    async def test_multi_step_intent_escalates_to_orchestration(self, dispatcher, mock_backend, reply, empty_board):
        """An intent needing board context ends at the terminal tier."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "MULTI_STEP", "isMultiStep": True})),
            {
                "plan": [
                    {"agent": "CreateAgent", "task": "Create 3 circle shapes"},
                    {"agent": "ConnectAgent", "task": "Connect the circles", "waitForPrevious": True},
                ],
                "summary": "I'll create and connect 3 circles",
            },
            reply(*[("createShape", {"type": "circle"})] * 3),
        )
        result = await dispatcher.dispatch("create 3 circles connected by lines", empty_board)

        assert result.tier == Tier.ORCHESTRATE
        assert result.needs_follow_up is True
        payload = result.to_dict()
        assert payload["needsFollowUp"] is True
        assert payload["remainingTasks"] == [
            {
                "agent": "ConnectAgent",
                "task": "Connect the circles",
                "reasoning": "",
                "waitForPrevious": True,
                "canRunInParallel": False,
            }
        ]

    @pytest.mark.asyncio
    async def test_resume(self, dispatcher, mock_backend, reply, empty_board):
        """Resuming a paused command returns the dependent requests."""
        mock_backend.queue(
            reply(("classifyIntent", {"operation": "MULTI_STEP", "isMultiStep": True})),
            {
                "plan": [
                    {"agent": "CreateAgent", "task": "Create 2 stars"},
                    {"agent": "ConnectAgent", "task": "Connect the stars", "waitForPrevious": True},
                ],
            },
            reply(("createShape", {"type": "star"}), ("createShape", {"type": "star"})),
            reply(("createConnector", {"fromId": "s-1", "toId": "s-2"})),
        )
        paused = await dispatcher.dispatch("create 2 stars connected by a line", empty_board)
        resumed = await dispatcher.resume(paused.continuation, empty_board, created_ids=["s-1", "s-2"])

        assert resumed.needs_follow_up is False
        assert resumed.tool_calls[0].arguments == {"fromId": "s-1", "toId": "s-2"}
        assert "s-1, s-2" in mock_backend.calls[-1].user


class TestAgentTiers:
    """Tests with the classifier disabled."""

    @pytest.mark.asyncio
    async def test_complex_tier(self, agent_dispatcher, mock_backend, empty_board):
        """Domain structures go to the complex supervisor."""
        mock_backend.queue(
            {
                "analysis": "Sun in the middle, one planet",
                "plan": [
                    {"action": "createCircle", "params": {"x": 300, "y": 300, "width": 120, "height": 120, "text": "Sun"}},
                    {"action": "createCircle", "params": {"x": 500, "y": 300, "width": 40, "height": 40, "text": "Earth"}},
                    {"action": "createConnector", "params": {"fromIndex": 0, "toIndex": 1}},
                ],
                "summary": "Created a small solar system",
            }
        )
        result = await agent_dispatcher.dispatch("create a solar system", empty_board)

        assert result.tier == Tier.COMPLEX
        assert [c.name for c in result.tool_calls] == ["createShape", "createShape", "createConnector"]
        assert result.summary == "Created a small solar system"

    @pytest.mark.asyncio
    async def test_malformed_complex_reply_falls_to_single(self, agent_dispatcher, mock_backend, reply, empty_board):
        """A broken complex plan is recoverable."""
        mock_backend.queue(
            {"plan": "sun and planets"},
            reply(("createShape", {"type": "circle"})),
        )
        result = await agent_dispatcher.dispatch("create a solar system", empty_board)
        assert result.tier == Tier.SINGLE

    @pytest.mark.asyncio
    async def test_orchestration_errors_surface(self, agent_dispatcher, mock_backend, empty_board):
        """The terminal tier raises instead of falling through."""
        mock_backend.queue({"plan": [{"agent": "WizardAgent", "task": "Do magic"}]})
        with pytest.raises(ExecutionPlanError):
            await agent_dispatcher.dispatch("delete all rectangles and create 5 stars", empty_board)

    @pytest.mark.unit
    def test_classifier_flag_from_environment(self, monkeypatch, mock_backend):
        """The classifier switch defaults to the environment setting."""
        monkeypatch.setenv("WHITEBOARD_USE_INTENT_CLASSIFIER", "false")
        assert CommandDispatcher(Backends.shared(mock_backend)).use_intent_classifier is False
