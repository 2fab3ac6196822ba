"""Tests for agent registries, the agent runner and the complex supervisor."""

import json

import pytest

from ..board import BoardObject, BoardState, OperationName
from ..llm import CompletionResult, InvalidResponseError
from .complex import ComplexPlan, execute_complex_supervisor, needs_complex_supervisor, plan_to_requests
from .lib import execute_mini_agent, execute_single_agent
from .registry import (
    CREATE_AGENT,
    MINI_AGENTS,
    MINI_ANALYZE,
    MINI_COLOR,
    MINI_CREATE,
    MINI_DELETE,
    MINI_FIT_FRAME,
    MINI_MOVE,
    MINI_ORGANIZE,
    MINI_RESIZE,
    MINI_ROTATE,
    MINI_SWOT,
    MINI_TEXT,
    WORKER_AGENTS,
    detect_mini_agent,
    get_all_worker_tools,
    get_worker_agent,
)

OPERATIONS = {op.value for op in OperationName}


class TestRegistries:
    """Tests for registry contents."""

    @pytest.mark.unit
    def test_worker_agents(self):
        """Six worker agents, each tool drawn from the operation vocabulary."""
        assert list(WORKER_AGENTS) == [
            "CreateAgent",
            "ConnectAgent",
            "ModifyAgent",
            "DeleteAgent",
            "OrganizeAgent",
            "AnalyzeAgent",
        ]
        assert {tool["function"]["name"] for tool in get_all_worker_tools()} <= OPERATIONS
        assert get_worker_agent("ConnectAgent").tool_names == ["createConnector"]
        assert get_worker_agent("NopeAgent") is None

    @pytest.mark.unit
    def test_mini_agents(self):
        """Mini-agents run cooler than worker agents and use known operations."""
        assert len(MINI_AGENTS) == 11
        for agent in MINI_AGENTS.values():
            assert agent.temperature == 0.1
            assert set(agent.tool_names) <= OPERATIONS
        assert all(agent.temperature == 0.3 for agent in WORKER_AGENTS.values())

    @pytest.mark.unit
    def test_mini_create_carries_bulk_fields(self):
        """MiniCreate's shape tool exposes quantity, colors, grid and frame scope."""
        shape_tool = next(t for t in MINI_CREATE.tools if t["function"]["name"] == "createShape")
        properties = shape_tool["function"]["parameters"]["properties"]
        assert {"quantity", "colors", "rows", "columns", "frameId"} <= set(properties)


class TestDetectMiniAgent:
    """Tests for the ordered mini-agent matcher."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command,expected",
        [
            ("create a circle", MINI_CREATE),
            ("add a red circle", MINI_CREATE),
            ("add a frame", MINI_CREATE),
            ("color all circles red", MINI_COLOR),
            ("change color to blue", MINI_COLOR),
            ("move the circle right", MINI_MOVE),
            ("delete all circles", MINI_DELETE),
            ("remove these", MINI_DELETE),
            ("resize the frame to fit", MINI_FIT_FRAME),
            ("resize the circle to 200x100", MINI_RESIZE),
            ("rotate the star 45 degrees", MINI_ROTATE),
            ("rename the frame to Ideas", MINI_TEXT),
            ("write hello in the sticky", MINI_TEXT),
            ("how many circles", MINI_ANALYZE),
            ("count the stars", MINI_ANALYZE),
            ("create swot", MINI_SWOT),
            ("create a 3x3 matrix", MINI_SWOT),
            ("delete the random circles", MINI_DELETE),
            ("move the handle left", MINI_MOVE),
            ("resize the standard box to 200x100", MINI_RESIZE),
        ],
    )
    def test_matches(self, command, expected):
        """Narrow single-operation commands map to their mini-agent."""
        assert detect_mini_agent(command) is expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create 5 circles",
            "create 8 stars",
            "add three sticky notes",
            "create a kanban board",
            "draw a flowchart",
            "make a mind map",
            "create a retro board",
            "create a customer journey map",
            "move these to the frame",
            "move the circle right and then delete it",
            "delete the stars and the circles",
            "arrange these in a grid",
            "tell me a joke",
        ],
    )
    def test_needs_fuller_agent(self, command):
        """Quantities, templates, sequences and unknown commands are refused."""
        assert detect_mini_agent(command) is None

    @pytest.mark.unit
    def test_organize_requires_selection(self):
        """Arranging only goes to a mini-agent when something is selected."""
        assert detect_mini_agent("arrange these in a grid", has_selection=True) is MINI_ORGANIZE
        assert detect_mini_agent("create and arrange in a grid", has_selection=True) is not MINI_ORGANIZE


class TestNeedsComplexSupervisor:
    """Tests for domain/spatial command detection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        [
            "create a solar system",
            "draw a food chain",
            "make an org chart",
            "make an organization chart",
            "create a timeline",
            "create 5 labeled circles connected by lines",
            "create 4 circles in a row connected by lines",
        ],
    )
    def test_complex(self, command):
        """Domain structures and labeled or linear connected layouts need reasoning."""
        assert needs_complex_supervisor(command)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "command",
        ["create a circle", "add 5 stars", "create circles in a row connected by lines"],
    )
    def test_simple(self, command):
        """Plain creation, and linear layouts without a count, do not."""
        assert not needs_complex_supervisor(command)


class TestRunAgent:
    """Tests for mini and single agent execution."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mini_agent_single_call(self, mock_backend, reply, circles_board):
        """Requests come back in model order from one call at temperature 0.1."""
        mock_backend.queue(
            reply(
                ("changeColor", {"objectId": "c1", "color": "#3B82F6"}),
                ("changeColor", {"objectId": "c2", "color": "#3B82F6"}),
            )
        )

        result = await execute_mini_agent(
            mock_backend, MINI_COLOR, "color all circles blue", circles_board, "ctx"
        )

        call = mock_backend.calls[0]
        assert len(mock_backend.calls) == 1
        assert call.tool_choice == "auto"
        assert call.tool_names == ["changeColor"]
        assert call.config.temperature == 0.1
        assert call.user == "Board state:\nctx\n\nTask: color all circles blue"
        assert result.agent_name == "MiniColor"
        assert [c.arguments["objectId"] for c in result.tool_calls] == ["c1", "c2"]
        assert result.summary == "MiniColor completed"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_analysis_resolved_locally(self, mock_backend, reply, circles_board):
        """analyzeObjects counts come from the board and a second call narrates them."""
        mock_backend.queue(
            reply(("analyzeObjects", {"objectIds": []})),
            CompletionResult(content="There are 3 red circles and 1 blue rect."),
        )

        result = await execute_mini_agent(
            mock_backend, MINI_ANALYZE, "how many circles", circles_board, "ctx"
        )

        followup = mock_backend.calls[1]
        tool_turn = followup.messages[-1]
        assert followup.messages[-2]["tool_calls"][0]["function"]["name"] == "analyzeObjects"
        assert tool_turn["role"] == "tool"
        assert tool_turn["tool_call_id"] == "call_0"
        payload = json.loads(tool_turn["content"])
        assert payload["totalObjects"] == 4
        assert payload["breakdown"] == "3 red circles, 1 blue rect"
        assert payload["countByType"] == {"circle": 3, "rect": 1}
        assert result.message == "There are 3 red circles and 1 blue rect."
        assert [c.name for c in result.tool_calls] == ["analyzeObjects"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_every_call_gets_a_tool_turn(self, mock_backend, reply, circles_board):
        """Non-analysis calls alongside an analysis are acknowledged too."""
        mock_backend.queue(
            reply(
                ("analyzeObjects", {"objectIds": ["c1"]}),
                ("deleteObject", {"objectIds": ["r1"]}),
            ),
            CompletionResult(content="Done."),
        )

        await execute_mini_agent(mock_backend, MINI_ANALYZE, "count c1", circles_board, "ctx")

        tool_turns = [m for m in mock_backend.calls[1].messages if m["role"] == "tool"]
        assert [m["tool_call_id"] for m in tool_turns] == ["call_0", "call_1"]
        assert json.loads(tool_turns[0]["content"])["totalObjects"] == 1
        assert json.loads(tool_turns[1]["content"]) == {"status": "queued"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_agent(self, mock_backend, reply, empty_board):
        """Worker agents run with their own prompt and temperature 0.3."""
        mock_backend.queue(reply(("createShape", {"type": "star"}), content="Created a star."))

        result = await execute_single_agent(
            mock_backend, CREATE_AGENT, "create a star", empty_board, "The board is currently empty."
        )

        call = mock_backend.calls[0]
        assert call.system == CREATE_AGENT.prompt
        assert call.config.temperature == 0.3
        assert call.user.endswith("Your task: create a star")
        assert result.message == "Created a star."
        assert result.created_ids() == ["call_0"]


class TestComplexSupervisor:
    """Tests for the complex supervisor conversion."""

    @pytest.mark.unit
    def test_connectors_resolve_to_created_shapes(self, empty_board):
        """Shape actions become createShape; connector indexes hit created ids."""
        plan = ComplexPlan.model_validate(
            {
                "plan": [
                    {"action": "createCircle", "params": {"x": 100, "y": 100, "text": "Sun"}},
                    {"action": "createStar", "params": {"x": 300, "y": 100}},
                    {"action": "createConnector", "params": {"fromIndex": 0, "toIndex": 1}},
                ]
            }
        )

        requests = plan_to_requests(plan, empty_board)

        assert [r.name for r in requests] == ["createShape", "createShape", "createConnector"]
        assert requests[0].arguments == {"x": 100, "y": 100, "text": "Sun", "type": "circle"}
        assert requests[1].arguments["type"] == "star"
        assert requests[2].arguments == {"fromId": "complex_0", "toId": "complex_1", "style": "straight"}

    @pytest.mark.unit
    def test_connectors_fall_back_to_board(self):
        """Without created shapes, indexes address existing board objects."""
        board = BoardState(objects=[BoardObject(id="a", type="rect"), BoardObject(id="b", type="rect")])
        plan = ComplexPlan.model_validate(
            {"plan": [{"action": "createConnector", "params": {"fromIndex": 0, "toIndex": 1, "style": "curved"}}]}
        )

        requests = plan_to_requests(plan, board)
        assert requests[0].arguments == {"fromId": "a", "toId": "b", "style": "curved"}

    @pytest.mark.unit
    def test_out_of_range_and_unknown_skipped(self, empty_board):
        """Unresolvable connectors and unknown actions produce nothing."""
        plan = ComplexPlan.model_validate(
            {
                "plan": [
                    {"action": "createRect", "params": {}},
                    {"action": "createConnector", "params": {"fromIndex": 0, "toIndex": 5}},
                    {"action": "createHexagon", "params": {}},
                ]
            }
        )
        assert [r.name for r in plan_to_requests(plan, empty_board)] == ["createShape"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_execute(self, mock_backend, empty_board):
        """One JSON call at temperature 0.3; summary and analysis carried through."""
        mock_backend.queue(
            {
                "analysis": "Sun in the middle",
                "plan": [{"action": "createCircle", "params": {"text": "Sun"}}],
                "summary": "Created a solar system",
            }
        )

        result = await execute_complex_supervisor(mock_backend, "create a solar system", empty_board, "ctx")

        call = mock_backend.calls[0]
        assert call.json_mode
        assert call.config.temperature == 0.3
        assert call.user == "Command: create a solar system\n\nCurrent board state:\nctx"
        assert result.agent_name == "ComplexSupervisor"
        assert result.summary == "Created a solar system"
        assert result.analysis == "Sun in the middle"
        assert len(result.tool_calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_reply(self, mock_backend, empty_board):
        """A reply without a usable plan list is an invalid response."""
        mock_backend.queue({"plan": "draw the sun"})

        with pytest.raises(InvalidResponseError):
            await execute_complex_supervisor(mock_backend, "create a solar system", empty_board, "ctx")
