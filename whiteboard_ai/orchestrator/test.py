"""Tests for supervisor planning, batching and continuation."""

import asyncio
import re

import pytest

from ..llm import CompletionResult, InvalidResponseError, RateLimitError, ToolInvocation
from .lib import (
    SUPERVISOR_CONFIG,
    SUPERVISOR_PROMPT,
    continue_orchestration,
    create_execution_plan,
    orchestrate_agents,
    partition_batches,
)
from .models import ContinuationToken, ExecutionPlanError, Task

CREATE_THEN_CONNECT = {
    "plan": [
        {"agent": "CreateAgent", "task": "Create 2 star shapes", "waitForPrevious": False},
        {"agent": "ConnectAgent", "task": "Connect the 2 stars", "waitForPrevious": True},
    ],
    "summary": "I'll create 2 stars and connect them",
}


def task(agent: str = "CreateAgent", *, wait: bool = False, parallel: bool = False, name: str = "t") -> Task:
    return Task(agent=agent, task=name, wait_for_previous=wait, can_run_in_parallel=parallel)


class TestPartitionBatches:
    """Tests for batch partitioning."""

    @pytest.mark.unit
    def test_mixed_plan(self):
        """Parallel runs group, sequential tasks stand alone, waits split."""
        tasks = [
            task(parallel=True, name="p1"),
            task(parallel=True, name="p2"),
            task(name="s1"),
            task(parallel=True, name="p3"),
            task(parallel=True, wait=True, name="p4"),
            task(parallel=True, name="p5"),
        ]
        batches = partition_batches(tasks)
        assert [[t.task for t in batch] for batch in batches] == [["p1", "p2"], ["s1"], ["p3"], ["p4", "p5"]]

    @pytest.mark.unit
    def test_sequential_tasks(self):
        """Tasks without the parallel flag each get their own batch."""
        assert [len(b) for b in partition_batches([task(), task(), task()])] == [1, 1, 1]

    @pytest.mark.unit
    def test_empty(self):
        """An empty plan has no batches."""
        assert partition_batches([]) == []


class TestCreateExecutionPlan:
    """Tests for the supervisor call."""

    @pytest.mark.asyncio
    async def test_plan_request(self, mock_backend):
        """The supervisor sees its prompt, the board context and the command."""
        mock_backend.queue(CREATE_THEN_CONNECT)
        plan = await create_execution_plan(mock_backend, "create 2 stars connected", "The board is currently empty.")

        assert [t.agent for t in plan.plan] == ["CreateAgent", "ConnectAgent"]
        assert plan.plan[1].wait_for_previous is True
        call = mock_backend.calls[0]
        assert call.json_mode
        assert call.config is SUPERVISOR_CONFIG
        assert [m["content"] for m in call.messages] == [
            SUPERVISOR_PROMPT,
            "Current board state:\nThe board is currently empty.",
            "create 2 stars connected",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            {"steps": []},
            {"plan": [{"agent": "CreateAgent"}]},
            {"plan": [{"agent": "PaintAgent", "task": "Paint everything"}]},
            InvalidResponseError("not JSON"),
        ],
    )
    async def test_malformed_plan_is_hard_failure(self, mock_backend, reply):
        """Unparseable plans and unknown agents raise, with no retry."""
        mock_backend.queue(reply)
        with pytest.raises(ExecutionPlanError):
            await create_execution_plan(mock_backend, "do things", "")
        assert len(mock_backend.calls) == 1


class TestOrchestrateAgents:
    """Tests for batched execution and pausing."""

    @pytest.mark.asyncio
    async def test_pauses_before_dependent_batch(self, mock_backend, reply, empty_board):
        """Create-then-connect halts after the create task."""
        mock_backend.queue(
            CREATE_THEN_CONNECT,
            reply(("createShape", {"type": "star", "x": 100, "y": 100}), ("createShape", {"type": "star", "x": 300, "y": 100})),
        )
        result = await orchestrate_agents(mock_backend, "create 2 stars connected by a line", empty_board)

        assert result.needs_follow_up is True
        assert [t.task for t in result.remaining_tasks] == ["Connect the 2 stars"]
        assert [c.name for c in result.tool_calls] == ["createShape", "createShape"]
        assert len(mock_backend.calls) == 2
        assert result.continuation.completed_steps == 1
        assert result.continuation.previous_results[0].created_ids == ["call_0", "call_1"]

    @pytest.mark.asyncio
    async def test_resume_with_created_ids(self, mock_backend, reply, empty_board):
        """Continuing injects the real ids and yields the connector."""
        mock_backend.queue(
            CREATE_THEN_CONNECT,
            reply(("createShape", {"type": "star"}), ("createShape", {"type": "star"})),
        )
        paused = await orchestrate_agents(mock_backend, "create 2 stars connected by a line", empty_board)

        mock_backend.queue(reply(("createConnector", {"fromId": "obj-a", "toId": "obj-b"})))
        resumed = await continue_orchestration(
            mock_backend, paused.continuation, empty_board, created_ids=["obj-a", "obj-b"]
        )

        worker_call = mock_backend.calls[-1]
        assert "Newly created object IDs from previous task: obj-a, obj-b" in worker_call.user
        assert "Use these IDs for your task." in worker_call.user
        assert worker_call.tool_names == ["createConnector"]
        assert resumed.needs_follow_up is False
        assert [c.arguments for c in resumed.tool_calls] == [{"fromId": "obj-a", "toId": "obj-b"}]
        assert resumed.summary == "I'll create 2 stars and connect them"

    @pytest.mark.asyncio
    async def test_continuation_can_pause_again(self, mock_backend, reply, empty_board):
        """A continuation with another dependent batch pauses again."""
        token = ContinuationToken(
            remaining_tasks=[
                Task(agent="ConnectAgent", task="Connect the stars", wait_for_previous=True),
                Task(agent="ModifyAgent", task="Color the connected stars red", wait_for_previous=True),
            ],
            completed_steps=1,
            total_steps=3,
        )
        mock_backend.queue(reply(("createConnector", {"fromId": "a", "toId": "b"})))
        result = await continue_orchestration(mock_backend, token, empty_board, created_ids=["a", "b"])

        assert result.needs_follow_up is True
        assert [t.agent for t in result.remaining_tasks] == ["ModifyAgent"]
        assert result.continuation.completed_steps == 2
        assert len(mock_backend.calls) == 1

    @pytest.mark.unit
    def test_token_transport(self):
        """Tokens travel as camelCase JSON and come back intact."""
        token = ContinuationToken(
            remaining_tasks=[Task(agent="ConnectAgent", task="Connect", wait_for_previous=True)],
            summary="s",
        ).with_created_ids(["x1"])
        payload = token.model_dump(by_alias=True)
        assert payload["remainingTasks"][0]["waitForPrevious"] is True
        assert ContinuationToken.model_validate(payload) == token

    @pytest.mark.asyncio
    async def test_hundred_circles_in_parallel(self, mock_backend, empty_board):
        """20 parallel tasks of 5 circles give 100 distinct positions and one progress event."""
        task_pattern = re.compile(r"Your task: Create 5 circles starting at x=(\d+), y=(\d+)")

        def responder(call):
            if call.json_mode:
                return {
                    "plan": [
                        {
                            "agent": "CreateAgent",
                            "task": f"Create 5 circles starting at x=100, y={100 + 120 * i}",
                            "canRunInParallel": True,
                        }
                        for i in range(20)
                    ],
                    "summary": "I'll create 100 circles in parallel groups",
                }
            x, y = (int(v) for v in task_pattern.search(call.user).groups())
            return CompletionResult(
                tool_calls=[
                    ToolInvocation(
                        id=f"row{y}_{i}",
                        name="createShape",
                        arguments={"type": "circle", "x": x + 120 * i, "y": y},
                    )
                    for i in range(5)
                ]
            )

        events = []

        async def on_progress(event):
            events.append(event)

        mock_backend.responder = responder
        result = await orchestrate_agents(mock_backend, "create 100 circles", empty_board, progress=on_progress)

        assert len(result.tool_calls) == 100
        assert all(call.is_creation for call in result.tool_calls)
        assert len({(c.arguments["x"], c.arguments["y"]) for c in result.tool_calls}) == 100
        assert [c.arguments["y"] for c in result.tool_calls[::5]] == [100 + 120 * i for i in range(20)]
        assert result.parallel_batches_used is True
        assert result.progress_sent is True
        [event] = events
        assert event.task == "Creating 100 circles (20 parallel agents)"
        assert (event.step, event.total_steps, event.batch_size) == (20, 20, 20)

    @pytest.mark.asyncio
    async def test_single_create_is_silent(self, mock_backend, reply, empty_board):
        """Single-task batches emit no progress."""
        events = []
        mock_backend.queue(
            {"plan": [{"agent": "CreateAgent", "task": "Create 1 circle"}], "summary": "One circle"},
            reply(("createShape", {"type": "circle"})),
        )
        result = await orchestrate_agents(mock_backend, "create a circle", empty_board, progress=events.append)

        assert events == []
        assert result.progress_sent is False
        assert result.parallel_batches_used is False
        assert result.summary == "One circle"

    @pytest.mark.asyncio
    async def test_analysis_summary_and_stripping(self, mock_backend, reply, circles_board):
        """Analysis narratives become the summary; analyze requests never leave."""
        mock_backend.queue(
            {"plan": [{"agent": "AnalyzeAgent", "task": "Count all circles"}], "summary": "I'll count"},
            reply(("analyzeObjects", {"objectIds": []})),
            CompletionResult(content="There are 3 red circles and 1 blue rectangle."),
        )
        result = await orchestrate_agents(mock_backend, "how many circles", circles_board)

        assert result.tool_calls == []
        assert result.summary == "There are 3 red circles and 1 blue rectangle."
        assert result.results[0].task == "Count all circles"

    @pytest.mark.asyncio
    async def test_task_failure_aborts_batch(self, mock_backend, reply, empty_board, monkeypatch):
        """One failing task in a parallel batch fails the run and cancels its siblings."""
        finished = []
        scripted = mock_backend.complete

        async def slow_complete(messages, **kwargs):
            result = await scripted(messages, **kwargs)
            await asyncio.sleep(0.05)
            finished.append(result)
            return result

        monkeypatch.setattr(mock_backend, "complete", slow_complete)
        mock_backend.queue(
            {
                "plan": [
                    {"agent": "CreateAgent", "task": "Create 5 stars", "canRunInParallel": True},
                    {"agent": "CreateAgent", "task": "Create 5 more stars", "canRunInParallel": True},
                ],
            },
            reply(("createShape", {"type": "star"})),
            RateLimitError("slow down"),
        )
        with pytest.raises(RateLimitError):
            await orchestrate_agents(mock_backend, "create 10 stars", empty_board)

        await asyncio.sleep(0.1)
        assert finished == []

