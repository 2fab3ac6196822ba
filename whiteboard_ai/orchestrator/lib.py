"""Supervisor/worker orchestration with dependency-aware batching.

Flow:
1. The supervisor turns the command into an ExecutionPlan (one JSON call)
2. Tasks are partitioned into batches; batches run in order, tasks inside
   a batch run concurrently
3. A later batch that waits for earlier results pauses the run; the caller
   applies what was produced and resumes with a ContinuationToken
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from ..agents import ANALYZE_AGENT, CREATE_AGENT, WORKER_AGENTS, run_agent
from ..board import AgentResult, BoardState, build_board_context
from ..llm import GenerationConfig, InvalidResponseError, LLMBackend, Message
from .models import (
    ContinuationToken,
    ExecutionPlan,
    ExecutionPlanError,
    OrchestrationResult,
    PriorResult,
    ProgressEvent,
    Task,
    strip_analysis,
)

logger = logging.getLogger(__name__)

SUPERVISOR_CONFIG = GenerationConfig(temperature=0.2, json_mode=True)
DEFAULT_SUMMARY = "Tasks completed"

ProgressCallback = Callable[[ProgressEvent], None | Awaitable[None]]

SUPERVISOR_PROMPT = """You are the Supervisor Agent. Break the user's request into tasks for specialized worker agents.

Worker agents:
1. CreateAgent - creates sticky notes, text, text bubbles, shapes and frames
2. ConnectAgent - draws connectors between existing objects
3. ModifyAgent - moves, resizes, recolors and rewrites objects
4. DeleteAgent - deletes objects
5. OrganizeAgent - arranges objects in grids
6. AnalyzeAgent - counts and describes objects

Object kinds:
- Sticky note: colored card (yellow/pink/blue/green/orange) for ideas
- Text: plain floating text for labels and titles
- Text bubble: text inside a bordered box
- Shape: rect, circle, triangle or star
- Frame: container that groups objects

Respond with JSON only:
{
  "plan": [
    {"agent": "CreateAgent", "task": "Create 2 star shapes", "reasoning": "Stars must exist before connecting", "waitForPrevious": false, "canRunInParallel": false},
    {"agent": "ConnectAgent", "task": "Connect the 2 stars with a line", "reasoning": "Needs the new star IDs", "waitForPrevious": true, "canRunInParallel": false}
  ],
  "summary": "I'll create 2 stars and connect them with a line"
}

Rules:
1. One agent and one clear action per task
2. Set waitForPrevious=true when a task needs objects created by earlier tasks (connect after create)
3. Order tasks logically: delete before create, create before connect
4. Templates (SWOT, retrospective boards) stay in ONE CreateAgent task
5. Frames are containers, not connectors; use ConnectAgent only when the user asks to connect, link or draw lines between objects
6. For 100 or more objects, split creation into parallel CreateAgent tasks of at most 5 objects each with canRunInParallel=true, and give every task its own starting position so the groups never overlap

Examples:

User: "create 3 circles, connecting each other"
{"plan": [
  {"agent": "CreateAgent", "task": "Create 3 circle shapes", "reasoning": "Create circles first", "waitForPrevious": false},
  {"agent": "ConnectAgent", "task": "Connect the 3 circles in a chain (circle1 to circle2 to circle3)", "reasoning": "Needs circle IDs", "waitForPrevious": true}
], "summary": "I'll create 3 circles and connect them in a chain"}

User: "delete everything and create 3 circles"
{"plan": [
  {"agent": "DeleteAgent", "task": "Delete all objects", "reasoning": "Clear the board first", "waitForPrevious": false},
  {"agent": "CreateAgent", "task": "Create 3 circle shapes", "reasoning": "Create after deletion", "waitForPrevious": false}
], "summary": "I'll clear the board and create 3 circles"}

User: "create 100 circles"
{"plan": [
  {"agent": "CreateAgent", "task": "Create 5 circles starting at x=100, y=100", "reasoning": "Parallel group 1", "waitForPrevious": false, "canRunInParallel": true},
  {"agent": "CreateAgent", "task": "Create 5 circles starting at x=100, y=220", "reasoning": "Parallel group 2", "waitForPrevious": false, "canRunInParallel": true}
], "summary": "I'll create 100 circles in parallel groups"}
(continue with 20 groups in total, each at its own y)

User: "how many yellow sticky notes"
{"plan": [
  {"agent": "AnalyzeAgent", "task": "Count yellow sticky notes", "reasoning": "Counting task", "waitForPrevious": false}
], "summary": "I'll count the yellow sticky notes"}

Always respond with valid JSON in this format."""


# =============================================================================
# Planning
# =============================================================================


async def create_execution_plan(
    backend: LLMBackend,
    user_message: str,
    context: str,
) -> ExecutionPlan:
    """Ask the supervisor for an execution plan.

    Raises:
        ExecutionPlanError: If the reply is not a plan or names an unknown
            agent. Never retried.
        LLMError: If the completion call itself fails.
    """
    messages: list[Message] = [
        {"role": "system", "content": SUPERVISOR_PROMPT},
        {"role": "system", "content": f"Current board state:\n{context}"},
        {"role": "user", "content": user_message},
    ]
    try:
        reply = await backend.complete_json(messages, config=SUPERVISOR_CONFIG)
    except InvalidResponseError as e:
        raise ExecutionPlanError(f"Supervisor returned invalid JSON: {e}") from e

    try:
        plan = ExecutionPlan.model_validate(reply)
    except ValidationError as e:
        raise ExecutionPlanError(f"Invalid plan structure from supervisor: {e}") from e

    if unknown := sorted({task.agent for task in plan.plan} - set(WORKER_AGENTS)):
        raise ExecutionPlanError(f"Plan names unknown agents: {', '.join(unknown)}")

    logger.info(f"Supervisor planned {len(plan.plan)} tasks: {plan.summary}")
    for i, task in enumerate(plan.plan):
        logger.debug(
            f"  [{i}] {task.agent}: {task.task} "
            f"(wait={task.wait_for_previous}, parallel={task.can_run_in_parallel})"
        )
    return plan


def partition_batches(tasks: list[Task]) -> list[list[Task]]:
    """Group tasks into sequential batches.

    Consecutive parallel tasks share a batch. A non-parallel task gets a
    batch of its own, and a waitForPrevious task always opens a new batch.
    """
    batches: list[list[Task]] = []
    current: list[Task] = []
    for task in tasks:
        joins = (
            current
            and not task.wait_for_previous
            and task.can_run_in_parallel
            and current[0].can_run_in_parallel
        )
        if current and not joins:
            batches.append(current)
            current = []
        current.append(task)
    if current:
        batches.append(current)
    return batches


# =============================================================================
# Execution
# =============================================================================


def _task_content(task: Task, context: str, previous: list[PriorResult]) -> str:
    content = f"Current board state:\n{context}\n\nYour task: {task.task}"
    if task.wait_for_previous and previous and (created := previous[-1].created_ids):
        content += f"\n\nNewly created object IDs from previous task: {', '.join(created)}"
        content += "\nUse these IDs for your task."
    return content


async def execute_task(
    backend: LLMBackend,
    task: Task,
    board: BoardState,
    context: str,
    previous: list[PriorResult] | None = None,
) -> AgentResult:
    """Run one worker agent on one task.

    Ids created by the most recent prior task are injected when the task
    waits for previous results.
    """
    if (agent := WORKER_AGENTS.get(task.agent)) is None:
        raise ExecutionPlanError(f"Unknown agent: {task.agent}")

    logger.info(f"{agent.name} executing: {task.task}")
    result = await run_agent(backend, agent, _task_content(task, context, previous or []), board)
    result.task = task.task
    logger.info(f"{agent.name} returned {len(result.tool_calls)} tool calls")
    return result


_CREATE_COUNT = re.compile(r"Create \d+ (\w+)")


def _progress_event(batch: list[Task], results: list[AgentResult], step: int, total: int) -> ProgressEvent | None:
    """Progress is reported only for parallel creation batches."""
    if len(batch) < 2 or batch[0].agent != CREATE_AGENT.name:
        return None
    batch_calls = [call for result in results for call in result.tool_calls]
    actions = strip_analysis(batch_calls)
    if not actions:
        return None
    object_type = match.group(1) if (match := _CREATE_COUNT.search(batch[0].task)) else "objects"
    return ProgressEvent(
        step=step,
        total_steps=total,
        task=f"Creating {len(batch_calls)} {object_type} ({len(batch)} parallel agents)",
        actions=actions,
        message=f"Created {len(batch_calls)} {object_type} using {len(batch)} parallel agents",
        batch_size=len(batch),
    )


async def _notify(progress: ProgressCallback, event: ProgressEvent) -> None:
    outcome = progress(event)
    if inspect.isawaitable(outcome):
        await outcome


def _final_summary(results: list[AgentResult], plan_summary: str) -> str:
    narratives = [r.message for r in results if r.agent_name == ANALYZE_AGENT.name and r.message]
    if narratives:
        return " ".join(narratives)
    return plan_summary or DEFAULT_SUMMARY


async def _run_batches(
    backend: LLMBackend,
    tasks: list[Task],
    board: BoardState,
    context: str,
    previous: list[PriorResult],
    *,
    summary: str,
    completed_steps: int,
    total_steps: int,
    progress: ProgressCallback | None,
) -> OrchestrationResult:
    batches = partition_batches(tasks)
    logger.info(f"Grouped {len(tasks)} tasks into {len(batches)} batches")

    results: list[AgentResult] = []
    prior = list(previous)
    step = completed_steps
    progress_sent = False
    parallel = len(batches) > 1 or (len(batches) == 1 and len(batches[0]) > 1)

    for index, batch in enumerate(batches):
        if index > 0 and any(task.wait_for_previous for task in batch):
            remaining = tasks[step - completed_steps :]
            logger.info(
                f"Batch {index + 1} needs results from batch {index}; pausing with "
                f"{len(remaining)} remaining tasks"
            )
            return OrchestrationResult(
                tool_calls=strip_analysis([c for r in results for c in r.tool_calls]),
                summary=summary,
                results=results,
                needs_follow_up=True,
                continuation=ContinuationToken(
                    remaining_tasks=remaining,
                    previous_results=prior,
                    summary=summary,
                    completed_steps=step,
                    total_steps=total_steps,
                ),
                progress_sent=progress_sent,
                parallel_batches_used=parallel,
            )

        logger.info(f"Executing batch {index + 1}/{len(batches)} with {len(batch)} task(s)")
        # Any failure cancels the rest of the batch; outputs keep task order
        snapshot = list(prior)
        try:
            async with asyncio.TaskGroup() as group:
                running = [
                    group.create_task(execute_task(backend, task, board, context, snapshot))
                    for task in batch
                ]
        except ExceptionGroup as failure:
            logger.error(f"Batch {index + 1} failed; cancelled its remaining tasks")
            raise failure.exceptions[0] from None
        batch_results = [done.result() for done in running]
        results.extend(batch_results)
        prior.extend(PriorResult.from_agent_result(r) for r in batch_results)
        step += len(batch)

        if progress is not None and (event := _progress_event(batch, batch_results, step, total_steps)):
            await _notify(progress, event)
            progress_sent = True

    logger.info(f"Orchestration complete: {len(results)} tasks")
    return OrchestrationResult(
        tool_calls=strip_analysis([c for r in results for c in r.tool_calls]),
        summary=_final_summary(results, summary),
        results=results,
        progress_sent=progress_sent,
        parallel_batches_used=parallel,
    )


async def orchestrate_agents(
    backend: LLMBackend,
    user_message: str,
    board: BoardState,
    context: str | None = None,
    progress: ProgressCallback | None = None,
    supervisor_backend: LLMBackend | None = None,
) -> OrchestrationResult:
    """Plan a command with the supervisor and run the plan.

    Args:
        backend: Backend for worker agents.
        user_message: Raw user command.
        board: Board snapshot shared read-only by every task.
        context: Rendered board context (built from `board` when omitted).
        progress: Optional sync or async callback for parallel creation batches.
        supervisor_backend: Backend for the planning call (defaults to `backend`).

    Returns:
        OrchestrationResult; paused results carry a continuation token.

    Raises:
        ExecutionPlanError: If the plan is malformed.
        LLMError: If a completion call fails.
    """
    context = context if context is not None else build_board_context(board)
    plan = await create_execution_plan(supervisor_backend or backend, user_message, context)
    result = await _run_batches(
        backend,
        plan.plan,
        board,
        context,
        [],
        summary=plan.summary,
        completed_steps=0,
        total_steps=len(plan.plan),
        progress=progress,
    )
    result.plan = plan
    return result


async def continue_orchestration(
    backend: LLMBackend,
    token: ContinuationToken,
    board: BoardState,
    context: str | None = None,
    created_ids: list[str] | None = None,
    progress: ProgressCallback | None = None,
) -> OrchestrationResult:
    """Resume a paused orchestration.

    The first remaining batch runs immediately; a later dependent batch
    pauses again, so a run may be resumed any number of times.

    Args:
        backend: Backend for worker agents.
        token: Continuation token from the paused result.
        board: Board snapshot after the caller applied earlier operations.
        context: Rendered board context (built from `board` when omitted).
        created_ids: Object ids the document layer assigned to the objects
            created by the previous batch.
        progress: Optional sync or async progress callback.
    """
    if created_ids:
        token = token.with_created_ids(created_ids)
    context = context if context is not None else build_board_context(board)
    logger.info(f"Continuing orchestration with {len(token.remaining_tasks)} remaining tasks")
    return await _run_batches(
        backend,
        token.remaining_tasks,
        board,
        context,
        token.previous_results,
        summary=token.summary,
        completed_steps=token.completed_steps,
        total_steps=token.total_steps or len(token.remaining_tasks),
        progress=progress,
    )


__all__ = [
    "SUPERVISOR_PROMPT",
    "SUPERVISOR_CONFIG",
    "ProgressCallback",
    "create_execution_plan",
    "partition_batches",
    "execute_task",
    "orchestrate_agents",
    "continue_orchestration",
]
