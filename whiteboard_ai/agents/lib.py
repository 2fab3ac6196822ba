"""Agent runner shared by the mini, single-agent and orchestration tiers.

One completion call against the agent's narrow tool set. When the model
asks for `analyzeObjects`, the counts are computed locally from the board
snapshot and a second call turns them into narrative text.
"""

import json
import logging
import time

from ..board import AgentResult, BoardState, OperationName, ToolCall, analyze_objects
from ..llm import CompletionResult, GenerationConfig, LLMBackend, Message
from .registry import AgentSpec

logger = logging.getLogger(__name__)

QUEUED_TOOL_RESULT = json.dumps({"status": "queued"})


def _tool_result_messages(result: CompletionResult, board: BoardState) -> list[Message]:
    """One tool turn per call: real counts for analyses, an ack for the rest."""
    messages: list[Message] = []
    for call in result.tool_calls:
        if call.name == OperationName.ANALYZE_OBJECTS.value:
            object_ids = call.arguments.get("objectIds") or []
            analysis = analyze_objects(object_ids, board)
            logger.info(
                f"Analyzed {analysis.total_objects} objects locally: {analysis.format_breakdown()}"
            )
            content = analysis.to_tool_payload()
        else:
            content = QUEUED_TOOL_RESULT
        messages.append({"role": "tool", "tool_call_id": call.id, "content": content})
    return messages


def _has_analysis(result: CompletionResult) -> bool:
    return any(call.name == OperationName.ANALYZE_OBJECTS.value for call in result.tool_calls)


async def run_agent(
    backend: LLMBackend,
    agent: AgentSpec,
    user_content: str,
    board: BoardState,
) -> AgentResult:
    """Run one agent turn, resolving analysis requests locally.

    Args:
        backend: Completion backend.
        agent: Registry entry supplying prompt, tools and temperature.
        user_content: Fully rendered user message (board context and task).
        board: Board snapshot used for local analysis.

    Returns:
        AgentResult with the model's requests in order, including any
        analyzeObjects request (callers strip those from final output).

    Raises:
        LLMError: If a completion call fails.
    """
    config = GenerationConfig(temperature=agent.temperature)
    messages: list[Message] = [
        {"role": "system", "content": agent.prompt},
        {"role": "user", "content": user_content},
    ]

    started = time.perf_counter()
    result = await backend.complete(messages, tools=agent.tools, tool_choice="auto", config=config)
    logger.info(
        f"{agent.name} responded in {(time.perf_counter() - started) * 1000:.0f}ms "
        f"with {len(result.tool_calls)} tool calls"
    )

    message = result.content or None
    if _has_analysis(result):
        followup = await backend.complete(
            [*messages, result.as_message(), *_tool_result_messages(result, board)],
            tools=agent.tools,
            config=config,
        )
        if followup.content:
            message = followup.content

    tool_calls = [
        ToolCall(id=call.id, name=call.name, arguments=call.arguments)
        for call in result.tool_calls
    ]
    for call in tool_calls:
        logger.debug(f"{agent.name} -> {call.name} {call.arguments}")

    return AgentResult(
        agent_name=agent.name,
        tool_calls=tool_calls,
        message=message,
        summary=message or f"{agent.name} completed",
    )


async def execute_mini_agent(
    backend: LLMBackend,
    agent: AgentSpec,
    user_message: str,
    board: BoardState,
    context: str,
) -> AgentResult:
    """Run a mini-agent against the command and rendered board context."""
    logger.info(f"Mini-agent {agent.name} handling '{user_message}'")
    return await run_agent(backend, agent, f"Board state:\n{context}\n\nTask: {user_message}", board)


async def execute_single_agent(
    backend: LLMBackend,
    agent: AgentSpec,
    user_message: str,
    board: BoardState,
    context: str,
) -> AgentResult:
    """Run one worker agent directly on the command, without a plan."""
    logger.info(f"Single agent {agent.name} handling '{user_message}'")
    return await run_agent(
        backend, agent, f"Current board state:\n{context}\n\nYour task: {user_message}", board
    )


__all__ = [
    "QUEUED_TOOL_RESULT",
    "run_agent",
    "execute_mini_agent",
    "execute_single_agent",
]
