"""Top-level command dispatcher.

Takes a command plus a board snapshot and returns the operation requests
for the document layer. The router picks a starting tier; when a tier
cannot handle the command (classification failed, the intent needs board
reasoning, a model reply was unusable) the dispatcher falls through to the
next tier in a fixed chain:

    intent -> mini -> complex -> single -> orchestrate

The chain is finite. Orchestration is terminal: its errors reach the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..agents import (
    AgentSpec,
    detect_mini_agent,
    execute_complex_supervisor,
    execute_mini_agent,
    execute_single_agent,
    needs_complex_supervisor,
)
from ..board import AgentResult, BoardState, FrameInfo, ToolCall, analyze_objects, build_board_context
from ..composer import CompositionError, execute_creative_composer
from ..config import EnvVar, get_environment
from ..intent import Intent, IntentOperation, classify_intent, execute_from_intent
from ..llm import LLMBackend, LLMError, create_role_backend
from ..orchestrator import (
    ContinuationToken,
    OrchestrationResult,
    ProgressCallback,
    continue_orchestration,
    orchestrate_agents,
    strip_analysis,
)
from ..router import RouteDecision, Tier, detect_single_worker_agent, requires_orchestration, route_command

logger = logging.getLogger(__name__)

TIER_CHAIN: tuple[Tier, ...] = (
    Tier.INTENT,
    Tier.MINI,
    Tier.COMPLEX,
    Tier.SINGLE,
    Tier.ORCHESTRATE,
)


# =============================================================================
# Types
# =============================================================================


@dataclass
class Backends:
    """One completion backend per pipeline role."""

    classifier: LLMBackend
    agent: LLMBackend
    planner: LLMBackend
    supervisor: LLMBackend
    complex: LLMBackend

    @classmethod
    def shared(cls, backend: LLMBackend) -> "Backends":
        """Use one backend for every role."""
        return cls(backend, backend, backend, backend, backend)

    @classmethod
    def from_environment(cls, **kwargs) -> "Backends":
        """Create each role's backend from its configured model."""
        return cls(
            classifier=create_role_backend("classifier", **kwargs),
            agent=create_role_backend("agent", **kwargs),
            planner=create_role_backend("planner", **kwargs),
            supervisor=create_role_backend("supervisor", **kwargs),
            complex=create_role_backend("complex", **kwargs),
        )


@dataclass
class CommandResult:
    """Command-level result handed back to the caller.

    Attributes:
        tool_calls: Operation requests to apply, analyses stripped.
        summary: User-facing description.
        tier: Tier that produced the result.
        agent_name: Agent or stage within the tier.
        needs_follow_up: True when orchestration paused for created ids.
        continuation: Token for `CommandDispatcher.resume`, set when paused.
    """

    tool_calls: list[ToolCall] = field(default_factory=list)
    summary: str = ""
    tier: Tier = Tier.ORCHESTRATE
    agent_name: str | None = None
    needs_follow_up: bool = False
    continuation: ContinuationToken | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON form: {toolCalls, summary, needsFollowUp, remainingTasks?}."""
        payload: dict[str, Any] = {
            "toolCalls": [call.to_dict() for call in self.tool_calls],
            "summary": self.summary,
            "needsFollowUp": self.needs_follow_up,
        }
        if self.continuation is not None:
            payload["remainingTasks"] = [
                task.model_dump(by_alias=True) for task in self.continuation.remaining_tasks
            ]
            payload["continuation"] = self.continuation.model_dump(by_alias=True)
        return payload


# =============================================================================
# Summaries
# =============================================================================

_OPERATION_VERBS = {
    IntentOperation.CHANGE_COLOR: "Recolored",
    IntentOperation.MOVE: "Moved",
    IntentOperation.RESIZE: "Resized",
    IntentOperation.ROTATE: "Rotated",
    IntentOperation.UPDATE: "Updated text on",
    IntentOperation.ARRANGE: "Arranged",
}

_KIND_NOUNS = {"sticky": "sticky note", "textBubble": "text bubble", "text": "text object"}


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def _intent_summary(intent: Intent, requests: list[ToolCall], board: BoardState) -> str:
    match intent.operation:
        case IntentOperation.CREATE:
            noun = intent.shape_type or _KIND_NOUNS.get(intent.object_type or "", intent.object_type or "object")
            return f"Created {_plural(intent.quantity or 1, noun)}"
        case IntentOperation.DELETE:
            count = sum(len(r.arguments.get("objectIds", [])) for r in requests)
            return f"Deleted {_plural(count, 'object')}"
        case IntentOperation.ANALYZE:
            if not requests:
                return "Found 0 objects"
            analysis = analyze_objects(requests[0].arguments.get("objectIds", []), board)
            if analysis.total_objects == 0:
                return "Found 0 objects"
            return f"Found {_plural(analysis.total_objects, 'object')}: {analysis.format_breakdown()}"
        case _:
            verb = _OPERATION_VERBS.get(intent.operation, "Updated")
            if intent.operation == IntentOperation.ARRANGE:
                count = sum(len(r.arguments.get("objectIds", [])) for r in requests)
            else:
                count = len(requests)
            return f"{verb} {_plural(count, 'object')}"


def _from_agent(result: AgentResult, tier: Tier) -> CommandResult:
    return CommandResult(
        tool_calls=strip_analysis(result.tool_calls),
        summary=result.summary or result.message or "",
        tier=tier,
        agent_name=result.agent_name,
    )


def _from_orchestration(result: OrchestrationResult) -> CommandResult:
    return CommandResult(
        tool_calls=result.tool_calls,
        summary=result.summary,
        tier=Tier.ORCHESTRATE,
        agent_name="Supervisor",
        needs_follow_up=result.needs_follow_up,
        continuation=result.continuation,
    )


def _handled(result: AgentResult) -> bool:
    return bool(result.tool_calls or result.message)


# =============================================================================
# Dispatcher
# =============================================================================


class CommandDispatcher:
    """Runs commands through the tier chain.

    Example:
        >>> dispatcher = CommandDispatcher(Backends.from_environment())
        >>> result = await dispatcher.dispatch("create 5 red circles", board)
        >>> result.to_dict()["toolCalls"]
    """

    def __init__(self, backends: Backends, use_intent_classifier: bool | None = None):
        self.backends = backends
        self.use_intent_classifier = get_environment(
            EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER, override=use_intent_classifier
        )

    async def dispatch(
        self,
        message: str,
        board: BoardState | None = None,
        progress: ProgressCallback | None = None,
    ) -> CommandResult:
        """Turn a command into operation requests.

        Args:
            message: Raw user command.
            board: Board snapshot with the current selection.
            progress: Optional callback for orchestration progress.

        Raises:
            ExecutionPlanError: If orchestration receives a malformed plan.
            LLMError: If the orchestration tier fails.
        """
        board = board or BoardState()
        context = build_board_context(board)
        decision = route_command(message, bool(board.selected_ids), self.use_intent_classifier)

        for tier in TIER_CHAIN[TIER_CHAIN.index(decision.tier) :]:
            if tier == Tier.ORCHESTRATE:
                break
            try:
                result = await self._attempt(tier, decision, message, board, context)
            except (LLMError, CompositionError) as e:
                logger.warning(f"Tier {tier.value} failed for '{message}': {e}; falling through")
                continue
            if result is not None:
                logger.info(f"Tier {tier.value} produced {len(result.tool_calls)} requests")
                return result
            logger.info(f"Tier {tier.value} passed on '{message}'")

        logger.info(f"Orchestrating '{message}'")
        orchestrated = await orchestrate_agents(
            self.backends.agent,
            message,
            board,
            context,
            progress=progress,
            supervisor_backend=self.backends.supervisor,
        )
        return _from_orchestration(orchestrated)

    async def resume(
        self,
        token: ContinuationToken,
        board: BoardState | None = None,
        created_ids: list[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> CommandResult:
        """Resume a paused orchestration once earlier requests were applied."""
        result = await continue_orchestration(
            self.backends.agent,
            token,
            board or BoardState(),
            created_ids=created_ids,
            progress=progress,
        )
        return _from_orchestration(result)

    async def _attempt(
        self,
        tier: Tier,
        decision: RouteDecision,
        message: str,
        board: BoardState,
        context: str,
    ) -> CommandResult | None:
        """Run one tier; None means the tier passed on the command."""
        match tier:
            case Tier.INTENT:
                return await self._run_intent(message, board)
            case Tier.MINI:
                agent = self._agent_for(tier, decision) or self._detect(tier, message, bool(board.selected_ids))
                if agent is None:
                    return None
                result = await execute_mini_agent(self.backends.agent, agent, message, board, context)
                return _from_agent(result, tier) if _handled(result) else None
            case Tier.COMPLEX:
                if decision.tier != Tier.COMPLEX and not needs_complex_supervisor(message):
                    return None
                result = await execute_complex_supervisor(self.backends.complex, message, board, context)
                return _from_agent(result, tier) if result.tool_calls else None
            case Tier.SINGLE:
                agent = self._agent_for(tier, decision) or self._detect(tier, message, bool(board.selected_ids))
                if agent is None:
                    return None
                result = await execute_single_agent(self.backends.agent, agent, message, board, context)
                return _from_agent(result, tier) if _handled(result) else None
        return None

    @staticmethod
    def _agent_for(tier: Tier, decision: RouteDecision) -> AgentSpec | None:
        return decision.agent if decision.tier == tier else None

    @staticmethod
    def _detect(tier: Tier, message: str, has_selection: bool) -> AgentSpec | None:
        # Sequencing commands that escalated past the classifier need a plan
        if requires_orchestration(message):
            return None
        if tier == Tier.MINI:
            return detect_mini_agent(message, has_selection)
        detected = detect_single_worker_agent(message)
        return detected[0] if detected else None

    async def _run_intent(self, message: str, board: BoardState) -> CommandResult | None:
        intent = await classify_intent(self.backends.classifier, message)
        if intent is None:
            return None

        if intent.operation == IntentOperation.CREATIVE:
            frame = board.selected_frame
            composed = await execute_creative_composer(
                self.backends.planner,
                message,
                intent.creative_description,
                FrameInfo.from_object(frame) if frame else None,
            )
            return _from_agent(composed, Tier.INTENT)

        requests = execute_from_intent(intent, board)
        if requests is None:
            return None
        return CommandResult(
            tool_calls=strip_analysis(requests),
            summary=_intent_summary(intent, requests, board),
            tier=Tier.INTENT,
            agent_name=f"Intent:{intent.operation.value}",
        )


async def dispatch_command(
    message: str,
    board: BoardState | None = None,
    backends: Backends | None = None,
    progress: ProgressCallback | None = None,
) -> CommandResult:
    """Convenience wrapper: dispatch one command with environment backends."""
    dispatcher = CommandDispatcher(backends or Backends.from_environment())
    return await dispatcher.dispatch(message, board, progress)


__all__ = [
    "TIER_CHAIN",
    "Backends",
    "CommandResult",
    "CommandDispatcher",
    "dispatch_command",
]
