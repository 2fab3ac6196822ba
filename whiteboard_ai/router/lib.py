"""Command router: picks the cheapest execution tier for a command.

Tiers, fastest first:
- intent: one classifier call, then direct execution
- complex: one reasoning call for domain/spatial structures
- mini: one narrow mini-agent call
- single: one worker agent, no plan
- orchestrate: supervisor plan plus batched worker agents

Routing is a pure function of the text. Rules are kept in one ordered
table; the first rule that returns a decision wins.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..agents import (
    ANALYZE_AGENT,
    CREATE_AGENT,
    DELETE_AGENT,
    MODIFY_AGENT,
    ORGANIZE_AGENT,
    AgentSpec,
    detect_mini_agent,
    needs_complex_supervisor,
)

logger = logging.getLogger(__name__)

LARGE_BATCH_THRESHOLD = 100


class Tier(str, Enum):
    """Execution tiers, in escalation order."""

    INTENT = "intent"
    COMPLEX = "complex"
    MINI = "mini"
    SINGLE = "single"
    ORCHESTRATE = "orchestrate"


@dataclass(frozen=True)
class RouteDecision:
    """Selected tier, the agent for mini/single tiers, and why."""

    tier: Tier
    reason: str
    agent: AgentSpec | None = None

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "agent": self.agent.name if self.agent else None,
            "reason": self.reason,
        }


# =============================================================================
# Predicates
# =============================================================================

_CREATION_COMMAND = re.compile(r"^\s*(create|add|make|draw|generate)\b", re.IGNORECASE)

_MULTI_STEP_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Create plus connect
        r"create.*connected",
        r"create.*with.*line",
        r"create.*with.*connector",
        r"draw.*connected",
        # Clear then create
        r"delete.*and.*create",
        r"clear.*and.*create",
        r"remove.*and.*create",
        r"delete.*then.*create",
        r"clear.*then.*create",
        # Templates
        r"swot",
        r"retrospective",
        r"retro.*board",
        r"journey.*map",
        # Create plus layout
        r"create.*and.*arrange",
        r"create.*and.*space",
        # 100+ objects
        r"create\s+(10[0-9]|1[1-9][0-9]|[2-9][0-9][0-9]|[0-9]{4,})",
    )
]


def is_creation_command(message: str) -> bool:
    return bool(_CREATION_COMMAND.search(message))


def requires_orchestration(message: str) -> bool:
    """Whether the command needs a supervisor plan.

    "create X and color Y" is deliberately not a pattern: the classifier
    handles it as one CREATE with a color.
    """
    return any(pattern.search(message) for pattern in _MULTI_STEP_PATTERNS)


_SINGLE_CREATE = re.compile(r"^(create|add|draw|make)\s+\d+|^(create|add)\s+(a |an |one )?[a-z]+")
_SINGLE_COUNT = re.compile(r"^(create|add|draw|make)\s+(\d+)")
_SINGLE_MODIFY = re.compile(r"^(move|resize|rotate|change|update)")
_BULK_COLOR = re.compile(r"(color|make).*all.*(red|blue|green|yellow|orange|pink|purple)")
_SINGLE_DELETE = re.compile(r"^(delete|remove|clear)")
_SINGLE_ORGANIZE = re.compile(r"arrange|space|organize|grid")
_SINGLE_ANALYZE = re.compile(r"^(how many|count|analyze|what|show|list)")
_AND = re.compile(r"\s+and\s+")


def detect_single_worker_agent(message: str) -> tuple[AgentSpec, str] | None:
    """Pick one worker agent for a command without sequencing words."""
    lower = message.lower()

    if _SINGLE_CREATE.search(lower):
        if match := _SINGLE_COUNT.search(lower):
            count = int(match.group(2))
            if count < LARGE_BATCH_THRESHOLD:
                return CREATE_AGENT, f"Simple creation: {count} objects"
        else:
            return CREATE_AGENT, "Single object creation"

    if _SINGLE_MODIFY.search(lower) and not _AND.search(lower):
        return MODIFY_AGENT, "Simple modification"
    if _BULK_COLOR.search(lower):
        return MODIFY_AGENT, "Bulk color change"
    if _SINGLE_DELETE.search(lower) and not _AND.search(lower):
        return DELETE_AGENT, "Simple deletion"
    if _SINGLE_ORGANIZE.search(lower) and "create" not in lower:
        return ORGANIZE_AGENT, "Simple organization"
    if _SINGLE_ANALYZE.search(lower):
        return ANALYZE_AGENT, "Simple analysis"
    return None


# =============================================================================
# Rule table
# =============================================================================

Rule = Callable[[str, bool, bool], RouteDecision | None]


def _intent_rule(message: str, has_selection: bool, use_intent_classifier: bool) -> RouteDecision | None:
    # Creation commands always reach the classifier, even when they look
    # multi-step, so "create X with Y color" is never routed to color changes
    if use_intent_classifier and (is_creation_command(message) or not requires_orchestration(message)):
        return RouteDecision(Tier.INTENT, "Using intent classifier for direct execution")
    return None


def _complex_rule(message: str, has_selection: bool, use_intent_classifier: bool) -> RouteDecision | None:
    if needs_complex_supervisor(message):
        return RouteDecision(Tier.COMPLEX, "Complex command requiring domain knowledge and spatial reasoning")
    return None


def _mini_rule(message: str, has_selection: bool, use_intent_classifier: bool) -> RouteDecision | None:
    if agent := detect_mini_agent(message, has_selection):
        return RouteDecision(Tier.MINI, f"Mini-agent: {agent.name}", agent)
    return None


def _orchestrate_rule(message: str, has_selection: bool, use_intent_classifier: bool) -> RouteDecision | None:
    if requires_orchestration(message):
        return RouteDecision(Tier.ORCHESTRATE, "Multi-step operation detected")
    return None


def _single_rule(message: str, has_selection: bool, use_intent_classifier: bool) -> RouteDecision | None:
    if detected := detect_single_worker_agent(message):
        agent, reason = detected
        return RouteDecision(Tier.SINGLE, reason, agent)
    return None


ROUTE_RULES: tuple[Rule, ...] = (
    _intent_rule,
    _complex_rule,
    _mini_rule,
    _orchestrate_rule,
    _single_rule,
)

DEFAULT_DECISION = RouteDecision(Tier.ORCHESTRATE, "No fast path match, using orchestrator")


def route_command(
    message: str,
    has_selection: bool = False,
    use_intent_classifier: bool = True,
) -> RouteDecision:
    """Route a command to an execution tier. Never calls a model."""
    decision = next(
        (d for rule in ROUTE_RULES if (d := rule(message, has_selection, use_intent_classifier))),
        DEFAULT_DECISION,
    )
    logger.info(f"Routed '{message}' to {decision.tier.value}: {decision.reason}")
    return decision


__all__ = [
    "Tier",
    "RouteDecision",
    "Rule",
    "ROUTE_RULES",
    "DEFAULT_DECISION",
    "LARGE_BATCH_THRESHOLD",
    "is_creation_command",
    "requires_orchestration",
    "detect_single_worker_agent",
    "route_command",
]
