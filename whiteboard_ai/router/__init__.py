"""Command routing to execution tiers."""

from .lib import (
    DEFAULT_DECISION,
    LARGE_BATCH_THRESHOLD,
    ROUTE_RULES,
    RouteDecision,
    Rule,
    Tier,
    detect_single_worker_agent,
    is_creation_command,
    requires_orchestration,
    route_command,
)

__all__ = [
    # Types
    "Tier",
    "RouteDecision",
    "Rule",
    # Rules
    "ROUTE_RULES",
    "DEFAULT_DECISION",
    "LARGE_BATCH_THRESHOLD",
    "is_creation_command",
    "requires_orchestration",
    "detect_single_worker_agent",
    # Routing
    "route_command",
]
