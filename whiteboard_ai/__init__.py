"""whiteboard-ai: turns whiteboard commands into board operation requests."""

from .board import AgentResult, BoardObject, BoardState, FrameInfo, OperationName, ToolCall
from .dispatcher import Backends, CommandDispatcher, CommandResult, dispatch_command
from .layout import LayoutResult, plan_to_tool_calls
from .orchestrator import ContinuationToken, ExecutionPlanError
from .plan import CompositionPlan, PlanNode
from .router import RouteDecision, Tier, route_command

__all__ = [
    # Board
    "BoardObject",
    "BoardState",
    "FrameInfo",
    "OperationName",
    "ToolCall",
    "AgentResult",
    # Dispatch
    "Backends",
    "CommandDispatcher",
    "CommandResult",
    "dispatch_command",
    "ContinuationToken",
    "ExecutionPlanError",
    # Routing
    "Tier",
    "RouteDecision",
    "route_command",
    # Composition
    "CompositionPlan",
    "PlanNode",
    "LayoutResult",
    "plan_to_tool_calls",
]
