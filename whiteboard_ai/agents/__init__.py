"""Mini-agents, worker agents and the complex supervisor."""

from .complex import (
    COMPLEX_SUPERVISOR_PROMPT,
    ComplexPlan,
    ComplexStep,
    execute_complex_supervisor,
    needs_complex_supervisor,
    plan_to_requests,
)
from .lib import execute_mini_agent, execute_single_agent, run_agent
from .registry import (
    ANALYZE_AGENT,
    CONNECT_AGENT,
    CREATE_AGENT,
    DELETE_AGENT,
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
    MODIFY_AGENT,
    ORGANIZE_AGENT,
    WORKER_AGENTS,
    AgentSpec,
    detect_mini_agent,
    get_all_worker_tools,
    get_worker_agent,
)
from .tools import function_tool, tool_name

__all__ = [
    # Registry
    "AgentSpec",
    "MINI_AGENTS",
    "WORKER_AGENTS",
    "get_worker_agent",
    "get_all_worker_tools",
    "detect_mini_agent",
    # Mini-agents
    "MINI_CREATE",
    "MINI_COLOR",
    "MINI_MOVE",
    "MINI_DELETE",
    "MINI_ANALYZE",
    "MINI_RESIZE",
    "MINI_ROTATE",
    "MINI_TEXT",
    "MINI_FIT_FRAME",
    "MINI_ORGANIZE",
    "MINI_SWOT",
    # Worker agents
    "CREATE_AGENT",
    "CONNECT_AGENT",
    "MODIFY_AGENT",
    "DELETE_AGENT",
    "ORGANIZE_AGENT",
    "ANALYZE_AGENT",
    # Execution
    "run_agent",
    "execute_mini_agent",
    "execute_single_agent",
    # Complex supervisor
    "COMPLEX_SUPERVISOR_PROMPT",
    "ComplexStep",
    "ComplexPlan",
    "needs_complex_supervisor",
    "plan_to_requests",
    "execute_complex_supervisor",
    # Tools
    "function_tool",
    "tool_name",
]
