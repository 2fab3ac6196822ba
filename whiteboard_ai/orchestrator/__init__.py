"""Supervisor planning and batched worker-agent execution."""

from .lib import (
    SUPERVISOR_CONFIG,
    SUPERVISOR_PROMPT,
    ProgressCallback,
    continue_orchestration,
    create_execution_plan,
    execute_task,
    orchestrate_agents,
    partition_batches,
)
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

__all__ = [
    # Models
    "Task",
    "ExecutionPlan",
    "ExecutionPlanError",
    "PriorResult",
    "ContinuationToken",
    "ProgressEvent",
    "OrchestrationResult",
    "strip_analysis",
    # Planning
    "SUPERVISOR_PROMPT",
    "SUPERVISOR_CONFIG",
    "create_execution_plan",
    "partition_batches",
    # Execution
    "ProgressCallback",
    "execute_task",
    "orchestrate_agents",
    "continue_orchestration",
]
