"""Execution plans, continuation tokens and orchestration results."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from ..board import AgentResult, OperationName, ToolCall


class ExecutionPlanError(Exception):
    """The supervisor returned a plan that cannot be safely interpreted.

    Not recoverable: the command is not retried or downgraded.
    """


class Task(BaseModel):
    """One worker-agent assignment in an execution plan."""

    agent: str = Field(..., description="Worker agent name from the registry")
    task: str = Field(..., description="Instruction for the worker agent")
    reasoning: str = ""
    wait_for_previous: bool = Field(
        default=False,
        alias="waitForPrevious",
        description="Needs objects produced by earlier tasks",
    )
    can_run_in_parallel: bool = Field(
        default=False,
        alias="canRunInParallel",
        description="May run concurrently with neighbouring parallel tasks",
    )

    model_config = {"populate_by_name": True}


class ExecutionPlan(BaseModel):
    """Supervisor output: ordered tasks plus a user-facing summary."""

    plan: list[Task]
    summary: str = ""

    model_config = {"frozen": True}


class PriorResult(BaseModel):
    """What a completed task left behind for dependent tasks."""

    agent_name: str = Field(..., alias="agentName")
    task: str | None = None
    created_ids: list[str] = Field(default_factory=list, alias="createdIds")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_agent_result(cls, result: AgentResult) -> "PriorResult":
        return cls(agent_name=result.agent_name, task=result.task, created_ids=result.created_ids())


class ContinuationToken(BaseModel):
    """Everything needed to resume a paused orchestration.

    The orchestrator keeps no state between calls: the caller applies the
    operations produced so far, then hands this token back together with
    the ids the document layer assigned to the new objects.
    """

    remaining_tasks: list[Task] = Field(..., alias="remainingTasks")
    previous_results: list[PriorResult] = Field(default_factory=list, alias="previousResults")
    summary: str = ""
    completed_steps: int = Field(default=0, alias="completedSteps")
    total_steps: int = Field(default=0, alias="totalSteps")

    model_config = {"populate_by_name": True}

    def with_created_ids(self, created_ids: list[str]) -> "ContinuationToken":
        """Replace the ids reported by the most recent task with real object ids."""
        if not created_ids:
            return self
        previous = list(self.previous_results)
        if previous:
            previous[-1] = previous[-1].model_copy(update={"created_ids": list(created_ids)})
        else:
            previous.append(PriorResult(agent_name="client", created_ids=list(created_ids)))
        return self.model_copy(update={"previous_results": previous})


@dataclass
class ProgressEvent:
    """One progress notification for a parallel creation batch."""

    step: int
    total_steps: int
    task: str
    actions: list[ToolCall]
    message: str
    batch_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "progress",
            "step": self.step,
            "totalSteps": self.total_steps,
            "task": self.task,
            "actions": [action.to_dict() for action in self.actions],
            "message": self.message,
            "batchSize": self.batch_size,
            "parallelExecution": True,
        }


@dataclass
class OrchestrationResult:
    """Outcome of one orchestration or continuation call.

    Attributes:
        tool_calls: Operation requests in task order, analyses stripped.
        summary: Analysis narratives when any exist, else the plan summary.
        results: Per-task agent results, in task order.
        needs_follow_up: True when paused before a dependent batch.
        continuation: Token to resume with, set only when paused.
        plan: The supervisor plan (None for continuations).
        progress_sent: Whether any progress event was delivered.
        parallel_batches_used: Whether more than one task could run at once.
    """

    tool_calls: list[ToolCall] = field(default_factory=list)
    summary: str = ""
    results: list[AgentResult] = field(default_factory=list)
    needs_follow_up: bool = False
    continuation: ContinuationToken | None = None
    plan: ExecutionPlan | None = None
    progress_sent: bool = False
    parallel_batches_used: bool = False

    @property
    def remaining_tasks(self) -> list[Task]:
        return self.continuation.remaining_tasks if self.continuation else []


def strip_analysis(tool_calls: list[ToolCall]) -> list[ToolCall]:
    """Drop analyzeObjects requests; their outcome lives in the narrative."""
    return [call for call in tool_calls if call.name != OperationName.ANALYZE_OBJECTS.value]


__all__ = [
    "ExecutionPlanError",
    "Task",
    "ExecutionPlan",
    "PriorResult",
    "ContinuationToken",
    "ProgressEvent",
    "OrchestrationResult",
    "strip_analysis",
]
