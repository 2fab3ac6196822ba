"""Complex supervisor for domain and spatial-reasoning commands.

Solar systems, food chains, org charts and "N labeled circles connected
in a row" need domain knowledge and spatial reasoning but no task
decomposition. One JSON-mode call returns an ad hoc action list that is
converted directly into operation requests.
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..board import AgentResult, BoardState, OperationName, ToolCall
from ..llm import GenerationConfig, InvalidResponseError, LLMBackend
from ..plan import ConnectorStyle

logger = logging.getLogger(__name__)

AGENT_NAME = "ComplexSupervisor"
COMPLEX_CONFIG = GenerationConfig(temperature=0.3, json_mode=True)
REQUEST_ID_PREFIX = "complex_"

SHAPE_ACTIONS = {
    "createCircle": "circle",
    "createRect": "rect",
    "createTriangle": "triangle",
    "createStar": "star",
}
CONNECTOR_ACTION = "createConnector"

COMPLEX_SUPERVISOR_PROMPT = """You are the Complex Supervisor for a collaborative whiteboard. You handle requests that need domain knowledge and spatial reasoning: solar systems, food chains, family trees, org charts, timelines, life cycles, and labeled shapes connected in a line or chain.

Think about what the structure looks like, which elements it needs, what each is labeled, and where each goes. Then respond with JSON only:

{
  "analysis": "short reasoning about the structure and its layout",
  "plan": [
    {"action": "createCircle", "params": {"x": 100, "y": 300, "width": 120, "height": 120, "color": "#F59E0B", "text": "Sun"}},
    {"action": "createCircle", "params": {"x": 300, "y": 300, "width": 40, "height": 40, "color": "#6B7280", "text": "Mercury"}},
    {"action": "createConnector", "params": {"fromIndex": 0, "toIndex": 1, "style": "straight"}}
  ],
  "summary": "one sentence describing what was created"
}

Actions:
- createCircle, createRect, createTriangle, createStar: params x, y, width, height, color (hex), text
- createConnector: params fromIndex, toIndex, style ("straight" or "curved")

Rules:
1. fromIndex/toIndex count ONLY the shapes you create, in plan order, starting at 0
2. Circles are positioned by their center, other shapes by their top-left corner
3. Linear layouts (rows, chains, sequences, timelines) share one y; trees and charts use levels with 150px or more between them
4. Leave at least 40px between shapes so labels stay readable
5. Size elements meaningfully when size carries information (a sun is larger than a planet)
6. Connect elements only where the structure implies a relation (predator to prey, parent to child, step to next step)
7. Use distinct hex colors for distinct categories"""

_DOMAIN_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"solar system",
        r"food chain",
        r"family tree",
        r"org(anization)? chart",
        r"timeline",
        r"life cycle",
        r"water cycle",
        r"carbon cycle",
        r"periodic table",
        r"phylogenetic tree",
        r"evolutionary tree",
    )
]
_LABELED_CIRCLES = re.compile(r"labeled.*circle|circle.*labeled")
_CONNECTED = re.compile(r"connected|connecting|line")
_LINEAR = re.compile(r"linear|sequence|chain|row")
_DIGIT = re.compile(r"\d")


def needs_complex_supervisor(command: str) -> bool:
    """Whether a command needs domain knowledge or spatial reasoning."""
    lower = command.lower()
    if any(pattern.search(lower) for pattern in _DOMAIN_PATTERNS):
        return True
    if _LABELED_CIRCLES.search(lower) and _CONNECTED.search(lower):
        return True
    return bool(_LINEAR.search(lower) and _CONNECTED.search(lower) and _DIGIT.search(lower))


class ComplexStep(BaseModel):
    """One action in the complex supervisor's plan."""

    action: str
    params: dict[str, Any] = Field(default_factory=dict)


class ComplexPlan(BaseModel):
    """JSON reply of the complex supervisor."""

    analysis: str = ""
    plan: list[ComplexStep] = Field(default_factory=list)
    summary: str = ""


def _connector_endpoints(
    params: dict[str, Any], created: list[str], board: BoardState
) -> tuple[str, str] | None:
    """Resolve connector indexes against created shapes, then board objects."""
    try:
        from_index = int(params["fromIndex"])
        to_index = int(params["toIndex"])
    except (KeyError, TypeError, ValueError):
        return None
    if from_index < 0 or to_index < 0:
        return None
    if from_index < len(created) and to_index < len(created):
        return created[from_index], created[to_index]
    if from_index < len(board.objects) and to_index < len(board.objects):
        return board.objects[from_index].id, board.objects[to_index].id
    return None


def plan_to_requests(plan: ComplexPlan, board: BoardState) -> list[ToolCall]:
    """Convert the action list into operation requests.

    Shape requests get ids complex_<n>; connectors reference those ids.
    Unknown actions and unresolvable connectors are skipped with a warning.
    """
    requests: list[ToolCall] = []
    created: list[str] = []

    for step in plan.plan:
        request_id = f"{REQUEST_ID_PREFIX}{len(requests)}"
        if step.action in SHAPE_ACTIONS:
            requests.append(
                ToolCall(
                    id=request_id,
                    name=OperationName.CREATE_SHAPE.value,
                    arguments={**step.params, "type": SHAPE_ACTIONS[step.action]},
                )
            )
            created.append(request_id)
        elif step.action == CONNECTOR_ACTION:
            endpoints = _connector_endpoints(step.params, created, board)
            if endpoints is None:
                logger.warning(
                    f"Skipping connector {step.params.get('fromIndex')} -> "
                    f"{step.params.get('toIndex')}: index out of range"
                )
                continue
            style = step.params.get("style")
            requests.append(
                ToolCall(
                    id=request_id,
                    name=OperationName.CREATE_CONNECTOR.value,
                    arguments={
                        "fromId": endpoints[0],
                        "toId": endpoints[1],
                        "style": style if style in (s.value for s in ConnectorStyle) else "straight",
                    },
                )
            )
        else:
            logger.warning(f"Skipping unknown complex action '{step.action}'")
    return requests


async def execute_complex_supervisor(
    backend: LLMBackend,
    user_message: str,
    board: BoardState,
    context: str,
) -> AgentResult:
    """Plan and convert a domain/spatial command with one JSON call.

    Raises:
        InvalidResponseError: If the reply does not fit the plan shape.
        LLMError: If the completion call fails.
    """
    logger.info(f"Complex supervisor handling '{user_message}'")
    reply = await backend.complete_json(
        [
            {"role": "system", "content": COMPLEX_SUPERVISOR_PROMPT},
            {"role": "user", "content": f"Command: {user_message}\n\nCurrent board state:\n{context}"},
        ],
        config=COMPLEX_CONFIG,
    )
    try:
        plan = ComplexPlan.model_validate(reply)
    except ValidationError as e:
        raise InvalidResponseError(f"Complex supervisor returned a malformed plan: {e}") from e

    requests = plan_to_requests(plan, board)
    logger.info(f"Complex supervisor produced {len(requests)} requests from {len(plan.plan)} actions")

    return AgentResult(
        agent_name=AGENT_NAME,
        tool_calls=requests,
        message=plan.summary or None,
        summary=plan.summary,
        analysis=plan.analysis or None,
    )


__all__ = [
    "COMPLEX_SUPERVISOR_PROMPT",
    "COMPLEX_CONFIG",
    "ComplexStep",
    "ComplexPlan",
    "needs_complex_supervisor",
    "plan_to_requests",
    "execute_complex_supervisor",
]
