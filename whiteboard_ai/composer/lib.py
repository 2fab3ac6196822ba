"""Creative composer: planner call followed by the layout engine.

The planner model emits exactly one `createPlan` call describing what to
draw. Everything after that is deterministic: the plan is validated,
handed to the layout engine with a (0, 0) anchor and explicit positions,
and the engine's requests are returned unchanged. The consumer translates
the whole batch into free space as one unit.
"""

import json
import logging
import time
from typing import Any

from pydantic import ValidationError

from ..board import AgentResult, FrameInfo
from ..layout import plan_to_tool_calls
from ..llm import CompletionResult, GenerationConfig, LLMBackend, Message
from ..plan import CREATE_PLAN_TOOL, CompositionPlan, validate_plan

logger = logging.getLogger(__name__)

AGENT_NAME = "CreativeComposer"
PLAN_TOOL_NAME = CREATE_PLAN_TOOL["function"]["name"]
PLANNER_CONFIG = GenerationConfig(temperature=0.4)

PLANNER_PROMPT = """You are the Planner for a collaborative whiteboard. Your ONLY job is to call the createPlan tool with a composition plan.

**Figures (cat, robot, person, animal, vehicle, ...):** use layout="freeform" and give x and y (pixels, top-left origin) for EVERY child. Work out where each part goes, then output that placement. Never omit x,y under freeform.

**Everything else (kanban, flowchart, grid, ...):** omit x,y; the layout engine computes positions.

**Node types:**
- sticky: colored card with text (ideas, tasks, items)
- shape: geometric shape with optional label (rect, circle, triangle, star)
- text: plain floating text (labels, titles)
- textBubble: text in a bordered box
- frame: titled container
- column: titled frame whose children are stacked inside
- group: invisible grouping, children laid out without a frame

**Layouts:**
- columns: side-by-side columns (kanban, retro boards)
- stack_vertical: top to bottom (buildings, lists)
- stack_horizontal: left to right (pipelines)
- grid: rows x columns (dashboards, SWOT)
- radial: around a center (mind maps)
- flow_horizontal: left to right with connectors (flowcharts)
- flow_vertical: top to bottom with connectors (org charts)
- freeform: you provide x,y for each child

**Colors:**
- Sticky: yellow, pink, blue, green, orange (or "random")
- Shape: red, blue, green, purple, orange, gray, lightGray, cyan, teal, indigo, pink, amber, lime, black, white, brown (or "random")

**Size hints (aspect):** square (default), wide (2:1), tall (1:2), tall_narrow (0.5:2), small (0.6x), large (1.5x).
Shape sizes: square=150x150, large=225x225, small=90x90, wide=300x150, tall_narrow=75x300.

**Connectors:** connectTo: "straight" or "curved" on a node connects it to the NEXT sibling.

**Branches:** a flowchart node may carry branch: { direction, steps } for an alternative path (e.g. "did not receive link" then "ERROR"). Use "down" under flow_horizontal and "right" or "left" under flow_vertical. Steps are chained from the node in order.

**Rules:**
1. ALWAYS call createPlan, never answer with text only
2. Pick the layout that best matches the request
3. Use meaningful text labels
4. Use colors to tell sections apart
5. Keep it reasonable: no 50-node plans for simple concepts
6. Kanban and retro boards: layout="columns" with column children holding stickies
7. Buildings and towers: layout="stack_vertical" with shape children
8. Flowcharts, processes, pipelines, workflows and steps: flow_horizontal or flow_vertical, with connectTo="straight" on EVERY node except the last
9. Mind maps: layout="radial" with the center node first
10. Dashboards and matrices: layout="grid"
11. wrapInFrame=true for structured layouts, false for figures
12. Freeform figures must not overlap: leave at least 20px between parts and account for each aspect's size

**Examples:**

"kanban board" -> createPlan({ title: "Kanban Board", layout: "columns", wrapInFrame: true, children: [
  { type: "column", title: "To Do", layout: "stack_vertical", children: [
    { type: "sticky", text: "Task 1", color: "yellow" }, { type: "sticky", text: "Task 2", color: "yellow" } ]},
  { type: "column", title: "In Progress", layout: "stack_vertical", children: [ { type: "sticky", text: "Task 3", color: "blue" } ]},
  { type: "column", title: "Done", layout: "stack_vertical", children: [] } ]})

"flowchart for user signup" -> createPlan({ title: "User Signup Flow", layout: "flow_horizontal", wrapInFrame: true, children: [
  { type: "shape", shape: "circle", text: "Start", color: "green", connectTo: "straight" },
  { type: "shape", shape: "rect", text: "Enter Email", color: "blue", connectTo: "straight",
    branch: { direction: "down", steps: [
      { type: "shape", shape: "rect", text: "invalid email", color: "amber" },
      { type: "shape", shape: "rect", text: "ERROR", color: "red" } ]} },
  { type: "shape", shape: "rect", text: "Verify Email", color: "blue", connectTo: "straight" },
  { type: "shape", shape: "circle", text: "Done", color: "green" } ]})

"mind map about productivity" -> createPlan({ title: "Productivity", layout: "radial", wrapInFrame: false, children: [
  { type: "shape", shape: "circle", text: "Productivity", color: "blue", aspect: "large" },
  { type: "sticky", text: "Focus", color: "pink" }, { type: "sticky", text: "Tools", color: "green" },
  { type: "sticky", text: "Habits", color: "orange" } ]})

"draw a cat" -> createPlan({ title: "Cat", layout: "freeform", wrapInFrame: false, children: [
  { type: "shape", shape: "triangle", text: "Ear Left", color: "orange", aspect: "small", x: 0, y: 0 },
  { type: "shape", shape: "triangle", text: "Ear Right", color: "orange", aspect: "small", x: 160, y: 0 },
  { type: "shape", shape: "circle", text: "Head", color: "orange", aspect: "large", x: 25, y: 50 },
  { type: "shape", shape: "rect", text: "Body", color: "orange", aspect: "wide", x: 0, y: 300 },
  { type: "shape", shape: "rect", text: "Leg Left", color: "orange", aspect: "tall_narrow", x: 30, y: 470 },
  { type: "shape", shape: "rect", text: "Leg Right", color: "orange", aspect: "tall_narrow", x: 195, y: 470 },
  { type: "shape", shape: "triangle", text: "Tail", color: "orange", x: 320, y: 300 } ]})"""


class CompositionError(Exception):
    """Raised when the planner does not produce a usable plan."""


def build_frame_context_instruction(frame_info: FrameInfo | None) -> str:
    """Extra planner instruction when composing inside an existing frame."""
    if frame_info is None:
        return ""
    return (
        f"\n\n**FRAME CONTEXT:** You are composing INSIDE an existing frame "
        f"({round(frame_info.width)}x{round(frame_info.height)}). The layout engine keeps "
        "objects within the frame bounds. Do NOT create an outer frame; output only the "
        "inner content."
    )


def build_planner_messages(
    user_message: str,
    creative_description: str | None = None,
    frame_info: FrameInfo | None = None,
) -> list[Message]:
    """System and user messages for the planner call."""
    content = f'Create the following on the whiteboard: "{user_message}"'
    if creative_description:
        content += f"\n\nContext: {creative_description}"
    content += build_frame_context_instruction(frame_info)
    return [
        {"role": "system", "content": PLANNER_PROMPT},
        {"role": "user", "content": content},
    ]


def parse_plan(result: CompletionResult) -> CompositionPlan:
    """Extract the composition plan from the planner's createPlan call.

    Raises:
        CompositionError: No createPlan call, unparseable arguments, or
            arguments that do not fit the plan model.
    """
    call = next((c for c in result.tool_calls if c.name == PLAN_TOOL_NAME), None)
    if call is None:
        logger.warning(f"Planner did not call {PLAN_TOOL_NAME}: {result.content!r}")
        raise CompositionError("Planner did not output a plan")

    try:
        arguments: Any = json.loads(call.raw_arguments)
    except json.JSONDecodeError as e:
        raise CompositionError("Planner returned invalid JSON") from e
    if not isinstance(arguments, dict):
        raise CompositionError("Planner returned a non-object plan")

    try:
        return CompositionPlan.model_validate(arguments)
    except ValidationError as e:
        raise CompositionError(f"Planner returned a malformed plan: {e}") from e


async def execute_creative_composer(
    backend: LLMBackend,
    user_message: str,
    creative_description: str | None = None,
    frame_info: FrameInfo | None = None,
) -> AgentResult:
    """Plan a composition with one model call and lay it out.

    Args:
        backend: Planner backend.
        user_message: Original user command.
        creative_description: Description extracted by the intent classifier.
        frame_info: Selected frame to compose inside, if any.

    Returns:
        AgentResult with requests plan_tc_0..plan_tc_n.

    Raises:
        CompositionError: If the planner output is unusable.
        LLMError: If the planner call fails.
    """
    logger.info(
        f"Composing '{user_message}' "
        f"(frame={frame_info.id if frame_info else 'none'}, "
        f"description={creative_description or 'none'})"
    )

    started = time.perf_counter()
    result = await backend.complete(
        build_planner_messages(user_message, creative_description, frame_info),
        tools=[CREATE_PLAN_TOOL],
        tool_choice=PLAN_TOOL_NAME,
        config=PLANNER_CONFIG,
    )
    plan_ms = (time.perf_counter() - started) * 1000

    plan = parse_plan(result)
    logger.info(
        f"Plan '{plan.title}' layout={plan.layout} with {len(plan.children)} "
        f"top-level children ({plan_ms:.0f}ms)"
    )
    for issue in validate_plan(plan):
        logger.warning(f"Plan issue at {issue.path}: {issue.message}")

    layout = plan_to_tool_calls(
        plan, anchor=(0, 0), frame_info=frame_info, use_explicit_positions=True
    )
    logger.info(f"Layout engine produced {len(layout.tool_calls)} requests")

    return AgentResult(
        agent_name=AGENT_NAME,
        tool_calls=layout.tool_calls,
        message=result.content or None,
        summary=layout.summary or f'Composed "{plan.title}" with {len(layout.tool_calls)} objects',
    )


__all__ = [
    "AGENT_NAME",
    "PLANNER_PROMPT",
    "PLANNER_CONFIG",
    "CompositionError",
    "build_frame_context_instruction",
    "build_planner_messages",
    "parse_plan",
    "execute_creative_composer",
]
