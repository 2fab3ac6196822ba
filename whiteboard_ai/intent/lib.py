"""Intent classifier: one forced tool call that extracts a structured command.

Flow for "create 50 green stars":
1. The classifier returns operation=CREATE, shapeType=star, quantity=50, color=#10B981
2. Deterministic corrections fix known model mistakes
3. `execute_from_intent` emits one createShape request, no agent involved
"""

import logging
import time
from collections.abc import Sequence

from pydantic import ValidationError

from ..agents.tools import DIRECTIONS, function_tool
from ..llm import GenerationConfig, LLMBackend, LLMError
from ..plan import SHAPE_KINDS
from .corrections import DEFAULT_CORRECTIONS, Correction, apply_corrections
from .models import Intent, IntentOperation

logger = logging.getLogger(__name__)

INTENT_TOOL_NAME = "classifyIntent"
CLASSIFIER_CONFIG = GenerationConfig(temperature=0.1)

OBJECT_TYPES = ["sticky", "shape", "text", "textBubble", "frame", "connector", "mixed"]

INTENT_TOOL = function_tool(
    INTENT_TOOL_NAME,
    "Analyze a whiteboard command and extract structured parameters",
    {
        "operation": {
            "type": "string",
            "enum": [op.value for op in IntentOperation],
            "description": "Primary operation type",
        },
        "objectType": {"type": "string", "enum": OBJECT_TYPES, "description": "Type of object operated on"},
        "shapeType": {
            "type": "string",
            "enum": SHAPE_KINDS,
            "description": "Specific shape (only when objectType=shape)",
        },
        "quantity": {
            "type": "number",
            "description": 'Number of objects ("50 stars" = 50, "a circle" = 1, "7x2 grid" = 14)',
        },
        "rows": {"type": "number", "description": 'Grid rows if given ("7x2 grid" = 7)'},
        "columns": {"type": "number", "description": 'Grid columns if given ("7x2 grid" = 2)'},
        "color": {
            "type": "string",
            "description": 'Hex color (#EF4444), a color name, or "random" for varied colors',
        },
        "colors": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Per-object colors when several are named (3 red and 2 blue = 5 entries)",
        },
        "text": {"type": "string", "description": "Text content to create or write"},
        "coordinates": {
            "type": "object",
            "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
            "description": 'Explicit position ("at 100, 200")',
        },
        "dimensions": {
            "type": "object",
            "properties": {"width": {"type": "number"}, "height": {"type": "number"}},
            "description": 'Explicit size ("300x200")',
        },
        "rotation": {"type": "number", "description": 'Angle in degrees ("rotate 45 degrees" = 45)'},
        "direction": {"type": "string", "enum": DIRECTIONS, "description": "Movement direction"},
        "targetFilter": {
            "type": "object",
            "properties": {
                "type": {"type": "string", "description": 'Object type to target ("all circles")'},
                "shapeType": {"type": "string", "enum": SHAPE_KINDS},
                "color": {"type": "string", "description": 'Color filter ("red rectangles")'},
                "useSelection": {"type": "boolean", "description": "Target the selected objects"},
            },
            "description": "Selects existing objects for modify, delete and analyze",
        },
        "isMultiStep": {"type": "boolean", "description": "True if the command needs several dependent steps"},
        "steps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"operation": {"type": "string"}, "description": {"type": "string"}},
            },
            "description": "Individual steps when isMultiStep=true",
        },
        "method": {"type": "string", "enum": ["grid", "resize"], "description": "ARRANGE method"},
        "creativeDescription": {
            "type": "string",
            "description": "For CREATIVE: what the composition should contain",
        },
    },
    ["operation"],
)

INTENT_CLASSIFIER_PROMPT = """You classify whiteboard commands and extract their parameters. Always call classifyIntent.

COLORS (shapes always use hex):
red #EF4444, blue #3B82F6, green #10B981, yellow #EAB308, orange #F97316, pink #EC4899, purple #A855F7, gray #6B7280
Sticky notes may use names: yellow, pink, blue, green, orange.
"random colors" or "different colors" -> color="random".
Several named groups ("3 red and 2 blue circles") -> colors with one entry per object, quantity = total.

QUANTITY:
- "a circle" / "one circle" / "create stars" = 1; "some circles" = 3
- "7x2 grid" -> rows 7, columns 2, quantity 14
- "1 row 5 columns" -> rows 1, columns 5, quantity 5

OPERATIONS:
- CREATE: create/add/make/draw/generate + an object kind.
  "create 50 green stars" -> objectType=shape, shapeType=star, quantity=50, color=#10B981
  "make 5 yellow sticky notes" -> objectType=sticky, quantity=5, color=yellow
  "create 2 stars and color them green" is ONE CREATE with color, not multi-step.
- CREATIVE: a composed structure rather than N copies of one kind (kanban board, flowchart, mind map, retrospective, user journey, brainstorm layout). Put what it should contain in creativeDescription.
- UPDATE: write / update text / set text to. "write 'upcoming' in all pink notes" -> text=upcoming, targetFilter={type:sticky, color:pink}. "write" never means CREATE.
- CHANGE_COLOR: "color all circles red" -> targetFilter={type:circle}, color=#EF4444
- MOVE: move/shift/drag + direction or coordinates. Prefer direction.
- RESIZE: resize to explicit dimensions. Fitting a frame to its contents is FIT_FRAME_TO_CONTENTS.
- ROTATE: rotate/turn + angle.
- DELETE: delete/remove/clear. "delete all circles" -> targetFilter={type:circle}
- ARRANGE: arrange/organize/grid/space. method=resize when objects should also be resized to fit.
- ANALYZE: how many/count/analyze. Extract BOTH type and color: "how many pink stars" -> targetFilter={shapeType:star, color:pink}
- CONNECT: connect existing objects with lines.
- MULTI_STEP: independent operations in sequence, or creation plus connection ("create 3 circles connected by lines", "delete all rectangles and create 5 stars"). Set isMultiStep=true and list steps.
- CONVERSATION: greetings and questions that do not change the board.
- UNKNOWN: anything else.

TARGETING:
- "these", "this", "them", "those" -> targetFilter={useSelection:true}; ignore any object kind in the command.
- For shapes in targetFilter use shapeType (circle, rect, triangle, star); "sticky note"/"note" is type sticky.

RULES:
1. A stated quantity means CREATE, never a modification.
2. Extract every parameter that is mentioned.
3. FIT_FRAME_TO_CONTENTS, CONNECT and MULTI_STEP need board context; classify them and the router hands them to an agent."""


async def classify_intent(
    backend: LLMBackend,
    message: str,
    corrections: Sequence[Correction] = DEFAULT_CORRECTIONS,
) -> Intent | None:
    """Classify a command into an Intent.

    Args:
        backend: Completion backend, ideally a fast model.
        message: Raw user command.
        corrections: Post-classification correction stage.

    Returns:
        Corrected Intent, or None when classification failed. Failure is
        recoverable: the caller escalates to the next tier.
    """
    logger.info(f"Classifying intent: '{message}'")
    started = time.perf_counter()
    try:
        result = await backend.complete(
            [
                {"role": "system", "content": INTENT_CLASSIFIER_PROMPT},
                {"role": "user", "content": f'Analyze this command: "{message}"'},
            ],
            tools=[INTENT_TOOL],
            tool_choice=INTENT_TOOL_NAME,
            config=CLASSIFIER_CONFIG,
        )
    except LLMError as e:
        logger.warning(f"Intent classification failed: {e}")
        return None

    call = next((c for c in result.tool_calls if c.name == INTENT_TOOL_NAME), None)
    if call is None:
        logger.warning("No classification returned")
        return None

    try:
        intent = Intent.model_validate(call.arguments)
    except ValidationError as e:
        logger.warning(f"Classification did not validate: {e.error_count()} errors")
        return None

    intent = apply_corrections(intent, message, corrections)
    logger.info(
        f"Classified as {intent.operation.value} in {(time.perf_counter() - started) * 1000:.0f}ms"
    )
    logger.debug(f"Intent: {intent.model_dump(by_alias=True, exclude_none=True)}")
    return intent


__all__ = [
    "INTENT_TOOL",
    "INTENT_TOOL_NAME",
    "INTENT_CLASSIFIER_PROMPT",
    "CLASSIFIER_CONFIG",
    "classify_intent",
]
