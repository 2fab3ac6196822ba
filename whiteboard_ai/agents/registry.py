"""Mini-agent and worker-agent registries.

Each entry bundles a name, a fixed tool subset and a narrow prompt.
Mini-agents handle one simple operation with a tiny prompt; worker agents
are the units an execution plan is decomposed into.
"""

import re
from dataclasses import dataclass, field

from .tools import (
    ANALYZE_OBJECTS_TOOL,
    ARRANGE_AND_RESIZE_TOOL,
    ARRANGE_IN_GRID_TOOL,
    CHANGE_COLOR_TOOL,
    CREATE_CONNECTOR_TOOL,
    CREATE_FRAME_TOOL,
    CREATE_SHAPE_TOOL,
    CREATE_STICKY_NOTE_TOOL,
    CREATE_TEXT_BUBBLE_TOOL,
    CREATE_TEXT_TOOL,
    DELETE_OBJECT_TOOL,
    FIT_FRAME_TOOL,
    MINI_CREATE_TOOLS,
    MINI_MOVE_TOOL,
    MOVE_OBJECT_TOOL,
    RESIZE_OBJECT_TOOL,
    ROTATE_OBJECT_TOOL,
    SWOT_TOOL,
    UPDATE_TEXT_TOOL,
    Tool,
    tool_name,
)

MINI_TEMPERATURE = 0.1
WORKER_TEMPERATURE = 0.3


@dataclass(frozen=True)
class AgentSpec:
    """A narrow prompt plus the only tools the agent may call.

    Attributes:
        name: Registry name (e.g. "MiniColor", "CreateAgent").
        prompt: System prompt.
        tools: Function tools offered to the model.
        temperature: Sampling temperature for this agent's calls.
        description: One-line role description.
    """

    name: str
    prompt: str
    tools: list[Tool] = field(default_factory=list)
    temperature: float = WORKER_TEMPERATURE
    description: str = ""

    @property
    def tool_names(self) -> list[str]:
        return [tool_name(tool) for tool in self.tools]


# =============================================================================
# Mini-agents
# =============================================================================

MINI_CREATE = AgentSpec(
    name="MiniCreate",
    tools=MINI_CREATE_TOOLS,
    temperature=MINI_TEMPERATURE,
    prompt="""Create a SINGLE object.

- "frame" -> createFrame
- "circle/star/rectangle/triangle" -> createShape with that type
- "sticky note" -> createStickyNote
- "text bubble" -> createTextBubble
- "text" (plain text) -> createText
- Colors: convert named colors to hex: red="#EF4444", blue="#3B82F6", green="#10B981", purple="#A855F7", orange="#F97316", pink="#EC4899", yellow="#EAB308"
- For "random" or "different" colors pass a colors array
- If a frame is selected (see User Selection) and the user says "in/inside this frame", pass frameId

Examples:
- "add a frame" -> createFrame(title='Frame')
- "red circle" -> createShape(type='circle', color='#EF4444')
- "create a text bubble" -> createTextBubble(text='')
- Frame "frame123" selected, "create a star inside" -> createShape(type='star', frameId='frame123')""",
)

MINI_COLOR = AgentSpec(
    name="MiniColor",
    tools=[CHANGE_COLOR_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Change colors. Find matching objects in board state. Call changeColor for EACH one.

- "Color all circles red" -> changeColor for each circle with '#EF4444'
- "Make these blue" -> changeColor for each selected id with '#3B82F6'

Sticky colors: yellow/pink/blue/green/orange. Shapes: use hex (#3B82F6=blue, #EF4444=red, #10B981=green).""",
)

MINI_MOVE = AgentSpec(
    name="MiniMove",
    tools=[MINI_MOVE_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Move objects. Call moveObject for EACH object.

Prefer the direction parameter ("move right" -> direction='right'); the client moves by a share of the visible area.
Use x/y only for exact coordinates ("move to 500, 300" -> x=500, y=300).""",
)

MINI_DELETE = AgentSpec(
    name="MiniDelete",
    tools=[DELETE_OBJECT_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Delete objects. Find matching objects in board state. Make ONE deleteObject call with ALL ids as an array.

For "delete all", "clear all" or "delete everything" pass EVERY object id from the board state, whatever its type.

- "Delete all circles" -> deleteObject(objectIds: [all circle ids])
- "Remove these" -> deleteObject(objectIds: [selected ids])

Never call deleteObject more than once.""",
)

MINI_ANALYZE = AgentSpec(
    name="MiniAnalyze",
    tools=[ANALYZE_OBJECTS_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Analyze objects. Call analyzeObjects with object ids (or an empty array for all objects).

- "How many circles" -> analyzeObjects([])
- "Count these" -> analyzeObjects([selected ids])""",
)

MINI_RESIZE = AgentSpec(
    name="MiniResize",
    tools=[RESIZE_OBJECT_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Resize objects. Find matching objects in board state. Call resizeObject for each.

Extract dimensions from the task ("200x100" -> width: 200, height: 100).""",
)

MINI_ROTATE = AgentSpec(
    name="MiniRotate",
    tools=[ROTATE_OBJECT_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Rotate objects. Find the object in board state. Call rotateObject with the angle in degrees.

- "rotate 45 degrees" -> rotation: 45""",
)

MINI_TEXT = AgentSpec(
    name="MiniText",
    tools=[UPDATE_TEXT_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Update text. Find the object in board state. Call updateText with the new text.

Works on sticky notes, text bubbles, plain text and frame names.
- "write X in Y" -> text X on objects matching Y
- "write X in all Y" -> text X on every object of type Y
- "update text" / "change text" -> the selected object
- "rename" -> frame name or object text""",
)

MINI_FIT_FRAME = AgentSpec(
    name="MiniFitFrame",
    tools=[FIT_FRAME_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Resize a frame to fit its contents. Find the frame in board state. Call fitFrameToContents.

Default padding: 40px unless the user gives one.""",
)

MINI_ORGANIZE = AgentSpec(
    name="MiniOrganize",
    tools=[ARRANGE_IN_GRID_TOOL, ARRANGE_AND_RESIZE_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Organize objects. Use the selected object ids from context.

- "Arrange in grid" -> arrangeInGrid([selected ids])
- "Resize and space evenly" -> arrangeInGridAndResize([selected ids])""",
)

MINI_SWOT = AgentSpec(
    name="MiniSWOT",
    tools=[SWOT_TOOL],
    temperature=MINI_TEMPERATURE,
    prompt="""Create a SWOT analysis or structured matrix. Call createSWOTAnalysis.

- Default quadrants=4 (2x2 for SWOT); "3x3 matrix" -> quadrants=9
- Pass shape when the user asks for shapes instead of sticky notes
- Colors as hex: red="#EF4444", blue="#3B82F6", green="#10B981", purple="#A855F7", orange="#F97316"
- withFrame=true by default

Reply with one sentence such as "I've created the SWOT analysis template with Strengths, Weaknesses, Opportunities, and Threats sections." or "I've created a 3x3 matrix template with 9 sections." for other sizes.""",
)

MINI_AGENTS: dict[str, AgentSpec] = {
    agent.name: agent
    for agent in (
        MINI_CREATE,
        MINI_COLOR,
        MINI_MOVE,
        MINI_DELETE,
        MINI_ANALYZE,
        MINI_RESIZE,
        MINI_ROTATE,
        MINI_TEXT,
        MINI_FIT_FRAME,
        MINI_ORGANIZE,
        MINI_SWOT,
    )
}


# =============================================================================
# Worker agents
# =============================================================================

CREATE_AGENT = AgentSpec(
    name="CreateAgent",
    description="Creates new objects on the whiteboard (sticky notes, text, shapes, frames)",
    tools=[
        CREATE_STICKY_NOTE_TOOL,
        CREATE_TEXT_TOOL,
        CREATE_TEXT_BUBBLE_TOOL,
        CREATE_SHAPE_TOOL,
        CREATE_FRAME_TOOL,
    ],
    prompt="""You are the Create Agent. Your ONLY job is to create objects on the whiteboard.

**Object types:**
- Sticky notes: colored cards (yellow/pink/blue/green/orange) for ideas. Use createStickyNote.
- Text: plain floating text without background or border. Use createText.
- Text bubbles: text inside a bordered box. Use createTextBubble.
- Shapes: rect, circle, triangle, star. Use createShape.
- Frames: containers for grouping objects. Use createFrame.

You MUST:
- Create objects exactly as specified in the task
- For templates (SWOT, retro boards, journey maps) create ALL elements in ONE response
  - SWOT: 4 sticky notes at (150,150), (370,150), (150,370), (370,370) labelled "Strengths", "Weaknesses", "Opportunities", "Threats", then ONE frame at (100,100) sized 500x500
- For grids ("2x3 grid") compute explicit x,y for each object: x = startX + col * 220, y = startY + row * 220
- When the task gives a starting offset, place the first object there
- Leave positions out only when the task gives none and it is not a grid or template
- For a frame "around all objects", size it to cover them (use large values like 1000x800 if unsure)
- ONLY call creation tools

DO NOT connect, modify or delete objects; other agents do that.""",
)

CONNECT_AGENT = AgentSpec(
    name="ConnectAgent",
    description="Creates connectors between existing objects",
    tools=[CREATE_CONNECTOR_TOOL],
    prompt="""You are the Connect Agent. Your ONLY job is to create connectors between EXISTING objects.

**Connection patterns:**
- "Connect 3 circles to each other" or "from left to right" is a CHAIN (A->B, B->C), never all pairs
- "Connect A to B" is one line
- For N objects create N-1 connectors in sequence
- "left to right" follows the order objects appear in the board state

You MUST:
- Use ACTUAL object ids from the board state, or the newly created ids you are given
- Call createConnector once per adjacent pair
- Connect only the requested number of objects; if the board has duplicates, use the first matching set

DO NOT connect frames to shapes, create objects, or build fully connected graphs.""",
)

MODIFY_AGENT = AgentSpec(
    name="ModifyAgent",
    description="Modifies existing objects (move, resize, update text, change color)",
    tools=[MOVE_OBJECT_TOOL, RESIZE_OBJECT_TOOL, UPDATE_TEXT_TOOL, CHANGE_COLOR_TOOL],
    prompt="""You are the Modify Agent. Your ONLY job is to modify existing objects.

You can move objects, resize them, update their text and change their colors.
Use object ids from the board state and ONLY call modification tools.
Do not create or delete objects.""",
)

DELETE_AGENT = AgentSpec(
    name="DeleteAgent",
    description="Deletes objects from the whiteboard",
    tools=[DELETE_OBJECT_TOOL],
    prompt="""You are the Delete Agent. Your ONLY job is to delete objects from the whiteboard.

Use object ids from the board state and pass every id to delete in ONE deleteObject call.
Do not create, modify or connect objects.""",
)

ORGANIZE_AGENT = AgentSpec(
    name="OrganizeAgent",
    description="Organizes objects into grids and layouts",
    tools=[ARRANGE_IN_GRID_TOOL],
    prompt="""You are the Organize Agent. Your ONLY job is to organize objects into layouts.

Use object ids from the board state and ONLY call organization tools.""",
)

ANALYZE_AGENT = AgentSpec(
    name="AnalyzeAgent",
    description="Analyzes and counts objects on the whiteboard",
    tools=[ANALYZE_OBJECTS_TOOL],
    prompt="""You are the Analyze Agent. Your ONLY job is to analyze and count objects.

Call analyzeObjects to get statistics, then report the results in one or two sentences.
Never guess counts yourself.""",
)

WORKER_AGENTS: dict[str, AgentSpec] = {
    agent.name: agent
    for agent in (
        CREATE_AGENT,
        CONNECT_AGENT,
        MODIFY_AGENT,
        DELETE_AGENT,
        ORGANIZE_AGENT,
        ANALYZE_AGENT,
    )
}


def get_worker_agent(name: str) -> AgentSpec | None:
    """Look up a worker agent by registry name."""
    return WORKER_AGENTS.get(name)


def get_all_worker_tools() -> list[Tool]:
    """Every worker tool, in registry order."""
    return [tool for agent in WORKER_AGENTS.values() for tool in agent.tools]


# =============================================================================
# Mini-agent detection
# =============================================================================

_JOURNEY = re.compile(r"journey")
_MATRIX = re.compile(r"swot|matrix|quadrant")
_CREATE_VERB = re.compile(r"create|add|make|draw")
_CREATE_ONE = re.compile(r"^(create|add|make|draw)\s+(a |an |one )?[a-z]")
_TEMPLATE = re.compile(r"retrospective|retro|journey|template|kanban|flow ?chart|mind ?map|diagram")
_QUANTITY = re.compile(r"(?:create|add|make|draw)\s+(\d+)")
_QUANTITY_WORD = re.compile(
    r"(?:create|add|make|draw)\s+(two|three|four|five|six|seven|eight|nine|ten|several|multiple|many)\b"
)
_COLOR = re.compile(r"color|change.*color|make.*\w+\s+(red|blue|green|yellow|orange|pink|purple)")
_MOVE = re.compile(r"^move.*\b(right|left|up|down|outside)\b")
_SEQUENCE = re.compile(r"\b(and|then)\b")
_DELETE = re.compile(r"^(delete|remove|clear)")
_FIT_FRAME = re.compile(r"resize.*frame|fit.*content|fit.*frame|frame.*fit|frame.*content")
_TEXT = re.compile(r"^(write|change|update|edit).*text|^rename|^write\s+")
_ORGANIZE = re.compile(r"arrange|space|organize|grid")
_ANALYZE = re.compile(r"^(how many|count|analyze|what|show|list)")


def detect_mini_agent(command: str, has_selection: bool = False) -> AgentSpec | None:
    """Pick the mini-agent for a narrow single-operation command.

    Checks run in a fixed order: journey maps and templates are refused,
    SWOT and matrices win over generic creation, and creation with a
    quantity above one is left to agents that can grid-place.

    Args:
        command: Raw user command.
        has_selection: Whether the user has objects selected.

    Returns:
        The matching mini-agent, or None when a fuller agent is needed.
    """
    lower = command.lower().strip()

    if _JOURNEY.search(lower):
        return None

    if _MATRIX.search(lower) and _CREATE_VERB.search(lower):
        return MINI_SWOT

    if _CREATE_ONE.search(lower):
        if _TEMPLATE.search(lower):
            return None
        quantity = _QUANTITY.search(lower)
        if quantity and int(quantity.group(1)) > 1:
            return None
        if _QUANTITY_WORD.search(lower):
            return None
        return MINI_CREATE

    if _COLOR.search(lower):
        return MINI_COLOR

    if _MOVE.search(lower) and not _SEQUENCE.search(lower) and "," not in lower:
        return MINI_MOVE

    if _DELETE.search(lower) and not _SEQUENCE.search(lower):
        return MINI_DELETE

    # Checked before generic resize
    if _FIT_FRAME.search(lower):
        return MINI_FIT_FRAME

    if lower.startswith("resize") and not _SEQUENCE.search(lower):
        return MINI_RESIZE

    if lower.startswith("rotate") and not _SEQUENCE.search(lower):
        return MINI_ROTATE

    if _TEXT.search(lower):
        return MINI_TEXT

    if has_selection and _ORGANIZE.search(lower) and "create" not in lower:
        return MINI_ORGANIZE

    if _ANALYZE.search(lower):
        return MINI_ANALYZE

    return None


__all__ = [
    "AgentSpec",
    "MINI_TEMPERATURE",
    "WORKER_TEMPERATURE",
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
    "MINI_AGENTS",
    "detect_mini_agent",
    # Worker agents
    "CREATE_AGENT",
    "CONNECT_AGENT",
    "MODIFY_AGENT",
    "DELETE_AGENT",
    "ORGANIZE_AGENT",
    "ANALYZE_AGENT",
    "WORKER_AGENTS",
    "get_worker_agent",
    "get_all_worker_tools",
]
