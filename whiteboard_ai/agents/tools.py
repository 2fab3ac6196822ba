"""Function-tool schemas offered to agents.

Worker agents get the full-size schemas. Mini-agents get trimmed variants
whose creation tools also carry quantity, color cycling and grid hints.
"""

from typing import Any

from ..board import OperationName
from ..plan import SHAPE_KINDS, STICKY_COLOR_MAP

Tool = dict[str, Any]

NUMBER = {"type": "number"}
STRING = {"type": "string"}
ID_ARRAY = {"type": "array", "items": {"type": "string"}}
SHAPE_TYPE = {"type": "string", "enum": SHAPE_KINDS}
DIRECTIONS = ["left", "right", "up", "down"]


def function_tool(
    name: OperationName | str,
    description: str,
    properties: dict[str, Any],
    required: list[str] | None = None,
) -> Tool:
    """Build an OpenAI-style function tool definition."""
    return {
        "type": "function",
        "function": {
            "name": name.value if isinstance(name, OperationName) else name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required or [],
            },
        },
    }


def tool_name(tool: Tool) -> str:
    return tool["function"]["name"]


# =============================================================================
# Worker agent tools
# =============================================================================

CREATE_STICKY_NOTE_TOOL = function_tool(
    OperationName.CREATE_STICKY_NOTE,
    "Create a sticky note (yellow/pink/blue/green/orange card with text)",
    {"text": STRING, "x": NUMBER, "y": NUMBER, "color": {"type": "string", "enum": list(STICKY_COLOR_MAP)}},
    ["text"],
)

CREATE_TEXT_TOOL = function_tool(
    OperationName.CREATE_TEXT,
    "Create plain floating text without background",
    {"text": STRING, "x": NUMBER, "y": NUMBER},
    ["text"],
)

CREATE_TEXT_BUBBLE_TOOL = function_tool(
    OperationName.CREATE_TEXT_BUBBLE,
    "Create a text bubble (text in a bordered box, different from a sticky note)",
    {
        "text": STRING,
        "x": NUMBER,
        "y": NUMBER,
        "width": {"type": "number", "description": "Width in pixels (default 200)"},
        "height": {"type": "number", "description": "Height in pixels (default 100)"},
    },
    ["text"],
)

CREATE_SHAPE_TOOL = function_tool(
    OperationName.CREATE_SHAPE,
    "Create a geometric shape",
    {"type": SHAPE_TYPE, "x": NUMBER, "y": NUMBER, "width": NUMBER, "height": NUMBER, "color": STRING},
    ["type"],
)

CREATE_FRAME_TOOL = function_tool(
    OperationName.CREATE_FRAME,
    "Create a frame container",
    {"title": STRING, "x": NUMBER, "y": NUMBER, "width": NUMBER, "height": NUMBER},
    ["title"],
)

CREATE_CONNECTOR_TOOL = function_tool(
    OperationName.CREATE_CONNECTOR,
    "Create a line between two objects",
    {
        "fromId": {"type": "string", "description": "Source object ID from board state"},
        "toId": {"type": "string", "description": "Target object ID from board state"},
        "style": {"type": "string", "enum": ["straight", "curved"]},
    },
    ["fromId", "toId"],
)

MOVE_OBJECT_TOOL = function_tool(
    OperationName.MOVE_OBJECT,
    "Move an object to a new position",
    {"objectId": STRING, "x": NUMBER, "y": NUMBER},
    ["objectId", "x", "y"],
)

RESIZE_OBJECT_TOOL = function_tool(
    OperationName.RESIZE_OBJECT,
    "Resize an object",
    {"objectId": STRING, "width": NUMBER, "height": NUMBER},
    ["objectId", "width", "height"],
)

UPDATE_TEXT_TOOL = function_tool(
    OperationName.UPDATE_TEXT,
    "Update text content",
    {"objectId": STRING, "newText": STRING},
    ["objectId", "newText"],
)

CHANGE_COLOR_TOOL = function_tool(
    OperationName.CHANGE_COLOR,
    "Change object color",
    {"objectId": STRING, "color": STRING},
    ["objectId", "color"],
)

DELETE_OBJECT_TOOL = function_tool(
    OperationName.DELETE_OBJECT,
    "Delete one or more objects",
    {"objectIds": {**ID_ARRAY, "description": "Array of object IDs to delete"}},
    ["objectIds"],
)

ARRANGE_IN_GRID_TOOL = function_tool(
    OperationName.ARRANGE_IN_GRID,
    "Arrange objects in a grid layout",
    {"objectIds": ID_ARRAY},
    ["objectIds"],
)

ANALYZE_OBJECTS_TOOL = function_tool(
    OperationName.ANALYZE_OBJECTS,
    "Analyze objects by type and color",
    {"objectIds": ID_ARRAY},
)


# =============================================================================
# Mini-agent tools
# =============================================================================


def _bulk_properties(noun: str) -> dict[str, Any]:
    return {
        "quantity": {"type": "number", "description": f"Number of {noun} to create (default: 1)"},
        "rows": {"type": "number", "description": "Number of rows in grid layout"},
        "columns": {"type": "number", "description": "Number of columns in grid layout"},
    }


COLORS_ARRAY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Array of hex colors to cycle through when creating multiple objects",
}

MINI_CREATE_TOOLS = [
    function_tool(
        OperationName.CREATE_STICKY_NOTE,
        "Create sticky note",
        {
            "text": STRING,
            "x": NUMBER,
            "y": NUMBER,
            "color": {
                "type": "string",
                "description": 'Hex color code (e.g. #FFF59D, #F48FB1, #81D4FA) or "random" for varied colors',
            },
            "colors": COLORS_ARRAY,
            **_bulk_properties("sticky notes"),
            "frameId": {"type": "string", "description": "Optional: ID of frame to create sticky notes inside"},
        },
        ["text"],
    ),
    function_tool(
        OperationName.CREATE_SHAPE,
        "Create shape",
        {
            "type": SHAPE_TYPE,
            "x": NUMBER,
            "y": NUMBER,
            "width": NUMBER,
            "height": NUMBER,
            "color": {
                "type": "string",
                "description": 'Hex color code (e.g. #EF4444 for red, #3B82F6 for blue) or "random"',
            },
            "colors": COLORS_ARRAY,
            "text": STRING,
            **_bulk_properties("shapes"),
            "frameId": {"type": "string", "description": "Optional: ID of frame to create shapes inside"},
        },
        ["type"],
    ),
    function_tool(
        OperationName.CREATE_TEXT,
        "Create plain text",
        {"text": STRING, "x": NUMBER, "y": NUMBER, **_bulk_properties("text objects")},
        ["text"],
    ),
    function_tool(
        OperationName.CREATE_FRAME,
        "Create frame container",
        {
            "title": STRING,
            "x": NUMBER,
            "y": NUMBER,
            "width": NUMBER,
            "height": NUMBER,
            **_bulk_properties("frames"),
        },
        ["title"],
    ),
    function_tool(
        OperationName.CREATE_TEXT_BUBBLE,
        "Create text bubble",
        {
            "text": STRING,
            "x": NUMBER,
            "y": NUMBER,
            "width": NUMBER,
            "height": NUMBER,
            **_bulk_properties("text bubbles"),
        },
        ["text"],
    ),
]

MINI_MOVE_TOOL = function_tool(
    OperationName.MOVE_OBJECT,
    "Move object by direction or to absolute position",
    {"objectId": STRING, "x": NUMBER, "y": NUMBER, "direction": {"type": "string", "enum": DIRECTIONS}},
    ["objectId"],
)

ROTATE_OBJECT_TOOL = function_tool(
    OperationName.ROTATE_OBJECT,
    "Rotate object",
    {"objectId": STRING, "rotation": NUMBER},
    ["objectId", "rotation"],
)

FIT_FRAME_TOOL = function_tool(
    OperationName.FIT_FRAME_TO_CONTENTS,
    "Fit frame to contents",
    {"frameId": STRING, "padding": NUMBER},
    ["frameId"],
)

ARRANGE_AND_RESIZE_TOOL = function_tool(
    OperationName.ARRANGE_IN_GRID_AND_RESIZE,
    "Arrange and resize to fit",
    {"objectIds": ID_ARRAY},
    ["objectIds"],
)

SWOT_TOOL = function_tool(
    OperationName.CREATE_SWOT_ANALYSIS,
    "Create SWOT analysis or matrix",
    {
        "quadrants": NUMBER,
        "shape": SHAPE_TYPE,
        "x": NUMBER,
        "y": NUMBER,
        "color": STRING,
        "withFrame": {"type": "boolean"},
    },
)


__all__ = [
    "Tool",
    "function_tool",
    "tool_name",
    # Worker tools
    "CREATE_STICKY_NOTE_TOOL",
    "CREATE_TEXT_TOOL",
    "CREATE_TEXT_BUBBLE_TOOL",
    "CREATE_SHAPE_TOOL",
    "CREATE_FRAME_TOOL",
    "CREATE_CONNECTOR_TOOL",
    "MOVE_OBJECT_TOOL",
    "RESIZE_OBJECT_TOOL",
    "UPDATE_TEXT_TOOL",
    "CHANGE_COLOR_TOOL",
    "DELETE_OBJECT_TOOL",
    "ARRANGE_IN_GRID_TOOL",
    "ANALYZE_OBJECTS_TOOL",
    # Mini tools
    "MINI_CREATE_TOOLS",
    "MINI_MOVE_TOOL",
    "ROTATE_OBJECT_TOOL",
    "FIT_FRAME_TOOL",
    "ARRANGE_AND_RESIZE_TOOL",
    "SWOT_TOOL",
]
