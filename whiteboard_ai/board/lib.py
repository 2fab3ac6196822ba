"""Board state and operation request contracts.

The board itself lives in an external replicated document; this package
only ever sees a read-only snapshot of it (`BoardState`) and produces
`ToolCall` operation requests that the document layer executes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OperationName(str, Enum):
    """Fixed vocabulary of operation requests the pipeline can emit."""

    CREATE_STICKY_NOTE = "createStickyNote"
    CREATE_SHAPE = "createShape"
    CREATE_FRAME = "createFrame"
    CREATE_TEXT = "createText"
    CREATE_TEXT_BUBBLE = "createTextBubble"
    CREATE_CONNECTOR = "createConnector"
    MOVE_OBJECT = "moveObject"
    RESIZE_OBJECT = "resizeObject"
    ROTATE_OBJECT = "rotateObject"
    UPDATE_TEXT = "updateText"
    CHANGE_COLOR = "changeColor"
    DELETE_OBJECT = "deleteObject"
    ARRANGE_IN_GRID = "arrangeInGrid"
    ARRANGE_IN_GRID_AND_RESIZE = "arrangeInGridAndResize"
    ANALYZE_OBJECTS = "analyzeObjects"
    FIT_FRAME_TO_CONTENTS = "fitFrameToContents"
    # Template expansion handled by the document layer
    CREATE_SWOT_ANALYSIS = "createSWOTAnalysis"


CREATION_OPERATIONS = frozenset(
    {
        OperationName.CREATE_STICKY_NOTE.value,
        OperationName.CREATE_SHAPE.value,
        OperationName.CREATE_FRAME.value,
        OperationName.CREATE_TEXT.value,
        OperationName.CREATE_TEXT_BUBBLE.value,
    }
)


class BoardObject(BaseModel):
    """One object on the board, as reported by the document layer.

    Unknown keys (anchors, rotation, z-order, ...) are preserved.
    """

    id: str = Field(..., description="Document-assigned object id")
    type: str = Field(..., description="Object kind (sticky, rect, circle, frame, ...)")
    x: float = Field(default=0, description="Left edge, or center for circles")
    y: float = Field(default=0, description="Top edge, or center for circles")
    width: float | None = Field(default=None, description="Width in pixels")
    height: float | None = Field(default=None, description="Height in pixels")
    radius: float | None = Field(default=None, description="Radius for circles")
    color: str | None = Field(default=None, description="Primary color (hex)")
    fill: str | None = Field(default=None, description="Fill color (hex)")
    stroke: str | None = Field(default=None, description="Stroke color")
    text: str | None = Field(default=None, description="Text content")
    name: str | None = Field(default=None, description="Display name or title")

    model_config = {"extra": "allow"}


class BoardState(BaseModel):
    """Read-only snapshot of the board plus the user's current selection."""

    objects: list[BoardObject] = Field(default_factory=list)
    selected_ids: list[str] = Field(default_factory=list, alias="selectedIds")

    model_config = {"populate_by_name": True}

    def by_id(self, object_id: str) -> BoardObject | None:
        """Find an object by id."""
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def selected_objects(self) -> list[BoardObject]:
        """Selected objects that actually exist on the board, in selection order."""
        return [obj for oid in self.selected_ids if (obj := self.by_id(oid))]

    @property
    def selected_frame(self) -> BoardObject | None:
        """The selected frame, when the selection is exactly one frame."""
        selected = self.selected_objects()
        if len(selected) == 1 and selected[0].type == "frame":
            return selected[0]
        return None


class FrameInfo(BaseModel):
    """An existing frame that a composition is placed inside."""

    id: str
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_object(cls, obj: BoardObject) -> "FrameInfo":
        """Build frame geometry from a board frame object."""
        return cls(
            id=obj.id,
            x=obj.x,
            y=obj.y,
            width=obj.width or 400,
            height=obj.height or 400,
        )


class ToolCall(BaseModel):
    """One operation request: the terminal output unit of the pipeline."""

    id: str = Field(..., description="Request id, unique within one response")
    name: str = Field(..., description="Operation name from OperationName")
    arguments: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_creation(self) -> bool:
        """Whether this request creates a board object."""
        return self.name in CREATION_OPERATIONS

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form for JSON transport."""
        return self.model_dump()


@dataclass
class AgentResult:
    """Operation requests and narrative produced by one pipeline stage.

    Attributes:
        agent_name: Stage or agent that produced the result.
        tool_calls: Operation requests, in model order.
        message: Narrative text from the model, if any.
        summary: One-line description for the user.
        task: Task description when run as part of an execution plan.
        analysis: Model reasoning, kept for debugging.
    """

    agent_name: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    message: str | None = None
    summary: str = ""
    task: str | None = None
    analysis: str | None = None

    def created_ids(self) -> list[str]:
        """Request ids of creation requests."""
        return [call.id for call in self.tool_calls if call.is_creation]


__all__ = [
    "OperationName",
    "CREATION_OPERATIONS",
    "BoardObject",
    "BoardState",
    "FrameInfo",
    "ToolCall",
    "AgentResult",
]
