"""Structured intent extracted from a free-text command."""

from enum import Enum

from pydantic import BaseModel, Field


class IntentOperation(str, Enum):
    """Operations the classifier can recognize."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MOVE = "MOVE"
    RESIZE = "RESIZE"
    ROTATE = "ROTATE"
    CHANGE_COLOR = "CHANGE_COLOR"
    ARRANGE = "ARRANGE"
    ANALYZE = "ANALYZE"
    CONNECT = "CONNECT"
    FIT_FRAME_TO_CONTENTS = "FIT_FRAME_TO_CONTENTS"
    MULTI_STEP = "MULTI_STEP"
    CREATIVE = "CREATIVE"
    CONVERSATION = "CONVERSATION"
    UNKNOWN = "UNKNOWN"


class Coordinates(BaseModel):
    x: float
    y: float


class Dimensions(BaseModel):
    width: float
    height: float


class TargetFilter(BaseModel):
    """Selects existing board objects for modify, delete and analyze."""

    type: str | None = Field(default=None, description="Object type (circle, sticky, shape, ...)")
    shape_type: str | None = Field(default=None, alias="shapeType")
    color: str | None = Field(default=None, description="Hex or color name")
    use_selection: bool = Field(default=False, alias="useSelection")

    model_config = {"populate_by_name": True}


class IntentStep(BaseModel):
    operation: str = ""
    description: str = ""


class Intent(BaseModel):
    """Classified command: an operation plus its extracted parameters.

    Produced once per request and discarded after execution.
    """

    operation: IntentOperation
    object_type: str | None = Field(default=None, alias="objectType")
    shape_type: str | None = Field(default=None, alias="shapeType")
    quantity: int | None = Field(default=None, ge=0)
    rows: int | None = None
    columns: int | None = None
    color: str | None = None
    colors: list[str] = Field(default_factory=list, description="Per-object colors, cycled")
    text: str | None = None
    coordinates: Coordinates | None = None
    dimensions: Dimensions | None = None
    rotation: float | None = None
    direction: str | None = None
    target_filter: TargetFilter | None = Field(default=None, alias="targetFilter")
    is_multi_step: bool = Field(default=False, alias="isMultiStep")
    steps: list[IntentStep] = Field(default_factory=list)
    method: str | None = Field(default=None, description="ARRANGE method: grid or resize")
    creative_description: str | None = Field(default=None, alias="creativeDescription")

    model_config = {"populate_by_name": True}

    @property
    def needs_board_context(self) -> bool:
        """Whether execution must escalate to a tier that reasons over the board."""
        return self.is_multi_step or self.operation in (
            IntentOperation.FIT_FRAME_TO_CONTENTS,
            IntentOperation.CONNECT,
            IntentOperation.MULTI_STEP,
        )


__all__ = [
    "IntentOperation",
    "Coordinates",
    "Dimensions",
    "TargetFilter",
    "IntentStep",
    "Intent",
]
