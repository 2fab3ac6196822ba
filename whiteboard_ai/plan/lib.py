"""Composition plan schema.

The composition plan is the contract between the planner model and the
layout engine. The model describes WHAT to create (and, only under the
freeform layout, WHERE); the layout engine computes every other position.

This module is the single source of truth for:
- Layout and node vocabularies
- Sticky and shape color tables
- The `createPlan` function tool handed to the planner
- The recursive `PlanNode` / `CompositionPlan` models and their validation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class LayoutType(str, Enum):
    """How a container arranges its children."""

    COLUMNS = "columns"
    STACK_VERTICAL = "stack_vertical"
    STACK_HORIZONTAL = "stack_horizontal"
    GRID = "grid"
    RADIAL = "radial"
    FLOW_HORIZONTAL = "flow_horizontal"
    FLOW_VERTICAL = "flow_vertical"
    FREEFORM = "freeform"


class NodeType(str, Enum):
    """Plan node kinds.

    Leaf kinds map 1:1 to board primitives. Container kinds hold children:
    - FRAME / COLUMN: rendered as a titled frame around their children
    - GROUP / COMPOSITION: layout only, no visual frame
    """

    STICKY = "sticky"
    SHAPE = "shape"
    TEXT = "text"
    TEXT_BUBBLE = "textBubble"
    FRAME = "frame"
    COLUMN = "column"
    GROUP = "group"
    COMPOSITION = "composition"


class ShapeKind(str, Enum):
    """Shape subtypes for shape nodes."""

    RECT = "rect"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    STAR = "star"


class Aspect(str, Enum):
    """Size hints applied to a node's base size."""

    SQUARE = "square"
    WIDE = "wide"
    TALL = "tall"
    TALL_NARROW = "tall_narrow"
    SMALL = "small"
    LARGE = "large"


class BranchDirection(str, Enum):
    """Where a side branch is drawn relative to the main flow."""

    DOWN = "down"
    UP = "up"
    LEFT = "left"
    RIGHT = "right"


class ConnectorStyle(str, Enum):
    """Connector line styles."""

    STRAIGHT = "straight"
    CURVED = "curved"


LAYOUT_TYPES: list[str] = [layout.value for layout in LayoutType]
NODE_TYPES: list[str] = [node.value for node in NodeType]
SHAPE_KINDS: list[str] = [kind.value for kind in ShapeKind]
ASPECTS: list[str] = [aspect.value for aspect in Aspect]

CONTAINER_TYPES = frozenset(
    {NodeType.FRAME.value, NodeType.COLUMN.value, NodeType.GROUP.value, NodeType.COMPOSITION.value}
)
FRAMED_CONTAINER_TYPES = frozenset({NodeType.FRAME.value, NodeType.COLUMN.value})


# =============================================================================
# Color tables
# =============================================================================

STICKY_COLOR_MAP: dict[str, str] = {
    "yellow": "#FFF59D",
    "pink": "#F48FB1",
    "blue": "#81D4FA",
    "green": "#A5D6A7",
    "orange": "#FFCC80",
}

SHAPE_COLOR_MAP: dict[str, str] = {
    "red": "#EF4444",
    "blue": "#3B82F6",
    "green": "#10B981",
    "purple": "#A855F7",
    "orange": "#F97316",
    "gray": "#6B7280",
    "lightGray": "#E5E7EB",
    "cyan": "#06B6D4",
    "teal": "#14B8A6",
    "indigo": "#6366F1",
    "pink": "#EC4899",
    "amber": "#F59E0B",
    "lime": "#84CC16",
    "black": "#000000",
    "white": "#FFFFFF",
    "brown": "#92400E",
}

# Round-robin palettes used for color="random"
RANDOM_STICKY_PALETTE: list[str] = list(STICKY_COLOR_MAP.values())
RANDOM_SHAPE_PALETTE: list[str] = [
    "#EF4444",
    "#3B82F6",
    "#10B981",
    "#A855F7",
    "#F97316",
    "#06B6D4",
    "#6366F1",
    "#EC4899",
]

DEFAULT_STICKY_COLOR = STICKY_COLOR_MAP["yellow"]
DEFAULT_SHAPE_COLOR = SHAPE_COLOR_MAP["gray"]


# =============================================================================
# Models
# =============================================================================


def _node_list(value: Any) -> Any:
    """Normalize a children or steps value before validation.

    null becomes an empty list, and a bare string entry becomes an untyped
    node carrying that text, which the engine emits as a rectangle.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [{"text": item} if isinstance(item, str) else item for item in value]
    return value


class Branch(BaseModel):
    """Alternate sub-flow hanging off a node (e.g. an error path)."""

    direction: str | None = Field(
        default=BranchDirection.DOWN.value,
        description="Side of the main flow the branch is drawn on",
    )
    steps: list["PlanNode"] = Field(
        default_factory=list,
        description="Branch nodes, chained in order from the source node",
    )

    @field_validator("steps", mode="before")
    @classmethod
    def _normalize_steps(cls, value: Any) -> Any:
        return _node_list(value)


class PlanNode(BaseModel):
    """Recursive composition node.

    `type` is kept as a plain, optional string so an unknown or missing
    kind reaches the layout engine (which emits a default rectangle)
    instead of failing the whole plan at parse time.
    """

    type: str | None = Field(default=None, description="Node kind from NodeType")

    # Leaf content
    text: str | None = Field(default=None, description="Text or shape label")
    color: str | None = Field(default=None, description="Color name, hex or 'random'")
    shape: str | None = Field(default=None, description="Shape subtype from ShapeKind")
    aspect: str | None = Field(default=None, description="Size hint from Aspect")

    # Freeform placement (relative to the composition origin)
    x: float | None = Field(default=None, description="Left edge in pixels")
    y: float | None = Field(default=None, description="Top edge in pixels")

    # Container fields
    title: str | None = Field(default=None, description="Frame or column title")
    layout: str | None = Field(default=None, description="Layout for children")
    children: list["PlanNode"] = Field(default_factory=list)

    # Connections
    connect_to: str | None = Field(
        default=None,
        alias="connectTo",
        description="Connector style to the next sibling",
    )
    branch: Branch | None = None

    model_config = {"populate_by_name": True}

    @field_validator("children", mode="before")
    @classmethod
    def _normalize_children(cls, value: Any) -> Any:
        return _node_list(value)

    @property
    def is_container(self) -> bool:
        """Whether this node holds children."""
        return self.type in CONTAINER_TYPES

    @property
    def has_position(self) -> bool:
        """Whether the node carries explicit freeform coordinates."""
        return self.x is not None and self.y is not None


class CompositionPlan(BaseModel):
    """Top-level plan emitted by the planner's createPlan call."""

    title: str | None = Field(default="", description="Human-readable composition title")
    layout: str | None = Field(default=LayoutType.COLUMNS.value, description="Top-level layout")
    wrap_in_frame: bool | None = Field(
        default=None,
        alias="wrapInFrame",
        description="Wrap the whole composition in a frame (default true)",
    )
    children: list[PlanNode] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("children", mode="before")
    @classmethod
    def _normalize_children(cls, value: Any) -> Any:
        return _node_list(value)

    @property
    def is_freeform(self) -> bool:
        """Whether the planner supplies coordinates instead of the engine."""
        return self.layout == LayoutType.FREEFORM.value


Branch.model_rebuild()
PlanNode.model_rebuild()
CompositionPlan.model_rebuild()


# =============================================================================
# Validation
# =============================================================================


@dataclass
class PlanIssue:
    """A structural problem found in a composition plan.

    Issues never abort layout; the engine degrades each one to a
    deterministic fallback. They are surfaced for logging.

    Attributes:
        path: Dotted child path, e.g. "children[1].children[0]".
        message: Human-readable description.
        issue_type: Machine-readable classification.
    """

    path: str
    message: str
    issue_type: str


def validate_plan(plan: CompositionPlan) -> list[PlanIssue]:
    """Check a plan for kinds, layouts and freeform coordinates.

    Args:
        plan: Parsed composition plan.

    Returns:
        List of issues (empty if the plan is clean).
    """
    issues: list[PlanIssue] = []

    if plan.layout is None:
        issues.append(PlanIssue("layout", "Missing layout; columns used", "missing_layout"))
    elif plan.layout not in LAYOUT_TYPES:
        issues.append(
            PlanIssue("layout", f"Unknown layout '{plan.layout}'", "unknown_layout")
        )

    if plan.is_freeform:
        missing = [i for i, child in enumerate(plan.children) if not child.has_position]
        if missing:
            issues.append(
                PlanIssue(
                    "children",
                    f"Freeform children without x,y: {missing}; horizontal fallback applies",
                    "freeform_missing_position",
                )
            )

    for i, child in enumerate(plan.children):
        _check_node(child, f"children[{i}]", issues)

    return issues


def _check_node(node: PlanNode, path: str, issues: list[PlanIssue]) -> None:
    if node.type is None:
        issues.append(
            PlanIssue(path, "Missing node type; emitted as a rectangle", "missing_node_type")
        )
    elif node.type not in NODE_TYPES:
        issues.append(
            PlanIssue(path, f"Unknown node type '{node.type}'", "unknown_node_type")
        )
    if node.layout is not None and node.layout not in LAYOUT_TYPES:
        issues.append(
            PlanIssue(path, f"Unknown layout '{node.layout}'", "unknown_layout")
        )
    if node.shape is not None and node.shape not in SHAPE_KINDS:
        issues.append(
            PlanIssue(path, f"Unknown shape '{node.shape}'", "unknown_shape")
        )
    if node.aspect is not None and node.aspect not in ASPECTS:
        issues.append(
            PlanIssue(path, f"Unknown aspect '{node.aspect}'", "unknown_aspect")
        )
    if node.children and not node.is_container:
        issues.append(
            PlanIssue(path, f"Leaf '{node.type}' has children; they are ignored", "leaf_children")
        )
    if node.branch is not None:
        if node.branch.direction is None:
            issues.append(
                PlanIssue(
                    f"{path}.branch",
                    "Missing branch direction; down used",
                    "missing_branch_direction",
                )
            )
        elif node.branch.direction not in {d.value for d in BranchDirection}:
            issues.append(
                PlanIssue(
                    f"{path}.branch",
                    f"Unknown branch direction '{node.branch.direction}'",
                    "unknown_branch_direction",
                )
            )
        for j, step in enumerate(node.branch.steps):
            _check_node(step, f"{path}.branch.steps[{j}]", issues)

    for j, child in enumerate(node.children):
        _check_node(child, f"{path}.children[{j}]", issues)


def is_valid_plan(plan: CompositionPlan) -> bool:
    """Whether validate_plan reports no issues."""
    return not validate_plan(plan)


# =============================================================================
# Planner tool
# =============================================================================

CREATE_PLAN_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "createPlan",
        "description": (
            "Output a composition plan. For layout=freeform you MUST provide x,y "
            "(pixels) on every child: you figure out constraints and placement, "
            "then output that JSON. For other layouts the engine computes positions."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": 'Human-readable title for the composition (e.g., "Kanban Board", "Building")',
                },
                "layout": {
                    "type": "string",
                    "enum": LAYOUT_TYPES,
                    "description": "How to arrange the top-level children spatially",
                },
                "wrapInFrame": {
                    "type": "boolean",
                    "description": (
                        "Whether to wrap the entire composition in a frame. Default true "
                        "for structured layouts (columns, grid), false for freeform."
                    ),
                },
                "children": {
                    "type": "array",
                    "description": "The objects or groups to create",
                    "items": {"$ref": "#/$defs/PlanNode"},
                },
            },
            "required": ["title", "layout", "children"],
            "$defs": {
                "PlanNode": {
                    "type": "object",
                    "properties": {
                        "type": {
                            "type": "string",
                            "enum": NODE_TYPES,
                            "description": "Node type: sticky, shape, text, textBubble, frame, column, group",
                        },
                        "text": {
                            "type": "string",
                            "description": "Text content (for sticky, text, textBubble, shape label)",
                        },
                        "color": {
                            "type": "string",
                            "description": (
                                "Color name (yellow, pink, blue, green, orange for stickies; "
                                "red, blue, green, purple, etc. for shapes). Use \"random\" for varied colors."
                            ),
                        },
                        "shape": {
                            "type": "string",
                            "enum": SHAPE_KINDS,
                            "description": 'Shape subtype (only for type="shape")',
                        },
                        "aspect": {
                            "type": "string",
                            "enum": ASPECTS,
                            "description": 'Size hint for the layout engine. Default is "square".',
                        },
                        "x": {
                            "type": "number",
                            "description": (
                                "X position in pixels. REQUIRED for every child when "
                                "layout=freeform. Top-left origin. Omit for other layouts."
                            ),
                        },
                        "y": {
                            "type": "number",
                            "description": (
                                "Y position in pixels. REQUIRED for every child when "
                                "layout=freeform. Top-left origin. Omit for other layouts."
                            ),
                        },
                        "title": {
                            "type": "string",
                            "description": "Title for frame or column containers",
                        },
                        "layout": {
                            "type": "string",
                            "enum": LAYOUT_TYPES,
                            "description": "Layout for children of this container node",
                        },
                        "children": {
                            "type": "array",
                            "description": "Child nodes (for column, group, frame, composition)",
                            "items": {"$ref": "#/$defs/PlanNode"},
                        },
                        "connectTo": {
                            "type": "string",
                            "description": (
                                "Connect this node to the NEXT sibling with a connector line. "
                                'Value is the connector style: "straight" or "curved".'
                            ),
                        },
                        "branch": {
                            "type": "object",
                            "description": (
                                "Optional side branch from this node (e.g. an error path). "
                                "The layout engine places it beside the main flow."
                            ),
                            "properties": {
                                "direction": {
                                    "type": "string",
                                    "enum": [d.value for d in BranchDirection],
                                    "description": (
                                        'Where to draw the branch: "down" for flow_horizontal, '
                                        '"right"/"left" for flow_vertical.'
                                    ),
                                },
                                "steps": {
                                    "type": "array",
                                    "description": (
                                        "Nodes in the branch, connected in order; the first "
                                        "step connects from this node."
                                    ),
                                    "items": {"$ref": "#/$defs/PlanNode"},
                                },
                            },
                            "required": ["direction", "steps"],
                        },
                    },
                    "required": ["type"],
                },
            },
        },
    },
}


__all__ = [
    # Vocabularies
    "LayoutType",
    "NodeType",
    "ShapeKind",
    "Aspect",
    "BranchDirection",
    "ConnectorStyle",
    "LAYOUT_TYPES",
    "NODE_TYPES",
    "SHAPE_KINDS",
    "ASPECTS",
    "CONTAINER_TYPES",
    "FRAMED_CONTAINER_TYPES",
    # Colors
    "STICKY_COLOR_MAP",
    "SHAPE_COLOR_MAP",
    "RANDOM_STICKY_PALETTE",
    "RANDOM_SHAPE_PALETTE",
    "DEFAULT_STICKY_COLOR",
    "DEFAULT_SHAPE_COLOR",
    # Models
    "Branch",
    "PlanNode",
    "CompositionPlan",
    # Validation
    "PlanIssue",
    "validate_plan",
    "is_valid_plan",
    # Tool
    "CREATE_PLAN_TOOL",
]
