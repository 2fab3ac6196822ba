"""Composition plan schema shared by the planner and the layout engine."""

from .lib import (
    ASPECTS,
    CONTAINER_TYPES,
    CREATE_PLAN_TOOL,
    DEFAULT_SHAPE_COLOR,
    DEFAULT_STICKY_COLOR,
    FRAMED_CONTAINER_TYPES,
    LAYOUT_TYPES,
    NODE_TYPES,
    RANDOM_SHAPE_PALETTE,
    RANDOM_STICKY_PALETTE,
    SHAPE_COLOR_MAP,
    SHAPE_KINDS,
    STICKY_COLOR_MAP,
    Aspect,
    Branch,
    BranchDirection,
    CompositionPlan,
    ConnectorStyle,
    LayoutType,
    NodeType,
    PlanIssue,
    PlanNode,
    ShapeKind,
    is_valid_plan,
    validate_plan,
)

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
