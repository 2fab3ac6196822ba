"""Deterministic layout engine for composition plans."""

from .geometry import (
    ASPECT_MULTIPLIERS,
    FLOW_GAP,
    FRAME_PADDING,
    GAP,
    SIZES,
    WRAPPER_FRAME_PADDING,
    Box,
    Size,
    arrange,
    child_sizes,
    container_children_size,
    layout_bounds,
    layout_freeform,
    layout_grid,
    layout_horizontal,
    layout_radial,
    layout_vertical,
    node_size,
    place_children,
    round_half_up,
    scale_to_fit,
    union_bounds,
)
from .lib import (
    LayoutContext,
    LayoutResult,
    branch_boxes,
    content_bounds,
    plan_to_tool_calls,
)

__all__ = [
    # Engine
    "plan_to_tool_calls",
    "LayoutContext",
    "LayoutResult",
    "branch_boxes",
    "content_bounds",
    # Geometry
    "Box",
    "Size",
    "SIZES",
    "ASPECT_MULTIPLIERS",
    "GAP",
    "FLOW_GAP",
    "FRAME_PADDING",
    "WRAPPER_FRAME_PADDING",
    "round_half_up",
    "node_size",
    "container_children_size",
    "child_sizes",
    "layout_bounds",
    "arrange",
    "layout_horizontal",
    "layout_vertical",
    "layout_grid",
    "layout_radial",
    "layout_freeform",
    "scale_to_fit",
    "place_children",
    "union_bounds",
]
