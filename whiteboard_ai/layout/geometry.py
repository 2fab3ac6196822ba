"""Sizing and placement algorithms for composition layouts.

Everything here is a pure function of child sizes and an origin. Rounding
follows half-up semantics so coordinates are stable across platforms.
"""

import math
from dataclasses import dataclass

from ..plan import LayoutType, PlanNode

# Base sizes per node kind; unknown kinds fall back to the shape size
SIZES: dict[str, tuple[int, int]] = {
    "sticky": (200, 200),
    "shape": (150, 150),
    "text": (120, 30),
    "textBubble": (200, 100),
    "frame": (400, 400),
}

ASPECT_MULTIPLIERS: dict[str, tuple[float, float]] = {
    "square": (1, 1),
    "wide": (2, 1),
    "tall": (1, 2),
    "tall_narrow": (0.5, 2),
    "small": (0.6, 0.6),
    "large": (1.5, 1.5),
}

GAP = 20
FLOW_GAP = 80
FRAME_PADDING = 40
WRAPPER_FRAME_PADDING = 80

# Size of an empty container
EMPTY_SIZE = (200, 200)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class Size:
    """Width and height in pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle with a top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


# =============================================================================
# Sizing
# =============================================================================


def node_size(node: PlanNode) -> Size:
    """Base size for a leaf node, scaled by its aspect hint."""
    base_w, base_h = SIZES.get(node.type, SIZES["shape"])
    mult_w, mult_h = ASPECT_MULTIPLIERS.get(node.aspect or "square", ASPECT_MULTIPLIERS["square"])
    return Size(round_half_up(base_w * mult_w), round_half_up(base_h * mult_h))


def container_children_size(node: PlanNode, layout: str) -> Size:
    """Recursive content size of a container under the given layout."""
    if not node.children:
        return Size(*EMPTY_SIZE)
    sizes = [
        container_children_size(child, child.layout or LayoutType.STACK_VERTICAL.value)
        if child.children
        else node_size(child)
        for child in node.children
    ]
    return layout_bounds(sizes, layout)


def child_sizes(children: list[PlanNode]) -> list[Size]:
    """Allocated size for each child: leaf size, or padded container content."""
    sizes = []
    for child in children:
        if child.children:
            inner = container_children_size(child, child.layout or LayoutType.STACK_VERTICAL.value)
            sizes.append(
                Size(inner.width + FRAME_PADDING * 2, inner.height + FRAME_PADDING * 2)
            )
        else:
            sizes.append(node_size(child))
    return sizes


def radial_radius(sizes: list[Size]) -> tuple[float, float]:
    """Radius and largest item dimension for a radial layout."""
    max_dim = max(max(s.width, s.height) for s in sizes)
    return max(max_dim * 2, len(sizes) * 35), max_dim


def layout_bounds(sizes: list[Size], layout: str) -> Size:
    """Total size of children arranged by a layout.

    Unknown layouts measure as horizontal stacks.
    """
    if not sizes:
        return Size(*EMPTY_SIZE)
    count = len(sizes)

    match layout:
        case "stack_vertical" | "flow_vertical":
            gap = FLOW_GAP if layout == LayoutType.FLOW_VERTICAL.value else GAP
            return Size(
                max(s.width for s in sizes),
                sum(s.height for s in sizes) + gap * (count - 1),
            )
        case "grid":
            cols = math.ceil(math.sqrt(count))
            rows = math.ceil(count / cols)
            max_w = max(s.width for s in sizes)
            max_h = max(s.height for s in sizes)
            return Size(cols * max_w + (cols - 1) * GAP, rows * max_h + (rows - 1) * GAP)
        case "radial":
            radius, max_dim = radial_radius(sizes)
            return Size(radius * 2 + max_dim, radius * 2 + max_dim)
        case _:
            gap = FLOW_GAP if layout == LayoutType.FLOW_HORIZONTAL.value else GAP
            return Size(
                sum(s.width for s in sizes) + gap * (count - 1),
                max(s.height for s in sizes),
            )


# =============================================================================
# Placement algorithms
# =============================================================================


def layout_horizontal(sizes: list[Size], start_x: float, start_y: float, gap: float = GAP) -> list[Box]:
    """Left to right, all children centered on one horizontal line."""
    if not sizes:
        return []
    center_y = start_y + max(s.height for s in sizes) / 2
    boxes = []
    x = start_x
    for size in sizes:
        boxes.append(
            Box(round_half_up(x), round_half_up(center_y - size.height / 2), size.width, size.height)
        )
        x += size.width + gap
    return boxes


def layout_vertical(sizes: list[Size], start_x: float, start_y: float, gap: float = GAP) -> list[Box]:
    """Top to bottom, all children centered on one vertical line."""
    if not sizes:
        return []
    center_x = start_x + max(s.width for s in sizes) / 2
    boxes = []
    y = start_y
    for size in sizes:
        boxes.append(
            Box(round_half_up(center_x - size.width / 2), round_half_up(y), size.width, size.height)
        )
        y += size.height + gap
    return boxes


def layout_grid(sizes: list[Size], start_x: float, start_y: float) -> list[Box]:
    """Row-major grid with ceil(sqrt(n)) columns and uniform cells."""
    if not sizes:
        return []
    cols = math.ceil(math.sqrt(len(sizes)))
    cell_w = max(s.width for s in sizes) + GAP
    cell_h = max(s.height for s in sizes) + GAP
    return [
        Box(
            round_half_up(start_x + (i % cols) * cell_w),
            round_half_up(start_y + (i // cols) * cell_h),
            size.width,
            size.height,
        )
        for i, size in enumerate(sizes)
    ]


def layout_radial(sizes: list[Size], start_x: float, start_y: float) -> list[Box]:
    """Evenly around a circle, starting at the top and going clockwise."""
    if not sizes:
        return []
    count = len(sizes)
    radius, max_dim = radial_radius(sizes)
    center_x = start_x + radius + max_dim / 2
    center_y = start_y + radius + max_dim / 2
    boxes = []
    for i, size in enumerate(sizes):
        angle = 2 * math.pi * i / count - math.pi / 2
        boxes.append(
            Box(
                round_half_up(center_x + radius * math.cos(angle) - size.width / 2),
                round_half_up(center_y + radius * math.sin(angle) - size.height / 2),
                size.width,
                size.height,
            )
        )
    return boxes


def layout_freeform(
    children: list[PlanNode], sizes: list[Size], start_x: float, start_y: float
) -> list[Box]:
    """Planner-supplied offsets translated by the origin.

    Falls back to a horizontal stack when any child lacks coordinates.
    """
    if not all(child.has_position for child in children):
        return layout_horizontal(sizes, start_x, start_y, GAP)
    return [
        Box(round_half_up(start_x + child.x), round_half_up(start_y + child.y), size.width, size.height)
        for child, size in zip(children, sizes)
    ]


def arrange(
    sizes: list[Size],
    layout: str,
    start_x: float,
    start_y: float,
    children: list[PlanNode] | None = None,
) -> list[Box]:
    """Place children by layout name.

    Freeform needs the child nodes for their offsets; without them it is
    treated as horizontal. Unknown layouts are horizontal.
    """
    match layout:
        case "stack_vertical":
            return layout_vertical(sizes, start_x, start_y, GAP)
        case "flow_vertical":
            return layout_vertical(sizes, start_x, start_y, FLOW_GAP)
        case "flow_horizontal":
            return layout_horizontal(sizes, start_x, start_y, FLOW_GAP)
        case "grid":
            return layout_grid(sizes, start_x, start_y)
        case "radial":
            return layout_radial(sizes, start_x, start_y)
        case "freeform" if children is not None:
            return layout_freeform(children, sizes, start_x, start_y)
        case _:
            return layout_horizontal(sizes, start_x, start_y, GAP)


def scale_to_fit(boxes: list[Box], area: Box) -> list[Box]:
    """Uniformly shrink a placed batch so it fits inside `area`.

    Relative placement is kept; nothing is scaled up.
    """
    if not boxes:
        return boxes
    max_right = max(0, max(b.right - area.x for b in boxes))
    max_bottom = max(0, max(b.bottom - area.y for b in boxes))
    scale_x = area.width / max_right if max_right > area.width else 1
    scale_y = area.height / max_bottom if max_bottom > area.height else 1
    scale = min(scale_x, scale_y, 1)
    if scale >= 1:
        return boxes
    return [
        Box(
            round_half_up(area.x + (b.x - area.x) * scale),
            round_half_up(area.y + (b.y - area.y) * scale),
            round_half_up(b.width * scale),
            round_half_up(b.height * scale),
        )
        for b in boxes
    ]


def place_children(
    children: list[PlanNode],
    layout: str,
    start_x: float,
    start_y: float,
    area: Box | None = None,
) -> list[Box]:
    """Size and place a sibling list.

    With an `area`, children are laid out from the area origin (freeform
    offsets are ignored) and the whole batch is scaled down if it overflows.
    """
    sizes = child_sizes(children)
    if area is not None:
        return scale_to_fit(arrange(sizes, layout, area.x, area.y), area)
    return arrange(sizes, layout, start_x, start_y, children)


def union_bounds(boxes: list[Box]) -> Box | None:
    """Smallest box containing every box, or None for an empty list."""
    if not boxes:
        return None
    min_x = min(b.x for b in boxes)
    min_y = min(b.y for b in boxes)
    return Box(
        min_x,
        min_y,
        max(b.right for b in boxes) - min_x,
        max(b.bottom for b in boxes) - min_y,
    )


__all__ = [
    "SIZES",
    "ASPECT_MULTIPLIERS",
    "GAP",
    "FLOW_GAP",
    "FRAME_PADDING",
    "WRAPPER_FRAME_PADDING",
    "Size",
    "Box",
    "round_half_up",
    "node_size",
    "container_children_size",
    "child_sizes",
    "layout_bounds",
    "layout_horizontal",
    "layout_vertical",
    "layout_grid",
    "layout_radial",
    "layout_freeform",
    "arrange",
    "scale_to_fit",
    "place_children",
    "union_bounds",
]
