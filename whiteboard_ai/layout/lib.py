"""Layout engine: composition plan to positioned operation requests.

Zero model calls. A plan is sized bottom-up, placed top-down by each
container's layout, and emitted as creation requests followed by
connector requests that point back at earlier requests by index.

All mutable state (the random-color round robin and the emitted request
list) lives in a `LayoutContext` created per call, so concurrent
compositions never share a counter.

Example:
    >>> plan = CompositionPlan(layout="grid", children=[PlanNode(type="sticky")] * 4)
    >>> result = plan_to_tool_calls(plan, anchor=(0, 0), use_explicit_positions=True)
    >>> [call.name for call in result.tool_calls][:4]
    ['createStickyNote', 'createStickyNote', 'createStickyNote', 'createStickyNote']
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..board import FrameInfo, OperationName, ToolCall
from ..plan import (
    DEFAULT_SHAPE_COLOR,
    DEFAULT_STICKY_COLOR,
    FRAMED_CONTAINER_TYPES,
    RANDOM_SHAPE_PALETTE,
    RANDOM_STICKY_PALETTE,
    SHAPE_COLOR_MAP,
    STICKY_COLOR_MAP,
    BranchDirection,
    CompositionPlan,
    ConnectorStyle,
    LayoutType,
    NodeType,
    PlanNode,
    ShapeKind,
)
from .geometry import (
    FLOW_GAP,
    FRAME_PADDING,
    GAP,
    WRAPPER_FRAME_PADDING,
    Box,
    node_size,
    place_children,
    round_half_up,
    union_bounds,
)

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = (100, 100)
EMPTY_FRAME_SIZE = (280, 400)
TOOL_ID_PREFIX = "plan_tc_"


# =============================================================================
# Per-request context
# =============================================================================


@dataclass
class LayoutContext:
    """Mutable state for one composition.

    Attributes:
        use_explicit_positions: Emit x,y on every request.
        frame_info: Existing frame the composition is placed inside.
        color_index: Round-robin position for color="random".
        requests: Emitted (name, arguments) pairs, in order.
    """

    use_explicit_positions: bool = False
    frame_info: FrameInfo | None = None
    color_index: int = 0
    requests: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def _next_color(self, palette: list[str]) -> str:
        color = palette[self.color_index % len(palette)]
        self.color_index += 1
        return color

    def sticky_color(self, color: str | None) -> str:
        """Resolve a sticky color name, hex or "random"."""
        if not color or color == "random":
            return self._next_color(RANDOM_STICKY_PALETTE)
        if color.startswith("#"):
            return color
        return STICKY_COLOR_MAP.get(color, DEFAULT_STICKY_COLOR)

    def shape_color(self, color: str | None) -> str:
        """Resolve a shape color name, hex or "random"."""
        if not color or color == "random":
            return self._next_color(RANDOM_SHAPE_PALETTE)
        if color.startswith("#"):
            return color
        return SHAPE_COLOR_MAP.get(color, DEFAULT_SHAPE_COLOR)

    def emit(self, name: OperationName, arguments: dict[str, Any]) -> int:
        """Append a request and return its index."""
        self.requests.append((name.value, arguments))
        return len(self.requests) - 1

    def connect(self, from_index: int, to_index: int, style: str | None = None) -> None:
        """Append a connector between two emitted requests."""
        self.emit(
            OperationName.CREATE_CONNECTOR,
            {
                "fromIndex": from_index,
                "toIndex": to_index,
                "style": ConnectorStyle.CURVED.value
                if style == ConnectorStyle.CURVED.value
                else ConnectorStyle.STRAIGHT.value,
            },
        )


@dataclass
class LayoutResult:
    """Output of the layout engine.

    Attributes:
        tool_calls: Operation requests with ids plan_tc_<index>.
        summary: One-line description of what was composed.
    """

    tool_calls: list[ToolCall] = field(default_factory=list)
    summary: str = ""

    @property
    def object_count(self) -> int:
        """Number of non-connector requests."""
        return sum(
            1 for call in self.tool_calls if call.name != OperationName.CREATE_CONNECTOR.value
        )


# =============================================================================
# Node emission
# =============================================================================


def _place(args: dict[str, Any], x: float, y: float, positioned: bool) -> dict[str, Any]:
    if positioned:
        args["x"] = x
        args["y"] = y
    return args


def _emit_node(
    node: PlanNode,
    box: Box,
    ctx: LayoutContext,
    frame_info: FrameInfo | None,
    explicit: bool,
) -> int | None:
    """Emit one node and return the index other siblings connect to.

    Groups return None: they have no request of their own.
    """
    positioned = explicit or frame_info is not None
    frame_scope = {"frameId": frame_info.id} if frame_info is not None else {}

    match node.type:
        case NodeType.STICKY.value:
            args = {"text": node.text or "", "color": ctx.sticky_color(node.color), **frame_scope}
            return ctx.emit(OperationName.CREATE_STICKY_NOTE, _place(args, box.x, box.y, positioned))

        case NodeType.SHAPE.value:
            shape = (node.shape or ShapeKind.RECT.value).lower()
            args = {
                "type": shape,
                "width": box.width,
                "height": box.height,
                "color": ctx.shape_color(node.color),
            }
            if node.text:
                args["text"] = node.text
            args.update(frame_scope)
            # Circles are positioned by their center
            if shape == ShapeKind.CIRCLE.value:
                _place(args, box.center_x, box.center_y, positioned)
            else:
                _place(args, box.x, box.y, positioned)
            return ctx.emit(OperationName.CREATE_SHAPE, args)

        case NodeType.TEXT.value:
            args = {"text": node.text or ""}
            return ctx.emit(OperationName.CREATE_TEXT, _place(args, box.x, box.y, positioned))

        case NodeType.TEXT_BUBBLE.value:
            args = {"text": node.text or "", "width": box.width, "height": box.height}
            return ctx.emit(OperationName.CREATE_TEXT_BUBBLE, _place(args, box.x, box.y, positioned))

        case node_type if node_type in FRAMED_CONTAINER_TYPES:
            return _emit_framed_container(node, box, ctx)

        case NodeType.GROUP.value | NodeType.COMPOSITION.value:
            if node.children:
                boxes = place_children(
                    node.children, node.layout or LayoutType.STACK_VERTICAL.value, box.x, box.y
                )
                indices = [
                    _emit_node(child, child_box, ctx, frame_info, explicit)
                    for child, child_box in zip(node.children, boxes)
                ]
                _emit_connectors(node.children, indices, ctx)
            return None

        case _:
            logger.debug(f"Unknown node type '{node.type}', emitting a rectangle")
            args = {
                "type": ShapeKind.RECT.value,
                "width": box.width,
                "height": box.height,
                "color": ctx.shape_color(node.color),
            }
            if node.text:
                args["text"] = node.text
            return ctx.emit(OperationName.CREATE_SHAPE, _place(args, box.x, box.y, positioned))


def _emit_framed_container(node: PlanNode, box: Box, ctx: LayoutContext) -> int:
    """Emit a column or frame: children first, then the enclosing frame."""
    title = node.title or node.text or ""
    alloc_w = box.width or EMPTY_FRAME_SIZE[0]
    alloc_h = box.height or EMPTY_FRAME_SIZE[1]

    if not node.children:
        return ctx.emit(
            OperationName.CREATE_FRAME,
            {"title": title, "x": box.x, "y": box.y, "width": alloc_w, "height": alloc_h},
        )

    inner = Box(
        box.x + FRAME_PADDING,
        box.y + FRAME_PADDING,
        alloc_w - FRAME_PADDING * 2,
        alloc_h - FRAME_PADDING * 2,
    )
    boxes = place_children(
        node.children, node.layout or LayoutType.STACK_VERTICAL.value, inner.x, inner.y, inner
    )
    # Children are positioned relative to this frame, so they always carry x,y
    indices = [
        _emit_node(child, child_box, ctx, None, True)
        for child, child_box in zip(node.children, boxes)
    ]
    _emit_connectors(node.children, indices, ctx)

    content = union_bounds(boxes)
    return ctx.emit(
        OperationName.CREATE_FRAME,
        {
            "title": title,
            "width": max(alloc_w, content.width + FRAME_PADDING * 2),
            "height": max(alloc_h, content.height + FRAME_PADDING * 2),
            "x": box.x,
            "y": box.y,
        },
    )


def _emit_connectors(
    children: list[PlanNode], indices: list[int | None], ctx: LayoutContext
) -> None:
    """Chain each child that declares connectTo to its next sibling."""
    for i in range(len(children) - 1):
        if not children[i].connect_to:
            continue
        source, target = indices[i], indices[i + 1]
        if source is None or target is None:
            continue
        ctx.connect(source, target, children[i].connect_to)


# =============================================================================
# Branches
# =============================================================================


def branch_boxes(source: Box, steps: list[PlanNode], direction: str) -> list[Box]:
    """Place branch steps outward from `source`.

    Up and down stack the steps vertically, centered under or over the
    source. Left and right run horizontally on the source's centerline.
    Unknown directions branch downward.
    """
    sizes = [node_size(step) for step in steps]
    boxes = []

    if direction in (BranchDirection.LEFT.value, BranchDirection.RIGHT.value):
        if direction == BranchDirection.RIGHT.value:
            x = source.right + FLOW_GAP
            for size in sizes:
                boxes.append(
                    Box(round_half_up(x), round_half_up(source.center_y - size.height / 2), size.width, size.height)
                )
                x += size.width + GAP
        else:
            x = source.x - FLOW_GAP
            for size in sizes:
                boxes.append(
                    Box(
                        round_half_up(x - size.width),
                        round_half_up(source.center_y - size.height / 2),
                        size.width,
                        size.height,
                    )
                )
                x -= size.width + GAP
        return boxes

    if direction == BranchDirection.UP.value:
        total = sum(s.height for s in sizes) + GAP * (len(sizes) - 1)
        y = source.y - total - FLOW_GAP
    else:
        y = source.bottom + FLOW_GAP
    for size in sizes:
        boxes.append(Box(round_half_up(source.center_x - size.width / 2), round_half_up(y), size.width, size.height))
        y += size.height + GAP
    return boxes


def _emit_branches(
    children: list[PlanNode],
    boxes: list[Box],
    indices: list[int | None],
    ctx: LayoutContext,
) -> None:
    for child, box, source_index in zip(children, boxes, indices):
        if child.branch is None or not child.branch.steps:
            continue
        steps = child.branch.steps
        step_boxes = branch_boxes(box, steps, child.branch.direction or BranchDirection.DOWN.value)
        step_indices = [
            _emit_node(step, step_box, ctx, ctx.frame_info, ctx.use_explicit_positions)
            for step, step_box in zip(steps, step_boxes)
        ]
        chain = [source_index, *step_indices]
        for source, target in zip(chain, chain[1:]):
            if source is not None and target is not None:
                ctx.connect(source, target)


# =============================================================================
# Wrapper frame
# =============================================================================


def content_bounds(requests: list[tuple[str, dict[str, Any]]]) -> Box | None:
    """Bounding box over non-connector requests.

    Missing coordinates count as 0 and missing sizes as 200. Circles are
    boxed around their center.
    """
    boxes = []
    for name, args in requests:
        if name == OperationName.CREATE_CONNECTOR.value:
            continue
        x = args.get("x", 0)
        y = args.get("y", 0)
        w = args.get("width", 200)
        h = args.get("height", 200)
        if name == OperationName.CREATE_SHAPE.value and str(args.get("type", "")).lower() == "circle":
            boxes.append(Box(x - w / 2, y - h / 2, w, h))
        else:
            boxes.append(Box(x, y, w, h))
    return union_bounds(boxes)


def _emit_wrapper(title: str | None, ctx: LayoutContext) -> None:
    bounds = content_bounds(ctx.requests)
    if bounds is None:
        return
    args: dict[str, Any] = {
        "title": title or "Composition",
        "width": bounds.width + WRAPPER_FRAME_PADDING * 2,
        "height": bounds.height + WRAPPER_FRAME_PADDING * 2,
        "fill": "transparent",
    }
    if ctx.use_explicit_positions:
        args["x"] = bounds.x - WRAPPER_FRAME_PADDING
        args["y"] = bounds.y - WRAPPER_FRAME_PADDING
    ctx.emit(OperationName.CREATE_FRAME, args)


# =============================================================================
# Entry point
# =============================================================================


def plan_to_tool_calls(
    plan: CompositionPlan | dict[str, Any],
    anchor: tuple[float, float] | None = None,
    frame_info: FrameInfo | None = None,
    use_explicit_positions: bool = False,
) -> LayoutResult:
    """Convert a composition plan into positioned operation requests.

    Args:
        plan: Parsed plan, or the raw createPlan arguments.
        anchor: Top-left origin for the composition. Defaults to (100, 100).
        frame_info: Existing frame to compose inside. Positions are
            constrained to its padded interior and no wrapper is emitted.
        use_explicit_positions: Emit x,y on every request. When False,
            top-level leaves outside a frame are left for the consumer
            to place.

    Returns:
        LayoutResult with requests in emission order and a summary.
    """
    if isinstance(plan, dict):
        plan = CompositionPlan.model_validate(plan)

    ctx = LayoutContext(use_explicit_positions=use_explicit_positions, frame_info=frame_info)

    if not plan.children:
        return LayoutResult(summary="Empty plan: nothing to create")

    area = None
    if frame_info is not None:
        area = Box(
            frame_info.x + FRAME_PADDING,
            frame_info.y + FRAME_PADDING,
            frame_info.width - FRAME_PADDING * 2,
            frame_info.height - FRAME_PADDING * 2,
        )
        start_x, start_y = area.x, area.y
    else:
        start_x, start_y = anchor if anchor is not None else DEFAULT_ORIGIN

    layout = plan.layout or LayoutType.COLUMNS.value
    boxes = place_children(plan.children, layout, start_x, start_y, area)
    logger.debug(f"Placed {len(boxes)} top-level children with layout '{layout}'")

    indices = [
        _emit_node(child, box, ctx, frame_info, use_explicit_positions)
        for child, box in zip(plan.children, boxes)
    ]
    _emit_connectors(plan.children, indices, ctx)
    _emit_branches(plan.children, boxes, indices, ctx)

    if plan.wrap_in_frame is not False and frame_info is None:
        _emit_wrapper(plan.title, ctx)

    tool_calls = [
        ToolCall(id=f"{TOOL_ID_PREFIX}{i}", name=name, arguments=args)
        for i, (name, args) in enumerate(ctx.requests)
    ]
    result = LayoutResult(tool_calls=tool_calls)
    result.summary = f'Composed "{plan.title or "design"}" with {result.object_count} objects'
    return result


__all__ = [
    "LayoutContext",
    "LayoutResult",
    "branch_boxes",
    "content_bounds",
    "plan_to_tool_calls",
]
