"""Direct execution of a classified intent, with no further model calls."""

import logging
from typing import Any

from ..board import BoardObject, BoardState, OperationName, ToolCall
from ..plan import SHAPE_KINDS, STICKY_COLOR_MAP
from .corrections import RANDOM_COLOR, color_name_to_hex
from .models import Intent, IntentOperation, TargetFilter

logger = logging.getLogger(__name__)

# objectType -> (operation, request id)
_CREATE_TARGETS = {
    "shape": (OperationName.CREATE_SHAPE, "create_shapes"),
    "sticky": (OperationName.CREATE_STICKY_NOTE, "create_stickies"),
    "frame": (OperationName.CREATE_FRAME, "create_frames"),
    "text": (OperationName.CREATE_TEXT, "create_texts"),
    "textBubble": (OperationName.CREATE_TEXT_BUBBLE, "create_textbubbles"),
}

_SIZED_TYPES = frozenset({"shape", "frame", "textBubble"})
_FRAME_SCOPED_TYPES = frozenset({"shape", "sticky"})

# Operations that only a tier with board reasoning can carry out
_ESCALATE = frozenset(
    {
        IntentOperation.CREATIVE,
        IntentOperation.CONVERSATION,
        IntentOperation.UNKNOWN,
    }
)


# =============================================================================
# Target resolution
# =============================================================================


def _color_matches(obj: BoardObject, color: str) -> bool:
    candidates = {color.lower()}
    if hex_color := color_name_to_hex(color):
        candidates.add(hex_color.lower())
    if sticky := STICKY_COLOR_MAP.get(color.strip().lower()):
        candidates.add(sticky.lower())
    return any(value and value.lower() in candidates for value in (obj.color, obj.fill))


def find_matching_objects(board: BoardState, target_filter: TargetFilter | None) -> list[BoardObject]:
    """Resolve a target filter against board objects, in board order.

    No filter matches nothing. `shapeType` takes precedence over `type`, and
    type "shape" matches every shape kind. Colors match by exact value, by
    hex equivalent of a color name, or by sticky palette name.
    """
    if target_filter is None:
        return []

    matches = list(board.objects)
    if target_filter.shape_type:
        matches = [obj for obj in matches if obj.type == target_filter.shape_type]
    elif target_filter.type == "shape":
        matches = [obj for obj in matches if obj.type in SHAPE_KINDS]
    elif target_filter.type:
        matches = [obj for obj in matches if obj.type == target_filter.type]

    if target_filter.color:
        matches = [obj for obj in matches if _color_matches(obj, target_filter.color)]

    if target_filter.use_selection:
        selected = set(board.selected_ids)
        matches = [obj for obj in matches if obj.id in selected]

    return matches


# =============================================================================
# Request builders
# =============================================================================


def _resolve_create_color(intent: Intent) -> str | None:
    if not intent.color or intent.color.lower() == RANDOM_COLOR:
        return None
    if intent.object_type == "sticky" and (sticky := STICKY_COLOR_MAP.get(intent.color.lower())):
        return sticky
    return color_name_to_hex(intent.color)


def _create_requests(intent: Intent, board: BoardState) -> list[ToolCall] | None:
    if intent.object_type not in _CREATE_TARGETS or (
        intent.object_type == "shape" and not intent.shape_type
    ):
        logger.warning(f"CREATE without a creatable object kind ({intent.object_type}), escalating")
        return None

    operation, request_id = _CREATE_TARGETS[intent.object_type]
    quantity = intent.quantity or 1
    args: dict[str, Any] = {}

    match intent.object_type:
        case "shape":
            args["type"] = intent.shape_type
        case "frame":
            args["title"] = intent.text or "Frame"
        case _:
            args["text"] = intent.text or ""

    if intent.object_type in ("shape", "sticky"):
        if len(intent.colors) > 1 and quantity > 1:
            args["colors"] = [color_name_to_hex(c) for c in intent.colors]
        elif color := _resolve_create_color(intent):
            args["color"] = color

    if quantity > 1:
        args["quantity"] = quantity
        if intent.rows:
            args["rows"] = intent.rows
        if intent.columns:
            args["columns"] = intent.columns
    elif intent.coordinates:
        args["x"] = intent.coordinates.x
        args["y"] = intent.coordinates.y

    if intent.dimensions and intent.object_type in _SIZED_TYPES:
        args["width"] = intent.dimensions.width
        args["height"] = intent.dimensions.height

    if intent.object_type in _FRAME_SCOPED_TYPES and (frame := board.selected_frame):
        args["frameId"] = frame.id

    return [ToolCall(id=request_id, name=operation.value, arguments=args)]


def _move_requests(intent: Intent, targets: list[BoardObject]) -> list[ToolCall]:
    requests = []
    for i, obj in enumerate(targets):
        args: dict[str, Any] = {"objectId": obj.id}
        if intent.direction:
            args["direction"] = intent.direction
        elif intent.coordinates:
            args["x"] = intent.coordinates.x
            args["y"] = intent.coordinates.y
        else:
            logger.warning(f"MOVE has no direction or coordinates for {obj.id}")
            continue
        requests.append(ToolCall(id=f"move_{i}", name=OperationName.MOVE_OBJECT.value, arguments=args))
    return requests


# =============================================================================
# Execution
# =============================================================================


def execute_from_intent(intent: Intent, board: BoardState | None = None) -> list[ToolCall] | None:
    """Map an intent to operation requests without calling a model.

    Returns:
        The requests (possibly empty when a filter matches nothing), or
        None when the intent needs a tier with board reasoning: multi-step,
        CONNECT, FIT_FRAME_TO_CONTENTS, CREATIVE, CONVERSATION, UNKNOWN, an
        UPDATE without text, or a CREATE without a creatable kind.
    """
    if intent.needs_board_context or intent.operation in _ESCALATE:
        logger.info(f"{intent.operation.value} needs a higher tier, escalating")
        return None

    board = board or BoardState()
    targets = find_matching_objects(board, intent.target_filter)
    requests: list[ToolCall] = []

    match intent.operation:
        case IntentOperation.CREATE:
            created = _create_requests(intent, board)
            if created is None:
                return None
            requests = created

        case IntentOperation.CHANGE_COLOR:
            if not intent.color:
                logger.warning("CHANGE_COLOR has no color, escalating")
                return None
            color = color_name_to_hex(intent.color)
            requests = [
                ToolCall(
                    id=f"color_{i}",
                    name=OperationName.CHANGE_COLOR.value,
                    arguments={"objectId": obj.id, "color": color},
                )
                for i, obj in enumerate(targets)
            ]

        case IntentOperation.DELETE:
            if targets:
                requests = [
                    ToolCall(
                        id="delete_0",
                        name=OperationName.DELETE_OBJECT.value,
                        arguments={"objectIds": [obj.id for obj in targets]},
                    )
                ]

        case IntentOperation.MOVE:
            requests = _move_requests(intent, targets)

        case IntentOperation.RESIZE:
            if dimensions := intent.dimensions:
                requests = [
                    ToolCall(
                        id=f"resize_{i}",
                        name=OperationName.RESIZE_OBJECT.value,
                        arguments={
                            "objectId": obj.id,
                            "width": dimensions.width,
                            "height": dimensions.height,
                        },
                    )
                    for i, obj in enumerate(targets)
                ]

        case IntentOperation.ROTATE:
            if intent.rotation is not None:
                requests = [
                    ToolCall(
                        id=f"rotate_{i}",
                        name=OperationName.ROTATE_OBJECT.value,
                        arguments={"objectId": obj.id, "rotation": intent.rotation},
                    )
                    for i, obj in enumerate(targets)
                ]

        case IntentOperation.ARRANGE:
            if targets:
                operation = (
                    OperationName.ARRANGE_IN_GRID_AND_RESIZE
                    if intent.method == "resize"
                    else OperationName.ARRANGE_IN_GRID
                )
                requests = [
                    ToolCall(
                        id="arrange_0",
                        name=operation.value,
                        arguments={"objectIds": [obj.id for obj in targets]},
                    )
                ]

        case IntentOperation.ANALYZE:
            # An empty id list means the whole board, so a filter that
            # matched nothing emits no request
            if intent.target_filter is not None and not targets:
                logger.info("ANALYZE filter matched no objects")
            else:
                requests = [
                    ToolCall(
                        id="analyze_0",
                        name=OperationName.ANALYZE_OBJECTS.value,
                        arguments={"objectIds": [obj.id for obj in targets]},
                    )
                ]

        case IntentOperation.UPDATE:
            if not intent.text:
                logger.warning("UPDATE has no text content, escalating")
                return None
            requests = [
                ToolCall(
                    id=f"update_{i}",
                    name=OperationName.UPDATE_TEXT.value,
                    arguments={"objectId": obj.id, "newText": intent.text},
                )
                for i, obj in enumerate(targets)
            ]

        case _:
            logger.warning(f"Cannot execute {intent.operation.value} directly")
            return None

    logger.info(f"Generated {len(requests)} requests from {intent.operation.value} intent")
    return requests


__all__ = [
    "find_matching_objects",
    "execute_from_intent",
]
