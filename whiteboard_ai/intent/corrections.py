"""Deterministic corrections applied after intent classification.

The classifier model is unreliable at bulk enumeration: it flags plain
"create 8 stars in random colors" as multi-step, and it miscounts color
groups such as "3 red and 2 blue circles". Each correction is a plain
callable `(intent, message) -> intent` so the stage can be extended or
replaced without touching the classifier.
"""

import logging
import re
from collections.abc import Callable, Sequence
from itertools import cycle, islice

from .models import Intent, IntentOperation

logger = logging.getLogger(__name__)

Correction = Callable[[Intent, str], Intent]

COLOR_NAME_TO_HEX = {
    "red": "#EF4444",
    "blue": "#3B82F6",
    "green": "#10B981",
    "yellow": "#EAB308",
    "orange": "#F97316",
    "pink": "#EC4899",
    "purple": "#A855F7",
    "gray": "#6B7280",
    "grey": "#6B7280",
    "black": "#000000",
    "white": "#FFFFFF",
}

RANDOM_COLOR = "random"


def color_name_to_hex(color: str | None) -> str | None:
    """Resolve a color name to hex. Hex and unknown names pass through."""
    if not color or color.startswith("#"):
        return color
    return COLOR_NAME_TO_HEX.get(color.strip().lower(), color)


# =============================================================================
# Single-step override
# =============================================================================

_BULK_VARIED_COLORS = re.compile(
    r"^\s*(?:create|add|make|draw|generate)\s+(\d+)\s+.*"
    r"\b(?:random|different|various|varied|assorted|multiple)\s+colou?rs?\b"
)

_OBJECT_NOUNS = [
    (re.compile(r"\bsticky\b|\bnotes?\b|\bstick(?:y|ies)\b"), "sticky", None),
    (re.compile(r"\bcircles?\b"), "shape", "circle"),
    (re.compile(r"\bstars?\b"), "shape", "star"),
    (re.compile(r"\btriangles?\b"), "shape", "triangle"),
    (re.compile(r"\b(?:rect|rects|rectangles?|squares?|boxes)\b"), "shape", "rect"),
    (re.compile(r"\btext bubbles?\b"), "textBubble", None),
    (re.compile(r"\bframes?\b"), "frame", None),
]


def _object_kind(message: str) -> tuple[str, str | None] | None:
    for pattern, object_type, shape_type in _OBJECT_NOUNS:
        if pattern.search(message):
            return object_type, shape_type
    return None


def force_single_step_for_varied_colors(intent: Intent, message: str) -> Intent:
    """'create N <type> in random/different colors' is one CREATE, never multi-step."""
    lower = message.lower()
    if not (match := _BULK_VARIED_COLORS.search(lower)):
        return intent
    if not intent.is_multi_step and intent.operation == IntentOperation.CREATE:
        return intent

    update: dict = {
        "operation": IntentOperation.CREATE,
        "is_multi_step": False,
        "steps": [],
        "quantity": intent.quantity or int(match.group(1)),
    }
    if not intent.colors and not intent.color:
        update["color"] = RANDOM_COLOR
    if not intent.object_type and (kind := _object_kind(lower)):
        update["object_type"], update["shape_type"] = kind
    logger.info(f"Overriding multi-step classification for '{message}': single CREATE")
    return intent.model_copy(update=update)


# =============================================================================
# Color groups
# =============================================================================

_COLOR_GROUP = re.compile(r"\b(\d+)\s+(" + "|".join(COLOR_NAME_TO_HEX) + r")\b")


def parse_color_groups(message: str) -> list[tuple[int, str]]:
    """Extract `<count> <colorName>` groups as (count, hex) pairs in text order."""
    return [
        (int(count), COLOR_NAME_TO_HEX[name])
        for count, name in _COLOR_GROUP.findall(message.lower())
        if int(count) > 0
    ]


def _pad_cyclic(colors: list[str], length: int) -> list[str]:
    return list(islice(cycle(colors), length))


def expand_color_groups(intent: Intent, message: str) -> Intent:
    """Make per-object colors match the text.

    Two or more color groups replace the model's color list with their
    expansion, and the quantity grows to cover it. Otherwise a short
    color list is padded cyclically up to the quantity.
    """
    if intent.operation != IntentOperation.CREATE:
        return intent

    groups = parse_color_groups(message)
    if len(groups) >= 2:
        expanded = [color for count, color in groups for _ in range(count)]
        quantity = max(intent.quantity or 0, len(expanded))
        if quantity > len(expanded):
            expanded = _pad_cyclic(expanded, quantity)
        logger.info(f"Expanded {len(groups)} color groups into {quantity} colors")
        return intent.model_copy(update={"colors": expanded, "quantity": quantity, "color": None})

    colors = [c for c in (color_name_to_hex(c) for c in intent.colors) if c]
    quantity = intent.quantity or 1
    if colors and len(colors) < quantity:
        logger.debug(f"Padding {len(colors)} colors cyclically to {quantity}")
        colors = _pad_cyclic(colors, quantity)
    if colors == intent.colors:
        return intent
    return intent.model_copy(update={"colors": colors})


DEFAULT_CORRECTIONS: tuple[Correction, ...] = (
    force_single_step_for_varied_colors,
    expand_color_groups,
)


def apply_corrections(
    intent: Intent,
    message: str,
    corrections: Sequence[Correction] = DEFAULT_CORRECTIONS,
) -> Intent:
    """Run each correction in order over the classified intent."""
    for correction in corrections:
        intent = correction(intent, message)
    return intent


__all__ = [
    "Correction",
    "COLOR_NAME_TO_HEX",
    "RANDOM_COLOR",
    "color_name_to_hex",
    "force_single_step_for_varied_colors",
    "parse_color_groups",
    "expand_color_groups",
    "DEFAULT_CORRECTIONS",
    "apply_corrections",
]
