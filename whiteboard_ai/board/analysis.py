"""Local board analysis and prompt context rendering.

Counting is never delegated to the model: when an agent asks for
`analyzeObjects`, the counts are computed here from real board data and
handed back to the model only for phrasing.
"""

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from .lib import BoardState

# =============================================================================
# Color naming
# =============================================================================


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    """Parse #RGB or #RRGGBB into an RGB triple.

    Returns:
        (r, g, b) or None when the string is not a hex color.
    """
    clean = value.strip().lstrip("#")
    if len(clean) == 3:
        clean = "".join(ch * 2 for ch in clean)
    if len(clean) != 6:
        return None
    try:
        return (int(clean[0:2], 16), int(clean[2:4], 16), int(clean[4:6], 16))
    except ValueError:
        return None


def rgb_to_color_name(r: int, g: int, b: int) -> str:
    """Name an RGB color by classifying it in HSL space."""
    r_norm, g_norm, b_norm = r / 255, g / 255, b / 255
    high = max(r_norm, g_norm, b_norm)
    low = min(r_norm, g_norm, b_norm)
    delta = high - low

    lightness = (high + low) / 2
    saturation = 0.0
    if delta != 0:
        saturation = delta / (1 - abs(2 * lightness - 1))

    if saturation < 0.15:
        if lightness < 0.2:
            return "black"
        if lightness < 0.5:
            return "gray"
        if lightness < 0.9:
            return "light gray"
        return "white"

    hue = 0.0
    if delta != 0:
        if high == r_norm:
            hue = 60 * (((g_norm - b_norm) / delta) % 6)
        elif high == g_norm:
            hue = 60 * ((b_norm - r_norm) / delta + 2)
        else:
            hue = 60 * ((r_norm - g_norm) / delta + 4)
        if hue < 0:
            hue += 360

    if hue < 15 or hue >= 345:
        return "pink" if lightness > 0.7 and saturation < 0.7 else "red"
    if hue < 45:
        return "brown" if lightness < 0.4 else "orange"
    if hue < 65:
        return "yellow"
    if hue < 80:
        return "lime"
    if hue < 165:
        return "green"
    if hue < 200:
        return "cyan"
    if hue < 260:
        return "blue"
    if hue < 330:
        if lightness > 0.6:
            return "pink"
        return "purple" if hue < 290 else "magenta"
    return "pink"


def color_name_for_hex(value: str | None) -> str:
    """Human-readable name for a hex color, or "unknown"."""
    if not value or not isinstance(value, str):
        return "unknown"
    rgb = hex_to_rgb(value)
    if rgb is None:
        return "unknown"
    return rgb_to_color_name(*rgb)


# =============================================================================
# Object analysis
# =============================================================================


@dataclass
class AnalysisResult:
    """Counts over a set of board objects.

    Attributes:
        total_objects: Number of objects analyzed.
        count_by_type: Object type to count.
        count_by_color: Color name to count ("none" when uncolored).
        count_by_type_and_color: (color, type) to count.
    """

    total_objects: int = 0
    count_by_type: dict[str, int] = field(default_factory=dict)
    count_by_color: dict[str, int] = field(default_factory=dict)
    count_by_type_and_color: dict[tuple[str, str], int] = field(default_factory=dict)

    def format_breakdown(self) -> str:
        """Render e.g. "3 red circles, 1 star", largest group first."""
        ranked = sorted(
            self.count_by_type_and_color.items(), key=lambda item: -item[1]
        )
        parts = []
        for (color, obj_type), count in ranked:
            plural = "s" if count != 1 else ""
            if color == "none":
                parts.append(f"{count} {obj_type}{plural}")
            else:
                parts.append(f"{count} {color} {obj_type}{plural}")
        return ", ".join(parts)

    def to_tool_payload(self) -> str:
        """JSON handed back to the model as the analyzeObjects tool result."""
        return json.dumps(
            {
                "totalObjects": self.total_objects,
                "breakdown": self.format_breakdown(),
                "countByType": self.count_by_type,
                "countByColor": self.count_by_color,
            }
        )


def analyze_objects(object_ids: list[str] | None, board: BoardState) -> AnalysisResult:
    """Count board objects by type and color.

    Args:
        object_ids: Ids to analyze. Empty or None analyzes the whole board.
        board: Board snapshot.

    Returns:
        AnalysisResult; unknown ids are ignored.
    """
    if object_ids:
        wanted = set(object_ids)
        objects = [obj for obj in board.objects if obj.id in wanted]
    else:
        objects = list(board.objects)

    by_type: Counter[str] = Counter()
    by_color: Counter[str] = Counter()
    by_both: Counter[tuple[str, str]] = Counter()
    for obj in objects:
        raw_color = obj.color or obj.fill
        color = color_name_for_hex(raw_color) if raw_color else "none"
        by_type[obj.type] += 1
        by_color[color] += 1
        by_both[(color, obj.type)] += 1

    return AnalysisResult(
        total_objects=len(objects),
        count_by_type=dict(by_type),
        count_by_color=dict(by_color),
        count_by_type_and_color=dict(by_both),
    )


# =============================================================================
# Prompt context
# =============================================================================


def _num(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def build_board_context(
    board: BoardState,
    selection_area: dict[str, float] | None = None,
) -> str:
    """Render the board snapshot and selection for a model prompt.

    Args:
        board: Board snapshot.
        selection_area: Optional {x, y, width, height} of a drag selection.

    Returns:
        Multi-line context string.
    """
    if not board.objects:
        context = "The board is currently empty."
    else:
        lines = []
        for obj in board.objects:
            parts = [f"id={obj.id}", f"type={obj.type}", f"pos=({_num(obj.x)},{_num(obj.y)})"]
            if obj.width is not None:
                parts.append(f"w={_num(obj.width)}")
            if obj.height is not None:
                parts.append(f"h={_num(obj.height)}")
            if obj.radius is not None:
                parts.append(f"r={_num(obj.radius)}")
            if obj.color:
                parts.append(f"color={color_name_for_hex(obj.color)}")
            if obj.fill:
                parts.append(f"fill={color_name_for_hex(obj.fill)}")
            if obj.stroke:
                parts.append(f"stroke={obj.stroke}")
            if obj.text:
                parts.append(f'text="{obj.text}"')
            if obj.name:
                parts.append(f'name="{obj.name}"')
            lines.append(" ".join(parts))
        context = f"Board has {len(board.objects)} object(s):\n" + "\n".join(lines)

    valid_ids = [obj.id for obj in board.selected_objects()]
    if not valid_ids:
        return context

    area_note = ""
    if selection_area and selection_area.get("width", 0) > 0 and selection_area.get("height", 0) > 0:
        area_note = (
            f" The user has selected a region at ({round(selection_area['x'])}, "
            f"{round(selection_area['y'])}) with width {round(selection_area['width'])}px "
            f"and height {round(selection_area['height'])}px. Operate ONLY within this box."
        )
    joined = ", ".join(valid_ids)
    return (
        f"{context}\n\n## User Selection (IMPORTANT)\n"
        f"The user has {len(valid_ids)} object(s) selected: {joined}.{area_note}\n"
        'When the user says "them", "these", "how many" or "arrange them", they mean '
        "THESE selected objects. When calling analyzeObjects or arrangeInGrid, pass "
        f"objectIds: [{joined}]."
    )


__all__ = [
    "AnalysisResult",
    "analyze_objects",
    "build_board_context",
    "color_name_for_hex",
    "hex_to_rgb",
    "rgb_to_color_name",
]
