"""Board snapshot models, operation requests and local analysis."""

from .analysis import (
    AnalysisResult,
    analyze_objects,
    build_board_context,
    color_name_for_hex,
    hex_to_rgb,
    rgb_to_color_name,
)
from .lib import (
    CREATION_OPERATIONS,
    AgentResult,
    BoardObject,
    BoardState,
    FrameInfo,
    OperationName,
    ToolCall,
)

__all__ = [
    # Models
    "BoardObject",
    "BoardState",
    "FrameInfo",
    "ToolCall",
    "AgentResult",
    "OperationName",
    "CREATION_OPERATIONS",
    # Analysis
    "AnalysisResult",
    "analyze_objects",
    "build_board_context",
    "color_name_for_hex",
    "hex_to_rgb",
    "rgb_to_color_name",
]
