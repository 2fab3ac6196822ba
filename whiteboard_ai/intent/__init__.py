"""Intent classification, correction and direct execution."""

from .corrections import (
    COLOR_NAME_TO_HEX,
    DEFAULT_CORRECTIONS,
    RANDOM_COLOR,
    Correction,
    apply_corrections,
    color_name_to_hex,
    expand_color_groups,
    force_single_step_for_varied_colors,
    parse_color_groups,
)
from .execute import execute_from_intent, find_matching_objects
from .lib import (
    CLASSIFIER_CONFIG,
    INTENT_CLASSIFIER_PROMPT,
    INTENT_TOOL,
    INTENT_TOOL_NAME,
    classify_intent,
)
from .models import Coordinates, Dimensions, Intent, IntentOperation, IntentStep, TargetFilter

__all__ = [
    # Models
    "Intent",
    "IntentOperation",
    "IntentStep",
    "TargetFilter",
    "Coordinates",
    "Dimensions",
    # Classification
    "INTENT_TOOL",
    "INTENT_TOOL_NAME",
    "INTENT_CLASSIFIER_PROMPT",
    "CLASSIFIER_CONFIG",
    "classify_intent",
    # Corrections
    "Correction",
    "DEFAULT_CORRECTIONS",
    "apply_corrections",
    "force_single_step_for_varied_colors",
    "expand_color_groups",
    "parse_color_groups",
    "COLOR_NAME_TO_HEX",
    "RANDOM_COLOR",
    "color_name_to_hex",
    # Execution
    "find_matching_objects",
    "execute_from_intent",
]
