"""Creative composition: one planner call, then deterministic layout."""

from .lib import (
    AGENT_NAME,
    PLANNER_CONFIG,
    PLANNER_PROMPT,
    CompositionError,
    build_frame_context_instruction,
    build_planner_messages,
    execute_creative_composer,
    parse_plan,
)

__all__ = [
    # Composer
    "execute_creative_composer",
    "CompositionError",
    "AGENT_NAME",
    # Prompting
    "PLANNER_PROMPT",
    "PLANNER_CONFIG",
    "build_frame_context_instruction",
    "build_planner_messages",
    "parse_plan",
]
