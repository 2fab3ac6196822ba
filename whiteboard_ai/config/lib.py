"""Centralized environment configuration management for whiteboard-ai.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from whiteboard_ai.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> model = get_environment(EnvVar.WHITEBOARD_AGENT_MODEL)  # "gpt-4.1-nano"
    >>> api_key = get_environment(EnvVar.OPENAI_API_KEY)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> model = get_environment(EnvVar.WHITEBOARD_AGENT_MODEL, override="gpt-4o")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "WHITEBOARD_LOG_LEVEL").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, bool).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by whiteboard-ai.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - llm: LLM provider API keys and provider preference
        - models: Model used by each pipeline role
        - pipeline: Dispatcher and logging behaviour
    """

    # -------------------------------------------------------------------------
    # LLM API Keys
    # -------------------------------------------------------------------------
    OPENAI_API_KEY = EnvConfig(
        name="OPENAI_API_KEY",
        default=None,
        var_type=str,
        description="OpenAI API key for GPT models",
        category="llm",
    )
    ANTHROPIC_API_KEY = EnvConfig(
        name="ANTHROPIC_API_KEY",
        default=None,
        var_type=str,
        description="Anthropic API key for Claude models",
        category="llm",
    )
    LLM_PROVIDER = EnvConfig(
        name="LLM_PROVIDER",
        default=None,
        var_type=str,
        description="Preferred LLM provider (openai, anthropic)",
        category="llm",
    )

    # -------------------------------------------------------------------------
    # Models per pipeline role
    # -------------------------------------------------------------------------
    WHITEBOARD_CLASSIFIER_MODEL = EnvConfig(
        name="WHITEBOARD_CLASSIFIER_MODEL",
        default="gpt-4o-mini",
        var_type=str,
        description="Model used for intent classification",
        category="models",
    )
    WHITEBOARD_AGENT_MODEL = EnvConfig(
        name="WHITEBOARD_AGENT_MODEL",
        default="gpt-4.1-nano",
        var_type=str,
        description="Model used by mini-agents and worker agents",
        category="models",
    )
    WHITEBOARD_PLANNER_MODEL = EnvConfig(
        name="WHITEBOARD_PLANNER_MODEL",
        default="gpt-4.1-mini",
        var_type=str,
        description="Model used by the creative composition planner",
        category="models",
    )
    WHITEBOARD_SUPERVISOR_MODEL = EnvConfig(
        name="WHITEBOARD_SUPERVISOR_MODEL",
        default="gpt-4.1-nano",
        var_type=str,
        description="Model used to build orchestration execution plans",
        category="models",
    )
    WHITEBOARD_COMPLEX_MODEL = EnvConfig(
        name="WHITEBOARD_COMPLEX_MODEL",
        default="gpt-4o-mini",
        var_type=str,
        description="Model used by the complex domain supervisor",
        category="models",
    )

    # -------------------------------------------------------------------------
    # Pipeline behaviour
    # -------------------------------------------------------------------------
    WHITEBOARD_USE_INTENT_CLASSIFIER = EnvConfig(
        name="WHITEBOARD_USE_INTENT_CLASSIFIER",
        default=True,
        var_type=bool,
        description="Try the intent tier before the agent tiers",
        category="pipeline",
    )
    WHITEBOARD_LOG_LEVEL = EnvConfig(
        name="WHITEBOARD_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Logging level for the CLI (DEBUG, INFO, WARNING)",
        category="pipeline",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is float:
        try:
            return float(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, float or bool).

    Example:
        >>> get_environment(EnvVar.WHITEBOARD_PLANNER_MODEL)
        'gpt-4.1-mini'
        >>> get_environment(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER, override=False)
        False
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)

    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_available_llm_providers() -> list[str]:
    """Get list of LLM providers that have an API key configured.

    Returns:
        List of provider names (e.g., ["openai", "anthropic"]).
    """
    providers = []

    if get_environment(EnvVar.OPENAI_API_KEY):
        providers.append("openai")
    if get_environment(EnvVar.ANTHROPIC_API_KEY):
        providers.append("anthropic")

    return providers


def get_role_models() -> dict[str, str]:
    """Get the configured model name for every pipeline role.

    Returns:
        Dict mapping role name to model name.
    """
    return {
        "classifier": get_environment(EnvVar.WHITEBOARD_CLASSIFIER_MODEL),
        "agent": get_environment(EnvVar.WHITEBOARD_AGENT_MODEL),
        "planner": get_environment(EnvVar.WHITEBOARD_PLANNER_MODEL),
        "supervisor": get_environment(EnvVar.WHITEBOARD_SUPERVISOR_MODEL),
        "complex": get_environment(EnvVar.WHITEBOARD_COMPLEX_MODEL),
    }


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (llm, models, pipeline).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_available_llm_providers",
    "get_role_models",
    # Introspection
    "list_environment_variables",
]
