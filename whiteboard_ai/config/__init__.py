"""Centralized configuration management for whiteboard-ai.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from whiteboard_ai.config import EnvVar, get_environment
    >>>
    >>> model = get_environment(EnvVar.WHITEBOARD_AGENT_MODEL)
    >>> api_key = get_environment(EnvVar.OPENAI_API_KEY)  # Returns str | None
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("models"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    llm: API keys for LLM providers (OpenAI, Anthropic)
    models: Model name per pipeline role (classifier, agents, planner, ...)
    pipeline: Dispatcher and logging behaviour
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    get_role_models,
    # Introspection
    list_environment_variables,
)

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
