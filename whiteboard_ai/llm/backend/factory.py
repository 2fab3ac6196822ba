"""Backend factory for creating LLM backends from model specifications.

Provides a unified entry point for creating any supported LLM backend.
"""

from ...config import EnvVar, get_environment
from .base import LLMBackend
from .model_spec import (
    DEFAULT_MODEL,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)


def create_llm_backend(
    model: str | LLMModel | LLMSpec = DEFAULT_MODEL,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    **kwargs,
) -> LLMBackend:
    """Create an LLM backend from a model specification.

    Routes to the backend class matching the model's provider.

    Args:
        model: Model to use. Can be:
            - String model name (e.g., "gpt-4.1-nano", "claude-haiku-4-5")
            - LLMModel enum value (e.g., LLMModel.GPT_4O_MINI)
            - LLMSpec instance
        api_key: API key. Falls back to the provider environment variable.
        base_url: Optional custom API endpoint (OpenAI-compatible only).
        **kwargs: Additional arguments passed to backend constructor
            (e.g., timeout, max_retries).

    Returns:
        Configured LLMBackend instance.

    Raises:
        ValueError: If model is unknown or configuration invalid.
        AuthenticationError: If API key required but not provided.

    Example:
        >>> backend = create_llm_backend("gpt-4.1-nano")
        >>> backend = create_llm_backend(LLMModel.CLAUDE_HAIKU_4_5, timeout=30.0)
    """
    spec = get_llm_spec(model)

    if spec.provider == LLMProviderType.OPENAI:
        from .openai import OpenAIBackend

        return OpenAIBackend(
            api_key=api_key,
            model=spec.name,
            base_url=base_url,
            **kwargs,
        )

    if spec.provider == LLMProviderType.ANTHROPIC:
        from .anthropic import AnthropicBackend

        return AnthropicBackend(
            api_key=api_key,
            model=spec.name,
            **kwargs,
        )

    raise ValueError(f"Unsupported provider type: {spec.provider}")


ROLE_MODEL_VARS: dict[str, EnvVar] = {
    "classifier": EnvVar.WHITEBOARD_CLASSIFIER_MODEL,
    "agent": EnvVar.WHITEBOARD_AGENT_MODEL,
    "planner": EnvVar.WHITEBOARD_PLANNER_MODEL,
    "supervisor": EnvVar.WHITEBOARD_SUPERVISOR_MODEL,
    "complex": EnvVar.WHITEBOARD_COMPLEX_MODEL,
}


def create_role_backend(role: str, **kwargs) -> LLMBackend:
    """Create the backend configured for one pipeline role.

    Args:
        role: One of classifier, agent, planner, supervisor, complex.
        **kwargs: Passed through to create_llm_backend.

    Raises:
        ValueError: If the role is unknown.
    """
    if role not in ROLE_MODEL_VARS:
        raise ValueError(f"Unknown pipeline role: {role}")
    return create_llm_backend(get_environment(ROLE_MODEL_VARS[role]), **kwargs)


__all__ = ["ROLE_MODEL_VARS", "create_llm_backend", "create_role_backend"]
