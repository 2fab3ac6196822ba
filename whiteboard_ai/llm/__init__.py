"""LLM integration layer for the whiteboard command pipeline.

Every model call in the pipeline goes through an `LLMBackend`: the intent
classifier, the mini and worker agents, the orchestration supervisor, the
complex supervisor and the composition planner. Each role has its own
configured model (see `whiteboard_ai.config`).

Supported providers:
- OpenAI (GPT-4.1, GPT-4o)
- Anthropic (Claude 4.5)

Example:
    >>> from whiteboard_ai.llm import create_role_backend
    >>> backend = create_role_backend("agent")
    >>> result = await backend.complete(messages, tools=tools, tool_choice="auto")
"""

from .backend import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OPENAI_MODEL,
    ROLE_MODEL_VARS,
    AuthenticationError,
    CompletionResult,
    ContextLengthError,
    GenerationConfig,
    InvalidResponseError,
    LLMBackend,
    LLMCapability,
    LLMError,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    Message,
    RateLimitError,
    ToolInvocation,
    create_llm_backend,
    create_role_backend,
    decode_tool_arguments,
    get_llm_spec,
)

__all__ = [
    # Backend
    "LLMBackend",
    "GenerationConfig",
    "CompletionResult",
    "ToolInvocation",
    "Message",
    "decode_tool_arguments",
    # Exceptions
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    # Model specification
    "LLMCapability",
    "LLMProviderType",
    "LLMSpec",
    "LLMModel",
    "get_llm_spec",
    "DEFAULT_MODEL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    # Factory
    "create_llm_backend",
    "create_role_backend",
    "ROLE_MODEL_VARS",
]
