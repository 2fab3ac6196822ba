"""LLM backend implementations.

Provides the abstract completion interface and concrete implementations
for the OpenAI and Anthropic providers.
"""

from .base import (
    AuthenticationError,
    CompletionResult,
    ContextLengthError,
    GenerationConfig,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    Message,
    RateLimitError,
    ToolInvocation,
    decode_tool_arguments,
)
from .factory import ROLE_MODEL_VARS, create_llm_backend, create_role_backend
from .model_spec import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OPENAI_MODEL,
    LLMCapability,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)

__all__ = [
    # Base classes and types
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
    # Defaults
    "DEFAULT_MODEL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    # Factory
    "create_llm_backend",
    "create_role_backend",
    "ROLE_MODEL_VARS",
]
