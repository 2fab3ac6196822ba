"""Abstract base class for LLM backends.

Defines the interface that all completion providers must follow. Every
pipeline stage talks to the model through `LLMBackend.complete`, which
accepts OpenAI-style chat messages plus optional function tools and
returns narrative text alongside zero or more structured tool invocations.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

Message = dict[str, Any]


@dataclass
class GenerationConfig:
    """Configuration for a completion request.

    Attributes:
        temperature: Sampling temperature (0.0-2.0). Lower = more deterministic.
        max_tokens: Maximum tokens to generate in response.
        json_mode: Whether to enforce JSON output format.
        stop_sequences: Optional sequences that stop generation.
        top_p: Nucleus sampling parameter (0.0-1.0).
        seed: Optional seed for reproducible generation.
    """

    temperature: float = 0.7
    max_tokens: int = 4096
    json_mode: bool = False
    stop_sequences: list[str] = field(default_factory=list)
    top_p: float = 1.0
    seed: int | None = None


@dataclass
class ToolInvocation:
    """One structured tool call returned by the model.

    Attributes:
        id: Provider-assigned call id, echoed back in tool result messages.
        name: Name of the invoked tool.
        arguments: Decoded argument object ({} when the model sent bad JSON).
        raw_arguments: Argument string exactly as the provider returned it.
    """

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    raw_arguments: str = "{}"


@dataclass
class CompletionResult:
    """Result from a completion request.

    Attributes:
        content: Narrative text content (may be empty when tools were called).
        tool_calls: Structured tool invocations, in model order.
        finish_reason: Why generation stopped ('stop', 'tool_calls', 'length').
        usage: Token usage dict (prompt_tokens, completion_tokens, total_tokens).
        model: Model identifier that was used.
        raw_response: Provider-specific raw response for debugging.
    """

    content: str = ""
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""
    raw_response: Any = None

    def as_message(self) -> Message:
        """Render this result as an assistant message for a follow-up turn."""
        message: Message = {"role": "assistant", "content": self.content or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": call.raw_arguments,
                    },
                }
                for call in self.tool_calls
            ]
        return message


def decode_tool_arguments(raw: str | None, tool_name: str = "") -> dict[str, Any]:
    """Decode a tool-call argument string.

    Malformed or non-object JSON decodes to an empty dict, matching a model
    that emitted a broken call.
    """
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Unparseable arguments for tool '{tool_name}': {e}")
        return {}
    if not isinstance(parsed, dict):
        logger.warning(f"Non-object arguments for tool '{tool_name}'")
        return {}
    return parsed


class LLMBackend(ABC):
    """Abstract interface for chat completion backends.

    Implementations wrap a provider SDK (OpenAI, Anthropic) and translate
    between the provider wire format and the OpenAI-style messages and
    function tools used throughout the pipeline.

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-nano")
        >>> result = await backend.complete(
        ...     [{"role": "user", "content": "create a red circle"}],
        ...     tools=[CREATE_SHAPE_TOOL],
        ...     tool_choice="auto",
        ... )
        >>> result.tool_calls[0].name
        'createShape'
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        config: GenerationConfig | None = None,
    ) -> CompletionResult:
        """Run one completion request.

        Args:
            messages: Chat messages (system, user, assistant, tool).
            tools: Optional function tool definitions in OpenAI format.
            tool_choice: None, "auto", or the name of a tool to force.
            config: Generation configuration options.

        Returns:
            CompletionResult with narrative text and tool invocations.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If API rate limit is exceeded.
            ContextLengthError: If prompt exceeds context window.
        """

    @abstractmethod
    async def complete_json(
        self,
        messages: list[Message],
        *,
        config: GenerationConfig | None = None,
    ) -> dict[str, Any]:
        """Run a completion and parse the reply as a JSON object.

        Args:
            messages: Chat messages requesting JSON output.
            config: Generation configuration (json_mode forced True).

        Returns:
            Parsed JSON dictionary.

        Raises:
            LLMError: If generation fails.
            InvalidResponseError: If response is not a valid JSON object.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model identifier.

        Returns:
            String model name (e.g., 'gpt-4.1-mini', 'claude-sonnet-4-5').
        """

    @property
    @abstractmethod
    def provider(self) -> str:
        """Get the provider identifier.

        Returns:
            String provider name (e.g., 'openai', 'anthropic').
        """

    @property
    def name(self) -> str:
        """Get backend identifier for logging.

        Returns:
            String in format 'provider:model'.
        """
        return f"{self.provider}:{self.model_name}"

    @property
    @abstractmethod
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""

    @property
    @abstractmethod
    def context_window(self) -> int:
        """Get maximum context window size in tokens."""


def json_config(config: GenerationConfig | None) -> GenerationConfig:
    """Copy a config with json_mode forced on."""
    config = config or GenerationConfig()
    return GenerationConfig(
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        json_mode=True,
        stop_sequences=config.stop_sequences,
        top_p=config.top_p,
        seed=config.seed,
    )


class LLMError(Exception):
    """Base exception for LLM backend errors."""


class RateLimitError(LLMError):
    """Raised when API rate limit is exceeded.

    Attributes:
        retry_after: Suggested wait time in seconds before retry.
    """

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ContextLengthError(LLMError):
    """Raised when prompt exceeds the model's context window."""


class InvalidResponseError(LLMError):
    """Raised when response cannot be parsed as expected format."""


class AuthenticationError(LLMError):
    """Raised when API authentication fails (invalid or missing key)."""


__all__ = [
    "LLMBackend",
    "GenerationConfig",
    "CompletionResult",
    "ToolInvocation",
    "Message",
    "decode_tool_arguments",
    "json_config",
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
]
