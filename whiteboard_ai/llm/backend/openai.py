"""OpenAI GPT backend implementation.

Supports GPT-4.1 and GPT-4o family models via the async OpenAI client,
including native function tools, forced tool choice and JSON mode.
"""

import json
import logging
from typing import Any

from ...config import EnvVar, get_environment
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
    json_config,
)
from .model_spec import DEFAULT_OPENAI_MODEL, LLMCapability, get_llm_spec

logger = logging.getLogger(__name__)

_PASSTHROUGH_CHOICES = ("auto", "none", "required")


def _openai_tool_choice(tool_choice: str) -> Any:
    """Translate a tool choice name into the OpenAI request shape."""
    if tool_choice in _PASSTHROUGH_CHOICES:
        return tool_choice
    return {"type": "function", "function": {"name": tool_choice}}


class OpenAIBackend(LLMBackend):
    """OpenAI GPT backend.

    Environment:
        OPENAI_API_KEY: API key (required if not passed to constructor).

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-nano")
        >>> result = await backend.complete(messages, tools=tools, tool_choice="auto")
        >>> plan = await backend.complete_json(messages)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL.spec.name,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            model: Model name (gpt-4.1-mini, gpt-4o-mini, etc.).
            base_url: Optional custom API endpoint.
            timeout: Request timeout in seconds.
            max_retries: Number of retry attempts for transient errors.

        Raises:
            AuthenticationError: If no API key available.
        """
        self._api_key = api_key or get_environment(EnvVar.OPENAI_API_KEY)
        if not self._api_key:
            raise AuthenticationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self._spec = get_llm_spec(model)
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize the async OpenAI client.

        Returns:
            AsyncOpenAI client instance.

        Raises:
            ImportError: If openai package not installed.
        """
        if self._client is None:
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                )
            except ImportError as e:
                raise ImportError(
                    "openai package required. Install with: pip install openai"
                ) from e
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._spec.name

    @property
    def provider(self) -> str:
        """Get the provider identifier."""
        return "openai"

    @property
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""
        return self._spec.supports(LLMCapability.JSON_MODE)

    @property
    def context_window(self) -> int:
        """Get maximum context window size."""
        return self._spec.context_window

    def _build_request(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        tool_choice: str | None,
        config: GenerationConfig,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._spec.name,
            "messages": messages,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
        }

        if tools:
            kwargs["tools"] = tools
            if tool_choice:
                kwargs["tool_choice"] = _openai_tool_choice(tool_choice)

        if config.json_mode and self.supports_json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        if config.stop_sequences:
            kwargs["stop"] = config.stop_sequences

        if config.seed is not None and self._spec.supports(LLMCapability.SEED):
            kwargs["seed"] = config.seed

        return kwargs

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        config: GenerationConfig | None = None,
    ) -> CompletionResult:
        """Run a chat completion through the OpenAI API.

        Args:
            messages: Chat messages in OpenAI format.
            tools: Optional function tool definitions.
            tool_choice: None, "auto", or the name of a tool to force.
            config: Generation configuration.

        Returns:
            CompletionResult with content, tool calls and metadata.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If rate limit exceeded.
            ContextLengthError: If prompt too long.
        """
        config = config or GenerationConfig()
        client = self._get_client()
        kwargs = self._build_request(messages, tools, tool_choice, config)

        try:
            response = await client.chat.completions.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
            raise  # Re-raise if _handle_error doesn't raise

        if not response.choices:
            raise InvalidResponseError("OpenAI returned no choices")

        choice = response.choices[0]
        tool_calls = [
            ToolInvocation(
                id=call.id,
                name=call.function.name,
                arguments=decode_tool_arguments(
                    call.function.arguments, call.function.name
                ),
                raw_arguments=call.function.arguments or "{}",
            )
            for call in (choice.message.tool_calls or [])
        ]

        usage: dict[str, int] = {}
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            content=choice.message.content or "",
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "unknown",
            usage=usage,
            model=response.model,
            raw_response=response,
        )

    async def complete_json(
        self,
        messages: list[Message],
        *,
        config: GenerationConfig | None = None,
    ) -> dict[str, Any]:
        """Run a completion in JSON mode and parse the reply.

        Args:
            messages: Chat messages requesting JSON output.
            config: Generation configuration (json_mode forced True).

        Returns:
            Parsed JSON dictionary.

        Raises:
            InvalidResponseError: If response is not a JSON object.
        """
        result = await self.complete(messages, config=json_config(config))

        try:
            parsed = json.loads(result.content)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(
                f"Failed to parse JSON response: {e}\nContent: {result.content[:500]}"
            ) from e
        if not isinstance(parsed, dict):
            raise InvalidResponseError(
                f"Expected a JSON object, got {type(parsed).__name__}"
            )
        return parsed

    def _handle_error(self, error: Exception) -> None:
        """Convert provider errors to standard exceptions.

        Args:
            error: The caught exception.

        Raises:
            RateLimitError: For rate limit errors.
            ContextLengthError: For context length errors.
            AuthenticationError: For auth errors.
            LLMError: For other errors.
        """
        error_str = str(error).lower()

        if "rate limit" in error_str or "rate_limit" in error_str:
            raise RateLimitError(str(error)) from error
        elif "context length" in error_str or "maximum context" in error_str:
            raise ContextLengthError(str(error)) from error
        elif "authentication" in error_str or "invalid api key" in error_str:
            raise AuthenticationError(str(error)) from error
        else:
            raise LLMError(str(error)) from error


__all__ = ["OpenAIBackend"]
