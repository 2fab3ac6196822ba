"""Anthropic Claude backend implementation.

Supports Claude 4.5 models via the async Anthropic client. The pipeline
speaks OpenAI-style messages and function tools, so this backend
translates them into Anthropic `tools`, `tool_use` and `tool_result`
content blocks on the way out and back again on the way in.
"""

import json
import logging
import re
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
from .model_spec import DEFAULT_ANTHROPIC_MODEL, get_llm_spec

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = (
    "IMPORTANT: Respond with valid JSON only. "
    "Do not include any text, explanation, or markdown formatting "
    "before or after the JSON object."
)


# =============================================================================
# Format Translation
# =============================================================================


def convert_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert OpenAI function tools to Anthropic tool definitions."""
    converted = []
    for tool in tools:
        function = tool.get("function", tool)
        converted.append(
            {
                "name": function["name"],
                "description": function.get("description", ""),
                "input_schema": function.get(
                    "parameters", {"type": "object", "properties": {}}
                ),
            }
        )
    return converted


def convert_tool_choice(tool_choice: str) -> dict[str, Any]:
    """Convert a tool choice name to the Anthropic request shape."""
    if tool_choice == "auto":
        return {"type": "auto"}
    if tool_choice == "required":
        return {"type": "any"}
    if tool_choice == "none":
        return {"type": "none"}
    return {"type": "tool", "name": tool_choice}


def convert_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Split OpenAI-style messages into a system prompt and Anthropic turns.

    System messages are concatenated into the system prompt. Assistant tool
    calls become `tool_use` blocks and tool messages become `tool_result`
    blocks on a user turn. Consecutive turns with the same role are merged,
    since the Messages API requires alternating roles.

    Returns:
        Tuple of (system prompt, Anthropic message list).
    """
    system_parts: list[str] = []
    turns: list[dict[str, Any]] = []

    def append(role: str, blocks: list[dict[str, Any]]) -> None:
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].extend(blocks)
        else:
            turns.append({"role": role, "content": list(blocks)})

    for message in messages:
        role = message.get("role")
        content = message.get("content")

        if role == "system":
            if content:
                system_parts.append(content)
            continue

        if role == "tool":
            append(
                "user",
                [
                    {
                        "type": "tool_result",
                        "tool_use_id": message["tool_call_id"],
                        "content": content or "",
                    }
                ],
            )
            continue

        blocks: list[dict[str, Any]] = []
        if content:
            blocks.append({"type": "text", "text": content})
        if role == "assistant":
            for call in message.get("tool_calls") or []:
                function = call["function"]
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call["id"],
                        "name": function["name"],
                        "input": decode_tool_arguments(
                            function.get("arguments"), function["name"]
                        ),
                    }
                )
            append("assistant", blocks)
        else:
            append("user", blocks)

    return "\n\n".join(system_parts), turns


def extract_json(content: str) -> str:
    """Extract JSON from response, handling markdown code blocks.

    Args:
        content: Raw response content.

    Returns:
        Extracted JSON string.
    """
    content = content.strip()

    # Match ```json ... ``` or ``` ... ```
    matches = re.findall(r"```(?:json)?\s*([\s\S]*?)```", content)
    for match in matches:
        stripped = match.strip()
        if stripped.startswith("{") or stripped.startswith("["):
            return stripped

    # Prose around a bare object
    start = content.find("{")
    end = content.rfind("}")
    if start > 0 and end > start:
        return content[start : end + 1]

    return content


# =============================================================================
# Backend
# =============================================================================


class AnthropicBackend(LLMBackend):
    """Anthropic Claude backend.

    Note: Anthropic does not have native JSON mode. This backend uses
    prompt engineering and response extraction to handle JSON requests.

    Environment:
        ANTHROPIC_API_KEY: API key (required if not passed to constructor).

    Example:
        >>> backend = AnthropicBackend(model="claude-haiku-4-5")
        >>> result = await backend.complete(messages, tools=tools, tool_choice="createPlan")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_ANTHROPIC_MODEL.spec.name,
        timeout: float = 60.0,
        max_retries: int = 3,
    ):
        """Initialize Anthropic backend.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
            model: Model name (claude-sonnet-4-5, claude-haiku-4-5, etc.).
            timeout: Request timeout in seconds.
            max_retries: Number of retry attempts for transient errors.

        Raises:
            AuthenticationError: If no API key available.
        """
        self._api_key = api_key or get_environment(EnvVar.ANTHROPIC_API_KEY)
        if not self._api_key:
            raise AuthenticationError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self._spec = get_llm_spec(model)
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize the async Anthropic client.

        Returns:
            AsyncAnthropic client instance.

        Raises:
            ImportError: If anthropic package not installed.
        """
        if self._client is None:
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(
                    api_key=self._api_key,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                )
            except ImportError as e:
                raise ImportError(
                    "anthropic package required. Install with: pip install anthropic"
                ) from e
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._spec.name

    @property
    def provider(self) -> str:
        """Get the provider identifier."""
        return "anthropic"

    @property
    def supports_json_mode(self) -> bool:
        """Anthropic does not have native JSON mode - uses prompt engineering."""
        return False

    @property
    def context_window(self) -> int:
        """Get maximum context window size."""
        return self._spec.context_window

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        config: GenerationConfig | None = None,
    ) -> CompletionResult:
        """Run a completion through the Anthropic Messages API.

        Args:
            messages: Chat messages in OpenAI format.
            tools: Optional OpenAI-style function tool definitions.
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

        system_prompt, turns = convert_messages(messages)
        if config.json_mode:
            system_prompt = f"{system_prompt}\n\n{JSON_INSTRUCTION}".strip()

        kwargs: dict[str, Any] = {
            "model": self._spec.name,
            "messages": turns,
            "max_tokens": min(config.max_tokens, self._spec.max_output_tokens),
            "temperature": config.temperature,
        }

        if system_prompt:
            kwargs["system"] = system_prompt

        if tools:
            kwargs["tools"] = convert_tools(tools)
            if tool_choice:
                kwargs["tool_choice"] = convert_tool_choice(tool_choice)

        if config.stop_sequences:
            kwargs["stop_sequences"] = config.stop_sequences

        try:
            response = await client.messages.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
            raise

        text_parts: list[str] = []
        tool_calls: list[ToolInvocation] = []
        for block in response.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                arguments = dict(block.input or {})
                tool_calls.append(
                    ToolInvocation(
                        id=block.id,
                        name=block.name,
                        arguments=arguments,
                        raw_arguments=json.dumps(arguments),
                    )
                )

        return CompletionResult(
            content="".join(text_parts),
            tool_calls=tool_calls,
            finish_reason=response.stop_reason or "unknown",
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": (
                    response.usage.input_tokens + response.usage.output_tokens
                ),
            },
            model=response.model,
            raw_response=response,
        )

    async def complete_json(
        self,
        messages: list[Message],
        *,
        config: GenerationConfig | None = None,
    ) -> dict[str, Any]:
        """Run a completion and parse the reply as JSON.

        Since Anthropic doesn't have native JSON mode, this method:
        1. Adds JSON instructions to the system prompt
        2. Extracts JSON from markdown code blocks if present
        3. Parses the result

        Raises:
            InvalidResponseError: If response is not a JSON object.
        """
        result = await self.complete(messages, config=json_config(config))
        content = extract_json(result.content)

        try:
            parsed = json.loads(content)
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
        elif "context length" in error_str or "too long" in error_str:
            raise ContextLengthError(str(error)) from error
        elif "authentication" in error_str or "api key" in error_str:
            raise AuthenticationError(str(error)) from error
        else:
            raise LLMError(str(error)) from error


__all__ = [
    "AnthropicBackend",
    "convert_messages",
    "convert_tool_choice",
    "convert_tools",
    "extract_json",
]
