"""Tests for LLM backend implementations."""

import json
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from .anthropic import (
    AnthropicBackend,
    convert_messages,
    convert_tool_choice,
    convert_tools,
    extract_json,
)
from .base import (
    AuthenticationError,
    CompletionResult,
    GenerationConfig,
    InvalidResponseError,
    LLMError,
    RateLimitError,
    ToolInvocation,
    decode_tool_arguments,
)
from .factory import create_llm_backend, create_role_backend
from .model_spec import (
    LLMCapability,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)
from .openai import OpenAIBackend

SAMPLE_TOOL = {
    "type": "function",
    "function": {
        "name": "createShape",
        "description": "Create a shape",
        "parameters": {
            "type": "object",
            "properties": {"type": {"type": "string"}},
            "required": ["type"],
        },
    },
}


def _openai_response(content=None, tool_calls=None, finish_reason="stop"):
    """Build a stand-in for an OpenAI chat completion response."""
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=5, completion_tokens=7, total_tokens=12),
        model="gpt-4.1-nano",
    )


def _openai_tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def _stub_openai(backend, response):
    create = AsyncMock(return_value=response)
    backend._client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create))
    )
    return create


class TestLLMSpec:
    """Tests for LLMSpec dataclass."""

    @pytest.mark.unit
    def test_spec_creation(self):
        """Test creating an LLMSpec."""
        spec = LLMSpec(
            name="test-model",
            provider=LLMProviderType.OPENAI,
            context_window=128000,
            max_output_tokens=4096,
        )
        assert spec.name == "test-model"
        assert spec.provider == LLMProviderType.OPENAI
        assert spec.context_window == 128000

    @pytest.mark.unit
    def test_spec_capabilities(self):
        """Test capability checking."""
        spec = LLMSpec(
            name="test",
            provider=LLMProviderType.OPENAI,
            context_window=128000,
            max_output_tokens=4096,
            capabilities=frozenset({LLMCapability.JSON_MODE}),
        )
        assert spec.supports(LLMCapability.JSON_MODE)
        assert not spec.supports(LLMCapability.SEED)


class TestLLMModel:
    """Tests for LLMModel enum registry."""

    @pytest.mark.unit
    def test_role_default_models_registered(self):
        """Every default role model resolves to a spec."""
        for name in ("gpt-4o-mini", "gpt-4.1-nano", "gpt-4.1-mini"):
            assert LLMModel.by_name(name) is not None

    @pytest.mark.unit
    def test_anthropic_models_exist(self):
        """Test that Anthropic models are defined."""
        assert LLMModel.CLAUDE_SONNET_4_5.spec.provider == LLMProviderType.ANTHROPIC
        assert LLMModel.CLAUDE_SONNET_4_5.spec.context_window == 200000

    @pytest.mark.unit
    def test_by_name_lookup(self):
        """Test looking up models by name."""
        assert LLMModel.by_name("gpt-4.1-mini") == LLMModel.GPT_4_1_MINI
        assert LLMModel.by_name("nonexistent") is None

    @pytest.mark.unit
    def test_list_by_provider(self):
        """Test listing models by provider."""
        openai_models = LLMModel.list_by_provider(LLMProviderType.OPENAI)
        assert len(openai_models) >= 3
        assert all(m.spec.provider == LLMProviderType.OPENAI for m in openai_models)


class TestGetLLMSpec:
    """Tests for get_llm_spec helper."""

    @pytest.mark.unit
    def test_from_string(self):
        """Test resolving from string name."""
        assert get_llm_spec("gpt-4.1-nano").name == "gpt-4.1-nano"

    @pytest.mark.unit
    def test_from_spec(self):
        """Test resolving from LLMSpec."""
        original = LLMModel.GPT_4_1_MINI.spec
        assert get_llm_spec(original) is original

    @pytest.mark.unit
    def test_unknown_model_raises(self):
        """Test that unknown model names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown model"):
            get_llm_spec("nonexistent-model")


class TestCompletionTypes:
    """Tests for GenerationConfig, CompletionResult and argument decoding."""

    @pytest.mark.unit
    def test_config_defaults(self):
        """Test default configuration."""
        config = GenerationConfig()
        assert config.temperature == 0.7
        assert config.json_mode is False
        assert config.stop_sequences == []

    @pytest.mark.unit
    def test_as_message_with_tool_calls(self):
        """Assistant message echoes tool calls in OpenAI format."""
        result = CompletionResult(
            content="",
            tool_calls=[
                ToolInvocation(
                    id="call_1",
                    name="analyzeObjects",
                    arguments={"objectIds": []},
                    raw_arguments='{"objectIds": []}',
                )
            ],
        )
        message = result.as_message()
        assert message["role"] == "assistant"
        assert message["content"] is None
        assert message["tool_calls"][0]["id"] == "call_1"
        assert message["tool_calls"][0]["function"]["name"] == "analyzeObjects"

    @pytest.mark.unit
    def test_as_message_without_tool_calls(self):
        """Plain text results have no tool_calls key."""
        message = CompletionResult(content="hello").as_message()
        assert message == {"role": "assistant", "content": "hello"}

    @pytest.mark.unit
    def test_decode_valid_arguments(self):
        """Valid JSON object decodes."""
        assert decode_tool_arguments('{"a": 1}') == {"a": 1}

    @pytest.mark.unit
    def test_decode_malformed_arguments(self):
        """Malformed or non-object JSON decodes to an empty dict."""
        assert decode_tool_arguments("{not json", "x") == {}
        assert decode_tool_arguments("[1, 2]", "x") == {}
        assert decode_tool_arguments(None) == {}


class TestOpenAIBackend:
    """Tests for OpenAI backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        """Test that backend requires API key."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(AuthenticationError, match="API key required"):
            OpenAIBackend()

    @pytest.mark.unit
    def test_creates_with_api_key(self):
        """Test backend creation with API key."""
        backend = OpenAIBackend(api_key="test-key-12345")
        assert backend.provider == "openai"
        assert backend.model_name == "gpt-4.1-mini"
        assert backend.supports_json_mode is True
        assert backend.name == "openai:gpt-4.1-mini"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_parses_tool_calls(self):
        """Tool calls are decoded into ToolInvocation records."""
        backend = OpenAIBackend(api_key="test-key", model="gpt-4.1-nano")
        create = _stub_openai(
            backend,
            _openai_response(
                tool_calls=[
                    _openai_tool_call("c1", "createShape", '{"type": "circle"}'),
                    _openai_tool_call("c2", "createShape", "{broken"),
                ],
                finish_reason="tool_calls",
            ),
        )

        result = await backend.complete(
            [{"role": "user", "content": "circle"}],
            tools=[SAMPLE_TOOL],
            tool_choice="createShape",
        )

        assert [c.name for c in result.tool_calls] == ["createShape", "createShape"]
        assert result.tool_calls[0].arguments == {"type": "circle"}
        assert result.tool_calls[1].arguments == {}
        assert result.usage["total_tokens"] == 12
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == {
            "type": "function",
            "function": {"name": "createShape"},
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_auto_tool_choice_passes_through(self):
        """'auto' is sent verbatim."""
        backend = OpenAIBackend(api_key="test-key")
        create = _stub_openai(backend, _openai_response(content="ok"))
        await backend.complete([], tools=[SAMPLE_TOOL], tool_choice="auto")
        assert create.call_args.kwargs["tool_choice"] == "auto"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_json(self):
        """JSON mode sets response_format and parses the reply."""
        backend = OpenAIBackend(api_key="test-key")
        create = _stub_openai(backend, _openai_response(content='{"plan": []}'))
        data = await backend.complete_json([{"role": "user", "content": "x"}])
        assert data == {"plan": []}
        assert create.call_args.kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_json_invalid(self):
        """Non-JSON reply raises InvalidResponseError."""
        backend = OpenAIBackend(api_key="test-key")
        _stub_openai(backend, _openai_response(content="not json"))
        with pytest.raises(InvalidResponseError):
            await backend.complete_json([{"role": "user", "content": "x"}])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_errors_are_mapped(self):
        """Provider exceptions map into the LLMError hierarchy."""
        backend = OpenAIBackend(api_key="test-key")
        backend._client = SimpleNamespace(
            chat=SimpleNamespace(
                completions=SimpleNamespace(
                    create=AsyncMock(side_effect=Exception("Rate limit reached"))
                )
            )
        )
        with pytest.raises(RateLimitError):
            await backend.complete([{"role": "user", "content": "x"}])

        backend._client.chat.completions.create = AsyncMock(
            side_effect=Exception("boom")
        )
        with pytest.raises(LLMError):
            await backend.complete([{"role": "user", "content": "x"}])


class TestAnthropicTranslation:
    """Tests for OpenAI-to-Anthropic format translation."""

    @pytest.mark.unit
    def test_convert_tools(self):
        """Function parameters become input_schema."""
        converted = convert_tools([SAMPLE_TOOL])
        assert converted[0]["name"] == "createShape"
        assert converted[0]["input_schema"]["required"] == ["type"]

    @pytest.mark.unit
    def test_convert_tool_choice(self):
        """Tool choice names map to Anthropic shapes."""
        assert convert_tool_choice("auto") == {"type": "auto"}
        assert convert_tool_choice("createPlan") == {
            "type": "tool",
            "name": "createPlan",
        }

    @pytest.mark.unit
    def test_convert_messages_with_tool_round_trip(self):
        """System is split out and tool results land on a user turn."""
        messages = [
            {"role": "system", "content": "You count things."},
            {"role": "system", "content": "Board has 2 objects."},
            {"role": "user", "content": "how many circles?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "t1",
                        "type": "function",
                        "function": {
                            "name": "analyzeObjects",
                            "arguments": '{"objectIds": ["a"]}',
                        },
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "t1", "content": '{"totalObjects": 1}'},
        ]
        system, turns = convert_messages(messages)

        assert system == "You count things.\n\nBoard has 2 objects."
        assert [t["role"] for t in turns] == ["user", "assistant", "user"]
        tool_use = turns[1]["content"][0]
        assert tool_use["type"] == "tool_use"
        assert tool_use["input"] == {"objectIds": ["a"]}
        assert turns[2]["content"][0]["type"] == "tool_result"
        assert turns[2]["content"][0]["tool_use_id"] == "t1"

    @pytest.mark.unit
    def test_extract_json_from_fence(self):
        """JSON inside a markdown fence is extracted."""
        content = 'Here you go:\n```json\n{"plan": []}\n```'
        assert json.loads(extract_json(content)) == {"plan": []}

    @pytest.mark.unit
    def test_extract_json_from_prose(self):
        """A bare object surrounded by prose is extracted."""
        assert json.loads(extract_json('Sure! {"a": 1} Done.')) == {"a": 1}


class TestAnthropicBackend:
    """Tests for Anthropic backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        """Test that backend requires API key."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(AuthenticationError, match="API key required"):
            AnthropicBackend()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_parses_tool_use_blocks(self):
        """tool_use blocks become ToolInvocation records."""
        backend = AnthropicBackend(api_key="test-key")
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Creating."),
                SimpleNamespace(
                    type="tool_use",
                    id="tu_1",
                    name="createShape",
                    input={"type": "star"},
                ),
            ],
            stop_reason="tool_use",
            usage=SimpleNamespace(input_tokens=3, output_tokens=4),
            model="claude-sonnet-4-5",
        )
        create = AsyncMock(return_value=response)
        backend._client = SimpleNamespace(messages=SimpleNamespace(create=create))

        result = await backend.complete(
            [
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "star"},
            ],
            tools=[SAMPLE_TOOL],
            tool_choice="auto",
        )

        assert result.content == "Creating."
        assert result.tool_calls[0].arguments == {"type": "star"}
        assert json.loads(result.tool_calls[0].raw_arguments) == {"type": "star"}
        assert result.usage["total_tokens"] == 7
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["tool_choice"] == {"type": "auto"}


class TestCreateLLMBackend:
    """Tests for create_llm_backend factory."""

    @pytest.mark.unit
    def test_creates_openai_backend(self):
        """Test factory creates OpenAI backend."""
        backend = create_llm_backend(LLMModel.GPT_4_1_NANO, api_key="test-key")
        assert backend.provider == "openai"

    @pytest.mark.unit
    def test_creates_anthropic_backend(self):
        """Test factory creates Anthropic backend."""
        backend = create_llm_backend(LLMModel.CLAUDE_HAIKU_4_5, api_key="test-key")
        assert backend.provider == "anthropic"

    @pytest.mark.unit
    def test_role_backend_uses_configured_model(self, monkeypatch):
        """Role backends follow the per-role environment variable."""
        monkeypatch.setenv("WHITEBOARD_PLANNER_MODEL", "claude-haiku-4-5")
        backend = create_role_backend("planner", api_key="test-key")
        assert backend.model_name == "claude-haiku-4-5"

    @pytest.mark.unit
    def test_unknown_role_raises(self):
        """Unknown roles are rejected."""
        with pytest.raises(ValueError, match="Unknown pipeline role"):
            create_role_backend("painter", api_key="test-key")

    @pytest.mark.unit
    def test_api_key_from_environment(self, monkeypatch):
        """Falls back to the provider key in the environment."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        backend = create_llm_backend("gpt-4o-mini")
        assert backend.model_name == "gpt-4o-mini"
        assert os.environ["OPENAI_API_KEY"] == "sk-env"
