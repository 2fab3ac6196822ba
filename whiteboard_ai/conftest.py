"""Shared test fixtures for the whiteboard pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from .board import BoardObject, BoardState
from .llm import CompletionResult, GenerationConfig, LLMBackend, Message, ToolInvocation

# =============================================================================
# Mock LLM Backend
# =============================================================================


@dataclass
class RecordedCall:
    """One request received by the mock backend."""

    messages: list[Message]
    tools: list[dict[str, Any]] | None
    tool_choice: str | None
    config: GenerationConfig | None
    json_mode: bool = False

    @property
    def system(self) -> str:
        return next((m["content"] for m in self.messages if m["role"] == "system"), "")

    @property
    def user(self) -> str:
        return next((m["content"] for m in self.messages if m["role"] == "user"), "")

    @property
    def tool_names(self) -> list[str]:
        return [tool["function"]["name"] for tool in self.tools or []]


Response = CompletionResult | dict[str, Any] | Exception
Responder = Callable[[RecordedCall], Response]


@dataclass
class MockLLMBackend(LLMBackend):
    """Scripted backend for testing without API keys.

    Responses are served from a queue in request order, or produced by a
    responder callable when one is set. Exceptions in the queue are raised.
    """

    responses: list[Response] = field(default_factory=list)
    responder: Responder | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    def queue(self, *responses: Response) -> "MockLLMBackend":
        self.responses.extend(responses)
        return self

    def _next(self, call: RecordedCall) -> Response:
        self.calls.append(call)
        if self.responder is not None:
            response = self.responder(call)
        elif self.responses:
            response = self.responses.pop(0)
        else:
            raise AssertionError(f"Unexpected model call: {call.user[:80]!r}")
        if isinstance(response, Exception):
            raise response
        return response

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        config: GenerationConfig | None = None,
    ) -> CompletionResult:
        response = self._next(RecordedCall(list(messages), tools, tool_choice, config))
        if isinstance(response, dict):
            return CompletionResult(content=json.dumps(response))
        return response

    async def complete_json(
        self,
        messages: list[Message],
        *,
        config: GenerationConfig | None = None,
    ) -> dict[str, Any]:
        response = self._next(RecordedCall(list(messages), None, None, config, json_mode=True))
        if isinstance(response, CompletionResult):
            return json.loads(response.content)
        return response

    @property
    def model_name(self) -> str:
        return "mock-model-v1"

    @property
    def provider(self) -> str:
        return "mock"

    @property
    def supports_json_mode(self) -> bool:
        return True

    @property
    def context_window(self) -> int:
        return 128000


def tool_reply(*calls: tuple[str, dict[str, Any]], content: str = "") -> CompletionResult:
    """Build a completion carrying the given (name, arguments) tool calls."""
    return CompletionResult(
        content=content,
        tool_calls=[
            ToolInvocation(
                id=f"call_{i}",
                name=name,
                arguments=arguments,
                raw_arguments=json.dumps(arguments),
            )
            for i, (name, arguments) in enumerate(calls)
        ],
        finish_reason="tool_calls" if calls else "stop",
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_backend() -> MockLLMBackend:
    """Create an empty scripted backend.

    Returns:
        MockLLMBackend with no queued responses.
    """
    return MockLLMBackend()


@pytest.fixture
def reply() -> Callable[..., CompletionResult]:
    """Factory for tool-call completions."""
    return tool_reply


@pytest.fixture
def empty_board() -> BoardState:
    """Board with no objects and no selection."""
    return BoardState()


@pytest.fixture
def circles_board() -> BoardState:
    """Three red circles and one blue rectangle, nothing selected."""
    return BoardState(
        objects=[
            BoardObject(id="c1", type="circle", x=100, y=100, radius=50, fill="#EF4444"),
            BoardObject(id="c2", type="circle", x=250, y=100, radius=50, fill="#EF4444"),
            BoardObject(id="c3", type="circle", x=400, y=100, radius=50, fill="#EF4444"),
            BoardObject(id="r1", type="rect", x=100, y=300, width=150, height=100, fill="#3B82F6"),
        ]
    )


@pytest.fixture
def frame_board() -> BoardState:
    """One selected frame holding a sticky note."""
    return BoardState(
        objects=[
            BoardObject(id="f1", type="frame", x=0, y=0, width=600, height=400, name="Ideas"),
            BoardObject(id="s1", type="sticky", x=40, y=40, width=200, height=200, color="#FFF59D"),
        ],
        selected_ids=["f1"],
    )
