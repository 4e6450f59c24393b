"""Anthropic messages API: request building and response decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from toolrag.providers.base import (
    CompletionError,
    CompletionResponse,
    Message,
    ModelChoice,
    ProviderError,
    RequestError,
    ResponseError,
    merge,
)
from toolrag.tool import ToolDefinition

logger = logging.getLogger("toolrag")

CLAUDE_3_5_SONNET = "claude-3-5-sonnet-latest"
CLAUDE_3_5_HAIKU = "claude-3-5-haiku-latest"
CLAUDE_3_OPUS = "claude-3-opus-latest"
CLAUDE_3_SONNET = "claude-3-sonnet-20240229"
CLAUDE_3_HAIKU = "claude-3-haiku-20240307"

ANTHROPIC_VERSION_2023_01_01 = "2023-01-01"
ANTHROPIC_VERSION_2023_06_01 = "2023-06-01"
ANTHROPIC_VERSION_LATEST = ANTHROPIC_VERSION_2023_06_01

MESSAGES_PATH = "/v1/messages"


def _optional_count(value: int | None) -> str:
    return "n/a" if value is None else str(value)


@dataclass
class Usage:
    """Token usage reported with a response."""

    input_tokens: int
    output_tokens: int
    cache_read_input_tokens: int | None = None
    cache_creation_input_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Usage:
        try:
            return cls(
                input_tokens=int(data["input_tokens"]),
                output_tokens=int(data["output_tokens"]),
                cache_read_input_tokens=data.get("cache_read_input_tokens"),
                cache_creation_input_tokens=data.get("cache_creation_input_tokens"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ResponseError(f"invalid usage: {exc}") from exc

    def __str__(self) -> str:
        return (
            f"Input tokens: {self.input_tokens}\n"
            f"Cache read input tokens: {_optional_count(self.cache_read_input_tokens)}\n"
            f"Cache creation input tokens: {_optional_count(self.cache_creation_input_tokens)}\n"
            f"Output tokens: {self.output_tokens}"
        )


class ContentKind(Enum):
    STRING = "string"
    TEXT = "text"
    TOOL_USE = "tool_use"


@dataclass
class Content:
    """One block of a response: a bare string, a text block or a tool use."""

    kind: ContentKind
    type: str | None = None
    text: str | None = None
    id: str | None = None
    name: str | None = None
    input: Any = None

    @classmethod
    def from_value(cls, value: Any) -> Content:
        if isinstance(value, str):
            return cls(ContentKind.STRING, text=value)
        if isinstance(value, dict) and isinstance(value.get("type"), str):
            if isinstance(value.get("text"), str):
                return cls(ContentKind.TEXT, type=value["type"], text=value["text"])
            if (
                isinstance(value.get("id"), str)
                and isinstance(value.get("name"), str)
                and "input" in value
            ):
                return cls(
                    ContentKind.TOOL_USE,
                    type=value["type"],
                    id=value["id"],
                    name=value["name"],
                    input=value["input"],
                )
        raise ResponseError(f"unrecognised content block: {value!r}")


@dataclass
class AnthropicResponse:
    """A decoded message response."""

    content: list[Content]
    id: str
    model: str
    role: str
    usage: Usage
    stop_reason: str | None = None
    stop_sequence: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnthropicResponse:
        try:
            return cls(
                content=[Content.from_value(block) for block in data["content"]],
                id=data["id"],
                model=data["model"],
                role=data["role"],
                usage=Usage.from_dict(data["usage"]),
                stop_reason=data.get("stop_reason"),
                stop_sequence=data.get("stop_sequence"),
            )
        except (KeyError, TypeError) as exc:
            raise ResponseError(f"invalid response: {exc}") from exc


def calculate_max_tokens(model: str) -> int | None:
    """The max_tokens the API requires for known models, None for others."""
    if model.startswith(("claude-3-5-sonnet", "claude-3-5-haiku")):
        return 8192
    if model.startswith(("claude-3-opus", "claude-3-sonnet", "claude-3-haiku")):
        return 4096
    return None


def to_completion_response(
    response: AnthropicResponse,
) -> CompletionResponse[AnthropicResponse]:
    """Take the model's choice from the first content block."""
    if response.content:
        first = response.content[0]
        if first.kind in (ContentKind.STRING, ContentKind.TEXT):
            return CompletionResponse(ModelChoice.message(first.text or ""), response)
        if first.kind is ContentKind.TOOL_USE:
            return CompletionResponse(
                ModelChoice.tool_call(first.name or "", first.input), response
            )
    raise ResponseError("Response did not contain a message or tool call")


@dataclass
class CompletionModel:
    """An Anthropic completion model."""

    model: str
    default_max_tokens: int | None = field(init=False)

    def __post_init__(self) -> None:
        self.default_max_tokens = calculate_max_tokens(self.model)

    def build_request(
        self,
        prompt: str,
        preamble: str | None = None,
        chat_history: Iterable[Message] = (),
        tools: Iterable[ToolDefinition] = (),
        temperature: float | None = None,
        max_tokens: int | None = None,
        additional_params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """The JSON body for the messages endpoint."""
        tokens = max_tokens if max_tokens is not None else self.default_max_tokens
        if tokens is None:
            raise RequestError("`max_tokens` must be set for Anthropic")

        messages = [message.to_dict() for message in chat_history]
        messages.append(Message("user", prompt).to_dict())
        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": tokens,
            "system": preamble if preamble is not None else "",
        }
        if temperature is not None:
            request = merge(request, {"temperature": temperature})

        tool_list = [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]
        if tool_list:
            request = merge(request, {"tools": tool_list, "tool_choice": {"type": "auto"}})

        if additional_params is not None:
            request = merge(request, additional_params)
        return request

    def parse_response(self, body: Any) -> CompletionResponse[AnthropicResponse]:
        """Decode a successful HTTP body into the model's choice."""
        if not isinstance(body, dict):
            raise ResponseError("expected a JSON object")
        kind = body.get("type")
        if kind == "error":
            message = body.get("message")
            if not isinstance(message, str):
                raise ResponseError("error response without a message")
            raise ProviderError(message)
        if kind != "message":
            raise ResponseError(f"unknown response type: {kind!r}")
        response = AnthropicResponse.from_dict(body)
        logger.info("Anthropic completion token usage: %s", response.usage)
        return to_completion_response(response)


__all__ = [
    "ANTHROPIC_VERSION_2023_01_01",
    "ANTHROPIC_VERSION_2023_06_01",
    "ANTHROPIC_VERSION_LATEST",
    "AnthropicResponse",
    "CLAUDE_3_5_HAIKU",
    "CLAUDE_3_5_SONNET",
    "CLAUDE_3_HAIKU",
    "CLAUDE_3_OPUS",
    "CLAUDE_3_SONNET",
    "CompletionError",
    "CompletionModel",
    "Content",
    "ContentKind",
    "Usage",
    "calculate_max_tokens",
    "to_completion_response",
]