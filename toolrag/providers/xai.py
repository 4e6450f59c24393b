"""xAI chat completions and embeddings: request building and response decoding."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable

from toolrag.providers.base import (
    CompletionError,
    CompletionResponse,
    Message,
    ModelChoice,
    ProviderError,
    ResponseError,
    merge,
)
from toolrag.tool import ToolDefinition
from toolrag.vector_store import Embedding, EmbeddingError

GROK_BETA = "grok-beta"
EMBEDDING_V1 = "v1"

COMPLETIONS_PATH = "/v1/chat/completions"
EMBEDDINGS_PATH = "/v1/embeddings"


def _error_message(body: Any) -> str | None:
    """The provider's error message if the body is an error response."""
    if isinstance(body, dict) and "error" in body:
        error = body["error"]
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return str(error)
    return None


@dataclass
class Function:
    name: str
    arguments: str


@dataclass
class ToolCall:
    id: str
    type: str
    function: Function

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        function = data["function"]
        return cls(
            id=data["id"],
            type=data["type"],
            function=Function(name=function["name"], arguments=function["arguments"]),
        )


@dataclass
class ChoiceMessage:
    role: str
    content: str | None = None
    tool_calls: list[ToolCall] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChoiceMessage:
        calls = data.get("tool_calls")
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_calls=None if calls is None else [ToolCall.from_dict(c) for c in calls],
        )


@dataclass
class Choice:
    finish_reason: str
    index: int
    message: ChoiceMessage

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Choice:
        return cls(
            finish_reason=data["finish_reason"],
            index=int(data["index"]),
            message=ChoiceMessage.from_dict(data["message"]),
        )


@dataclass
class CompletionUsage:
    completion_tokens: int
    prompt_tokens: int
    total_tokens: int


@dataclass
class XaiCompletionResponse:
    """A decoded chat completion response."""

    id: str
    model: str
    choices: list[Choice]
    created: int
    object: str
    system_fingerprint: str
    usage: CompletionUsage

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> XaiCompletionResponse:
        try:
            usage = data["usage"]
            return cls(
                id=data["id"],
                model=data["model"],
                choices=[Choice.from_dict(choice) for choice in data["choices"]],
                created=int(data["created"]),
                object=data["object"],
                system_fingerprint=data["system_fingerprint"],
                usage=CompletionUsage(
                    completion_tokens=int(usage["completion_tokens"]),
                    prompt_tokens=int(usage["prompt_tokens"]),
                    total_tokens=int(usage["total_tokens"]),
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ResponseError(f"invalid response: {exc}") from exc


def to_completion_response(
    response: XaiCompletionResponse,
) -> CompletionResponse[XaiCompletionResponse]:
    """Take the model's choice from the first choice of the response."""
    if response.choices:
        message = response.choices[0].message
        if message.content is not None:
            return CompletionResponse(ModelChoice.message(message.content), response)
        if message.tool_calls is not None:
            if not message.tool_calls:
                raise ResponseError("Tool selection is empty")
            call = message.tool_calls[0]
            try:
                args = json.loads(call.function.arguments)
            except json.JSONDecodeError as exc:
                raise CompletionError(f"JsonError: {exc}") from exc
            return CompletionResponse(ModelChoice.tool_call(call.function.name, args), response)
    raise ResponseError("Response did not contain a message or tool call")


@dataclass
class CompletionModel:
    """An xAI chat completion model."""

    model: str = GROK_BETA

    def build_request(
        self,
        prompt: str,
        preamble: str | None = None,
        chat_history: Iterable[Message] = (),
        tools: Iterable[ToolDefinition] = (),
        temperature: float | None = None,
        additional_params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """The JSON body for the chat completions endpoint."""
        messages = [Message("system", preamble).to_dict()] if preamble is not None else []
        messages.extend(message.to_dict() for message in chat_history)
        messages.append(Message("user", prompt).to_dict())

        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        tool_list = [{"type": "function", "function": tool.to_dict()} for tool in tools]
        if tool_list:
            request["tools"] = tool_list
            request["tool_choice"] = "auto"

        if additional_params is not None:
            request = merge(request, additional_params)
        return request

    def parse_response(self, body: Any) -> CompletionResponse[XaiCompletionResponse]:
        """Decode a successful HTTP body into the model's choice."""
        message = _error_message(body)
        if message is not None:
            raise ProviderError(message)
        if not isinstance(body, dict):
            raise ResponseError("expected a JSON object")
        return to_completion_response(XaiCompletionResponse.from_dict(body))


@dataclass
class EmbeddingModel:
    """An xAI embedding model."""

    MAX_DOCUMENTS: ClassVar[int] = 1024

    model: str
    ndims: int

    def build_request(self, documents: Iterable[str]) -> dict[str, Any]:
        """The JSON body for the embeddings endpoint."""
        return {"model": self.model, "input": list(documents)}

    def parse_response(self, documents: Iterable[str], body: Any) -> list[Embedding]:
        """Pair the returned vectors with the documents, in order."""
        message = _error_message(body)
        if message is not None:
            raise EmbeddingError(message)
        docs = list(documents)
        try:
            vectors = [[float(x) for x in item["embedding"]] for item in body["data"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise EmbeddingError(f"invalid response: {exc}") from exc
        if len(vectors) != len(docs):
            raise EmbeddingError("Response data length does not match input length")
        return [Embedding(document=doc, vec=vec) for vec, doc in zip(vectors, docs)]