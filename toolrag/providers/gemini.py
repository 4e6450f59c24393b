"""Gemini generate-content and embed-content: request building and response decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable

from toolrag.providers.base import (
    CompletionResponse,
    Message,
    ModelChoice,
    ResponseError,
)
from toolrag.providers.gemini_types import (
    Content,
    FunctionDeclaration,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    Role,
    Tool,
)
from toolrag.tool import ToolDefinition
from toolrag.vector_store import Embedding, EmbeddingError

logger = logging.getLogger("toolrag")

GEMINI_1_5_FLASH = "gemini-1.5-flash"
GEMINI_1_5_PRO = "gemini-1.5-pro"
GEMINI_1_5_PRO_8B = "gemini-1.5-pro-8b"
GEMINI_1_0_PRO = "gemini-1.0-pro"

EMBEDDING_001 = "embedding-001"
EMBEDDING_004 = "text-embedding-004"

_ROLES = {
    "system": Role.MODEL,
    "user": Role.USER,
    "assistant": Role.MODEL,
}


def tool_from_definition(tool: ToolDefinition) -> Tool:
    """A Gemini tool declaring the function; its parameter schema is not passed on."""
    return Tool(
        function_declaration=FunctionDeclaration(
            name=tool.name,
            description=tool.description,
            parameters=None,
        ),
        code_execution=None,
    )


def to_completion_response(
    response: GenerateContentResponse,
) -> CompletionResponse[GenerateContentResponse]:
    """Take the model's choice from the first part of the first candidate."""
    if not response.candidates:
        raise ResponseError("No candidates found in response")
    parts = response.candidates[0].content.parts
    if not parts:
        raise ResponseError("Candidate content has no parts")
    part = parts[0]
    if part.text is not None:
        return CompletionResponse(ModelChoice.message(part.text), response)
    if part.function_call is not None:
        call = part.function_call
        args = dict(call.args) if call.args is not None else {}
        return CompletionResponse(ModelChoice.tool_call(call.name, args), response)
    raise ResponseError("Unsupported response by the model of type ")


@dataclass
class CompletionModel:
    """A Gemini completion model."""

    model: str = GEMINI_1_5_FLASH

    def build_request(
        self,
        prompt: str,
        chat_history: Iterable[Message] = (),
        tools: Iterable[ToolDefinition] = (),
        temperature: float | None = None,
        max_tokens: int | None = None,
        additional_params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """The JSON body for the generate-content endpoint.

        ``additional_params`` are read as generation options; an explicit
        temperature or max_tokens overrides what they set.
        """
        history = [*chat_history, Message("user", prompt)]

        config = GenerationConfig.from_dict(
            additional_params if additional_params is not None else {}
        )
        if temperature is not None:
            config.temperature = temperature
        if max_tokens is not None:
            config.max_output_tokens = max_tokens

        request = GenerateContentRequest(
            contents=[
                Content(parts=[Part(text=message.content)], role=_ROLES.get(message.role))
                for message in history
            ],
            generation_config=config,
            safety_settings=None,
            tools=[tool_from_definition(tool) for tool in tools],
            tool_config=None,
            system_instruction=Content(parts=[Part(text="system")], role=Role.MODEL),
        )
        return request.to_dict()

    def request_path(self) -> str:
        return f"/v1beta/models/{self.model}:generateContent"

    def parse_response(self, body: Any) -> CompletionResponse[GenerateContentResponse]:
        """Decode a successful HTTP body into the model's choice."""
        response = GenerateContentResponse.from_dict(body)
        if response.usage_metadata is not None:
            logger.info("Gemini completion token usage: %s", response.usage_metadata)
        else:
            logger.info("Gemini completion token usage: n/a")
        return to_completion_response(response)


def _error_message(body: Any) -> str | None:
    if isinstance(body, dict) and "error" in body:
        error = body["error"]
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return str(error)
    return None


@dataclass
class EmbeddingModel:
    """A Gemini embedding model; ``dimensions`` requests a reduced output size."""

    MAX_DOCUMENTS: ClassVar[int] = 1024

    model: str = EMBEDDING_001
    dimensions: int | None = None

    def ndims(self) -> int:
        """Native vector size of known models, 0 for unknown ones."""
        if self.model == EMBEDDING_001:
            return 768
        if self.model == EMBEDDING_004:
            return 1024
        return 0

    def build_request(self, documents: Iterable[str]) -> dict[str, Any]:
        """The JSON body for the embed-content endpoint."""
        body: dict[str, Any] = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": doc} for doc in documents]},
        }
        if self.dimensions is not None:
            body["output_dimensionality"] = self.dimensions
        return body

    def request_path(self) -> str:
        return f"/v1beta/models/{self.model}:embedContent"

    def parse_response(self, documents: Iterable[str], body: Any) -> list[Embedding]:
        """Split the returned values into one vector per document, in order."""
        message = _error_message(body)
        if message is not None:
            raise EmbeddingError(message)
        try:
            values = [float(x) for x in body["embedding"]["values"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise EmbeddingError(f"invalid response: {exc}") from exc
        size = self.dimensions if self.dimensions is not None else self.ndims()
        if size <= 0:
            raise EmbeddingError(f"unknown vector size for model {self.model!r}")
        chunks = (values[start : start + size] for start in range(0, len(values), size))
        return [Embedding(document=doc, vec=vec) for doc, vec in zip(documents, chunks)]