"""Request and response types of the Gemini generate-content API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from toolrag.providers.base import ResponseError

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------- helpers


def _object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ResponseError(f"expected a JSON object for {what}, got {value!r}")
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _str(data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise ResponseError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ResponseError(f"field `{key}` must be a string")
    return value


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ResponseError(f"field `{key}` must be a string")
    return value


def _int(data: dict[str, Any], key: str) -> int:
    if key not in data:
        raise ResponseError(f"missing field `{key}`")
    value = data[key]
    if not _is_int(value):
        raise ResponseError(f"field `{key}` must be an integer")
    return value


def _opt_int(data: dict[str, Any], key: str, *, unsigned: bool = False) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if not _is_int(value) or (unsigned and value < 0):
        raise ResponseError(f"field `{key}` must be an integer")
    return value


def _float(data: dict[str, Any], key: str) -> float:
    if key not in data:
        raise ResponseError(f"missing field `{key}`")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseError(f"field `{key}` must be a number")
    return float(value)


def _opt_float(data: dict[str, Any], key: str) -> float | None:
    if data.get(key) is None:
        return None
    return _float(data, key)


def _opt_bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ResponseError(f"field `{key}` must be a boolean")
    return value


def _list(data: dict[str, Any], key: str) -> list[Any]:
    if key not in data:
        raise ResponseError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, list):
        raise ResponseError(f"field `{key}` must be an array")
    return value


def _opt_list(data: dict[str, Any], key: str) -> list[Any] | None:
    if data.get(key) is None:
        return None
    return _list(data, key)


def _opt_str_list(data: dict[str, Any], key: str) -> list[str] | None:
    items = _opt_list(data, key)
    if items is None:
        return None
    if not all(isinstance(item, str) for item in items):
        raise ResponseError(f"field `{key}` must hold strings")
    return list(items)


def _enum(cls: type[E], value: Any) -> E:
    try:
        return cls(value)
    except ValueError as exc:
        raise ResponseError(f"unknown {cls.__name__} variant: {value!r}") from exc


def _opt_enum(cls: type[E], data: dict[str, Any], key: str) -> E | None:
    value = data.get(key)
    return None if value is None else _enum(cls, value)


def _opt_object(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    return None if value is None else _object(value, key)


# ---------------------------------------------------------------- enums


class Role(Enum):
    USER = "user"
    MODEL = "model"


class HarmProbability(Enum):
    HARM_PROBABILITY_UNSPECIFIED = "HARM_PROBABILITY_UNSPECIFIED"
    NEGLIGIBLE = "NEGLIGIBLE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class HarmCategory(Enum):
    HARM_CATEGORY_UNSPECIFIED = "HARM_CATEGORY_UNSPECIFIED"
    HARM_CATEGORY_DEROGATORY = "HARM_CATEGORY_DEROGATORY"
    HARM_CATEGORY_TOXICITY = "HARM_CATEGORY_TOXICITY"
    HARM_CATEGORY_VIOLENCE = "HARM_CATEGORY_VIOLENCE"
    HARM_CATEGORY_SEXUALLY = "HARM_CATEGORY_SEXUALLY"
    HARM_CATEGORY_MEDICAL = "HARM_CATEGORY_MEDICAL"
    HARM_CATEGORY_DANGEROUS = "HARM_CATEGORY_DANGEROUS"
    HARM_CATEGORY_HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HARM_CATEGORY_HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    HARM_CATEGORY_SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    HARM_CATEGORY_DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"
    HARM_CATEGORY_CIVIC_INTEGRITY = "HARM_CATEGORY_CIVIC_INTEGRITY"


class HarmBlockThreshold(Enum):
    HARM_BLOCK_THRESHOLD_UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_NONE = "BLOCK_NONE"
    OFF = "OFF"


class BlockReason(Enum):
    """Why a prompt was blocked."""

    BLOCK_REASON_UNSPECIFIED = "BLOCK_REASON_UNSPECIFIED"
    SAFETY = "SAFETY"
    OTHER = "OTHER"
    BLOCKLIST = "BLOCKLIST"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"


class FinishReason(Enum):
    """Why the model stopped generating."""

    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    LANGUAGE = "LANGUAGE"
    OTHER = "OTHER"
    BLOCKLIST = "BLOCKLIST"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"
    SPII = "SPII"
    MALFORMED_FUNCTION_CALL = "MALFORMED_FUNCTION_CALL"


class ExecutionLanguage(Enum):
    LANGUAGE_UNSPECIFIED = "LANGUAGE_UNSPECIFIED"
    PYTHON = "PYTHON"


class CodeExecutionOutcome(Enum):
    UNSPECIFIED = "UNSPECIFIED"
    OK = "OK"
    FAILED = "FAILED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"


# ---------------------------------------------------------------- parts


@dataclass
class ExecutableCode:
    """Code generated by the model for execution."""

    language: ExecutionLanguage
    code: str

    @classmethod
    def from_dict(cls, data: Any) -> ExecutableCode:
        data = _object(data, "ExecutableCode")
        return cls(_enum(ExecutionLanguage, data.get("language")), _str(data, "code"))

    def to_dict(self) -> dict[str, Any]:
        return {"language": self.language.value, "code": self.code}


@dataclass
class CodeExecutionResult:
    """Outcome and output of executed code."""

    outcome: CodeExecutionOutcome
    output: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CodeExecutionResult:
        data = _object(data, "CodeExecutionResult")
        return cls(_enum(CodeExecutionOutcome, data.get("outcome")), _opt_str(data, "output"))

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": self.outcome.value, "output": self.output}


@dataclass
class Blob:
    """Raw media bytes, base64-encoded."""

    mime_type: str
    data: str

    @classmethod
    def from_dict(cls, data: Any) -> Blob:
        data = _object(data, "Blob")
        return cls(_str(data, "mimeType"), _str(data, "data"))

    def to_dict(self) -> dict[str, Any]:
        return {"mimeType": self.mime_type, "data": self.data}


@dataclass
class FunctionCall:
    """A function call predicted by the model."""

    name: str
    args: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FunctionCall:
        data = _object(data, "FunctionCall")
        return cls(_str(data, "name"), _opt_object(data, "args"))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "args": self.args}


@dataclass
class FunctionResponse:
    """The result of a function call, given back to the model."""

    name: str
    response: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FunctionResponse:
        data = _object(data, "FunctionResponse")
        return cls(_str(data, "name"), _opt_object(data, "response"))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "response": self.response}


@dataclass
class FileData:
    """URI-based data."""

    file_uri: str
    mime_type: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FileData:
        data = _object(data, "FileData")
        return cls(_str(data, "fileUri"), _opt_str(data, "mimeType"))

    def to_dict(self) -> dict[str, Any]:
        return {"mimeType": self.mime_type, "fileUri": self.file_uri}


_PART_FIELDS: tuple[tuple[str, str, Any], ...] = (
    ("inline_data", "inlineData", Blob),
    ("function_call", "functionCall", FunctionCall),
    ("function_response", "functionResponse", FunctionResponse),
    ("file_data", "fileData", FileData),
    ("executable_code", "executableCode", ExecutableCode),
    ("code_execution_result", "codeExecutionResult", CodeExecutionResult),
)


@dataclass
class Part:
    """One piece of a multi-part message; normally only one field is set."""

    text: str | None = None
    inline_data: Blob | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    file_data: FileData | None = None
    executable_code: ExecutableCode | None = None
    code_execution_result: CodeExecutionResult | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form; unset fields are left out."""
        out: dict[str, Any] = {}
        if self.text is not None:
            out["text"] = self.text
        for attr, key, _ in _PART_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                out[key] = value.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Part:
        data = _object(data, "Part")
        values = {
            attr: None if data.get(key) is None else kind.from_dict(data[key])
            for attr, key, kind in _PART_FIELDS
        }
        return cls(text=_opt_str(data, "text"), **values)


@dataclass
class Content:
    """An ordered list of parts and the role that produced them."""

    parts: list[Part] = field(default_factory=list)
    role: Role | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parts": [part.to_dict() for part in self.parts],
            "role": None if self.role is None else self.role.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Content:
        data = _object(data, "Content")
        return cls(
            parts=[Part.from_dict(part) for part in _list(data, "parts")],
            role=_opt_enum(Role, data, "role"),
        )


# ---------------------------------------------------------------- response


@dataclass
class SafetyRating:
    category: HarmCategory
    probability: HarmProbability

    @classmethod
    def from_dict(cls, data: Any) -> SafetyRating:
        data = _object(data, "SafetyRating")
        return cls(
            _enum(HarmCategory, data.get("category")),
            _enum(HarmProbability, data.get("probability")),
        )


def _opt_ratings(data: dict[str, Any]) -> list[SafetyRating] | None:
    items = _opt_list(data, "safetyRatings")
    return None if items is None else [SafetyRating.from_dict(item) for item in items]


@dataclass
class UsageMetadata:
    """Token usage of a generation request."""

    prompt_token_count: int
    candidates_token_count: int
    total_token_count: int
    cached_content_token_count: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> UsageMetadata:
        data = _object(data, "UsageMetadata")
        return cls(
            prompt_token_count=_int(data, "promptTokenCount"),
            candidates_token_count=_int(data, "candidatesTokenCount"),
            total_token_count=_int(data, "totalTokenCount"),
            cached_content_token_count=_opt_int(data, "cachedContentTokenCount"),
        )

    def __str__(self) -> str:
        cached = (
            "n/a"
            if self.cached_content_token_count is None
            else str(self.cached_content_token_count)
        )
        return (
            f"Prompt token count: {self.prompt_token_count}\n"
            f"Cached content token count: {cached}\n"
            f"Candidates token count: {self.candidates_token_count}\n"
            f"Total token count: {self.total_token_count}"
        )


@dataclass
class PromptFeedback:
    block_reason: BlockReason | None = None
    safety_ratings: list[SafetyRating] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PromptFeedback:
        data = _object(data, "PromptFeedback")
        return cls(_opt_enum(BlockReason, data, "blockReason"), _opt_ratings(data))


@dataclass
class CitationSource:
    uri: str | None = None
    start_index: int | None = None
    end_index: int | None = None
    license: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CitationSource:
        data = _object(data, "CitationSource")
        return cls(
            _opt_str(data, "uri"),
            _opt_int(data, "startIndex"),
            _opt_int(data, "endIndex"),
            _opt_str(data, "license"),
        )


@dataclass
class CitationMetadata:
    citation_sources: list[CitationSource] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> CitationMetadata:
        data = _object(data, "CitationMetadata")
        return cls([CitationSource.from_dict(s) for s in _list(data, "citationSources")])


@dataclass
class LogProbCandidate:
    token: str
    token_id: str
    log_probability: float

    @classmethod
    def from_dict(cls, data: Any) -> LogProbCandidate:
        data = _object(data, "LogProbCandidate")
        return cls(_str(data, "token"), _str(data, "tokenId"), _float(data, "logProbability"))


@dataclass
class TopCandidate:
    candidates: list[LogProbCandidate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> TopCandidate:
        data = _object(data, "TopCandidate")
        return cls([LogProbCandidate.from_dict(c) for c in _list(data, "candidates")])


@dataclass
class LogprobsResult:
    top_candidate: list[TopCandidate] = field(default_factory=list)
    chosen_candidate: list[LogProbCandidate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> LogprobsResult:
        data = _object(data, "LogprobsResult")
        return cls(
            [TopCandidate.from_dict(c) for c in _list(data, "topCandidate")],
            [LogProbCandidate.from_dict(c) for c in _list(data, "chosenCandidate")],
        )


@dataclass
class ContentCandidate:
    """One candidate answer generated by the model."""

    content: Content
    finish_reason: FinishReason | None = None
    safety_ratings: list[SafetyRating] | None = None
    citation_metadata: CitationMetadata | None = None
    token_count: int | None = None
    avg_logprobs: float | None = None
    logprobs_result: LogprobsResult | None = None
    index: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ContentCandidate:
        data = _object(data, "ContentCandidate")
        if "content" not in data:
            raise ResponseError("missing field `content`")
        citation = data.get("citationMetadata")
        logprobs = data.get("logprobsResult")
        return cls(
            content=Content.from_dict(data["content"]),
            finish_reason=_opt_enum(FinishReason, data, "finishReason"),
            safety_ratings=_opt_ratings(data),
            citation_metadata=None if citation is None else CitationMetadata.from_dict(citation),
            token_count=_opt_int(data, "tokenCount"),
            avg_logprobs=_opt_float(data, "avgLogprobs"),
            logprobs_result=None if logprobs is None else LogprobsResult.from_dict(logprobs),
            index=_opt_int(data, "index"),
        )


@dataclass
class GenerateContentResponse:
    """The model's candidates, prompt feedback and token usage."""

    candidates: list[ContentCandidate] = field(default_factory=list)
    prompt_feedback: PromptFeedback | None = None
    usage_metadata: UsageMetadata | None = None
    model_version: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> GenerateContentResponse:
        data = _object(data, "GenerateContentResponse")
        feedback = data.get("promptFeedback")
        usage = data.get("usageMetadata")
        return cls(
            candidates=[ContentCandidate.from_dict(c) for c in _list(data, "candidates")],
            prompt_feedback=None if feedback is None else PromptFeedback.from_dict(feedback),
            usage_metadata=None if usage is None else UsageMetadata.from_dict(usage),
            model_version=_opt_str(data, "modelVersion"),
        )


# ---------------------------------------------------------------- schema and config


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _as_int(value: Any) -> int | None:
    return value if _is_int(value) else None


@dataclass
class Schema:
    """A subset of an OpenAPI schema object."""

    type: str = ""
    format: str | None = None
    description: str | None = None
    nullable: bool | None = None
    enum: list[str] | None = None
    max_items: int | None = None
    min_items: int | None = None
    properties: dict[str, Schema] | None = None
    required: list[str] | None = None
    items: Schema | None = None

    @classmethod
    def from_value(cls, value: Any) -> Schema:
        """Read a JSON schema object; properties that are not objects are dropped."""
        if not isinstance(value, dict):
            raise ResponseError("Expected a JSON object for Schema")
        properties = value.get("properties")
        if isinstance(properties, dict):
            parsed: dict[str, Schema] | None = {
                key: cls.from_value(item)
                for key, item in properties.items()
                if isinstance(item, dict)
            }
        else:
            parsed = None
        nullable = value.get("nullable")
        return cls(
            type=_as_str(value.get("type")) or "",
            format=_as_str(value.get("format")),
            description=_as_str(value.get("description")),
            nullable=nullable if isinstance(nullable, bool) else None,
            enum=_as_str_list(value.get("enum")),
            max_items=_as_int(value.get("maxItems")),
            min_items=_as_int(value.get("minItems")),
            properties=parsed,
            required=_as_str_list(value.get("required")),
            items=cls.from_value(value["items"]) if "items" in value else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "format": self.format,
            "description": self.description,
            "nullable": self.nullable,
            "enum": self.enum,
            "max_items": self.max_items,
            "min_items": self.min_items,
            "properties": None
            if self.properties is None
            else {key: schema.to_dict() for key, schema in self.properties.items()},
            "required": self.required,
            "items": None if self.items is None else self.items.to_dict(),
        }


@dataclass
class GenerationConfig:
    """Generation options; unset fields are left to the model's defaults."""

    stop_sequences: list[str] | None = None
    response_mime_type: str | None = None
    response_schema: Schema | None = None
    candidate_count: int | None = None
    max_output_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    response_logprobs: bool | None = None
    logprobs: int | None = None

    @classmethod
    def default(cls) -> GenerationConfig:
        """The configuration used when none is given."""
        return cls(temperature=1.0, max_output_tokens=4096)

    @classmethod
    def from_dict(cls, data: Any) -> GenerationConfig:
        """Read camelCase options; unknown keys are ignored, missing ones stay unset."""
        data = _object(data, "GenerationConfig")
        schema = data.get("responseSchema")
        return cls(
            stop_sequences=_opt_str_list(data, "stopSequences"),
            response_mime_type=_opt_str(data, "responseMimeType"),
            response_schema=None if schema is None else Schema.from_value(schema),
            candidate_count=_opt_int(data, "candidateCount"),
            max_output_tokens=_opt_int(data, "maxOutputTokens", unsigned=True),
            temperature=_opt_float(data, "temperature"),
            top_p=_opt_float(data, "topP"),
            top_k=_opt_int(data, "topK"),
            presence_penalty=_opt_float(data, "presencePenalty"),
            frequency_penalty=_opt_float(data, "frequencyPenalty"),
            response_logprobs=_opt_bool(data, "responseLogprobs"),
            logprobs=_opt_int(data, "logprobs"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "stopSequences": self.stop_sequences,
            "responseMimeType": self.response_mime_type,
            "responseSchema": None
            if self.response_schema is None
            else self.response_schema.to_dict(),
            "candidateCount": self.candidate_count,
            "maxOutputTokens": self.max_output_tokens,
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "presencePenalty": self.presence_penalty,
            "frequencyPenalty": self.frequency_penalty,
            "responseLogprobs": self.response_logprobs,
            "logprobs": self.logprobs,
        }


# ---------------------------------------------------------------- request


@dataclass
class FunctionDeclaration:
    name: str
    description: str
    parameters: list[Schema] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": None
            if self.parameters is None
            else [schema.to_dict() for schema in self.parameters],
        }


@dataclass
class CodeExecution:
    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass
class Tool:
    """A function the model may call, optionally with code execution."""

    function_declaration: FunctionDeclaration
    code_execution: CodeExecution | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "functionDeclaration": self.function_declaration.to_dict(),
            "codeExecution": None
            if self.code_execution is None
            else self.code_execution.to_dict(),
        }


@dataclass
class ToolConfig:
    schema: Schema | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"schema": None if self.schema is None else self.schema.to_dict()}


@dataclass
class SafetySetting:
    category: HarmCategory
    threshold: HarmBlockThreshold

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category.value, "threshold": self.threshold.value}


@dataclass
class GenerateContentRequest:
    """Body of a generate-content request."""

    contents: list[Content] = field(default_factory=list)
    tools: list[Tool] | None = None
    tool_config: ToolConfig | None = None
    generation_config: GenerationConfig | None = None
    safety_settings: list[SafetySetting] | None = None
    system_instruction: Content | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "contents": [content.to_dict() for content in self.contents],
            "tools": None if self.tools is None else [tool.to_dict() for tool in self.tools],
            "toolConfig": None if self.tool_config is None else self.tool_config.to_dict(),
            "generationConfig": None
            if self.generation_config is None
            else self.generation_config.to_dict(),
            "safetySettings": None
            if self.safety_settings is None
            else [setting.to_dict() for setting in self.safety_settings],
            "systemInstruction": None
            if self.system_instruction is None
            else self.system_instruction.to_dict(),
        }