import pytest

from toolrag.providers.base import CompletionError, ResponseError
from toolrag.providers.gemini_types import (
    CodeExecutionOutcome,
    Content,
    ContentCandidate,
    FinishReason,
    FunctionCall,
    FunctionDeclaration,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    HarmBlockThreshold,
    HarmCategory,
    Part,
    Role,
    SafetySetting,
    Schema,
    Tool,
    UsageMetadata,
)


def test_part_to_dict_leaves_out_unset_fields():
    assert Part(text="hello").to_dict() == {"text": "hello"}


@pytest.mark.parametrize(
    "data",
    [
        {"text": "hello"},
        {"functionCall": {"name": "add", "args": {"x": 1, "y": 2}}},
        {"inlineData": {"mimeType": "image/png", "data": "aGVsbG8="}},
        {"codeExecutionResult": {"outcome": "OK", "output": "3"}},
        {"executableCode": {"language": "PYTHON", "code": "print(3)"}},
    ],
)
def test_part_round_trip(data):
    assert Part.from_dict(data).to_dict() == data


def test_part_reads_function_call():
    part = Part.from_dict({"functionCall": {"name": "add", "args": {"x": 1}}})
    assert part.function_call == FunctionCall("add", {"x": 1})
    assert part.text is None


def test_part_reads_execution_outcome():
    part = Part.from_dict({"codeExecutionResult": {"outcome": "FAILED"}})
    assert part.code_execution_result.outcome is CodeExecutionOutcome.FAILED
    assert part.code_execution_result.output is None


def test_content_round_trip_with_role():
    data = {"parts": [{"text": "a"}, {"text": "b"}], "role": "model"}
    content = Content.from_dict(data)
    assert content.role is Role.MODEL
    assert content.to_dict() == data


def test_content_without_role_serialises_null_role():
    content = Content.from_dict({"parts": [{"text": "a"}]})
    assert content.role is None
    assert content.to_dict()["role"] is None


def test_content_rejects_unknown_role():
    with pytest.raises(ResponseError):
        Content.from_dict({"parts": [], "role": "narrator"})


def test_content_requires_parts():
    with pytest.raises(ResponseError):
        Content.from_dict({"role": "user"})


def test_usage_metadata_display_without_cache():
    usage = UsageMetadata.from_dict(
        {"promptTokenCount": 5, "candidatesTokenCount": 7, "totalTokenCount": 12}
    )
    assert str(usage) == (
        "Prompt token count: 5\n"
        "Cached content token count: n/a\n"
        "Candidates token count: 7\n"
        "Total token count: 12"
    )


def test_usage_metadata_display_with_cache():
    usage = UsageMetadata.from_dict(
        {
            "promptTokenCount": 5,
            "cachedContentTokenCount": 2,
            "candidatesTokenCount": 7,
            "totalTokenCount": 12,
        }
    )
    assert "Cached content token count: 2\n" in str(usage)


def test_usage_metadata_missing_count_is_error():
    with pytest.raises(ResponseError):
        UsageMetadata.from_dict({"promptTokenCount": 5})


def test_generate_content_response_from_dict():
    response = GenerateContentResponse.from_dict(
        {
            "candidates": [
                {
                    "content": {"parts": [{"text": "hi"}], "role": "model"},
                    "finishReason": "STOP",
                    "safetyRatings": [
                        {"category": "HARM_CATEGORY_HARASSMENT", "probability": "LOW"}
                    ],
                    "index": 0,
                    "avgLogprobs": -0.5,
                }
            ],
            "usageMetadata": {
                "promptTokenCount": 1,
                "candidatesTokenCount": 2,
                "totalTokenCount": 3,
            },
            "modelVersion": "gemini-1.5-flash",
            "somethingNew": True,
        }
    )
    candidate = response.candidates[0]
    assert candidate.finish_reason is FinishReason.STOP
    assert candidate.content.parts[0].text == "hi"
    assert candidate.safety_ratings[0].category is HarmCategory.HARM_CATEGORY_HARASSMENT
    assert candidate.avg_logprobs == -0.5
    assert response.usage_metadata.total_token_count == 3
    assert response.model_version == "gemini-1.5-flash"


def test_generate_content_response_requires_candidates():
    with pytest.raises(ResponseError):
        GenerateContentResponse.from_dict({"modelVersion": "x"})


def test_candidate_rejects_unknown_finish_reason():
    with pytest.raises(ResponseError):
        ContentCandidate.from_dict({"content": {"parts": []}, "finishReason": "BORED"})


def test_response_errors_are_completion_errors():
    with pytest.raises(CompletionError):
        GenerateContentResponse.from_dict([])


def test_generation_config_default_values():
    config = GenerationConfig.default()
    assert config.temperature == 1.0
    assert config.max_output_tokens == 4096
    assert config.top_k is None


def test_generation_config_from_empty_dict_is_unset():
    config = GenerationConfig.from_dict({})
    assert config == GenerationConfig()
    assert config.temperature is None


def test_generation_config_reads_camel_case_and_ignores_unknown():
    config = GenerationConfig.from_dict(
        {"maxOutputTokens": 100, "topK": 3, "stopSequences": ["END"], "unknown": 1}
    )
    assert config.max_output_tokens == 100
    assert config.top_k == 3
    assert config.stop_sequences == ["END"]


def test_generation_config_round_trip():
    config = GenerationConfig(
        stop_sequences=["x"],
        response_mime_type="application/json",
        temperature=0.3,
        top_p=0.9,
        max_output_tokens=50,
        response_logprobs=True,
        logprobs=2,
    )
    assert GenerationConfig.from_dict(config.to_dict()) == config


@pytest.mark.parametrize(
    "data",
    [{"temperature": "hot"}, {"maxOutputTokens": -1}, {"topK": 1.5}, [1, 2]],
)
def test_generation_config_rejects_bad_values(data):
    with pytest.raises(ResponseError):
        GenerationConfig.from_dict(data)


def test_schema_from_value_nested():
    schema = Schema.from_value(
        {
            "type": "object",
            "description": "args",
            "properties": {
                "x": {"type": "number"},
                "tags": {"type": "array", "items": {"type": "string"}, "maxItems": 4},
                "broken": 5,
            },
            "required": ["x", 7],
        }
    )
    assert schema.type == "object"
    assert schema.description == "args"
    assert set(schema.properties) == {"x", "tags"}
    assert schema.properties["tags"].items.type == "string"
    assert schema.properties["tags"].max_items == 4
    assert schema.required == ["x"]


def test_schema_without_type_has_empty_type():
    assert Schema.from_value({"format": "int32"}).type == ""


def test_schema_rejects_non_object():
    with pytest.raises(ResponseError, match="Expected a JSON object for Schema"):
        Schema.from_value(["type"])


def test_schema_rejects_non_object_items():
    with pytest.raises(ResponseError):
        Schema.from_value({"type": "array", "items": "string"})


def test_tool_to_dict():
    tool = Tool(FunctionDeclaration(name="add", description="Add x and y together"))
    assert tool.to_dict() == {
        "functionDeclaration": {
            "name": "add",
            "description": "Add x and y together",
            "parameters": None,
        },
        "codeExecution": None,
    }


def test_generate_content_request_to_dict():
    request = GenerateContentRequest(
        contents=[Content([Part(text="hello")], Role.USER)],
        generation_config=GenerationConfig.default(),
        safety_settings=[
            SafetySetting(HarmCategory.HARM_CATEGORY_HATE_SPEECH, HarmBlockThreshold.BLOCK_NONE)
        ],
        system_instruction=Content([Part(text="system")], Role.MODEL),
    )
    body = request.to_dict()
    assert body["contents"] == [{"parts": [{"text": "hello"}], "role": "user"}]
    assert body["tools"] is None
    assert body["toolConfig"] is None
    assert body["generationConfig"] == GenerationConfig.default().to_dict()
    assert body["safetySettings"] == [
        {
            "category": HarmCategory.HARM_CATEGORY_HATE_SPEECH.value,
            "threshold": HarmBlockThreshold.BLOCK_NONE.value,
        }
    ]
    assert body["systemInstruction"] == {"parts": [{"text": "system"}], "role": "model"}