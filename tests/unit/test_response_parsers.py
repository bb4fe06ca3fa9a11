"""Unit tests for provider response parsing, usage and error mapping."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest

from nodetocode.errors import MalformedResponseError, ProviderError
from nodetocode.llm.models import DEFAULT_REGISTRY
from nodetocode.llm.providers import create_provider_service
from nodetocode.llm.response_parser import DeepSeekResponseParser, OpenAIResponseParser
from nodetocode.models.datatypes import LogicalModel, ProviderConfig
from nodetocode.telemetry.logger import LogSeverity, PipelineLogger


def _success_envelope(
    content: Any,
    *,
    prompt_tokens: int = 120,
    completion_tokens: int = 45,
    model: str = "gpt-4o",
) -> bytes:
    """Return a serialized chat-completions success envelope."""

    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "model": model,
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        }
    ).encode("utf-8")


def _error_envelope(message: str, *, code: str | None = None, error_type: str | None = None) -> bytes:
    """Return a serialized provider error envelope."""

    return json.dumps(
        {"error": {"message": message, "type": error_type, "code": code}}
    ).encode("utf-8")


def test_parse_success_returns_code_usage_and_cost() -> None:
    """Successful envelopes should produce code, token counts and priced cost."""

    parser = OpenAIResponseParser(LogicalModel.GPT_4O)

    result = parser.parse(_success_envelope("void Tick() {}"), status_code=200)

    assert result.generated_code == "void Tick() {}"
    assert result.input_tokens == 120
    assert result.output_tokens == 45
    assert result.estimated_cost_usd == pytest.approx(120 / 1e6 * 2.50 + 45 / 1e6 * 10.00)
    assert result.model == "gpt-4o"
    assert result.provider == "openai"


def test_parse_strips_enclosing_markdown_fence() -> None:
    """A single enclosing code fence should be removed from generated code."""

    parser = OpenAIResponseParser(LogicalModel.GPT_4O)

    result = parser.parse(_success_envelope("```cpp\nint main() { return 0; }\n```"))

    assert result.generated_code == "int main() { return 0; }"


def test_parse_keeps_inner_fences_when_not_enclosing() -> None:
    """Content with prose around a fence should be kept verbatim."""

    content = "Here is the code:\n```cpp\nint x;\n```"
    result = OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(content))

    assert result.generated_code == content


def test_openai_parser_joins_text_content_parts() -> None:
    """List-form content should be flattened from text parts."""

    content = [
        {"type": "text", "text": "int a;"},
        {"type": "image_url", "image_url": {"url": "x"}},
        {"type": "output_text", "text": " int b;"},
    ]

    result = OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(content))

    assert result.generated_code == "int a; int b;"


def test_missing_usage_counts_as_zero() -> None:
    """Envelopes without usage should report zero tokens and zero cost."""

    raw = json.dumps({"choices": [{"message": {"content": "ok"}}]})

    result = OpenAIResponseParser(LogicalModel.O1_PREVIEW).parse(raw)

    assert (result.input_tokens, result.output_tokens, result.estimated_cost_usd) == (0, 0, 0.0)


@pytest.mark.parametrize(
    ("status_code", "body", "expected_kind"),
    [
        (401, _error_envelope("Incorrect API key provided: sk-abcdefghijklmnop.", code="invalid_api_key"), "invalid_api_key"),
        (402, _error_envelope("Insufficient Balance"), "insufficient_quota"),
        (429, _error_envelope("You exceeded your current quota.", code="insufficient_quota"), "insufficient_quota"),
        (429, _error_envelope("Rate limit reached for requests.", code="rate_limit_exceeded"), "rate_limited"),
        (404, _error_envelope("The model `gpt-9` does not exist.", code="model_not_found"), "invalid_model"),
        (503, _error_envelope("The server is overloaded.", error_type="server_error"), "server_error"),
        (504, b"", "timeout"),
        (400, _error_envelope("Bad request."), "http_error"),
    ],
)
def test_error_envelopes_map_to_failure_kinds(
    status_code: int, body: bytes, expected_kind: str
) -> None:
    """Provider error envelopes should map to deterministic failure kinds."""

    parser = OpenAIResponseParser(LogicalModel.GPT_4O)

    with pytest.raises(ProviderError) as exc_info:
        parser.parse(body, status_code=status_code)

    assert exc_info.value.failure_kind == expected_kind
    assert exc_info.value.status_code == status_code


def test_error_messages_redact_keys_and_mark_retryable_failures() -> None:
    """API keys should never leak into error text; transient kinds are retryable."""

    parser = DeepSeekResponseParser(LogicalModel.DEEPSEEK_V3)

    with pytest.raises(ProviderError) as auth_error:
        parser.parse(
            _error_envelope("Authentication Fails, your api key: sk-0123456789abcdef is invalid"),
            status_code=401,
        )
    with pytest.raises(ProviderError) as rate_error:
        parser.parse(_error_envelope("Too many requests"), status_code=429)

    assert "sk-0123456789abcdef" not in str(auth_error.value)
    assert "[redacted-key]" in str(auth_error.value)
    assert str(auth_error.value).startswith("DeepSeek authentication failed (HTTP 401)")
    assert auth_error.value.retryable is False
    assert rate_error.value.failure_kind == "rate_limited"
    assert rate_error.value.retryable is True


def test_error_envelope_without_status_is_still_a_provider_error() -> None:
    """An `error` object in a 200 body should raise a provider error."""

    with pytest.raises(ProviderError) as exc_info:
        OpenAIResponseParser(LogicalModel.GPT_4O).parse(
            _error_envelope("Invalid API key", code="invalid_api_key")
        )

    assert exc_info.value.failure_kind == "invalid_api_key"
    assert exc_info.value.provider_code == "invalid_api_key"


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[]",
        b"",
        json.dumps({"choices": []}).encode(),
        json.dumps({"choices": ["oops"]}).encode(),
        json.dumps({"choices": [{"finish_reason": "stop"}]}).encode(),
        json.dumps({"choices": [{"message": {"content": "   "}}]}).encode(),
    ],
)
def test_malformed_envelopes_raise(raw: bytes) -> None:
    """Undecodable or schema-violating envelopes should raise `MalformedResponseError`."""

    with pytest.raises(MalformedResponseError) as exc_info:
        OpenAIResponseParser(LogicalModel.GPT_4O).parse(raw, status_code=200)

    assert exc_info.value.raw_response == raw.decode("utf-8")


def test_deepseek_usage_falls_back_to_cache_split() -> None:
    """DeepSeek usage without prompt_tokens should sum cache hit and miss tokens."""

    raw = json.dumps(
        {
            "model": "deepseek-chat",
            "choices": [{"message": {"content": "code"}}],
            "usage": {
                "completion_tokens": 30,
                "prompt_cache_hit_tokens": 64,
                "prompt_cache_miss_tokens": 36,
            },
        }
    )

    result = DeepSeekResponseParser(LogicalModel.DEEPSEEK_V3).parse(raw)

    assert result.input_tokens == 100
    assert result.output_tokens == 30
    assert result.provider == "deepseek"
    assert result.estimated_cost_usd == pytest.approx(100 / 1e6 * 0.14 + 30 / 1e6 * 0.28)


def test_deepseek_reasoning_content_is_logged_not_returned() -> None:
    """R1 reasoning content should be excluded from the generated code."""

    sink = io.StringIO()
    logger = PipelineLogger(sink=sink, min_severity=LogSeverity.DEBUG)
    raw = json.dumps(
        {
            "choices": [
                {"message": {"content": "final code", "reasoning_content": "thinking..."}}
            ]
        }
    )
    try:
        result = DeepSeekResponseParser(LogicalModel.DEEPSEEK_R1, logger=logger).parse(raw)
    finally:
        logger.close()

    assert result.generated_code == "final code"
    assert "reasoning content received chars=11" in sink.getvalue()


@pytest.mark.parametrize("descriptor", DEFAULT_REGISTRY.descriptors(), ids=lambda d: d.wire_name)
def test_estimated_cost_matches_pricing_formula_for_every_model(descriptor) -> None:  # type: ignore[no-untyped-def]
    """Cost should equal in/1e6*input_price + out/1e6*output_price for each model."""

    service = create_provider_service(
        descriptor.provider,
        ProviderConfig(endpoint="", api_key="k", model=descriptor.wire_name),
    )
    pricing = DEFAULT_REGISTRY.price(descriptor.logical_id)

    result = service.create_response_parser().parse(
        _success_envelope("code", prompt_tokens=1234, completion_tokens=567, model=descriptor.wire_name)
    )

    expected = (
        1234 / 1e6 * pricing.input_cost_per_million_tokens
        + 567 / 1e6 * pricing.output_cost_per_million_tokens
    )
    assert result.estimated_cost_usd == pytest.approx(expected)


def test_payload_and_response_round_trip_reports_exact_usage() -> None:
    """A built payload followed by a mocked response should keep exact usage counts."""

    service = create_provider_service(
        "deepseek", ProviderConfig(endpoint="", api_key="k", model="deepseek-chat")
    )
    body = json.loads(service.format_request_payload("Translate this graph.", "You are a translator."))

    result = service.create_response_parser().parse(
        _success_envelope("int x;", prompt_tokens=321, completion_tokens=89, model=body["model"])
    )

    assert body["model"] == "deepseek-chat"
    assert (result.input_tokens, result.output_tokens) == (321, 89)
    assert result.model == "deepseek-chat"


def _graphs_content(*graphs: dict[str, Any]) -> str:
    """Return structured reply content matching the translation response schema."""

    return json.dumps({"graphs": list(graphs)})


def _graph(declaration: str, implementation: str, notes: str = "") -> dict[str, Any]:
    return {
        "graph_name": "EventGraph",
        "graph_type": "EventGraph",
        "graph_class": "AMyActor",
        "code": {
            "graphDeclaration": declaration,
            "graphImplementation": implementation,
            "implementationNotes": notes,
        },
    }


def test_structured_reply_from_schema_model_yields_code_not_json() -> None:
    """A gpt-4o reply shaped by the request schema should parse into plain code."""

    service = create_provider_service(
        "openai", ProviderConfig(endpoint="", api_key="k", model="gpt-4o")
    )
    body = json.loads(service.format_request_payload("Translate this graph.", "System."))
    content = _graphs_content(_graph("void F();", "void F() {}", notes="Uses no state."))

    result = service.create_response_parser().parse(_success_envelope(content))

    assert body["response_format"]["type"] == "json_schema"
    assert result.generated_code == "void F();\n\nvoid F() {}"
    assert '"graphs"' not in result.generated_code


def test_structured_reply_joins_every_graph_in_order() -> None:
    """Multiple graphs should be emitted in reply order, skipping blank parts."""

    content = _graphs_content(
        _graph("void A();", "void A() {}"),
        _graph("", "void B() {}"),
    )

    result = OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(content))

    assert result.generated_code == "void A();\n\nvoid A() {}\n\nvoid B() {}"


def test_deepseek_json_object_reply_yields_code() -> None:
    """DeepSeek V3 JSON-object mode content should be unwrapped the same way."""

    service = create_provider_service(
        "deepseek", ProviderConfig(endpoint="", api_key="k", model="deepseek-chat")
    )
    body = json.loads(service.format_request_payload("Translate this graph.", "System."))
    content = _graphs_content(_graph("class AMyActor;", "void AMyActor::Tick() {}"))

    result = service.create_response_parser().parse(
        _success_envelope(content, model="deepseek-chat")
    )

    assert body["response_format"] == {"type": "json_object"}
    assert result.generated_code == "class AMyActor;\n\nvoid AMyActor::Tick() {}"


def test_structured_reply_inside_fence_is_unwrapped() -> None:
    """A fenced JSON reply should still be read as structured content."""

    content = f"```json\n{_graphs_content(_graph('int a;', 'a = 1;'))}\n```"

    result = DeepSeekResponseParser(LogicalModel.DEEPSEEK_V3).parse(_success_envelope(content))

    assert result.generated_code == "int a;\n\na = 1;"


def test_structured_reply_logs_implementation_notes_at_debug() -> None:
    sink = io.StringIO()
    logger = PipelineLogger(sink=sink, min_severity=LogSeverity.DEBUG)
    content = _graphs_content(_graph("int a;", "a = 1;", notes="Timer replaced by Tick."))
    try:
        OpenAIResponseParser(LogicalModel.GPT_4O, logger=logger).parse(_success_envelope(content))
    finally:
        logger.close()

    assert "Timer replaced by Tick." in sink.getvalue()


@pytest.mark.parametrize(
    "graph",
    [
        {"graph_name": "EventGraph"},
        {"graph_name": "EventGraph", "code": "void F() {}"},
        {"code": {"graphDeclaration": "void F();", "implementationNotes": ""}},
        {"code": {"graphDeclaration": "void F();", "graphImplementation": 3, "implementationNotes": ""}},
        {"code": {"graphDeclaration": "void F();", "graphImplementation": "void F() {}"}},
        "void F() {}",
    ],
)
def test_structured_reply_with_incomplete_graph_raises(graph: Any) -> None:
    """Graph entries without the required code fields should be rejected."""

    with pytest.raises(MalformedResponseError, match="graphs\\[0\\]"):
        OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(_graphs_content(graph)))


def test_structured_reply_with_non_list_graphs_raises() -> None:
    content = json.dumps({"graphs": {"code": {}}})

    with pytest.raises(MalformedResponseError, match="must be a list"):
        OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(content))


def test_structured_reply_with_no_graphs_is_empty() -> None:
    """An empty graphs list carries no code and should be rejected as empty."""

    with pytest.raises(MalformedResponseError, match="content is empty"):
        OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(_graphs_content()))


def test_json_reply_without_graphs_is_kept_as_text() -> None:
    """JSON content outside the translation schema should pass through unchanged."""

    content = '{"name": "value"}'

    result = OpenAIResponseParser(LogicalModel.GPT_4O).parse(_success_envelope(content))

    assert result.generated_code == content
