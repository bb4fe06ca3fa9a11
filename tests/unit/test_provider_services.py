"""Unit tests for provider services and the provider factory."""

from __future__ import annotations

import json

import pytest

from nodetocode.errors import UnknownModelError
from nodetocode.llm.prompt_manager import PromptManager
from nodetocode.llm.providers import (
    DeepSeekProvider,
    OpenAIProvider,
    create_provider_service,
)
from nodetocode.llm.response_parser import DeepSeekResponseParser, OpenAIResponseParser
from nodetocode.models.datatypes import MessageRole, ProviderConfig, ProviderKind, ReferenceFile

_SYSTEM = "You are a translator."
_USER = "Translate this graph."


def _config(model: str, **overrides: str) -> ProviderConfig:
    """Return a provider config with a dummy key for a model."""

    values = {"endpoint": "", "api_key": "sk-test-key", "model": model}
    values.update(overrides)
    return ProviderConfig(**values)


def test_deepseek_v3_merges_system_prompt_into_single_user_message() -> None:
    """DeepSeek V3 requests should carry one user message holding both prompts."""

    service = DeepSeekProvider(_config("deepseek-chat"))

    payload = service.build_request_payload(_USER, _SYSTEM)

    assert payload.model == "deepseek-chat"
    assert len(payload.messages) == 1
    assert payload.messages[0].role is MessageRole.USER
    assert payload.messages[0].content == PromptManager.merge(_SYSTEM, _USER)
    assert payload.body["temperature"] == 0.0
    assert payload.body["max_tokens"] == 8192
    assert payload.body["response_format"] == {"type": "json_object"}


@pytest.mark.parametrize("model", ["o1-preview-2024-09-12", "o1-mini-2024-09-12"])
def test_o1_models_send_no_system_message(model: str) -> None:
    """o1 requests should never contain a system-role message."""

    payload = OpenAIProvider(_config(model)).build_request_payload(_USER, _SYSTEM)

    assert all(message.role is not MessageRole.SYSTEM for message in payload.messages)
    assert _SYSTEM in payload.messages[0].content
    assert _USER in payload.messages[0].content
    assert "temperature" not in payload.body
    assert "response_format" not in payload.body


@pytest.mark.parametrize("model", ["gpt-4o", "gpt-5.3-codex", "o3-mini"])
def test_system_capable_models_send_one_system_and_one_user_message(model: str) -> None:
    """Models with system-role support should keep prompts separate."""

    payload = OpenAIProvider(_config(model)).build_request_payload(_USER, _SYSTEM)

    assert [message.role for message in payload.messages] == [
        MessageRole.SYSTEM,
        MessageRole.USER,
    ]
    assert payload.messages[0].content == _SYSTEM
    assert payload.messages[1].content == _USER
    assert payload.body["max_completion_tokens"] == 8192
    assert payload.body["response_format"]["type"] == "json_schema"


def test_reference_files_are_prepended_to_user_content() -> None:
    """Configured reference files should precede the user request text."""

    manager = PromptManager([ReferenceFile(path="src/Door.cpp", content="void Open();")])
    service = OpenAIProvider(_config("gpt-4o"), prompt_manager=manager)

    user_content = service.build_request_payload(_USER, _SYSTEM).messages[1].content

    assert user_content.index("src/Door.cpp") < user_content.index(_USER)
    assert "void Open();" in user_content


def test_format_request_payload_returns_json_text() -> None:
    """The serialized payload should decode back to the built body."""

    service = OpenAIProvider(_config("gpt-4o"))

    body = json.loads(service.format_request_payload(_USER, _SYSTEM))

    assert body == dict(service.build_request_payload(_USER, _SYSTEM).body)


def test_configuration_and_headers_for_openai() -> None:
    """OpenAI services should expose the default endpoint and bearer headers."""

    service = OpenAIProvider(_config("gpt-4o", organization_id="org-123"))

    configuration = service.get_configuration()
    headers = service.get_provider_headers()

    assert configuration.endpoint == "https://api.openai.com/v1/chat/completions"
    assert configuration.auth_token == "sk-test-key"
    assert configuration.supports_system_prompts is True
    assert headers["Authorization"] == "Bearer sk-test-key"
    assert headers["Content-Type"] == "application/json"
    assert headers["OpenAI-Organization"] == "org-123"


def test_openai_headers_omit_blank_organization() -> None:
    """A blank organization id should not produce an organization header."""

    headers = OpenAIProvider(_config("gpt-4o", organization_id="  ")).get_provider_headers()

    assert "OpenAI-Organization" not in headers


def test_deepseek_configuration_reports_merged_prompts_and_custom_endpoint() -> None:
    """DeepSeek services should honour endpoint overrides and report no system role."""

    service = DeepSeekProvider(_config("deepseek-reasoner", endpoint="http://localhost:9000/chat"))

    configuration = service.get_configuration()

    assert configuration.endpoint == "http://localhost:9000/chat"
    assert configuration.supports_system_prompts is False
    assert "OpenAI-Organization" not in service.get_provider_headers()


def test_services_create_matching_response_parsers() -> None:
    """Each provider should return its own response parser."""

    assert isinstance(OpenAIProvider(_config("gpt-4o")).create_response_parser(), OpenAIResponseParser)
    assert isinstance(
        DeepSeekProvider(_config("deepseek-chat")).create_response_parser(),
        DeepSeekResponseParser,
    )


def test_service_rejects_model_of_another_provider_and_unknown_models() -> None:
    """Services should refuse models they do not serve."""

    with pytest.raises(ValueError, match="served by"):
        OpenAIProvider(_config("deepseek-chat"))
    with pytest.raises(UnknownModelError):
        DeepSeekProvider(_config("deepseek-coder-v9"))


def test_factory_creates_services_by_provider_id() -> None:
    """The factory should accept provider ids and enum members."""

    openai_service = create_provider_service("OpenAI", _config("gpt-4o"))
    deepseek_service = create_provider_service(ProviderKind.DEEPSEEK, _config("deepseek-chat"))

    assert isinstance(openai_service, OpenAIProvider)
    assert isinstance(deepseek_service, DeepSeekProvider)

    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider_service("anthropic", _config("gpt-4o"))
