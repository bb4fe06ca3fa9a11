"""Provider service contract shared by all LLM providers.

Responsibilities:
- Expose connection parameters, headers and the capability flag for the
  configured model.
- Orchestrate prompt assembly and payload construction into one request body.
- Hand out the matching response parser so callers never branch on provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ...models.datatypes import (
    ModelDescriptor,
    ProviderConfig,
    ProviderConfiguration,
    ProviderKind,
    RequestPayload,
)
from ...telemetry.logger import Logger, LogSeverity, NullLogger
from ..models import DEFAULT_REGISTRY, ModelRegistry
from ..payload_builder import PayloadBuilder
from ..prompt_manager import PromptManager
from ..prompts import translation_response_schema
from ..response_parser import ResponseParser


_REQUEST_TEMPERATURE = 0.0
_REQUEST_MAX_TOKENS = 8192


class ProviderService(ABC):
    """Contract every provider implementation fulfils.

    One instance serves one translation session and must not be shared between
    concurrent requests.
    """

    provider_kind: ProviderKind
    default_endpoint: str

    def __init__(
        self,
        config: ProviderConfig,
        registry: ModelRegistry = DEFAULT_REGISTRY,
        prompt_manager: PromptManager | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Bind the service to its configuration and resolve the model descriptor.

        Raises:
            UnknownModelError: If the configured model is not in the registry.
            ValueError: If the model belongs to a different provider.
        """

        descriptor = registry.resolve(config.model)
        if descriptor.provider != self.provider_kind:
            raise ValueError(
                f"Model `{config.model}` is served by `{descriptor.provider.value}`, "
                f"not `{self.provider_kind.value}`."
            )
        self.config = config
        self._registry = registry
        self._descriptor = descriptor
        self.prompt_manager = prompt_manager or PromptManager()
        self._logger = logger or NullLogger()

    @property
    def descriptor(self) -> ModelDescriptor:
        """Return the descriptor of the configured model."""

        return self._descriptor

    @property
    def endpoint(self) -> str:
        """Return the configured endpoint, or the provider default when blank."""

        return self.config.endpoint.strip() or self.default_endpoint

    def get_configuration(self) -> ProviderConfiguration:
        """Return endpoint, auth token and system-prompt support for the model."""

        return ProviderConfiguration(
            endpoint=self.endpoint,
            auth_token=self.config.api_key,
            supports_system_prompts=self._descriptor.supports_system_prompt,
        )

    def get_provider_headers(self) -> dict[str, str]:
        """Return HTTP headers for a request to this provider."""

        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def build_request_payload(self, user_message: str, system_message: str) -> RequestPayload:
        """Assemble the request payload for one translation request."""

        descriptor = self._descriptor
        builder = PayloadBuilder(self._registry)
        builder.initialize(descriptor.logical_id)
        builder.configure_for(self.provider_kind)

        builder.set_temperature(_REQUEST_TEMPERATURE)
        builder.set_max_tokens(_REQUEST_MAX_TOKENS)
        builder.set_structured_response_schema(translation_response_schema())

        final_content = self.prompt_manager.prepend_configured_reference_files(user_message)

        if descriptor.supports_system_prompt:
            builder.add_system_message(system_message)
            builder.add_user_message(final_content)
        else:
            builder.add_user_message(self.prompt_manager.merge(system_message, final_content))

        payload = builder.build()
        self._logger.log(
            f"Built {self.provider_kind.value} payload model={descriptor.wire_name} "
            f"messages={len(payload.messages)} "
            f"system_prompt={'separate' if descriptor.supports_system_prompt else 'merged'}",
            LogSeverity.DEBUG,
        )
        return payload

    def format_request_payload(self, user_message: str, system_message: str) -> str:
        """Return the serialized request body for one translation request."""

        return self.build_request_payload(user_message, system_message).to_json()

    @abstractmethod
    def create_response_parser(self) -> ResponseParser:
        """Return the parser matching this provider's response envelope."""
