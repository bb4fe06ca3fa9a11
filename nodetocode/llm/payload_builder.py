"""Chat-completions request payload builder.

Responsibilities:
- Accumulate model, sampling, response-format and message configuration.
- Apply provider-specific wire conventions without leaking them to callers.
- Silently drop settings the configured model does not support.

Key types:
- `PayloadBuilder`: stateful builder producing a `RequestPayload`.
- `ProviderProfile`: per-provider wire conventions used by the builder.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from ..errors import MissingUserMessageError
from ..models.datatypes import (
    LogicalModel,
    Message,
    MessageRole,
    ModelDescriptor,
    ProviderKind,
    RequestPayload,
)
from .models import DEFAULT_REGISTRY, ModelRegistry


_SCHEMA_NAME = "n2c_translation"


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    """Wire conventions that differ between provider APIs.

    Attributes:
        max_tokens_field: Body key carrying the output token budget.
        response_format_style: `json_schema` (schema sent inline) or
            `json_object` (JSON mode without a schema).
        defaults: Extra top-level fields every request carries.
    """

    max_tokens_field: str
    response_format_style: str
    defaults: Mapping[str, Any]


_PROVIDER_PROFILES: Mapping[ProviderKind, ProviderProfile] = MappingProxyType(
    {
        ProviderKind.OPENAI: ProviderProfile(
            max_tokens_field="max_completion_tokens",
            response_format_style="json_schema",
            defaults=MappingProxyType({"stream": False}),
        ),
        ProviderKind.DEEPSEEK: ProviderProfile(
            max_tokens_field="max_tokens",
            response_format_style="json_object",
            defaults=MappingProxyType({"stream": False}),
        ),
    }
)


class PayloadBuilder:
    """Build provider request bodies from accumulated configuration."""

    def __init__(self, registry: ModelRegistry = DEFAULT_REGISTRY) -> None:
        """Initialize an empty builder bound to a model registry."""

        self._registry = registry
        self._descriptor: ModelDescriptor | None = None
        self._profile: ProviderProfile | None = None
        self._temperature: float | None = None
        self._max_tokens: int | None = None
        self._schema: dict[str, Any] | None = None
        self._messages: list[Message] = []

    def initialize(self, model: str | LogicalModel) -> None:
        """Set the model and reset all accumulated state.

        Raises:
            UnknownModelError: If the model is not in the registry.
        """

        descriptor = self._registry.resolve(model)
        self._descriptor = descriptor
        self._profile = _PROVIDER_PROFILES[descriptor.provider]
        self._temperature = None
        self._max_tokens = None
        self._schema = None
        self._messages = []

    @property
    def descriptor(self) -> ModelDescriptor:
        """Return the descriptor of the initialized model."""

        if self._descriptor is None:
            raise RuntimeError("PayloadBuilder.initialize() must be called first.")
        return self._descriptor

    def configure_for(self, provider: ProviderKind) -> None:
        """Apply wire conventions for a provider; repeated calls have no further effect."""

        self._require_initialized()
        self._profile = _PROVIDER_PROFILES[ProviderKind(provider)]

    def set_temperature(self, value: float) -> None:
        """Set sampling temperature; ignored when the model does not support it."""

        if not self.descriptor.supports_temperature:
            return
        self._temperature = float(value)

    def set_max_tokens(self, value: int) -> None:
        """Set the output token budget; non-positive values are ignored."""

        self._require_initialized()
        if value <= 0:
            return
        self._max_tokens = int(value)

    def set_structured_response_schema(self, schema: Mapping[str, Any]) -> None:
        """Request schema-conforming output; ignored when the model does not support it."""

        if not self.descriptor.supports_structured_response:
            return
        self._schema = dict(schema)

    def add_system_message(self, text: str) -> None:
        """Append a system-role message."""

        self._require_initialized()
        self._messages.append(Message(role=MessageRole.SYSTEM, content=text))

    def add_user_message(self, text: str) -> None:
        """Append the user-role message.

        Raises:
            ValueError: If the payload already has a user message.
        """

        self._require_initialized()
        if any(message.role is MessageRole.USER for message in self._messages):
            raise ValueError("Request payload already has a user message.")
        self._messages.append(Message(role=MessageRole.USER, content=text))

    def build(self) -> RequestPayload:
        """Serialize builder state into a request payload.

        Raises:
            MissingUserMessageError: If no user message was added.
            RuntimeError: If the builder was not initialized.
        """

        descriptor = self.descriptor
        profile = self._profile
        if profile is None:
            raise RuntimeError("PayloadBuilder.initialize() must be called first.")

        if not any(message.role is MessageRole.USER for message in self._messages):
            raise MissingUserMessageError()

        body: dict[str, Any] = {
            "model": descriptor.wire_name,
            "messages": [message.as_payload() for message in self._messages],
        }
        body.update(profile.defaults)
        if self._temperature is not None:
            body["temperature"] = self._temperature
        if self._max_tokens is not None:
            body[profile.max_tokens_field] = self._max_tokens
        if self._schema is not None:
            body["response_format"] = self._response_format(profile, self._schema)
        return RequestPayload(body=body)

    @staticmethod
    def _response_format(profile: ProviderProfile, schema: dict[str, Any]) -> dict[str, Any]:
        """Return the provider-specific `response_format` object."""

        if profile.response_format_style == "json_object":
            return {"type": "json_object"}
        return {
            "type": "json_schema",
            "json_schema": {"name": _SCHEMA_NAME, "strict": True, "schema": schema},
        }

    def _require_initialized(self) -> None:
        """Raise when configuration is attempted before `initialize()`."""

        if self._descriptor is None:
            raise RuntimeError("PayloadBuilder.initialize() must be called first.")
