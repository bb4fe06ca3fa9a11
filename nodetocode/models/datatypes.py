"""Core datatypes shared across nodetocode modules.

Responsibilities:
- Represent immutable records exchanged between pipeline components.
- Provide explicit typing for request construction and response normalization.

Key types:
- `ProviderKind`, `LogicalModel`, `ModelDescriptor`, `PricingEntry`,
  `ProviderConfig`, `ProviderConfiguration`, `Message`, `RequestPayload`,
  `ReferenceFile`, `TranslationResult`, and `TokenBudgetReport`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import json
from typing import Any, Mapping


class ProviderKind(str, Enum):
    """Closed set of supported LLM provider API surfaces."""

    OPENAI = "openai"
    DEEPSEEK = "deepseek"


class LogicalModel(str, Enum):
    """Stable internal model identifiers, decoupled from provider wire names."""

    GPT_5_3_CODEX = "gpt_5_3_codex"
    GPT_4O = "gpt_4o"
    O1_PREVIEW = "o1_preview"
    O1_MINI = "o1_mini"
    O3_MINI = "o3_mini"
    DEEPSEEK_R1 = "deepseek_r1"
    DEEPSEEK_V3 = "deepseek_v3"


class MessageRole(str, Enum):
    """Conversation roles used in request payloads."""

    SYSTEM = "system"
    USER = "user"


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    """Capabilities and wire identity of one supported model.

    Attributes:
        logical_id: Internal stable identifier.
        wire_name: Exact model string sent to the provider API.
        provider: Provider serving this model.
        display_name: Human-readable label for listings.
        supports_system_prompt: Whether a separate system-role message is accepted.
        supports_structured_response: Whether a response-format schema is accepted.
        supports_temperature: Whether the `temperature` sampling field is accepted.
        context_window_tokens: Advertised context window used for budget warnings.
    """

    logical_id: LogicalModel
    wire_name: str
    provider: ProviderKind
    display_name: str
    supports_system_prompt: bool = True
    supports_structured_response: bool = True
    supports_temperature: bool = True
    context_window_tokens: int = 128_000


@dataclass(frozen=True, slots=True)
class PricingEntry:
    """Per-model token pricing in USD per million tokens."""

    logical_id: LogicalModel | None
    input_cost_per_million_tokens: float = 0.0
    output_cost_per_million_tokens: float = 0.0

    def cost_usd(self, input_tokens: int, output_tokens: int) -> float:
        """Return the cost in USD for observed input/output token counts."""

        return (input_tokens / 1_000_000) * self.input_cost_per_million_tokens + (
            output_tokens / 1_000_000
        ) * self.output_cost_per_million_tokens


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Connection settings for one Provider Service instance.

    Attributes:
        endpoint: Full chat-completions URL.
        api_key: Secret API key; hidden from `repr`.
        model: Model identifier (wire name or logical id).
        organization_id: Optional organization scope for multi-tenant providers.
    """

    endpoint: str
    api_key: str = field(repr=False)
    model: str
    organization_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProviderConfiguration:
    """Connection parameters and resolved capability flag exposed by a provider."""

    endpoint: str
    auth_token: str = field(repr=False)
    supports_system_prompts: bool = True


@dataclass(frozen=True, slots=True)
class Message:
    """One role-tagged conversation message."""

    role: MessageRole
    content: str

    def as_payload(self) -> dict[str, str]:
        """Return the wire representation of this message."""

        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class RequestPayload:
    """Fully-formed request body ready for transmission."""

    body: Mapping[str, Any]

    @property
    def model(self) -> str:
        """Return the wire model name placed in the payload."""

        return str(self.body["model"])

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return payload messages as typed records in wire order."""

        return tuple(
            Message(role=MessageRole(item["role"]), content=item["content"])
            for item in self.body.get("messages", [])
        )

    def to_json(self) -> str:
        """Serialize the payload body into a deterministic JSON string."""

        return json.dumps(self.body, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ReferenceFile:
    """A source file included as context in translation prompts."""

    path: str
    content: str


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Normalized outcome of one completed translation request.

    Attributes:
        generated_code: Model output with any enclosing markdown fence removed.
        input_tokens: Prompt tokens reported by the provider.
        output_tokens: Completion tokens reported by the provider.
        estimated_cost_usd: Cost derived from registry pricing and observed usage.
        model: Wire model name that produced the result.
        provider: Provider identifier.
        raw_response: Raw response envelope kept for diagnostics.
    """

    generated_code: str
    input_tokens: int
    output_tokens: int
    estimated_cost_usd: float
    model: str = ""
    provider: str = ""
    raw_response: str = field(default="", repr=False)


@dataclass(frozen=True, slots=True)
class TokenBudgetReport:
    """Advisory token/cost estimate for a request before it is sent."""

    estimated_input_tokens: int
    context_window_tokens: int
    estimated_input_cost_usd: float
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def within_context_window(self) -> bool:
        """Return whether the estimate fits in the model context window."""

        return self.estimated_input_tokens <= self.context_window_tokens
