"""Model registry with capabilities and pricing for supported LLMs.

Responsibilities:
- Define the closed catalog of logical model ids and their wire names.
- Expose capability flags used by payload construction.
- Provide per-model pricing with a zero-cost fallback for unmapped ids.

Key types:
- `ModelRegistry`: immutable lookup tables over descriptors and pricing.
- `DEFAULT_REGISTRY`: process-wide registry built once at import.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from ..errors import UnknownModelError
from ..models.datatypes import LogicalModel, ModelDescriptor, PricingEntry, ProviderKind


_DEFAULT_DESCRIPTORS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        logical_id=LogicalModel.GPT_5_3_CODEX,
        wire_name="gpt-5.3-codex",
        provider=ProviderKind.OPENAI,
        display_name="GPT-5.3 Codex",
        supports_temperature=False,
        context_window_tokens=400_000,
    ),
    ModelDescriptor(
        logical_id=LogicalModel.GPT_4O,
        wire_name="gpt-4o",
        provider=ProviderKind.OPENAI,
        display_name="GPT-4o",
    ),
    # o1 family: no system role, no temperature.
    ModelDescriptor(
        logical_id=LogicalModel.O1_PREVIEW,
        wire_name="o1-preview-2024-09-12",
        provider=ProviderKind.OPENAI,
        display_name="o1 Preview",
        supports_system_prompt=False,
        supports_structured_response=False,
        supports_temperature=False,
    ),
    ModelDescriptor(
        logical_id=LogicalModel.O1_MINI,
        wire_name="o1-mini-2024-09-12",
        provider=ProviderKind.OPENAI,
        display_name="o1 Mini",
        supports_system_prompt=False,
        supports_structured_response=False,
        supports_temperature=False,
    ),
    ModelDescriptor(
        logical_id=LogicalModel.O3_MINI,
        wire_name="o3-mini",
        provider=ProviderKind.OPENAI,
        display_name="o3 Mini",
        supports_temperature=False,
        context_window_tokens=200_000,
    ),
    ModelDescriptor(
        logical_id=LogicalModel.DEEPSEEK_R1,
        wire_name="deepseek-reasoner",
        provider=ProviderKind.DEEPSEEK,
        display_name="DeepSeek R1",
        supports_system_prompt=False,
        supports_structured_response=False,
        supports_temperature=False,
        context_window_tokens=64_000,
    ),
    ModelDescriptor(
        logical_id=LogicalModel.DEEPSEEK_V3,
        wire_name="deepseek-chat",
        provider=ProviderKind.DEEPSEEK,
        display_name="DeepSeek V3",
        supports_system_prompt=False,
        context_window_tokens=64_000,
    ),
)

# USD per million tokens (input, output).
_DEFAULT_PRICING: tuple[PricingEntry, ...] = (
    PricingEntry(LogicalModel.GPT_5_3_CODEX, 0.0, 0.0),
    PricingEntry(LogicalModel.GPT_4O, 2.50, 10.00),
    PricingEntry(LogicalModel.O1_PREVIEW, 15.00, 60.00),
    PricingEntry(LogicalModel.O1_MINI, 3.00, 12.00),
    PricingEntry(LogicalModel.O3_MINI, 1.10, 4.40),
    PricingEntry(LogicalModel.DEEPSEEK_R1, 0.55, 2.19),
    PricingEntry(LogicalModel.DEEPSEEK_V3, 0.14, 0.28),
)


class ModelRegistry:
    """Read-only catalog of model descriptors and pricing entries."""

    def __init__(
        self,
        descriptors: Iterable[ModelDescriptor],
        pricing: Iterable[PricingEntry] = (),
    ) -> None:
        """Index descriptors by logical id and wire name, and pricing by logical id."""

        by_id: dict[LogicalModel, ModelDescriptor] = {}
        by_wire_name: dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.logical_id in by_id:
                raise ValueError(f"Duplicate model descriptor `{descriptor.logical_id.name}`.")
            by_id[descriptor.logical_id] = descriptor
            by_wire_name[descriptor.wire_name] = descriptor

        self._descriptors: Mapping[LogicalModel, ModelDescriptor] = MappingProxyType(by_id)
        self._by_wire_name: Mapping[str, ModelDescriptor] = MappingProxyType(by_wire_name)
        self._pricing: Mapping[LogicalModel, PricingEntry] = MappingProxyType(
            {entry.logical_id: entry for entry in pricing if entry.logical_id is not None}
        )

    def describe(self, logical_id: LogicalModel) -> ModelDescriptor:
        """Return the descriptor for a logical id.

        Raises:
            UnknownModelError: If the id is not in this registry.
        """

        try:
            return self._descriptors[logical_id]
        except (KeyError, TypeError) as exc:
            raise UnknownModelError(logical_id) from exc

    def price(self, logical_id: LogicalModel | None) -> PricingEntry:
        """Return pricing for a logical id, or a zero-cost entry when unmapped."""

        entry = self._pricing.get(logical_id) if logical_id is not None else None
        if entry is None:
            return PricingEntry(logical_id=logical_id)
        return entry

    def wire_name(self, logical_id: LogicalModel) -> str:
        """Return the exact model string sent to the provider API."""

        return self.describe(logical_id).wire_name

    def resolve(self, model: str | LogicalModel) -> ModelDescriptor:
        """Resolve a logical id, enum name or wire name into a descriptor.

        Raises:
            UnknownModelError: If nothing in this registry matches.
        """

        if isinstance(model, LogicalModel):
            return self.describe(model)

        token = str(model).strip()
        if token in self._by_wire_name:
            return self._by_wire_name[token]

        normalized = token.lower().replace("-", "_").replace(".", "_")
        for logical_id, descriptor in self._descriptors.items():
            if normalized in (logical_id.value, logical_id.name.lower()):
                return descriptor
        raise UnknownModelError(model)

    def models_for(self, provider: ProviderKind) -> tuple[ModelDescriptor, ...]:
        """Return descriptors served by one provider in catalog order."""

        return tuple(
            descriptor
            for descriptor in self._descriptors.values()
            if descriptor.provider == provider
        )

    def descriptors(self) -> tuple[ModelDescriptor, ...]:
        """Return all descriptors in catalog order."""

        return tuple(self._descriptors.values())

    def __contains__(self, logical_id: object) -> bool:
        return logical_id in self._descriptors


DEFAULT_REGISTRY = ModelRegistry(_DEFAULT_DESCRIPTORS, _DEFAULT_PRICING)
