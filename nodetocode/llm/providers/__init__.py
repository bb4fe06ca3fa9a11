"""Provider service implementations and the provider factory.

Callers hold `ProviderService` references only; concrete classes are chosen
by `create_provider_service`.
"""

from __future__ import annotations

from ...models.datatypes import ProviderConfig, ProviderKind
from ...telemetry.logger import Logger
from ..models import DEFAULT_REGISTRY, ModelRegistry
from ..prompt_manager import PromptManager
from .base import ProviderService
from .deepseek import DeepSeekProvider
from .openai import OpenAIProvider


_PROVIDER_CLASSES: dict[ProviderKind, type[ProviderService]] = {
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.DEEPSEEK: DeepSeekProvider,
}


def create_provider_service(
    provider_id: str | ProviderKind,
    config: ProviderConfig,
    registry: ModelRegistry = DEFAULT_REGISTRY,
    prompt_manager: PromptManager | None = None,
    logger: Logger | None = None,
) -> ProviderService:
    """Create a provider service for a configured provider identifier."""

    try:
        if isinstance(provider_id, ProviderKind):
            provider = provider_id
        else:
            provider = ProviderKind(str(provider_id).strip().lower())
    except ValueError as exc:
        supported = ", ".join(kind.value for kind in ProviderKind)
        raise ValueError(
            f"Unsupported provider `{provider_id}`; supported: {supported}."
        ) from exc
    return _PROVIDER_CLASSES[provider](
        config,
        registry=registry,
        prompt_manager=prompt_manager,
        logger=logger,
    )


__all__ = [
    "DeepSeekProvider",
    "OpenAIProvider",
    "ProviderService",
    "create_provider_service",
]
