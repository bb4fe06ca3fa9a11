"""Typed records shared by the request/response pipeline."""

from .datatypes import (
    LogicalModel,
    Message,
    MessageRole,
    ModelDescriptor,
    PricingEntry,
    ProviderConfig,
    ProviderConfiguration,
    ProviderKind,
    ReferenceFile,
    RequestPayload,
    TokenBudgetReport,
    TranslationResult,
)

__all__ = [
    "LogicalModel",
    "Message",
    "MessageRole",
    "ModelDescriptor",
    "PricingEntry",
    "ProviderConfig",
    "ProviderConfiguration",
    "ProviderKind",
    "ReferenceFile",
    "RequestPayload",
    "TokenBudgetReport",
    "TranslationResult",
]
