"""DeepSeek chat-completions provider service."""

from __future__ import annotations

from ...models.datatypes import ProviderKind
from ..response_parser import DeepSeekResponseParser
from .base import ProviderService


class DeepSeekProvider(ProviderService):
    """Provider service for the DeepSeek chat-completions API.

    DeepSeek has no organization scoping, so only the base headers are sent.
    """

    provider_kind = ProviderKind.DEEPSEEK
    default_endpoint = "https://api.deepseek.com/chat/completions"

    def create_response_parser(self) -> DeepSeekResponseParser:
        return DeepSeekResponseParser(
            self.descriptor.logical_id,
            registry=self._registry,
            logger=self._logger,
        )
