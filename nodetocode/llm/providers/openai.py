"""OpenAI chat-completions provider service."""

from __future__ import annotations

from ...models.datatypes import ProviderKind
from ..response_parser import OpenAIResponseParser
from .base import ProviderService


class OpenAIProvider(ProviderService):
    """Provider service for the OpenAI chat-completions API."""

    provider_kind = ProviderKind.OPENAI
    default_endpoint = "https://api.openai.com/v1/chat/completions"

    def get_provider_headers(self) -> dict[str, str]:
        """Return auth headers, plus the organization header when configured."""

        headers = super().get_provider_headers()
        organization_id = (self.config.organization_id or "").strip()
        if organization_id:
            headers["OpenAI-Organization"] = organization_id
        return headers

    def create_response_parser(self) -> OpenAIResponseParser:
        """Return an OpenAI envelope parser priced for the configured model."""

        return OpenAIResponseParser(
            self.descriptor.logical_id,
            registry=self._registry,
            logger=self._logger,
        )
