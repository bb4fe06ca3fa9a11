"""Translation session wiring a provider service to a transport.

Responsibilities:
- Send one request at a time for a provider service instance.
- Route the raw response to the provider's parser.
- Accumulate usage and cost for the session.
"""

from __future__ import annotations

from typing import Protocol

from .llm.providers.base import ProviderService
from .llm.transport import HttpTransport, TransportResponse
from .models.datatypes import TranslationResult
from .telemetry.cost_tracker import CostTracker
from .telemetry.logger import Logger, LogSeverity, NullLogger


class Transport(Protocol):
    """Protocol for transports that deliver a serialized request body."""

    def send(self, endpoint: str, headers: dict[str, str], body: str) -> TransportResponse:
        """Send the request and return the raw response."""


class TranslationSession:
    """Run translation requests against one provider service."""

    def __init__(
        self,
        provider: ProviderService,
        transport: Transport | None = None,
        cost_tracker: CostTracker | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the session; the provider service must not be shared."""

        self.provider = provider
        self.transport = transport if transport is not None else HttpTransport()
        self.cost_tracker = cost_tracker if cost_tracker is not None else CostTracker()
        self._logger = logger or NullLogger()
        self._in_flight = False

    def translate(self, user_message: str, system_message: str) -> TranslationResult:
        """Build, send and parse one translation request.

        Raises:
            RuntimeError: If another request is already in flight on this session.
            ProviderError: On transport failures or provider error envelopes.
            MalformedResponseError: When the response cannot be decoded.
        """

        if self._in_flight:
            raise RuntimeError("A translation request is already in flight for this session.")
        self._in_flight = True
        try:
            configuration = self.provider.get_configuration()
            body = self.provider.format_request_payload(user_message, system_message)
            self._logger.log(
                f"Sending request provider={self.provider.provider_kind.value} "
                f"model={self.provider.descriptor.wire_name} bytes={len(body)}",
                LogSeverity.INFO,
            )
            response = self.transport.send(
                configuration.endpoint,
                self.provider.get_provider_headers(),
                body,
            )
            parser = self.provider.create_response_parser()
            result = parser.parse(response.body, status_code=response.status_code)
        finally:
            self._in_flight = False

        self.cost_tracker.add_result(result)
        self._logger.log(
            f"Translation complete input_tokens={result.input_tokens} "
            f"output_tokens={result.output_tokens} cost_usd={result.estimated_cost_usd:.6f}",
            LogSeverity.INFO,
        )
        return result
