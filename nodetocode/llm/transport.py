"""HTTP transport for sending built request payloads.

Responsibilities:
- POST a serialized payload with provider headers and return the raw body.
- Map network-layer failures into `ProviderError` for consistent diagnostics.

HTTP error statuses are not raised here; the status code travels with the
body so the provider's response parser can decode the error envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
import socket
from typing import Mapping

import requests

from ..errors import ProviderError


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Raw HTTP response body and status code."""

    status_code: int
    body: bytes


class HttpTransport:
    """Minimal requests-based JSON POST transport."""

    def __init__(self, timeout_seconds: float = 120.0) -> None:
        """Initialize transport settings."""

        self.timeout_seconds = timeout_seconds

    def send(
        self,
        endpoint: str,
        headers: Mapping[str, str],
        body: str,
    ) -> TransportResponse:
        """POST a serialized JSON body and return the raw response."""

        try:
            response = requests.post(
                endpoint,
                headers=dict(headers),
                data=body.encode("utf-8"),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "Request timed out."
            else:
                detail = f"Request transport error: {' '.join(str(exc).split())}"
            raise ProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise ProviderError("Request timed out.", failure_kind="timeout") from exc

        return TransportResponse(
            status_code=int(response.status_code),
            body=bytes(response.content),
        )

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"
