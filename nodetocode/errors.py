"""Domain exceptions for the LLM request/response pipeline and CLI diagnostics.

Responsibilities:
- Separate programmer errors (`UnknownModelError`, `MissingUserMessageError`)
  from provider-side failures the caller may act on.
- Keep `MalformedResponseError` and `ProviderError` distinguishable so callers
  can decide whether a retry makes sense.
"""

from __future__ import annotations


_RETRYABLE_FAILURE_KINDS = frozenset({"rate_limited", "timeout", "server_error", "transport"})


class NodeToCodeError(RuntimeError):
    """Base class for all pipeline errors raised by this package."""


class UnknownModelError(NodeToCodeError, LookupError):
    """Raised when a model identifier is not present in the model registry."""

    def __init__(self, model: object) -> None:
        """Initialize the error with the unresolved model identifier."""

        super().__init__(f"Unknown model `{model}`.")
        self.model = model


class MissingUserMessageError(NodeToCodeError):
    """Raised when a request payload is built without any user message."""

    def __init__(self) -> None:
        """Initialize the error with a fixed diagnostic message."""

        super().__init__("Request payload requires at least one user message.")


class MalformedResponseError(NodeToCodeError):
    """Raised when a provider response envelope does not match the expected schema."""

    def __init__(self, message: str, *, raw_response: str = "") -> None:
        """Initialize the error and keep the raw envelope for diagnostics."""

        super().__init__(message)
        self.raw_response = raw_response


class ProviderError(NodeToCodeError):
    """Raised when a provider signals an API-level failure (auth, quota, server fault)."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for retry/backoff decisions."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code

    @property
    def retryable(self) -> bool:
        """Return whether the failure kind is transient from the caller's point of view."""

        return self.failure_kind in _RETRYABLE_FAILURE_KINDS


class PipelineStageError(RuntimeError):
    """Raised when a specific CLI-facing stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
