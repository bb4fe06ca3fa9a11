"""Provider response envelope parsers.

Responsibilities:
- Decode chat-completions success envelopes into `TranslationResult` records.
- Map documented error envelopes into `ProviderError` with a failure kind.
- Reject undecodable envelopes with `MalformedResponseError`.

Key types:
- `ResponseParser`: shared chat-completions parsing logic.
- `OpenAIResponseParser`, `DeepSeekResponseParser`: provider-specific variants.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import MalformedResponseError, ProviderError
from ..models.datatypes import LogicalModel, ProviderKind, TranslationResult
from ..telemetry.logger import Logger, LogSeverity, NullLogger
from .models import DEFAULT_REGISTRY, ModelRegistry


_CODE_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n(?P<body>.*?)\n?```$", re.DOTALL)
_GRAPH_CODE_FIELDS = ("graphDeclaration", "graphImplementation", "implementationNotes")


class ResponseParser:
    """Parse OpenAI-compatible chat-completions envelopes."""

    provider: ProviderKind = ProviderKind.OPENAI
    provider_label = "Provider"
    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        logical_id: LogicalModel | None,
        registry: ModelRegistry = DEFAULT_REGISTRY,
        logger: Logger | None = None,
    ) -> None:
        """Bind the parser to the model whose pricing applies to parsed usage."""

        self.logical_id = logical_id
        self._registry = registry
        self._logger = logger or NullLogger()

    def parse(self, raw_response: bytes | str, status_code: int | None = None) -> TranslationResult:
        """Decode one raw response body into a translation result.

        Raises:
            ProviderError: When the envelope encodes an API-level error, or the
                HTTP status signals a failure.
            MalformedResponseError: When the envelope does not match the schema.
        """

        raw_text = self._decode_bytes(raw_response)
        try:
            payload = json.loads(raw_text) if raw_text.strip() else None
        except json.JSONDecodeError:
            payload = None

        if isinstance(payload, dict) and payload.get("error"):
            raise self._provider_error(payload, raw_text, status_code)
        if status_code is not None and status_code >= 400:
            raise self._provider_error({}, raw_text, status_code)
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"{self.provider_label} returned invalid JSON payload.",
                raw_response=raw_text,
            )

        content = self._extract_content(payload, raw_text)
        generated_code = self._extract_generated_code(content, raw_text)
        if not generated_code:
            raise MalformedResponseError(
                f"{self.provider_label} response message content is empty.",
                raw_response=raw_text,
            )

        input_tokens, output_tokens = self._extract_usage(payload)
        cost = self._registry.price(self.logical_id).cost_usd(input_tokens, output_tokens)
        return TranslationResult(
            generated_code=generated_code,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost_usd=cost,
            model=str(payload.get("model") or ""),
            provider=self.provider.value,
            raw_response=raw_text,
        )

    def _extract_content(self, payload: dict[str, Any], raw_text: str) -> str:
        """Extract the first choice message content text."""

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError(
                f"{self.provider_label} response missing non-empty `choices` list.",
                raw_response=raw_text,
            )

        first_choice = choices[0]
        if not isinstance(first_choice, dict):
            raise MalformedResponseError(
                f"{self.provider_label} response `choices[0]` is malformed.",
                raw_response=raw_text,
            )

        message = first_choice.get("message")
        if not isinstance(message, dict):
            raise MalformedResponseError(
                f"{self.provider_label} response missing `choices[0].message` object.",
                raw_response=raw_text,
            )

        self._inspect_message(message)
        return self._message_content_to_text(message.get("content"))

    def _inspect_message(self, message: dict[str, Any]) -> None:
        """Hook for provider-specific message fields; no-op by default."""

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert message content into plain text."""

        if isinstance(content, str):
            return content
        return ""

    def _extract_usage(self, payload: dict[str, Any]) -> tuple[int, int]:
        """Return `(input_tokens, output_tokens)`; missing usage counts as zero."""

        usage = payload.get("usage")
        if not isinstance(usage, dict):
            return 0, 0
        return (
            self._non_negative_int(usage.get("prompt_tokens")),
            self._non_negative_int(usage.get("completion_tokens")),
        )

    @staticmethod
    def _non_negative_int(value: Any) -> int:
        """Coerce a usage counter into a non-negative integer."""

        if isinstance(value, bool) or not isinstance(value, int | float):
            return 0
        return max(0, int(value))

    def _extract_generated_code(self, content: str, raw_text: str) -> str:
        """Return generated code from plain, fenced, or structured `graphs` content.

        Structured replies are objects with a `graphs` list; each graph's
        `code.graphDeclaration` and `code.graphImplementation` are joined in
        order. Any other content is returned with one enclosing fence removed.
        """

        text = self._strip_code_fence(content)
        try:
            structured = json.loads(text)
        except ValueError:
            return text
        if not isinstance(structured, dict) or "graphs" not in structured:
            return text

        graphs = structured["graphs"]
        if not isinstance(graphs, list):
            raise MalformedResponseError(
                f"{self.provider_label} structured response `graphs` must be a list.",
                raw_response=raw_text,
            )

        sections: list[str] = []
        for index, graph in enumerate(graphs):
            code = graph.get("code") if isinstance(graph, dict) else None
            if not isinstance(code, dict):
                raise MalformedResponseError(
                    f"{self.provider_label} structured response `graphs[{index}].code` is missing.",
                    raw_response=raw_text,
                )
            for field_name in _GRAPH_CODE_FIELDS:
                if not isinstance(code.get(field_name), str):
                    raise MalformedResponseError(
                        f"{self.provider_label} structured response "
                        f"`graphs[{index}].code.{field_name}` is missing.",
                        raw_response=raw_text,
                    )
            notes = code["implementationNotes"].strip()
            if notes:
                self._logger.log(
                    f"{self.provider_label} implementation notes for graph {index}: {notes}",
                    LogSeverity.DEBUG,
                )
            sections.extend(
                part.strip()
                for part in (code["graphDeclaration"], code["graphImplementation"])
                if part.strip()
            )
        return "\n\n".join(sections)

    @staticmethod
    def _strip_code_fence(content: str) -> str:
        """Remove one enclosing markdown code fence, when present."""

        text = content.strip()
        match = _CODE_FENCE_RE.match(text)
        if match:
            return match.group("body").strip()
        return text

    @staticmethod
    def _decode_bytes(raw_response: bytes | str) -> str:
        """Decode raw response bytes as UTF-8 with replacement."""

        if isinstance(raw_response, bytes | bytearray):
            return bytes(raw_response).decode("utf-8", errors="replace")
        return str(raw_response)

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @staticmethod
    def _classify_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
        error_type: str | None,
    ) -> str:
        """Classify provider errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""
        normalized_type = error_type.lower() if error_type is not None else ""

        if (
            status_code == 401
            or normalized_code == "invalid_api_key"
            or normalized_type == "authentication_error"
            or "api key" in message_lower
        ):
            return "invalid_api_key"
        if status_code == 402 or normalized_code == "insufficient_quota" or (
            status_code == 429 and ("quota" in message_lower or "balance" in message_lower)
        ):
            return "insufficient_quota"
        if status_code == 429 or normalized_code == "rate_limit_exceeded":
            return "rate_limited"
        if normalized_code == "model_not_found" or (
            "model" in message_lower
            and any(phrase in message_lower for phrase in ("not found", "does not exist", "invalid"))
        ):
            return "invalid_model"
        if status_code in {408, 504} or "timeout" in message_lower or "timed out" in message_lower:
            return "timeout"
        if status_code >= 500 or normalized_type == "server_error":
            return "server_error"
        return "http_error"

    def _provider_error(
        self,
        payload: dict[str, Any],
        raw_text: str,
        status_code: int | None,
    ) -> ProviderError:
        """Build a normalized provider error from an error envelope."""

        error_payload = payload.get("error")
        provider_code: str | None = None
        error_type: str | None = None
        message: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str | int) and str(code_value).strip():
                provider_code = str(code_value).strip()
            type_value = error_payload.get("type")
            if isinstance(type_value, str) and type_value.strip():
                error_type = type_value.strip()
            message_value = error_payload.get("message")
            if isinstance(message_value, str) and message_value.strip():
                message = message_value.strip()
        elif isinstance(error_payload, str) and error_payload.strip():
            message = error_payload.strip()

        if message is None:
            message = raw_text
        provider_message = self._short_message(self._redact_sensitive_tokens(message))
        effective_status = status_code if status_code is not None else 0
        failure_kind = self._classify_failure(
            effective_status, provider_message, provider_code, error_type
        )

        headline = {
            "invalid_api_key": f"{self.provider_label} authentication failed",
            "insufficient_quota": f"{self.provider_label} quota is insufficient for this request",
            "rate_limited": f"{self.provider_label} rate limit reached",
            "invalid_model": f"{self.provider_label} rejected the selected model",
            "timeout": f"{self.provider_label} request timed out",
            "server_error": f"{self.provider_label} server error",
        }.get(failure_kind, f"{self.provider_label} request failed")
        status_label = f" (HTTP {status_code})" if status_code is not None else ""
        if provider_message:
            detail = f"{headline}{status_label}: {provider_message}"
        else:
            detail = f"{headline}{status_label}."

        self._logger.log(f"{detail} failure_kind={failure_kind}", LogSeverity.ERROR)
        return ProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class OpenAIResponseParser(ResponseParser):
    """Parser for OpenAI chat-completions envelopes."""

    provider = ProviderKind.OPENAI
    provider_label = "OpenAI"

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert OpenAI message content variants into a plain text string."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") in {"text", "output_text"} and isinstance(
                    item.get("text"), str
                ):
                    parts.append(item["text"])
            return "".join(parts)
        return ""

    def _inspect_message(self, message: dict[str, Any]) -> None:
        """Log refusals, which arrive with null content."""

        refusal = message.get("refusal")
        if isinstance(refusal, str) and refusal.strip():
            self._logger.log(
                f"OpenAI refused the request: {self._short_message(refusal)}",
                LogSeverity.WARNING,
            )


class DeepSeekResponseParser(ResponseParser):
    """Parser for DeepSeek chat-completions envelopes."""

    provider = ProviderKind.DEEPSEEK
    provider_label = "DeepSeek"

    def _inspect_message(self, message: dict[str, Any]) -> None:
        """Log the size of R1 reasoning output; it is never part of the result."""

        reasoning = message.get("reasoning_content")
        if isinstance(reasoning, str) and reasoning:
            self._logger.log(
                f"DeepSeek reasoning content received chars={len(reasoning)}",
                LogSeverity.DEBUG,
            )

    def _extract_usage(self, payload: dict[str, Any]) -> tuple[int, int]:
        """Read usage, falling back to the cache hit/miss split for prompt tokens."""

        input_tokens, output_tokens = super()._extract_usage(payload)
        usage = payload.get("usage")
        if input_tokens == 0 and isinstance(usage, dict):
            input_tokens = self._non_negative_int(
                usage.get("prompt_cache_hit_tokens")
            ) + self._non_negative_int(usage.get("prompt_cache_miss_tokens"))
        return input_tokens, output_tokens
