"""Severity-filtered pipeline logging utilities.

Responsibilities:
- Implement the `log(message, severity)` sink consumed by pipeline components.
- Emit deterministic single-line records through `loguru`.
- Provide a no-op sink so components never need to guard logger calls.
"""

from __future__ import annotations

from enum import IntEnum
import sys
from typing import Protocol, TextIO

from loguru import logger as _loguru_logger


class LogSeverity(IntEnum):
    """Ordered log severities; records below the configured minimum are dropped."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def parse(cls, value: str | LogSeverity) -> LogSeverity:
        """Parse a severity from its name (case-insensitive) or return it unchanged."""

        if isinstance(value, LogSeverity):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError as exc:
            supported = ", ".join(member.name.lower() for member in cls)
            raise ValueError(
                f"Unsupported log severity `{value}`; supported: {supported}."
            ) from exc


class Logger(Protocol):
    """Protocol for observability sinks used by pipeline components."""

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        """Record one message at the given severity."""


class NullLogger:
    """Logger that discards every record."""

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        """Discard the record."""

        return None


class PipelineLogger:
    """Emit `[n2c]` log lines through a dedicated `loguru` handler."""

    def __init__(
        self,
        sink: TextIO | None = None,
        min_severity: LogSeverity = LogSeverity.INFO,
    ) -> None:
        """Attach a handler for this logger instance and set the minimum severity."""

        self._sink = sink or sys.stderr
        self._min_severity = min_severity
        self._key = f"n2c-{id(self)}"
        self._logger = _loguru_logger.bind(n2c_logger=self._key)
        self._handler_id: int | None = _loguru_logger.add(
            self._sink,
            format="{message}",
            level="DEBUG",
            colorize=False,
            filter=lambda record: record["extra"].get("n2c_logger") == self._key,
        )

    @property
    def min_severity(self) -> LogSeverity:
        """Return the currently configured minimum severity."""

        return self._min_severity

    def set_min_severity(self, severity: LogSeverity | str) -> None:
        """Change the minimum severity; takes effect for subsequent records."""

        self._min_severity = LogSeverity.parse(severity)

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        """Emit one record when it meets the minimum severity."""

        if severity < self._min_severity or self._handler_id is None:
            return
        line = f"[n2c] level={severity.name} {message}"
        self._logger.log(severity.name, line)

    def close(self) -> None:
        """Detach the handler owned by this logger."""

        if self._handler_id is None:
            return
        _loguru_logger.remove(self._handler_id)
        self._handler_id = None
