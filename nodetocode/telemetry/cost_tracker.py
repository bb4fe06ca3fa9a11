"""Cost accounting for LLM translation requests.

Responsibilities:
- Track observed token usage and estimated cost per session.
- Provide summary output for CLI reporting.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models.datatypes import TranslationResult


@dataclass(slots=True)
class CostTracker:
    """Collect and summarize session-level usage counters."""

    request_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0

    def add_result(self, result: TranslationResult) -> None:
        """Add usage and cost of one completed translation."""

        self.request_count += 1
        self.input_tokens += max(0, result.input_tokens)
        self.output_tokens += max(0, result.output_tokens)
        self.cost_usd += max(0.0, result.estimated_cost_usd)

    def summary(self) -> dict[str, int | float]:
        """Return a summary dictionary rounded for stable CLI display."""

        return {
            "requests": self.request_count,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cost_usd": round(self.cost_usd, 6),
        }
