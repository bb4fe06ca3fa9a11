"""Character-based token estimation for prompts and reference files.

Responsibilities:
- Approximate token counts before a request is sent, to surface cost and
  context-window warnings.
- Recompute the reference-file estimate when the settings layer reports a
  changed reference set.

Notes:
- Estimates divide character counts by a fixed ratio. They are advisory and do
  not match any provider tokenizer; billing uses the usage reported in the
  response.
"""

from __future__ import annotations

import math
from typing import Iterable

from ..models.datatypes import ModelDescriptor, PricingEntry, ReferenceFile, TokenBudgetReport
from ..telemetry.logger import Logger, LogSeverity, NullLogger


_DEFAULT_CHARS_PER_TOKEN = 4
_CONTEXT_WARNING_RATIO = 0.8


class TokenEstimator:
    """Estimate token counts from content length."""

    def __init__(self, chars_per_token: int = _DEFAULT_CHARS_PER_TOKEN) -> None:
        """Initialize the estimator with a characters-per-token ratio."""

        if chars_per_token <= 0:
            raise ValueError("`chars_per_token` must be a positive integer.")
        self.chars_per_token = chars_per_token

    def estimate_text(self, text: object) -> int:
        """Return an estimate for one text; non-string input counts as zero."""

        if not isinstance(text, str) or not text:
            return 0
        return math.ceil(len(text) / self.chars_per_token)

    def estimate(self, files: Iterable[ReferenceFile]) -> int:
        """Return the combined estimate for reference files, path header included."""

        total = 0
        for reference in files:
            content = getattr(reference, "content", None)
            if not isinstance(content, str) or not content:
                continue
            path = getattr(reference, "path", "")
            total += self.estimate_text(content)
            total += self.estimate_text(path if isinstance(path, str) else "")
        return total

    def estimate_request(
        self,
        system_prompt: str,
        user_prompt: str,
        files: Iterable[ReferenceFile] = (),
    ) -> int:
        """Return the baseline prompt estimate plus the reference-file estimate."""

        baseline = self.estimate_text(system_prompt) + self.estimate_text(user_prompt)
        return baseline + self.estimate(files)

    @staticmethod
    def budget_report(
        descriptor: ModelDescriptor,
        pricing: PricingEntry,
        estimated_tokens: int,
    ) -> TokenBudgetReport:
        """Build an advisory budget report for one model."""

        window = descriptor.context_window_tokens
        warnings: list[str] = []
        if estimated_tokens > window:
            warnings.append(
                f"Estimated input of ~{estimated_tokens} tokens exceeds the "
                f"{window}-token context window of {descriptor.display_name}."
            )
        elif estimated_tokens > window * _CONTEXT_WARNING_RATIO:
            warnings.append(
                f"Estimated input of ~{estimated_tokens} tokens uses more than "
                f"{int(_CONTEXT_WARNING_RATIO * 100)}% of the {window}-token context window."
            )

        return TokenBudgetReport(
            estimated_input_tokens=estimated_tokens,
            context_window_tokens=window,
            estimated_input_cost_usd=pricing.cost_usd(estimated_tokens, 0),
            warnings=tuple(warnings),
        )


class ReferenceTokenTracker:
    """Hold the current reference-file estimate and refresh it on change notifications."""

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Initialize with an empty reference set."""

        self._estimator = estimator or TokenEstimator()
        self._logger = logger or NullLogger()
        self.estimated_tokens = 0

    def on_reference_set_changed(self, files: Iterable[ReferenceFile]) -> int:
        """Recompute and return the estimate for a new reference set."""

        self.estimated_tokens = self._estimator.estimate(files)
        self._logger.log(
            f"Estimated reference file tokens: {self.estimated_tokens}",
            LogSeverity.INFO,
        )
        return self.estimated_tokens
