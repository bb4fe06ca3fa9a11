"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
model catalog rows, token budget reports, and session cost summaries.
"""

from __future__ import annotations

from typing import Iterable, Mapping, NoReturn

import typer

from .errors import PipelineStageError, ProviderError
from .models.datatypes import ModelDescriptor, PricingEntry, TokenBudgetReport


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, ProviderError):
        typer.secho(
            f"{command_name} failed ({exc.failure_kind}): {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.retryable:
            typer.secho("Hint: the failure is transient; retry later.", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_cost_summary(summary: Mapping[str, int | float]) -> None:
    """Print session token usage and cost in USD."""

    typer.echo(f"Requests: {summary.get('requests', 0)}")
    typer.echo(f"Input tokens: {summary.get('input_tokens', 0)}")
    typer.echo(f"Output tokens: {summary.get('output_tokens', 0)}")
    typer.echo(f"Cost Total (USD): {float(summary.get('cost_usd', 0.0)):.6f}")


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def echo_model_catalog(rows: Iterable[tuple[ModelDescriptor, PricingEntry]]) -> None:
    """Print deterministic model rows with capabilities and pricing."""

    for descriptor, pricing in rows:
        typer.echo(
            f"{descriptor.logical_id.value} ({descriptor.wire_name}) "
            f"provider={descriptor.provider.value} "
            f"system_prompt={_flag(descriptor.supports_system_prompt)} "
            f"structured={_flag(descriptor.supports_structured_response)} "
            f"context={descriptor.context_window_tokens} "
            f"price_in={pricing.input_cost_per_million_tokens:.2f} "
            f"price_out={pricing.output_cost_per_million_tokens:.2f}"
        )


def echo_budget_report(report: TokenBudgetReport) -> None:
    """Print an estimate report and any budget warnings."""

    typer.echo(f"Estimated input tokens: {report.estimated_input_tokens}")
    typer.echo(f"Context window: {report.context_window_tokens}")
    typer.echo(f"Estimated input cost (USD): {report.estimated_input_cost_usd:.6f}")
    for warning in report.warnings:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)


def echo_headers(headers: Mapping[str, str]) -> None:
    """Print request headers with the authorization value masked."""

    for name in sorted(headers):
        value = headers[name]
        if name.lower() == "authorization":
            value = "Bearer ***" if value.strip() != "Bearer" else "(missing)"
        typer.echo(f"{name}: {value}")
