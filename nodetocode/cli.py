"""Command-line interface for nodetocode.

Responsibilities:
- Expose user-facing commands for model listing, estimation and translation.
- Convert CLI arguments into `NodeToCodeConfig` and provider services.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Annotated

from loguru import logger as loguru_logger
import typer

from .cli_rendering import (
    echo_budget_report,
    echo_cost_summary,
    echo_headers,
    echo_model_catalog,
    exit_with_command_error,
)
from .config import ConfigLoader, NodeToCodeConfig, ProviderRuntimeConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import PipelineStageError
from .llm.models import DEFAULT_REGISTRY
from .llm.prompt_manager import PromptManager
from .llm.prompts import PromptLibrary
from .llm.providers import ProviderService, create_provider_service
from .llm.token_estimator import ReferenceTokenTracker, TokenEstimator
from .models.datatypes import ProviderKind, ReferenceFile
from .parsing import normalize_optional_string
from .reference_files import load_reference_files
from .session import TranslationSession
from .telemetry.logger import LogSeverity, PipelineLogger

app = typer.Typer(
    name="nodetocode",
    no_args_is_help=True,
    help="Translate visual scripting graphs into source code with LLM providers.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file."),
]
ProviderOption = Annotated[
    str | None,
    typer.Option("--provider", help="Provider id (`openai` or `deepseek`)."),
]
ModelOption = Annotated[
    str | None,
    typer.Option("--model", help="Model id, wire name or logical name."),
]
EndpointOption = Annotated[
    str | None,
    typer.Option("--endpoint", help="Provider endpoint override."),
]
OrganizationOption = Annotated[
    str | None,
    typer.Option("--organization-id", help="OpenAI organization id."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option("--api-key", help="Provider API key (prefer secure storage or env)."),
]
ReferenceOption = Annotated[
    list[Path] | None,
    typer.Option("--reference", help="Reference source file; repeat for several files."),
]
LanguageOption = Annotated[
    str | None,
    typer.Option("--target-language", help="Target code language."),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", help="Minimum log severity (debug, info, warning, error)."),
]


@dataclass(slots=True)
class _CommandContext:
    """Resolved inputs shared by the request-oriented commands."""

    config: NodeToCodeConfig
    runtime: ProviderRuntimeConfig
    reference_files: tuple[ReferenceFile, ...]
    logger: PipelineLogger


def _load_yaml_config(config_path: Path | None) -> NodeToCodeConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify the file permissions.",
        ) from exc


def _resolve_base_config(
    config_file: Path | None,
    references: list[Path] | None,
    target_language: str | None,
    log_level: str | None,
) -> NodeToCodeConfig:
    """Resolve the base config from YAML defaults and explicit CLI overrides."""

    base = _load_yaml_config(config_file) or NodeToCodeConfig()
    overrides: dict[str, object] = {}
    if references:
        overrides["reference_files"] = base.reference_files + tuple(str(path) for path in references)
    if normalize_optional_string(target_language) is not None:
        overrides["target_language"] = target_language.strip()
    if normalize_optional_string(log_level) is not None:
        overrides["log_severity"] = log_level.strip()
    config = replace(base, **overrides) if overrides else base
    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Check `--target-language` and `--log-level` values.",
        ) from exc
    return config


def _runtime_cli_values(
    provider: str | None,
    model: str | None,
    endpoint: str | None,
    organization_id: str | None,
    api_key: str | None,
) -> dict[str, str]:
    """Return normalized CLI runtime values that were provided."""

    values: dict[str, str] = {}
    for key, value in (
        ("provider", provider),
        ("model", model),
        ("endpoint", endpoint),
        ("organization_id", organization_id),
        ("api_key", api_key),
    ):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            values[key] = normalized
    return values


def _active_provider_id(config: NodeToCodeConfig, cli_values: dict[str, str]) -> str:
    """Return the provider id selected before secure storage is consulted."""

    return (
        cli_values.get("provider")
        or normalize_optional_string(os.environ.get("N2C_PROVIDER"))
        or config.provider
    ).lower()


def _runtime_secure_values(provider_id: str) -> dict[str, str]:
    """Return secure-storage runtime values for the active provider."""

    credential_store = create_credential_store(provider_id)
    if not credential_store.is_available():
        return {}
    stored_api_key = normalize_optional_string(credential_store.get_active_api_key())
    if stored_api_key is None:
        return {}
    return {"api_key": stored_api_key}


def _build_command_context(
    config_file: Path | None,
    provider: str | None,
    model: str | None,
    endpoint: str | None,
    organization_id: str | None,
    api_key: str | None,
    references: list[Path] | None,
    target_language: str | None,
    log_level: str | None,
) -> _CommandContext:
    """Resolve config, runtime provider values, reference files and logger."""

    config = _resolve_base_config(config_file, references, target_language, log_level)
    cli_values = _runtime_cli_values(provider, model, endpoint, organization_id, api_key)
    provider_id = _active_provider_id(config, cli_values)
    if provider_id not in {kind.value for kind in ProviderKind}:
        raise PipelineStageError(
            stage="config",
            detail=f"Unsupported provider `{provider_id}`.",
            hint="Use `--provider openai` or `--provider deepseek`.",
        )

    config = replace(
        config,
        runtime_sources=RuntimeConfigSources(
            cli=cli_values,
            secure=_runtime_secure_values(provider_id),
            env=os.environ,
        ),
    )
    try:
        runtime = config.resolved_provider_runtime()
    except (ValueError, LookupError) as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Run `nodetocode models` to list supported model ids.",
        ) from exc

    logger = PipelineLogger(min_severity=LogSeverity.parse(config.log_severity))
    reference_files = load_reference_files(config.reference_files, logger=logger)
    return _CommandContext(
        config=config,
        runtime=runtime,
        reference_files=reference_files,
        logger=logger,
    )


def _create_provider(context: _CommandContext) -> ProviderService:
    """Create the provider service for a resolved command context."""

    try:
        return create_provider_service(
            context.runtime.provider,
            context.runtime.as_provider_config(),
            prompt_manager=PromptManager(context.reference_files),
            logger=context.logger,
        )
    except ValueError as exc:
        raise PipelineStageError(
            stage="provider",
            detail=str(exc),
            hint="Choose a model served by the selected provider.",
        ) from exc


def _read_graph(graph_file: Path) -> str:
    """Read the serialized graph input and map failures to stage errors."""

    try:
        graph_text = graph_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Failed to read graph file `{graph_file}`: {exc}",
            hint="Pass an existing graph JSON file.",
        ) from exc
    if not graph_text.strip():
        raise PipelineStageError(
            stage="input",
            detail=f"Graph file `{graph_file}` is empty.",
        )
    return graph_text


def _prompts(config: NodeToCodeConfig, graph_text: str) -> tuple[str, str]:
    """Return the (system, user) prompt pair for a graph."""

    library = PromptLibrary()
    return (
        library.translation_system_prompt(config.target_language),
        library.translate_graph_prompt(graph_text),
    )


@app.command("models")
def models_command(
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Only list models served by this provider."),
    ] = None,
) -> None:
    """List supported models with capabilities and pricing."""

    descriptors = DEFAULT_REGISTRY.descriptors()
    provider_id = normalize_optional_string(provider)
    if provider_id is not None:
        try:
            descriptors = DEFAULT_REGISTRY.models_for(ProviderKind(provider_id.lower()))
        except ValueError:
            exit_with_command_error(
                "models",
                PipelineStageError(
                    stage="config",
                    detail=f"Unsupported provider `{provider}`.",
                    hint="Use `openai` or `deepseek`.",
                ),
            )

    echo_model_catalog(
        (descriptor, DEFAULT_REGISTRY.price(descriptor.logical_id)) for descriptor in descriptors
    )


@app.command("estimate")
def estimate_command(
    graph_file: Annotated[Path, typer.Argument(help="Path to serialized graph JSON.")],
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    references: ReferenceOption = None,
    target_language: LanguageOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Estimate prompt tokens and input cost without sending a request."""

    context: _CommandContext | None = None
    try:
        context = _build_command_context(
            config_file, provider, model, None, None, None, references, target_language, log_level
        )
        system_prompt, user_prompt = _prompts(context.config, _read_graph(graph_file))
        estimator = TokenEstimator()
        tracker = ReferenceTokenTracker(estimator, logger=context.logger)
        reference_tokens = tracker.on_reference_set_changed(context.reference_files)
        total_tokens = estimator.estimate_request(system_prompt, user_prompt) + reference_tokens
        descriptor = DEFAULT_REGISTRY.resolve(context.runtime.model)
        report = estimator.budget_report(
            descriptor, DEFAULT_REGISTRY.price(descriptor.logical_id), total_tokens
        )
    except Exception as exc:
        exit_with_command_error("estimate", exc)
    finally:
        if context is not None:
            context.logger.close()

    typer.echo(f"Model: {descriptor.display_name} ({descriptor.wire_name})")
    typer.echo(f"Reference files: {len(context.reference_files)}")
    typer.echo(f"Reference tokens: {reference_tokens}")
    echo_budget_report(report)


@app.command("payload")
def payload_command(
    graph_file: Annotated[Path, typer.Argument(help="Path to serialized graph JSON.")],
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    endpoint: EndpointOption = None,
    organization_id: OrganizationOption = None,
    references: ReferenceOption = None,
    target_language: LanguageOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Print the request headers (secrets masked) and body without sending it."""

    context: _CommandContext | None = None
    try:
        context = _build_command_context(
            config_file,
            provider,
            model,
            endpoint,
            organization_id,
            None,
            references,
            target_language,
            log_level,
        )
        service = _create_provider(context)
        system_prompt, user_prompt = _prompts(context.config, _read_graph(graph_file))
        body = service.format_request_payload(user_prompt, system_prompt)
        configuration = service.get_configuration()
        headers = service.get_provider_headers()
    except Exception as exc:
        exit_with_command_error("payload", exc)
    finally:
        if context is not None:
            context.logger.close()

    typer.echo(f"Endpoint: {configuration.endpoint}")
    typer.echo(f"System prompts: {'separate' if configuration.supports_system_prompts else 'merged'}")
    echo_headers(headers)
    typer.echo(body)


@app.command("translate")
def translate_command(
    graph_file: Annotated[Path, typer.Argument(help="Path to serialized graph JSON.")],
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    endpoint: EndpointOption = None,
    organization_id: OrganizationOption = None,
    api_key: ApiKeyOption = None,
    references: ReferenceOption = None,
    target_language: LanguageOption = None,
    log_level: LogLevelOption = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Write generated code to this file instead of stdout."),
    ] = None,
) -> None:
    """Translate a graph by sending one request to the configured provider."""

    context: _CommandContext | None = None
    try:
        context = _build_command_context(
            config_file,
            provider,
            model,
            endpoint,
            organization_id,
            api_key,
            references,
            target_language,
            log_level,
        )
        if not context.runtime.api_key:
            raise PipelineStageError(
                stage="credentials",
                detail=f"No API key configured for provider `{context.runtime.provider}`.",
                hint=(
                    "Run `nodetocode credentials --set-api-key`, set the provider "
                    "API key env var, or pass `--api-key`."
                ),
            )
        service = _create_provider(context)
        system_prompt, user_prompt = _prompts(context.config, _read_graph(graph_file))
        session = TranslationSession(service, logger=context.logger)
        result = session.translate(user_prompt, system_prompt)
        if out is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(result.generated_code, encoding="utf-8")
    except Exception as exc:
        exit_with_command_error("translate", exc)
    finally:
        if context is not None:
            context.logger.close()

    if out is None:
        typer.echo(result.generated_code)
    else:
        typer.echo(f"Generated code: {out}")
    typer.echo(f"Model: {result.model or context.runtime.model}")
    echo_cost_summary(session.cost_tracker.summary())


@app.command("credentials")
def credentials_command(
    provider: Annotated[
        str,
        typer.Option("--provider", help="Provider whose API key is managed."),
    ] = ProviderKind.OPENAI.value,
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored provider credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    provider_id = provider.strip().lower()
    if provider_id not in {kind.value for kind in ProviderKind}:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail=f"Unsupported provider `{provider}`.",
                hint="Use `--provider openai` or `--provider deepseek`.",
            ),
        )

    credential_store = create_credential_store(provider_id)
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                f"{provider_id} API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        try:
            removed = credential_store.clear_api_key()
        except Exception as exc:
            exit_with_command_error("credentials", exc)
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    available = credential_store.is_available()
    typer.echo(f"Secure credential storage: {'available' if available else 'unavailable'}")
    has_stored_key = available and bool(credential_store.get_active_api_key())
    typer.echo(f"Stored {provider_id} API key: {'present' if has_stored_key else 'not set'}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    # Records are emitted only through command-scoped PipelineLogger handlers.
    loguru_logger.remove()
    app()


if __name__ == "__main__":
    main()
