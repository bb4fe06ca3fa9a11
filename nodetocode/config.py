"""Configuration model and loaders for nodetocode.

Responsibilities:
- Define translation settings as a typed dataclass.
- Provide deterministic precedence resolution for provider runtime settings.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `NodeToCodeConfig`: normalized settings for translation requests.
- `ProviderRuntimeConfig`: resolved provider/model/credential values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `NodeToCodeConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import UnknownModelError
from .llm.models import DEFAULT_REGISTRY, ModelRegistry
from .llm.prompts import PromptLibrary
from .models.datatypes import ProviderConfig, ProviderKind
from .parsing import normalize_optional_string, parse_string_list
from .telemetry.logger import LogSeverity


_DEFAULT_PROVIDER = ProviderKind.OPENAI.value
_DEFAULT_MODELS = {
    ProviderKind.OPENAI.value: "gpt-5.3-codex",
    ProviderKind.DEEPSEEK.value: "deepseek-chat",
}
_API_KEY_ENV_KEYS = {
    ProviderKind.OPENAI.value: "OPENAI_API_KEY",
    ProviderKind.DEEPSEEK.value: "DEEPSEEK_API_KEY",
}
_SUPPORTED_PROVIDER_IDS = frozenset(kind.value for kind in ProviderKind)


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider settings for one translation session.

    Attributes:
        provider: Provider identifier.
        model: Model wire name.
        endpoint: Endpoint override; blank means the provider default.
        organization_id: Optional organization scope.
        api_key: Provider API key (resolved but never persisted in artifacts).
    """

    provider: str
    model: str
    endpoint: str = ""
    organization_id: str | None = None
    api_key: str | None = field(default=None, repr=False)

    def as_provider_config(self) -> ProviderConfig:
        """Return the `ProviderConfig` consumed by provider services."""

        return ProviderConfig(
            endpoint=self.endpoint,
            api_key=self.api_key or "",
            model=self.model,
            organization_id=self.organization_id,
        )

    def as_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to display."""

        return {
            "provider": self.provider,
            "model": self.model,
            "endpoint": self.endpoint or "(provider default)",
            "organization_id": self.organization_id or "(none)",
            "api_key": "set" if self.api_key else "not set",
        }


@dataclass(slots=True)
class NodeToCodeConfig:
    """Settings for graph translation requests.

    Attributes:
        provider: Provider identifier (`openai` or `deepseek`).
        model: Model identifier; `None` selects the provider default model.
        endpoint: Optional endpoint override.
        organization_id: Optional organization scope (OpenAI only).
        api_key: Optional API key for provider calls.
        reference_files: Paths of source files included as prompt context.
        target_language: Code language requested from the model.
        log_severity: Minimum log severity name.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    provider: str = _DEFAULT_PROVIDER
    model: str | None = None
    endpoint: str | None = None
    organization_id: str | None = None
    api_key: str | None = field(default=None, repr=False)
    reference_files: tuple[str, ...] = field(default_factory=tuple)
    target_language: str = "cpp"
    log_severity: str = "info"
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before use."""

        self._validate_provider_id(self.provider, "provider")
        PromptLibrary.normalize_language(self.target_language)
        LogSeverity.parse(self.log_severity)

    def resolved_provider_runtime(
        self,
        sources: RuntimeConfigSources | None = None,
        registry: ModelRegistry = DEFAULT_REGISTRY,
    ) -> ProviderRuntimeConfig:
        """Resolve provider settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default. A config-field model
        from another provider is replaced by the resolved provider's default.

        Raises:
            ValueError: If the provider is unsupported.
            UnknownModelError: If the model is not in the registry.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        provider = self._resolve_runtime_value(
            key="provider",
            env_key="N2C_PROVIDER",
            default_value=self.provider,
            sources=resolved_sources,
        ).lower()
        self._validate_provider_id(provider, "provider")

        model = self._resolve_optional_runtime_value(
            key="model",
            env_key="N2C_MODEL",
            default_value=None,
            sources=resolved_sources,
        ) or self._configured_model_for(provider, registry)
        wire_name = registry.resolve(model).wire_name

        endpoint = self._resolve_optional_runtime_value(
            key="endpoint",
            env_key="N2C_ENDPOINT",
            default_value=self.endpoint,
            sources=resolved_sources,
        )
        organization_id = self._resolve_optional_runtime_value(
            key="organization_id",
            env_key="N2C_ORGANIZATION_ID",
            default_value=self.organization_id,
            sources=resolved_sources,
        )
        api_key = self._resolve_optional_runtime_value(
            key="api_key",
            env_key=_API_KEY_ENV_KEYS[provider],
            default_value=self.api_key,
            sources=resolved_sources,
        )

        return ProviderRuntimeConfig(
            provider=provider,
            model=wire_name,
            endpoint=endpoint or "",
            organization_id=organization_id,
            api_key=api_key,
        )

    def _configured_model_for(self, provider: str, registry: ModelRegistry) -> str:
        """Return the config model when it belongs to `provider`, else the provider default."""

        configured = normalize_optional_string(self.model)
        if configured is None:
            return _DEFAULT_MODELS[provider]
        try:
            descriptor = registry.resolve(configured)
        except UnknownModelError:
            return configured
        if descriptor.provider.value != provider:
            return _DEFAULT_MODELS[provider]
        return configured

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        value = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if value is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_provider_id(provider_id: str, field_name: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id not in _SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(_SUPPORTED_PROVIDER_IDS))
            raise ValueError(
                f"Unsupported `{field_name}` value `{provider_id}`; supported: {supported}."
            )


class ConfigLoader:
    """Factory methods for creating `NodeToCodeConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "provider",
            "model",
            "endpoint",
            "organization_id",
            "api_key",
            "reference_files",
            "target_language",
            "log_severity",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset(
        {
            "N2C_PROVIDER",
            "N2C_MODEL",
            "N2C_ENDPOINT",
            "N2C_ORGANIZATION_ID",
            *_API_KEY_ENV_KEYS.values(),
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> NodeToCodeConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(path_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> NodeToCodeConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        def _env(key: str) -> str | None:
            return normalize_optional_string(env_map.get(key)) if key in env_map else None

        provider = (_env("N2C_PROVIDER") or _DEFAULT_PROVIDER).lower()
        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

        config = NodeToCodeConfig(
            provider=provider,
            model=_env("N2C_MODEL"),
            endpoint=_env("N2C_ENDPOINT"),
            organization_id=_env("N2C_ORGANIZATION_ID"),
            api_key=_env(_API_KEY_ENV_KEYS.get(provider, "OPENAI_API_KEY")),
            reference_files=parse_string_list(
                env_map.get("N2C_REFERENCE_FILES"), "N2C_REFERENCE_FILES"
            ),
            target_language=_env("N2C_TARGET_LANGUAGE") or "cpp",
            log_severity=_env("N2C_LOG_SEVERITY") or "info",
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> NodeToCodeConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        def _optional(key: str) -> str | None:
            if key not in payload:
                return None
            return normalize_optional_string(payload[key])

        try:
            reference_files = parse_string_list(payload.get("reference_files"), "reference_files")
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

        config = NodeToCodeConfig(
            provider=(_optional("provider") or _DEFAULT_PROVIDER).lower(),
            model=_optional("model"),
            endpoint=_optional("endpoint"),
            organization_id=_optional("organization_id"),
            api_key=_optional("api_key"),
            reference_files=reference_files,
            target_language=_optional("target_language") or "cpp",
            log_severity=_optional("log_severity") or "info",
        )
        config.validate()
        return config
