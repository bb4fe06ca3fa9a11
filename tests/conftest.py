"""Shared pytest fixtures for nodetocode tests."""

from __future__ import annotations

import pytest

_ISOLATED_ENV_KEYS = (
    "N2C_PROVIDER",
    "N2C_MODEL",
    "N2C_ENDPOINT",
    "N2C_ORGANIZATION_ID",
    "N2C_REFERENCE_FILES",
    "N2C_TARGET_LANGUAGE",
    "N2C_LOG_SEVERITY",
    "OPENAI_API_KEY",
    "DEEPSEEK_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolate_provider_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider settings inherited from the developer shell."""

    for key in _ISOLATED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
