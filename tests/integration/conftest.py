"""Integration-test fixtures for deterministic CLI behavior."""

from __future__ import annotations

from pathlib import Path

import pytest


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, provider: str = "openai", shared: dict[str, str] | None = None) -> None:
        """Initialize the store for a provider over shared storage."""

        self.provider = provider
        self._storage = shared if shared is not None else {}

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_active_api_key(self) -> str:
        """Return the stored API key for the provider, or an empty string."""

        return self._storage.get(self.provider, "")

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key value."""

        self._storage[self.provider] = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear API key and return whether one existed."""

        return self._storage.pop(self.provider, None) is not None

    def save_secrets(self) -> None:
        """Nothing is staged in memory."""


@pytest.fixture(autouse=True)
def credential_storage(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Route CLI credential access to an in-memory store and return its storage."""

    storage: dict[str, str] = {}
    monkeypatch.setattr(
        "nodetocode.cli.create_credential_store",
        lambda provider="openai": InMemoryCredentialStore(provider, storage),
    )
    return storage


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    """Write a small serialized graph used as command input."""

    path = tmp_path / "graph.json"
    path.write_text(
        '{"graph_name": "OpenDoor", "nodes": [{"id": 1, "type": "Event BeginPlay"}, '
        '{"id": 2, "type": "Print String", "inputs": {"text": "Hello"}}], '
        '"links": [[1, 2]]}',
        encoding="utf-8",
    )
    return path
