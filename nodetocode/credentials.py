"""Secure credential storage for provider API keys.

Responsibilities:
- Persist provider API keys in an OS-backed secure credential store.
- Expose the `get_active_api_key` / `save_secrets` surface the pipeline consumes.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed storage, one account per provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import keyring


_DEFAULT_SERVICE_NAME = "nodetocode"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_active_api_key(self) -> str:
        """Return the API key for the active provider, or an empty string."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Stage and persist an API key for the active provider."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete the stored API key and return whether one existed."""

        raise NotImplementedError

    def save_secrets(self) -> None:
        """Persist staged secrets."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    provider: str = "openai"
    service_name: str = _DEFAULT_SERVICE_NAME
    _staged: dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def account_name(self) -> str:
        """Return the keyring account name holding the active provider's key."""

        return f"{self.provider.strip().lower()}_api_key"

    def _load_keyring_module(self):
        """Return the keyring module used for storage operations."""

        return keyring

    def is_available(self) -> bool:
        """Return `True` when a usable (non-fail) keyring backend is configured."""

        backend = self._load_keyring_module().get_keyring()
        return getattr(backend, "priority", 0) > 0

    def get_active_api_key(self) -> str:
        """Return the staged or stored API key, or an empty string when missing."""

        staged = self._staged.get(self.account_name)
        if staged is not None:
            return staged
        value = self._load_keyring_module().get_password(self.service_name, self.account_name)
        if value is None:
            return ""
        return value.strip()

    def stage_api_key(self, api_key: str) -> None:
        """Hold a normalized API key in memory until `save_secrets()` is called."""

        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        self._staged[self.account_name] = normalized

    def save_secrets(self) -> None:
        """Write all staged keys to keyring and clear the staging area."""

        keyring_module = self._load_keyring_module()
        for account_name, value in sorted(self._staged.items()):
            keyring_module.set_password(self.service_name, account_name, value)
        self._staged.clear()

    def set_api_key(self, api_key: str) -> None:
        """Stage and immediately persist an API key."""

        self.stage_api_key(api_key)
        self.save_secrets()

    def clear_api_key(self) -> bool:
        """Remove the stored API key from keyring and report if one was present."""

        self._staged.pop(self.account_name, None)
        keyring_module = self._load_keyring_module()
        existing = keyring_module.get_password(self.service_name, self.account_name)
        if existing is None or not existing.strip():
            return False

        keyring_module.delete_password(self.service_name, self.account_name)
        return True


def create_credential_store(provider: str = "openai") -> CredentialStore:
    """Create the default secure credential store for a provider."""

    return KeyringCredentialStore(provider=provider)
