"""Port for storing API tokens outside of bix."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SecretStore(ABC):
    """Keyring-like storage keyed by provider name."""

    @abstractmethod
    def store(self, provider: str, secret: str) -> None:
        """Persist ``secret`` for ``provider``, replacing any previous value."""

    @abstractmethod
    def lookup(self, provider: str) -> str | None:
        """Return the stored secret, or ``None`` when nothing is stored."""


class SecretStoreError(RuntimeError):
    """Raised when the backing keyring cannot be used."""
