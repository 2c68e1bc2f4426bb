"""Port for Git hosting services with a Gitea-compatible API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from bix.domain.repository import RepositorySpec


class ForgeClient(ABC):
    @abstractmethod
    def create_token(
        self,
        username: str,
        password: str,
        *,
        name: str = "Bix",
        scopes: Sequence[str] | None = None,
    ) -> str:
        """Issue an API access token for ``username``."""

    @abstractmethod
    def create_repository(self, token: str, spec: RepositorySpec) -> dict[str, Any]:
        """Create a repository and return the API representation."""


class ForgeError(RuntimeError):
    """Raised when the forge API rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
