"""Forge authentication and remote repository creation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from bix.domain.repository import RepositorySpec
from bix.ports.forge import ForgeClient
from bix.ports.secret_store import SecretStore
from bix.settings import RuntimeSettings
from bix.utils.telemetry import record_event

SUPPORTED_PROVIDERS = ("gitea",)
TOKEN_NAME = "Bix"


class RemoteServiceError(RuntimeError):
    pass


class AuthService:
    def __init__(self, settings: RuntimeSettings, forge: ForgeClient, secrets: SecretStore) -> None:
        self._settings = settings
        self._forge = forge
        self._secrets = secrets

    def login(
        self,
        provider: str,
        username: str,
        password: str,
        *,
        scopes: Sequence[str] | None = None,
    ) -> None:
        if provider not in SUPPORTED_PROVIDERS:
            raise RemoteServiceError("Unsupported authentication provider")
        token = self._forge.create_token(username, password, name=TOKEN_NAME, scopes=scopes)
        self._secrets.store(provider, token)
        record_event(self._settings, "auth.login", {"provider": provider, "username": username})


@dataclass(frozen=True)
class CreatedRepository:
    name: str
    html_url: str


class RemoteRepoService:
    def __init__(self, settings: RuntimeSettings, forge: ForgeClient, secrets: SecretStore) -> None:
        self._settings = settings
        self._forge = forge
        self._secrets = secrets

    def create(
        self,
        name: str,
        description: str = "",
        *,
        org: str | None = None,
        private: bool = False,
    ) -> CreatedRepository:
        token = self._secrets.lookup("gitea")
        if not token:
            raise RemoteServiceError("Missing API token (please run 'bix auth gitea')")
        if not name:
            raise RemoteServiceError("Missing required parameter: name")
        spec = RepositorySpec(
            name=name,
            description=description,
            default_branch=self._settings.git_default_branch,
            private=private,
            org=org or None,
        )
        payload = self._forge.create_repository(token, spec)
        html_url = payload.get("html_url")
        if not html_url:
            raise RemoteServiceError("Gitea API response did not include html_url")
        record_event(
            self._settings,
            "remote.create",
            {"name": name, "org": spec.org, "private": private, "url": html_url},
        )
        return CreatedRepository(name=name, html_url=html_url)
