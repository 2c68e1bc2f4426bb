from __future__ import annotations

from typing import Any, Sequence

import pytest

from bix.app.remote import AuthService, RemoteRepoService, RemoteServiceError
from bix.domain.repository import RepositorySpec
from bix.ports.forge import ForgeClient
from bix.ports.secret_store import SecretStore
from bix.settings import RuntimeSettings


class MemorySecretStore(SecretStore):
    def __init__(self, **secrets: str) -> None:
        self.secrets = dict(secrets)

    def store(self, provider: str, secret: str) -> None:
        self.secrets[provider] = secret

    def lookup(self, provider: str) -> str | None:
        return self.secrets.get(provider)


class FakeForge(ForgeClient):
    def __init__(self) -> None:
        self.token_requests: list[tuple[str, str, str, Sequence[str] | None]] = []
        self.repositories: list[tuple[str, RepositorySpec]] = []

    def create_token(self, username: str, password: str, *, name: str = "Bix", scopes=None) -> str:
        self.token_requests.append((username, password, name, scopes))
        return "t0ken"

    def create_repository(self, token: str, spec: RepositorySpec) -> dict[str, Any]:
        self.repositories.append((token, spec))
        return {"html_url": f"https://git.example.org/{spec.org or 'me'}/{spec.name}"}


def test_login_stores_token(runtime_settings: RuntimeSettings) -> None:
    forge = FakeForge()
    secrets = MemorySecretStore()
    AuthService(runtime_settings, forge, secrets).login("gitea", "me", "pw", scopes=["write:repository"])
    assert secrets.secrets == {"gitea": "t0ken"}
    assert forge.token_requests == [("me", "pw", "Bix", ["write:repository"])]


def test_login_rejects_unknown_provider(runtime_settings: RuntimeSettings) -> None:
    service = AuthService(runtime_settings, FakeForge(), MemorySecretStore())
    with pytest.raises(RemoteServiceError) as exc:
        service.login("github", "me", "pw")
    assert str(exc.value) == "Unsupported authentication provider"


def test_create_requires_token(runtime_settings: RuntimeSettings) -> None:
    service = RemoteRepoService(runtime_settings, FakeForge(), MemorySecretStore())
    with pytest.raises(RemoteServiceError) as exc:
        service.create("app")
    assert "bix auth gitea" in str(exc.value)


def test_create_requires_name(runtime_settings: RuntimeSettings) -> None:
    service = RemoteRepoService(runtime_settings, FakeForge(), MemorySecretStore(gitea="t0ken"))
    with pytest.raises(RemoteServiceError):
        service.create("")


def test_create_uses_default_branch_and_org(runtime_settings: RuntimeSettings) -> None:
    forge = FakeForge()
    service = RemoteRepoService(runtime_settings, forge, MemorySecretStore(gitea="t0ken"))
    created = service.create("app", "An app", org="team", private=True)
    assert created.html_url == "https://git.example.org/team/app"
    token, spec = forge.repositories[0]
    assert token == "t0ken"
    assert spec == RepositorySpec(
        name="app",
        default_branch="main",
        description="An app",
        private=True,
        org="team",
    )
