"""Gitea/Forgejo REST API client."""

from __future__ import annotations

from typing import Any, Sequence

import requests

from bix.domain.repository import RepositorySpec
from bix.ports.forge import ForgeClient, ForgeError

DEFAULT_TIMEOUT = 30


class GiteaClient(ForgeClient):
    def __init__(self, api_base: str, session: requests.Session | None = None) -> None:
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()

    def create_token(
        self,
        username: str,
        password: str,
        *,
        name: str = "Bix",
        scopes: Sequence[str] | None = None,
    ) -> str:
        if not username:
            raise ForgeError("gitea token request requires a username")
        body: dict[str, Any] = {"name": name}
        if scopes:
            body["scopes"] = list(scopes)
        payload = self._post(
            f"{self._api_base}/users/{username}/tokens",
            body,
            auth=(username, password),
        )
        token = payload.get("sha1") if isinstance(payload, dict) else None
        if not token:
            raise ForgeError("gitea token response did not contain 'sha1'")
        return str(token)

    def create_repository(self, token: str, spec: RepositorySpec) -> dict[str, Any]:
        if spec.org:
            url = f"{self._api_base}/orgs/{spec.org}/repos"
        else:
            url = f"{self._api_base}/user/repos"
        payload = self._post(
            url,
            spec.to_payload(),
            headers={"Authorization": f"token {token}"},
        )
        if not isinstance(payload, dict):
            raise ForgeError("gitea repository response is not an object")
        return payload

    def _post(
        self,
        url: str,
        body: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> Any:
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        try:
            response = self._session.post(
                url,
                json=body,
                headers=request_headers,
                auth=auth,
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ForgeError(f"gitea request to {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise ForgeError(
                f"Gitea API returned an error: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ForgeError(f"gitea response from {url} is not valid JSON") from exc
