"""Secret storage backed by libsecret's ``secret-tool``."""

from __future__ import annotations

import subprocess

from bix.ports.secret_store import SecretStore, SecretStoreError

OWNER_ATTRIBUTE = ("setby", "bix")


class SecretToolStore(SecretStore):
    def __init__(self, executable: str = "secret-tool") -> None:
        self._executable = executable

    def store(self, provider: str, secret: str) -> None:
        command = [
            self._executable,
            "store",
            "--label",
            f"{provider} API access token",
            *self._attributes(provider),
        ]
        result = self._run(command, input_text=secret)
        if result.returncode != 0:
            raise SecretStoreError(
                f"secret-tool failed to store the {provider} token: {result.stderr.strip()}"
            )

    def lookup(self, provider: str) -> str | None:
        command = [self._executable, "lookup", *self._attributes(provider)]
        result = self._run(command)
        # secret-tool exits non-zero when nothing matches
        if result.returncode != 0:
            return None
        value = result.stdout.strip()
        return value or None

    def _attributes(self, provider: str) -> list[str]:
        return ["provider", provider, *OWNER_ATTRIBUTE]

    def _run(self, command: list[str], *, input_text: str | None = None) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                command,
                input=input_text,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise SecretStoreError(
                f"{self._executable} not found; install libsecret-tools to store API tokens"
            ) from exc
