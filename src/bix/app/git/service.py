"""Git workflows: new repositories, remotes, push and merge."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

from bix.app.handler_service import HandlerService
from bix.domain.handlers import Handler
from bix.settings import RuntimeSettings
from bix.utils.telemetry import record_event

Runner = Callable[..., "subprocess.CompletedProcess[bytes]"]


class GitServiceError(RuntimeError):
    pass


class GitService:
    """Runs git for the project at ``root``; stops at the first failing call."""

    def __init__(
        self,
        settings: RuntimeSettings,
        root: Path,
        *,
        handlers: HandlerService | None = None,
        runner: Runner = subprocess.run,
    ) -> None:
        self._settings = settings
        self._root = root
        self._handlers = handlers or HandlerService(settings)
        self._runner = runner

    def new(self, name: str) -> int:
        if not name:
            raise GitServiceError("Missing required parameter: name")
        target = self._root / name
        if target.exists():
            raise GitServiceError(f"Cannot create {target}: path already exists")
        target.mkdir(parents=True)
        exit_code = self._sequence(
            [
                ["git", "init"],
                ["git", "branch", "-M", self._settings.git_default_branch],
            ],
            cwd=target,
        )
        record_event(self._settings, "git.new", {"path": str(target), "exit_code": exit_code})
        return exit_code

    def link_repo(self, repo: str, remote: str = "origin") -> int:
        if not repo:
            raise GitServiceError("Missing required parameter: repo")
        url = f"{self._settings.git_host_ssh}:{repo}"
        exit_code = self._sequence(
            [
                ["git", "remote", "add", remote, url],
                ["git", "push", "-u", remote, self._settings.git_default_branch],
            ]
        )
        record_event(self._settings, "git.link_repo", {"remote": remote, "url": url, "exit_code": exit_code})
        return exit_code

    def push(self, args: Sequence[str] = ()) -> int:
        exit_code = self._git(["push", *args])
        if exit_code != 0:
            return exit_code
        return self._handlers.run(self._root, Handler.DEPLOY, no_error=True)

    def merge(self, source: str, target: str) -> int:
        if not source or not target:
            raise GitServiceError("Usage: merge <from> <into>")
        exit_code = self._sequence(
            [
                ["git", "checkout", target],
                ["git", "merge", "--no-ff", source],
            ]
        )
        if exit_code == 0:
            exit_code = self.push(["origin", target])
        if exit_code == 0:
            exit_code = self._git(["branch", "-d", source])
        record_event(
            self._settings,
            "git.merge",
            {"from": source, "into": target, "exit_code": exit_code},
            status="ok" if exit_code == 0 else "fail",
        )
        return exit_code

    def _sequence(self, commands: Sequence[list[str]], *, cwd: Path | None = None) -> int:
        for command in commands:
            exit_code = self._call(command, cwd=cwd)
            if exit_code != 0:
                return exit_code
        return 0

    def _git(self, args: Sequence[str]) -> int:
        return self._call(["git", *args])

    def _call(self, command: list[str], *, cwd: Path | None = None) -> int:
        try:
            result = self._runner(command, cwd=cwd or self._root)
        except FileNotFoundError as exc:
            raise GitServiceError("git executable not found on PATH") from exc
        return result.returncode
