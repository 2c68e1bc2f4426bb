from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from bix.app.git import GitService, GitServiceError
from bix.app.handler_service import HandlerService
from bix.settings import RuntimeSettings


class RecordingRunner:
    def __init__(self, failures: dict[str, int] | None = None) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self._failures = failures or {}

    def __call__(self, command, cwd=None):
        self.calls.append((list(command), cwd))
        code = self._failures.get(" ".join(command[1:3]), 0)
        return subprocess.CompletedProcess(command, code)

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]


def _service(settings: RuntimeSettings, root: Path, runner: RecordingRunner) -> GitService:
    return GitService(settings, root, handlers=HandlerService(settings), runner=runner)


def test_new_creates_directory_and_sets_branch(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner()
    assert _service(runtime_settings, project_root, runner).new("app") == 0
    target = project_root / "app"
    assert target.is_dir()
    assert runner.calls == [
        (["git", "init"], target),
        (["git", "branch", "-M", "main"], target),
    ]


def test_new_refuses_existing_path(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    (project_root / "app").mkdir()
    with pytest.raises(GitServiceError):
        _service(runtime_settings, project_root, RecordingRunner()).new("app")


def test_link_repo_adds_remote_and_pushes(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner()
    assert _service(runtime_settings, project_root, runner).link_repo("me/app.git") == 0
    assert runner.commands == [
        ["git", "remote", "add", "origin", "git@git.example.org:me/app.git"],
        ["git", "push", "-u", "origin", "main"],
    ]


def test_link_repo_stops_when_remote_add_fails(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner({"remote add": 3})
    assert _service(runtime_settings, project_root, runner).link_repo("me/app.git", remote="upstream") == 3
    assert len(runner.calls) == 1


def test_push_runs_deploy_handler(runtime_settings: RuntimeSettings, project_root: Path, handler_script) -> None:
    handler_script(project_root, "deploy", "touch deployed")
    runner = RecordingRunner()
    assert _service(runtime_settings, project_root, runner).push(["origin", "main"]) == 0
    assert runner.commands == [["git", "push", "origin", "main"]]
    assert (project_root / "deployed").exists()


def test_push_without_deploy_handler_succeeds(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner()
    assert _service(runtime_settings, project_root, runner).push() == 0


def test_push_failure_skips_deploy(runtime_settings: RuntimeSettings, project_root: Path, handler_script) -> None:
    handler_script(project_root, "deploy", "touch deployed")
    runner = RecordingRunner({"push": 1})
    assert _service(runtime_settings, project_root, runner).push() == 1
    assert not (project_root / "deployed").exists()


def test_merge_sequence(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner()
    assert _service(runtime_settings, project_root, runner).merge("feature", "main") == 0
    assert runner.commands == [
        ["git", "checkout", "main"],
        ["git", "merge", "--no-ff", "feature"],
        ["git", "push", "origin", "main"],
        ["git", "branch", "-d", "feature"],
    ]


def test_merge_conflict_keeps_source_branch(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    runner = RecordingRunner({"merge --no-ff": 1})
    assert _service(runtime_settings, project_root, runner).merge("feature", "main") == 1
    assert ["git", "branch", "-d", "feature"] not in runner.commands


def test_missing_git_binary(runtime_settings: RuntimeSettings, project_root: Path) -> None:
    def runner(command, cwd=None):
        raise FileNotFoundError("git")

    service = GitService(runtime_settings, project_root, runner=runner)
    with pytest.raises(GitServiceError):
        service.push()
