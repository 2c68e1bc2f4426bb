from __future__ import annotations

from pathlib import Path

import pytest

from bix.settings import (
    DEFAULT_GIT_BRANCH,
    DEFAULT_GITEA_API_BASE,
    RuntimeSettings,
    SettingsError,
    load_settings,
)

ENV_VARS = ("BIX_GIT_DEFAULT_BRANCH", "BIX_GIT_HOST_SSH", "BIX_GITEA_API_BASE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)
    assert settings.git_default_branch == DEFAULT_GIT_BRANCH
    assert settings.gitea_api_base == DEFAULT_GITEA_API_BASE
    assert settings.log_dir == tmp_path / "logs"
    assert settings.handler_dirs == (".ci", "ci")


def test_home_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BIX_HOME", str(tmp_path / "custom"))
    assert load_settings().home_dir == tmp_path / "custom"


def test_config_file_then_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text(
        """
        git:
          default_branch: trunk
          host_ssh: git@forge.example.org
        gitea:
          api_base: https://forge.example.org/api/v1/
        """,
        encoding="utf-8",
    )
    settings = load_settings(tmp_path)
    assert settings.git_default_branch == "trunk"
    assert settings.git_host_ssh == "git@forge.example.org"
    assert settings.gitea_api_base == "https://forge.example.org/api/v1"

    monkeypatch.setenv("BIX_GIT_DEFAULT_BRANCH", "main")
    assert load_settings(tmp_path).git_default_branch == "main"


def test_invalid_config_file(tmp_path: Path) -> None:
    (tmp_path / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(tmp_path)


def test_invalid_section(tmp_path: Path) -> None:
    (tmp_path / "config.yaml").write_text("git: main\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(tmp_path)


def test_settings_need_only_home_and_log_dirs(tmp_path: Path) -> None:
    settings = RuntimeSettings(home_dir=tmp_path, log_dir=tmp_path / "logs")
    assert settings.config_file == tmp_path / "config.yaml"
    assert settings.event_log == tmp_path / "logs" / "events.jsonl"
