"""Runtime settings for bix."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

DEFAULT_GIT_BRANCH = "master"
DEFAULT_GIT_HOST_SSH = "git@git.geheimesite.nl"
DEFAULT_GITEA_API_BASE = "https://git.geheimesite.nl/api/v1"
CONFIG_FILENAME = "config.yaml"


class SettingsError(RuntimeError):
    """Raised when the user configuration file cannot be used."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    git_default_branch: str = DEFAULT_GIT_BRANCH
    git_host_ssh: str = DEFAULT_GIT_HOST_SSH
    gitea_api_base: str = DEFAULT_GITEA_API_BASE
    handler_dirs: tuple[str, ...] = (".ci", "ci")

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILENAME

    @property
    def event_log(self) -> Path:
        return self.log_dir / "events.jsonl"


def _default_home_dir() -> Path:
    override = os.environ.get("BIX_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".bix"


def _load_config_file(path: Path) -> dict[str, Any]:
    import yaml  # lazy import to keep import cost low

    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text("utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Invalid configuration file {path}: top level must be a mapping")
    return data


def _section(data: Mapping[str, Any], name: str, path: Path) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsError(f"Invalid configuration file {path}: '{name}' must be a mapping")
    return section


def _pick(env_var: str, file_value: Any, default: str) -> str:
    value = os.environ.get(env_var)
    if value:
        return value
    if file_value:
        return str(file_value)
    return default


def load_settings(home_dir: Path | None = None) -> RuntimeSettings:
    """Build settings from defaults, ``<home>/config.yaml`` and ``BIX_*`` variables.

    Environment variables take precedence over the file, the file over the
    built-in defaults.
    """

    base = home_dir if home_dir is not None else _default_home_dir()
    config_path = base / CONFIG_FILENAME
    data = _load_config_file(config_path)
    git = _section(data, "git", config_path)
    gitea = _section(data, "gitea", config_path)
    return RuntimeSettings(
        home_dir=base,
        log_dir=base / "logs",
        git_default_branch=_pick("BIX_GIT_DEFAULT_BRANCH", git.get("default_branch"), DEFAULT_GIT_BRANCH),
        git_host_ssh=_pick("BIX_GIT_HOST_SSH", git.get("host_ssh"), DEFAULT_GIT_HOST_SSH),
        gitea_api_base=_pick("BIX_GITEA_API_BASE", gitea.get("api_base"), DEFAULT_GITEA_API_BASE).rstrip("/"),
    )
