from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "bix-home"
os.environ.setdefault("BIX_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bix.settings import RuntimeSettings  # noqa: E402


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "bix-home"
    log_dir = home / "logs"
    for directory in (home, log_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=home,
        log_dir=log_dir,
        git_default_branch="main",
        git_host_ssh="git@git.example.org",
        gitea_api_base="https://git.example.org/api/v1",
    )


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


def write_handler(root: Path, name: str, body: str, *, directory: str = ".ci", executable: bool = True) -> Path:
    script_dir = root / directory
    script_dir.mkdir(parents=True, exist_ok=True)
    script = script_dir / f"{name}.sh"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    if executable:
        os.chmod(script, 0o755)
    return script


@pytest.fixture()
def handler_script():
    return write_handler
