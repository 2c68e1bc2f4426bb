"""Project directories and handler script locations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from bix.domain.handlers import Handler

HANDLER_SUFFIX = ".sh"


class ProjectNotFoundError(RuntimeError):
    """Raised when the requested project directory does not exist."""


def handler_script_candidates(root: Path, handler: Handler, handler_dirs: Sequence[str]) -> list[Path]:
    return [root / directory / f"{handler.value}{HANDLER_SUFFIX}" for directory in handler_dirs]


@dataclass(frozen=True)
class ProjectDir:
    """Directory bix operates on (usually the current working directory)."""

    root: Path

    @classmethod
    def from_path(cls, path: Path) -> "ProjectDir":
        resolved = path.expanduser().resolve()
        if not resolved.is_dir():
            raise ProjectNotFoundError(f"Project directory {resolved} does not exist")
        return cls(root=resolved)

    def handler_script(self, handler: Handler, handler_dirs: Sequence[str]) -> Path | None:
        for candidate in handler_script_candidates(self.root, handler, handler_dirs):
            if candidate.is_file():
                return candidate
        return None

    def has_file(self, name: str) -> bool:
        return (self.root / name).is_file()
