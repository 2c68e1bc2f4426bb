"""Handler resolution: override scripts first, then package-manager markers."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Sequence

from bix.domain.handlers import (
    Action,
    Fail,
    Handler,
    PackageManager,
    RunManagerCommand,
    RunScript,
    manager_command,
)
from bix.domain.project import ProjectDir
from bix.settings import RuntimeSettings

MarkerPredicate = Callable[[ProjectDir], bool]


def _has_any(*names: str) -> MarkerPredicate:
    def predicate(project: ProjectDir) -> bool:
        return any(project.has_file(name) for name in names)

    return predicate


# Evaluated in order; the first matching predicate selects the manager.
DETECTION_RULES: tuple[tuple[MarkerPredicate, PackageManager], ...] = (
    (_has_any("mix.exs"), PackageManager.MIX),
    (_has_any("yarn.lock"), PackageManager.YARN),
    (_has_any("package.json"), PackageManager.NPM),
    (_has_any("Cargo.toml", "cargo.toml"), PackageManager.CARGO),
)


def detect_manager(project: ProjectDir) -> PackageManager | None:
    for predicate, manager in DETECTION_RULES:
        if predicate(project):
            return manager
    return None


class CommandRouter:
    def __init__(self, settings: RuntimeSettings) -> None:
        self._settings = settings

    def resolve(self, root: Path, handler: Handler | str, args: Sequence[str] = ()) -> Action:
        handler = Handler.parse(handler)
        project = ProjectDir(root=root)
        extra = tuple(args)

        script = project.handler_script(handler, self._settings.handler_dirs)
        if script is not None:
            return RunScript(path=script, args=extra)

        manager = detect_manager(project)
        if manager is not None:
            command = manager_command(manager, handler)
            if command is not None:
                return RunManagerCommand(manager=manager, command=command, args=extra)
            return Fail(
                f"Project doesn't provide {handler.value} handler "
                f"({manager.value} has no default {handler.value} command, "
                f"add {self._script_hint(handler)})",
            )
        return Fail(
            f"Project doesn't provide {handler.value} handler "
            f"(no {self._script_hint(handler)} and no known package manager files)",
        )

    def describe(self, root: Path, handlers: Iterable[Handler] = tuple(Handler)) -> list[tuple[Handler, Action]]:
        return [(handler, self.resolve(root, handler)) for handler in handlers]

    def _script_hint(self, handler: Handler) -> str:
        return f"{self._settings.handler_dirs[0]}/{handler.value}.sh"
