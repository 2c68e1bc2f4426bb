"""Handler names, package managers and resolution actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class Handler(str, Enum):
    """Lifecycle hooks a project can provide."""

    SETUP = "setup"
    BUILD = "build"
    CHECK = "check"
    FORMAT = "format"
    DEPLOY = "deploy"
    SERVER = "server"

    @classmethod
    def parse(cls, value: "str | Handler") -> "Handler":
        if isinstance(value, Handler):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            known = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown handler '{value}' (expected one of: {known})") from None


class PackageManager(str, Enum):
    MIX = "mix"
    YARN = "yarn"
    NPM = "npm"
    CARGO = "cargo"


# One fixed command per (manager, handler). Deploy is always project specific.
MANAGER_COMMANDS: dict[PackageManager, dict[Handler, tuple[str, ...]]] = {
    PackageManager.MIX: {
        Handler.SETUP: ("mix", "deps.get"),
        Handler.BUILD: ("mix", "compile"),
        Handler.CHECK: ("mix", "test"),
        Handler.FORMAT: ("mix", "format"),
        Handler.SERVER: ("mix", "run", "--no-halt"),
    },
    PackageManager.YARN: {
        Handler.SETUP: ("yarn", "install"),
        Handler.BUILD: ("yarn", "build"),
        Handler.CHECK: ("yarn", "test"),
        Handler.FORMAT: ("yarn", "format"),
        Handler.SERVER: ("yarn", "start"),
    },
    PackageManager.NPM: {
        Handler.SETUP: ("npm", "install"),
        Handler.BUILD: ("npm", "run", "build"),
        Handler.CHECK: ("npm", "test"),
        Handler.FORMAT: ("npm", "run", "format"),
        Handler.SERVER: ("npm", "start"),
    },
    PackageManager.CARGO: {
        Handler.SETUP: ("cargo", "fetch"),
        Handler.BUILD: ("cargo", "build"),
        Handler.CHECK: ("cargo", "test"),
        Handler.FORMAT: ("cargo", "fmt"),
        Handler.SERVER: ("cargo", "run"),
    },
}


def manager_command(manager: PackageManager, handler: Handler) -> tuple[str, ...] | None:
    return MANAGER_COMMANDS[manager].get(handler)


@dataclass(frozen=True)
class RunScript:
    path: Path
    args: tuple[str, ...] = ()

    kind = "script"

    def argv(self) -> list[str]:
        return [str(self.path), *self.args]


@dataclass(frozen=True)
class RunManagerCommand:
    manager: PackageManager
    command: tuple[str, ...]
    args: tuple[str, ...] = ()

    kind = "manager"

    def argv(self) -> list[str]:
        return [*self.command, *self.args]


@dataclass(frozen=True)
class Fail:
    reason: str

    kind = "fail"


Action = Union[RunScript, RunManagerCommand, Fail]
