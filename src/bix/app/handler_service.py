"""Execution of resolved handlers."""

from __future__ import annotations

import errno
import os
import subprocess
from pathlib import Path
from typing import Sequence

from bix.app.router import CommandRouter
from bix.domain.handlers import Action, Fail, Handler, RunManagerCommand
from bix.settings import RuntimeSettings
from bix.utils.telemetry import record_event


class HandlerNotFoundError(RuntimeError):
    pass


class HandlerExecutionError(RuntimeError):
    pass


class HandlerService:
    def __init__(self, settings: RuntimeSettings, router: CommandRouter | None = None) -> None:
        self._settings = settings
        self._router = router or CommandRouter(settings)

    def run(self, root: Path, handler: Handler | str, extra_args: Sequence[str] = (), *, no_error: bool = False) -> int:
        handler = Handler.parse(handler)
        action = self._router.resolve(root, handler, extra_args)
        if isinstance(action, Fail):
            record_event(
                self._settings,
                "handler.missing",
                {"handler": handler.value, "project": str(root), "skipped": no_error},
                level="warn" if no_error else "error",
                status="skipped" if no_error else "fail",
            )
            if no_error:
                return 0
            raise HandlerNotFoundError(action.reason)

        exit_code = self._execute(root, handler, action)
        record_event(
            self._settings,
            "handler.run",
            {
                "handler": handler.value,
                "action": action.kind,
                "project": str(root),
                "exit_code": exit_code,
            },
            status="ok" if exit_code == 0 else "fail",
        )
        return exit_code

    def _execute(self, root: Path, handler: Handler, action: Action) -> int:
        args = action.argv()
        env = self._build_env(root, handler)
        try:
            result = subprocess.run(args, cwd=root, env=env)
        except PermissionError as exc:
            raise HandlerExecutionError(
                f"Handler {handler.value} is not executable: {args[0]}. "
                f"Run `chmod +x {args[0]}`."
            ) from exc
        except FileNotFoundError as exc:
            if isinstance(action, RunManagerCommand):
                raise HandlerExecutionError(
                    f"Handler {handler.value} needs `{args[0]}` ({action.manager.value} project) "
                    "but it is not installed or not on PATH."
                ) from exc
            raise HandlerExecutionError(
                f"Handler {handler.value} could not be started: {args[0]} "
                "(check the script's shebang line)."
            ) from exc
        except OSError as exc:
            if exc.errno != errno.ENOEXEC:
                raise
            raise HandlerExecutionError(
                f"Handler {handler.value} has no interpreter line: {args[0]}. "
                "Start the script with `#!/bin/sh`."
            ) from exc
        return result.returncode

    def _build_env(self, root: Path, handler: Handler) -> dict[str, str]:
        env = os.environ.copy()
        env["BIX_PROJECT_ROOT"] = str(root)
        env["BIX_HANDLER"] = handler.value
        env["BIX_GIT_DEFAULT_BRANCH"] = self._settings.git_default_branch
        return env


__all__ = ["HandlerExecutionError", "HandlerNotFoundError", "HandlerService"]
