#!/usr/bin/env python3
"""Entry point for the bix CLI."""

from __future__ import annotations

import argparse
import getpass
import json
import subprocess
import sys
from collections import deque
from pathlib import Path
from textwrap import dedent
from typing import NoReturn

from bix import __version__
from bix.adapters.gitea import GiteaClient
from bix.adapters.secrets import SecretToolStore
from bix.app.git import GitService, GitServiceError
from bix.app.handler_service import HandlerExecutionError, HandlerNotFoundError, HandlerService
from bix.app.remote import AuthService, RemoteRepoService, RemoteServiceError
from bix.app.router import CommandRouter
from bix.domain.handlers import Handler, RunManagerCommand, RunScript
from bix.domain.project import ProjectDir, ProjectNotFoundError
from bix.ports.forge import ForgeClient, ForgeError
from bix.ports.secret_store import SecretStore, SecretStoreError
from bix.settings import RuntimeSettings, SettingsError, load_settings
from bix.utils.telemetry import clear as events_clear
from bix.utils.telemetry import iter_events, record_event
from bix.utils.telemetry import summarize as events_summarize

SETTINGS: RuntimeSettings | None = None

HELP_OVERVIEW = dedent(
    """
    Project manager that works a bit like npm, mix or cargo, but for any
    stack: lifecycle commands run the project's handler scripts from .ci/
    (for example .ci/build.sh) and fall back to the package manager found
    in the project (mix, yarn, npm, cargo).

    Without a subcommand bix starts the project through its 'server' handler.

    Environment:
      BIX_GIT_DEFAULT_BRANCH  default branch for new repositories (master)
      BIX_GIT_HOST_SSH        SSH prefix used by link-repo
      BIX_GITEA_API_BASE      Gitea/Forgejo API base URL
      BIX_HOME                state and config directory (~/.bix)
      BIX_TELEMETRY=0         disable the local event log
    """
)

SUCCESS_MESSAGES = {
    Handler.BUILD: "🐳 Build succeeded!",
    Handler.CHECK: "🙉 Test succeeded!",
    Handler.FORMAT: "🐺 Source files formatted :)",
}

HANDLED_ERRORS = (
    HandlerNotFoundError,
    HandlerExecutionError,
    GitServiceError,
    RemoteServiceError,
    ForgeError,
    SecretStoreError,
    SettingsError,
    ProjectNotFoundError,
)


def _settings() -> RuntimeSettings:
    global SETTINGS
    if SETTINGS is None:
        SETTINGS = load_settings()
    return SETTINGS


def _project_root(args: argparse.Namespace) -> Path:
    path_arg = getattr(args, "path", None)
    path = Path(path_arg) if path_arg else Path.cwd()
    return ProjectDir.from_path(path).root


def _build_handler_service() -> HandlerService:
    return HandlerService(_settings())


def _build_git_service(root: Path) -> GitService:
    return GitService(_settings(), root, handlers=_build_handler_service())


def _build_forge() -> ForgeClient:
    return GiteaClient(_settings().gitea_api_base)


def _build_secret_store() -> SecretStore:
    return SecretToolStore()


def _success(message: str) -> int:
    print()
    print(message)
    return 0


def _error(message: str) -> int:
    print(f"🥴 {message}", file=sys.stderr)
    return 1


def _handler_cmd(args: argparse.Namespace) -> int:
    handler = Handler.parse(args.handler_name)
    service = _build_handler_service()
    exit_code = service.run(_project_root(args), handler, list(args.extra))
    if exit_code != 0:
        return exit_code
    message = SUCCESS_MESSAGES.get(handler)
    if message:
        return _success(message)
    return 0


def _run_cmd(args: argparse.Namespace) -> int:
    try:
        handler = Handler.parse(args.handler_name)
    except ValueError as exc:
        return _error(str(exc))
    extra = [arg for arg in args.extra if arg != "--no-error"]
    no_error = args.no_error or len(extra) != len(args.extra)
    service = _build_handler_service()
    return service.run(_project_root(args), handler, extra, no_error=no_error)


def _entrypoint_cmd(args: argparse.Namespace) -> int:
    service = _build_handler_service()
    return service.run(_project_root(args), Handler.SERVER, list(getattr(args, "extra", []) or []))


def _handlers_cmd(args: argparse.Namespace) -> int:
    root = _project_root(args)
    router = CommandRouter(_settings())
    rows = []
    for handler, action in router.describe(root):
        if isinstance(action, RunScript):
            target = f"script   {action.path.relative_to(root)}"
        elif isinstance(action, RunManagerCommand):
            target = f"{action.manager.value:<8} {' '.join(action.command)}"
        else:
            target = "-"
        rows.append({"handler": handler.value, "action": action.kind, "target": target})
    if args.json:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0
    for row in rows:
        print(f"{row['handler']:<8} {row['target']}")
    return 0


def _auth_cmd(args: argparse.Namespace) -> int:
    service = AuthService(_settings(), _build_forge(), _build_secret_store())
    provider = args.provider
    if provider != "gitea":
        return _error("Unsupported authentication provider")
    username = args.username or input("Username: ").strip()
    password = getpass.getpass("Password: ")
    service.login(provider, username, password, scopes=args.scopes)
    return _success(f"🔑 Stored {provider} API token")


def _create_repo_cmd(args: argparse.Namespace) -> int:
    service = RemoteRepoService(_settings(), _build_forge(), _build_secret_store())
    created = service.create(args.name, args.description, org=args.org, private=args.private)
    return _success(f"🧸 Created new remote Git repository on {created.html_url} :)")


def _link_repo_cmd(args: argparse.Namespace) -> int:
    exit_code = _build_git_service(_project_root(args)).link_repo(args.repo, remote=args.remote)
    if exit_code != 0:
        return exit_code
    return _success(f"🦑 Set up new remote {args.remote} for you :)")


def _new_cmd(args: argparse.Namespace) -> int:
    exit_code = _build_git_service(_project_root(args)).new(args.name)
    if exit_code != 0:
        return exit_code
    return _success("🐣 Set up a new Git repo for you :)")


def _push_cmd(args: argparse.Namespace) -> int:
    exit_code = _build_git_service(_project_root(args)).push(list(args.extra))
    if exit_code != 0:
        return exit_code
    return _success("🐢 Latest changes successfully deployed :D")


def _merge_cmd(args: argparse.Namespace) -> int:
    exit_code = _build_git_service(_project_root(args)).merge(args.source, args.target)
    if exit_code != 0:
        return exit_code
    return _success(f"🐙 Branch {args.source} has been merged into {args.target}. Yay!")


def _update_cmd(args: argparse.Namespace) -> int:
    mode = args.mode
    if mode == "print":
        print(
            "Run one of:\n"
            "  pipx install bix --force\n"
            f"  {sys.executable} -m pip install --upgrade bix"
        )
        record_event(_settings(), "update", {"mode": "print"})
        return 0

    print("⚡️ Downloading latest release")
    if mode == "pipx":
        command = ["pipx", "install", "bix", "--force"]
    else:
        command = [sys.executable, "-m", "pip", "install", "--upgrade", "bix"]
    try:
        result = subprocess.run(command)
    except FileNotFoundError:
        return _error(f"{command[0]} is not installed")
    record_event(_settings(), "update", {"mode": mode, "exit_code": result.returncode})
    return result.returncode


def _events_cmd(args: argparse.Namespace) -> int:
    settings = _settings()
    if args.events_command == "report":
        print(json.dumps(events_summarize(iter_events(settings)), indent=2, ensure_ascii=False))
        return 0
    if args.events_command == "clear":
        removed = events_clear(settings)
        print(f"Removed {removed} events")
        return 0
    if args.events_command == "tail":
        window = deque(iter_events(settings, prefix=args.event), maxlen=args.limit)
        for evt in window:
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    return _error("Unsupported events command")


class BixArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1 like every other bix failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"🥴 {self.prog}: {message}\n")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _exit_status(code: int) -> int:
    # subprocess reports death by signal N as -N; shells report 128 + N
    if code < 0:
        return 128 - code
    return code


def build_parser() -> argparse.ArgumentParser:
    parser = BixArgumentParser(
        prog="bix",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"bix {__version__}")
    parser.add_argument("--path", help="Project directory (default: current directory)")
    parser.set_defaults(func=_entrypoint_cmd, passthrough=False)

    sub = parser.add_subparsers(dest="command", metavar="<subcommand>")

    def make_handler(handler: Handler, help_text: str) -> None:
        handler_cmd = sub.add_parser(handler.value, help=help_text)
        handler_cmd.add_argument("extra", nargs=argparse.REMAINDER, help="Arguments passed to the handler")
        handler_cmd.set_defaults(func=_handler_cmd, handler_name=handler.value, passthrough=True)

    make_handler(Handler.SETUP, "Fetch and install project dependencies ('setup' handler)")
    make_handler(Handler.BUILD, "Build the project ('build' handler)")
    make_handler(Handler.CHECK, "Run the project test suite ('check' handler)")
    make_handler(Handler.FORMAT, "Format the project sources ('format' handler)")
    make_handler(Handler.DEPLOY, "Deploy the current commit ('deploy' handler)")

    run_cmd = sub.add_parser("run", help="Run any handler by name")
    run_cmd.add_argument("--no-error", action="store_true", help="Succeed silently when the handler is missing")
    run_cmd.add_argument("handler_name", metavar="handler", help=f"One of: {', '.join(h.value for h in Handler)}")
    run_cmd.add_argument("extra", nargs=argparse.REMAINDER)
    run_cmd.set_defaults(func=_run_cmd, passthrough=True)

    handlers_cmd = sub.add_parser("handlers", help="Show how every handler resolves in this project")
    handlers_cmd.add_argument("--json", action="store_true", help="Emit machine-readable output")
    handlers_cmd.set_defaults(func=_handlers_cmd)

    auth_cmd = sub.add_parser("auth", help="Authenticate against a Git hosting provider (gitea)")
    auth_cmd.add_argument("provider", help="Provider name (only 'gitea' is supported)")
    auth_cmd.add_argument("--username", help="Account name (prompted when omitted)")
    auth_cmd.add_argument("--scope", dest="scopes", action="append", help="Token scope (repeatable)")
    auth_cmd.set_defaults(func=_auth_cmd)

    create_cmd = sub.add_parser(
        "create-repo",
        aliases=["create-remote"],
        help="Create a new remote repository through the Gitea API",
    )
    create_cmd.add_argument("name")
    create_cmd.add_argument("description", nargs="?", default="")
    create_cmd.add_argument("--org", help="Create the repository inside this organisation")
    create_cmd.add_argument("--private", action="store_true", help="Create a private repository")
    create_cmd.set_defaults(func=_create_repo_cmd)

    link_cmd = sub.add_parser(
        "link-repo",
        aliases=["add-remote"],
        help="Add a remote to the current repository and push the default branch",
    )
    link_cmd.add_argument("repo", help="Repository path on the Git host, e.g. owner/project.git")
    link_cmd.add_argument("--remote", default="origin", help="Remote name (default: origin)")
    link_cmd.set_defaults(func=_link_repo_cmd)

    new_cmd = sub.add_parser("new", help="Create a directory with a fresh Git repository")
    new_cmd.add_argument("name")
    new_cmd.set_defaults(func=_new_cmd)

    push_cmd = sub.add_parser("push", help="git push, then run the 'deploy' handler if present")
    push_cmd.add_argument("extra", nargs=argparse.REMAINDER, help="Arguments passed to git push")
    push_cmd.set_defaults(func=_push_cmd, passthrough=True)

    merge_cmd = sub.add_parser("merge", help="Merge a branch into another, push it and delete the source")
    merge_cmd.add_argument("source", metavar="from")
    merge_cmd.add_argument("target", metavar="into")
    merge_cmd.set_defaults(func=_merge_cmd)

    update_cmd = sub.add_parser("update", help="Update the bix installation")
    update_cmd.add_argument("--mode", choices=("pip", "pipx", "print"), default="pip")
    update_cmd.set_defaults(func=_update_cmd)

    events_cmd = sub.add_parser("events", help="Inspect the local event log")
    events_sub = events_cmd.add_subparsers(dest="events_command", required=True)
    events_sub.add_parser("report", help="Print aggregated event stats").set_defaults(func=_events_cmd)
    events_sub.add_parser("clear", help="Remove the event log").set_defaults(func=_events_cmd)
    events_tail = events_sub.add_parser("tail", help="Print the last N events")
    events_tail.add_argument("--limit", type=_non_negative_int, default=20)
    events_tail.add_argument("--event", metavar="PREFIX", help="Only events whose name starts with PREFIX")
    events_tail.set_defaults(func=_events_cmd)

    help_cmd = sub.add_parser("help", help="Print this help text")
    help_cmd.set_defaults(func=lambda _args: _help(parser))

    return parser


def _help(parser: argparse.ArgumentParser) -> int:
    parser.print_help()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args, unknown = parser.parse_known_args(sys.argv[1:] if argv is None else argv)
    if unknown:
        # options meant for the handler or git land here
        if not args.passthrough:
            parser.error(f"unrecognized arguments: {' '.join(unknown)}")
        args.extra = [*unknown, *args.extra]
    try:
        return _exit_status(args.func(args))
    except HANDLED_ERRORS as exc:
        if not isinstance(exc, SettingsError):
            record_event(
                _settings(),
                "error",
                {"command": args.command or "server", "error": str(exc)},
                level="error",
                status="fail",
            )
        return _error(str(exc))


if __name__ == "__main__":
    sys.exit(main())
