from bix.domain.handlers import (
    MANAGER_COMMANDS,
    Action,
    Fail,
    Handler,
    PackageManager,
    RunManagerCommand,
    RunScript,
    manager_command,
)
from bix.domain.project import ProjectDir, ProjectNotFoundError
from bix.domain.repository import RepositorySpec

__all__ = [
    "Action",
    "Fail",
    "Handler",
    "MANAGER_COMMANDS",
    "PackageManager",
    "ProjectDir",
    "ProjectNotFoundError",
    "RepositorySpec",
    "RunManagerCommand",
    "RunScript",
    "manager_command",
]
