"""Remote repository description."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RepositorySpec:
    name: str
    default_branch: str
    description: str = ""
    private: bool = False
    org: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "auto_init": False,
            "default_branch": self.default_branch,
            "description": self.description,
            "name": self.name,
            "private": self.private,
            "template": False,
            "trust_model": "default",
        }
