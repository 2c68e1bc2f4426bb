from bix.app.remote.service import (
    AuthService,
    CreatedRepository,
    RemoteRepoService,
    RemoteServiceError,
)

__all__ = ["AuthService", "CreatedRepository", "RemoteRepoService", "RemoteServiceError"]
