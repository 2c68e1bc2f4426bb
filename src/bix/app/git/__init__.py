from bix.app.git.service import GitService, GitServiceError

__all__ = ["GitService", "GitServiceError"]
