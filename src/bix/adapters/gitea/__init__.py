from bix.adapters.gitea.client import GiteaClient

__all__ = ["GiteaClient"]
