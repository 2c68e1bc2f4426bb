from bix.adapters.secrets.secret_tool import SecretToolStore

__all__ = ["SecretToolStore"]
