"""Storage adapters for vault documents and cached passphrases."""

from .file_repository import FileVaultRepository
from .keyring_cache import KeyringCache

__all__ = ["FileVaultRepository", "KeyringCache"]
