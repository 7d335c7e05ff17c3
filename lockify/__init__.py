"""Lockify — passphrase-protected local vaults for environment secrets."""

from .version import __version__
from .container import Container
from .exceptions import (
    LockifyError,
    ValidationError,
    DecodeError,
    NotFoundError,
    AlreadyExistsError,
    CredentialError,
    CryptoError,
    CryptoFailure,
    ConfigError,
    StorageError,
    CacheError,
    PromptError,
)

__all__ = [
    "__version__",
    "Container",
    "LockifyError",
    "ValidationError",
    "DecodeError",
    "NotFoundError",
    "AlreadyExistsError",
    "CredentialError",
    "CryptoError",
    "CryptoFailure",
    "ConfigError",
    "StorageError",
    "CacheError",
    "PromptError",
]
