"""
Lockify exceptions.

Every error raised by the library derives from ``LockifyError`` and carries
optional ``env``, ``key`` and ``step`` attributes so callers can report where
a failure happened. Orchestration layers add context with
``err.with_context(...)``, which keeps the concrete exception type so callers
can still branch on it (wrong passphrase vs. corrupted entry vs. disk error).

Security Note:
    Messages must never contain passphrases, derived keys, ciphertext
    or plaintext values. Only env names, key names and step names.
"""
import copy
from enum import Enum
from typing import Optional


class LockifyError(Exception):
    """Base class for all Lockify errors."""

    def __init__(
        self,
        message: str,
        *,
        env: Optional[str] = None,
        key: Optional[str] = None,
        step: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.env = env
        self.key = key
        self.step = step

    def __str__(self) -> str:
        return self.message

    def with_context(
        self,
        message: str,
        *,
        env: Optional[str] = None,
        key: Optional[str] = None,
        step: Optional[str] = None,
    ) -> "LockifyError":
        """Return a copy of this error with ``message`` prefixed.

        The copy has the same type and attributes. Attributes passed here
        only fill in values that are still unset.
        """
        err = copy.copy(self)
        err.message = f"{message}: {self.message}"
        err.args = (err.message,)
        err.env = self.env or env
        err.key = self.key or key
        err.step = self.step or step
        err.__cause__ = self
        return err


class ValidationError(LockifyError):
    """Empty or malformed input."""

    def __init__(self, message: str, *, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


class DecodeError(ValidationError):
    """Input is not valid base64."""


class NotFoundError(LockifyError):
    """A vault or an entry does not exist."""


class AlreadyExistsError(LockifyError):
    """A vault already exists for the environment."""


class CredentialError(LockifyError):
    """The passphrase does not match the vault fingerprint."""


class CryptoFailure(str, Enum):
    TOO_SHORT = "too_short"
    AUTHENTICATION_FAILED = "authentication_failed"
    KEY_DERIVATION = "key_derivation"
    HASHING = "hashing"
    ENTROPY = "entropy"
    ENGINE_CLOSED = "engine_closed"
    ROTATION = "rotation"


class CryptoError(LockifyError):
    """Key derivation, authentication or hashing failure."""

    def __init__(
        self,
        message: str,
        *,
        reason: CryptoFailure = CryptoFailure.AUTHENTICATION_FAILED,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.reason = reason


class ConfigError(LockifyError):
    """Malformed salt or configuration at construction time."""


class StorageError(LockifyError):
    """Vault storage read/write failure."""


class CacheError(StorageError):
    """Passphrase cache backend failure."""


class PromptError(LockifyError):
    """Interactive input could not be read."""
