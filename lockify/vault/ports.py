"""Vault Ports (Interfaces) for storage, passphrase cache and prompting."""
from abc import ABC, abstractmethod
from typing import Optional

from .model import Vault


class VaultRepository(ABC):
    """Abstract Port for vault persistence."""

    @abstractmethod
    def load(self, env: str) -> Vault:
        """Load the vault of ``env``. Raises NotFoundError or StorageError."""
        ...

    @abstractmethod
    def save(self, vault: Vault) -> None:
        """Persist the whole vault in a single write. Raises StorageError."""
        ...

    @abstractmethod
    def exists(self, env: str) -> bool:
        """Return True if a vault is stored for ``env``."""
        ...


class PassphraseCache(ABC):
    """Abstract Port for a secret cache keyed by (service, account)."""

    @abstractmethod
    def set(self, service: str, account: str, secret: str) -> None:
        ...

    @abstractmethod
    def get(self, service: str, account: str) -> Optional[str]:
        """Return the cached secret, or None if nothing is cached."""
        ...

    @abstractmethod
    def delete(self, service: str, account: str) -> None:
        """Remove one secret. Raises NotFoundError if nothing is cached."""
        ...

    @abstractmethod
    def delete_all(self, service: str) -> None:
        """Remove every secret cached for ``service``."""
        ...


class Prompt(ABC):
    """Abstract Port for interactive input."""

    @abstractmethod
    def passphrase(self, message: str, confirm: bool = False) -> str:
        """Read a passphrase without echo. Raises PromptError."""
        ...

    @abstractmethod
    def key(self) -> str:
        """Read an entry key. Raises PromptError."""
        ...

    @abstractmethod
    def value(self, secret: bool = False) -> str:
        """Read an entry value, hidden if ``secret``. Raises PromptError."""
        ...

    def key_value(self, secret: bool = False) -> tuple[str, str]:
        """Read an entry key and its value. Raises PromptError."""
        return self.key(), self.value(secret)
