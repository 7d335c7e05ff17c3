"""
VaultService — Create, open and save environment vaults.

Provides the entry point used by every use case:
- ``create(env)`` — initialise a new vault with a fresh salt and fingerprint
- ``open(env)`` — resolve passphrase → load → validate → attach
- ``save(vault)`` — persist through the repository

Security Note:
    Never log passphrases or entry values. Only log env names and counts.
"""
import logging
from typing import Optional

from ..exceptions import AlreadyExistsError, LockifyError, ValidationError
from .crypto import EncryptionEngineFactory
from .fingerprint import BcryptFingerprint
from .model import Vault
from .passphrase import PassphraseService
from .ports import VaultRepository

logger = logging.getLogger("lockify.vault")


class VaultService:
    """Opens vaults with a validated passphrase attached."""

    def __init__(
        self,
        repository: VaultRepository,
        passphrases: PassphraseService,
        hasher: BcryptFingerprint,
        engines: EncryptionEngineFactory,
    ):
        self._repository = repository
        self._passphrases = passphrases
        self._hasher = hasher
        self._engines = engines

    @property
    def repository(self) -> VaultRepository:
        return self._repository

    @property
    def passphrases(self) -> PassphraseService:
        return self._passphrases

    def ensure_new(self, env: str) -> None:
        """Raise AlreadyExistsError if ``env`` already has a vault."""
        if not env:
            raise ValidationError("environment cannot be empty", field="env")
        if self._repository.exists(env):
            raise AlreadyExistsError(
                f"vault for environment {env} already exists", env=env,
            )

    def create(self, env: str, passphrase: Optional[str] = None) -> Vault:
        """Create and persist an empty vault for ``env``.

        Args:
            env: Environment name.
            passphrase: Passphrase to protect the vault. Resolved through
                ``PassphraseService.get`` when omitted.

        Returns:
            The new vault, with its passphrase attached.

        Raises:
            AlreadyExistsError: If ``env`` already has a vault.
        """
        self.ensure_new(env)
        if passphrase is None:
            passphrase = self._passphrases.get(env)
        if not passphrase:
            raise ValidationError(
                "passphrase cannot be empty", field="passphrase", env=env,
            )
        salt = self._engines.generate_salt()
        fingerprint = self._hasher.hash(passphrase)
        vault = Vault(env, fingerprint, salt)
        self._repository.save(vault)
        vault.set_passphrase(passphrase)
        logger.info("Initialized vault for env=%s", env)
        return vault

    def open(self, env: str) -> Vault:
        """Load the vault of ``env`` and attach a validated passphrase.

        Raises:
            PromptError, NotFoundError, StorageError, CredentialError:
                with the environment added to the message.
        """
        try:
            passphrase = self._passphrases.get(env)
            vault = self._repository.load(env)
            self._passphrases.validate(vault, passphrase)
        except LockifyError as err:
            raise err.with_context(
                f"failed to open vault for environment {env}", env=env, step="open",
            ) from err
        vault.set_passphrase(passphrase)
        logger.debug("Opened vault env=%s (%d entries)", env, len(vault.entries))
        return vault

    def save(self, vault: Vault) -> None:
        self._repository.save(vault)
