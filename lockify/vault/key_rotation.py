"""
Vault Passphrase Rotation — Re-encrypt a whole vault under a new passphrase.

Steps (each failure aborts before anything is written):
    1. load        the current vault
    2. verify      the current passphrase (cached value cleared on mismatch)
    3. salt        generate a fresh salt
    4. re-encrypt  every entry into an in-memory copy
    5. fingerprint hash the new passphrase
    6. persist     one save of the whole rekeyed vault
    7. cache       forget the old cached passphrase (best effort)

Security Note:
    Plaintext exists in memory only during re-encryption of each entry and
    is zeroed right after. Never log plaintext or ciphertext values.
    Concurrent rotations of the same environment are not coordinated; the
    last writer wins.
"""
import logging

from ..exceptions import (
    CacheError,
    CryptoError,
    CryptoFailure,
    LockifyError,
    ValidationError,
)
from .crypto import EncryptionEngineFactory, wipe
from .fingerprint import BcryptFingerprint
from .model import Vault
from .passphrase import PassphraseService
from .ports import VaultRepository

logger = logging.getLogger("lockify.vault")


class PassphraseRotation:
    """All-or-nothing migration of a vault to a new passphrase and salt."""

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

    def execute(self, env: str, current_passphrase: str, new_passphrase: str) -> Vault:
        """Rotate the passphrase of ``env``.

        Args:
            env: Environment to rotate.
            current_passphrase: Passphrase the vault is protected with.
            new_passphrase: Passphrase to protect the vault with afterwards.

        Returns:
            The rotated vault, as persisted, with the new passphrase attached.

        Raises:
            ValidationError: If the new passphrase is empty.
            NotFoundError, StorageError: If the vault cannot be loaded/saved.
            CredentialError: If the current passphrase is wrong.
            CryptoError: If salt generation, hashing or any entry fails;
                ``key`` names the entry that could not be migrated.
        """
        if not new_passphrase:
            raise ValidationError(
                "new passphrase cannot be empty", field="new_passphrase", env=env,
            )
        try:
            self._hasher.check_length(new_passphrase)
        except ValidationError as err:
            err.field = "new_passphrase"
            raise err.with_context("rotation aborted", env=env, step="verify") from err
        logger.info("Starting passphrase rotation for env=%s", env)

        try:
            vault = self._repository.load(env)
        except LockifyError as err:
            raise err.with_context(
                f"failed to open vault for environment {env}", env=env, step="load",
            ) from err

        try:
            self._passphrases.validate(vault, current_passphrase)
        except LockifyError as err:
            raise err.with_context("rotation aborted", env=env, step="verify") from err

        try:
            new_salt = self._engines.generate_salt()
        except CryptoError as err:
            raise err.with_context(
                "failed to generate salt", env=env, step="salt",
            ) from err

        values = self._reencrypt(vault, current_passphrase, new_salt, new_passphrase)

        try:
            fingerprint = self._hasher.hash(new_passphrase)
        except CryptoError as err:
            raise err.with_context(
                "failed to hash the fingerprint", env=env, step="fingerprint",
            ) from err

        rotated = vault.copy()
        rotated.rekey(new_salt, fingerprint, values)
        self._repository.save(rotated)
        rotated.set_passphrase(new_passphrase)

        try:
            self._passphrases.clear(env)
        except CacheError as err:
            logger.warning(
                "Rotation of env=%s succeeded but the cached passphrase "
                "could not be cleared: %s", env, err,
            )

        logger.info(
            "Passphrase rotation complete for env=%s: %d entries re-encrypted",
            env, len(values),
        )
        return rotated

    def _reencrypt(
        self,
        vault: Vault,
        current_passphrase: str,
        new_salt: str,
        new_passphrase: str,
    ) -> dict[str, str]:
        env = vault.meta.env
        values: dict[str, str] = {}
        try:
            old_engine = self._engines.bind(vault.meta.salt, current_passphrase)
        except LockifyError as err:
            raise err.with_context(
                "failed to prepare current key", env=env, step="re-encrypt",
            ) from err
        with old_engine:
            try:
                new_engine = self._engines.bind(new_salt, new_passphrase)
            except LockifyError as err:
                raise err.with_context(
                    "failed to prepare new key", env=env, step="re-encrypt",
                ) from err
            with new_engine:
                for key, entry in vault.entries.items():
                    plaintext = None
                    try:
                        try:
                            plaintext = bytearray(old_engine.decrypt(entry.value))
                        except LockifyError as err:
                            raise self._entry_error("decrypt", env, key, err) from err
                        try:
                            values[key] = new_engine.encrypt(plaintext)
                        except LockifyError as err:
                            raise self._entry_error("encrypt", env, key, err) from err
                    finally:
                        wipe(plaintext)
        return values

    @staticmethod
    def _entry_error(action: str, env: str, key: str, err: LockifyError) -> CryptoError:
        logger.error("Rotation aborted for env=%s: cannot %s key=%s", env, action, key)
        return CryptoError(
            f"failed to {action} key {key}: {err}",
            reason=getattr(err, "reason", CryptoFailure.ROTATION),
            env=env,
            key=key,
            step="re-encrypt",
        )
