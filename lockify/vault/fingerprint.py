"""
Passphrase fingerprints — bcrypt hash and verification.

The fingerprint only authenticates a passphrase. It is never used for key
derivation.

bcrypt only looks at the first 72 bytes of its input, while the encryption
key is derived from the whole passphrase. Longer passphrases are therefore
rejected when hashing and never match when verifying.
"""
import logging

import bcrypt

from ..exceptions import CredentialError, CryptoError, CryptoFailure, ValidationError

logger = logging.getLogger("lockify.vault")

BCRYPT_MAX_BYTES = 72


class BcryptFingerprint:
    """Hash and verify passphrases with bcrypt."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    @staticmethod
    def check_length(passphrase: str) -> bytes:
        """Return the UTF-8 bytes of ``passphrase``.

        Raises:
            ValidationError: If they exceed bcrypt's 72-byte limit.
        """
        secret = passphrase.encode("utf-8")
        if len(secret) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                f"passphrase is too long: at most {BCRYPT_MAX_BYTES} bytes "
                f"are allowed, got {len(secret)}",
                field="passphrase",
            )
        return secret

    def hash(self, passphrase: str) -> str:
        """Return a salted bcrypt hash of ``passphrase``.

        Raises:
            ValidationError: If the passphrase is longer than 72 bytes.
            CryptoError: If the hashing backend fails.
        """
        secret = self.check_length(passphrase)
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            hashed = bcrypt.hashpw(secret, salt)
        except (ValueError, TypeError) as err:
            raise CryptoError(
                f"failed to hash the fingerprint: {err}",
                reason=CryptoFailure.HASHING,
            ) from err
        return hashed.decode("utf-8")

    def verify(self, fingerprint: str, passphrase: str) -> None:
        """Check ``passphrase`` against a stored fingerprint.

        ``bcrypt.checkpw`` compares digests in constant time.

        Raises:
            CredentialError: If the passphrase does not match, is longer than
                72 bytes, or the stored fingerprint is not a bcrypt hash.
        """
        secret = passphrase.encode("utf-8")
        if len(secret) > BCRYPT_MAX_BYTES:
            matched = False
        else:
            try:
                matched = bcrypt.checkpw(secret, fingerprint.encode("utf-8"))
            except ValueError:
                logger.warning("Stored fingerprint is not a valid bcrypt hash")
                matched = False
        if not matched:
            raise CredentialError("invalid credentials: passphrase does not match")
