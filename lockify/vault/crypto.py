"""
Vault Crypto Core — Key derivation and authenticated encryption of entries.

Each vault value is sealed independently:
    Argon2id(passphrase, salt) → AES-GCM → base64([nonce][payload + tag])

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; collision probability negligible under normal usage.
    The derived key is held in a bytearray and zeroed by ``close()``; engines
    are meant to be used as context managers so that wiping happens on every
    exit path. The AES-GCM context keeps its own copy of the key until it is
    released together with the engine.
"""
import os
import base64
import binascii
import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from ..exceptions import (
    ConfigError,
    CryptoError,
    CryptoFailure,
    DecodeError,
    ValidationError,
)
from .config import AUTH_TAG_SIZE, EncryptionConfig

logger = logging.getLogger("lockify.vault")

Buffer = Union[bytes, bytearray, memoryview]


def wipe(*buffers: Optional[bytearray]) -> None:
    """Overwrite mutable buffers with zeros, in place."""
    for buf in buffers:
        if isinstance(buf, bytearray) and buf:
            memoryview(buf)[:] = bytes(len(buf))


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: bytes, salt: bytes, config: EncryptionConfig) -> bytearray:
    """Derive a symmetric key using Argon2id.

    Args:
        passphrase: User passphrase, UTF-8 encoded.
        salt: Raw per-vault salt.
        config: Argon2id cost parameters and key length.

    Returns:
        Derived key as a wipeable bytearray.
    """
    kdf = Argon2id(
        salt=salt,
        length=config.key_length,
        iterations=config.time_cost,
        lanes=config.parallelism,
        memory_cost=config.memory_cost,
    )
    return bytearray(kdf.derive(passphrase))


def generate_salt(size: int = 16) -> str:
    """Generate ``size`` random bytes and return them base64-encoded.

    Raises:
        CryptoError: If the system entropy source fails.
    """
    try:
        raw = os.urandom(size)
    except (OSError, NotImplementedError) as err:
        raise CryptoError(
            f"failed to generate salt: {err}", reason=CryptoFailure.ENTROPY,
        ) from err
    return base64.b64encode(raw).decode("ascii")


# ---------------------------------------------------------------------------
# Encryption engine
# ---------------------------------------------------------------------------

class EncryptionEngine:
    """AES-GCM engine bound to one ``(salt, passphrase)`` pair.

    Usage::

        with EncryptionEngine(vault.meta.salt, passphrase, config) as engine:
            token = engine.encrypt(b"value")
            engine.decrypt(token)
    """

    def __init__(
        self,
        encoded_salt: str,
        passphrase: str,
        config: Optional[EncryptionConfig] = None,
    ):
        self._config = config or EncryptionConfig()
        self._key: Optional[bytearray] = None
        self._aead: Optional[AESGCM] = None
        if not encoded_salt:
            raise ConfigError("salt cannot be empty")
        if not passphrase:
            raise ConfigError("passphrase cannot be empty")
        try:
            salt = base64.b64decode(encoded_salt, validate=True)
        except (binascii.Error, ValueError) as err:
            raise ConfigError(f"invalid salt encoding: {err}") from err
        if len(salt) == 0:
            raise ConfigError("salt cannot be empty")
        secret = bytearray(passphrase.encode("utf-8"))
        try:
            self._key = derive_key(bytes(secret), salt, self._config)
            self._aead = AESGCM(self._key)
        except (ValueError, UnsupportedAlgorithm) as err:
            self.close()
            raise ConfigError(f"key derivation failed: {err}") from err
        finally:
            wipe(secret)

    def __enter__(self) -> "EncryptionEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._aead is None

    @property
    def nonce_size(self) -> int:
        return self._config.nonce_size

    def close(self) -> None:
        """Zero the derived key and release the cipher."""
        wipe(self._key)
        self._key = None
        self._aead = None

    def _cipher(self) -> AESGCM:
        if self._aead is None:
            raise CryptoError(
                "encryption engine is closed", reason=CryptoFailure.ENGINE_CLOSED,
            )
        return self._aead

    def encrypt(self, plaintext: Optional[Buffer]) -> str:
        """Encrypt plaintext and return base64 ``nonce || ciphertext+tag``.

        Raises:
            ValidationError: If plaintext is None or not bytes-like.
            CryptoError: If the nonce cannot be generated.
        """
        if plaintext is None:
            raise ValidationError("plaintext cannot be nil", field="plaintext")
        if isinstance(plaintext, str):
            raise ValidationError("plaintext must be bytes", field="plaintext")
        cipher = self._cipher()
        nonce = sealed = combined = None
        try:
            try:
                nonce = bytearray(os.urandom(self._config.nonce_size))
            except (OSError, NotImplementedError) as err:
                raise CryptoError(
                    f"failed to generate nonce: {err}",
                    reason=CryptoFailure.ENTROPY,
                ) from err
            sealed = bytearray(cipher.encrypt(nonce, bytes(plaintext), None))
            combined = nonce + sealed
            return base64.b64encode(combined).decode("ascii")
        finally:
            wipe(nonce, sealed, combined)

    def decrypt(self, ciphertext: str) -> bytes:
        """Decrypt a value produced by ``encrypt``.

        Raises:
            ValidationError: If ciphertext is empty.
            DecodeError: If ciphertext is not valid base64.
            CryptoError: If it is too short or fails authentication.
        """
        if not ciphertext:
            raise ValidationError("ciphertext cannot be empty", field="ciphertext")
        cipher = self._cipher()
        try:
            raw = bytearray(base64.b64decode(ciphertext, validate=True))
        except (binascii.Error, ValueError) as err:
            raise DecodeError(
                "invalid ciphertext encoding", field="ciphertext",
            ) from err
        nonce_size = self._config.nonce_size
        nonce = body = None
        try:
            min_len = nonce_size + AUTH_TAG_SIZE
            if len(raw) < min_len:
                raise CryptoError(
                    f"ciphertext too short: expected at least {min_len} bytes, "
                    f"got {len(raw)}",
                    reason=CryptoFailure.TOO_SHORT,
                )
            nonce = raw[:nonce_size]
            body = raw[nonce_size:]
            try:
                return cipher.decrypt(nonce, body, None)
            except InvalidTag:
                # tampering and wrong key are reported the same way
                raise CryptoError(
                    "decryption failed: message authentication failed",
                    reason=CryptoFailure.AUTHENTICATION_FAILED,
                ) from None
        finally:
            wipe(raw, nonce, body)


class EncryptionEngineFactory:
    """Creates engines that share one ``EncryptionConfig``."""

    def __init__(self, config: Optional[EncryptionConfig] = None):
        self.config = config or EncryptionConfig()

    def bind(self, encoded_salt: str, passphrase: str) -> EncryptionEngine:
        logger.debug(
            "Deriving key (time_cost=%d, memory_cost=%d KiB, lanes=%d)",
            self.config.time_cost, self.config.memory_cost, self.config.parallelism,
        )
        return EncryptionEngine(encoded_salt, passphrase, self.config)

    def generate_salt(self) -> str:
        return generate_salt(self.config.salt_size)
