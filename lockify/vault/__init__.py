"""Lockify Vault — Passphrase-protected, per-environment secret storage.

Security Note (Threat Model):
    Entry values are encrypted at rest with AES-256-GCM under a key derived
    from the passphrase and a per-vault salt (Argon2id). Decrypted values and
    the unlocked passphrase exist in process memory for the duration of one
    operation; derived keys are zeroed when their engine is closed.
    A memory dump taken during an operation could still expose them.
    This is an accepted limitation.

Concurrency Note:
    Vault files are not locked across processes. Two mutating invocations on
    the same environment at the same time (e.g. ``rotate-key`` racing a
    ``set``) are not coordinated and the last writer wins.
"""

from .config import EncryptionConfig, LockifyConfig
from .crypto import EncryptionEngine, EncryptionEngineFactory, generate_salt
from .fingerprint import BcryptFingerprint
from .key_rotation import PassphraseRotation
from .model import Entry, Meta, Vault
from .passphrase import PassphraseService
from .ports import PassphraseCache, Prompt, VaultRepository
from .service import VaultService

__all__ = [
    "Vault",
    "Entry",
    "Meta",
    "EncryptionEngine",
    "EncryptionEngineFactory",
    "generate_salt",
    "BcryptFingerprint",
    "PassphraseService",
    "PassphraseRotation",
    "VaultService",
    "VaultRepository",
    "PassphraseCache",
    "Prompt",
    "EncryptionConfig",
    "LockifyConfig",
]
