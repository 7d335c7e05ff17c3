"""
Vault Configuration — Key-derivation parameters and validated settings.

Reads overrides from environment variables:
    LOCKIFY_VAULT_DIR        = directory holding <env>.vault.enc files
    LOCKIFY_PASSPHRASE_ENV   = name of the passphrase override variable
    LOCKIFY_KEYRING_SERVICE  = OS keyring service name
    LOCKIFY_BCRYPT_ROUNDS    = bcrypt work factor for fingerprints
    LOCKIFY_ARGON_TIME       = Argon2id iterations
    LOCKIFY_ARGON_MEMORY     = Argon2id memory cost (KiB)
    LOCKIFY_ARGON_THREADS    = Argon2id lanes

Security Note:
    The Argon2id parameters are not stored in the vault file. Changing them
    without rotating the passphrase makes existing vaults undecryptable.
"""
import os
import logging
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigError

logger = logging.getLogger("lockify.vault")

DEFAULT_PASSPHRASE_ENV = "LOCKIFY_PASSPHRASE"
DEFAULT_KEYRING_SERVICE = "lockify"
DEFAULT_VAULT_DIR = ".lockify"
AUTH_TAG_SIZE = 16  # GCM tag


class EncryptionConfig(BaseModel):
    """Argon2id and AES-GCM parameters."""

    time_cost: int = Field(default=3, ge=1)
    memory_cost: int = Field(default=64 * 1024, ge=8)  # KiB
    parallelism: int = Field(default=4, ge=1, le=255)
    key_length: int = Field(default=32)
    nonce_size: int = Field(default=12, ge=8, le=128)
    salt_size: int = Field(default=16, ge=8, le=64)

    model_config = {"frozen": True}

    @field_validator("key_length")
    @classmethod
    def validate_key_length(cls, v: int) -> int:
        """AES accepts 128, 192 or 256 bit keys."""
        if v not in (16, 24, 32):
            raise ValueError(f"Unsupported key length: {v}")
        return v

    @model_validator(mode="after")
    def validate_memory_cost(self) -> "EncryptionConfig":
        """Argon2 requires at least 8 KiB of memory per lane."""
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError(
                f"memory_cost {self.memory_cost} KiB is below the Argon2 "
                f"minimum of {8 * self.parallelism} KiB for "
                f"{self.parallelism} lane(s)"
            )
        return self


class LockifyConfig(BaseModel):
    """Validated Lockify configuration."""

    vault_dir: str = Field(default=DEFAULT_VAULT_DIR, min_length=1)
    file_suffix: str = Field(default=".vault.enc", min_length=1)
    passphrase_env: str = Field(default=DEFAULT_PASSPHRASE_ENV, min_length=1)
    keyring_service: str = Field(default=DEFAULT_KEYRING_SERVICE, min_length=1)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "LockifyConfig":
        """Create LockifyConfig by loading values from environment.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``).
            overrides: Explicit values that win over the environment.

        Returns:
            Populated LockifyConfig instance.

        Raises:
            ConfigError: If a value is not valid.
        """
        environ = os.environ if environ is None else environ
        values: dict = {}
        for field, var in (
            ("vault_dir", "LOCKIFY_VAULT_DIR"),
            ("passphrase_env", "LOCKIFY_PASSPHRASE_ENV"),
            ("keyring_service", "LOCKIFY_KEYRING_SERVICE"),
            ("bcrypt_rounds", "LOCKIFY_BCRYPT_ROUNDS"),
        ):
            if environ.get(var):
                values[field] = environ[var]
        encryption: dict = {}
        for field, var in (
            ("time_cost", "LOCKIFY_ARGON_TIME"),
            ("memory_cost", "LOCKIFY_ARGON_MEMORY"),
            ("parallelism", "LOCKIFY_ARGON_THREADS"),
        ):
            if environ.get(var):
                encryption[field] = environ[var]
        if encryption:
            values["encryption"] = encryption
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            config = cls(**values)
        except ValidationError as err:
            raise ConfigError(f"Invalid lockify configuration: {err}") from err
        logger.debug(
            "Loaded config: vault_dir=%s passphrase_env=%s service=%s",
            config.vault_dir, config.passphrase_env, config.keyring_service,
        )
        return config
