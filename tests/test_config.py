"""Tests for EncryptionConfig and LockifyConfig."""
import pytest
from pydantic import ValidationError as PydanticValidationError

from lockify.exceptions import ConfigError
from lockify.vault.config import EncryptionConfig, LockifyConfig


class TestEncryptionConfig:

    def test_defaults(self):
        config = EncryptionConfig()
        assert config.key_length == 32
        assert config.nonce_size == 12
        assert config.salt_size == 16
        assert config.memory_cost == 64 * 1024

    @pytest.mark.parametrize("key_length", [16, 24, 32])
    def test_aes_key_lengths(self, key_length):
        assert EncryptionConfig(key_length=key_length).key_length == key_length

    def test_unsupported_key_length(self):
        with pytest.raises(PydanticValidationError):
            EncryptionConfig(key_length=20)

    def test_memory_below_argon_minimum(self):
        """Argon2 needs 8 KiB per lane."""
        with pytest.raises(PydanticValidationError):
            EncryptionConfig(memory_cost=16, parallelism=4)

    def test_frozen(self):
        config = EncryptionConfig()
        with pytest.raises(PydanticValidationError):
            config.time_cost = 1


class TestLockifyConfig:

    def test_defaults(self):
        config = LockifyConfig.from_env(environ={})
        assert config.vault_dir == ".lockify"
        assert config.passphrase_env == "LOCKIFY_PASSPHRASE"
        assert config.keyring_service == "lockify"
        assert config.bcrypt_rounds == 10

    def test_reads_environment(self):
        config = LockifyConfig.from_env(environ={
            "LOCKIFY_VAULT_DIR": "/srv/vaults",
            "LOCKIFY_KEYRING_SERVICE": "lockify-test",
            "LOCKIFY_BCRYPT_ROUNDS": "5",
            "LOCKIFY_ARGON_TIME": "2",
            "LOCKIFY_ARGON_MEMORY": "2048",
            "LOCKIFY_ARGON_THREADS": "2",
        })
        assert config.vault_dir == "/srv/vaults"
        assert config.keyring_service == "lockify-test"
        assert config.bcrypt_rounds == 5
        assert config.encryption.time_cost == 2
        assert config.encryption.memory_cost == 2048
        assert config.encryption.parallelism == 2

    def test_overrides_win(self):
        config = LockifyConfig.from_env(
            environ={"LOCKIFY_VAULT_DIR": "/srv/vaults"},
            vault_dir="/tmp/other",
            passphrase_env=None,
        )
        assert config.vault_dir == "/tmp/other"
        assert config.passphrase_env == "LOCKIFY_PASSPHRASE"

    @pytest.mark.parametrize("var,value", [
        ("LOCKIFY_BCRYPT_ROUNDS", "two"),
        ("LOCKIFY_BCRYPT_ROUNDS", "3"),
        ("LOCKIFY_ARGON_THREADS", "0"),
    ])
    def test_invalid_values(self, var, value):
        with pytest.raises(ConfigError):
            LockifyConfig.from_env(environ={var: value})
