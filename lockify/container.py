"""
Composition root — builds every collaborator from one LockifyConfig.

Nothing in the library reaches for module-level singletons; commands and
tests construct a ``Container`` and take the use cases from it. Adapters can
be replaced (e.g. in-memory doubles in tests) through the keyword arguments.
"""
from collections.abc import Mapping
from typing import Optional

from . import app
from .prompt import ClickPrompt
from .storage import FileVaultRepository, KeyringCache
from .vault.config import LockifyConfig
from .vault.crypto import EncryptionEngineFactory
from .vault.fingerprint import BcryptFingerprint
from .vault.key_rotation import PassphraseRotation
from .vault.passphrase import PassphraseService
from .vault.ports import PassphraseCache, Prompt, VaultRepository
from .vault.service import VaultService


class Container:
    """Wires repositories, caches, crypto services and use cases."""

    def __init__(
        self,
        config: Optional[LockifyConfig] = None,
        *,
        repository: Optional[VaultRepository] = None,
        cache: Optional[PassphraseCache] = None,
        prompt: Optional[Prompt] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config = config or LockifyConfig()
        self.repository = repository or FileVaultRepository(self.config)
        self.cache = cache or KeyringCache()
        self.prompt = prompt or ClickPrompt()
        self.hasher = BcryptFingerprint(rounds=self.config.bcrypt_rounds)
        self.engines = EncryptionEngineFactory(self.config.encryption)
        self.passphrases = PassphraseService(
            self.cache,
            self.hasher,
            self.prompt,
            env_var=self.config.passphrase_env,
            service=self.config.keyring_service,
            environ=environ,
        )
        self.vaults = VaultService(
            self.repository, self.passphrases, self.hasher, self.engines,
        )
        self.rotation = PassphraseRotation(
            self.repository, self.passphrases, self.hasher, self.engines,
        )

    def initialize_vault(self) -> app.InitializeVault:
        return app.InitializeVault(self.vaults, self.passphrases, self.prompt)

    def add_entry(self) -> app.AddEntry:
        return app.AddEntry(self.vaults, self.engines)

    def get_entry(self) -> app.GetEntry:
        return app.GetEntry(self.vaults, self.engines)

    def delete_entry(self) -> app.DeleteEntry:
        return app.DeleteEntry(self.vaults)

    def list_entries(self) -> app.ListEntries:
        return app.ListEntries(self.vaults)

    def export_env(self) -> app.ExportEnv:
        return app.ExportEnv(self.vaults, self.engines)

    def import_env(self) -> app.ImportEnv:
        return app.ImportEnv(self.vaults, self.engines)

    def clear_cached_passphrase(self) -> app.ClearCachedPassphrase:
        return app.ClearCachedPassphrase(self.passphrases)

    def clear_all_cached_passphrases(self) -> app.ClearAllCachedPassphrases:
        return app.ClearAllCachedPassphrases(self.passphrases)

    def rotate_passphrase(self) -> app.RotatePassphrase:
        return app.RotatePassphrase(self.rotation, self.passphrases, self.prompt)
