"""
Lockify use cases.

Each use case opens the vault through ``VaultService`` (resolve passphrase →
load → validate), works on entries with an engine bound to the vault's salt
and passphrase, and saves at most once.

Security Note:
    Never log entry values. Only log env names, key names and counts.
"""
import logging
from typing import IO, Optional

from .exceptions import LockifyError, ValidationError
from .formats import FileFormat, parse, render
from .vault.crypto import EncryptionEngineFactory
from .vault.key_rotation import PassphraseRotation
from .vault.model import Entry, Vault
from .vault.passphrase import PassphraseService
from .vault.ports import Prompt
from .vault.service import VaultService

logger = logging.getLogger("lockify.app")


def _require_key(key: str) -> None:
    if not key:
        raise ValidationError("key cannot be empty", field="key")


class InitializeVault:
    """Create a new vault for an environment."""

    def __init__(
        self,
        vaults: VaultService,
        passphrases: PassphraseService,
        prompt: Prompt,
    ):
        self._vaults = vaults
        self._passphrases = passphrases
        self._prompt = prompt

    def execute(self, env: str, passphrase: Optional[str] = None) -> Vault:
        """Create the vault of ``env``.

        The passphrase comes from the argument, the environment variable
        override, or a confirmed prompt (never from the cache, which may hold
        a value for a vault that was deleted). A prompted passphrase is
        cached after the vault is written.
        """
        self._vaults.ensure_new(env)
        if passphrase is None:
            passphrase = self._passphrases.override()
        prompted = passphrase is None
        if prompted:
            passphrase = self._prompt.passphrase(
                f"Choose a passphrase for {env}:", confirm=True,
            )
        vault = self._vaults.create(env, passphrase)
        if prompted:
            self._passphrases.remember(env, passphrase)
        return vault


class AddEntry:
    """Encrypt a value and store it under a key."""

    def __init__(self, vaults: VaultService, engines: EncryptionEngineFactory):
        self._vaults = vaults
        self._engines = engines

    def execute(self, env: str, key: str, value: str) -> Entry:
        _require_key(key)
        vault = self._vaults.open(env)
        with self._engines.bind(vault.meta.salt, vault.passphrase) as engine:
            token = engine.encrypt(value.encode("utf-8"))
        try:
            entry = vault.set_entry(key, token)
        except LockifyError as err:
            raise err.with_context("failed to set entry", env=env, key=key) from err
        self._vaults.save(vault)
        logger.info("Stored key=%s in env=%s", key, env)
        return entry


class GetEntry:
    """Decrypt the value stored under a key."""

    def __init__(self, vaults: VaultService, engines: EncryptionEngineFactory):
        self._vaults = vaults
        self._engines = engines

    def execute(self, env: str, key: str) -> str:
        _require_key(key)
        vault = self._vaults.open(env)
        entry = vault.get_entry(key)
        with self._engines.bind(vault.meta.salt, vault.passphrase) as engine:
            try:
                value = engine.decrypt(entry.value)
            except LockifyError as err:
                raise err.with_context(
                    f"failed to decrypt key {key}", env=env, key=key,
                ) from err
        return value.decode("utf-8")


class DeleteEntry:
    """Remove a key from a vault."""

    def __init__(self, vaults: VaultService):
        self._vaults = vaults

    def execute(self, env: str, key: str) -> None:
        _require_key(key)
        vault = self._vaults.open(env)
        try:
            vault.delete_entry(key)
        except LockifyError as err:
            raise err.with_context(f"failed to delete key {key}", env=env) from err
        self._vaults.save(vault)
        logger.info("Deleted key=%s from env=%s", key, env)


class ListEntries:
    """List the keys of a vault."""

    def __init__(self, vaults: VaultService):
        self._vaults = vaults

    def execute(self, env: str) -> list[str]:
        vault = self._vaults.open(env)
        return sorted(vault.list_keys())


class ExportEnv:
    """Decrypt every entry and render them as JSON or dotenv."""

    def __init__(self, vaults: VaultService, engines: EncryptionEngineFactory):
        self._vaults = vaults
        self._engines = engines

    def decrypted(self, env: str) -> dict[str, str]:
        vault = self._vaults.open(env)
        entries: dict[str, str] = {}
        with self._engines.bind(vault.meta.salt, vault.passphrase) as engine:
            for key, entry in vault.entries.items():
                try:
                    entries[key] = engine.decrypt(entry.value).decode("utf-8")
                except LockifyError as err:
                    raise err.with_context(
                        f"failed to decrypt key {key}", env=env, key=key,
                    ) from err
        return entries

    def execute(self, env: str, fmt: FileFormat = FileFormat.DOTENV) -> str:
        fmt = FileFormat.parse(fmt)
        entries = self.decrypted(env)
        logger.info("Exported %d entries from env=%s as %s", len(entries), env, fmt.value)
        return render(entries, fmt)


class ImportEnv:
    """Encrypt and store entries read from a JSON or dotenv stream."""

    def __init__(self, vaults: VaultService, engines: EncryptionEngineFactory):
        self._vaults = vaults
        self._engines = engines

    def execute(
        self,
        env: str,
        fmt: FileFormat,
        stream: IO,
        overwrite: bool = False,
    ) -> tuple[int, int]:
        """Import entries into ``env``.

        Returns:
            Tuple of (imported, skipped). Existing keys are skipped unless
            ``overwrite`` is set.
        """
        fmt = FileFormat.parse(fmt)
        try:
            entries = parse(stream, fmt)
        except LockifyError as err:
            raise err.with_context(f"failed to parse {fmt.value} input", env=env) from err
        for key in entries:
            _require_key(key)

        vault = self._vaults.open(env)
        imported = skipped = 0
        with self._engines.bind(vault.meta.salt, vault.passphrase) as engine:
            for key, value in entries.items():
                if vault.has_entry(key) and not overwrite:
                    logger.debug("Skipping existing key=%s in env=%s", key, env)
                    skipped += 1
                    continue
                vault.set_entry(key, engine.encrypt(value.encode("utf-8")))
                imported += 1
        if imported:
            self._vaults.save(vault)
        logger.info(
            "Imported %d entries into env=%s (%d skipped)", imported, env, skipped,
        )
        return imported, skipped


class ClearCachedPassphrase:
    """Forget the cached passphrase of one environment."""

    def __init__(self, passphrases: PassphraseService):
        self._passphrases = passphrases

    def execute(self, env: str) -> bool:
        return self._passphrases.clear(env)


class ClearAllCachedPassphrases:
    """Forget every cached passphrase."""

    def __init__(self, passphrases: PassphraseService):
        self._passphrases = passphrases

    def execute(self) -> None:
        self._passphrases.clear_all()


class RotatePassphrase:
    """Re-encrypt a vault under a new passphrase."""

    def __init__(
        self,
        rotation: PassphraseRotation,
        passphrases: PassphraseService,
        prompt: Prompt,
    ):
        self._rotation = rotation
        self._passphrases = passphrases
        self._prompt = prompt

    def execute(
        self,
        env: str,
        current_passphrase: Optional[str] = None,
        new_passphrase: Optional[str] = None,
    ) -> Vault:
        if current_passphrase is None:
            current_passphrase = self._passphrases.get(env)
        if new_passphrase is None:
            new_passphrase = self._prompt.passphrase(
                f"Enter new passphrase for {env}:", confirm=True,
            )
        return self._rotation.execute(env, current_passphrase, new_passphrase)
