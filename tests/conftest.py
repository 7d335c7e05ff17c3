"""Shared fixtures: in-memory adapters and fast crypto parameters."""
import base64
from typing import Optional

import orjson
import pytest

from lockify.container import Container
from lockify.exceptions import NotFoundError, PromptError
from lockify.vault.config import EncryptionConfig, LockifyConfig
from lockify.vault.crypto import EncryptionEngineFactory
from lockify.vault.fingerprint import BcryptFingerprint
from lockify.vault.key_rotation import PassphraseRotation
from lockify.vault.model import Vault
from lockify.vault.passphrase import PassphraseService
from lockify.vault.ports import PassphraseCache, Prompt, VaultRepository

SALT = base64.b64encode(b"0123456789abcdef").decode("ascii")
OTHER_SALT = base64.b64encode(b"fedcba9876543210").decode("ascii")
SERVICE = "lockify"


# --- Test doubles ---

class MemoryRepository(VaultRepository):
    """Keeps serialized vault documents in a dict."""

    def __init__(self):
        self.documents: dict[str, bytes] = {}
        self.saves = 0
        self.fail_save: Optional[Exception] = None

    def load(self, env: str) -> Vault:
        try:
            raw = self.documents[env]
        except KeyError:
            raise NotFoundError(f"vault for environment {env} not found", env=env) from None
        return Vault.from_document(orjson.loads(raw))

    def save(self, vault: Vault) -> None:
        if self.fail_save is not None:
            raise self.fail_save
        self.documents[vault.meta.env] = orjson.dumps(vault.to_document())
        self.saves += 1

    def exists(self, env: str) -> bool:
        return env in self.documents


class MemoryCache(PassphraseCache):
    """Passphrase cache that records delete calls."""

    def __init__(self):
        self.secrets: dict[tuple[str, str], str] = {}
        self.deleted: list[tuple[str, str]] = []
        self.fail: Optional[Exception] = None

    def set(self, service, account, secret):
        if self.fail is not None:
            raise self.fail
        self.secrets[(service, account)] = secret

    def get(self, service, account):
        if self.fail is not None:
            raise self.fail
        return self.secrets.get((service, account))

    def delete(self, service, account):
        self.deleted.append((service, account))
        if self.fail is not None:
            raise self.fail
        if (service, account) not in self.secrets:
            raise NotFoundError(f"no cached passphrase for {account}", env=account)
        del self.secrets[(service, account)]

    def delete_all(self, service):
        if self.fail is not None:
            raise self.fail
        for item in [k for k in self.secrets if k[0] == service]:
            del self.secrets[item]


class ScriptedPrompt(Prompt):
    """Returns queued answers; fails like a closed stdin when empty."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.messages: list[str] = []

    def passphrase(self, message, confirm=False):
        self.messages.append(message)
        if not self.answers:
            raise PromptError("failed to get passphrase input")
        return self.answers.pop(0)

    def key(self):
        self.messages.append("Enter key")
        if not self.answers:
            raise PromptError("failed to get key input")
        return self.answers.pop(0)

    def value(self, secret=False):
        self.messages.append("Enter secret" if secret else "Enter value")
        if not self.answers:
            raise PromptError("failed to get value input")
        return self.answers.pop(0)


# --- Fixtures ---

@pytest.fixture
def encryption_config():
    """Cheap Argon2id parameters so tests stay fast."""
    return EncryptionConfig(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def config(tmp_path, encryption_config):
    return LockifyConfig(
        vault_dir=str(tmp_path / ".lockify"),
        bcrypt_rounds=4,
        encryption=encryption_config,
    )


@pytest.fixture
def engines(encryption_config):
    return EncryptionEngineFactory(encryption_config)


@pytest.fixture
def hasher():
    return BcryptFingerprint(rounds=4)


@pytest.fixture
def repository():
    return MemoryRepository()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def prompt():
    return ScriptedPrompt()


@pytest.fixture
def environ():
    return {}


@pytest.fixture
def passphrases(cache, hasher, prompt, environ):
    return PassphraseService(cache, hasher, prompt, environ=environ)


@pytest.fixture
def container(config, repository, cache, prompt, environ):
    return Container(
        config, repository=repository, cache=cache, prompt=prompt, environ=environ,
    )


@pytest.fixture
def rotation(repository, passphrases, hasher, engines):
    return PassphraseRotation(repository, passphrases, hasher, engines)


@pytest.fixture
def seed_vault(repository, hasher, engines):
    """Persist a real vault with encrypted entries and return it."""
    def _seed(
        env: str = "prod",
        passphrase: str = "old-pass",
        entries=None,
        store: Optional[VaultRepository] = None,
    ) -> Vault:
        vault = Vault(env, hasher.hash(passphrase), engines.generate_salt())
        with engines.bind(vault.meta.salt, passphrase) as engine:
            for key, value in (entries or {}).items():
                vault.set_entry(key, engine.encrypt(value.encode("utf-8")))
        (store or repository).save(vault)
        return vault
    return _seed
