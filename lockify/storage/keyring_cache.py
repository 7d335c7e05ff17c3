"""
Keyring passphrase cache — stores passphrases in the OS credential store.

``keyring`` cannot enumerate the accounts of a service, so the cache keeps
an index of the accounts it wrote under a reserved account name. The index
lets ``delete_all`` remove every cached passphrase of a service.
"""
import logging
from typing import Optional

import keyring
import orjson
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from ..exceptions import CacheError, NotFoundError
from ..vault.ports import PassphraseCache

logger = logging.getLogger("lockify.storage")

INDEX_ACCOUNT = "__accounts__"


class KeyringCache(PassphraseCache):
    """PassphraseCache backed by ``keyring``."""

    def __init__(self, backend: Optional[KeyringBackend] = None):
        self._backend = backend

    @property
    def backend(self) -> KeyringBackend:
        return self._backend or keyring.get_keyring()

    def set(self, service: str, account: str, secret: str) -> None:
        try:
            self.backend.set_password(service, account, secret)
            self._index_add(service, account)
        except KeyringError as err:
            raise CacheError(
                f"failed to cache passphrase for {account}: {err}", env=account,
            ) from err

    def get(self, service: str, account: str) -> Optional[str]:
        try:
            return self.backend.get_password(service, account)
        except KeyringError as err:
            raise CacheError(
                f"failed to read cached passphrase for {account}: {err}", env=account,
            ) from err

    def delete(self, service: str, account: str) -> None:
        try:
            self.backend.delete_password(service, account)
        except PasswordDeleteError:
            raise NotFoundError(
                f"no cached passphrase for {account}", env=account,
            ) from None
        except KeyringError as err:
            raise CacheError(
                f"failed to delete cached passphrase for {account}: {err}",
                env=account,
            ) from err
        try:
            self._index_remove(service, account)
        except KeyringError as err:
            logger.debug("Could not update keyring index for %s: %s", service, err)

    def delete_all(self, service: str) -> None:
        try:
            accounts = self._index(service)
            for account in accounts:
                try:
                    self.backend.delete_password(service, account)
                except PasswordDeleteError:
                    logger.debug("Account %s already removed from %s", account, service)
            self._write_index(service, [])
        except KeyringError as err:
            raise CacheError(
                f"failed to clear cached passphrases for {service}: {err}",
            ) from err
        logger.debug("Removed %d cached passphrase(s) for %s", len(accounts), service)

    # ------------------------------------------------------------------
    # Account index
    # ------------------------------------------------------------------

    def _index(self, service: str) -> list[str]:
        raw = self.backend.get_password(service, INDEX_ACCOUNT)
        if not raw:
            return []
        try:
            accounts = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("Ignoring corrupt keyring index for %s", service)
            return []
        return [a for a in accounts if isinstance(a, str)]

    def _write_index(self, service: str, accounts: list[str]) -> None:
        if accounts:
            self.backend.set_password(
                service, INDEX_ACCOUNT, orjson.dumps(sorted(accounts)).decode("utf-8"),
            )
        else:
            try:
                self.backend.delete_password(service, INDEX_ACCOUNT)
            except PasswordDeleteError:
                pass

    def _index_add(self, service: str, account: str) -> None:
        accounts = self._index(service)
        if account not in accounts:
            self._write_index(service, accounts + [account])

    def _index_remove(self, service: str, account: str) -> None:
        accounts = self._index(service)
        if account in accounts:
            accounts.remove(account)
            self._write_index(service, accounts)
