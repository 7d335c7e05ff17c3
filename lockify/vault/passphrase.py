"""
Passphrase lifecycle — resolve, validate and cache vault passphrases.

Resolution order for ``get(env)``:
    1. environment variable override (``LOCKIFY_PASSPHRASE`` by default)
    2. OS passphrase cache, account = environment name
    3. interactive prompt, written back to the cache

Security Note:
    Never log passphrases. A passphrase that fails validation is removed
    from the cache so it is not silently reused on the next call.
"""
import os
import logging
from collections.abc import Mapping
from typing import Optional

from ..exceptions import CacheError, CredentialError, NotFoundError
from .config import DEFAULT_KEYRING_SERVICE, DEFAULT_PASSPHRASE_ENV
from .fingerprint import BcryptFingerprint
from .model import Vault
from .ports import PassphraseCache, Prompt

logger = logging.getLogger("lockify.vault")


class PassphraseService:
    """Resolves and validates the passphrase of an environment."""

    def __init__(
        self,
        cache: PassphraseCache,
        hasher: BcryptFingerprint,
        prompt: Prompt,
        env_var: str = DEFAULT_PASSPHRASE_ENV,
        service: str = DEFAULT_KEYRING_SERVICE,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._cache = cache
        self._hasher = hasher
        self._prompt = prompt
        self.env_var = env_var
        self.service = service
        self._environ = os.environ if environ is None else environ

    def override(self) -> Optional[str]:
        """Return the environment variable override, if set and non-empty."""
        return self._environ.get(self.env_var) or None

    def get(self, env: str) -> str:
        """Return the passphrase for ``env``.

        Raises:
            PromptError: If no override or cached value exists and the
                interactive prompt fails.
        """
        override = self.override()
        if override:
            logger.debug("Using passphrase from $%s for env=%s", self.env_var, env)
            return override

        try:
            cached = self._cache.get(self.service, env)
        except CacheError as err:
            logger.warning("Passphrase cache unavailable for env=%s: %s", env, err)
            cached = None
        if cached:
            logger.debug("Using cached passphrase for env=%s", env)
            return cached

        passphrase = self._prompt.passphrase(f"Enter passphrase for {env}:")
        self.remember(env, passphrase)
        return passphrase

    def remember(self, env: str, passphrase: str) -> None:
        """Cache ``passphrase`` for ``env``; failures are only logged."""
        if not passphrase:
            return
        try:
            self._cache.set(self.service, env, passphrase)
        except CacheError as err:
            logger.warning("Could not cache passphrase for env=%s: %s", env, err)

    def validate(self, vault: Vault, passphrase: str) -> None:
        """Verify ``passphrase`` against the vault fingerprint.

        On mismatch the cached passphrase of the vault's environment is
        cleared before the error is raised.

        Raises:
            CredentialError: If the passphrase does not match.
        """
        env = vault.meta.env
        try:
            self._hasher.verify(vault.meta.fingerprint, passphrase)
        except CredentialError as err:
            try:
                self.clear(env)
            except CacheError as cache_err:
                logger.warning(
                    "Could not clear cached passphrase for env=%s: %s", env, cache_err,
                )
            logger.info("Passphrase rejected for env=%s", env)
            raise err.with_context(
                f"invalid credentials for environment {env}", env=env,
            ) from err

    def clear(self, env: str) -> bool:
        """Remove the cached passphrase of ``env``.

        Returns:
            True if a passphrase was removed, False if none was cached.

        Raises:
            CacheError: If the cache backend fails.
        """
        try:
            self._cache.delete(self.service, env)
        except NotFoundError:
            return False
        logger.debug("Cleared cached passphrase for env=%s", env)
        return True

    def clear_all(self) -> None:
        """Remove every cached passphrase of this service.

        Raises:
            CacheError: If the cache backend fails.
        """
        self._cache.delete_all(self.service)
        logger.debug("Cleared all cached passphrases for service=%s", self.service)
