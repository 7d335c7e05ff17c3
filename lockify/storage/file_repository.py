"""
File Vault Repository — one JSON document per environment.

Layout:
    <vault_dir>/<env><file_suffix>      e.g. .lockify/prod.vault.enc

Writes go to a temporary file in the same directory, which is fsync'ed and
then atomically renamed over the previous document, so a failed save never
leaves a partially written vault behind. Files are owner read/write only.
"""
import os
import re
import logging
import tempfile
from pathlib import Path

import orjson

from ..exceptions import NotFoundError, StorageError, ValidationError
from ..vault.config import LockifyConfig
from ..vault.model import Vault
from ..vault.ports import VaultRepository

logger = logging.getLogger("lockify.storage")

_ENV_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
FILE_MODE = 0o600
DIR_MODE = 0o700


class FileVaultRepository(VaultRepository):
    """Stores vaults as orjson documents on the local filesystem."""

    def __init__(self, config: LockifyConfig):
        self._dir = Path(config.vault_dir)
        self._suffix = config.file_suffix

    def path_for(self, env: str) -> Path:
        """Return the document path for ``env``.

        Raises:
            ValidationError: If ``env`` is empty or not a plain file name.
        """
        if not env:
            raise ValidationError("environment cannot be empty", field="env")
        if not _ENV_PATTERN.match(env) or env in (".", ".."):
            raise ValidationError(
                f"invalid environment name {env!r}: use letters, digits, '.', '_' or '-'",
                field="env",
            )
        return self._dir / f"{env}{self._suffix}"

    def exists(self, env: str) -> bool:
        return self.path_for(env).is_file()

    def load(self, env: str) -> Vault:
        path = self.path_for(env)
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(
                f"vault for environment {env} not found at {path}", env=env,
            ) from None
        except OSError as err:
            raise StorageError(
                f"failed to read vault {path}: {err.strerror or err}", env=env,
            ) from err
        try:
            document = orjson.loads(content)
        except orjson.JSONDecodeError as err:
            raise StorageError(
                f"vault {path} is not valid JSON: {err}", env=env,
            ) from err
        vault = Vault.from_document(document)
        if vault.meta.env != env:
            # saving it back would write to the other environment's file
            raise StorageError(
                f"vault {path} belongs to environment {vault.meta.env}, "
                f"not {env}",
                env=env,
            )
        vault.set_path(str(path))
        logger.debug("Loaded vault env=%s from %s", env, path)
        return vault

    def save(self, vault: Vault) -> None:
        path = self.path_for(vault.meta.env)
        content = orjson.dumps(vault.to_document(), option=orjson.OPT_INDENT_2)
        tmp_name = None
        try:
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            # mkstemp creates the file with FILE_MODE (owner read/write)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as err:
            raise StorageError(
                f"failed to save vault {path}: {err.strerror or err}",
                env=vault.meta.env,
            ) from err
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temporary file %s", tmp_name)
        vault.set_path(str(path))
        logger.debug("Saved vault env=%s to %s", vault.meta.env, path)
