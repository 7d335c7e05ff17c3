"""
Vault entity — one environment's encrypted entries and metadata.

The entity only ever sees ciphertext. Encryption happens in the use-case
layer through ``EncryptionEngine``; the passphrase attached here is an
opaque, transient credential that is never serialized.
"""
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import NotFoundError, ValidationError


def utcnow() -> str:
    """RFC3339 UTC timestamp with microsecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _parse(ts: str) -> Optional[datetime]:
    if not ts:
        return None
    try:
        parsed = datetime.fromisoformat(ts)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Meta(BaseModel):
    env: str
    salt: str
    fingerprint: str

    model_config = {"frozen": True}


class Entry(BaseModel):
    value: str
    created_at: str = ""
    updated_at: str = ""

    model_config = {"frozen": True}


class VaultDocument(BaseModel):
    """Persisted shape of a vault."""

    meta: Meta
    entries: dict[str, Entry] = Field(default_factory=dict)


class Vault:
    """Encrypted secrets of a single environment.

    Invariants enforced here, not by callers:
    - ``meta.env``, ``meta.salt`` and ``meta.fingerprint`` are never empty.
    - Entry keys and encrypted values are never empty.
    - ``created_at`` never changes once set; ``updated_at`` strictly
      increases on every overwrite.
    """

    def __init__(self, env: str, fingerprint: str, salt: str):
        if not env:
            raise ValidationError("environment cannot be empty", field="env")
        if not fingerprint:
            raise ValidationError("fingerprint cannot be empty", field="fingerprint")
        if not salt:
            raise ValidationError("salt cannot be empty", field="salt")
        self.meta = Meta(env=env, salt=salt, fingerprint=fingerprint)
        self.entries: dict[str, Entry] = {}
        self._passphrase: Optional[str] = None
        self._path: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Vault env={self.meta.env!r} entries={len(self.entries)}>"

    @property
    def env(self) -> str:
        return self.meta.env

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def set_entry(self, key: str, encoded_value: str) -> Entry:
        """Add or overwrite an entry.

        Args:
            key: Entry name.
            encoded_value: Base64 ciphertext produced by ``EncryptionEngine``.

        Returns:
            The stored Entry.

        Raises:
            ValidationError: If key or value is empty.
        """
        if not key:
            raise ValidationError("key cannot be empty", field="key")
        if not encoded_value:
            raise ValidationError(
                "encrypted value cannot be empty", field="value", key=key,
            )
        now = utcnow()
        existing = self.entries.get(key)
        if existing is None:
            entry = Entry(value=encoded_value, created_at=now, updated_at="")
        else:
            entry = Entry(
                value=encoded_value,
                created_at=existing.created_at,
                updated_at=self._advance(now, existing),
            )
        self.entries[key] = entry
        return entry

    @staticmethod
    def _advance(now: str, previous: Entry) -> str:
        # wall clocks can repeat or step back; keep updated_at strictly increasing
        last = _parse(previous.updated_at) or _parse(previous.created_at)
        current = _parse(now)
        if last is not None and current is not None and current <= last:
            current = last + timedelta(microseconds=1)
            return current.isoformat(timespec="microseconds")
        return now

    def get_entry(self, key: str) -> Entry:
        """Return the entry stored under ``key``.

        Raises:
            ValidationError: If key is empty.
            NotFoundError: If key is absent.
        """
        if not key:
            raise ValidationError("key cannot be empty", field="key")
        try:
            return self.entries[key]
        except KeyError:
            raise NotFoundError(
                f"key {key!r} not found", key=key, env=self.meta.env,
            ) from None

    def delete_entry(self, key: str) -> None:
        """Remove the entry stored under ``key``.

        Raises:
            NotFoundError: If key is absent.
        """
        if key not in self.entries:
            raise NotFoundError(
                f"key {key!r} not found", key=key, env=self.meta.env,
            )
        del self.entries[key]

    def list_keys(self) -> list[str]:
        return list(self.entries.keys())

    def has_entry(self, key: str) -> bool:
        return key in self.entries

    def rekey(self, salt: str, fingerprint: str, values: dict[str, str]) -> None:
        """Replace salt, fingerprint and every entry value in one step.

        Only the rotation protocol calls this. ``values`` must contain a
        non-empty ciphertext for exactly the current set of keys; nothing is
        changed unless the whole replacement is valid. Timestamps are kept.

        Raises:
            ValidationError: On an empty salt/fingerprint/value or a key set
                that does not match the vault.
        """
        if not salt:
            raise ValidationError("salt cannot be empty", field="salt")
        if not fingerprint:
            raise ValidationError("fingerprint cannot be empty", field="fingerprint")
        if set(values) != set(self.entries):
            raise ValidationError(
                "re-encrypted entries do not match vault entries",
                field="entries", env=self.meta.env,
            )
        for key, value in values.items():
            if not value:
                raise ValidationError(
                    "encrypted value cannot be empty", field="value", key=key,
                )
        self.meta = Meta(env=self.meta.env, salt=salt, fingerprint=fingerprint)
        self.entries = {
            key: entry.model_copy(update={"value": values[key]})
            for key, entry in self.entries.items()
        }

    # ------------------------------------------------------------------
    # Transient state (never serialized)
    # ------------------------------------------------------------------

    @property
    def passphrase(self) -> Optional[str]:
        return self._passphrase

    def set_passphrase(self, passphrase: Optional[str]) -> None:
        self._passphrase = passphrase

    @property
    def path(self) -> Optional[str]:
        return self._path

    def set_path(self, path: Optional[str]) -> None:
        self._path = path

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def copy(self) -> "Vault":
        """Deep copy, including transient fields."""
        return copy.deepcopy(self)

    def to_document(self) -> dict[str, Any]:
        """Return the persisted JSON shape of this vault."""
        return VaultDocument(meta=self.meta, entries=self.entries).model_dump()

    @classmethod
    def from_document(cls, document: Any) -> "Vault":
        """Build a vault from its persisted shape.

        Raises:
            ValidationError: If the document is malformed or violates an
                entity invariant.
        """
        try:
            doc = VaultDocument.model_validate(document)
        except PydanticValidationError as err:
            raise ValidationError(
                f"malformed vault document: {err.error_count()} error(s)",
                field="document",
            ) from err
        vault = cls(doc.meta.env, doc.meta.fingerprint, doc.meta.salt)
        for key, entry in doc.entries.items():
            if not key:
                raise ValidationError(
                    "key cannot be empty", field="key", env=doc.meta.env,
                )
            if not entry.value:
                raise ValidationError(
                    "encrypted value cannot be empty",
                    field="value", key=key, env=doc.meta.env,
                )
            vault.entries[key] = entry
        return vault
