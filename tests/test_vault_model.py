"""
Tests for the Vault entity.

Covers:
- Construction invariants (env, fingerprint, salt)
- set_entry / get_entry / delete_entry / list_keys
- Timestamp rules on overwrite
- rekey validation
- Document serialization
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from lockify.exceptions import NotFoundError, ValidationError
from lockify.vault.model import Entry, Vault, utcnow

from .conftest import OTHER_SALT, SALT

FINGERPRINT = "$2b$04$abcdefghijklmnopqrstuuM0123456789abcdefghijklmnopqrs"


@pytest.fixture
def vault():
    return Vault("prod", FINGERPRINT, SALT)


class TestConstruction:

    def test_new_vault_is_empty(self, vault):
        """A new vault carries its metadata and no entries."""
        assert vault.meta.env == "prod"
        assert vault.meta.salt == SALT
        assert vault.meta.fingerprint == FINGERPRINT
        assert vault.entries == {}
        assert vault.env == "prod"

    @pytest.mark.parametrize("args,field", [
        (("", FINGERPRINT, SALT), "env"),
        (("prod", "", SALT), "fingerprint"),
        (("prod", FINGERPRINT, ""), "salt"),
    ])
    def test_empty_metadata_names_the_field(self, args, field):
        """Each missing metadata value is reported by name."""
        with pytest.raises(ValidationError) as exc:
            Vault(*args)
        assert exc.value.field == field

    def test_transient_state_starts_unset(self, vault):
        """Passphrase and path are not set until attached."""
        assert vault.passphrase is None
        assert vault.path is None
        vault.set_passphrase("pw")
        vault.set_path("/tmp/prod.vault.enc")
        assert vault.passphrase == "pw"
        assert vault.path == "/tmp/prod.vault.enc"


class TestEntries:

    def test_set_and_get_entry(self, vault):
        """A stored value can be read back unchanged."""
        entry = vault.set_entry("API_KEY", "Y2lwaGVy")
        assert isinstance(entry, Entry)
        assert vault.get_entry("API_KEY").value == "Y2lwaGVy"

    def test_new_entry_timestamps(self, vault):
        """A new entry has created_at set and updated_at empty."""
        entry = vault.set_entry("API_KEY", "Y2lwaGVy")
        assert entry.created_at
        assert entry.updated_at == ""

    def test_overwrite_keeps_created_at(self, vault):
        """Overwriting preserves created_at and sets updated_at."""
        first = vault.set_entry("API_KEY", "djE=")
        second = vault.set_entry("API_KEY", "djI=")
        assert second.created_at == first.created_at
        assert second.updated_at
        assert second.value == "djI="

    def test_updated_at_strictly_increases(self, vault):
        """Rapid overwrites still produce increasing updated_at values."""
        vault.set_entry("API_KEY", "djA=")
        stamps = [vault.set_entry("API_KEY", f"v{i}").updated_at for i in range(20)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_updated_at_advances_past_future_timestamp(self, vault):
        """An entry stamped in the future still moves forward on overwrite."""
        vault.entries["API_KEY"] = Entry(
            value="djA=",
            created_at="2999-01-01T00:00:00.000000+00:00",
        )
        entry = vault.set_entry("API_KEY", "djE=")
        assert entry.created_at == "2999-01-01T00:00:00.000000+00:00"
        assert entry.updated_at == "2999-01-01T00:00:00.000001+00:00"

    def test_empty_key_rejected(self, vault):
        """Empty keys are never stored."""
        with pytest.raises(ValidationError) as exc:
            vault.set_entry("", "djE=")
        assert exc.value.field == "key"
        assert vault.entries == {}

    def test_empty_value_rejected(self, vault):
        """Empty encrypted values are never stored."""
        with pytest.raises(ValidationError) as exc:
            vault.set_entry("API_KEY", "")
        assert exc.value.field == "value"
        assert str(exc.value) == "encrypted value cannot be empty"

    def test_get_missing_key_names_the_key(self, vault):
        """NotFoundError mentions the missing key."""
        with pytest.raises(NotFoundError) as exc:
            vault.get_entry("MISSING")
        assert "MISSING" in str(exc.value)
        assert exc.value.key == "MISSING"
        assert exc.value.env == "prod"

    def test_get_empty_key(self, vault):
        with pytest.raises(ValidationError):
            vault.get_entry("")

    def test_delete_entry(self, vault):
        """Deleted keys are gone; deleting again is NotFound."""
        vault.set_entry("API_KEY", "djE=")
        vault.delete_entry("API_KEY")
        assert not vault.has_entry("API_KEY")
        with pytest.raises(NotFoundError):
            vault.delete_entry("API_KEY")

    def test_returned_entry_is_read_only(self, vault):
        """Entries handed out cannot be emptied behind the vault's back."""
        vault.set_entry("API_KEY", "Y2lwaGVy")
        entry = vault.get_entry("API_KEY")
        with pytest.raises(PydanticValidationError):
            entry.value = ""
        assert vault.get_entry("API_KEY").value == "Y2lwaGVy"

    def test_meta_is_read_only(self, vault):
        with pytest.raises(PydanticValidationError):
            vault.meta.salt = ""
        assert vault.meta.salt == SALT

    def test_list_keys(self, vault):
        vault.set_entry("B", "Yg==")
        vault.set_entry("A", "YQ==")
        assert sorted(vault.list_keys()) == ["A", "B"]


class TestRekey:

    def test_rekey_replaces_values_and_meta(self, vault):
        """rekey swaps salt, fingerprint and values but keeps timestamps."""
        before = vault.set_entry("API_KEY", "b2xk")
        vault.rekey(OTHER_SALT, "new-fingerprint", {"API_KEY": "bmV3"})
        after = vault.get_entry("API_KEY")
        assert vault.meta.salt == OTHER_SALT
        assert vault.meta.fingerprint == "new-fingerprint"
        assert vault.meta.env == "prod"
        assert after.value == "bmV3"
        assert after.created_at == before.created_at
        assert after.updated_at == before.updated_at

    def test_rekey_requires_same_key_set(self, vault):
        """A missing or extra key leaves the vault untouched."""
        vault.set_entry("API_KEY", "b2xk")
        with pytest.raises(ValidationError):
            vault.rekey(OTHER_SALT, "fp", {"OTHER": "bmV3"})
        assert vault.meta.salt == SALT
        assert vault.get_entry("API_KEY").value == "b2xk"

    @pytest.mark.parametrize("salt,fingerprint,value", [
        ("", "fp", "bmV3"),
        (OTHER_SALT, "", "bmV3"),
        (OTHER_SALT, "fp", ""),
    ])
    def test_rekey_rejects_empty_values(self, vault, salt, fingerprint, value):
        vault.set_entry("API_KEY", "b2xk")
        with pytest.raises(ValidationError):
            vault.rekey(salt, fingerprint, {"API_KEY": value})
        assert vault.meta.fingerprint == FINGERPRINT

    def test_copy_is_independent(self, vault):
        """Changing a copy does not touch the original."""
        vault.set_entry("API_KEY", "b2xk")
        vault.set_passphrase("pw")
        clone = vault.copy()
        clone.rekey(OTHER_SALT, "fp", {"API_KEY": "bmV3"})
        assert clone.passphrase == "pw"
        assert vault.meta.salt == SALT
        assert vault.get_entry("API_KEY").value == "b2xk"


class TestDocument:

    def test_document_shape(self, vault):
        """The persisted document has meta and entries sections."""
        vault.set_entry("API_KEY", "Y2lwaGVy")
        vault.set_passphrase("never-serialized")
        doc = vault.to_document()
        assert set(doc) == {"meta", "entries"}
        assert doc["meta"] == {"env": "prod", "salt": SALT, "fingerprint": FINGERPRINT}
        assert set(doc["entries"]["API_KEY"]) == {"value", "created_at", "updated_at"}
        assert "never-serialized" not in str(doc)

    def test_from_document_restores_entries(self, vault):
        vault.set_entry("API_KEY", "Y2lwaGVy")
        restored = Vault.from_document(vault.to_document())
        assert restored.meta == vault.meta
        assert restored.entries == vault.entries
        assert restored.passphrase is None

    def test_missing_entries_section_is_empty(self):
        doc = {"meta": {"env": "dev", "salt": SALT, "fingerprint": FINGERPRINT}}
        assert Vault.from_document(doc).entries == {}

    @pytest.mark.parametrize("document", [
        None,
        [],
        {"entries": {}},
        {"meta": {"env": "dev"}},
        {"meta": {"env": "dev", "salt": SALT, "fingerprint": FINGERPRINT},
         "entries": {"A": {"created_at": "x"}}},
    ])
    def test_malformed_document(self, document):
        """Malformed documents raise ValidationError."""
        with pytest.raises(ValidationError):
            Vault.from_document(document)

    def test_document_with_empty_value(self):
        """An entry with an empty value violates the entity invariant."""
        doc = {
            "meta": {"env": "dev", "salt": SALT, "fingerprint": FINGERPRINT},
            "entries": {"A": {"value": ""}},
        }
        with pytest.raises(ValidationError) as exc:
            Vault.from_document(doc)
        assert exc.value.key == "A"


def test_utcnow_is_utc_with_microseconds():
    stamp = utcnow()
    assert stamp.endswith("+00:00")
    assert "." in stamp
