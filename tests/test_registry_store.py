"""
Tests for the private record stores.
"""

import json

import pytest

from tools.registry.errors import RecordValidationError, StorageError
from tools.registry.models import CodeKind, Record, Visibility
from tools.registry.store import (
    FilePrivateStore,
    InMemoryPrivateStore,
    validate_record_document,
)


def _private_record(address="0xQ1", group="group-a", created_at=1000) -> Record:
    return Record(
        address=address,
        name="Secret",
        interface_description="[]",
        source="contract Secret {}",
        code_kind=CodeKind.SOLIDITY,
        created_at=created_at,
        visibility=Visibility.private(group),
        owner="0xowner",
    )


class TestRecordSchema:
    """Tests for record document validation."""

    def test_valid_document(self):
        validate_record_document(_private_record().to_document(), "0xQ1")

    def test_missing_fields(self):
        with pytest.raises(RecordValidationError) as exc_info:
            validate_record_document({"address": "0xQ1"}, "0xQ1")

        assert exc_info.value.subject == "0xQ1"
        assert any("name" in e for e in exc_info.value.errors)

    def test_unknown_code_kind(self):
        doc = _private_record().to_document()
        doc["code_kind"] = "wasm"
        with pytest.raises(RecordValidationError):
            validate_record_document(doc)

    def test_negative_timestamp(self):
        doc = _private_record().to_document()
        doc["created_at"] = -1
        with pytest.raises(RecordValidationError):
            validate_record_document(doc)


class TestInMemoryPrivateStore:
    """Tests for InMemoryPrivateStore."""

    def test_save_and_get(self):
        store = InMemoryPrivateStore()
        record = _private_record()
        store.save(record)

        assert store.get_by_id("0xQ1") == record
        assert store.get_by_id("0xmissing") is None
        assert store.list_ids() == ["0xQ1"]
        assert len(store) == 1

    def test_save_replaces(self):
        store = InMemoryPrivateStore()
        store.save(_private_record(group="a"))
        store.save(_private_record(group="b"))

        assert len(store) == 1
        assert store.get_by_id("0xQ1").visibility_scope == "b"


class TestFilePrivateStore:
    """Tests for FilePrivateStore."""

    def test_save_and_get(self, tmp_path):
        store = FilePrivateStore(tmp_path / "private")
        record = _private_record()
        store.save(record)

        assert store.get_by_id("0xQ1") == record
        assert store.get_by_id("0xmissing") is None

    def test_survives_reopen(self, tmp_path):
        FilePrivateStore(tmp_path).save(_private_record())
        assert FilePrivateStore(tmp_path).get_by_id("0xQ1").owner == "0xowner"

    def test_list_ids(self, tmp_path):
        store = FilePrivateStore(tmp_path)
        for address in ("0xQ1", "0xQ2", "id/with/slashes"):
            store.save(_private_record(address=address))

        assert sorted(store.list_ids()) == ["0xQ1", "0xQ2", "id/with/slashes"]

    def test_list_ids_without_directory(self, tmp_path):
        assert FilePrivateStore(tmp_path / "absent").list_ids() == []

    def test_no_temporary_files_left(self, tmp_path):
        store = FilePrivateStore(tmp_path)
        store.save(_private_record())
        assert [p.suffix for p in tmp_path.iterdir()] == [".json"]

    def test_corrupt_document(self, tmp_path):
        store = FilePrivateStore(tmp_path)
        store.save(_private_record())
        path = next(tmp_path.iterdir())
        path.write_text("{not json")

        with pytest.raises(RecordValidationError) as exc_info:
            store.get_by_id("0xQ1")
        assert isinstance(exc_info.value, StorageError)

    def test_invalid_document(self, tmp_path):
        store = FilePrivateStore(tmp_path)
        store.save(_private_record())
        path = next(tmp_path.iterdir())
        doc = json.loads(path.read_text())
        del doc["code_kind"]
        path.write_text(json.dumps(doc))

        assert store.list_ids() == ["0xQ1"]
        with pytest.raises(RecordValidationError):
            store.get_by_id("0xQ1")

    def test_list_ids_does_not_read_documents(self, tmp_path):
        """Enumeration works from file names, even when a document is damaged."""
        store = FilePrivateStore(tmp_path)
        store.save(_private_record(address="0xQ1"))
        store.save(_private_record(address="0xQ2"))
        store._path_for("0xQ1").write_text("{not json")

        assert sorted(store.list_ids()) == ["0xQ1", "0xQ2"]

    def test_unrecognized_files_are_ignored(self, tmp_path):
        store = FilePrivateStore(tmp_path)
        store.save(_private_record())
        (tmp_path / "notes.record.json").write_text("{}")

        assert store.list_ids() == ["0xQ1"]

    def test_unwritable_directory_raises_oserror(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        store = FilePrivateStore(blocker / "private")

        with pytest.raises(OSError):
            store.save(_private_record())
