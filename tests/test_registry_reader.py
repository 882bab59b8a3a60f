"""
Tests for single-record resolution and on-chain result decoding.
"""

import pytest

from tools.registry.errors import CodeKindError, LedgerError, StorageError
from tools.registry.ledger import ZERO_ADDRESS, load_registry_interface
from tools.registry.models import CodeKind, Record, Visibility
from tools.registry.reader import RecordReader, decode_registry_entry


@pytest.fixture
def reader(addresses, ledger, private_store):
    return RecordReader(addresses, ledger, private_store)


def _publish(ledger, registry, contract_id, name="Token", created_at=10, code_kind="solidity"):
    ledger.transact(registry, load_registry_interface(), None, "register",
                    (contract_id, name, "[]", "src", code_kind, created_at))


class TestDecodeRegistryEntry:
    """Tests for decode_registry_entry."""

    def test_decodes_entry(self):
        record = decode_registry_entry(("0xP1", "Token", "[]", "src", "bytecode", 42))

        assert record == Record("0xP1", "Token", "[]", "src", CodeKind.BYTECODE, 42, Visibility.public())

    def test_zero_sentinel(self):
        """An unknown id reads back as the zero address with a zero timestamp."""
        assert decode_registry_entry(("0x00", "", "", "", "solidity", 0), "0xAB") is None

    def test_zero_address_alone(self):
        assert decode_registry_entry((ZERO_ADDRESS, "n", "[]", "s", "solidity", 5)) is None

    def test_zero_timestamp_alone(self):
        assert decode_registry_entry(("0xP1", "n", "[]", "s", "solidity", 0)) is None

    @pytest.mark.parametrize("created_at", [-5, "-5"])
    def test_negative_timestamp(self, created_at):
        assert decode_registry_entry(("0xP1", "n", "[]", "s", "solidity", created_at)) is None

    @pytest.mark.parametrize("result", [
        None,
        (),
        ("0xP1", "Token", "[]", "src", "solidity"),
        ("0xP1", None, "[]", "src", "solidity", 5),
    ])
    def test_incomplete_results(self, result):
        assert decode_registry_entry(result) is None

    def test_unknown_code_kind(self):
        with pytest.raises(CodeKindError):
            decode_registry_entry(("0xP1", "Token", "[]", "src", "wasm", 5), "0xP1")

    def test_sentinel_checked_before_code_kind(self):
        assert decode_registry_entry((ZERO_ADDRESS, "", "", "", "", 0)) is None

    def test_non_integer_timestamp(self):
        with pytest.raises(LedgerError):
            decode_registry_entry(("0xP1", "Token", "[]", "src", "solidity", "yesterday"))


class TestRecordReader:
    """Tests for RecordReader."""

    def test_unknown_id_on_chain_is_empty(self, reader, registry_address):
        assert reader.get_by_id("0xAB") is None

    def test_public_record(self, reader, ledger, registry_address):
        _publish(ledger, registry_address, "0xP1")

        record = reader.get_by_id("0xP1")
        assert record.name == "Token"
        assert record.visibility_scope == ""

    def test_private_record(self, reader, private_store, ledger, registry_address):
        record = Record("0xQ1", "Secret", "[]", "src", CodeKind.SOLIDITY, 7, Visibility.private("g"))
        private_store.save(record)

        assert reader.get_by_id("0xQ1") == record
        assert not any(call[0] == "read" for call in ledger.calls)

    def test_private_shadows_public(self, reader, private_store, ledger, registry_address):
        _publish(ledger, registry_address, "0xDUP", name="Public")
        private_store.save(Record("0xDUP", "Private", "[]", "src", CodeKind.SOLIDITY, 7, Visibility.private("g")))

        assert reader.get_by_id("0xDUP").name == "Private"

    def test_no_registry_address(self, reader, ledger):
        assert reader.get_by_id("0xP1") is None
        assert ledger.calls == []

    def test_ledger_failure_propagates(self, reader, ledger, registry_address):
        ledger.fail_call("getById", "0xP2")
        with pytest.raises(LedgerError):
            reader.get_by_id("0xP2")

    def test_private_store_io_failure(self, addresses, ledger):
        class BrokenStore:
            def get_by_id(self, record_id):
                raise OSError("disk gone")

        reader = RecordReader(addresses, ledger, BrokenStore())
        with pytest.raises(StorageError):
            reader.get_by_id("0xQ1")
