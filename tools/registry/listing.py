"""
Merged Registry Listing

Builds one time-ordered view over the public registry index and the
private store. Each identifier is resolved independently: an entry that
cannot be resolved is logged and reported in ``ListingResult.skipped``
instead of failing the whole listing.

Private records are probed against the ledger. When this node cannot read
the contract, the record is kept but marked opaque (scope ``"private"``).

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from tools.registry.address import AddressResolver
from tools.registry.errors import LedgerError, RegistryError, StorageError
from tools.registry.ledger import ContractInterface, LedgerClient, load_registry_interface
from tools.registry.models import Record
from tools.registry.observability import RegistryLayer, get_logger
from tools.registry.reader import RecordReader
from tools.registry.store import PrivateStore

logger = get_logger("listing", RegistryLayer.LISTING)

NOT_FOUND_REASON = "not found"


@dataclass(frozen=True)
class SkippedEntry:
    """An identifier left out of a listing, with the reason."""
    record_id: str
    reason: str
    error_code: str = ""


@dataclass
class ListingResult:
    """Records of a listing plus the identifiers that were skipped."""
    records: List[Record] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def skipped_ids(self) -> List[str]:
        return [entry.record_id for entry in self.skipped]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [record.to_dict() for record in self.records],
            "skipped": [
                {"id": entry.record_id, "reason": entry.reason, "error_code": entry.error_code}
                for entry in self.skipped
            ],
        }


def _public_ids(result: Optional[Sequence[Any]]) -> List[str]:
    if not result:
        return []
    ids = result[0]
    if ids is None:
        return []
    return [str(item) for item in ids]


class ListMerger:
    """Lists records across the public registry and the private store."""

    def __init__(
        self,
        addresses: AddressResolver,
        ledger: LedgerClient,
        private_store: PrivateStore,
        reader: RecordReader,
        interface: Optional[ContractInterface] = None,
    ):
        self._addresses = addresses
        self._ledger = ledger
        self._store = private_store
        self._reader = reader
        self._interface = interface or load_registry_interface()

    def public_ids(self) -> List[str]:
        registry = self._addresses.current()
        if not registry:
            logger.warning("No registry address; listing private records only", operation="list")
            return []
        return _public_ids(self._ledger.read(registry, self._interface, None, "listAddrs", ()))

    def private_ids(self) -> List[str]:
        try:
            return list(self._store.list_ids())
        except OSError as e:
            raise StorageError(
                f"error listing private contracts: {e}",
                operation="list",
            ) from e

    def collect(self) -> ListingResult:
        """
        Resolve every known identifier.

        Public ids come first, then private ids, without deduplication.
        Raises only when one of the two id sources cannot be enumerated.
        """
        ids = self.public_ids() + self.private_ids()
        result = ListingResult()

        for record_id in ids:
            try:
                record = self._reader.get_by_id(record_id)
            except (RegistryError, OSError) as e:
                error_code = getattr(e, "error_code", "IO_ERROR")
                logger.warning(
                    f"Error loading contract details: {e}",
                    operation="list",
                    error_code=error_code,
                    id=record_id,
                )
                result.skipped.append(SkippedEntry(record_id, str(e), error_code))
                continue

            if record is None:
                logger.info("Contract not registered; skipping", operation="list", id=record_id)
                result.skipped.append(SkippedEntry(record_id, NOT_FOUND_REASON))
                continue

            result.records.append(self._probe_visibility(record))

        result.records.sort(key=lambda r: r.created_at)
        return result

    def list(self) -> List[Record]:
        return self.collect().records

    def _probe_visibility(self, record: Record) -> Record:
        if not record.is_private:
            return record
        try:
            self._ledger.get(record.address)
        except LedgerError:
            logger.info("Contract is private, marking as such", operation="list", id=record.address)
            return record.with_visibility(record.visibility.as_opaque())
        return record
