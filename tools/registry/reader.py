"""
Record Reader

Resolves one contract identifier to its Record. The private store is
consulted first and shadows the public registry. On-chain results are
decoded here and nowhere else: the zero-address and zero-timestamp
sentinels become ``None`` at this boundary.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from tools.registry.address import AddressResolver
from tools.registry.errors import LedgerError, StorageError
from tools.registry.ledger import ContractInterface, LedgerClient, load_registry_interface
from tools.registry.models import CodeKind, Record, Visibility, is_zero_address
from tools.registry.observability import RegistryLayer, get_logger
from tools.registry.store import PrivateStore

logger = get_logger("reader", RegistryLayer.READER)

GET_BY_ID_ARITY = 6


def decode_registry_entry(result: Optional[Sequence[Any]], subject: str = "") -> Optional[Record]:
    """
    Decode a ``getById`` result tuple.

    Returns None for a missing, short or incomplete result, and for entries
    whose address is the zero sentinel or whose creation time is not positive.
    Raises CodeKindError for an unrecognized code kind.
    """
    if result is None or len(result) < GET_BY_ID_ARITY:
        return None
    if any(item is None for item in result[:GET_BY_ID_ARITY]):
        return None

    address, name, interface_description, source, code_kind, created_at = result[:GET_BY_ID_ARITY]

    try:
        created_at = int(created_at)
    except (TypeError, ValueError):
        raise LedgerError(
            f"createdDate is not an integer: {created_at!r}",
            operation="getById",
            subject=subject,
        ) from None

    if is_zero_address(str(address)) or created_at <= 0:
        return None

    return Record(
        address=str(address),
        name=str(name),
        interface_description=str(interface_description),
        source=str(source),
        code_kind=CodeKind.decode(code_kind, subject=subject),
        created_at=created_at,
        visibility=Visibility.public(),
    )


class RecordReader:
    """Looks records up in the private store, then in the public registry."""

    def __init__(
        self,
        addresses: AddressResolver,
        ledger: LedgerClient,
        private_store: PrivateStore,
        interface: Optional[ContractInterface] = None,
    ):
        self._addresses = addresses
        self._ledger = ledger
        self._store = private_store
        self._interface = interface or load_registry_interface()

    def get_private(self, record_id: str) -> Optional[Record]:
        try:
            return self._store.get_by_id(record_id)
        except OSError as e:
            raise StorageError(
                f"error reading private contract from database: {e}",
                operation="getById",
                subject=record_id,
            ) from e

    def get_public(self, record_id: str) -> Optional[Record]:
        registry = self._addresses.current()
        if not registry:
            logger.debug("No registry address; skipping public lookup", operation="getById", id=record_id)
            return None

        result = self._ledger.read(registry, self._interface, None, "getById", (record_id,))
        return decode_registry_entry(result, subject=record_id)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        record = self.get_private(record_id)
        if record is not None:
            return record
        return self.get_public(record_id)
