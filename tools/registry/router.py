"""
Registration Router

Decides where a newly created contract's metadata is recorded:

    no registry address yet      ->  skipped (None)
    the registry itself          ->  skipped (None)
    visibility scope given       ->  private store (None)
    otherwise                    ->  registry ``register`` transaction (handle)

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Optional

from tools.registry.address import AddressResolver
from tools.registry.errors import StorageError
from tools.registry.ledger import ContractInterface, LedgerClient, TransactionHandle, load_registry_interface
from tools.registry.models import CodeKind, Record, Visibility, is_registry_name
from tools.registry.observability import RegistryLayer, get_logger
from tools.registry.store import PrivateStore

logger = get_logger("router", RegistryLayer.ROUTER)


class RegistrationRouter:
    """Routes registrations to the public registry or the private store."""

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

    def register(
        self,
        actor: Optional[str],
        contract_id: str,
        name: str,
        interface_description: str,
        source: str,
        code_kind: CodeKind,
        created_at: int,
        visibility_scope: Optional[str] = None,
    ) -> Optional[TransactionHandle]:
        """
        Register a contract's metadata.

        Returns the registry transaction handle for public registrations and
        None otherwise. Confirming the transaction is the caller's job.

        Raises:
            StorageError: the private store could not save the record
            ValueError: the scope is the reserved opaque marker "private"
        """
        registry = self._addresses.current()
        if not registry:
            logger.warning(
                "Not registering contract since registry address is not set",
                operation="register",
                id=contract_id,
                name=name,
            )
            return None

        logger.info("Registering contract", operation="register", id=contract_id, name=name)

        if is_registry_name(name) or contract_id == registry:
            logger.info("Skipping registration for the registry contract", operation="register", id=contract_id)
            return None

        if visibility_scope and visibility_scope.strip():
            return self._register_private(
                actor, contract_id, name, interface_description, source, code_kind, created_at, visibility_scope
            )

        logger.info("Registering in public registry", operation="register", id=contract_id, registry=registry)
        return self._ledger.transact(
            registry,
            self._interface,
            actor,
            "register",
            (contract_id, name, interface_description, source, code_kind.value, created_at),
        )

    def _register_private(
        self,
        actor: Optional[str],
        contract_id: str,
        name: str,
        interface_description: str,
        source: str,
        code_kind: CodeKind,
        created_at: int,
        visibility_scope: str,
    ) -> None:
        logger.info("Registering in private store", operation="register", id=contract_id)
        record = Record(
            address=contract_id,
            name=name,
            interface_description=interface_description,
            source=source,
            code_kind=code_kind,
            created_at=created_at,
            visibility=Visibility.private(visibility_scope),
            owner=actor,
        )
        try:
            self._store.save(record)
        except OSError as e:
            raise StorageError(
                f"error saving private contract to database: {e}",
                operation="register",
                subject=contract_id,
            ) from e
        return None
