"""
Contract Registry Service

Facade over the registry components, exposing the operations callers use:

    deploy()            deploy the registry contract and record its address
    update_address()    replace the registry address for this process
    register()          record a new contract's metadata
    get_by_id()         look one record up
    list()              all records, oldest first
    list_detailed()     all records plus the identifiers that were skipped
    registry_exists()   is there live code at the resolved address?
    get_address()       the registry address currently in use

Usage:
    from tools.registry.service import build_service

    service = build_service(config, ledger=client, waiter=waiter)
    if not service.registry_exists():
        service.deploy()
    handle = service.register(actor, addr, "Token", abi, src, CodeKind.SOLIDITY, ts)

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from tools.registry.address import AddressResolver, address_store_from_config
from tools.registry.config import RegistryConfig
from tools.registry.deployer import RegistryDeployer
from tools.registry.ledger import (
    ConfirmationWaiter,
    ContractInterface,
    LedgerClient,
    PollingConfirmationWaiter,
    TransactionHandle,
    load_registry_interface,
)
from tools.registry.listing import ListingResult, ListMerger
from tools.registry.models import CodeKind, Record
from tools.registry.observability import RegistryLayer, configure_logging, get_logger, timed_operation
from tools.registry.probe import ExistenceProbe
from tools.registry.reader import RecordReader
from tools.registry.router import RegistrationRouter
from tools.registry.store import FilePrivateStore, InMemoryPrivateStore, PrivateStore

logger = get_logger("service", RegistryLayer.SERVICE)


class ContractRegistryService:
    """Public entry point of the contract registry."""

    def __init__(
        self,
        addresses: AddressResolver,
        ledger: LedgerClient,
        private_store: PrivateStore,
        waiter: ConfirmationWaiter,
        confirmation_timeout_seconds: float = 60.0,
        interface: Optional[ContractInterface] = None,
    ):
        interface = interface or load_registry_interface()
        self._addresses = addresses
        self.deployer = RegistryDeployer(addresses, ledger, waiter, confirmation_timeout_seconds)
        self.router = RegistrationRouter(addresses, ledger, private_store, interface)
        self.reader = RecordReader(addresses, ledger, private_store, interface)
        self.merger = ListMerger(addresses, ledger, private_store, self.reader, interface)
        self.probe = ExistenceProbe(addresses, ledger)

    @timed_operation(logger, "deploy")
    def deploy(self) -> bool:
        return self.deployer.deploy()

    def update_address(self, address: str) -> None:
        """Use ``address`` for the rest of this process; not persisted."""
        self._addresses.override(address)

    @timed_operation(logger, "register")
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
        return self.router.register(
            actor,
            contract_id,
            name,
            interface_description,
            source,
            code_kind,
            created_at,
            visibility_scope,
        )

    @timed_operation(logger, "get_by_id")
    def get_by_id(self, contract_id: str) -> Optional[Record]:
        return self.reader.get_by_id(contract_id)

    @timed_operation(logger, "list")
    def list(self) -> List[Record]:
        return self.merger.list()

    @timed_operation(logger, "list_detailed")
    def list_detailed(self) -> ListingResult:
        return self.merger.collect()

    def registry_exists(self) -> bool:
        return self.probe.registry_exists()

    def get_address(self) -> str:
        return self._addresses.current()


def private_store_from_config(config: RegistryConfig) -> PrivateStore:
    directory = config.store.private_store_dir.get()
    if directory and directory.strip():
        return FilePrivateStore(directory)
    return InMemoryPrivateStore()


def build_service(
    config: RegistryConfig,
    ledger: LedgerClient,
    waiter: Optional[ConfirmationWaiter] = None,
    private_store: Optional[PrivateStore] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ContractRegistryService:
    """
    Wire a service from configuration.

    The ledger is always injected. Without a waiter, a polling waiter on
    the same ledger is used; without a store, one is chosen from config.
    """
    configure_logging(
        config.observability.log_level.get(),
        config.observability.log_format.get(),
    )
    if waiter is None:
        waiter = PollingConfirmationWaiter(
            ledger,
            poll_interval_seconds=config.deploy.poll_interval_seconds.get(),
        )
    return ContractRegistryService(
        addresses=address_store_from_config(config, environ=environ),
        ledger=ledger,
        private_store=private_store if private_store is not None else private_store_from_config(config),
        waiter=waiter,
        confirmation_timeout_seconds=config.deploy.confirmation_timeout_seconds.get(),
    )
