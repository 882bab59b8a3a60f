"""
Registry Deployer

Deploys the bundled registry contract, waits for the deployment to be
mined, and records the new address:

    create(ContractRegistry.sol) -> wait_for(handle) -> persist(address)

Submission and confirmation failures are logged and reported as False.
A failure to record the address after the contract is on-chain raises
AddressPersistenceError so callers can tell it apart from a clean failure.
Deploying twice creates two registries.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Optional

from tools.registry.address import AddressResolver
from tools.registry.errors import LedgerError
from tools.registry.ledger import (
    REGISTRY_SOURCE_FILE,
    ConfirmationWaiter,
    LedgerClient,
    load_registry_source,
)
from tools.registry.models import CodeKind
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("deployer", RegistryLayer.DEPLOY)

DEFAULT_CONFIRMATION_TIMEOUT = 60.0


class RegistryDeployer:
    """Deploys the registry contract and persists its address."""

    def __init__(
        self,
        addresses: AddressResolver,
        ledger: LedgerClient,
        waiter: ConfirmationWaiter,
        confirmation_timeout_seconds: float = DEFAULT_CONFIRMATION_TIMEOUT,
        source: Optional[str] = None,
    ):
        if confirmation_timeout_seconds <= 0:
            raise ValueError("confirmation_timeout_seconds must be positive")
        self._addresses = addresses
        self._ledger = ledger
        self._waiter = waiter
        self._timeout = confirmation_timeout_seconds
        self._source = source

    def deploy(self) -> bool:
        """
        Deploy a new registry.

        Returns:
            True once the registry is mined and its address recorded,
            False if submission or confirmation failed

        Raises:
            AddressPersistenceError: deployed, but the address could not be
                written to local configuration
        """
        try:
            code = self._source if self._source is not None else load_registry_source()
            handle = self._ledger.create(code, CodeKind.SOLIDITY, REGISTRY_SOURCE_FILE)
            logger.info("Registry deployment submitted", operation="deploy", tx_id=handle.tx_id)
            tx = self._waiter.wait_for(handle, self._timeout)
        except (LedgerError, OSError) as e:
            logger.error(
                f"Error deploying registry to chain: {e}",
                error_code=getattr(e, "error_code", "IO_ERROR"),
                exc_info=True,
                operation="deploy",
            )
            return False

        address = tx.contract_address
        if not address:
            logger.error(
                "Deployment confirmed without a contract address",
                error_code="NO_CONTRACT_ADDRESS",
                operation="deploy",
                tx_id=tx.tx_id,
            )
            return False

        logger.info("Registry deployed", operation="deploy", address=address, tx_id=tx.tx_id)
        self._addresses.persist(address)
        return True
