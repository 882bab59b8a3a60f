"""Registry existence probe."""

from __future__ import annotations

from tools.registry.address import AddressResolver
from tools.registry.errors import LedgerError
from tools.registry.ledger import LedgerClient
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("probe", RegistryLayer.PROBE)


class ExistenceProbe:
    """Checks that the resolved registry address holds live contract code."""

    def __init__(self, addresses: AddressResolver, ledger: LedgerClient):
        self._addresses = addresses
        self._ledger = ledger

    def registry_exists(self) -> bool:
        """
        Re-resolve the address, then look for code at it.

        Never raises for a missing registry; failures are logged and
        reported as False.
        """
        address = self._addresses.resolve()
        logger.info("Loaded registry address", operation="registry_exists", address=address)
        if not address:
            logger.warning("Registry address is not set", operation="registry_exists")
            return False

        try:
            self._ledger.get(address)
        except LedgerError as e:
            logger.warning(
                "Registry contract doesn't exist at address",
                operation="registry_exists",
                error_code=e.error_code,
                address=address,
            )
            return False
        return True
