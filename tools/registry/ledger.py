"""
Contract Registry Ledger Collaborators

Interfaces of the ledger services the registry consumes, plus in-memory
reference implementations used by tests and local development.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REGISTRY COMPONENTS                               │
    │  Deployer, Router, Reader, Listing, Probe                            │
    └──────────────┬──────────────────────────────────┬───────────────────┘
                   │                                  │
                   ▼                                  ▼
    ┌─────────────────────────────┐    ┌─────────────────────────────────┐
    │  LedgerClient               │    │  ConfirmationWaiter             │
    │  create / transact / read   │    │  wait_for(handle, timeout)      │
    │  get / get_receipt          │    │  PollingConfirmationWaiter      │
    └─────────────────────────────┘    └─────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
import secrets
import threading
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from jsonschema import Draft202012Validator

from tools.registry.core import now_millis, read_contract_file
from tools.registry.errors import (
    ConfirmationInterrupted,
    ConfirmationTimeout,
    ContractNotFoundError,
    LedgerError,
)
from tools.registry.models import CodeKind, REGISTRY_CONTRACT_NAME
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("ledger", RegistryLayer.LEDGER)

REGISTRY_SOURCE_FILE = "ContractRegistry.sol"
REGISTRY_INTERFACE_FILE = "ContractRegistry.abi.json"
ZERO_ADDRESS = "0x" + "00" * 20


# =============================================================================
# TRANSACTIONS
# =============================================================================

@dataclass(frozen=True)
class TransactionHandle:
    """Receipt of a submitted, not yet confirmed, transaction."""
    tx_id: str
    submitted_at: int = field(default_factory=now_millis)


@dataclass(frozen=True)
class ConfirmedTransaction:
    """A mined transaction."""
    tx_id: str
    contract_address: Optional[str] = None
    block_number: int = 0
    status: str = "success"


@dataclass(frozen=True)
class ContractInfo:
    """Code found at an address."""
    address: str
    code: str
    code_kind: CodeKind = CodeKind.BYTECODE
    name: str = ""


# =============================================================================
# CONTRACT INTERFACE
# =============================================================================

INTERFACE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["type"],
        "properties": {
            "type": {"enum": ["function", "constructor", "event", "fallback", "receive", "error"]},
            "name": {"type": "string"},
            "constant": {"type": "boolean"},
            "inputs": {"type": "array", "items": {"$ref": "#/$defs/param"}},
            "outputs": {"type": "array", "items": {"$ref": "#/$defs/param"}},
        },
    },
    "$defs": {
        "param": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "name": {"type": "string"},
                "type": {"type": "string"},
            },
        },
    },
}

_interface_validator = Draft202012Validator(INTERFACE_SCHEMA)


@dataclass(frozen=True)
class ContractInterface:
    """Parsed interface description (ABI) of a contract."""
    entries: Tuple[Dict[str, Any], ...]

    @classmethod
    def from_json(cls, text: str) -> "ContractInterface":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LedgerError(f"interface description is not JSON: {e}", operation="interface") from e

        errors = [f"{error.json_path}: {error.message}" for error in _interface_validator.iter_errors(data)]
        if errors:
            raise LedgerError("; ".join(errors), operation="interface")
        return cls(tuple(data))

    def to_json(self) -> str:
        return json.dumps(list(self.entries), separators=(",", ":"))

    def function(self, name: str) -> Optional[Dict[str, Any]]:
        for entry in self.entries:
            if entry.get("type") == "function" and entry.get("name") == name:
                return entry
        return None

    def has_function(self, name: str) -> bool:
        return self.function(name) is not None

    def output_arity(self, name: str) -> int:
        fn = self.function(name)
        return len(fn.get("outputs", [])) if fn else 0


@lru_cache(maxsize=1)
def load_registry_interface() -> ContractInterface:
    """Interface of the bundled registry contract, parsed once."""
    return ContractInterface.from_json(read_contract_file(REGISTRY_INTERFACE_FILE))


def load_registry_source() -> str:
    """Source of the bundled registry contract."""
    return read_contract_file(REGISTRY_SOURCE_FILE)


# =============================================================================
# COLLABORATOR INTERFACES
# =============================================================================

class LedgerClient(Protocol):
    """
    Protocol for the ledger execution and read service.

    Implementations raise LedgerError for failed calls and
    ContractNotFoundError from ``get`` when no code is readable at an address.
    """

    def create(
        self,
        code: str,
        code_kind: CodeKind = CodeKind.SOLIDITY,
        filename: Optional[str] = None,
    ) -> TransactionHandle:
        """Submit a contract for deployment."""
        ...

    def transact(
        self,
        address: str,
        interface: ContractInterface,
        actor: Optional[str],
        method: str,
        args: Sequence[Any],
    ) -> TransactionHandle:
        """Submit a state-changing contract call."""
        ...

    def read(
        self,
        address: str,
        interface: ContractInterface,
        actor: Optional[str],
        method: str,
        args: Sequence[Any],
    ) -> Optional[Sequence[Any]]:
        """Execute a read-only contract call and return its result tuple."""
        ...

    def get(self, address: str) -> ContractInfo:
        """Return the contract at ``address``."""
        ...

    def get_receipt(self, handle: TransactionHandle) -> Optional[ConfirmedTransaction]:
        """Return the mined transaction, or None while it is pending."""
        ...


class ConfirmationWaiter(Protocol):
    """Blocks until a submitted transaction is mined."""

    def wait_for(self, handle: TransactionHandle, timeout_seconds: float) -> ConfirmedTransaction:
        ...


# =============================================================================
# POLLING CONFIRMATION WAITER
# =============================================================================

class PollingConfirmationWaiter:
    """
    Polls the ledger for a receipt until it appears or the timeout elapses.

    Sleeps on an Event so ``cancel()`` from another thread interrupts the
    wait immediately. A cancelled waiter stays cancelled until ``reset()``.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        poll_interval_seconds: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
    ):
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self._ledger = ledger
        self._poll_interval = poll_interval_seconds
        self._clock = clock
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    def wait_for(self, handle: TransactionHandle, timeout_seconds: float) -> ConfirmedTransaction:
        deadline = self._clock() + timeout_seconds
        polls = 0

        while True:
            if self._cancelled.is_set():
                raise ConfirmationInterrupted("confirmation wait cancelled", tx_id=handle.tx_id)

            receipt = self._ledger.get_receipt(handle)
            polls += 1
            if receipt is not None:
                logger.debug("Transaction confirmed", operation="wait_for", tx_id=handle.tx_id, polls=polls)
                return receipt

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise ConfirmationTimeout(
                    f"transaction not mined within {timeout_seconds}s",
                    tx_id=handle.tx_id,
                )

            if self._cancelled.wait(min(self._poll_interval, remaining)):
                raise ConfirmationInterrupted("confirmation wait cancelled", tx_id=handle.tx_id)


# =============================================================================
# IN-MEMORY LEDGER
# =============================================================================

@dataclass
class _RegistryState:
    entries: Dict[str, Tuple[str, str, str, str, str, int]] = field(default_factory=dict)
    index: List[str] = field(default_factory=list)


@dataclass
class _Deployed:
    info: ContractInfo
    registry: Optional[_RegistryState] = None


class InMemoryLedger:
    """
    In-memory ledger for testing.

    Simulates deployments, the registry contract's ``register``,
    ``getById`` and ``listAddrs`` entry points, and mining. With
    ``auto_mine=False`` receipts are withheld until ``mine()`` is called.
    """

    def __init__(self, auto_mine: bool = True):
        self._lock = threading.RLock()
        self._contracts: Dict[str, _Deployed] = {}
        self._pending: Dict[str, ConfirmedTransaction] = {}
        self._receipts: Dict[str, ConfirmedTransaction] = {}
        self._restricted: set = set()
        self._failures: Dict[Tuple[str, Tuple[Any, ...]], str] = {}
        self._block_number = 1000000
        self.auto_mine = auto_mine
        self.calls: List[Tuple[str, str, Tuple[Any, ...]]] = []

    # -- test controls -------------------------------------------------------

    def deploy_contract(
        self,
        code: str,
        code_kind: CodeKind = CodeKind.BYTECODE,
        name: str = "",
        address: Optional[str] = None,
    ) -> str:
        """Place a contract on the ledger directly, without a transaction."""
        address = address or "0x" + secrets.token_hex(20)
        is_registry = name.rsplit(":", 1)[-1] == REGISTRY_CONTRACT_NAME or (
            f"contract {REGISTRY_CONTRACT_NAME}" in code
        )
        with self._lock:
            self._contracts[address] = _Deployed(
                info=ContractInfo(address=address, code=code, code_kind=code_kind, name=name),
                registry=_RegistryState() if is_registry else None,
            )
        return address

    def restrict(self, address: str) -> None:
        """Make ``get`` fail for ``address``, as for a contract this node cannot read."""
        with self._lock:
            self._restricted.add(address)

    def fail_call(self, method: str, *args: Any, message: str = "simulated ledger failure") -> None:
        """Make calls of ``method`` with exactly ``args`` raise LedgerError."""
        with self._lock:
            self._failures[(method, tuple(args))] = message

    def mine(self) -> int:
        """Mine all pending transactions, returning how many were mined."""
        with self._lock:
            mined = len(self._pending)
            self._receipts.update(self._pending)
            self._pending.clear()
            return mined

    # -- LedgerClient --------------------------------------------------------

    def _submit(self, contract_address: Optional[str] = None) -> TransactionHandle:
        tx_id = "0x" + secrets.token_hex(32)
        self._block_number += 1
        receipt = ConfirmedTransaction(
            tx_id=tx_id,
            contract_address=contract_address,
            block_number=self._block_number,
        )
        if self.auto_mine:
            self._receipts[tx_id] = receipt
        else:
            self._pending[tx_id] = receipt
        return TransactionHandle(tx_id=tx_id)

    def _check_failure(self, method: str, args: Sequence[Any]) -> None:
        message = self._failures.get((method, tuple(args)))
        if message is not None:
            raise LedgerError(message, operation=method, subject=", ".join(str(a) for a in args))

    def _registry(self, address: str, method: str) -> _RegistryState:
        deployed = self._contracts.get(address)
        if deployed is None:
            raise LedgerError("no contract at address", operation=method, subject=address)
        if deployed.registry is None:
            raise LedgerError("contract does not implement the registry interface", operation=method, subject=address)
        return deployed.registry

    def create(
        self,
        code: str,
        code_kind: CodeKind = CodeKind.SOLIDITY,
        filename: Optional[str] = None,
    ) -> TransactionHandle:
        with self._lock:
            self.calls.append(("create", "", (filename,)))
            self._check_failure("create", (filename,))
            name = (filename or "").rsplit(".", 1)[0]
            address = self.deploy_contract(code, code_kind=code_kind, name=name)
            return self._submit(contract_address=address)

    def transact(
        self,
        address: str,
        interface: ContractInterface,
        actor: Optional[str],
        method: str,
        args: Sequence[Any],
    ) -> TransactionHandle:
        with self._lock:
            self.calls.append(("transact", address, (method, *args)))
            self._check_failure(method, args)
            if not interface.has_function(method):
                raise LedgerError("method not in interface", operation=method, subject=address)
            registry = self._registry(address, method)

            if method != "register":
                raise LedgerError("unsupported method", operation=method, subject=address)
            addr, name, abi, code, code_kind, created_at = args
            if addr not in registry.entries:
                registry.index.append(addr)
            registry.entries[addr] = (addr, name, abi, code, code_kind, int(created_at))
            return self._submit()

    def read(
        self,
        address: str,
        interface: ContractInterface,
        actor: Optional[str],
        method: str,
        args: Sequence[Any],
    ) -> Optional[Sequence[Any]]:
        with self._lock:
            self.calls.append(("read", address, (method, *args)))
            self._check_failure(method, args)
            if not interface.has_function(method):
                raise LedgerError("method not in interface", operation=method, subject=address)
            registry = self._registry(address, method)

            if method == "getById":
                (contract_id,) = args
                return registry.entries.get(contract_id, (ZERO_ADDRESS, "", "", "", "", 0))
            if method == "listAddrs":
                return (list(registry.index),)
            raise LedgerError("unsupported method", operation=method, subject=address)

    def get(self, address: str) -> ContractInfo:
        with self._lock:
            self.calls.append(("get", address, ()))
            deployed = self._contracts.get(address)
            if deployed is None or address in self._restricted:
                raise ContractNotFoundError(address)
            return deployed.info

    def get_receipt(self, handle: TransactionHandle) -> Optional[ConfirmedTransaction]:
        with self._lock:
            return self._receipts.get(handle.tx_id)
