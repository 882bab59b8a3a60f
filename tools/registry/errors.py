"""
Contract Registry Error Taxonomy

All failures raised by the registry layer derive from RegistryError so
callers can separate registry problems from programming errors. "Not found"
is never an exception here: lookups return None and existence checks
return False.

    RegistryError
    ├── ConfigError
    │   └── ConfigValidationError
    ├── StorageError
    │   ├── AddressPersistenceError
    │   └── RecordValidationError
    ├── CodeKindError
    └── LedgerError
        ├── ContractNotFoundError
        └── ConfirmationError
            ├── ConfirmationTimeout
            └── ConfirmationInterrupted

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base exception for contract registry failures."""

    error_code = "REGISTRY_ERROR"

    def __init__(
        self,
        message: str,
        operation: str = "",
        subject: str = "",
    ):
        self.message = message
        self.operation = operation
        self.subject = subject
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.operation:
            parts.append(f"[{self.operation}]")
        parts.append(self.message)
        if self.subject:
            parts.append(f"({self.subject})")
        return " ".join(parts)


class ConfigError(RegistryError):
    """Configuration error."""
    error_code = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration value failed validation."""
    error_code = "CONFIG_INVALID"


class StorageError(RegistryError):
    """Local storage could not be read or written."""
    error_code = "STORAGE_ERROR"


class AddressPersistenceError(StorageError):
    """
    The registry address could not be written to local configuration.

    Raised after a successful deployment, so the registry exists on-chain
    at ``address`` even though this process failed to record it.
    """
    error_code = "ADDRESS_NOT_PERSISTED"

    def __init__(self, message: str, address: str, operation: str = "persist"):
        self.address = address
        super().__init__(message, operation=operation, subject=address)


class RecordValidationError(StorageError):
    """A stored record document does not match the record schema."""
    error_code = "RECORD_INVALID"

    def __init__(self, record_id: str, errors: list):
        self.errors = list(errors)
        super().__init__(
            "; ".join(self.errors) or "invalid record document",
            operation="validate",
            subject=record_id,
        )


class CodeKindError(RegistryError):
    """Unrecognized code kind string."""
    error_code = "CODE_KIND_UNKNOWN"

    def __init__(self, value: str, subject: str = ""):
        self.value = value
        super().__init__(f"unknown code kind {value!r}", operation="decode", subject=subject)


class LedgerError(RegistryError):
    """A ledger call failed."""
    error_code = "LEDGER_ERROR"


class ContractNotFoundError(LedgerError):
    """No contract code exists at the address, or it is not readable here."""
    error_code = "CONTRACT_NOT_FOUND"

    def __init__(self, address: str, message: str = "no contract code at address"):
        self.address = address
        super().__init__(message, operation="get", subject=address)


class ConfirmationError(LedgerError):
    """A submitted transaction was not confirmed."""
    error_code = "CONFIRMATION_FAILED"

    def __init__(self, message: str, tx_id: Optional[str] = None):
        self.tx_id = tx_id
        super().__init__(message, operation="wait_for", subject=tx_id or "")


class ConfirmationTimeout(ConfirmationError):
    """The confirmation wait elapsed before the transaction was mined."""
    error_code = "CONFIRMATION_TIMEOUT"


class ConfirmationInterrupted(ConfirmationError):
    """The confirmation wait was cancelled."""
    error_code = "CONFIRMATION_INTERRUPTED"
