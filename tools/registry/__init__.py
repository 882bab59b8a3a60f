"""
Contract Metadata Registry

Maps contract identifiers to their metadata (name, interface description,
source, creation time, visibility) across two stores: a public registry
contract on the ledger and this node's private store.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                      CONTRACT REGISTRY SERVICE                           │
    │                                                                          │
    │  OPERATIONS                                                              │
    │    deployer.py    Deploy the registry contract, record its address      │
    │    router.py      Route registrations: public registry or private store │
    │    reader.py      Resolve one id, private store first                   │
    │    listing.py     Merged, time-ordered, visibility-annotated listing    │
    │    probe.py       Is there live code at the registry address?           │
    │                                                                          │
    │  STATE                                                                   │
    │    address.py     Registry address: local config, shared file, env      │
    │    store.py       Private record store (memory or JSON files)           │
    │    ledger.py      Ledger and confirmation interfaces, in-memory ledger  │
    │                                                                          │
    │  AMBIENT                                                                 │
    │    config.py      YAML + environment configuration                      │
    │    observability.py  Structured JSON logging                            │
    │    health.py      Liveness / readiness with registry dependency         │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

__version__ = "0.5.0"


# Lazy imports to avoid circular dependencies
def __getattr__(name):
    """Lazy import registry modules on first access."""

    if name in ("Record", "CodeKind", "Visibility", "VisibilityKind",
                "REGISTRY_CONTRACT_NAME", "OPAQUE_SCOPE"):
        from tools.registry import models
        return getattr(models, name)

    if name in ("RegistryError", "ConfigError", "StorageError", "AddressPersistenceError",
                "CodeKindError", "LedgerError", "ContractNotFoundError",
                "ConfirmationTimeout", "ConfirmationInterrupted"):
        from tools.registry import errors
        return getattr(errors, name)

    if name in ("AddressStore", "AddressResolver", "LocalConfig", "SharedAddressFile"):
        from tools.registry import address
        return getattr(address, name)

    if name in ("InMemoryLedger", "PollingConfirmationWaiter", "TransactionHandle",
                "ConfirmedTransaction", "ContractInterface"):
        from tools.registry import ledger
        return getattr(ledger, name)

    if name in ("InMemoryPrivateStore", "FilePrivateStore"):
        from tools.registry import store
        return getattr(store, name)

    if name in ("ContractRegistryService", "build_service"):
        from tools.registry import service
        return getattr(service, name)

    if name in ("ListingResult", "SkippedEntry"):
        from tools.registry import listing
        return getattr(listing, name)

    if name in ("ConfigManager", "RegistryConfig"):
        from tools.registry import config
        return getattr(config, name)

    raise AttributeError(f"module 'tools.registry' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Model
    "Record",
    "CodeKind",
    "Visibility",
    # Service
    "ContractRegistryService",
    "build_service",
    "ListingResult",
    # State
    "AddressStore",
    "InMemoryPrivateStore",
    "FilePrivateStore",
    "InMemoryLedger",
    "PollingConfirmationWaiter",
    # Config
    "ConfigManager",
    "RegistryConfig",
    # Errors
    "RegistryError",
    "StorageError",
    "AddressPersistenceError",
]
