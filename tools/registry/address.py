"""
Registry Address Resolution

The registry contract's own address is process-wide state with three
sources, lowest precedence first:

    1. Local configuration      YAML file, loaded once at construction
    2. Shared address file      properties file written by sibling nodes
    3. Environment variable     REGISTRY_ADDR (name configurable)

``resolve()`` re-applies (2) and (3) on top of the in-memory value.
``persist()`` writes (1) durably and (2) best-effort. ``override()``
changes the in-memory value only.

The shared file is not locked. Concurrent writers race and the last one
wins; the local configuration stays each node's fallback.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import yaml

from tools.registry.config import RegistryConfig
from tools.registry.core import load_yaml, read_properties, write_properties, write_yaml
from tools.registry.errors import AddressPersistenceError
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("address", RegistryLayer.ADDRESS)

ADDRESS_KEY = "contract.registry.addr"
DEFAULT_ENV_VAR = "REGISTRY_ADDR"


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class AddressResolver(Protocol):
    """What registry components need from an address source."""

    def current(self) -> str:
        """The in-memory address, without consulting overrides."""
        ...

    def resolve(self) -> str:
        """Re-apply shared-file and environment overrides and return the address."""
        ...

    def persist(self, address: str) -> None:
        """Record ``address`` durably and share it with sibling nodes."""
        ...

    def override(self, address: str) -> None:
        """Replace the in-memory address for this process only."""
        ...


class LocalConfig:
    """YAML mapping of flat keys, the node's durable configuration."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = load_yaml(self.path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self.load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self.load()
        data[key] = value
        write_yaml(self.path, data)


class SharedAddressFile:
    """Properties file shared by nodes running on the same host."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read_address(self) -> Optional[str]:
        """Return the shared address, or None when absent, blank or unreadable."""
        if not self.path.exists():
            logger.debug("Shared config file not found", operation="resolve", path=str(self.path))
            return None
        try:
            props = read_properties(self.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                f"Error loading shared config: {e}",
                operation="resolve",
                path=str(self.path),
            )
            return None

        value = props.get(ADDRESS_KEY)
        return None if _blank(value) else value.strip()

    def write_address(self, address: str) -> None:
        """Read-modify-write the address key, keeping other keys."""
        props: Dict[str, str] = {}
        if self.path.exists():
            props = read_properties(self.path)
        props[ADDRESS_KEY] = address
        write_properties(self.path, props)


class AddressStore:
    """
    Resolves and persists the registry address.

    All state changes happen under one lock, so each of ``resolve``,
    ``persist`` and ``override`` is atomic within the process.
    """

    def __init__(
        self,
        local_config: LocalConfig,
        shared_file: Optional[SharedAddressFile] = None,
        env_var: str = DEFAULT_ENV_VAR,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._local = local_config
        self._shared = shared_file
        self._env_var = env_var
        self._environ = environ if environ is not None else os.environ
        self._lock = threading.RLock()
        self._address = self._load_default()

    def _load_default(self) -> str:
        try:
            value = self._local.get(ADDRESS_KEY)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(
                f"Unable to read local configuration: {e}",
                operation="load",
                path=str(self._local.path),
            )
            return ""
        return "" if _blank(value) else value.strip()

    def current(self) -> str:
        with self._lock:
            return self._address

    def resolve(self) -> str:
        with self._lock:
            if self._shared is not None:
                shared = self._shared.read_address()
                if shared is not None:
                    if shared != self._address:
                        logger.info(
                            "Overriding registry address from shared config",
                            operation="resolve",
                            address=shared,
                        )
                    self._address = shared

            env_value = self._environ.get(self._env_var)
            if not _blank(env_value):
                env_value = env_value.strip()
                if env_value != self._address:
                    logger.info(
                        f"Overriding registry address from {self._env_var}",
                        operation="resolve",
                        address=env_value,
                    )
                self._address = env_value

            return self._address

    def persist(self, address: str) -> None:
        if _blank(address):
            raise ValueError("cannot persist a blank registry address")

        address = address.strip()
        with self._lock:
            self._address = address
            logger.debug("Storing registry address", operation="persist", address=address)
            try:
                self._local.set(ADDRESS_KEY, address)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(
                    f"Unable to update local configuration: {e}",
                    operation="persist",
                    path=str(self._local.path),
                    address=address,
                )
                raise AddressPersistenceError(
                    f"unable to write {self._local.path}",
                    address=address,
                ) from e

            self._share(address)

    def _share(self, address: str) -> None:
        if self._shared is None:
            return
        try:
            self._shared.write_address(address)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                f"Error writing to shared config file: {e}",
                operation="persist",
                path=str(self._shared.path),
                address=address,
            )
            return
        logger.info(
            "Wrote registry address to shared location",
            operation="persist",
            path=str(self._shared.path),
            address=address,
        )

    def override(self, address: str) -> None:
        with self._lock:
            logger.info("Registry address overridden for this process", operation="override", address=address)
            self._address = "" if _blank(address) else address.strip()


def address_store_from_config(config: RegistryConfig, environ: Optional[Mapping[str, str]] = None) -> AddressStore:
    """Build an AddressStore from the ``address`` configuration section."""
    section = config.address
    shared_path = section.shared_config_path.get()
    return AddressStore(
        local_config=LocalConfig(section.local_config_path.get()),
        shared_file=SharedAddressFile(shared_path) if not _blank(shared_path) else None,
        env_var=section.address_env_var.get(),
        environ=environ,
    )
