"""
Contract Registry Configuration

Typed configuration values with YAML files and environment variables.

Configuration Sources (in order of precedence):
    1. Environment variables (REGISTRY_*)
    2. Values set at runtime or loaded from a YAML file
    3. Default values

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar, Union

import yaml

from tools.registry.errors import ConfigError, ConfigValidationError

T = TypeVar("T")


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding and validation.
    The environment is read through ``environ`` so tests can pass a dict.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ, repr=False)

    def get(self) -> T:
        """Get the current value."""
        if self.env_var:
            env_value = self.environ.get(self.env_var)
            if env_value is not None and env_value.strip():
                return self._coerce(env_value)

        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if self.validator and not self.validator(value):
            raise ConfigValidationError(
                f"Invalid value for config: {value!r}",
                operation="config.set",
                subject=self.env_var or "",
            )
        self._value = value

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        try:
            if target_type == bool:
                return value.lower() in ("true", "1", "yes", "on")  # type: ignore
            elif target_type == int:
                return int(value)  # type: ignore
            elif target_type == float:
                return float(value)  # type: ignore
            return value  # type: ignore
        except ValueError:
            raise ConfigValidationError(
                f"Cannot parse {value!r} as {target_type.__name__}",
                operation="config.env",
                subject=self.env_var or "",
            ) from None


@dataclass
class AddressConfig:
    """Where the registry address is read from and persisted to."""
    local_config_path: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="registry.yaml",
        env_var="REGISTRY_CONFIG_PATH",
        description="Local configuration file holding the registry address",
        validator=lambda x: bool(x),
    ))
    shared_config_path: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="",
        env_var="REGISTRY_SHARED_CONFIG",
        description="Properties file shared by co-located nodes (blank disables)",
    ))
    address_env_var: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="REGISTRY_ADDR",
        description="Environment variable overriding the registry address",
        validator=lambda x: bool(x),
    ))


@dataclass
class DeployConfig:
    """Configuration for registry deployment."""
    confirmation_timeout_seconds: ConfigValue[float] = field(default_factory=lambda: ConfigValue(
        default=60.0,
        env_var="REGISTRY_CONFIRM_TIMEOUT",
        description="Maximum time to wait for the deploy transaction",
        validator=lambda x: x > 0,
    ))
    poll_interval_seconds: ConfigValue[float] = field(default_factory=lambda: ConfigValue(
        default=0.2,
        env_var="REGISTRY_CONFIRM_POLL",
        description="Interval between receipt polls",
        validator=lambda x: x > 0,
    ))


@dataclass
class StoreConfig:
    """Configuration for the private record store."""
    private_store_dir: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="",
        env_var="REGISTRY_PRIVATE_STORE",
        description="Directory of private records (blank keeps them in memory)",
    ))


@dataclass
class ObservabilityConfig:
    """Configuration for logging."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="info",
        env_var="REGISTRY_LOG_LEVEL",
        description="Log level (debug, info, warning, error)",
        validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
    ))
    log_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="REGISTRY_LOG_FORMAT",
        description="Log format (json, text)",
        validator=lambda x: x in ("json", "text"),
    ))


@dataclass
class RegistryConfig:
    """Root configuration of the contract registry."""
    address: AddressConfig = field(default_factory=AddressConfig)
    deploy: DeployConfig = field(default_factory=DeployConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        def extract_values(obj: Any) -> Any:
            if isinstance(obj, ConfigValue):
                return obj.get()
            elif hasattr(obj, "__dataclass_fields__"):
                return {k: extract_values(getattr(obj, k)) for k in obj.__dataclass_fields__}
            return obj

        return extract_values(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)


def _config_values(obj: Any):
    if isinstance(obj, ConfigValue):
        yield obj
    elif hasattr(obj, "__dataclass_fields__"):
        for name in obj.__dataclass_fields__:
            yield from _config_values(getattr(obj, name))


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Construct one per process (or per test) and inject it.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._config = RegistryConfig()
        self._config_paths: List[Path] = []
        if environ is not None:
            for value in _config_values(self._config):
                value.environ = environ

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError("Configuration file not found", operation="config.load", subject=str(path))

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", operation="config.load", subject=str(path)) from e

        if data:
            if not isinstance(data, dict):
                raise ConfigError("Configuration root must be a mapping", operation="config.load", subject=str(path))
            self._apply_dict(data)
        self._config_paths.append(path)

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary values to configuration."""
        def apply_to_config(config_obj: Any, values: Dict[str, Any]) -> None:
            for key, value in values.items():
                if hasattr(config_obj, key):
                    attr = getattr(config_obj, key)
                    if isinstance(attr, ConfigValue):
                        attr.set(value)
                    elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                        apply_to_config(attr, value)

        apply_to_config(self._config, data)

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value by path.

        Example: manager.set("deploy.confirmation_timeout_seconds", 5.0)
        """
        parts = path.split(".")
        obj = self._config

        try:
            for part in parts[:-1]:
                obj = getattr(obj, part)
            attr = getattr(obj, parts[-1])
        except AttributeError:
            raise ConfigError("Invalid config path", operation="config.set", subject=path) from None

        if not isinstance(attr, ConfigValue):
            raise ConfigError("Invalid config path", operation="config.set", subject=path)
        attr.set(value)

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: manager.get("address.shared_config_path")
        """
        obj: Any = self._config
        try:
            for part in path.split("."):
                obj = getattr(obj, part)
        except AttributeError:
            raise ConfigError("Invalid config path", operation="config.get", subject=path) from None

        if isinstance(obj, ConfigValue):
            return obj.get()
        return obj

    def reload(self) -> None:
        """Reload configuration from all loaded files."""
        paths, self._config_paths = self._config_paths, []
        for path in paths:
            if path.exists():
                self.load_from_file(path)

    def validate(self) -> List[str]:
        """
        Validate all configuration values.

        Returns list of validation errors.
        """
        errors: List[str] = []

        def validate_config(obj: Any, path: str = "") -> None:
            if isinstance(obj, ConfigValue):
                try:
                    value = obj.get()
                    if obj.validator and not obj.validator(value):
                        errors.append(f"{path}: validation failed for value {value}")
                except ConfigError as e:
                    errors.append(f"{path}: {e}")
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    field_path = f"{path}.{field_name}" if path else field_name
                    validate_config(getattr(obj, field_name), field_path)

        validate_config(self._config)
        return errors
