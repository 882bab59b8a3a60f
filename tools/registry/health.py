"""
Contract Registry Health Checks

Liveness, readiness and deep health checks with dependency tracking. The
registry itself is registered as a REQUIRED dependency through
``registry_dependency(service)``: a node whose registry address holds no
code is alive but not ready.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from tools.registry import __version__
from tools.registry.observability import RegistryLayer, get_logger

logger = get_logger("health", RegistryLayer.HEALTH)


class HealthStatus(Enum):
    """Health check result status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class DependencyType(Enum):
    """Types of system dependencies."""
    REQUIRED = "required"      # Must be healthy for the node to be ready
    OPTIONAL = "optional"      # Degraded if unhealthy, but still operational


@dataclass
class CheckResult:
    """Result of a single health check."""
    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "latency_ms": round(self.latency_ms, 2),
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }


@dataclass
class HealthReport:
    """Health report over all dependencies."""
    status: HealthStatus
    version: str
    uptime_seconds: float
    checks: List[CheckResult]
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "uptime_seconds": round(self.uptime_seconds, 2),
            "timestamp": self.timestamp,
            "checks": [c.to_dict() for c in self.checks],
        }


@dataclass
class DependencyConfig:
    """Configuration for a dependency check."""
    name: str
    check_fn: Callable[[], CheckResult]
    dep_type: DependencyType = DependencyType.REQUIRED
    cache_ttl_ms: float = 1000.0


class HealthChecker:
    """
    Health check registry.

    Results are cached per dependency for ``cache_ttl_ms``. A check that
    raises is reported as UNHEALTHY with the exception message.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start_time = clock()
        self._dependencies: Dict[str, DependencyConfig] = {}
        self._cache: Dict[str, Tuple[CheckResult, float]] = {}
        self._lock = threading.RLock()

    def register_dependency(self, config: DependencyConfig) -> None:
        with self._lock:
            self._dependencies[config.name] = config
            self._cache.pop(config.name, None)

    def unregister_dependency(self, name: str) -> None:
        with self._lock:
            self._dependencies.pop(name, None)
            self._cache.pop(name, None)

    def _get_cached_result(self, name: str, ttl_ms: float) -> Optional[CheckResult]:
        with self._lock:
            if name in self._cache:
                result, cached_at = self._cache[name]
                if (self._clock() - cached_at) * 1000 < ttl_ms:
                    return result
        return None

    def _run_check(self, config: DependencyConfig) -> CheckResult:
        cached = self._get_cached_result(config.name, config.cache_ttl_ms)
        if cached:
            return cached

        start = self._clock()
        try:
            result = config.check_fn()
        except Exception as e:
            logger.warning(f"Health check {config.name} raised: {e}", operation="check", dependency=config.name)
            result = CheckResult(
                name=config.name,
                status=HealthStatus.UNHEALTHY,
                message=f"Check failed: {e}",
            )
        result.latency_ms = (self._clock() - start) * 1000

        with self._lock:
            self._cache[config.name] = (result, self._clock())
        return result

    def liveness(self) -> CheckResult:
        """The process is running."""
        return CheckResult(
            name="liveness",
            status=HealthStatus.HEALTHY,
            message="Process is alive",
            metadata={
                "pid": os.getpid(),
                "uptime_seconds": round(self._clock() - self._start_time, 2),
            },
        )

    def readiness(self) -> CheckResult:
        """Healthy only if every REQUIRED dependency is not UNHEALTHY."""
        with self._lock:
            deps_snapshot = list(self._dependencies.items())

        for name, config in deps_snapshot:
            if config.dep_type != DependencyType.REQUIRED:
                continue
            result = self._run_check(config)
            if result.status == HealthStatus.UNHEALTHY:
                return CheckResult(
                    name="readiness",
                    status=HealthStatus.UNHEALTHY,
                    message=f"Required dependency '{name}' unhealthy: {result.message}",
                )

        return CheckResult(
            name="readiness",
            status=HealthStatus.HEALTHY,
            message="Ready to accept traffic",
        )

    def check_all(self) -> HealthReport:
        """Run every registered check and roll the results up."""
        checks: List[CheckResult] = []
        overall_status = HealthStatus.HEALTHY

        with self._lock:
            deps_snapshot = list(self._dependencies.values())

        for config in deps_snapshot:
            result = self._run_check(config)
            checks.append(result)

            if result.status == HealthStatus.UNHEALTHY:
                if config.dep_type == DependencyType.REQUIRED:
                    overall_status = HealthStatus.UNHEALTHY
                elif overall_status == HealthStatus.HEALTHY:
                    overall_status = HealthStatus.DEGRADED
            elif result.status == HealthStatus.DEGRADED and overall_status == HealthStatus.HEALTHY:
                overall_status = HealthStatus.DEGRADED

        return HealthReport(
            status=overall_status,
            version=__version__,
            uptime_seconds=self._clock() - self._start_time,
            checks=checks,
        )


def registry_dependency(service: Any, name: str = "contract_registry", cache_ttl_ms: float = 5000.0) -> DependencyConfig:
    """
    Wrap ``service.registry_exists()`` as a REQUIRED dependency.

    ``service`` is anything with ``registry_exists()`` and ``get_address()``,
    normally a ContractRegistryService.
    """
    def check_registry() -> CheckResult:
        exists = service.registry_exists()
        address = service.get_address()
        if exists:
            return CheckResult(
                name=name,
                status=HealthStatus.HEALTHY,
                message="Registry contract reachable",
                metadata={"address": address},
            )
        return CheckResult(
            name=name,
            status=HealthStatus.UNHEALTHY,
            message="Registry contract not deployed" if not address else "Registry contract not found",
            metadata={"address": address},
        )

    return DependencyConfig(
        name=name,
        check_fn=check_registry,
        dep_type=DependencyType.REQUIRED,
        cache_ttl_ms=cache_ttl_ms,
    )
