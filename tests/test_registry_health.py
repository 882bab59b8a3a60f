"""
Tests for registry health checks.
"""

import pytest

from tools.registry import __version__
from tools.registry.health import (
    CheckResult,
    DependencyConfig,
    DependencyType,
    HealthChecker,
    HealthStatus,
    registry_dependency,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _static(name, status):
    return lambda: CheckResult(name=name, status=status)


class TestHealthChecker:
    """Tests for HealthChecker."""

    def test_liveness(self):
        result = HealthChecker().liveness()
        assert result.status == HealthStatus.HEALTHY
        assert "pid" in result.metadata

    def test_ready_without_dependencies(self):
        assert HealthChecker().readiness().status == HealthStatus.HEALTHY

    def test_required_dependency_blocks_readiness(self):
        checker = HealthChecker()
        checker.register_dependency(DependencyConfig("db", _static("db", HealthStatus.UNHEALTHY)))

        result = checker.readiness()
        assert result.status == HealthStatus.UNHEALTHY
        assert "db" in result.message

    def test_optional_dependency_degrades(self):
        checker = HealthChecker()
        checker.register_dependency(DependencyConfig(
            "cache", _static("cache", HealthStatus.UNHEALTHY), dep_type=DependencyType.OPTIONAL,
        ))

        assert checker.readiness().status == HealthStatus.HEALTHY
        report = checker.check_all()
        assert report.status == HealthStatus.DEGRADED
        assert report.version == __version__

    def test_raising_check_is_unhealthy(self):
        def boom():
            raise RuntimeError("connection refused")

        checker = HealthChecker()
        checker.register_dependency(DependencyConfig("ledger", boom))

        (result,) = checker.check_all().checks
        assert result.status == HealthStatus.UNHEALTHY
        assert "connection refused" in result.message

    def test_results_are_cached(self):
        clock = FakeClock()
        calls = []

        def check():
            calls.append(1)
            return CheckResult(name="dep", status=HealthStatus.HEALTHY)

        checker = HealthChecker(clock=clock)
        checker.register_dependency(DependencyConfig("dep", check, cache_ttl_ms=1000.0))

        checker.check_all()
        checker.check_all()
        assert len(calls) == 1

        clock.now += 2.0
        checker.check_all()
        assert len(calls) == 2

    def test_unregister(self):
        checker = HealthChecker()
        checker.register_dependency(DependencyConfig("db", _static("db", HealthStatus.UNHEALTHY)))
        checker.unregister_dependency("db")
        assert checker.check_all().status == HealthStatus.HEALTHY

    def test_report_to_dict(self):
        checker = HealthChecker()
        checker.register_dependency(DependencyConfig("db", _static("db", HealthStatus.HEALTHY)))

        d = checker.check_all().to_dict()
        assert d["status"] == "healthy"
        assert d["checks"][0]["name"] == "db"


class TestRegistryDependency:
    """The registry contract as a readiness dependency."""

    @pytest.fixture
    def checker(self, service):
        checker = HealthChecker()
        checker.register_dependency(registry_dependency(service, cache_ttl_ms=0))
        return checker

    def test_not_ready_before_deploy(self, checker):
        result = checker.readiness()
        assert result.status == HealthStatus.UNHEALTHY
        assert "not deployed" in result.message

    def test_ready_after_deploy(self, checker, service):
        service.deploy()

        assert checker.readiness().status == HealthStatus.HEALTHY
        (check,) = checker.check_all().checks
        assert check.metadata["address"] == service.get_address()

    def test_missing_registry(self, checker, service):
        service.update_address("0xGONE")
        (check,) = checker.check_all().checks
        assert check.status == HealthStatus.UNHEALTHY
        assert check.message == "Registry contract not found"
