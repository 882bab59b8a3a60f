"""
End-to-end tests for the contract registry service.

Run with: pytest tests/test_registry_service.py -v
"""

import pytest

from tools.registry.address import ADDRESS_KEY
from tools.registry.config import ConfigManager
from tools.registry.core import read_properties
from tools.registry.ledger import InMemoryLedger, TransactionHandle
from tools.registry.models import CodeKind
from tools.registry.service import ContractRegistryService, build_service, private_store_from_config
from tools.registry.store import FilePrivateStore, InMemoryPrivateStore


def _register(service, contract_id, created_at, scope=None, name="Token"):
    return service.register("0xactor", contract_id, name, "[]", "src", CodeKind.SOLIDITY, created_at, scope)


# ════════════════════════════════════════════════════════════════════════════
# LIFECYCLE
# ════════════════════════════════════════════════════════════════════════════


class TestServiceLifecycle:
    """Deploy, register, look up and list through the facade."""

    def test_registry_absent_before_deploy(self, service):
        assert service.get_address() == ""
        assert service.registry_exists() is False

    def test_deploy_then_exists(self, service, local_config, shared_file):
        assert service.deploy() is True

        address = service.get_address()
        assert service.registry_exists() is True
        assert local_config.get(ADDRESS_KEY) == address
        assert read_properties(shared_file.path)[ADDRESS_KEY] == address

    def test_registration_before_deploy_is_skipped(self, service):
        assert _register(service, "0xP1", 10) is None
        assert service.list() == []

    def test_full_flow(self, service, ledger):
        service.deploy()

        handle = _register(service, "0xP1", 30)
        assert isinstance(handle, TransactionHandle)
        assert _register(service, "0xQ1", 20, scope="group-a") is None
        ledger.deploy_contract("6080", address="0xQ1")
        _register(service, "0xQ2", 10, scope="group-b")

        assert service.get_by_id("0xP1").name == "Token"
        assert service.get_by_id("0xQ1").visibility_scope == "group-a"
        assert service.get_by_id("0xAB") is None

        records = service.list()
        assert [r.id for r in records] == ["0xQ2", "0xQ1", "0xP1"]
        assert [r.visibility_scope for r in records] == ["private", "group-a", ""]

    def test_registry_contract_itself_is_not_listed(self, service):
        service.deploy()
        assert _register(service, service.get_address(), 5, name="ContractRegistry") is None
        assert service.list() == []

    def test_list_detailed_reports_skips(self, service, ledger):
        service.deploy()
        _register(service, "0xP1", 1)
        _register(service, "0xP2", 2)
        ledger.fail_call("getById", "0xP1")

        result = service.list_detailed()
        assert [r.id for r in result.records] == ["0xP2"]
        assert result.skipped_ids == ["0xP1"]

    def test_update_address_is_process_local(self, service, ledger, local_config):
        service.deploy()
        persisted = service.get_address()
        other = ledger.deploy_contract("contract ContractRegistry {}", name="ContractRegistry")

        service.update_address(other)

        assert service.get_address() == other
        assert local_config.get(ADDRESS_KEY) == persisted

    def test_shared_file_points_at_missing_registry(self, service, shared_file):
        service.deploy()
        shared_file.write_address("0xGONE")

        assert service.registry_exists() is False
        assert service.get_address() == "0xGONE"

    def test_environment_override_wins(self, service, ledger, environ):
        service.deploy()
        environ["REGISTRY_ADDR"] = "0xNOTHING"

        assert service.registry_exists() is False

    def test_deploy_failure_is_logged_and_false(self, addresses, private_store, caplog):
        from tools.registry.ledger import PollingConfirmationWaiter

        ledger = InMemoryLedger(auto_mine=False)
        waiter = PollingConfirmationWaiter(ledger, poll_interval_seconds=0.01)
        service = ContractRegistryService(addresses, ledger, private_store, waiter, confirmation_timeout_seconds=0.05)

        with caplog.at_level("ERROR", logger="registry"):
            assert service.deploy() is False

        assert any("Error deploying registry" in r.getMessage() for r in caplog.records)


# ════════════════════════════════════════════════════════════════════════════
# WIRING FROM CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════


class TestBuildService:
    """Tests for build_service."""

    @pytest.fixture
    def manager(self, tmp_path):
        manager = ConfigManager(environ={})
        manager.set("address.local_config_path", str(tmp_path / "node" / "registry.yaml"))
        manager.set("address.shared_config_path", str(tmp_path / "shared.properties"))
        manager.set("deploy.poll_interval_seconds", 0.01)
        manager.set("deploy.confirmation_timeout_seconds", 1.0)
        return manager

    def test_deploy_and_restart(self, manager):
        ledger = InMemoryLedger()
        service = build_service(manager.config, ledger, environ={})

        assert service.deploy() is True
        address = service.get_address()

        restarted = build_service(manager.config, ledger, environ={})
        assert restarted.get_address() == address
        assert restarted.registry_exists() is True

    def test_sibling_nodes_converge_through_shared_file(self, manager, tmp_path):
        ledger = InMemoryLedger()
        first = build_service(manager.config, ledger, environ={})
        first.deploy()

        sibling_config = ConfigManager(environ={})
        sibling_config.set("address.local_config_path", str(tmp_path / "sibling" / "registry.yaml"))
        sibling_config.set("address.shared_config_path", str(tmp_path / "shared.properties"))
        sibling = build_service(sibling_config.config, ledger, environ={})

        assert sibling.get_address() == ""
        assert sibling.registry_exists() is True
        assert sibling.get_address() == first.get_address()

    def test_private_store_selection(self, manager, tmp_path):
        assert isinstance(private_store_from_config(manager.config), InMemoryPrivateStore)

        manager.set("store.private_store_dir", str(tmp_path / "private"))
        store = private_store_from_config(manager.config)
        assert isinstance(store, FilePrivateStore)
        assert store.directory == tmp_path / "private"

    def test_file_store_end_to_end(self, manager, tmp_path):
        manager.set("store.private_store_dir", str(tmp_path / "private"))
        ledger = InMemoryLedger()
        service = build_service(manager.config, ledger, environ={})
        service.deploy()

        _register(service, "0xQ1", 5, scope="group-a")

        reopened = build_service(manager.config, ledger, environ={})
        assert reopened.get_by_id("0xQ1").visibility_scope == "group-a"
