import os
import pathlib
import sys
import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import tools`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: tests that wait on real timeouts (skipped unless REGISTRY_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_slow = _env_flag('REGISTRY_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set REGISTRY_RUN_SLOW=1 to enable'))


# ════════════════════════════════════════════════════════════════════════════
# SHARED FIXTURES
# ════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def ledger():
    from tools.registry.ledger import InMemoryLedger

    return InMemoryLedger()


@pytest.fixture
def private_store():
    from tools.registry.store import InMemoryPrivateStore

    return InMemoryPrivateStore()


@pytest.fixture
def environ():
    """Isolated environment mapping; tests add overrides to it."""
    return {}


@pytest.fixture
def local_config(tmp_path):
    from tools.registry.address import LocalConfig

    return LocalConfig(tmp_path / "node" / "registry.yaml")


@pytest.fixture
def shared_file(tmp_path):
    from tools.registry.address import SharedAddressFile

    return SharedAddressFile(tmp_path / "shared" / "shared.properties")


@pytest.fixture
def addresses(local_config, shared_file, environ):
    from tools.registry.address import AddressStore

    return AddressStore(local_config, shared_file, environ=environ)


@pytest.fixture
def registry_address(ledger, addresses):
    """A registry contract placed on the ledger and selected as current."""
    from tools.registry.ledger import load_registry_source
    from tools.registry.models import CodeKind

    address = ledger.deploy_contract(load_registry_source(), CodeKind.SOLIDITY, name="ContractRegistry")
    addresses.override(address)
    return address


@pytest.fixture
def service(addresses, ledger, private_store):
    from tools.registry.ledger import PollingConfirmationWaiter
    from tools.registry.service import ContractRegistryService

    waiter = PollingConfirmationWaiter(ledger, poll_interval_seconds=0.01)
    return ContractRegistryService(
        addresses=addresses,
        ledger=ledger,
        private_store=private_store,
        waiter=waiter,
        confirmation_timeout_seconds=1.0,
    )
