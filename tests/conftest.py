"""
Pytest configuration and fixtures for Cloister tests.
"""

import sys
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# Check for pytest-asyncio
try:
    import pytest_asyncio
    HAS_PYTEST_ASYNCIO = True
except ImportError:
    HAS_PYTEST_ASYNCIO = False


def pytest_collection_modifyitems(config, items):
    """Skip async tests if pytest-asyncio is not installed."""
    if HAS_PYTEST_ASYNCIO:
        return

    import asyncio
    skip_asyncio = pytest.mark.skip(
        reason="pytest-asyncio not installed - async tests require pytest-asyncio"
    )
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(skip_asyncio)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def storage_roots(temp_dir: Path) -> Dict[str, Path]:
    """Create one directory per alias root."""
    roots = {
        "data": temp_dir / "data",
        "documents": temp_dir / "data" / "Documents",
        "cache": temp_dir / "cache",
        "external": temp_dir / "external",
        "external_storage": temp_dir / "external_app",
        "application": temp_dir / "app",
    }
    for path in roots.values():
        path.mkdir(parents=True, exist_ok=True)
    return roots


@pytest.fixture
def storage_config(storage_roots: Dict[str, Path]):
    """StorageConfig over the temporary alias roots."""
    from cloister.StorageGate.models import StorageConfig

    return StorageConfig(
        data_dir=str(storage_roots["data"]),
        cache_dir=str(storage_roots["cache"]),
        external_dir=str(storage_roots["external"]),
        external_storage_dir=str(storage_roots["external_storage"]),
        application_dir=str(storage_roots["application"]),
    )


@pytest.fixture
def gate(storage_config):
    """StorageGate initialized over the temporary roots, every permission granted."""
    from cloister.PermissionGate import StaticPermissionGate
    from cloister.StorageGate import StorageGate

    assert StorageGate.initialize(config=storage_config, permissions=StaticPermissionGate())
    return StorageGate


@pytest.fixture
def sample_tree(storage_roots: Dict[str, Path]) -> Path:
    """Create a small tree under the DOCUMENTS root."""
    folder = storage_roots["documents"] / "tree"
    folder.mkdir(parents=True, exist_ok=True)

    (folder / "readme.txt").write_text("Hello World")
    (folder / "data.json").write_text('{"key": "value"}')

    subfolder = folder / "subfolder"
    subfolder.mkdir()
    (subfolder / "nested.txt").write_text("Nested content")

    return folder


@pytest.fixture
def clean_env(monkeypatch):
    """
    Clear every CLOISTER_* variable for the test and after it.

    Values a test loads from a .env file are removed at teardown too.
    """
    from cloister.Config.schema import CONFIG_SCHEMA

    for field in CONFIG_SCHEMA:
        monkeypatch.setenv(field.env_var, "")
        monkeypatch.delenv(field.env_var)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_module_state():
    """Reset module-level state between tests."""
    yield
    # Reset any module state after each test
    # This is important for modules that use global state

    # Reset StorageGate
    try:
        import cloister.StorageGate as storage_gate
        storage_gate._config = None
        storage_gate._permissions = None
        storage_gate._initialized = False
        storage_gate._config_path = None
    except (ImportError, AttributeError):
        pass

    # Reset Bridge registry
    try:
        from cloister.Bridge.registry import VerbRegistry
        VerbRegistry.reset()
    except (ImportError, AttributeError):
        pass

    # Reset Config
    try:
        import cloister.Config as config
        config._manager = None
    except (ImportError, AttributeError):
        pass
