"""
Global pytest configuration and fixtures.
"""
import pytest
from typing import Dict

from protracker.config import ProTrackerConfig, reload_config

CONFIG_ENV_VARS = (
    "PROTRACKER_DATA_DIR",
    "RECEIPTS_DIR",
    "DEFAULT_CURRENCY",
    "INVOICE_DUE_DAYS",
    "HOURS_ROUNDING",
    "EQUAL_TIMES_POLICY",
    "TIME_TOLERANCE_HOURS",
    "LOG_FORMAT",
    "LOG_FILE",
)


@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Test environment variables for configuration."""
    return {
        'ENVIRONMENT': 'testing',
        'DEBUG': 'true',
        'LOG_LEVEL': 'DEBUG'
    }


@pytest.fixture
def mock_env(test_env_vars, monkeypatch):
    """Mock environment variables for testing."""
    for key in CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)

    # Clear the global config to force reload with test values
    import protracker.config.settings
    protracker.config.settings._config = None

    yield test_env_vars

    # Clean up
    protracker.config.settings._config = None


@pytest.fixture
def test_config(mock_env) -> ProTrackerConfig:
    """Test configuration instance."""
    return reload_config()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line("markers", "cli: Tests that invoke the command line")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "/cli/" in str(item.fspath):
            item.add_marker(pytest.mark.cli)
