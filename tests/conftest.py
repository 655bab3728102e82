"""
Global pytest fixtures for the Sentinel content deployer tests.
"""

import pytest
from pathlib import Path

from helpers import FakeManagementApi
from sentinel_deploy.services.error_log import ErrorLog


# ============================================================
# Pytest Configuration Hooks
# ============================================================

def pytest_collection_modifyitems(config, items):
    """Apply markers based on test location."""
    for item in items:
        path_str = str(item.fspath)

        if "/unit/" in path_str:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path_str:
            item.add_marker(pytest.mark.integration)


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def fake_api() -> FakeManagementApi:
    """Empty fake management API; tests fill in catalogs and failures."""
    return FakeManagementApi()


@pytest.fixture
def error_log_path(tmp_path) -> Path:
    return tmp_path / "deployment-errors.log"


@pytest.fixture
def error_log(error_log_path) -> ErrorLog:
    return ErrorLog(error_log_path)
