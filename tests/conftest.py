import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest


# Add project root to path
root = Path(__file__).resolve().parents[1]
project_root = str(root)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Set environment variables for testing (before settings are instantiated)
os.environ.setdefault("HUBSPOT_PRIVATE_APP_TOKEN", "test-token")
os.environ["PROCESSING_DELAY_MS"] = "0"
os.environ["TASK_ASSOCIATION_DELAY_MS"] = "0"
os.environ["HUBSPOT_CLIENT_SECRET"] = ""
os.environ["CONTRACT_OBJECT_TYPE"] = ""

from src.integrations.crm.association_cache import association_types  # noqa: E402
from src.integrations.crm.hubspot import HubSpotClient  # noqa: E402
from src.workflows import owner_role  # noqa: E402
from src.workflows.events import HubSpotEvent  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "integration: tests driving the ASGI app")
    config.addinivalue_line("markers", "smoke: configuration and startup checks")
    config.addinivalue_line("markers", "hubspot: HubSpot webhook endpoint tests")


@pytest.fixture(autouse=True)
def reset_process_state():
    """Clear process-wide caches between tests."""
    association_types.clear()
    owner_role._group_locks.clear()
    yield
    association_types.clear()
    owner_role._group_locks.clear()


@pytest.fixture
def mock_hubspot_client():
    """HubSpot client double with every remote call mocked."""
    client = MagicMock(spec=HubSpotClient)
    client.get_object = AsyncMock()
    client.update_object = AsyncMock(return_value=None)
    client.search_page = AsyncMock()
    client.search_all = AsyncMock(return_value=[])
    client.list_associations = AsyncMock(return_value=[])
    client.get_default_association_type_id = AsyncMock(return_value=204)
    client.associate = AsyncMock(return_value=None)
    return client


@pytest.fixture
def make_event():
    """Build a HubSpotEvent from webhook-style keyword arguments."""

    def _make(**fields) -> HubSpotEvent:
        return HubSpotEvent.model_validate(fields)

    return _make
