"""
Shared test fixtures and configuration for webapp-autoscale tests.

This module provides common fixtures used across all test types:
- Service principal environment values
- Mock management plane returning fake Azure resources
- Default autoscale setting
"""

from unittest.mock import Mock

import pytest

from webapp_autoscale.autoscale_builder import build_autoscale_setting
from webapp_autoscale.credentials import REQUIRED_ENV_VARS

SUBSCRIPTION_ID = "abcdef00-0000-0000-0000-000000abcdef"
RG_PREFIX = f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups"


# ============================================================================
# ENVIRONMENT FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def prevent_real_azure_operations(monkeypatch):
    """Remove service principal variables so no test reaches real Azure.

    Tests that need credentials pass an explicit environ mapping.
    """
    for name in REQUIRED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sp_environ():
    """Valid service principal environment mapping."""
    return {
        "CLIENT_ID": "87654321-4321-4321-4321-210987654321",
        "CLIENT_SECRET": "fake-secret-value-12345",  # noqa: S105 - test fixture
        "TENANT_ID": "12345678-1234-1234-1234-123456789012",
        "SUBSCRIPTION_ID": SUBSCRIPTION_ID,
    }


# ============================================================================
# AZURE MOCKING FIXTURES
# ============================================================================


def _fake_resource(resource_id: str, **attrs):
    resource = Mock(id=resource_id, **attrs)
    # Mock reserves "name"; set it after construction
    resource.name = resource_id.rsplit("/", 1)[-1]
    return resource


@pytest.fixture
def mock_plane():
    """Mock ManagementPlane whose create calls echo realistic resources.

    Calls are recorded on a single parent mock so ordering can be asserted
    through mock_plane.mock_calls.
    """
    plane = Mock()

    def create_resource_group(name, location):
        return _fake_resource(f"{RG_PREFIX}/{name}", location=location)

    def create_web_app(resource_group, name, location, server_farm_id=None):
        return _fake_resource(
            f"{RG_PREFIX}/{resource_group}/providers/Microsoft.Web/sites/{name}",
            host_names=[f"{name.lower()}.azurewebsites.net"],
            default_host_name=f"{name.lower()}.azurewebsites.net",
        )

    def create_app_service_plan(resource_group, name, location, **kwargs):
        return _fake_resource(
            f"{RG_PREFIX}/{resource_group}/providers/Microsoft.Web/serverfarms/{name}"
        )

    def create_autoscale_setting(resource_group, name, setting):
        return _fake_resource(
            f"{RG_PREFIX}/{resource_group}/providers/Microsoft.Insights/autoscalesettings/{name}"
        )

    plane.create_resource_group.side_effect = create_resource_group
    plane.create_web_app.side_effect = create_web_app
    plane.create_app_service_plan.side_effect = create_app_service_plan
    plane.create_autoscale_setting.side_effect = create_autoscale_setting
    plane.delete_resource_group.return_value = None
    return plane


# ============================================================================
# AUTOSCALE FIXTURES
# ============================================================================


@pytest.fixture
def plan_id():
    return f"{RG_PREFIX}/rg1/providers/Microsoft.Web/serverfarms/plan1"


@pytest.fixture
def site_id():
    return f"{RG_PREFIX}/rg1/providers/Microsoft.Web/sites/site1"


@pytest.fixture
def default_setting(plan_id, site_id):
    """Autoscale setting built with the default policy."""
    return build_autoscale_setting(plan_id, site_id)
