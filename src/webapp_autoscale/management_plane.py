"""Azure management plane facade.

Wraps the three management clients the sample needs behind blocking calls.
Long-running operations are submitted and polled to completion here
(begin_*().result()), so callers never see pollers.

Clients:
- ResourceManagementClient (azure-mgmt-resource): resource groups
- WebSiteManagementClient (azure-mgmt-web): web apps and App Service plans
- MonitorManagementClient (azure-mgmt-monitor): autoscale settings

No retry or timeout logic here (the Azure SDK pipeline owns retries).
Errors propagate as azure.core.exceptions.HttpResponseError subclasses.
"""

import logging
from typing import Any

from azure.core.credentials import TokenCredential
from azure.mgmt.monitor import MonitorManagementClient
from azure.mgmt.monitor.models import AutoscaleSettingResource
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.resource.resources.models import ResourceGroup
from azure.mgmt.web import WebSiteManagementClient
from azure.mgmt.web.models import AppServicePlan, Site, SkuDescription

logger = logging.getLogger(__name__)


class ManagementPlane:
    """Blocking facade over the Azure management clients.

    Clients may be injected for testing; otherwise they are created from the
    credential and subscription ID.
    """

    def __init__(
        self,
        credential: TokenCredential | None = None,
        subscription_id: str | None = None,
        resource_client: Any | None = None,
        web_client: Any | None = None,
        monitor_client: Any | None = None,
    ):
        if credential is None and None in (resource_client, web_client, monitor_client):
            raise ValueError("credential is required unless all clients are provided")

        self.subscription_id = subscription_id
        self.resource_client = resource_client or ResourceManagementClient(
            credential, subscription_id
        )
        self.web_client = web_client or WebSiteManagementClient(credential, subscription_id)
        self.monitor_client = monitor_client or MonitorManagementClient(
            credential, subscription_id
        )

    def create_resource_group(self, name: str, location: str) -> ResourceGroup:
        """Create or update a resource group."""
        logger.debug(f"PUT resource group {name} in {location}")
        return self.resource_client.resource_groups.create_or_update(
            name, ResourceGroup(location=location)
        )

    def delete_resource_group(self, name: str) -> None:
        """Delete a resource group and wait for completion."""
        logger.debug(f"DELETE resource group {name}")
        poller = self.resource_client.resource_groups.begin_delete(name)
        poller.result()

    def create_web_app(
        self,
        resource_group: str,
        name: str,
        location: str,
        server_farm_id: str | None = None,
    ) -> Site:
        """Create or update a web app and wait for completion."""
        logger.debug(f"PUT web app {name} in {resource_group}")
        site = Site(location=location, server_farm_id=server_farm_id)
        poller = self.web_client.web_apps.begin_create_or_update(resource_group, name, site)
        return poller.result()

    def create_app_service_plan(
        self,
        resource_group: str,
        name: str,
        location: str,
        sku_name: str,
        sku_tier: str,
        capacity: int,
        kind: str = "app",
    ) -> AppServicePlan:
        """Create or update an App Service plan and wait for completion."""
        logger.debug(f"PUT App Service plan {name} ({sku_tier}/{sku_name}) in {resource_group}")
        plan = AppServicePlan(
            location=location,
            kind=kind,
            sku=SkuDescription(name=sku_name, tier=sku_tier, capacity=capacity),
        )
        poller = self.web_client.app_service_plans.begin_create_or_update(
            resource_group, name, plan
        )
        return poller.result()

    def create_autoscale_setting(
        self, resource_group: str, name: str, setting: AutoscaleSettingResource
    ) -> AutoscaleSettingResource:
        """Create or update an autoscale setting."""
        logger.debug(f"PUT autoscale setting {name} in {resource_group}")
        return self.monitor_client.autoscale_settings.create_or_update(
            resource_group, name, setting
        )
