"""Provision a Web App with autoscale, then clean up.

Scenario:
- Create a resource group
- Create a Web App and an App Service plan
- Configure autoscale rules for scale-out and scale-in based on the number
  of requests the Web App receives, plus weekday business-hours profiles
- Delete the resource group

The resource group is acquired through provisioned_resource_group(), which
attempts deletion on every exit path. A group that was never created is
represented by None; cleanup then logs that nothing needs deleting.
"""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

from azure.mgmt.resource.resources.models import ResourceGroup
from azure.mgmt.web.models import Site

from webapp_autoscale.autoscale_builder import build_autoscale_setting
from webapp_autoscale.credentials import ServicePrincipalSettings, create_credential
from webapp_autoscale.log_sanitizer import LogSanitizer
from webapp_autoscale.management_plane import ManagementPlane
from webapp_autoscale.monitor_converter import to_autoscale_setting_resource
from webapp_autoscale.naming import create_random_name
from webapp_autoscale.policy_config import AutoscalePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningOptions:
    """Regions, SKU and name prefixes for the provisioned resources."""

    resource_group_location: str = "eastus2"
    location: str = "southcentralus"
    plan_sku_name: str = "P1"
    plan_sku_tier: str = "Premium"
    plan_capacity: int = 1
    plan_kind: str = "app"
    resource_group_prefix: str = "rgMonitor"
    web_app_prefix: str = "MyTestScaleWebApp"
    plan_prefix: str = "MyTestAppServicePlan"
    autoscale_prefix: str = "autoscalename1"


@dataclass(frozen=True)
class SampleResult:
    """Names and identifiers of what the sample provisioned."""

    resource_group_name: str
    web_app_name: str
    app_service_plan_id: str
    autoscale_setting_name: str
    web_app_url: str | None = None


def web_app_url(site: Site) -> str | None:
    """Return https://<first host name>/ for a web app, or None."""
    host_names = site.host_names or ([site.default_host_name] if site.default_host_name else [])
    if not host_names:
        return None
    return f"https://{host_names[0]}/"


def _delete_resource_group(plane: ManagementPlane, resource_group: ResourceGroup | None) -> None:
    if resource_group is None:
        logger.info("Did not create any resources in Azure. No clean up is necessary")
        return

    try:
        logger.info(f"Deleting Resource Group: {resource_group.id}")
        plane.delete_resource_group(resource_group.name)
        logger.info(f"Deleted Resource Group: {resource_group.id}")
    except Exception as e:
        # Cleanup failures must not mask the provisioning outcome
        logger.error(LogSanitizer.create_safe_error_message(e, "Failed to delete resource group"))


@contextmanager
def provisioned_resource_group(
    plane: ManagementPlane, name: str, location: str
) -> Iterator[ResourceGroup]:
    """Create a resource group and delete it when the block exits.

    Deletion is attempted on normal exit and on exceptions. Deletion errors
    are logged and swallowed; errors from the block itself propagate.

    Args:
        plane: Management plane facade
        name: Resource group name
        location: Azure region

    Yields:
        The created ResourceGroup
    """
    resource_group: ResourceGroup | None = None
    try:
        logger.info(f"Creating a resource group with name: {name}...")
        resource_group = plane.create_resource_group(name, location)
        logger.info(f"Created a resource group with name: {resource_group.name}")
        yield resource_group
    finally:
        _delete_resource_group(plane, resource_group)


def run_sample(
    plane: ManagementPlane,
    policy: AutoscalePolicy | None = None,
    options: ProvisioningOptions | None = None,
) -> SampleResult:
    """Provision the web app, plan and autoscale setting, then clean up.

    Errors from any create call propagate after cleanup has run.

    Returns:
        SampleResult describing the (now deleted) resources
    """
    options = options or ProvisioningOptions()
    policy = policy or AutoscalePolicy()
    rg_name = create_random_name(options.resource_group_prefix)

    with provisioned_resource_group(plane, rg_name, options.resource_group_location) as rg:
        logger.info("Creating a web app")
        website = plane.create_web_app(
            rg.name, create_random_name(options.web_app_prefix), options.location
        )
        logger.info(f"Created a web app with name: {website.name}")

        logger.info("Creating app service plan")
        plan = plane.create_app_service_plan(
            rg.name,
            create_random_name(options.plan_prefix),
            options.location,
            sku_name=options.plan_sku_name,
            sku_tier=options.plan_sku_tier,
            capacity=options.plan_capacity,
            kind=options.plan_kind,
        )
        logger.info(f"Created app service plan with name: {plan.name}")

        logger.info("Creating autoscale setting...")
        setting = build_autoscale_setting(
            target_resource_id=plan.id, metric_resource_id=website.id, policy=policy
        )
        autoscale = plane.create_autoscale_setting(
            rg.name,
            create_random_name(options.autoscale_prefix),
            to_autoscale_setting_resource(setting, options.location),
        )
        logger.info(f"Created autoscale setting with name: {autoscale.name}")

        url = web_app_url(website)
        if url:
            logger.info(url)

        return SampleResult(
            resource_group_name=rg.name,
            web_app_name=website.name,
            app_service_plan_id=plan.id,
            autoscale_setting_name=autoscale.name,
            web_app_url=url,
        )


def main(
    environ: Mapping[str, str] | None = None,
    policy: AutoscalePolicy | None = None,
    options: ProvisioningOptions | None = None,
) -> SampleResult | None:
    """Authenticate from the environment and run the sample.

    All errors are logged (sanitized) and swallowed. Returns None on failure.
    """
    settings: ServicePrincipalSettings | None = None
    try:
        settings = ServicePrincipalSettings.from_env(environ)
        logger.debug(f"Service principal settings: {settings.to_dict_masked()}")
        credential = create_credential(settings)
        plane = ManagementPlane(credential, settings.subscription_id)
        return run_sample(plane, policy=policy, options=options)
    except Exception as e:
        secrets = [settings.client_secret] if settings else []
        logger.error(LogSanitizer.create_safe_error_message(e, "Sample failed", secrets=secrets))
        return None
