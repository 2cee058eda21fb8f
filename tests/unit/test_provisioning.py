"""Unit tests for provisioning and management_plane modules.

These tests verify:
- Call order of the provisioning run
- Guaranteed resource group deletion on success and failure
- Benign logging when nothing was created
- Swallowed deletion errors
- Top-level error handling and secret sanitization
- ManagementPlane blocking on long-running operations
"""

import logging
from unittest.mock import Mock, patch

import pytest
from azure.core.exceptions import HttpResponseError
from azure.mgmt.monitor.models import AutoscaleSettingResource

from webapp_autoscale.management_plane import ManagementPlane
from webapp_autoscale.policy_config import AutoscalePolicy
from webapp_autoscale.provisioning import (
    ProvisioningOptions,
    SampleResult,
    main,
    provisioned_resource_group,
    run_sample,
    web_app_url,
)


def called_methods(plane):
    return [name for name, _args, _kwargs in plane.mock_calls]


class TestRunSample:
    """Test the linear provisioning run."""

    def test_call_order(self, mock_plane):
        """Test group, site, plan, autoscale, then delete."""
        run_sample(mock_plane)

        assert called_methods(mock_plane) == [
            "create_resource_group",
            "create_web_app",
            "create_app_service_plan",
            "create_autoscale_setting",
            "delete_resource_group",
        ]

    def test_locations_and_sku(self, mock_plane):
        """Test default regions and App Service plan SKU."""
        run_sample(mock_plane)

        rg_args = mock_plane.create_resource_group.call_args
        assert rg_args.args[0].startswith("rgMonitor")
        assert rg_args.args[1] == "eastus2"

        plan_call = mock_plane.create_app_service_plan.call_args
        assert plan_call.args[1].startswith("MyTestAppServicePlan")
        assert plan_call.args[2] == "southcentralus"
        assert plan_call.kwargs == {
            "sku_name": "P1",
            "sku_tier": "Premium",
            "capacity": 1,
            "kind": "app",
        }

    def test_autoscale_targets_plan_and_observes_site(self, mock_plane):
        """Test that the submitted setting scales the plan on site metrics."""
        result = run_sample(mock_plane)

        rg_name, setting_name, resource = mock_plane.create_autoscale_setting.call_args.args
        assert rg_name == result.resource_group_name
        assert setting_name.startswith("autoscalename1")
        assert isinstance(resource, AutoscaleSettingResource)
        assert resource.location == "southcentralus"
        assert resource.target_resource_uri == result.app_service_plan_id
        assert resource.enabled is True

        metric_source = resource.profiles[0].rules[0].metric_trigger.metric_resource_uri
        assert metric_source.endswith(f"/sites/{result.web_app_name}")

    def test_result(self, mock_plane):
        """Test the returned SampleResult."""
        result = run_sample(mock_plane)

        assert isinstance(result, SampleResult)
        assert result.web_app_name.startswith("MyTestScaleWebApp")
        assert result.web_app_url == f"https://{result.web_app_name.lower()}.azurewebsites.net/"
        assert result.autoscale_setting_name.startswith("autoscalename1")
        mock_plane.delete_resource_group.assert_called_once_with(result.resource_group_name)

    def test_custom_policy_and_options(self, mock_plane):
        """Test that policy and options reach the submitted setting."""
        options = ProvisioningOptions(location="westus2", resource_group_prefix="rgCustom")
        run_sample(mock_plane, policy=AutoscalePolicy(scale_out_threshold=30), options=options)

        assert mock_plane.create_resource_group.call_args.args[0].startswith("rgCustom")
        resource = mock_plane.create_autoscale_setting.call_args.args[2]
        assert resource.location == "westus2"
        assert resource.profiles[0].rules[0].metric_trigger.threshold == 30.0

    def test_failure_still_deletes_group(self, mock_plane):
        """Test that an error after group creation propagates and cleans up."""
        mock_plane.create_app_service_plan.side_effect = HttpResponseError(
            message="Quota exceeded"
        )

        with pytest.raises(HttpResponseError, match="Quota exceeded"):
            run_sample(mock_plane)

        mock_plane.create_autoscale_setting.assert_not_called()
        mock_plane.delete_resource_group.assert_called_once()


class TestProvisionedResourceGroup:
    """Test scoped acquisition of the resource group."""

    def test_deletes_on_normal_exit(self, mock_plane):
        """Test deletion after the block completes."""
        with provisioned_resource_group(mock_plane, "rg1", "eastus2") as rg:
            assert rg.name == "rg1"
            mock_plane.delete_resource_group.assert_not_called()

        mock_plane.delete_resource_group.assert_called_once_with("rg1")

    def test_deletes_on_exception(self, mock_plane):
        """Test deletion when the block raises, and that the error propagates."""
        with pytest.raises(RuntimeError, match="boom"):
            with provisioned_resource_group(mock_plane, "rg1", "eastus2"):
                raise RuntimeError("boom")

        mock_plane.delete_resource_group.assert_called_once_with("rg1")

    def test_nothing_created(self, mock_plane, caplog):
        """Test that a failed group creation skips deletion with a benign log."""
        caplog.set_level(logging.INFO)
        mock_plane.create_resource_group.side_effect = HttpResponseError(message="Forbidden")

        with pytest.raises(HttpResponseError):
            with provisioned_resource_group(mock_plane, "rg1", "eastus2"):
                pytest.fail("block must not run")

        mock_plane.delete_resource_group.assert_not_called()
        assert "No clean up is necessary" in caplog.text

    def test_delete_error_swallowed(self, mock_plane, caplog):
        """Test that deletion errors are logged and not raised."""
        caplog.set_level(logging.INFO)
        mock_plane.delete_resource_group.side_effect = HttpResponseError(message="Conflict")

        with provisioned_resource_group(mock_plane, "rg1", "eastus2"):
            pass

        assert "Failed to delete resource group" in caplog.text
        assert "Conflict" in caplog.text

    def test_delete_error_does_not_mask_block_error(self, mock_plane):
        """Test that the block's error wins over a deletion error."""
        mock_plane.delete_resource_group.side_effect = HttpResponseError(message="Conflict")

        with pytest.raises(RuntimeError, match="boom"):
            with provisioned_resource_group(mock_plane, "rg1", "eastus2"):
                raise RuntimeError("boom")


class TestWebAppUrl:
    """Test web app URL derivation."""

    def test_first_host_name(self):
        """Test that the first host name is used."""
        site = Mock(host_names=["a.azurewebsites.net", "b.example.com"])
        assert web_app_url(site) == "https://a.azurewebsites.net/"

    def test_default_host_name_fallback(self):
        """Test fallback to default_host_name."""
        site = Mock(host_names=None, default_host_name="a.azurewebsites.net")
        assert web_app_url(site) == "https://a.azurewebsites.net/"

    def test_no_host_names(self):
        """Test None when the site has no host names."""
        assert web_app_url(Mock(host_names=[], default_host_name=None)) is None


class TestMain:
    """Test top-level error handling."""

    def test_missing_credentials_logged(self, caplog):
        """Test that missing variables are logged and None is returned."""
        caplog.set_level(logging.INFO)

        assert main(environ={}) is None
        assert "Missing environment variables" in caplog.text

    def test_runs_sample(self, sp_environ, mock_plane):
        """Test that main wires settings, credential and plane together."""
        with (
            patch("webapp_autoscale.provisioning.create_credential") as mock_credential,
            patch(
                "webapp_autoscale.provisioning.ManagementPlane", return_value=mock_plane
            ) as mock_cls,
        ):
            result = main(environ=sp_environ)

        mock_cls.assert_called_once_with(
            mock_credential.return_value, sp_environ["SUBSCRIPTION_ID"]
        )
        assert isinstance(result, SampleResult)
        mock_plane.delete_resource_group.assert_called_once()

    def test_debug_logs_masked_settings(self, sp_environ, mock_plane, caplog):
        """Test that settings are logged at debug level without the secret."""
        caplog.set_level(logging.DEBUG, logger="webapp_autoscale.provisioning")

        with (
            patch("webapp_autoscale.provisioning.create_credential"),
            patch("webapp_autoscale.provisioning.ManagementPlane", return_value=mock_plane),
        ):
            main(environ=sp_environ)

        assert sp_environ["TENANT_ID"] in caplog.text
        assert "[REDACTED]" in caplog.text
        assert sp_environ["CLIENT_SECRET"] not in caplog.text

    def test_remote_error_sanitized(self, sp_environ, mock_plane, caplog):
        """Test that remote errors are logged without the client secret."""
        caplog.set_level(logging.INFO)
        secret = sp_environ["CLIENT_SECRET"]
        mock_plane.create_web_app.side_effect = HttpResponseError(
            message=f"Request failed for client secret {secret}"
        )

        with (
            patch("webapp_autoscale.provisioning.create_credential"),
            patch("webapp_autoscale.provisioning.ManagementPlane", return_value=mock_plane),
        ):
            assert main(environ=sp_environ) is None

        assert "Sample failed" in caplog.text
        assert secret not in caplog.text
        mock_plane.delete_resource_group.assert_called_once()


class TestManagementPlane:
    """Test ManagementPlane with injected SDK clients."""

    @pytest.fixture
    def clients(self):
        return Mock(), Mock(), Mock()

    @pytest.fixture
    def plane(self, clients):
        resource_client, web_client, monitor_client = clients
        return ManagementPlane(
            resource_client=resource_client,
            web_client=web_client,
            monitor_client=monitor_client,
        )

    def test_requires_credential_without_clients(self):
        """Test that missing credential and clients is rejected."""
        with pytest.raises(ValueError, match="credential"):
            ManagementPlane(subscription_id="sub")

    def test_create_resource_group(self, plane, clients):
        """Test resource group creation location."""
        resource_client = clients[0]
        plane.create_resource_group("rg1", "eastus2")

        name, group = resource_client.resource_groups.create_or_update.call_args.args
        assert name == "rg1"
        assert group.location == "eastus2"

    def test_delete_waits_for_completion(self, plane, clients):
        """Test that delete polls the long-running operation."""
        resource_client = clients[0]
        plane.delete_resource_group("rg1")

        resource_client.resource_groups.begin_delete.assert_called_once_with("rg1")
        resource_client.resource_groups.begin_delete.return_value.result.assert_called_once()

    def test_create_web_app_returns_poller_result(self, plane, clients):
        """Test that web app creation returns the completed resource."""
        web_client = clients[1]
        poller = web_client.web_apps.begin_create_or_update.return_value

        site = plane.create_web_app("rg1", "site1", "southcentralus")

        assert site is poller.result.return_value
        rg, name, envelope = web_client.web_apps.begin_create_or_update.call_args.args
        assert (rg, name) == ("rg1", "site1")
        assert envelope.location == "southcentralus"

    def test_create_app_service_plan(self, plane, clients):
        """Test App Service plan SKU and kind."""
        web_client = clients[1]
        plane.create_app_service_plan(
            "rg1", "plan1", "southcentralus", sku_name="P1", sku_tier="Premium", capacity=1
        )

        _rg, _name, plan = web_client.app_service_plans.begin_create_or_update.call_args.args
        assert plan.kind == "app"
        assert plan.sku.name == "P1"
        assert plan.sku.tier == "Premium"
        assert plan.sku.capacity == 1
        web_client.app_service_plans.begin_create_or_update.return_value.result.assert_called_once()

    def test_create_autoscale_setting(self, plane, clients):
        """Test that the autoscale resource is passed through."""
        monitor_client = clients[2]
        resource = Mock()

        result = plane.create_autoscale_setting("rg1", "autoscale1", resource)

        monitor_client.autoscale_settings.create_or_update.assert_called_once_with(
            "rg1", "autoscale1", resource
        )
        assert result is monitor_client.autoscale_settings.create_or_update.return_value
