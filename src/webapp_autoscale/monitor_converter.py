"""Map autoscale value objects onto Azure Monitor SDK models.

The azure-mgmt-monitor models own the wire format: they serialize durations
to ISO 8601, enum values to strings and field names to camelCase. This
module only copies values across.
"""

from typing import Any

from azure.mgmt.monitor.models import AutoscaleProfile as MonitorAutoscaleProfile
from azure.mgmt.monitor.models import AutoscaleSettingResource
from azure.mgmt.monitor.models import MetricTrigger as MonitorMetricTrigger
from azure.mgmt.monitor.models import Recurrence as MonitorRecurrence
from azure.mgmt.monitor.models import RecurrentSchedule as MonitorRecurrentSchedule
from azure.mgmt.monitor.models import ScaleAction as MonitorScaleAction
from azure.mgmt.monitor.models import ScaleCapacity as MonitorScaleCapacity
from azure.mgmt.monitor.models import ScaleRule

from webapp_autoscale.autoscale_models import (
    AutoscaleProfile,
    AutoscaleRule,
    AutoscaleSetting,
    Recurrence,
    ScaleCapacity,
)


def _to_scale_rule(rule: AutoscaleRule) -> ScaleRule:
    trigger = rule.metric_trigger
    action = rule.scale_action
    return ScaleRule(
        metric_trigger=MonitorMetricTrigger(
            metric_name=trigger.metric_name,
            metric_namespace=trigger.metric_namespace,
            metric_resource_uri=trigger.metric_resource_id,
            time_grain=trigger.time_grain,
            statistic=trigger.statistic.value,
            time_window=trigger.time_window,
            time_aggregation=trigger.time_aggregation.value,
            operator=trigger.operator.value,
            threshold=float(trigger.threshold),
        ),
        scale_action=MonitorScaleAction(
            direction=action.direction.value,
            type=action.scale_type.value,
            # The service takes the magnitude as a string
            value=str(action.value),
            cooldown=action.cooldown,
        ),
    )


def _to_capacity(capacity: ScaleCapacity) -> MonitorScaleCapacity:
    return MonitorScaleCapacity(
        minimum=str(capacity.minimum),
        maximum=str(capacity.maximum),
        default=str(capacity.default),
    )


def _to_recurrence(recurrence: Recurrence | None) -> MonitorRecurrence | None:
    if recurrence is None:
        return None

    schedule = recurrence.schedule
    return MonitorRecurrence(
        frequency=recurrence.frequency.value,
        schedule=MonitorRecurrentSchedule(
            time_zone=schedule.time_zone,
            days=[day.value for day in schedule.days],
            hours=list(schedule.hours),
            minutes=list(schedule.minutes),
        ),
    )


def _to_profile(profile: AutoscaleProfile) -> MonitorAutoscaleProfile:
    return MonitorAutoscaleProfile(
        name=profile.name,
        capacity=_to_capacity(profile.capacity),
        rules=[_to_scale_rule(rule) for rule in profile.rules],
        recurrence=_to_recurrence(profile.recurrence),
    )


def to_autoscale_setting_resource(
    setting: AutoscaleSetting, location: str
) -> AutoscaleSettingResource:
    """Convert an AutoscaleSetting to the SDK resource submitted to Azure.

    Args:
        setting: Autoscale setting to convert
        location: Azure region for the autoscale setting resource

    Returns:
        AutoscaleSettingResource ready for autoscale_settings.create_or_update
    """
    return AutoscaleSettingResource(
        location=location,
        profiles=[_to_profile(profile) for profile in setting.profiles],
        enabled=setting.enabled,
        target_resource_uri=setting.target_resource_id,
    )


def to_wire_dict(setting: AutoscaleSetting, location: str) -> dict[str, Any]:
    """Return the REST request body the SDK would send for this setting."""
    return to_autoscale_setting_resource(setting, location).serialize()
