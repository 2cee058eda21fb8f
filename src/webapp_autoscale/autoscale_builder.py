"""Autoscale policy builder.

Assembles an AutoscaleSetting from a target resource (the App Service plan
being scaled), a metric source (the web app whose request count is observed)
and an AutoscalePolicy.

The result has three profiles sharing one scale-out/scale-in rule set:
- "Default profile": fallback with no recurrence
- "Monday to Friday": business hours, starting weekdays at 09:00
- The off-hours profile starting weekdays at 18:30. Its JSON-style name is
  the service's convention for restoring defaults after a recurring profile.

Construction is pure: no network calls, no clock, no randomness.
"""

import json

from webapp_autoscale.autoscale_models import (
    WEEKDAYS,
    AutoscaleProfile,
    AutoscaleRule,
    AutoscaleSetting,
    ComparisonOperator,
    MetricStatistic,
    MetricTrigger,
    Recurrence,
    RecurrenceFrequency,
    RecurrentSchedule,
    ScaleAction,
    ScaleDirection,
    ScaleType,
    TimeAggregation,
    validate_resource_reference,
)
from webapp_autoscale.policy_config import AutoscalePolicy

DEFAULT_PROFILE_NAME = "Default profile"
BUSINESS_HOURS_PROFILE_NAME = "Monday to Friday"
OFF_HOURS_PROFILE_NAME = json.dumps(
    {"name": "Default", "for": BUSINESS_HOURS_PROFILE_NAME}, separators=(",", ":")
)


def build_rules(
    metric_resource_id: str, policy: AutoscalePolicy | None = None
) -> tuple[AutoscaleRule, AutoscaleRule]:
    """Build the scale-out and scale-in rules, in that order.

    Args:
        metric_resource_id: Resource whose metric is observed
        policy: Policy parameters (defaults if None)

    Returns:
        (scale_out_rule, scale_in_rule)

    Raises:
        InvalidArgumentError: If metric_resource_id is empty or malformed
    """
    policy = policy or AutoscalePolicy()
    validate_resource_reference(metric_resource_id, "metric_resource_id")

    scale_out = AutoscaleRule(
        metric_trigger=MetricTrigger(
            metric_name=policy.metric_name,
            metric_resource_id=metric_resource_id,
            time_grain=policy.scale_out_period,
            statistic=MetricStatistic.SUM,
            time_window=policy.scale_out_period,
            time_aggregation=TimeAggregation.TOTAL,
            operator=ComparisonOperator.GREATER_THAN,
            threshold=policy.scale_out_threshold,
            metric_namespace=policy.metric_namespace,
        ),
        scale_action=ScaleAction(
            direction=ScaleDirection.INCREASE,
            scale_type=ScaleType.CHANGE_COUNT,
            value=policy.scale_step,
            cooldown=policy.cooldown,
        ),
    )

    scale_in = AutoscaleRule(
        metric_trigger=MetricTrigger(
            metric_name=policy.metric_name,
            metric_resource_id=metric_resource_id,
            time_grain=policy.scale_in_period,
            statistic=MetricStatistic.AVERAGE,
            time_window=policy.scale_in_period,
            time_aggregation=TimeAggregation.TOTAL,
            operator=ComparisonOperator.LESS_THAN,
            threshold=policy.scale_in_threshold,
            metric_namespace=policy.metric_namespace,
        ),
        scale_action=ScaleAction(
            direction=ScaleDirection.DECREASE,
            scale_type=ScaleType.CHANGE_COUNT,
            value=policy.scale_step,
            cooldown=policy.cooldown,
        ),
    )

    return scale_out, scale_in


def weekday_recurrence(time_zone: str, hour: int, minute: int) -> Recurrence:
    """Weekly recurrence firing Monday to Friday at hour:minute."""
    return Recurrence(
        frequency=RecurrenceFrequency.WEEK,
        schedule=RecurrentSchedule(
            time_zone=time_zone,
            days=WEEKDAYS,
            hours=(hour,),
            minutes=(minute,),
        ),
    )


def build_profiles(
    rules: tuple[AutoscaleRule, ...], policy: AutoscalePolicy | None = None
) -> tuple[AutoscaleProfile, AutoscaleProfile, AutoscaleProfile]:
    """Build the default, business-hours and off-hours profiles."""
    policy = policy or AutoscalePolicy()
    rules = tuple(rules)

    return (
        AutoscaleProfile(
            name=DEFAULT_PROFILE_NAME,
            capacity=policy.default_capacity,
            rules=rules,
        ),
        AutoscaleProfile(
            name=BUSINESS_HOURS_PROFILE_NAME,
            capacity=policy.business_hours_capacity,
            rules=rules,
            recurrence=weekday_recurrence(policy.time_zone, *policy.business_hours_start),
        ),
        AutoscaleProfile(
            name=OFF_HOURS_PROFILE_NAME,
            capacity=policy.off_hours_capacity,
            rules=rules,
            recurrence=weekday_recurrence(policy.time_zone, *policy.business_hours_end),
        ),
    )


def build_autoscale_setting(
    target_resource_id: str,
    metric_resource_id: str,
    policy: AutoscalePolicy | None = None,
) -> AutoscaleSetting:
    """Build a complete, enabled autoscale setting.

    Args:
        target_resource_id: Scalable resource (App Service plan) the setting attaches to
        metric_resource_id: Resource emitting the metric (may equal the target)
        policy: Policy parameters (defaults if None)

    Returns:
        AutoscaleSetting with three profiles of two rules each

    Raises:
        InvalidArgumentError: If a reference is empty or malformed, or a
            capacity violates minimum <= default <= maximum

    Example:
        >>> setting = build_autoscale_setting("plan-A", "site-B")
        >>> setting.profiles[0].rules[0].metric_trigger.threshold
        10
    """
    validate_resource_reference(target_resource_id, "target_resource_id")
    policy = policy or AutoscalePolicy()

    rules = build_rules(metric_resource_id, policy)
    return AutoscaleSetting(
        target_resource_id=target_resource_id,
        profiles=build_profiles(rules, policy),
        enabled=True,
    )
