"""Autoscale policy data models.

This module defines the value objects that make up an autoscale setting:
- Enums for statistics, aggregations, operators, directions and days
- MetricTrigger / ScaleAction / AutoscaleRule
- RecurrentSchedule / Recurrence
- ScaleCapacity / AutoscaleProfile / AutoscaleSetting

Design:
- Frozen dataclasses, sequences stored as tuples
- Invariants validated in __post_init__ (InvalidArgumentError)
- No SDK types here; see monitor_converter for the Azure mapping
"""

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum

from webapp_autoscale.exceptions import InvalidArgumentError

# Resource references never contain whitespace or control characters
_REFERENCE_PATTERN = re.compile(r"\S+")


def validate_resource_reference(value: str, field_name: str) -> None:
    """Validate a resource reference. Raises InvalidArgumentError if invalid.

    Args:
        value: Resource ID or other non-empty reference string
        field_name: Name of the field for error messages

    Raises:
        InvalidArgumentError: If value is empty, not a string, or contains whitespace
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field_name} must be a non-empty resource reference")

    if not _REFERENCE_PATTERN.fullmatch(value):
        raise InvalidArgumentError(f"{field_name} must not contain whitespace, got: {value!r}")


def _validate_positive_duration(value: timedelta, field_name: str) -> None:
    if not isinstance(value, timedelta) or value <= timedelta(0):
        raise InvalidArgumentError(f"{field_name} must be a positive duration, got: {value!r}")


class MetricStatistic(StrEnum):
    """How metric samples are combined within one time grain."""

    AVERAGE = "Average"
    MIN = "Min"
    MAX = "Max"
    SUM = "Sum"
    COUNT = "Count"


class TimeAggregation(StrEnum):
    """How time-grain values are combined across the time window."""

    AVERAGE = "Average"
    MINIMUM = "Minimum"
    MAXIMUM = "Maximum"
    TOTAL = "Total"
    COUNT = "Count"
    LAST = "Last"


class ComparisonOperator(StrEnum):
    """Operator comparing the aggregated metric against the threshold."""

    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_OR_EQUAL = "GreaterThanOrEqual"
    LESS_THAN = "LessThan"
    LESS_THAN_OR_EQUAL = "LessThanOrEqual"


class ScaleDirection(StrEnum):
    """Scale direction."""

    NONE = "None"
    INCREASE = "Increase"
    DECREASE = "Decrease"


class ScaleType(StrEnum):
    """How the scale action magnitude is interpreted."""

    CHANGE_COUNT = "ChangeCount"
    PERCENT_CHANGE_COUNT = "PercentChangeCount"
    EXACT_COUNT = "ExactCount"


class RecurrenceFrequency(StrEnum):
    """Recurrence frequency. Autoscale schedules only support weekly."""

    WEEK = "Week"


class DayOfWeek(StrEnum):
    """Day names as the autoscale service expects them."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


WEEKDAYS: tuple[DayOfWeek, ...] = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)


@dataclass(frozen=True)
class MetricTrigger:
    """Condition under which a rule fires."""

    metric_name: str
    metric_resource_id: str
    time_grain: timedelta
    statistic: MetricStatistic
    time_window: timedelta
    time_aggregation: TimeAggregation
    operator: ComparisonOperator
    threshold: float
    metric_namespace: str | None = None

    def __post_init__(self):
        """Validate metric source, name and durations."""
        if not self.metric_name or not self.metric_name.strip():
            raise InvalidArgumentError("metric_name must not be empty")
        validate_resource_reference(self.metric_resource_id, "metric_resource_id")
        _validate_positive_duration(self.time_grain, "time_grain")
        _validate_positive_duration(self.time_window, "time_window")
        # The service rejects windows shorter than the sampling grain
        if self.time_window < self.time_grain:
            raise InvalidArgumentError(
                f"time_window ({self.time_window}) must not be shorter than "
                f"time_grain ({self.time_grain})"
            )


@dataclass(frozen=True)
class ScaleAction:
    """What happens when a trigger fires."""

    direction: ScaleDirection
    scale_type: ScaleType
    value: int
    cooldown: timedelta

    def __post_init__(self):
        """Validate magnitude and cooldown."""
        if self.value < 0:
            raise InvalidArgumentError(f"scale action value must be >= 0, got: {self.value}")
        _validate_positive_duration(self.cooldown, "cooldown")


@dataclass(frozen=True)
class AutoscaleRule:
    """Exactly one trigger paired with exactly one action."""

    metric_trigger: MetricTrigger
    scale_action: ScaleAction


@dataclass(frozen=True)
class RecurrentSchedule:
    """Days and times of day at which a recurring profile starts."""

    time_zone: str
    days: tuple[DayOfWeek, ...]
    hours: tuple[int, ...]
    minutes: tuple[int, ...]

    def __post_init__(self):
        """Validate time zone, days and time-of-day ranges."""
        if not self.time_zone or not self.time_zone.strip():
            raise InvalidArgumentError("time_zone must not be empty")
        if not self.days:
            raise InvalidArgumentError("schedule must include at least one day")
        if len(set(self.days)) != len(self.days):
            raise InvalidArgumentError(f"schedule days must be unique, got: {self.days}")
        if not self.hours or any(not 0 <= hour <= 23 for hour in self.hours):
            raise InvalidArgumentError(f"hours must be within 0-23, got: {self.hours}")
        if not self.minutes or any(not 0 <= minute <= 59 for minute in self.minutes):
            raise InvalidArgumentError(f"minutes must be within 0-59, got: {self.minutes}")

    @property
    def start_times(self) -> tuple[tuple[int, int], ...]:
        """All (hour, minute) pairs at which this schedule fires."""
        return tuple((hour, minute) for hour in self.hours for minute in self.minutes)


@dataclass(frozen=True)
class Recurrence:
    """Repeating schedule for a profile."""

    frequency: RecurrenceFrequency
    schedule: RecurrentSchedule


@dataclass(frozen=True)
class ScaleCapacity:
    """Instance count bounds for a profile.

    Invariant: 0 <= minimum <= default <= maximum.
    """

    minimum: int
    maximum: int
    default: int

    def __post_init__(self):
        """Validate capacity ordering."""
        if min(self.minimum, self.maximum, self.default) < 0:
            raise InvalidArgumentError(f"capacity values must be >= 0, got: {self}")
        if not self.minimum <= self.default <= self.maximum:
            raise InvalidArgumentError(
                f"capacity must satisfy minimum <= default <= maximum, "
                f"got minimum={self.minimum} default={self.default} maximum={self.maximum}"
            )


@dataclass(frozen=True)
class AutoscaleProfile:
    """Named capacity and rules, optionally active only on a schedule.

    A profile without a recurrence is the fallback used whenever no
    recurring profile matches the current time.
    """

    name: str
    capacity: ScaleCapacity
    rules: tuple[AutoscaleRule, ...]
    recurrence: Recurrence | None = None

    def __post_init__(self):
        """Validate profile name."""
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("profile name must not be empty")

    @property
    def is_default(self) -> bool:
        """True when this profile has no recurrence."""
        return self.recurrence is None


@dataclass(frozen=True)
class AutoscaleSetting:
    """Top-level autoscale policy attached to a scalable resource."""

    target_resource_id: str
    profiles: tuple[AutoscaleProfile, ...]
    enabled: bool = True

    def __post_init__(self):
        """Validate target and profile names."""
        validate_resource_reference(self.target_resource_id, "target_resource_id")
        if not self.profiles:
            raise InvalidArgumentError("autoscale setting requires at least one profile")

        names = [profile.name for profile in self.profiles]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise InvalidArgumentError(f"profile names must be unique, duplicates: {duplicates}")

    def get_profile(self, name: str) -> AutoscaleProfile | None:
        """Return the profile with the given name, or None."""
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None
