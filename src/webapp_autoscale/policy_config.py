"""Autoscale policy configuration.

This module holds the tunable parameters of the autoscale policy builder and
their persistent storage in TOML format. Defaults reproduce the sample
scenario: scale out on more than 10 requests per 5 minutes, scale in on fewer
than 5 requests per 10 minutes, with a business-hours profile on weekdays
from 09:00 to 18:30 Pacific time.

File format:
    [autoscale]
    metric_name = "Requests"
    scale_out_threshold = 10
    scale_out_minutes = 5
    business_hours_start = "09:00"

    [autoscale.capacity.business_hours]
    minimum = 1
    maximum = 2
    default = 1
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import tomli
import tomlkit

from webapp_autoscale.autoscale_models import ScaleCapacity
from webapp_autoscale.exceptions import InvalidArgumentError, PolicyConfigError

logger = logging.getLogger(__name__)

POLICY_TABLE = "autoscale"
CAPACITY_KEYS = ("default", "business_hours", "off_hours")

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into an (hour, minute) tuple.

    Raises:
        InvalidArgumentError: If value is not a valid time of day
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidArgumentError(f"time of day must be HH:MM, got: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidArgumentError(f"time of day out of range: {value!r}")
    return hour, minute


def format_time_of_day(value: tuple[int, int]) -> str:
    """Format an (hour, minute) tuple as "HH:MM"."""
    return f"{value[0]:02d}:{value[1]:02d}"


@dataclass(frozen=True)
class AutoscalePolicy:
    """Tunable autoscale policy parameters.

    Durations are whole minutes in the file and timedelta here. Scale-out and
    scale-in triggers each use one duration for both the sampling grain and
    the evaluation window.
    """

    metric_name: str = "Requests"
    metric_namespace: str | None = "Microsoft.Web/sites"
    scale_out_threshold: float = 10
    scale_out_period: timedelta = timedelta(minutes=5)
    scale_in_threshold: float = 5
    scale_in_period: timedelta = timedelta(minutes=10)
    scale_step: int = 1
    cooldown: timedelta = timedelta(minutes=5)
    time_zone: str = "Pacific Standard Time"
    business_hours_start: tuple[int, int] = (9, 0)
    business_hours_end: tuple[int, int] = (18, 30)
    default_capacity: ScaleCapacity = field(default_factory=lambda: ScaleCapacity(1, 1, 1))
    business_hours_capacity: ScaleCapacity = field(
        default_factory=lambda: ScaleCapacity(minimum=1, maximum=2, default=1)
    )
    off_hours_capacity: ScaleCapacity = field(default_factory=lambda: ScaleCapacity(1, 1, 1))

    def __post_init__(self):
        """Validate values that models cannot check on their own."""
        if self.scale_step < 1:
            raise InvalidArgumentError(f"scale_step must be >= 1, got: {self.scale_step}")
        if self.scale_in_threshold > self.scale_out_threshold:
            raise InvalidArgumentError(
                "scale_in_threshold must not exceed scale_out_threshold "
                f"({self.scale_in_threshold} > {self.scale_out_threshold})"
            )
        if self.business_hours_start == self.business_hours_end:
            raise InvalidArgumentError(
                "business hours start and end must differ, both are "
                f"{format_time_of_day(self.business_hours_start)}"
            )
        # The file stores whole minutes
        for name in ("scale_out_period", "scale_in_period", "cooldown"):
            value = getattr(self, name)
            if value <= timedelta(0) or value % timedelta(minutes=1):
                raise InvalidArgumentError(
                    f"{name} must be a positive whole number of minutes, got: {value}"
                )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the TOML table layout.

        A metric_namespace of None is written as an empty string.
        """
        return {
            "metric_name": self.metric_name,
            "metric_namespace": self.metric_namespace or "",
            "scale_out_threshold": self.scale_out_threshold,
            "scale_out_minutes": _to_minutes(self.scale_out_period),
            "scale_in_threshold": self.scale_in_threshold,
            "scale_in_minutes": _to_minutes(self.scale_in_period),
            "scale_step": self.scale_step,
            "cooldown_minutes": _to_minutes(self.cooldown),
            "time_zone": self.time_zone,
            "business_hours_start": format_time_of_day(self.business_hours_start),
            "business_hours_end": format_time_of_day(self.business_hours_end),
            "capacity": {
                "default": _capacity_to_dict(self.default_capacity),
                "business_hours": _capacity_to_dict(self.business_hours_capacity),
                "off_hours": _capacity_to_dict(self.off_hours_capacity),
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutoscalePolicy":
        """Create from the TOML table layout. Missing keys keep defaults.

        Raises:
            PolicyConfigError: If unknown keys are present
            InvalidArgumentError: If a value is invalid or has the wrong type
        """
        defaults = cls()
        unknown = sorted(set(data) - set(defaults.to_dict()))
        if unknown:
            raise PolicyConfigError(f"Unknown autoscale policy keys: {', '.join(unknown)}")

        capacities = _get_table(data, "capacity")
        unknown_capacities = sorted(set(capacities) - set(CAPACITY_KEYS))
        if unknown_capacities:
            raise PolicyConfigError(
                f"Unknown capacity profiles: {', '.join(unknown_capacities)}"
            )

        metric_namespace = _get_str(
            data, "metric_namespace", defaults.metric_namespace, allow_empty=True
        )

        return cls(
            metric_name=_get_str(data, "metric_name", defaults.metric_name),
            metric_namespace=metric_namespace or None,
            scale_out_threshold=_get_number(
                data, "scale_out_threshold", defaults.scale_out_threshold
            ),
            scale_out_period=_from_minutes(data, "scale_out_minutes", defaults.scale_out_period),
            scale_in_threshold=_get_number(data, "scale_in_threshold", defaults.scale_in_threshold),
            scale_in_period=_from_minutes(data, "scale_in_minutes", defaults.scale_in_period),
            scale_step=_get_int(data, "scale_step", defaults.scale_step),
            cooldown=_from_minutes(data, "cooldown_minutes", defaults.cooldown),
            time_zone=_get_str(data, "time_zone", defaults.time_zone),
            business_hours_start=(
                parse_time_of_day(data["business_hours_start"])
                if "business_hours_start" in data
                else defaults.business_hours_start
            ),
            business_hours_end=(
                parse_time_of_day(data["business_hours_end"])
                if "business_hours_end" in data
                else defaults.business_hours_end
            ),
            default_capacity=_capacity_from_dict(
                capacities, "default", defaults.default_capacity
            ),
            business_hours_capacity=_capacity_from_dict(
                capacities, "business_hours", defaults.business_hours_capacity
            ),
            off_hours_capacity=_capacity_from_dict(
                capacities, "off_hours", defaults.off_hours_capacity
            ),
        )


def _to_minutes(value: timedelta) -> int:
    return int(value.total_seconds() // 60)


def _from_minutes(data: dict[str, Any], key: str, default: timedelta) -> timedelta:
    if key not in data:
        return default
    minutes = data[key]
    if not isinstance(minutes, int) or isinstance(minutes, bool) or minutes <= 0:
        raise InvalidArgumentError(f"{key} must be a positive whole number, got: {minutes!r}")
    return timedelta(minutes=minutes)


def _get_str(
    data: dict[str, Any], key: str, default: str | None, allow_empty: bool = False
) -> str | None:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, str) or not (allow_empty or value.strip()):
        raise InvalidArgumentError(f"{key} must be a non-empty string, got: {value!r}")
    return value


def _get_number(data: dict[str, Any], key: str, default: float) -> float:
    if key not in data:
        return default
    value = data[key]
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{key} must be a number, got: {value!r}")
    return value


def _get_int(data: dict[str, Any], key: str, default: int) -> int:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{key} must be a whole number, got: {value!r}")
    return value


def _get_table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise InvalidArgumentError(f"{key} must be a table, got: {value!r}")
    return value


def _capacity_to_dict(capacity: ScaleCapacity) -> dict[str, int]:
    return {
        "minimum": capacity.minimum,
        "maximum": capacity.maximum,
        "default": capacity.default,
    }


def _capacity_from_dict(
    capacities: dict[str, Any], profile: str, default: ScaleCapacity
) -> ScaleCapacity:
    if profile not in capacities:
        return default

    prefix = f"capacity.{profile}"
    data = capacities[profile]
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"{prefix} must be a table, got: {data!r}")
    unknown = sorted(set(data) - {"minimum", "maximum", "default"})
    if unknown:
        raise PolicyConfigError(f"Unknown keys in {prefix}: {', '.join(unknown)}")

    values = {
        name: _get_int(data, name, getattr(default, name))
        for name in ("minimum", "maximum", "default")
    }
    try:
        return ScaleCapacity(**values)
    except InvalidArgumentError as e:
        raise InvalidArgumentError(f"{prefix}: {e}") from e


def load_policy(path: str | Path | None = None) -> AutoscalePolicy:
    """Load an autoscale policy from a TOML file.

    Args:
        path: Policy file path. None returns the default policy.

    Returns:
        AutoscalePolicy object

    Raises:
        PolicyConfigError: If the file is missing, unreadable or invalid
    """
    if path is None:
        return AutoscalePolicy()

    policy_path = Path(path).expanduser()
    if not policy_path.exists():
        raise PolicyConfigError(f"Policy file not found: {policy_path}")

    try:
        with open(policy_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise PolicyConfigError(f"Failed to load policy: {e}") from e

    table = data.get(POLICY_TABLE)
    if not isinstance(table, dict):
        raise PolicyConfigError(f"Policy file {policy_path} has no [{POLICY_TABLE}] table")

    try:
        policy = AutoscalePolicy.from_dict(table)
    except InvalidArgumentError as e:
        raise PolicyConfigError(f"Invalid policy in {policy_path}: {e}") from e

    logger.debug(f"Loaded autoscale policy from: {policy_path}")
    return policy


def save_policy(policy: AutoscalePolicy, path: str | Path) -> Path:
    """Save an autoscale policy to a TOML file.

    Args:
        policy: Policy to save
        path: Destination file path

    Returns:
        Path written

    Raises:
        PolicyConfigError: If saving fails
    """
    policy_path = Path(path).expanduser()
    temp_path = policy_path.with_suffix(".tmp")

    try:
        policy_path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        doc.add(tomlkit.comment("webapp-autoscale policy. Durations are in minutes."))
        doc[POLICY_TABLE] = policy.to_dict()

        with open(temp_path, "w") as f:
            tomlkit.dump(doc, f)

        # Atomic rename
        temp_path.replace(policy_path)

    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise PolicyConfigError(f"Failed to save policy: {e}") from e

    logger.debug(f"Saved autoscale policy to: {policy_path}")
    return policy_path
