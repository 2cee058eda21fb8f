"""Command-line entry point for webapp-autoscale.

Commands:
    run      Provision the web app, plan and autoscale setting, then clean up
    policy   Build and print an autoscale policy offline
    config   Write or show an autoscale policy file

Running with no command is the same as `webapp-autoscale run`.
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from webapp_autoscale import __version__
from webapp_autoscale.autoscale_builder import build_autoscale_setting
from webapp_autoscale.autoscale_models import AutoscaleSetting
from webapp_autoscale.exceptions import InvalidArgumentError, PolicyConfigError
from webapp_autoscale.monitor_converter import to_wire_dict
from webapp_autoscale.policy_config import (
    AutoscalePolicy,
    format_time_of_day,
    load_policy,
    save_policy,
)
from webapp_autoscale.provisioning import ProvisioningOptions, main as run_main

logger = logging.getLogger(__name__)

policy_file_option = click.option(
    "--policy-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Autoscale policy TOML file (defaults are used if omitted)",
)


def _load_policy_or_exit(policy_file: str | None) -> AutoscalePolicy:
    try:
        return load_policy(policy_file)
    except PolicyConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _minutes(value) -> str:
    return f"{int(value.total_seconds() // 60)}m"


def render_setting(setting: AutoscaleSetting) -> Table:
    """Render an autoscale setting as a rich table, one row per profile rule."""
    table = Table(
        title=f"Autoscale setting for {setting.target_resource_id}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Profile", style="cyan")
    table.add_column("Capacity (min/default/max)")
    table.add_column("Schedule", style="dim")
    table.add_column("Trigger")
    table.add_column("Action", style="green")

    for profile in setting.profiles:
        capacity = profile.capacity
        capacity_text = f"{capacity.minimum}/{capacity.default}/{capacity.maximum}"

        if profile.recurrence is None:
            schedule_text = "always (fallback)"
        else:
            schedule = profile.recurrence.schedule
            days = ",".join(day.value[:3] for day in schedule.days)
            times = ",".join(format_time_of_day(t) for t in schedule.start_times)
            schedule_text = f"{days} {times} {schedule.time_zone}"

        for index, rule in enumerate(profile.rules):
            trigger = rule.metric_trigger
            action = rule.scale_action
            table.add_row(
                profile.name if index == 0 else "",
                capacity_text if index == 0 else "",
                schedule_text if index == 0 else "",
                f"{trigger.statistic.value}({trigger.metric_name}) over "
                f"{_minutes(trigger.time_window)} {trigger.operator.value} {trigger.threshold:g}",
                f"{action.direction.value} {action.value} "
                f"(cooldown {_minutes(action.cooldown)})",
            )

    return table


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """webapp-autoscale - Azure Web App autoscale sample.

    Provisions a Web App and App Service plan, configures autoscale rules
    based on request count and a weekday schedule, then deletes everything.

    \b
    CREDENTIALS (environment variables):
        CLIENT_ID, CLIENT_SECRET, TENANT_ID, SUBSCRIPTION_ID

    \b
    Examples:
        webapp-autoscale
        webapp-autoscale run --policy-file policy.toml
        webapp-autoscale policy --target plan-A --metric-source site-B
        webapp-autoscale config init policy.toml
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@policy_file_option
@click.option("--location", default=None, help="Region for the web app, plan and setting")
def run(policy_file: str | None = None, location: str | None = None) -> None:
    """Provision, configure autoscale, and clean up.

    Failures are logged; the resource group is always deleted.
    """
    policy = _load_policy_or_exit(policy_file)
    options = ProvisioningOptions(location=location) if location else ProvisioningOptions()
    run_main(policy=policy, options=options)


@main.command()
@click.option("--target", required=True, help="Resource ID of the App Service plan to scale")
@click.option("--metric-source", required=True, help="Resource ID of the web app to observe")
@policy_file_option
@click.option("--location", default="southcentralus", help="Region for the setting resource")
@click.option("--json", "as_json", is_flag=True, help="Print the REST request body as JSON")
def policy(
    target: str, metric_source: str, policy_file: str | None, location: str, as_json: bool
) -> None:
    """Build an autoscale policy without contacting Azure.

    \b
    Examples:
        webapp-autoscale policy --target plan-A --metric-source site-B
        webapp-autoscale policy --target plan-A --metric-source site-B --json
    """
    autoscale_policy = _load_policy_or_exit(policy_file)

    try:
        setting = build_autoscale_setting(target, metric_source, autoscale_policy)
    except InvalidArgumentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(to_wire_dict(setting, location), indent=2))
        return

    Console().print(render_setting(setting))


@main.group(name="config")
def config_group() -> None:
    """Autoscale policy files."""
    pass


@config_group.command(name="init")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str, force: bool) -> None:
    """Write the default autoscale policy to PATH."""
    if Path(path).exists() and not force:
        click.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    try:
        written = save_policy(AutoscalePolicy(), path)
    except PolicyConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Wrote default autoscale policy to {written}")


@config_group.command(name="show")
@click.argument("path", type=click.Path(dir_okay=False))
def config_show(path: str) -> None:
    """Show the autoscale policy stored in PATH."""
    autoscale_policy = _load_policy_or_exit(path)

    table = Table(title=f"Autoscale policy ({path})", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in autoscale_policy.to_dict().items():
        if key == "capacity":
            for profile, capacity in value.items():
                table.add_row(
                    f"capacity.{profile}",
                    f"{capacity['minimum']}/{capacity['default']}/{capacity['maximum']}",
                )
        else:
            table.add_row(key, str(value))

    Console().print(table)


if __name__ == "__main__":
    main()
