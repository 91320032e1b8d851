"""Command-line interface for cronsched.

Commands:
    cronsched validate: Check a schedule time
    cronsched next: Show upcoming execution times
    cronsched last: Show the most recent execution time
    cronsched aliases: List the aliases of the default grammar
"""

import logging
from datetime import datetime, tzinfo
from typing import Annotated, Optional

import pytz
import typer
from rich.console import Console
from rich.table import Table

from cronsched.config import LOG_LEVELS, ConfigError, EngineConfig, get_config
from cronsched.schedule import Schedule
from cronsched.scheduling.errors import CronParseError
from cronsched.scheduling.execution import CronIterator
from cronsched.scheduling.grammar import DEFAULT_GRAMMAR

app = typer.Typer(
    name="cronsched",
    help="Inspect cron schedule times",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Type Aliases
# =============================================================================

TimeArg = Annotated[str, typer.Argument(help="Cron expression, alias or @reboot")]

TzOpt = Annotated[
    Optional[str],
    typer.Option("--tz", help="Time zone name (default: configured zone or system local)"),
]

RebootOpt = Annotated[
    bool,
    typer.Option("--reboot-supported", help="Accept @reboot as schedule time"),
]


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help=f"Log level ({', '.join(LOG_LEVELS)})"),
    ] = None,
) -> None:
    """Inspect cron schedule times."""
    config = _config()
    level = (log_level or config.log_level).upper()
    if level not in LOG_LEVELS:
        typer.echo(f"Error: Unknown log level: {level}", err=True)
        raise typer.Exit(1)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _config() -> EngineConfig:
    try:
        return get_config()
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _resolve_zone(name: str | None) -> tzinfo | None:
    if name is None:
        return _config().tzinfo()
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        typer.echo(f"Error: Unknown time zone: {name}", err=True)
        raise typer.Exit(1)


def _reference_time(value: str | None, tz: tzinfo | None) -> datetime:
    if value is None:
        return datetime.now(tz) if tz else datetime.now()

    try:
        reference = datetime.fromisoformat(value)
    except ValueError:
        typer.echo(f"Error: Invalid ISO datetime: {value}", err=True)
        raise typer.Exit(1)

    if tz is None:
        return reference
    if reference.tzinfo is None:
        return tz.localize(reference) if hasattr(tz, "localize") else reference.replace(tzinfo=tz)
    return reference.astimezone(tz)


def _load(time: str, reboot_supported: bool = False) -> Schedule:
    try:
        return Schedule.create("cli", time, reboot_supported=reboot_supported)
    except CronParseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _format(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M %Z").strip()


@app.command(name="validate")
def validate_cmd(time: TimeArg, reboot_supported: RebootOpt = False) -> None:
    """Validate a schedule time."""
    schedule = _load(time, reboot_supported)
    if schedule.should_run_on_reboot():
        typer.echo(f"Valid: '{time}' runs on reboot")
        return

    fields = ", ".join(
        f"{f.field_type.label}={f.original}" for f in schedule.time_cron.fields
    )
    typer.echo(f"Valid: '{time}' ({fields})")


@app.command(name="next")
def next_cmd(
    time: TimeArg,
    count: Annotated[int, typer.Option("--count", "-n", min=1, help="Number of executions")] = 5,
    after: Annotated[
        Optional[str],
        typer.Option("--after", help="Reference time in ISO format (default: now)"),
    ] = None,
    tz: TzOpt = None,
) -> None:
    """Show upcoming execution times."""
    schedule = _load(time)
    zone = _resolve_zone(tz)
    reference = _reference_time(after, zone)

    upcoming = list(CronIterator(schedule.execution_time, reference, limit=count))
    if not upcoming:
        typer.echo(f"No execution of '{time}' after {_format(reference)}")
        raise typer.Exit(1)

    table = Table(title=f"Next executions of '{time}'", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Execution", style="cyan", no_wrap=True)
    table.add_column("In", justify="right")
    for index, dt in enumerate(upcoming, start=1):
        table.add_row(str(index), _format(dt), str(dt - reference).split(".")[0])
    console.print(table)


@app.command(name="last")
def last_cmd(
    time: TimeArg,
    before: Annotated[
        Optional[str],
        typer.Option("--before", help="Reference time in ISO format (default: now)"),
    ] = None,
    tz: TzOpt = None,
) -> None:
    """Show the most recent execution time."""
    schedule = _load(time)
    zone = _resolve_zone(tz)
    reference = _reference_time(before, zone)

    last = schedule.execution_time.last_execution(reference)
    if last is None:
        typer.echo(f"No execution of '{time}' before {_format(reference)}")
        raise typer.Exit(1)
    typer.echo(_format(last))


@app.command(name="aliases")
def aliases_cmd() -> None:
    """List the aliases of the default grammar."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Alias", style="cyan")
    table.add_column("Expression")
    for alias, expression in DEFAULT_GRAMMAR.aliases.items():
        table.add_row(alias, expression)
    table.add_row("@reboot", "on startup (where supported)")
    console.print(table)


if __name__ == "__main__":
    app()
