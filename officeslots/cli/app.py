"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.memory_repository import InMemorySchedulingRepository
from ..config import AppConfig, get_default_config_path
from ..domain.availability import AvailabilityService
from ..domain.exceptions import OfficeSlotsError
from ..domain.work_schedule_calculator import WorkScheduleCalculator
from ..presentation import (
    format_datetime_24h,
    format_duration,
    format_time_range,
    weekly_availability_to_dict,
)
from ..services.weekly_availability import WeeklyAvailability, WeeklyAvailabilityCalculator

app = typer.Typer(
    name="officeslots",
    help="Compute bookable appointment slots for a provider at an office",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path], data_file: Optional[Path]) -> Tuple[AppConfig, InMemorySchedulingRepository]:
    """Load configuration and the scheduling data it points to."""
    config_path = config_file or get_default_config_path()
    if config_path.exists():
        config = AppConfig.load_from_yaml(config_path)
    else:
        logger.debug("No config file at %s, using defaults", config_path)
        config = AppConfig()

    data_path = data_file or config.resolve_data_file(config_path.parent)
    if data_path is None:
        raise typer.BadParameter("No data file given. Use --data or set data_file in the config.")

    return config, InMemorySchedulingRepository.load_from_yaml(data_path, config.timezone)


def _determine_week_start(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    week_start: Optional[str],
) -> Optional[str]:
    """
    Resolve the week to show from shortcut flags or an explicit date.
    Returns None for "current week" so the calculator applies its default.
    """
    if this_week and next_week:
        console.print("[red]Error: --this-week and --next-week cannot be used together.[/red]")
        raise typer.Exit(1)

    if next_week:
        return pendulum.now(tz).start_of("week").add(weeks=1).format("YYYY-MM-DD")

    if this_week:
        return None

    return week_start


def _render_week(result: WeeklyAvailability) -> None:
    tz = result.office.timezone

    console.print(
        f"\n[bold cyan]Week {result.week_start} - {result.week_end}[/bold cyan] "
        f"[dim]({result.office.name or result.office.id}, {tz})[/dim]\n"
    )

    for day in result.week_range():
        slots = result.slots_by_day.get(day, [])
        if not slots:
            console.print(f"[dim]{day.format('dddd, YYYY-MM-DD')}: no slots[/dim]")
            continue

        table = Table(
            title=day.format("dddd, YYYY-MM-DD"),
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold")
        table.add_column("Status")

        for slot in slots:
            status = "[green]available[/green]" if slot.is_available else "[red]busy[/red]"
            table.add_row(format_time_range(slot.start, slot.end, tz), status)

        console.print(table)

    console.print()
    console.print(Panel.fit(
        f"[bold]Total slots:[/bold] {result.total_slots}\n"
        f"[bold green]Available:[/bold green] {result.available_slots}\n"
        f"[bold red]Busy:[/bold red] {result.busy_slots}",
        title="Summary"
    ))
    console.print()


@app.command()
def week(
    office_id: Annotated[str, typer.Option("--office", "-o", help="Office ID")],
    provider_id: Annotated[str, typer.Option("--provider", "-p", help="Provider ID")],
    week_start: Annotated[Optional[str], typer.Option("--week-start", help="First day of the week (YYYY-MM-DD)")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Show the current week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Show the coming week (Monday-Sunday).")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", "-d", help="Path to the scheduling data YAML file")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Show the slot grid of a provider at an office for one week.

    Examples:

        officeslots week --office main --provider dr-smith
        officeslots week -o main -p dr-smith --next-week
        officeslots week -o main -p dr-smith --week-start 2025-01-06 --json
    """
    _configure_logging(verbose)

    try:
        config, repository = _load(config_file, data_file)
        office = repository.office(office_id)

        calculator = WeeklyAvailabilityCalculator(
            repository,
            office=office,
            provider_id=provider_id,
            week_start=_determine_week_start(
                tz=office.timezone,
                this_week=this_week,
                next_week=next_week,
                week_start=week_start,
            ),
            blocking_policy=config.blocking_policy(),
        )
        result = calculator.calculate()

        if as_json:
            typer.echo(json.dumps(weekly_availability_to_dict(result), indent=2))
        else:
            _render_week(result)

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except OfficeSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def schedules(
    office_id: Annotated[str, typer.Option("--office", "-o", help="Office ID")],
    provider_id: Annotated[str, typer.Option("--provider", "-p", help="Provider ID")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", "-d", help="Path to the scheduling data YAML file")] = None,
):
    """
    List the weekly work schedules of a provider with their capacity.
    """
    try:
        config, repository = _load(config_file, data_file)
        repository.office(office_id)

        table = Table(
            title=f"Work schedules of {provider_id} at {office_id}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold yellow")
        table.add_column("Work periods")
        table.add_column("Slot / buffer", style="dim")
        table.add_column("Work time", justify="right")
        table.add_column("Max appointments", justify="right")

        for schedule in repository.schedules_for_week(office_id, provider_id, config.defaults):
            if not schedule.is_active:
                table.add_row(schedule.day_name, "[dim]not working[/dim]", "", "", "")
                continue

            calculator = WorkScheduleCalculator(schedule)
            table.add_row(
                schedule.day_name,
                ", ".join(f"{p.start}-{p.end}" for p in schedule.work_periods) or "-",
                f"{schedule.slot_duration_minutes}m / {schedule.slot_buffer_minutes}m",
                format_duration(calculator.total_work_minutes()),
                str(calculator.max_appointments_per_day()),
            )

        console.print()
        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except OfficeSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    office_id: Annotated[str, typer.Option("--office", "-o", help="Office ID")],
    provider_id: Annotated[str, typer.Option("--provider", "-p", help="Provider ID")],
    start: Annotated[str, typer.Option("--start", help="Start (YYYY-MM-DD HH:mm, office time)")],
    duration: Annotated[int, typer.Option("--duration", help="Duration in minutes")] = 50,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", "-d", help="Path to the scheduling data YAML file")] = None,
):
    """
    Check whether a time range is currently free.

    The answer is advisory: booking must re-check against fresh data.
    """
    try:
        config, repository = _load(config_file, data_file)
        office = repository.office(office_id)

        try:
            range_start = pendulum.parse(start, tz=office.timezone)
        except ValueError as e:
            console.print(f"[red]Could not parse start time: {e}[/red]")
            raise typer.Exit(1)

        if not isinstance(range_start, DateTime):
            console.print(f"[red]Start must be a date and time (YYYY-MM-DD HH:mm), got {start!r}[/red]")
            raise typer.Exit(1)

        range_end = range_start.add(minutes=duration)
        day_start = range_start.start_of("day")

        service = AvailabilityService(
            office=office,
            work_schedules=repository.work_schedules_for(office_id, provider_id),
            appointments=repository.appointments_for(
                office_id, provider_id, day_start, day_start.add(days=1)
            ),
            blocking_policy=config.blocking_policy(),
        )

        label = f"{format_datetime_24h(range_start)} - {range_end.format('HH:mm')}"
        if service.is_available(range_start, range_end):
            console.print(f"[bold green]✓ {label} is available[/bold green]")
        else:
            console.print(f"[bold red]✗ {label} is not available[/bold red]")
            raise typer.Exit(2)

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except OfficeSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]officeslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
