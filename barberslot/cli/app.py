"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_store import InMemoryBookingStore
from ..adapters.rest_store import RestBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability import AvailabilityCalculator, group_slots_by_hour
from ..domain.exceptions import SchedulingError, SlotConflictError
from ..domain.grid_mapper import GridMapper
from ..services.booking_service import BookingService, BookingStoreProtocol

app = typer.Typer(
    name="barberslot",
    help="Find free appointment slots and plan agenda drag-and-drop moves",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled mock bookings instead of the configured store."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    barberslot command line interface.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig, mock: bool) -> BookingStoreProtocol:
    """Pick the booking store for the configured backend."""
    if mock or config.store.backend == "memory":
        return InMemoryBookingStore.from_json(config.store.data_file, timezone=config.timezone)

    return RestBookingStore(
        base_url=config.store.base_url,
        api_key=config.store.api_key,
        table=config.store.table,
        timezone=config.timezone,
    )


def _build_service(config: AppConfig, store: BookingStoreProtocol) -> BookingService:
    calculator = AvailabilityCalculator(
        operating_hours=config.operating_hours.to_domain(),
        slot_granularity_minutes=config.booking.slot_granularity_minutes,
        minimum_lead_time_minutes=config.booking.minimum_lead_time_minutes,
    )
    grid_mapper = GridMapper(
        start_hour=config.agenda.start_hour,
        hour_count=config.agenda.hour_count,
        pixels_per_hour=config.agenda.pixels_per_hour,
        rounding_minutes=config.agenda.rounding_minutes,
    )
    return BookingService(
        store=store,
        calculator=calculator,
        grid_mapper=grid_mapper,
        hours_by_professional=config.hours_by_professional(),
        timezone=config.timezone,
    )


def _parse_day(value: Optional[str], tz: str) -> DateTime:
    """Parse YYYY-MM-DD, defaulting to today."""
    if not value:
        return pendulum.now(tz).start_of("day")
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).start_of("day")
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD: {e}") from e


def _print_conflict(error: SlotConflictError) -> None:
    console.print(f"[bold red]Conflict:[/bold red] {error}")
    for booking in error.conflicts:
        console.print(f"  [yellow]{booking.booking_id or '-'}[/yellow] {booking.time_range}")


@app.command()
def slots(
    professional: Annotated[str, typer.Argument(help="Professional id or name")],
    config_file: ConfigOption = None,
    day: Annotated[Optional[str], typer.Option("--date", help="Day (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    mock: MockOption = False,
):
    """
    List the bookable start times of a professional on one day.

    Examples:

        barberslot slots luis --date 2031-03-10

        barberslot slots William --duration 45 --mock
    """
    try:
        config = _load_config(config_file)
        professional_id = config.resolve_professional(professional)
        target_day = _parse_day(day, config.timezone)
        minutes = duration if duration is not None else config.booking.default_service_minutes

        service = _build_service(config, _build_store(config, mock))
        found = asyncio.run(service.available_slots(professional_id, target_day, minutes))
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    hours = config.hours_for(professional_id)
    console.print(
        f"\n[bold cyan]{target_day.format('DD/MM/YYYY')}[/bold cyan] | "
        f"{professional_id} | {minutes} min | "
        f"open {hours.open_hour:02d}:00 - {hours.close_hour:02d}:00\n"
    )

    if not found:
        console.print("[yellow]No slots available for this day.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Hour", style="bold yellow")
    table.add_column("Options", justify="right")
    table.add_column("Start times")

    for hour, hour_slots in group_slots_by_hour(found).items():
        table.add_row(
            f"{hour:02d}:00",
            str(len(hour_slots)),
            " ".join(slot.label for slot in hour_slots),
        )

    console.print(table)
    console.print(f"\n[green]{len(found)} slot(s) available[/green]\n")


@app.command()
def drop(
    booking_id: Annotated[str, typer.Argument(help="Id of the dragged booking")],
    offset: Annotated[float, typer.Option("--offset", help="Vertical drop position in pixels from the grid top")],
    config_file: ConfigOption = None,
    day: Annotated[Optional[str], typer.Option("--date", help="Target day (YYYY-MM-DD), defaults to the booking's day")] = None,
    apply: Annotated[bool, typer.Option("--apply", help="Persist the move after the collision check.")] = False,
    mock: MockOption = False,
):
    """
    Resolve a drag-and-drop on the agenda grid into a reschedule.
    """
    try:
        config = _load_config(config_file)
        store = _build_store(config, mock)
        service = _build_service(config, store)

        async def run():
            if day:
                target_day = _parse_day(day, config.timezone)
            else:
                target_day = (await store.get_booking(booking_id)).start
            proposal = await service.propose_drop(booking_id, target_day, offset)
            if apply:
                await service.apply(proposal)
            return proposal

        proposal = asyncio.run(run())
    except SlotConflictError as e:
        _print_conflict(e)
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold green]Target:[/bold green] {proposal.time_range}")
    if apply:
        console.print(f"[green]Booking {booking_id} moved.[/green]")
        if mock or config.store.backend == "memory":
            console.print("[yellow]In-memory store: the move is not kept after exit.[/yellow]")
    else:
        console.print("Dry run, pass --apply to move the booking.")
    console.print()


@app.command()
def professionals(config_file: ConfigOption = None):
    """
    List all configured professionals.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.professionals:
        console.print("[yellow]No professionals defined in the config file.[/yellow]")
        return

    table = Table(
        title="Professionals",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Id", style="bold yellow")
    table.add_column("Name")
    table.add_column("Specialty", style="dim")
    table.add_column("Hours")

    for professional in config.professionals:
        hours = config.hours_for(professional.id)
        table.add_row(
            professional.id,
            professional.name,
            professional.specialty,
            f"{hours.open_hour:02d}:00 - {hours.close_hour:02d}:00",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslot[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
