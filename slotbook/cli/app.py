"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, load_config
from ..domain.exceptions import PersistenceError
from ..domain.hours_parser import HoursParser
from ..domain.models import WEEKDAY_TOKENS, GuestInfo
from ..adapters.memory_store import InMemoryReservationStore
from ..adapters.supabase_store import SupabaseReservationStore
from ..services.availability import AvailabilityService
from ..services.booking import BookingCoordinator

app = typer.Typer(
    name="slotbook",
    help="Freie Termine anzeigen und Reservierungen anlegen",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Demo-Daten im Speicher nutzen statt der Datenbank.")]
DateOption = Annotated[Optional[str], typer.Option("--date", "-d", help="Datum (YYYY-MM-DD), Standard: heute")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren.")]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


def _build_store(config: AppConfig, mock: bool):
    if mock:
        console.print("[yellow]⚠  MOCK-MODUS: Verwende Demo-Daten[/yellow]\n")
        return InMemoryReservationStore.with_demo_data()

    try:
        return SupabaseReservationStore.from_config(config.store)
    except ValueError as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


def _resolve_date(date_option: Optional[str], tz: str):
    if not date_option:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(date_option, "YYYY-MM-DD", tz=tz).date()
    except Exception as e:
        console.print(f"[red]Fehler beim Parsen des Datums: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def slots(
    business: Annotated[str, typer.Argument(help="Kennung (Slug) des Betriebs")],
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the bookable slots of a business for one day.

    Examples:

        slotbook slots trattoria-demo --mock
        slotbook slots trattoria-demo --date 2024-05-01
    """
    _setup_logging(verbose)
    config = _load(config_file)
    target_date = _resolve_date(date, config.timezone)
    store = _build_store(config, mock)
    service = AvailabilityService.from_config(config, store)

    try:
        entries = service.get_available_slots(business, target_date)
    except PersistenceError as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    if not entries:
        console.print(f"[yellow]⚠ Keine Termine am {target_date.isoformat()}.[/yellow]")
        return

    table = Table(
        title=f"{business} – {WEEKDAY_TOKENS[target_date.weekday()]}, {target_date.isoformat()}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Uhrzeit", style="bold")
    table.add_column("Status")
    table.add_column("Freie Plätze", justify="right")

    for entry in entries:
        if entry.full:
            status = "[red]voll[/red]"
        elif entry.too_soon:
            status = "[yellow]zu kurzfristig[/yellow]"
        else:
            status = "[green]frei[/green]"
        table.add_row(entry.time, status, str(entry.remaining))

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    business: Annotated[str, typer.Argument(help="Kennung (Slug) des Betriebs")],
    time: Annotated[str, typer.Option("--time", "-t", help="Uhrzeit (HH:MM)")],
    name: Annotated[str, typer.Option("--name", "-n", help="Name des Gastes")],
    date: DateOption = None,
    email: Annotated[Optional[str], typer.Option("--email", help="E-Mail des Gastes")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone", help="Telefonnummer")] = None,
    people: Annotated[Optional[int], typer.Option("--people", "-p", help="Anzahl Personen")] = None,
    service_name: Annotated[Optional[str], typer.Option("--service", help="Leistung (Friseur)")] = None,
    note: Annotated[Optional[str], typer.Option("--note", help="Notiz")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Submit a reservation.

    Exit code 0 on success, 2 if the slot is full, 1 otherwise.
    """
    _setup_logging(verbose)
    config = _load(config_file)
    target_date = _resolve_date(date, config.timezone)
    store = _build_store(config, mock)
    coordinator = BookingCoordinator.from_config(config, store)

    result = coordinator.submit_booking(
        business,
        target_date,
        time,
        GuestInfo(name=name, email=email, phone=phone, party_size=people, service=service_name, note=note),
    )

    if result.is_committed:
        reservation = result.reservation
        console.print(
            f"[bold green]✓ Reservierung gespeichert:[/bold green] "
            f"{reservation.date.isoformat()} {reservation.time} für {reservation.guest_name} "
            f"(#{reservation.reservation_id})"
        )
        return

    if result.is_slot_full:
        console.print("[yellow]Dieser Slot ist leider ausgebucht. Bitte eine andere Uhrzeit wählen.[/yellow]")
        raise typer.Exit(2)

    if result.errors:
        console.print("[bold red]Eingaben prüfen:[/bold red]")
        for field_name, message in result.errors.items():
            console.print(f"  {field_name}: {message}")
    else:
        hint = " (später erneut versuchen)" if result.retryable else ""
        console.print(f"[bold red]Speichern fehlgeschlagen{hint}.[/bold red]")
    raise typer.Exit(1)


@app.command()
def reservations(
    business: Annotated[str, typer.Argument(help="Kennung (Slug) des Betriebs")],
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the reservations of one day.
    """
    _setup_logging(verbose)
    config = _load(config_file)
    target_date = _resolve_date(date, config.timezone)
    store = _build_store(config, mock)
    service = AvailabilityService.from_config(config, store)

    try:
        items = service.list_reservations(business, target_date)
    except PersistenceError as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    if not items:
        console.print(f"[yellow]Keine Buchungen am {target_date.isoformat()}.[/yellow]")
        return

    table = Table(title=f"Buchungen {target_date.isoformat()}", show_header=True, header_style="bold cyan")
    table.add_column("Uhrzeit", style="bold")
    table.add_column("Name")
    table.add_column("Personen", justify="right")
    table.add_column("Leistung")
    table.add_column("Kontakt", style="dim")

    for item in items:
        table.add_row(
            item.time,
            item.guest_name,
            str(item.party_size or "-"),
            item.service or "-",
            item.guest_email or item.phone or "-",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def hours(
    text: Annotated[str, typer.Argument(help="Öffnungszeiten als Text, z. B. 'Mo-Fr 12:00-22:00'")],
    verbose: VerboseOption = False,
):
    """
    Parse opening hours text and show the resulting weekly schedule.
    """
    _setup_logging(verbose)
    parser = HoursParser()
    schedule = parser.parse(text.replace("\\n", "\n"))

    if schedule.is_empty():
        console.print("[yellow]⚠ Keine gültigen Öffnungszeiten erkannt (Standardzeiten greifen).[/yellow]")
        return

    table = Table(title="Wochenplan", show_header=True, header_style="bold cyan")
    table.add_column("Tag", style="bold yellow")
    table.add_column("Geöffnet")
    for weekday, token in enumerate(WEEKDAY_TOKENS):
        intervals = schedule.intervals_for(weekday)
        table.add_row(token, ", ".join(str(i) for i in intervals) if intervals else "[dim]geschlossen[/dim]")

    console.print()
    console.print(table)
    console.print(f"\n[bold]Normalform:[/bold]\n{parser.serialize(schedule)}\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
