"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.google_calendar import GoogleBusyPeriodProvider, token_lookup_from_config
from ..adapters.mock_calendar import MockBusyPeriodProvider
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import TimeslotError
from ..domain.models import SearchWindow
from ..domain.preferences import SchedulingPreferences
from ..domain.slot_calculator import SlotCalculator
from ..services.schemas import FindSlotsResponse
from ..services.timeslot_finder import TimeslotFinderService

app = typer.Typer(
    name="meetingslots",
    help="Findet Meeting-Zeitslots, in denen alle Teilnehmer frei sind",
    add_completion=False
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load the given config file, or the default one if it exists.

    Without an explicit file and without a default config.yaml the built-in
    defaults are used, so participants must be given as email addresses.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()


def _build_service(
    config: AppConfig,
    *,
    mock: bool,
    mock_data: Optional[Path],
    granularity: Optional[int] = None,
    max_results: Optional[int] = None,
) -> TimeslotFinderService:
    defaults = config.defaults

    if mock:
        provider = MockBusyPeriodProvider(config=config, data_file=mock_data)
    else:
        provider = GoogleBusyPeriodProvider(
            token_lookup=token_lookup_from_config(config),
            base_url=config.google_api_base_url,
            request_timeout=defaults.fetch_timeout_seconds,
        )

    calculator = SlotCalculator(
        granularity_minutes=defaults.granularity_minutes if granularity is None else granularity,
        max_results=defaults.max_results if max_results is None else max_results,
    )

    return TimeslotFinderService(
        provider,
        calculator,
        fetch_timeout_seconds=defaults.fetch_timeout_seconds,
        max_concurrent_fetches=defaults.max_concurrent_fetches,
    )


def _determine_time_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
) -> SearchWindow:
    """
    Resolve the desired time window based on shortcut flags or explicit dates.

    The end date is inclusive; the returned window ends at the following midnight.
    """
    if this_week and next_week:
        console.print("[red]Fehler: --this-week und --next-week können nicht gleichzeitig verwendet werden.[/red]")
        raise typer.Exit(1)

    now = pendulum.now(tz)

    if this_week:
        return SearchWindow(start=now, end=now.end_of("week").add(days=1).start_of("day"))

    if next_week:
        next_monday = now.next(pendulum.MONDAY).start_of("day")
        return SearchWindow(start=next_monday, end=next_monday.add(days=7))

    try:
        if start_option:
            start_date = pendulum.from_format(start_option, "YYYY-MM-DD", tz=tz).start_of("day")
        else:
            start_date = now.start_of("day")

        if end_option:
            end_date = pendulum.from_format(end_option, "YYYY-MM-DD", tz=tz).start_of("day")
        else:
            end_date = start_date.add(days=7)
    except ValueError as e:
        console.print(f"[red]Fehler beim Parsen des Datums: {e}[/red]")
        raise typer.Exit(1)

    return SearchWindow(start=start_date, end=end_date.add(days=1))


def _resolve_preferences(
    config: AppConfig,
    work_start: Optional[str],
    work_end: Optional[str],
    avoid_weekends: Optional[bool],
    buffer: Optional[int],
) -> SchedulingPreferences:
    """Command line options override the configured preferences field by field."""
    configured = config.preferences
    return SchedulingPreferences(
        work_hours_start=work_start if work_start is not None else configured.work_hours_start,
        work_hours_end=work_end if work_end is not None else configured.work_hours_end,
        avoid_weekends=configured.avoid_weekends if avoid_weekends is None else avoid_weekends,
        buffer_minutes=configured.buffer_minutes if buffer is None else buffer,
    )


@app.command()
def find(
    participants: Annotated[List[str], typer.Argument(help="Teilnehmer (Namen aus der Config oder E-Mail-Adressen)")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Pfad zur Config-Datei (Standard: ./config.yaml)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Startdatum (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Enddatum, einschließlich (YYYY-MM-DD)")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Suche von jetzt bis Ende der aktuellen Woche.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Suche in der kommenden Woche (Montag–Sonntag).")] = False,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting-Dauer in Minuten")] = None,
    granularity: Annotated[Optional[int], typer.Option("--granularity", help="Abstand der möglichen Startzeiten in Minuten")] = None,
    work_start: Annotated[Optional[str], typer.Option("--work-start", help="Frühester Beginn (HH:MM)")] = None,
    work_end: Annotated[Optional[str], typer.Option("--work-end", help="Spätestes Ende (HH:MM)")] = None,
    avoid_weekends: Annotated[Optional[bool], typer.Option("--avoid-weekends/--allow-weekends", help="Wochenenden ausschließen")] = None,
    buffer: Annotated[Optional[int], typer.Option("--buffer", min=0, help="Mindestabstand zu bestehenden Terminen in Minuten")] = None,
    max_results: Annotated[Optional[int], typer.Option("--max-results", min=0, help="Obergrenze der berechneten Zeitslots")] = None,
    top: Annotated[Optional[int], typer.Option("--top", "-n", min=0, help="Anzahl der angezeigten Vorschläge")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Mock-Daten nutzen und Kalender-API überspringen.")] = False,
    mock_data: Annotated[Optional[Path], typer.Option("--mock-data", help="JSON-Datei mit Mock-Terminen")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Ergebnis als JSON ausgeben")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren")] = False,
):
    """
    Find meeting slots when all participants are free.

    Examples:

        meetingslots find anna ben --next-week

        meetingslots find anna ben --duration 60 --work-start 09:00 --work-end 17:00

        meetingslots find anna ben --start 2024-11-25 --end 2024-11-29 --mock
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        tz = config.timezone

        window = _determine_time_range(
            tz=tz,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )

        participant_emails = config.resolve_participants(participants)
        preferences = _resolve_preferences(config, work_start, work_end, avoid_weekends, buffer)
        min_duration = duration if duration is not None else config.defaults.duration_minutes

        service = _build_service(
            config,
            mock=mock,
            mock_data=mock_data,
            granularity=granularity,
            max_results=max_results,
        )

        slots = asyncio.run(
            service.find_best_slots(
                participants=participant_emails,
                window=window,
                duration_minutes=min_duration,
                preferences=preferences,
                timezone=tz,
            )
        )

    except (TimeslotError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(FindSlotsResponse.from_slots(slots).to_payload(), indent=2))
        return

    if mock:
        console.print("[yellow]⚠  MOCK-MODUS: Verwende Test-Daten[/yellow]\n")

    console.print("[bold cyan]📊 Zusammenfassung:[/bold cyan]")
    console.print(f"   Teilnehmer: {', '.join(participant_emails)}")
    console.print(f"   Zeitraum: {window.start.format('DD.MM.YYYY HH:mm')} - {window.end.format('DD.MM.YYYY HH:mm')}")
    console.print(f"   Dauer: {min_duration} Minuten")
    console.print()

    if not slots:
        console.print(
            "[yellow]⚠ Keine gemeinsamen Zeitslots gefunden.[/yellow]\n"
            "Versuchen Sie einen längeren Zeitraum oder eine kürzere Dauer."
        )
        return

    limit = top if top is not None else config.defaults.suggestion_limit
    shown = slots[:limit]

    console.print(f"[bold green]✓ {len(slots)} Zeitslot(s) gefunden, Top {len(shown)}:[/bold green]\n")
    for slot in shown:
        console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def solve(
    request_file: Annotated[Path, typer.Argument(help="JSON-Anfrage-Datei, '-' liest von stdin")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Pfad zur Config-Datei")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Mock-Daten nutzen und Kalender-API überspringen.")] = False,
    mock_data: Annotated[Optional[Path], typer.Option("--mock-data", help="JSON-Datei mit Mock-Terminen")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren")] = False,
):
    """
    Answer a find-slots request given as JSON and print the JSON response.

    Request keys: participantIds, windowStart, windowEnd, durationMinutes,
    preferences {workHoursStart, workHoursEnd, avoidWeekends}, maxResults.
    """
    _configure_logging(verbose)

    try:
        if str(request_file) == "-":
            payload = json.load(sys.stdin)
        else:
            with open(request_file, "r", encoding="utf-8") as f:
                payload = json.load(f)

        config = _load_config(config_file)
        service = _build_service(config, mock=mock, mock_data=mock_data)
        response = asyncio.run(service.handle_request(payload))

    except (TimeslotError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    typer.echo(json.dumps(response, indent=2))


@app.command()
def list_colleagues(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Pfad zur Config-Datei"
    )
):
    """
    List all configured colleagues.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not config.colleagues:
        console.print("[yellow]Keine Kollegen in der Config-Datei definiert.[/yellow]")
        return

    table = Table(
        title="Konfigurierte Kollegen",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (Alias)", style="bold yellow")
    table.add_column("E-Mail", style="dim")
    table.add_column("Token-Variable", style="dim")

    for colleague in config.colleagues:
        table.add_row(
            colleague.name,
            colleague.email,
            colleague.token_env or "-"
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
    console.print(f"\n[bold cyan]meetingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
