"""CLI for NorskFlow.

Developer CLI to derive paces, generate a weekly plan, export workouts and
schedule a week on Intervals.icu from a local profile, and to review
training insights from completed Intervals.icu activities.
"""

import json
from datetime import date, datetime
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from norskflow.calendar.week_sync import WeekSyncService
from norskflow.config.settings import settings
from norskflow.core.logger import setup_logger
from norskflow.insights.models import InsightsRange, filter_by_range
from norskflow.insights.service import InsightsUnavailableError, load_insights_dataset
from norskflow.integrations.intervals.client import IntervalsClient
from norskflow.integrations.weather.client import get_weather_client
from norskflow.pacing.clock import format_seconds_to_clock
from norskflow.pacing.environment import weather_delta_for
from norskflow.pacing.performance import estimate_threshold, estimate_vo2_score
from norskflow.pacing.zones import equivalent_race_table, get_easy_pace_range, get_interval_pace_range, get_threshold_pace
from norskflow.planning.errors import PlanEditError
from norskflow.planning.editing import select_variant
from norskflow.planning.models import WEEKDAYS, AthleteProfile, WeeklyPlan
from norskflow.planning.summary import subthreshold_share_pct, subthreshold_volume_km
from norskflow.planning.synthesizer import generate_plan
from norskflow.profiles.repository import JsonFileCredentialsRepository, JsonFileProfileRepository
from norskflow.workouts.encoder import encode_session

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="norskflow",
    help="NorskFlow - subthreshold running plans, paces and calendar sync",
    add_completion=False,
)

INTERVAL_DISTANCES = (400, 600, 800, 1000, 2000, 3000, 5000)
MODEL_CHOICES = ("auto", "critical_speed", "riegel")


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    """Set up logging for every command."""
    setup_logger("DEBUG" if debug else settings.log_level, settings.log_file or None)


def _load_profile(profile_path: Path | None, user_id: str | None) -> AthleteProfile:
    """Load a profile from a JSON file or from the per-user store."""
    if profile_path is not None:
        try:
            return AthleteProfile.model_validate_json(profile_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            console.print(f"[red]Error:[/red] Could not read profile {profile_path}: {e}")
            raise typer.Exit(1) from e

    if user_id:
        profile = JsonFileProfileRepository().load(user_id)
        if profile is None:
            console.print(f"[red]Error:[/red] No stored profile for user '{user_id}'")
            raise typer.Exit(1)
        return profile

    console.print("[red]Error:[/red] Provide --profile or --user-id")
    raise typer.Exit(1)


def _check_model(model: str) -> None:
    if model not in MODEL_CHOICES:
        console.print(f"[red]Error:[/red] --model must be one of {', '.join(MODEL_CHOICES)}")
        raise typer.Exit(1)


def _weather_correction(lat: float | None, lon: float | None) -> int:
    if lat is None or lon is None:
        return 0
    snapshot = get_weather_client().fetch_current_conditions(lat, lon)
    delta = weather_delta_for(snapshot)
    if snapshot is None:
        console.print("[yellow]Weather unavailable, no pace correction applied[/yellow]")
    else:
        console.print(
            f"[dim]Weather {snapshot.temperature_c:.0f}°C, {snapshot.humidity_pct:.0f}% RH, "
            f"{snapshot.wind_kmh:.0f} km/h wind -> {delta:+d} s/km[/dim]"
        )
    return delta


def _plan_table(plan: WeeklyPlan) -> Table:
    table = Table(title=f"Weekly plan: {plan.total_distance} km run (target {plan.target_distance} km)")
    table.add_column("Day")
    table.add_column("Type")
    table.add_column("Session")
    table.add_column("km", justify="right")
    table.add_column("min", justify="right")
    table.add_column("Pace / Target")

    for day in plan.days:
        session = day.session
        if session is None:
            table.add_row(day.day, str(day.type), "-", "", "", "")
            continue
        target = session.target_pace or (session.intervals[0].pace or session.intervals[0].description if session.intervals else "")
        table.add_row(
            day.day,
            str(day.type),
            f"{session.title} ({session.sport})",
            f"{session.distance:g}",
            str(session.duration),
            target,
        )
    return table


@app.command()
def paces(
    profile_path: Path | None = typer.Option(None, "--profile", "-p", help="Profile JSON file"),
    user_id: str | None = typer.Option(None, "--user-id", help="Stored profile user id"),
    correction: int = typer.Option(0, "--correction", help="Pace correction in s/km"),
    model: str = typer.Option("auto", "--model", help="Threshold model: auto, critical_speed, riegel"),
) -> None:
    """Show threshold, easy and interval paces plus equivalent race times."""
    _check_model(model)
    profile = _load_profile(profile_path, user_id)

    estimate = estimate_threshold(profile, model)  # type: ignore[arg-type]
    benchmark = profile.primary_benchmark()
    vo2 = estimate_vo2_score(benchmark.distance_m, benchmark.duration_s) if benchmark else 0.0
    threshold = get_threshold_pace(profile, correction, model)  # type: ignore[arg-type]
    easy = get_easy_pace_range(profile, correction, model)  # type: ignore[arg-type]

    console.print(
        Panel(
            Text(f"Threshold {format_seconds_to_clock(threshold)}/km  |  Easy {easy.text}/km  |  VO2 {vo2}"),
            subtitle=f"model: {estimate.source}",
            border_style="green" if threshold > 0 else "red",
        )
    )

    intervals = Table(title="Interval paces")
    intervals.add_column("Rep")
    intervals.add_column("Effort")
    intervals.add_column("Pace /km")
    for distance in INTERVAL_DISTANCES:
        zone = get_interval_pace_range(profile, distance, correction, model)  # type: ignore[arg-type]
        intervals.add_row(f"{distance}m", zone.label, zone.text)
    console.print(intervals)

    races = Table(title="Equivalent performances")
    races.add_column("Race")
    races.add_column("Pace /km")
    races.add_column("Time")
    for row in equivalent_race_table(profile, correction):
        races.add_row(row.label, row.pace_text, row.finish_text)
    console.print(races)


@app.command()
def plan(
    profile_path: Path | None = typer.Option(None, "--profile", "-p", help="Profile JSON file"),
    user_id: str | None = typer.Option(None, "--user-id", help="Stored profile user id"),
    correction: int = typer.Option(0, "--correction", help="Pace correction in s/km"),
    lat: float | None = typer.Option(None, "--lat", help="Latitude for a weather correction"),
    lon: float | None = typer.Option(None, "--lon", help="Longitude for a weather correction"),
    model: str = typer.Option("auto", "--model", help="Threshold model: auto, critical_speed, riegel"),
    output_file: Path | None = typer.Option(None, "--output", "-o", help="Write the plan as JSON"),
) -> None:
    """Generate and print the weekly plan."""
    _check_model(model)
    profile = _load_profile(profile_path, user_id)
    total_correction = correction + _weather_correction(lat, lon)

    weekly = generate_plan(profile, total_correction, model)  # type: ignore[arg-type]
    console.print(_plan_table(weekly))
    console.print(
        f"Subthreshold: {subthreshold_volume_km(weekly)} km ({subthreshold_share_pct(weekly)}%)"
        + (f"  |  Bike: {weekly.bike_distance} km" if weekly.bike_distance else "")
    )
    if abs(weekly.shortfall) > 0.05:
        console.print(f"[yellow]Shortfall vs target: {weekly.shortfall:+.1f} km[/yellow]")

    if output_file is not None:
        output_file.write_text(json.dumps(weekly.to_json_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]Plan written to {output_file}[/green]")


@app.command()
def export_fit(
    day: str = typer.Argument(..., help="Weekday to export, e.g. Tuesday"),
    profile_path: Path | None = typer.Option(None, "--profile", "-p", help="Profile JSON file"),
    user_id: str | None = typer.Option(None, "--user-id", help="Stored profile user id"),
    correction: int = typer.Option(0, "--correction", help="Pace correction in s/km"),
    variant: str | None = typer.Option(None, "--variant", help="Long-run variant id, e.g. sunday-blocks"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Directory for the .fit file"),
    show_text: bool = typer.Option(True, "--text/--no-text", help="Print the Intervals.icu workout text"),
) -> None:
    """Export one day's session as a Garmin FIT workout."""
    day_name = day.strip().capitalize()
    if day_name not in WEEKDAYS:
        console.print(f"[red]Error:[/red] Unknown day '{day}'")
        raise typer.Exit(1)

    profile = _load_profile(profile_path, user_id)
    daily = generate_plan(profile, correction).day(day_name)
    if daily is None or daily.session is None:
        console.print(f"[yellow]{day_name} has no session to export[/yellow]")
        raise typer.Exit(1)

    session = daily.session
    if variant:
        try:
            session = select_variant(session, variant)
        except PlanEditError as e:
            console.print(f"[red]Error:[/red] {e.details[0]}")
            raise typer.Exit(1) from e

    encoded = encode_session(session)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / encoded.fit_filename
    target.write_bytes(encoded.fit_bytes or b"")
    logger.info(f"Wrote {len(encoded.fit_bytes or b'')} bytes to {target}")

    if show_text:
        console.print(Panel(Text(encoded.text), title=encoded.title))
    console.print(f"[green]FIT workout written to {target}[/green]")


@app.command()
def sync_week(
    week_start: str = typer.Argument(..., help="Date of the plan's Monday (YYYY-MM-DD)"),
    user_id: str = typer.Option(..., "--user-id", help="User id for the stored profile and credentials"),
    correction: int = typer.Option(0, "--correction", help="Pace correction in s/km"),
    include_fit: bool = typer.Option(True, "--fit/--no-fit", help="Attach FIT files to the events"),
) -> None:
    """Schedule the generated week on Intervals.icu."""
    try:
        start = datetime.strptime(week_start, "%Y-%m-%d").date()
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid date '{week_start}', expected YYYY-MM-DD")
        raise typer.Exit(1) from e

    profile = _load_profile(None, user_id)
    config = JsonFileCredentialsRepository().load(user_id)
    if config is None or not config.is_usable:
        console.print("[red]Error:[/red] Intervals.icu is not connected for this user")
        raise typer.Exit(1)

    service = WeekSyncService(IntervalsClient(config), include_fit=include_fit)
    report = service.schedule_week(generate_plan(profile, correction), start, uid=profile.uid or user_id, generation=service.begin())

    style = "green" if report.ok else "red"
    console.print(Panel(Text(report.message), border_style=style))
    if not report.ok:
        raise typer.Exit(1)


@app.command()
def insights(
    user_id: str = typer.Option(..., "--user-id", help="User id for the stored Intervals.icu credentials"),
    range_key: str = typer.Option("3m", "--range", "-r", help="Window to show: 1y, 6m, 3m, 1m, 1w, 1d"),
    lookback: int = typer.Option(730, "--lookback", help="Days of history to fetch"),
) -> None:
    """Show threshold progress, recovery and running economy."""
    try:
        window = InsightsRange(range_key)
    except ValueError as e:
        console.print(f"[red]Error:[/red] --range must be one of {', '.join(r.value for r in InsightsRange)}")
        raise typer.Exit(1) from e

    config = JsonFileCredentialsRepository().load(user_id)
    if config is None or not config.is_usable:
        console.print("[red]Error:[/red] Intervals.icu is not connected for this user")
        raise typer.Exit(1)

    try:
        dataset = load_insights_dataset(IntervalsClient(config), lookback)
    except InsightsUnavailableError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    context = dataset.threshold_context
    if context.threshold_pace_sec_per_km:
        hr = f", HR {context.threshold_hr_bpm} bpm" if context.threshold_hr_bpm else ""
        console.print(
            f"[dim]Threshold {format_seconds_to_clock(context.threshold_pace_sec_per_km)}/km{hr}[/dim]"
        )

    progress = Table(title=f"Threshold progress ({window.value})")
    progress.add_column("Week")
    progress.add_column("SubT pace /km")
    progress.add_column("km/h", justify="right")
    progress.add_column("SubT min", justify="right")
    progress.add_column("Share", justify="right")
    progress.add_column("Score", justify="right")
    for point in filter_by_range(dataset.threshold_progress, window):
        progress.add_row(
            point.date,
            format_seconds_to_clock(point.threshold_pace_sec_per_km),
            f"{point.threshold_speed_kmh:.2f}",
            f"{point.subthreshold_minutes:g}",
            f"{point.subthreshold_share_pct:g}%",
            f"{point.norwegian_method_score:g}",
        )
    console.print(progress)

    recovery = Table(title=f"Recovery ({window.value})")
    recovery.add_column("Date")
    recovery.add_column("Score", justify="right")
    recovery.add_column("HRV", justify="right")
    recovery.add_column("RHR", justify="right")
    recovery.add_column("Load 7/28", justify="right")
    for point in filter_by_range(dataset.recovery, window):
        recovery.add_row(
            point.date,
            f"{point.recovery_score:g}",
            f"{point.hrv:g}" if point.hrv is not None else "-",
            f"{point.resting_hr:g}" if point.resting_hr is not None else "-",
            f"{point.acute_load_7:g}/{point.chronic_load_28:g}",
        )
    console.print(recovery)

    economy = Table(title=f"Running economy ({window.value})")
    economy.add_column("Date")
    economy.add_column("Index", justify="right")
    economy.add_column("Pace /km")
    economy.add_column("HR", justify="right")
    economy.add_column("Runs", justify="right")
    for point in filter_by_range(dataset.economy, window):
        economy.add_row(
            point.date,
            f"{point.economy_score:g}",
            format_seconds_to_clock(point.pace_sec_per_km),
            f"{point.avg_hr:g}",
            str(point.sample_count),
        )
    console.print(economy)


@app.command()
def weather(
    lat: float = typer.Option(..., "--lat", help="Latitude"),
    lon: float = typer.Option(..., "--lon", help="Longitude"),
) -> None:
    """Show current conditions and the resulting pace correction."""
    snapshot = get_weather_client().fetch_current_conditions(lat, lon)
    if snapshot is None:
        console.print("[yellow]Weather unavailable (correction 0 s/km)[/yellow]")
        return

    table = Table(title=f"Current conditions {date.today().isoformat()}")
    table.add_column("Temperature")
    table.add_column("Dew point")
    table.add_column("Humidity")
    table.add_column("Wind")
    table.add_column("Correction")
    table.add_row(
        f"{snapshot.temperature_c:.1f}°C",
        f"{snapshot.dew_point_c:.1f}°C",
        f"{snapshot.humidity_pct:.0f}%",
        f"{snapshot.wind_kmh:.0f} km/h",
        f"{weather_delta_for(snapshot):+d} s/km",
    )
    console.print(table)


if __name__ == "__main__":
    app()
