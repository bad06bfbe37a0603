"""Tests for the norskflow command line interface."""

import json
from datetime import date, timedelta
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

import cli.cli as cli_module
from norskflow.config.settings import settings
from norskflow.integrations.intervals.client import IntervalsClient
from norskflow.integrations.intervals.schemas import IntervalsConfig
from norskflow.integrations.weather.client import WeatherClient
from norskflow.planning.models import AthleteProfile
from norskflow.profiles.repository import JsonFileCredentialsRepository, JsonFileProfileRepository

runner = CliRunner()


@pytest.fixture
def profile_file(tmp_path: Path, threshold_week_profile: AthleteProfile) -> Path:
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(threshold_week_profile.to_json_dict()), encoding="utf-8")
    return path


@pytest.fixture
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "store"
    monkeypatch.setattr(settings, "profile_store_dir", str(root))
    return root


def test_paces(profile_file: Path) -> None:
    result = runner.invoke(cli_module.app, ["paces", "--profile", str(profile_file)])

    assert result.exit_code == 0, result.output
    assert "Threshold 4:05/km" in result.output
    assert "400m Pace" in result.output
    assert "19:07" in result.output


def test_plan_writes_json(profile_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "plan.json"
    result = runner.invoke(cli_module.app, ["plan", "--profile", str(profile_file), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert "SubT 5x2km" in result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert len(data["days"]) == 7
    assert abs(data["totalDistance"] - 80) <= 0.3


def test_plan_requires_a_profile() -> None:
    result = runner.invoke(cli_module.app, ["plan"])
    assert result.exit_code == 1
    assert "Provide --profile or --user-id" in result.output


def test_plan_rejects_unknown_model(profile_file: Path) -> None:
    result = runner.invoke(cli_module.app, ["plan", "--profile", str(profile_file), "--model", "jack-daniels"])
    assert result.exit_code == 1


def test_plan_from_stored_profile(store: Path, threshold_week_profile: AthleteProfile) -> None:
    JsonFileProfileRepository().save("user-1", threshold_week_profile)
    result = runner.invoke(cli_module.app, ["plan", "--user-id", "user-1"])
    assert result.exit_code == 0, result.output


def test_export_fit(profile_file: Path, tmp_path: Path) -> None:
    pytest.importorskip("fit_tool")
    result = runner.invoke(
        cli_module.app,
        ["export-fit", "tuesday", "--profile", str(profile_file), "--output-dir", str(tmp_path)],
    )

    assert result.exit_code == 0, result.output
    assert "Main Set 5x" in result.output
    assert (tmp_path / "subt-5x2km.fit").read_bytes()[8:12] == b".FIT"


def test_export_fit_rest_day(profile_file: Path) -> None:
    result = runner.invoke(cli_module.app, ["export-fit", "Saturday", "--profile", str(profile_file)])
    assert result.exit_code == 1
    assert "no session" in result.output


def test_sync_week_requires_connection(store: Path, threshold_week_profile: AthleteProfile) -> None:
    JsonFileProfileRepository().save("user-1", threshold_week_profile)
    result = runner.invoke(cli_module.app, ["sync-week", "2026-10-19", "--user-id", "user-1"])
    assert result.exit_code == 1
    assert "not connected" in result.output


def test_sync_week(store: Path, threshold_week_profile: AthleteProfile, monkeypatch: pytest.MonkeyPatch) -> None:
    JsonFileProfileRepository().save("user-1", threshold_week_profile)
    JsonFileCredentialsRepository().save("user-1", IntervalsConfig(athlete_id="i1", api_key="k", connected=True))

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json=[{"id": i + 1, "external_id": e["external_id"]} for i, e in enumerate(body)])

    monkeypatch.setattr(
        cli_module,
        "IntervalsClient",
        lambda config: IntervalsClient(config, transport=httpx.MockTransport(handler)),
    )
    result = runner.invoke(cli_module.app, ["sync-week", "2026-10-19", "--user-id", "user-1", "--no-fit"])

    assert result.exit_code == 0, result.output
    assert "Scheduled 6/6 workouts" in result.output


def test_sync_week_rejects_bad_date() -> None:
    result = runner.invoke(cli_module.app, ["sync-week", "19/10/2026", "--user-id", "user-1"])
    assert result.exit_code == 1


def test_weather(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        current = {"temperature_2m": 30, "dew_point_2m": 24, "relative_humidity_2m": 80, "wind_speed_10m": 5}
        return httpx.Response(200, json={"current": current})

    monkeypatch.setattr(cli_module, "get_weather_client", lambda: WeatherClient(transport=httpx.MockTransport(handler)))
    result = runner.invoke(cli_module.app, ["weather", "--lat", "59.9", "--lon", "10.7"])

    assert result.exit_code == 0, result.output
    assert "+10 s/km" in result.output


def test_insights_requires_connection(store: Path) -> None:
    result = runner.invoke(cli_module.app, ["insights", "--user-id", "user-1"])
    assert result.exit_code == 1
    assert "not connected" in result.output


def test_insights_rejects_unknown_range(store: Path) -> None:
    result = runner.invoke(cli_module.app, ["insights", "--user-id", "user-1", "--range", "5y"])
    assert result.exit_code == 1
    assert "--range must be one of" in result.output


def test_insights(store: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    JsonFileCredentialsRepository().save("user-1", IntervalsConfig(athlete_id="i1", api_key="k", connected=True))
    yesterday = date.today() - timedelta(days=1)
    monday = yesterday - timedelta(days=yesterday.weekday())

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/activities"):
            run = {
                "start_date_local": f"{yesterday.isoformat()}T07:00:00",
                "type": "Run",
                "name": "SubT 5x2km",
                "distance": 14000,
                "moving_time": 3600,
                "average_heartrate": 150,
            }
            return httpx.Response(200, json=[run])
        if request.url.path.endswith("/wellness"):
            return httpx.Response(200, json=[])
        return httpx.Response(200, json={"threshold_pace": 250, "threshold_hr": 170})

    monkeypatch.setattr(
        cli_module,
        "IntervalsClient",
        lambda config: IntervalsClient(config, transport=httpx.MockTransport(handler)),
    )
    result = runner.invoke(cli_module.app, ["insights", "--user-id", "user-1", "--range", "1m"])

    assert result.exit_code == 0, result.output
    assert "Threshold 4:10/km, HR 170 bpm" in result.output
    assert "Threshold progress (1m)" in result.output
    assert monday.isoformat() in result.output
    assert "Running economy (1m)" in result.output
