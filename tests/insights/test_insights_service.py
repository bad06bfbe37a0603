"""Tests for loading insights through the Intervals.icu client."""

from datetime import date

import httpx
import pytest

from norskflow.insights.service import InsightsUnavailableError, load_insights_dataset
from norskflow.integrations.intervals.client import IntervalsClient
from norskflow.integrations.intervals.schemas import IntervalsConfig

CONNECTED = IntervalsConfig(athlete_id="i123", api_key="secret", connected=True)


def test_requires_connection() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = IntervalsClient(IntervalsConfig(), transport=httpx.MockTransport(handler))
    with pytest.raises(InsightsUnavailableError):
        load_insights_dataset(client)


def test_loads_dataset_over_lookback_window() -> None:
    windows: set[tuple[str, str]] = set()

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/activities"):
            windows.add((request.url.params["oldest"], request.url.params["newest"]))
            run = {
                "start_date_local": "2026-10-13T07:00:00",
                "type": "Run",
                "name": "SubT 4x3km",
                "distance": 15000,
                "moving_time": 3900,
                "average_heartrate": 152,
                "icu_training_load": 85,
            }
            return httpx.Response(200, json=[run])
        if path.endswith("/wellness"):
            windows.add((request.url.params["oldest"], request.url.params["newest"]))
            return httpx.Response(200, json=[{"id": "2026-10-14", "hrv": 62, "restingHR": 44}])
        return httpx.Response(200, json={"threshold_pace": 250, "threshold_hr": 170})

    client = IntervalsClient(CONNECTED, base_url="https://icu.test/api/v1", transport=httpx.MockTransport(handler))
    # Short lookbacks still cover the chronic-load window
    dataset = load_insights_dataset(client, lookback_days=10, today=date(2026, 10, 18))

    assert windows == {("2026-09-18", "2026-10-18")}
    assert [p.date for p in dataset.threshold_progress] == ["2026-10-12"]
    assert [p.date for p in dataset.recovery] == ["2026-10-13", "2026-10-14"]
    assert dataset.recovery[0].acute_load_7 == 85
    assert dataset.threshold_context.threshold_hr_bpm == 170
