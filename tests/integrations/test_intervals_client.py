"""Tests for the Intervals.icu events and read client.

Requests are served by httpx.MockTransport; nothing leaves the process.
"""

import base64
import json
from datetime import date

import httpx
import pytest

from norskflow.integrations.intervals.client import NOT_CONNECTED, IntervalsClient, extract_error_message
from norskflow.integrations.intervals.schemas import BulkSyncItem, IntervalsConfig, build_workout_payload
from norskflow.planning.models import Sport
from norskflow.workouts.encoder import EncodedWorkout
from norskflow.workouts.steps import StepPlan

BASE_URL = "https://icu.test/api/v1"


@pytest.fixture
def config() -> IntervalsConfig:
    return IntervalsConfig(athlete_id="i123", api_key="secret", connected=True)


@pytest.fixture
def workout() -> EncodedWorkout:
    return EncodedWorkout(
        title="SubT 5x2km",
        description="Strictly controlled sub-threshold.",
        text="Main Set 5x\n- 2km 4:10-4:20/km Pace\n- Rest 1m",
        step_plan=StepPlan(),
        moving_time_s=3600,
        sport=Sport.RUN,
        fit_bytes=b"FITDATA",
    )


def _client(config: IntervalsConfig, handler) -> IntervalsClient:
    return IntervalsClient(config, base_url=BASE_URL, start_time="07:30:00", transport=httpx.MockTransport(handler))


def test_config_camel_case() -> None:
    config = IntervalsConfig.model_validate({"athleteId": "i1", "apiKey": "k", "connected": True})
    assert config.is_usable
    assert not config.model_copy(update={"api_key": ""}).is_usable


def test_workout_payload(workout: EncodedWorkout) -> None:
    payload = build_workout_payload(workout, "2026-10-19", "08:00:00")

    assert payload["category"] == "WORKOUT"
    assert payload["type"] == "Run"
    assert payload["start_date_local"] == "2026-10-19T08:00:00"
    assert payload["description"].startswith("Strictly controlled sub-threshold.\n\nMain Set 5x")
    assert payload["moving_time"] == 3600
    assert payload["filename"] == "subt-5x2km.fit"
    assert base64.b64decode(payload["file_contents_base64"]) == b"FITDATA"


def test_sync_workout_creates_event(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 77})

    result = _client(config, handler).sync_workout(workout, "2026-10-19")

    assert result.ok
    assert result.event_id == 77
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v1/athlete/i123/events"
    expected_auth = base64.b64encode(b"API_KEY:secret").decode()
    assert request.headers["authorization"] == f"Basic {expected_auth}"
    assert json.loads(request.content)["start_date_local"] == "2026-10-19T07:30:00"


def test_sync_workout_updates_existing_event(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.url.path.endswith("/events/77")
        return httpx.Response(200, json={"id": 77})

    assert _client(config, handler).sync_workout(workout, "2026-10-19", event_id=77).ok


def test_sync_workout_error_result(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Invalid date"})

    result = _client(config, handler).sync_workout(workout, "bad")
    assert not result.ok
    assert result.status == 422
    assert result.error == "Invalid date"


def test_network_error_result(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = _client(config, handler).sync_workout(workout, "2026-10-19")
    assert not result.ok
    assert "connection refused" in result.error


def test_not_connected_makes_no_request(workout: EncodedWorkout) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = _client(IntervalsConfig(athlete_id="i1", api_key="k", connected=False), handler)
    assert client.sync_workout(workout, "2026-10-19").error == NOT_CONNECTED
    assert client.sync_workouts_bulk([]).error == NOT_CONNECTED
    assert client.delete_event(5) is False


def test_rest_day_note(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["category"] == "NOTE"
        assert body["name"] == "Rest Day"
        return httpx.Response(200, json={"id": 9})

    assert _client(config, handler).sync_rest_day("2026-10-24").event_id == 9


def test_delete_event(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        return httpx.Response(200 if request.url.path.endswith("/events/5") else 404)

    client = _client(config, handler)
    assert client.delete_event(5) is True
    assert client.delete_event(6) is False


def test_bulk_sync_matches_by_external_id(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    """Results are matched by external id; unmatched items are reported missing."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/athlete/i123/events/bulk"
        assert request.url.params["upsert"] == "true"
        body = json.loads(request.content)
        assert [e["external_id"] for e in body] == ["nf:u:2026-10-19:0", "nf:u:2026-10-20:1"]
        # Response order differs from request order
        return httpx.Response(200, json=[{"id": 2, "external_id": "nf:u:2026-10-20:1"}, {"id": 0}])

    items = [
        BulkSyncItem(external_id="nf:u:2026-10-19:0", date="2026-10-19", workout=workout),
        BulkSyncItem(external_id="nf:u:2026-10-20:1", date="2026-10-20", workout=workout),
    ]
    result = _client(config, handler).sync_workouts_bulk(items)

    assert result.ok
    assert result.event_ids_by_external_id == {"nf:u:2026-10-20:1": 2}
    assert result.missing_external_ids == ["nf:u:2026-10-19:0"]


def test_bulk_sync_empty_is_noop(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert _client(config, handler).sync_workouts_bulk([]).ok


def test_bulk_sync_failure(config: IntervalsConfig, workout: EncodedWorkout) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream down")

    result = _client(config, handler).sync_workouts_bulk([BulkSyncItem("a", "2026-10-19", workout)])
    assert not result.ok
    assert result.status == 500
    assert result.error == "upstream down"


def test_extract_error_message_fallback() -> None:
    request = httpx.Request("POST", BASE_URL)
    assert extract_error_message(httpx.Response(503, request=request), "Failed") == "Failed (503)"
    assert extract_error_message(httpx.Response(400, json={"error": "nope"}, request=request), "Failed") == "nope"


def test_fetch_activities_falls_back_to_second_endpoint(config: IntervalsConfig) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        assert request.url.params["oldest"] == "2026-09-18"
        assert request.url.params["newest"] == "2026-10-18"
        if request.url.path.endswith("/athlete/i123/activities"):
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=[{"id": "a1", "type": "Run"}, "junk"])

    rows = _client(config, handler).fetch_activities(date(2026, 9, 18), date(2026, 10, 18))

    assert rows == [{"id": "a1", "type": "Run"}]
    assert seen == ["/api/v1/athlete/i123/activities", "/api/v1/athlete/i123/athlete-activities"]


def test_fetch_wellness_unwraps_object(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/athlete/i123/wellness"
        return httpx.Response(200, json={"wellness": [{"id": "2026-10-01", "hrv": 55}]})

    rows = _client(config, handler).fetch_wellness(date(2026, 10, 1), date(2026, 10, 2))
    assert rows == [{"id": "2026-10-01", "hrv": 55}]


def test_fetch_athlete_profile_falls_back(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/profile"):
            return httpx.Response(404)
        return httpx.Response(200, json={"id": "i123", "threshold_pace": "4:10"})

    assert _client(config, handler).fetch_athlete_profile() == {"id": "i123", "threshold_pace": "4:10"}


def test_reads_fail_soft(config: IntervalsConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(config, handler)
    assert client.fetch_activities(date(2026, 10, 1), date(2026, 10, 2)) == []
    assert client.fetch_wellness(date(2026, 10, 1), date(2026, 10, 2)) == []
    assert client.fetch_athlete_profile() is None


def test_reads_need_a_connection() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = _client(IntervalsConfig(athlete_id="i123", api_key="secret"), handler)
    assert client.fetch_activities(date(2026, 10, 1), date(2026, 10, 2)) == []
    assert client.fetch_athlete_profile() is None
