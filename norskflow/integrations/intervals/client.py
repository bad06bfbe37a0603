"""Thin Intervals.icu API client.

- HTTP Basic auth with the literal username "API_KEY"
- No retries: failures come back as structured results for the caller
- Bulk upserts are keyed by external id and reconciled per item
- Reads (activities, wellness, athlete profile) try each known endpoint in
  turn and come back empty when none answers
"""

from __future__ import annotations

from datetime import date

import httpx
from loguru import logger

from norskflow.config.settings import settings
from norskflow.integrations.intervals.schemas import (
    BulkSyncItem,
    BulkSyncResult,
    IntervalsConfig,
    SyncResult,
    build_rest_day_payload,
    build_workout_payload,
)
from norskflow.workouts.encoder import EncodedWorkout

NOT_CONNECTED = "Intervals.icu is not connected."


def extract_error_message(response: httpx.Response, fallback: str) -> str:
    """Best error text from a failed response.

    JSON message/error/detail first, then the raw body, then
    "{fallback} ({status})".
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error") or data.get("detail")
        if msg:
            return str(msg)

    text = response.text
    if text:
        return text
    return f"{fallback} ({response.status_code})"


def _event_id(data: object) -> int | None:
    if not isinstance(data, dict):
        return None
    try:
        return int(data["id"]) or None
    except (KeyError, TypeError, ValueError):
        return None


class IntervalsClient:
    """Intervals.icu calendar client for one athlete."""

    def __init__(
        self,
        config: IntervalsConfig,
        base_url: str | None = None,
        timeout_s: float | None = None,
        start_time: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.base_url = (base_url or settings.intervals_base_url).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.intervals_timeout_s
        self.start_time = start_time or settings.workout_start_time
        self._transport = transport

    def _events_url(self, event_id: int | None = None) -> str:
        url = f"{self.base_url}/athlete/{self.config.athlete_id}/events"
        return f"{url}/{event_id}" if event_id else url

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout_s,
            auth=httpx.BasicAuth("API_KEY", self.config.api_key),
            transport=self._transport,
        )

    def _upsert(self, payload: dict, event_id: int | None, fallback: str) -> SyncResult:
        if not self.config.is_usable:
            return SyncResult(ok=False, error=NOT_CONNECTED)

        method = "PUT" if event_id else "POST"
        try:
            with self._client() as client:
                response = client.request(method, self._events_url(event_id), json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error = extract_error_message(e.response, fallback)
            logger.warning(f"Intervals.icu {method} failed ({status}): {error}")
            return SyncResult(ok=False, status=status, error=error)
        except httpx.RequestError as e:
            logger.warning(f"Intervals.icu {method} request error: {e}")
            return SyncResult(ok=False, error=str(e) or f"Network error: {fallback}")
        except ValueError as e:
            logger.warning(f"Intervals.icu {method} returned invalid JSON: {e}")
            return SyncResult(ok=False, error=f"{fallback} (invalid response)")

        return SyncResult(ok=True, event_id=_event_id(data))

    def sync_workout(self, workout: EncodedWorkout, date: str, event_id: int | None = None) -> SyncResult:
        """Create (POST) or update (PUT by event id) one planned workout."""
        payload = build_workout_payload(workout, date, self.start_time)
        result = self._upsert(payload, event_id, "Failed to sync workout to Intervals.icu")
        if result.ok:
            logger.info(f"Synced workout '{workout.title}' on {date} (event_id={result.event_id})")
        return result

    def sync_rest_day(self, date: str, event_id: int | None = None) -> SyncResult:
        """Create or update a rest-day NOTE event."""
        payload = build_rest_day_payload(date, self.start_time)
        return self._upsert(payload, event_id, "Failed to sync rest day to Intervals.icu")

    def delete_event(self, event_id: int) -> bool:
        """Delete one event; False when not connected or the call fails."""
        if not self.config.is_usable or not event_id:
            return False
        try:
            with self._client() as client:
                response = client.delete(self._events_url(event_id))
                response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.warning(f"Intervals.icu delete of event {event_id} failed: {e}")
            return False
        return True

    def sync_workouts_bulk(self, items: list[BulkSyncItem]) -> BulkSyncResult:
        """Upsert many workouts in one request, keyed by external id.

        The response is matched back by external id, not by position. Items
        with no event id in the response are listed in missing_external_ids.
        """
        if not self.config.is_usable:
            return BulkSyncResult(ok=False, error=NOT_CONNECTED)
        if not items:
            return BulkSyncResult(ok=True)

        payload = [
            {**build_workout_payload(item.workout, item.date, self.start_time), "external_id": item.external_id}
            for item in items
        ]
        fallback = "Failed to bulk sync workouts to Intervals.icu"
        try:
            with self._client() as client:
                response = client.post(f"{self._events_url()}/bulk", params={"upsert": "true"}, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error = extract_error_message(e.response, fallback)
            logger.warning(f"Intervals.icu bulk sync failed ({status}): {error}")
            return BulkSyncResult(ok=False, status=status, error=error)
        except httpx.RequestError as e:
            logger.warning(f"Intervals.icu bulk sync request error: {e}")
            return BulkSyncResult(ok=False, error=str(e) or fallback)
        except ValueError as e:
            logger.warning(f"Intervals.icu bulk sync returned invalid JSON: {e}")
            return BulkSyncResult(ok=False, error=f"{fallback} (invalid response)")

        event_ids: dict[str, int] = {}
        for event in data if isinstance(data, list) else []:
            if not isinstance(event, dict):
                continue
            external_id = event.get("external_id")
            event_id = _event_id(event)
            if external_id and event_id:
                event_ids[str(external_id)] = event_id

        missing = [item.external_id for item in items if item.external_id not in event_ids]
        if missing:
            logger.warning(f"Bulk sync response missing {len(missing)}/{len(items)} events: {missing}")
        else:
            logger.info(f"Bulk synced {len(items)} workouts to Intervals.icu")

        return BulkSyncResult(ok=True, event_ids_by_external_id=event_ids, missing_external_ids=missing)

    def _get_json(self, client: httpx.Client, url: str, params: dict | None = None) -> object | None:
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            error = extract_error_message(e.response, "Intervals.icu request failed")
            logger.warning(f"Intervals.icu GET {url} failed ({e.response.status_code}): {error}")
        except httpx.RequestError as e:
            logger.warning(f"Intervals.icu GET {url} request error: {e}")
        except ValueError as e:
            logger.warning(f"Intervals.icu GET {url} returned invalid JSON: {e}")
        return None

    def _fetch_rows(self, paths: tuple[str, ...], key: str, oldest: date, newest: date) -> list[dict]:
        if not self.config.is_usable:
            return []

        base = f"{self.base_url}/athlete/{self.config.athlete_id}"
        params = {"oldest": oldest.isoformat(), "newest": newest.isoformat()}
        with self._client() as client:
            for path in paths:
                data = self._get_json(client, f"{base}{path}", params)
                if isinstance(data, dict):
                    data = data.get(key)
                if isinstance(data, list):
                    logger.debug(f"Fetched {len(data)} {key} rows from {path}")
                    return [row for row in data if isinstance(row, dict)]
        return []

    def fetch_activities(self, oldest: date, newest: date) -> list[dict]:
        """Raw completed activities between two local dates; [] when unavailable."""
        return self._fetch_rows(("/activities", "/athlete-activities"), "activities", oldest, newest)

    def fetch_wellness(self, oldest: date, newest: date) -> list[dict]:
        """Raw daily wellness rows (HRV, resting HR); [] when unavailable."""
        return self._fetch_rows(("/wellness",), "wellness", oldest, newest)

    def fetch_athlete_profile(self) -> dict | None:
        """Athlete settings (threshold pace/HR live here); None when unavailable."""
        if not self.config.is_usable:
            return None

        base = f"{self.base_url}/athlete/{self.config.athlete_id}"
        with self._client() as client:
            for url in (f"{base}/profile", base):
                data = self._get_json(client, url)
                if isinstance(data, dict):
                    return data
        return None
