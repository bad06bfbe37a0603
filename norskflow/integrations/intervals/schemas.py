from __future__ import annotations

import base64
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from norskflow.planning.models import Sport
from norskflow.workouts.encoder import EncodedWorkout


class IntervalsConfig(BaseModel):
    """Per-user Intervals.icu credentials, persisted as {athleteId, apiKey, connected}."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    athlete_id: str = ""
    api_key: str = ""
    connected: bool = False

    @property
    def is_usable(self) -> bool:
        return self.connected and bool(self.athlete_id) and bool(self.api_key)


class SyncResult(BaseModel):
    ok: bool
    event_id: int | None = None
    status: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class BulkSyncItem:
    """One workout of a bulk upload, keyed by a caller-chosen external id."""

    external_id: str
    date: str  # YYYY-MM-DD, local
    workout: EncodedWorkout


class BulkSyncResult(BaseModel):
    ok: bool
    event_ids_by_external_id: dict[str, int] = Field(default_factory=dict)
    missing_external_ids: list[str] = Field(default_factory=list)
    status: int | None = None
    error: str | None = None


ICU_TYPE_BY_SPORT: dict[Sport, str] = {
    Sport.RUN: "Run",
    Sport.BIKE: "Ride",
}


def build_workout_payload(workout: EncodedWorkout, date: str, start_time: str) -> dict:
    """Event payload for one planned workout.

    The description carries the session notes followed by the structured
    workout text, which Intervals.icu parses into steps.
    """
    description = f"{workout.description}\n\n{workout.text}" if workout.description else workout.text
    payload: dict = {
        "category": "WORKOUT",
        "type": ICU_TYPE_BY_SPORT.get(workout.sport, "Run"),
        "name": workout.title,
        "description": description,
        "start_date_local": f"{date}T{start_time}",
        "moving_time": workout.moving_time_s,
    }
    if workout.fit_bytes:
        payload["filename"] = workout.fit_filename
        payload["file_contents_base64"] = base64.b64encode(workout.fit_bytes).decode("ascii")
    return payload


def build_rest_day_payload(date: str, start_time: str) -> dict:
    return {
        "category": "NOTE",
        "type": "Run",
        "name": "Rest Day",
        "description": "Recovery / no training scheduled.",
        "start_date_local": f"{date}T{start_time}",
    }
