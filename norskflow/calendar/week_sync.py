"""Schedule a whole weekly plan on the Intervals.icu calendar.

Workouts go up in one bulk upsert keyed by external ids of the form
`{prefix}:{uid}:{date}:{day index}`, so retries update the same events and
results are matched per day by id rather than by position. Rest days are
not written; an event left over from an earlier sync on a rest day is
deleted.

A generation token guards against stale results: callers take a token with
begin() before syncing, and a result that comes back after a newer begin()
is reported as stale and not applied to the plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from loguru import logger

from norskflow.config.settings import settings
from norskflow.integrations.intervals.client import IntervalsClient
from norskflow.integrations.intervals.schemas import BulkSyncItem
from norskflow.planning.models import DailyPlan, WeeklyPlan
from norskflow.workouts.encoder import encode_session
from norskflow.workouts.steps import StepOptions


@dataclass(frozen=True)
class WeekSyncReport:
    """Outcome of one week sync.

    Attributes:
        plan: Plan with event ids applied (the input plan when stale)
        synced: Workouts that received an event id
        total_workouts: Days with a session
        failures: Per-day failure messages ("Tuesday: ...")
        ok: True when every workout synced
        stale: True when a newer generation started before this one finished
        error: Whole-request error, if the bulk call itself failed
    """

    plan: WeeklyPlan
    synced: int = 0
    total_workouts: int = 0
    failures: list[str] = field(default_factory=list)
    ok: bool = False
    stale: bool = False
    error: str | None = None

    @property
    def message(self) -> str:
        if self.stale:
            return "Sync superseded by a newer plan; results ignored."
        if self.error:
            return self.error
        summary = f"Scheduled {self.synced}/{self.total_workouts} workouts to Intervals.icu."
        if self.failures:
            return f"{summary} Failed: {' | '.join(self.failures)}"
        return summary


def external_id_for(uid: str | None, day_date: date, index: int, prefix: str | None = None) -> str:
    return f"{prefix or settings.sync_external_id_prefix}:{uid or 'anon'}:{day_date.isoformat()}:{index}"


class WeekSyncService:
    """Bulk-schedules weekly plans for one athlete."""

    def __init__(
        self,
        client: IntervalsClient,
        options: StepOptions | None = None,
        include_fit: bool = True,
    ) -> None:
        self.client = client
        self.options = options
        self.include_fit = include_fit
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new generation; results of older generations become stale."""
        self._generation += 1
        return self._generation

    def schedule_week(
        self,
        plan: WeeklyPlan,
        week_start: date,
        uid: str | None = None,
        generation: int | None = None,
    ) -> WeekSyncReport:
        """Sync every day of the plan starting at week_start (day 0).

        Args:
            plan: Weekly plan, Monday first
            week_start: Calendar date of the plan's first day
            uid: Athlete id used to namespace external ids
            generation: Token from begin(); None skips the staleness check

        Returns:
            WeekSyncReport with per-day failures
        """
        days: list[DailyPlan] = list(plan.days)
        items: list[tuple[int, BulkSyncItem]] = []

        for idx, day in enumerate(days):
            day_date = week_start + timedelta(days=idx)
            if day.session is None:
                if day.icu_event_id:
                    self.client.delete_event(day.icu_event_id)
                days[idx] = day.model_copy(update={"icu_event_id": None})
                continue

            workout = encode_session(day.session, self.options, include_fit=self.include_fit)
            items.append(
                (idx, BulkSyncItem(external_id=external_id_for(uid, day_date, idx), date=day_date.isoformat(), workout=workout))
            )

        result = self.client.sync_workouts_bulk([item for _, item in items])

        if generation is not None and generation != self._generation:
            logger.info(f"Discarding stale week sync (generation {generation}, current {self._generation})")
            return WeekSyncReport(plan=plan, total_workouts=len(items), stale=True)

        if not result.ok:
            return WeekSyncReport(
                plan=plan.model_copy(update={"days": days}),
                total_workouts=len(items),
                error=result.error or "Failed to bulk sync workouts.",
            )

        synced = 0
        failures: list[str] = []
        for idx, item in items:
            day = days[idx]
            event_id = result.event_ids_by_external_id.get(item.external_id)
            if event_id and day.session is not None:
                session = day.session.model_copy(update={"icu_event_id": event_id})
                days[idx] = day.model_copy(update={"session": session, "icu_event_id": None})
                synced += 1
            else:
                failures.append(f"{day.day}: missing event id from bulk response")

        report = WeekSyncReport(
            plan=plan.model_copy(update={"days": days}),
            synced=synced,
            total_workouts=len(items),
            failures=failures,
            ok=not failures,
        )
        logger.info(report.message)
        return report
