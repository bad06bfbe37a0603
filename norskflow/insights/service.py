"""Load an insights dataset for one athlete from Intervals.icu."""

from __future__ import annotations

from datetime import date, timedelta

from loguru import logger

from norskflow.insights.metrics import build_insights_dataset
from norskflow.insights.models import InsightsDataset
from norskflow.integrations.intervals.client import IntervalsClient

DEFAULT_LOOKBACK_DAYS = 730
MIN_LOOKBACK_DAYS = 30


class InsightsUnavailableError(RuntimeError):
    """Raised when the athlete has no usable Intervals.icu connection."""


def load_insights_dataset(
    client: IntervalsClient,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    today: date | None = None,
) -> InsightsDataset:
    """Fetch activities, wellness and profile, then compute the dataset.

    The lookback is never shorter than 30 days so the 28-day chronic load
    has rows to average.
    """
    if not client.config.is_usable:
        raise InsightsUnavailableError("Intervals.icu is not connected.")

    newest = today or date.today()
    oldest = newest - timedelta(days=max(MIN_LOOKBACK_DAYS, lookback_days))

    activities = client.fetch_activities(oldest, newest)
    wellness = client.fetch_wellness(oldest, newest)
    profile = client.fetch_athlete_profile()
    logger.info(
        f"Loaded {len(activities)} activities and {len(wellness)} wellness rows "
        f"for {oldest.isoformat()}..{newest.isoformat()}"
    )
    return build_insights_dataset(activities, wellness, profile)
