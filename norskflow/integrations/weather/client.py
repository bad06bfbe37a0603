"""Weather API client for the current-conditions pace correction.

Uses the Open-Meteo forecast API (free, no API key). Any failure degrades to
None, which the pace calculator reads as "no correction".
"""

from __future__ import annotations

import math

import httpx
from loguru import logger

from norskflow.config.settings import settings
from norskflow.pacing.environment import WeatherSnapshot

_CURRENT_FIELDS = "temperature_2m,dew_point_2m,relative_humidity_2m,wind_speed_10m"


def _as_float(value: object) -> float | None:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_current_conditions(data: object) -> WeatherSnapshot | None:
    """Map an Open-Meteo `current` block to a WeatherSnapshot; None if incomplete."""
    if not isinstance(data, dict):
        return None
    current = data.get("current")
    if not isinstance(current, dict):
        return None

    temperature_c = _as_float(current.get("temperature_2m"))
    dew_point_c = _as_float(current.get("dew_point_2m"))
    humidity_pct = _as_float(current.get("relative_humidity_2m"))
    wind_kmh = _as_float(current.get("wind_speed_10m"))

    if temperature_c is None or dew_point_c is None or humidity_pct is None or wind_kmh is None:
        return None

    return WeatherSnapshot(
        temperature_c=temperature_c,
        dew_point_c=dew_point_c,
        humidity_pct=humidity_pct,
        wind_kmh=wind_kmh,
    )


class WeatherClient:
    """Client for current weather at the athlete's location."""

    def __init__(
        self,
        forecast_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize weather client.

        Args:
            forecast_url: Open-Meteo forecast endpoint. Defaults to settings.
            timeout_s: Request timeout in seconds. Defaults to settings.
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.forecast_url = forecast_url or settings.open_meteo_forecast_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.weather_timeout_s
        self._transport = transport

    def fetch_current_conditions(self, lat: float, lon: float) -> WeatherSnapshot | None:
        """Fetch current temperature, dew point, humidity and wind.

        Args:
            lat: Latitude
            lon: Longitude

        Returns:
            WeatherSnapshot, or None if the call fails or values are missing
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": _CURRENT_FIELDS,
            "wind_speed_unit": "kmh",
            "timezone": "auto",
        }
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                response = client.get(self.forecast_url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPStatusError, httpx.RequestError, ValueError) as e:
            logger.warning(f"Open-Meteo current conditions fetch failed for {lat}, {lon}: {e}")
            return None

        snapshot = parse_current_conditions(data)
        if snapshot is None:
            logger.warning(f"Incomplete current conditions in Open-Meteo response for {lat}, {lon}")
        return snapshot


def get_weather_client() -> WeatherClient:
    """Get a configured weather client instance."""
    return WeatherClient()
