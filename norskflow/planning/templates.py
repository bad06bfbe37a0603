"""Session template catalog.

Threshold templates, assumed bike speeds and ride zone bands live in
`norskflow/data/session_templates.yaml` so coaches can tune them without
touching the allocation code.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml
from loguru import logger

from norskflow.planning.errors import TemplateCatalogError
from norskflow.planning.models import WorkoutType

CATALOG_PATH = Path(__file__).parent.parent / "data" / "session_templates.yaml"


@dataclass(frozen=True)
class ThresholdTemplate:
    reps: int
    distance_m: int
    rest: str

    @property
    def work_km(self) -> float:
        return self.reps * self.distance_m / 1000


@dataclass(frozen=True)
class ZoneBand:
    """Fractions of FTP and max HR bounding one ride zone."""

    power: tuple[float, float]
    heart_rate: tuple[float, float]


@dataclass(frozen=True)
class SessionCatalog:
    threshold_rotation: tuple[ThresholdTemplate, ...]
    bike_speed_kmh: dict[WorkoutType, float]
    bike_zones: dict[str, ZoneBand]

    def threshold_template(self, position: int) -> ThresholdTemplate:
        """Template for the position-th threshold day of the week (cyclic)."""
        return self.threshold_rotation[max(0, position) % len(self.threshold_rotation)]

    def bike_speed(self, workout_type: WorkoutType) -> float:
        return self.bike_speed_kmh.get(workout_type, self.bike_speed_kmh[WorkoutType.EASY])

    def zone(self, name: str) -> ZoneBand:
        if name not in self.bike_zones:
            raise TemplateCatalogError("INVALID_CATALOG", [f"Unknown bike zone '{name}'"])
        return self.bike_zones[name]


def _pair(raw: object, where: str) -> tuple[float, float]:
    if not isinstance(raw, list) or len(raw) != 2:
        raise TemplateCatalogError("INVALID_CATALOG", [f"{where} must be a [low, high] pair"])
    low, high = float(raw[0]), float(raw[1])
    return (low, high)


def parse_catalog(data: object) -> SessionCatalog:
    """Validate raw YAML data into a SessionCatalog.

    Raises:
        TemplateCatalogError: If any section is missing or malformed
    """
    if not isinstance(data, dict):
        raise TemplateCatalogError("INVALID_CATALOG", ["Catalog root must be a mapping"])

    rotation_raw = data.get("threshold_rotation")
    if not isinstance(rotation_raw, list) or not rotation_raw:
        raise TemplateCatalogError("INVALID_CATALOG", ["threshold_rotation must be a non-empty list"])

    rotation: list[ThresholdTemplate] = []
    for idx, item in enumerate(rotation_raw):
        try:
            rotation.append(
                ThresholdTemplate(reps=int(item["reps"]), distance_m=int(item["distance_m"]), rest=str(item["rest"]))
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TemplateCatalogError("INVALID_CATALOG", [f"threshold_rotation[{idx}]: {e}"]) from e

    speeds_raw = data.get("bike_speed_kmh")
    if not isinstance(speeds_raw, dict):
        raise TemplateCatalogError("INVALID_CATALOG", ["bike_speed_kmh must be a mapping"])
    try:
        speeds = {WorkoutType(k): float(v) for k, v in speeds_raw.items()}
    except ValueError as e:
        raise TemplateCatalogError("INVALID_CATALOG", [f"bike_speed_kmh: {e}"]) from e
    if WorkoutType.EASY not in speeds:
        raise TemplateCatalogError("INVALID_CATALOG", ["bike_speed_kmh needs an Easy entry"])

    zones_raw = data.get("bike_zones")
    if not isinstance(zones_raw, dict):
        raise TemplateCatalogError("INVALID_CATALOG", ["bike_zones must be a mapping"])
    zones = {
        name: ZoneBand(
            power=_pair(band.get("power") if isinstance(band, dict) else None, f"bike_zones.{name}.power"),
            heart_rate=_pair(band.get("heart_rate") if isinstance(band, dict) else None, f"bike_zones.{name}.heart_rate"),
        )
        for name, band in zones_raw.items()
    }

    return SessionCatalog(threshold_rotation=tuple(rotation), bike_speed_kmh=speeds, bike_zones=zones)


@lru_cache(maxsize=1)
def load_catalog(path: Path = CATALOG_PATH) -> SessionCatalog:
    """Load and cache the session template catalog."""
    if not path.exists():
        raise TemplateCatalogError("INVALID_CATALOG", [f"Catalog not found: {path}"])

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    catalog = parse_catalog(data)
    logger.debug(f"Loaded session catalog from {path} ({len(catalog.threshold_rotation)} threshold templates)")
    return catalog
