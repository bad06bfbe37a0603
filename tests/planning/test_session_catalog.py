"""Tests for the session template catalog."""

import pytest

from norskflow.planning.errors import TemplateCatalogError
from norskflow.planning.models import WorkoutType
from norskflow.planning.templates import load_catalog, parse_catalog


def test_packaged_catalog_rotation() -> None:
    catalog = load_catalog()
    rotation = [(t.reps, t.distance_m, t.rest) for t in catalog.threshold_rotation]
    assert rotation == [(5, 2000, "60s"), (8, 1000, "60s"), (3, 3000, "90s")]


def test_rotation_cycles() -> None:
    catalog = load_catalog()
    assert catalog.threshold_template(3) == catalog.threshold_template(0)
    assert catalog.threshold_template(4).distance_m == 1000


def test_bike_speeds_fall_back_to_easy() -> None:
    catalog = load_catalog()
    assert catalog.bike_speed(WorkoutType.THRESHOLD) == 34
    assert catalog.bike_speed(WorkoutType.LONG_RUN) == 31
    assert catalog.bike_speed(WorkoutType.RACE) == 30


def test_unknown_zone_raises() -> None:
    with pytest.raises(TemplateCatalogError) as exc_info:
        load_catalog().zone("Z9")
    assert exc_info.value.code == "INVALID_CATALOG"


@pytest.mark.parametrize(
    "data",
    [
        None,
        {"bike_speed_kmh": {"Easy": 30}, "bike_zones": {}},
        {"threshold_rotation": [{"reps": 5}], "bike_speed_kmh": {"Easy": 30}, "bike_zones": {}},
        {"threshold_rotation": [{"reps": 5, "distance_m": 2000, "rest": "60s"}], "bike_speed_kmh": {"Long Run": 31}, "bike_zones": {}},
        {
            "threshold_rotation": [{"reps": 5, "distance_m": 2000, "rest": "60s"}],
            "bike_speed_kmh": {"Easy": 30},
            "bike_zones": {"Z2": {"power": [0.5]}},
        },
    ],
)
def test_malformed_catalog_is_rejected(data: object) -> None:
    with pytest.raises(TemplateCatalogError):
        parse_catalog(data)
