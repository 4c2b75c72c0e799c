"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from models.route import ClimbingRoute
from models.weather import WeatherContext, WeatherSample, WeatherSnapshot
from utils.cache import clear_all_caches

# Mid-July, northern hemisphere summer
AS_OF = datetime(2025, 7, 15, 12, 0, tzinfo=UTC)
AREA_ID = "smith-rock"


def make_sample(timestamp: datetime, precipitation_mm: float = 0.0, **overrides) -> WeatherSample:
    """Build an hourly sample with mild, breezy, mostly sunny defaults."""
    values = {
        "temperature_celsius": 20.0,
        "humidity_percent": 50.0,
        "wind_speed_kmh": 10.0,
        "cloud_cover_percent": 20.0,
    }
    values.update(overrides)
    return WeatherSample(timestamp=timestamp, precipitation_mm=precipitation_mm, **values)


def make_history(
    hours: int = 72,
    end: datetime = AS_OF,
    rain: dict[int, float] | None = None,
    **overrides,
) -> list[WeatherSample]:
    """Hourly samples ending at ``end``.

    ``rain`` maps hours-before-end to precipitation in mm.
    """
    rain = rain or {}
    return [
        make_sample(end - timedelta(hours=h), rain.get(h, 0.0), **overrides)
        for h in range(hours - 1, -1, -1)
    ]


def make_forecast(
    hours: int = 144,
    start: datetime = AS_OF,
    rain: dict[int, float] | None = None,
    **overrides,
) -> list[WeatherSample]:
    """Hourly samples starting at ``start``.

    ``rain`` maps hours-after-start to precipitation in mm.
    """
    rain = rain or {}
    return [
        make_sample(start + timedelta(hours=h), rain.get(h, 0.0), **overrides)
        for h in range(hours)
    ]


def make_context(
    historical: list[WeatherSample] | None = None,
    forecast: list[WeatherSample] | None = None,
    as_of: datetime = AS_OF,
    area_id: str = AREA_ID,
    **kwargs,
) -> WeatherContext:
    """Wrap series for a single area in a weather context."""
    snapshot = WeatherSnapshot(historical=historical or [], forecast=forecast or [])
    return WeatherContext(as_of=as_of, snapshots={area_id: snapshot}, **kwargs)


def make_route(route_id: str = "route-1", rock_type: str | None = "granite", **overrides) -> ClimbingRoute:
    """Build a route in the default area with GPS and a south aspect."""
    values = {
        "route_id": route_id,
        "area_id": AREA_ID,
        "name": f"Route {route_id}",
        "latitude": 44.367,
        "longitude": -121.14,
        "rock_type": rock_type,
        "aspect": "S",
    }
    values.update(overrides)
    return ClimbingRoute(**values)


@pytest.fixture(autouse=True)
def _clear_caches():
    """Clear the drying status cache around each test."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def granite_route():
    """A south-facing granite route with GPS."""
    return make_route("granite-1", "granite")


@pytest.fixture
def sandstone_route():
    """A wet-sensitive sandstone route with GPS."""
    return make_route("sandstone-1", "sandstone")


@pytest.fixture
def no_gps_route():
    """A route the catalog has no coordinates for."""
    return make_route("no-gps-1", "granite", latitude=None, longitude=None)


@pytest.fixture
def dry_context():
    """Three days of dry history and six days of dry forecast."""
    return make_context(historical=make_history(), forecast=make_forecast())


@pytest.fixture
def recent_rain_context():
    """5 mm of rain one hour before as_of, dry forecast."""
    return make_context(historical=make_history(rain={1: 5.0}), forecast=make_forecast())
