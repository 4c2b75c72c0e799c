"""Weather input data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Season(str, Enum):
    """Astronomical season, used to scale direct sun on a face."""

    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"


class WeatherSample(BaseModel):
    """A single hourly weather observation or forecast value."""

    timestamp: datetime = Field(..., description="Start of the sampled hour (tz-aware)")
    precipitation_mm: float = Field(default=0.0, ge=0, description="Precipitation (mm)")
    temperature_celsius: float = Field(..., description="Air temperature in Celsius")
    humidity_percent: float = Field(..., ge=0, le=100, description="Relative humidity")
    wind_speed_kmh: float = Field(default=0.0, ge=0, description="Wind speed in km/h")
    cloud_cover_percent: float = Field(
        default=50.0, ge=0, le=100, description="Total cloud cover"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("timestamp")
    @classmethod
    def require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return value


class WeatherSnapshot(BaseModel):
    """Historical and forecast series for one location."""

    historical: list[WeatherSample] = Field(
        default_factory=list, description="Observed samples, oldest first"
    )
    forecast: list[WeatherSample] = Field(
        default_factory=list, description="Forecast samples, oldest first"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("historical", "forecast")
    @classmethod
    def sort_samples(cls, value: list[WeatherSample]) -> list[WeatherSample]:
        return sorted(value, key=lambda s: s.timestamp)

    @property
    def has_history(self) -> bool:
        return bool(self.historical)


class WeatherContext(BaseModel):
    """Read-only inputs shared by every calculation in one request.

    Weather is resolved per area (routes in an area share a location's
    weather); tree coverage is resolved per route with an area-level
    fallback.
    """

    as_of: datetime = Field(..., description="The request's notion of 'now'")
    snapshots: dict[str, WeatherSnapshot] = Field(
        default_factory=dict, description="Weather snapshots keyed by area_id"
    )
    tree_coverage: dict[str, float] = Field(
        default_factory=dict, description="Tree canopy percent keyed by route_id"
    )
    area_tree_coverage: dict[str, float] = Field(
        default_factory=dict, description="Fallback canopy percent keyed by area_id"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("as_of")
    @classmethod
    def require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("as_of must be timezone-aware")
        return value

    def snapshot_for(self, area_id: str) -> WeatherSnapshot | None:
        """Get the weather snapshot for an area, if one was fetched."""
        return self.snapshots.get(area_id)

    def tree_coverage_for(self, route_id: str, area_id: str) -> float | None:
        """Get canopy cover for a route, falling back to its area."""
        if route_id in self.tree_coverage:
            return self.tree_coverage[route_id]
        return self.area_tree_coverage.get(area_id)


class RainEvent(BaseModel):
    """A maximal contiguous run of samples with measurable precipitation."""

    start_time: datetime
    end_time: datetime
    total_precipitation_mm: float = Field(..., ge=0)
    sample_count: int = Field(..., ge=1)
    max_hourly_mm: float = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600.0
