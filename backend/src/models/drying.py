"""Drying status, forecast and aggregate models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .rock import PorosityClass, RockGroup
from .route import Aspect
from .weather import Season


class DryingStatusTier(str, Enum):
    """Climbability tiers for a route's current drying status."""

    GOOD = "good"  # Dry, climb away
    FAIR = "fair"  # Drying, should be climbable within a day
    POOR = "poor"  # Still wet, multiple days out
    CRITICAL = "critical"  # Do not climb (wet-sensitive rock or very long dry time)


class ForecastStatus(str, Enum):
    """Surface state for a forecast period."""

    DRY = "dry"
    DRYING = "drying"
    WET = "wet"


# Explanations for UI info indicators
DRYING_STATUS_EXPLANATIONS: dict[DryingStatusTier, dict[str, str]] = {
    DryingStatusTier.GOOD: {
        "title": "Good - Dry",
        "description": "Rock is dry. No rain recently, or enough time has passed for it to dry.",
    },
    DryingStatusTier.FAIR: {
        "title": "Fair - Drying",
        "description": "Rock is still drying but should be climbable soon. Expect damp holds in shaded spots.",
    },
    DryingStatusTier.POOR: {
        "title": "Poor - Wet",
        "description": "Rock is wet and will take a while to dry. Consider another area.",
    },
    DryingStatusTier.CRITICAL: {
        "title": "Critical - Do Not Climb",
        "description": "Wet-sensitive rock that is still wet, or rock that will stay wet for days.",
    },
}


class DryingCurveAlgorithm(BaseModel):
    """Tunable coefficients for the drying curve.

    Multipliers are applied to the porosity base time; anything below 1.0
    speeds drying up, anything above slows it down. Step tables are lists of
    ``(threshold, multiplier)`` checked in order.
    """

    # Base hours to dry after a reference rain in ideal conditions
    porosity_base_hours: dict[PorosityClass, float] = Field(
        default={
            PorosityClass.LOW: 6.0,
            PorosityClass.MEDIUM: 10.0,
            PorosityClass.HIGH: 20.0,
            PorosityClass.VERY_HIGH: 36.0,
        }
    )

    # Rain amount scaling (2.5 mm is roughly 0.1")
    reference_rain_mm: float = Field(default=2.5, gt=0)
    min_rain_factor: float = Field(default=0.5, gt=0)
    max_rain_factor: float = Field(default=3.0, gt=0)

    # Temperature: first matching upper bound wins, ascending
    temperature_steps: list[tuple[float, float]] = Field(
        default=[(10.0, 1.4), (13.0, 1.2), (18.0, 1.0), (21.0, 0.85)]
    )
    temperature_hot_factor: float = Field(default=0.75)

    # Humidity: first matching upper bound wins, ascending
    humidity_steps: list[tuple[float, float]] = Field(
        default=[(40.0, 0.75), (50.0, 0.85), (70.0, 1.0), (80.0, 1.2)]
    )
    humidity_saturated_factor: float = Field(default=1.35)

    # Wind: first matching upper bound wins, ascending
    wind_steps: list[tuple[float, float]] = Field(
        default=[(5.0, 1.1), (8.0, 1.0), (25.0, 0.8)]
    )
    wind_strong_factor: float = Field(default=0.75)

    # Effective daily direct-sun hours: first matching lower bound wins, descending
    sun_steps: list[tuple[float, float]] = Field(
        default=[(8.0, 0.7), (6.0, 0.85), (4.0, 1.0), (2.0, 1.15)]
    )
    sun_minimal_factor: float = Field(default=1.3)

    # Tree canopy: first matching lower bound wins, descending
    tree_steps: list[tuple[float, float]] = Field(
        default=[(75.0, 1.3), (50.0, 1.15), (25.0, 1.05)]
    )

    # Share of the face's sun that reaches it, by season and aspect
    aspect_sun_factors: dict[Season, dict[Aspect, float]] = Field(
        default={
            Season.WINTER: {
                Aspect.N: 0.15, Aspect.NE: 0.3, Aspect.E: 0.5, Aspect.SE: 0.8,
                Aspect.S: 1.0, Aspect.SW: 0.8, Aspect.W: 0.5, Aspect.NW: 0.3,
            },
            Season.SPRING: {
                Aspect.N: 0.35, Aspect.NE: 0.5, Aspect.E: 0.65, Aspect.SE: 0.85,
                Aspect.S: 1.0, Aspect.SW: 0.85, Aspect.W: 0.65, Aspect.NW: 0.5,
            },
            Season.SUMMER: {
                Aspect.N: 0.5, Aspect.NE: 0.65, Aspect.E: 0.75, Aspect.SE: 0.9,
                Aspect.S: 1.0, Aspect.SW: 0.9, Aspect.W: 0.75, Aspect.NW: 0.65,
            },
            Season.FALL: {
                Aspect.N: 0.25, Aspect.NE: 0.4, Aspect.E: 0.6, Aspect.SE: 0.85,
                Aspect.S: 1.0, Aspect.SW: 0.85, Aspect.W: 0.6, Aspect.NW: 0.4,
            },
        }
    )
    # Used when aspect is unknown; between east and west faces
    unknown_aspect_sun_factor: float = Field(default=0.6)

    # Confidence penalties for substituted defaults
    missing_aspect_penalty: int = Field(default=20)
    missing_tree_coverage_penalty: int = Field(default=15)
    missing_sun_exposure_penalty: int = Field(default=10)
    recent_rain_penalty: int = Field(default=5)
    recent_rain_hours: float = Field(default=6.0)

    # Ice: at or below freezing with enough recent precipitation the rock is iced
    freezing_temperature_celsius: float = Field(default=0.0)
    ice_lookback_hours: float = Field(default=48.0, gt=0)
    ice_min_precipitation_mm: float = Field(default=2.5, ge=0)
    # Hours for the ice to clear by season, plus hours per mm of precipitation
    ice_melt_base_hours: dict[Season, float] = Field(
        default={
            Season.SUMMER: 24.0,
            Season.SPRING: 48.0,
            Season.FALL: 48.0,
            Season.WINTER: 84.0,
        }
    )
    ice_melt_hours_per_mm: dict[Season, float] = Field(
        default={
            Season.SUMMER: 3.15,
            Season.SPRING: 4.72,
            Season.FALL: 4.72,
            Season.WINTER: 7.09,
        }
    )
    max_ice_melt_hours: float = Field(default=168.0, gt=0)
    # Share of the porosity base time still needed once the ice is gone
    ice_rock_drying_fraction: float = Field(default=0.4, ge=0)
    ice_confidence: int = Field(default=90, ge=0, le=100)

    model_config = ConfigDict(frozen=True)


class DryingStatusThresholds(BaseModel):
    """Configuration for status tiering and confidence scoring."""

    rain_threshold_mm: float = Field(
        default=0.25, ge=0, description="Hourly precipitation that counts as rain"
    )
    lookback_hours: float = Field(default=14 * 24, gt=0)
    fair_threshold_hours: float = Field(
        default=24.0, gt=0, description="Below this many hours until dry is 'fair'"
    )
    poor_threshold_hours: float = Field(
        default=72.0, gt=0, description="Below this many hours until dry is 'poor'"
    )
    # Confidence bounds and cap for the weather-less estimate
    min_confidence: int = Field(default=20, ge=0, le=100)
    max_confidence: int = Field(default=95, ge=0, le=100)
    degraded_confidence_cap: int = Field(default=30, ge=0, le=100)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_ordering(self):
        if self.fair_threshold_hours >= self.poor_threshold_hours:
            raise ValueError("fair_threshold_hours must be below poor_threshold_hours")
        if self.min_confidence > self.max_confidence:
            raise ValueError("min_confidence must not exceed max_confidence")
        return self


class DryingFactors(BaseModel):
    """Snapshot of the inputs that produced a drying status."""

    rock_type: str | None = None
    rock_group: RockGroup
    porosity_class: PorosityClass
    rock_type_assumed: bool = False
    aspect: Aspect | None = None
    season: Season
    tree_coverage_percent: float | None = None
    sun_exposure_hours: float | None = None
    temperature_celsius: float | None = None
    humidity_percent: float | None = None
    wind_speed_kmh: float | None = None
    cloud_cover_percent: float | None = None
    rain_amount_mm: float = 0.0
    hours_since_rain: float | None = None
    total_hours_needed: float = 0.0
    historical_samples: int = 0

    model_config = ConfigDict(frozen=True)


class DryingStatus(BaseModel):
    """Current drying status of a single route."""

    route_id: str
    is_wet: bool
    is_safe: bool
    status: DryingStatusTier
    hours_until_dry: float = Field(..., ge=0)
    confidence_score: int = Field(..., ge=0, le=100)
    last_rain_timestamp: datetime | None = None
    message: str
    factors: DryingFactors
    data_unavailable: bool = Field(
        default=False,
        description="True when weather was missing and only static attributes were used",
    )

    model_config = ConfigDict(frozen=True)

    def to_api_response(self) -> dict[str, Any]:
        """Convert to a lightweight dict for the API layer (drops factors)."""
        return {
            "route_id": self.route_id,
            "is_wet": self.is_wet,
            "is_safe": self.is_safe,
            "status": self.status.value,
            "hours_until_dry": self.hours_until_dry,
            "confidence_score": self.confidence_score,
            "last_rain_timestamp": self.last_rain_timestamp.isoformat()
            if self.last_rain_timestamp
            else None,
            "message": self.message,
            "data_unavailable": self.data_unavailable,
        }


class DryingForecastPeriod(BaseModel):
    """One contiguous span of the forecast timeline."""

    start_time: datetime
    end_time: datetime | None = Field(
        None, description="None only on the final, open-ended period"
    )
    status: ForecastStatus
    hours_until_dry: float = Field(default=0.0, ge=0)
    rain_amount_mm: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True)


class AreaDryingStats(BaseModel):
    """Aggregated drying statistics for an area."""

    area_id: str
    total_routes: int = Field(..., ge=1, description="Routes included in the computation")
    dry_count: int = Field(default=0, ge=0)
    drying_count: int = Field(default=0, ge=0)
    wet_count: int = Field(default=0, ge=0)
    percent_dry: int = Field(default=0, ge=0, le=100)
    avg_hours_until_dry: float = Field(default=0.0, ge=0)
    avg_tree_coverage: float | None = None
    confidence_score: int = Field(default=0, ge=0, le=100)
    last_rain_timestamp: datetime | None = None
    excluded_count: int = Field(default=0, ge=0)
    degraded_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_counts(self):
        if self.dry_count + self.drying_count + self.wet_count != self.total_routes:
            raise ValueError("dry, drying and wet counts must sum to total_routes")
        return self


class AreaNoData(BaseModel):
    """Aggregate result when no route in the area had usable data."""

    area_id: str
    excluded_count: int = Field(default=0, ge=0)
    message: str = "Insufficient data to estimate drying for this area"

    model_config = ConfigDict(frozen=True)
