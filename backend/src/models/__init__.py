"""Data models for the crag drying engine."""

from .drying import (
    AreaDryingStats,
    AreaNoData,
    DryingCurveAlgorithm,
    DryingFactors,
    DryingForecastPeriod,
    DryingStatus,
    DryingStatusThresholds,
    DryingStatusTier,
    ForecastStatus,
)
from .rock import PorosityClass, RockGroup, RockTypeProfile
from .route import Aspect, ClimbingRoute
from .weather import RainEvent, Season, WeatherContext, WeatherSample, WeatherSnapshot

__all__ = [
    "Aspect",
    "ClimbingRoute",
    "PorosityClass",
    "RockGroup",
    "RockTypeProfile",
    "Season",
    "WeatherSample",
    "WeatherSnapshot",
    "WeatherContext",
    "RainEvent",
    "DryingStatusTier",
    "ForecastStatus",
    "DryingCurveAlgorithm",
    "DryingStatusThresholds",
    "DryingFactors",
    "DryingStatus",
    "DryingForecastPeriod",
    "AreaDryingStats",
    "AreaNoData",
]
