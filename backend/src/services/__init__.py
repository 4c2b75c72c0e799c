"""Services for the crag drying engine."""

from .area_aggregator import AreaAggregator
from .batch_coordinator import BatchCoordinator
from .drying_curve import DryingCurveModel, DryingEstimate
from .drying_status_service import DryingStatusCalculator
from .forecast_timeline_service import ForecastTimelineBuilder, consolidate_periods
from .rock_type_catalog import RockTypeCatalog

__all__ = [
    "RockTypeCatalog",
    "DryingCurveModel",
    "DryingEstimate",
    "DryingStatusCalculator",
    "ForecastTimelineBuilder",
    "consolidate_periods",
    "AreaAggregator",
    "BatchCoordinator",
]
