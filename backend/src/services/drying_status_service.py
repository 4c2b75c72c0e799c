"""Per-route drying status calculation."""

import logging
import statistics
from datetime import datetime, timedelta

from models.drying import (
    DryingFactors,
    DryingStatus,
    DryingStatusThresholds,
    DryingStatusTier,
)
from models.rock import RockTypeProfile
from models.route import ClimbingRoute
from models.weather import RainEvent, Season, WeatherContext, WeatherSample
from services.drying_curve import DryingCurveModel, DryingEstimate
from services.rock_type_catalog import RockTypeCatalog
from utils.cache import get_cache_key
from utils.constants import LIMITED_HISTORY_SAMPLES, SHORT_HISTORY_SAMPLES
from utils.errors import DataUnavailableError, NotApplicableError
from utils.sun_utils import effective_sun_hours, season_for, sun_facing_aspect

logger = logging.getLogger(__name__)

# Conditions assumed for the weather-less estimate
DEGRADED_TEMPERATURE_CELSIUS = 15.0
DEGRADED_HUMIDITY_PERCENT = 60.0
DEGRADED_WIND_SPEED_KMH = 8.0


def find_last_rain_event(
    samples: list[WeatherSample], rain_threshold_mm: float
) -> RainEvent | None:
    """
    Find the most recent rain event in a series.

    Scans backward from the newest sample. A rain event is the maximal
    contiguous run of samples whose precipitation exceeds the threshold.

    Args:
        samples: Samples ordered oldest first
        rain_threshold_mm: Precipitation at or below this is treated as dry

    Returns:
        The latest RainEvent, or None if no sample had rain
    """
    end_index = None
    for i in range(len(samples) - 1, -1, -1):
        if samples[i].precipitation_mm > rain_threshold_mm:
            end_index = i
            break
    if end_index is None:
        return None

    start_index = end_index
    while (
        start_index > 0
        and samples[start_index - 1].precipitation_mm > rain_threshold_mm
    ):
        start_index -= 1

    run = samples[start_index : end_index + 1]
    return RainEvent(
        start_time=run[0].timestamp,
        end_time=run[-1].timestamp,
        total_precipitation_mm=round(sum(s.precipitation_mm for s in run), 3),
        sample_count=len(run),
        max_hourly_mm=max(s.precipitation_mm for s in run),
    )


def hours_between(start: datetime, end: datetime) -> float:
    """Hours from start to end (negative if end is earlier)."""
    return (end - start).total_seconds() / 3600.0


class DryingStatusCalculator:
    """Computes the current drying status of a single route.

    Pure with respect to its inputs: everything comes from the route and the
    weather context, including the notion of "now" (``context.as_of``).
    """

    def __init__(
        self,
        catalog: RockTypeCatalog = None,
        curve_model: DryingCurveModel = None,
        thresholds: DryingStatusThresholds = None,
    ):
        self.catalog = catalog or RockTypeCatalog()
        self.curve_model = curve_model or DryingCurveModel()
        self.thresholds = thresholds or DryingStatusThresholds()

    def cache_namespace(self) -> str:
        """Key identifying this calculator's configuration for memoized results."""
        return get_cache_key(
            self.thresholds.model_dump(mode="json"),
            self.curve_model.algorithm.model_dump(mode="json"),
            [p.model_dump(mode="json") for p in self.catalog.profiles()],
        )

    def compute_status(self, route: ClimbingRoute, context: WeatherContext) -> DryingStatus:
        """
        Compute the current drying status for a route.

        Freezing temperatures after recent precipitation report the rock as
        iced, ahead of the normal rain-event estimate.

        Raises:
            NotApplicableError: The route has no GPS coordinates
            DataUnavailableError: No weather history and no rock type, so
                there is nothing to base even a degraded estimate on
        """
        if not route.has_gps:
            raise NotApplicableError(route.route_id)

        profile = self.catalog.classify(route.rock_type)
        season = season_for(context.as_of, route.latitude)
        tree_coverage = context.tree_coverage_for(route.route_id, route.area_id)
        history = self.history_window(context, route.area_id)

        if not history:
            return self._degraded_status(route, profile, season, tree_coverage)

        current = history[-1]
        if self.curve_model.is_freezing(current.temperature_celsius):
            icy = self._icy_status(route, profile, season, tree_coverage, history, context.as_of)
            if icy is not None:
                return icy

        event = find_last_rain_event(history, self.thresholds.rain_threshold_mm)

        if event is None:
            estimate = self._estimate(route, profile, season, tree_coverage, 0.0, None, current)
            factors = self._factors(
                route, profile, season, tree_coverage, current, estimate, 0.0, None, len(history)
            )
            lookback_days = self.thresholds.lookback_hours / 24
            return DryingStatus(
                route_id=route.route_id,
                is_wet=False,
                is_safe=True,
                status=DryingStatusTier.GOOD,
                hours_until_dry=0.0,
                confidence_score=self._confidence(
                    estimate.confidence_contribution, profile, history, False, None
                ),
                last_rain_timestamp=None,
                message=f"{profile.group_name}: dry, no rain in the last {lookback_days:.0f} days",
                factors=factors,
            )

        elapsed = max(hours_between(event.end_time, context.as_of), 0.0)
        estimate = self._estimate(
            route,
            profile,
            season,
            tree_coverage,
            event.total_precipitation_mm,
            elapsed,
            current,
        )
        hours_until_dry = round(max(0.0, estimate.total_hours_needed - elapsed), 1)
        is_wet = hours_until_dry > 0

        if is_wet and profile.is_wet_sensitive:
            status = DryingStatusTier.CRITICAL
            message = (
                f"DO NOT CLIMB - {profile.group_name} is permanently damaged by "
                f"climbing while wet ({hours_until_dry:.0f}h until dry)"
            )
        else:
            status = self.status_tier(hours_until_dry)
            if is_wet:
                message = f"{profile.group_name}: wet, about {hours_until_dry:.0f}h until dry"
            else:
                message = f"{profile.group_name}: dry and ready to climb"

        return DryingStatus(
            route_id=route.route_id,
            is_wet=is_wet,
            is_safe=not (is_wet and profile.is_wet_sensitive),
            status=status,
            hours_until_dry=hours_until_dry,
            confidence_score=self._confidence(
                estimate.confidence_contribution, profile, history, is_wet, elapsed
            ),
            last_rain_timestamp=event.end_time,
            message=message,
            factors=self._factors(
                route,
                profile,
                season,
                tree_coverage,
                current,
                estimate,
                event.total_precipitation_mm,
                elapsed,
                len(history),
            ),
        )

    def estimate_from_sample(
        self,
        route: ClimbingRoute,
        context: WeatherContext,
        rain_mm: float,
        sample: WeatherSample,
    ) -> DryingEstimate:
        """Run the drying curve for a route under one sample's conditions."""
        profile = self.catalog.classify(route.rock_type)
        season = season_for(sample.timestamp, route.latitude)
        tree_coverage = context.tree_coverage_for(route.route_id, route.area_id)
        return self._estimate(route, profile, season, tree_coverage, rain_mm, None, sample)

    def status_tier(self, hours_until_dry: float) -> DryingStatusTier:
        """Map hours until dry to a status tier using the configured thresholds."""
        if hours_until_dry <= 0:
            return DryingStatusTier.GOOD
        if hours_until_dry < self.thresholds.fair_threshold_hours:
            return DryingStatusTier.FAIR
        if hours_until_dry < self.thresholds.poor_threshold_hours:
            return DryingStatusTier.POOR
        return DryingStatusTier.CRITICAL

    def history_window(self, context: WeatherContext, area_id: str) -> list[WeatherSample]:
        """Historical samples within the lookback window ending at ``as_of``."""
        snapshot = context.snapshot_for(area_id)
        if snapshot is None:
            return []
        window_start = context.as_of - timedelta(hours=self.thresholds.lookback_hours)
        return [
            s for s in snapshot.historical if window_start <= s.timestamp <= context.as_of
        ]

    def _estimate(
        self,
        route: ClimbingRoute,
        profile: RockTypeProfile,
        season: Season,
        tree_coverage: float | None,
        rain_mm: float,
        hours_since_rain: float | None,
        sample: WeatherSample,
    ) -> DryingEstimate:
        return self.curve_model.estimate_drying_hours(
            porosity_class=profile.porosity_class,
            hours_since_rain=hours_since_rain,
            cumulative_rain_mm=rain_mm,
            temperature_celsius=sample.temperature_celsius,
            humidity_percent=sample.humidity_percent,
            wind_speed_kmh=sample.wind_speed_kmh,
            effective_sun_exposure_hours=effective_sun_hours(
                season, sample.cloud_cover_percent
            ),
            tree_coverage_percent=tree_coverage,
            aspect=sun_facing_aspect(route.aspect, route.latitude),
            season=season,
        )

    def _icy_status(
        self,
        route: ClimbingRoute,
        profile: RockTypeProfile,
        season: Season,
        tree_coverage: float | None,
        history: list[WeatherSample],
        as_of: datetime,
    ) -> DryingStatus | None:
        """Status for freezing conditions after recent precipitation, else None."""
        algo = self.curve_model.algorithm
        window_start = as_of - timedelta(hours=algo.ice_lookback_hours)
        wet_samples = [
            s
            for s in history
            if s.timestamp > window_start
            and s.precipitation_mm > self.thresholds.rain_threshold_mm
        ]
        recent_mm = round(sum(s.precipitation_mm for s in wet_samples), 3)
        if recent_mm <= algo.ice_min_precipitation_mm:
            return None

        hours_needed = self.curve_model.estimate_ice_melt_hours(
            profile.porosity_class, recent_mm, season
        )
        hours_until_dry = round(hours_needed, 1)
        if profile.is_wet_sensitive:
            status = DryingStatusTier.CRITICAL
            message = (
                f"DO NOT CLIMB - {profile.group_name} is wet-sensitive and may have ice "
                f"({hours_until_dry:.0f}h until dry)"
            )
        else:
            status = DryingStatusTier.POOR
            message = (
                f"{profile.group_name}: freezing temps with recent precipitation, "
                f"ice on rock (about {hours_until_dry:.0f}h until dry)"
            )
        logger.info(f"Route {route.route_id} likely iced: {recent_mm}mm in freezing temps")

        last_wet = wet_samples[-1].timestamp
        confidence = min(
            max(algo.ice_confidence, self.thresholds.min_confidence),
            self.thresholds.max_confidence,
        )
        return DryingStatus(
            route_id=route.route_id,
            is_wet=True,
            is_safe=False,
            status=status,
            hours_until_dry=hours_until_dry,
            confidence_score=confidence,
            last_rain_timestamp=last_wet,
            message=message,
            factors=self._factors(
                route,
                profile,
                season,
                tree_coverage,
                history[-1],
                DryingEstimate(hours_needed, algo.ice_confidence),
                recent_mm,
                max(hours_between(last_wet, as_of), 0.0),
                len(history),
            ),
        )

    def _degraded_status(
        self,
        route: ClimbingRoute,
        profile: RockTypeProfile,
        season: Season,
        tree_coverage: float | None,
    ) -> DryingStatus:
        """Estimate from static attributes only when weather history is missing."""
        if not route.rock_type:
            raise DataUnavailableError(route.route_id, "no weather history and no rock type")

        logger.warning(
            f"No weather history for route {route.route_id} (area {route.area_id}), "
            f"using static estimate"
        )
        # Typical drying time after a reference rain, for the message only
        estimate = self.curve_model.estimate_drying_hours(
            porosity_class=profile.porosity_class,
            hours_since_rain=None,
            cumulative_rain_mm=self.curve_model.algorithm.reference_rain_mm,
            temperature_celsius=DEGRADED_TEMPERATURE_CELSIUS,
            humidity_percent=DEGRADED_HUMIDITY_PERCENT,
            wind_speed_kmh=DEGRADED_WIND_SPEED_KMH,
            effective_sun_exposure_hours=None,
            tree_coverage_percent=tree_coverage,
            aspect=sun_facing_aspect(route.aspect, route.latitude),
            season=season,
        )
        score = self._confidence(estimate.confidence_contribution, profile, [], False, None)

        return DryingStatus(
            route_id=route.route_id,
            is_wet=False,
            is_safe=True,
            status=DryingStatusTier.GOOD,
            hours_until_dry=0.0,
            confidence_score=min(score, self.thresholds.degraded_confidence_cap),
            last_rain_timestamp=None,
            message=(
                f"{profile.group_name}: weather data unavailable, typically needs "
                f"about {estimate.total_hours_needed:.0f}h to dry after rain"
            ),
            factors=DryingFactors(
                rock_type=route.rock_type,
                rock_group=profile.group,
                porosity_class=profile.porosity_class,
                rock_type_assumed=profile.assumed,
                aspect=route.aspect,
                season=season,
                tree_coverage_percent=tree_coverage,
                total_hours_needed=estimate.total_hours_needed,
            ),
            data_unavailable=True,
        )

    def _factors(
        self,
        route: ClimbingRoute,
        profile: RockTypeProfile,
        season: Season,
        tree_coverage: float | None,
        current: WeatherSample,
        estimate: DryingEstimate,
        rain_mm: float,
        hours_since_rain: float | None,
        history_count: int,
    ) -> DryingFactors:
        return DryingFactors(
            rock_type=route.rock_type,
            rock_group=profile.group,
            porosity_class=profile.porosity_class,
            rock_type_assumed=profile.assumed,
            aspect=route.aspect,
            season=season,
            tree_coverage_percent=tree_coverage,
            sun_exposure_hours=round(
                effective_sun_hours(season, current.cloud_cover_percent), 2
            ),
            temperature_celsius=current.temperature_celsius,
            humidity_percent=current.humidity_percent,
            wind_speed_kmh=current.wind_speed_kmh,
            cloud_cover_percent=current.cloud_cover_percent,
            rain_amount_mm=rain_mm,
            hours_since_rain=round(hours_since_rain, 2)
            if hours_since_rain is not None
            else None,
            total_hours_needed=estimate.total_hours_needed if rain_mm > 0 else 0.0,
            historical_samples=history_count,
        )

    def _confidence(
        self,
        model_contribution: int,
        profile: RockTypeProfile,
        history: list[WeatherSample],
        is_wet: bool,
        hours_since_rain: float | None,
    ) -> int:
        """Combine the curve's confidence with data completeness and stability."""
        score = float(model_contribution)

        if profile.assumed:
            score -= 15

        if len(history) < SHORT_HISTORY_SAMPLES:
            score -= 15
        elif len(history) < LIMITED_HISTORY_SAMPLES:
            score -= 8

        # Unstable temperatures make the estimate less reliable
        if len(history) >= 12:
            spread = statistics.pstdev(s.temperature_celsius for s in history)
            if spread > 8.0:
                score -= 8
            elif spread > 5.5:
                score -= 4

        if is_wet:
            if hours_since_rain is not None and hours_since_rain > 72:
                score += 8
            if profile.is_wet_sensitive:
                score -= 5
        elif history and (hours_since_rain is None or hours_since_rain > 96):
            score += 10

        score = min(max(score, self.thresholds.min_confidence), self.thresholds.max_confidence)
        return int(round(score))
