"""Drying curve model: how long wet rock needs to dry."""

from typing import NamedTuple

from models.drying import DryingCurveAlgorithm
from models.rock import PorosityClass
from models.route import Aspect
from models.weather import Season
from utils.sun_utils import typical_sun_hours


class DryingEstimate(NamedTuple):
    """Result of a drying curve evaluation."""

    total_hours_needed: float
    confidence_contribution: int


def _factor_below(value: float, steps: list[tuple[float, float]], default: float) -> float:
    """Multiplier for the first step whose upper bound exceeds value."""
    for upper_bound, factor in steps:
        if value < upper_bound:
            return factor
    return default


def _factor_at_least(value: float, steps: list[tuple[float, float]], default: float) -> float:
    """Multiplier for the first step whose lower bound value reaches."""
    for lower_bound, factor in steps:
        if value >= lower_bound:
            return factor
    return default


class DryingCurveModel:
    """Deterministic estimate of drying time from environmental inputs.

    The estimate is a porosity base time scaled by multiplicative factors for
    rain amount, temperature, humidity, wind, effective sun and tree canopy.
    Each factor is a step function that is monotone in its input, so the
    total is monotone in each input with the others held fixed.

    Iced rock is estimated separately by ``estimate_ice_melt_hours``.
    """

    def __init__(self, algorithm_config: DryingCurveAlgorithm = None):
        """Initialize the model with algorithm configuration."""
        self.algorithm = algorithm_config or DryingCurveAlgorithm()

    def estimate_drying_hours(
        self,
        porosity_class: PorosityClass,
        hours_since_rain: float | None,
        cumulative_rain_mm: float,
        temperature_celsius: float,
        humidity_percent: float,
        wind_speed_kmh: float,
        effective_sun_exposure_hours: float | None,
        tree_coverage_percent: float | None,
        aspect: Aspect | None,
        season: Season,
    ) -> DryingEstimate:
        """
        Estimate total hours rock needs to dry after a rain event.

        Args:
            porosity_class: Porosity bucket of the rock
            hours_since_rain: Hours since the rain event ended. Only affects
                confidence, never the total.
            cumulative_rain_mm: Precipitation accumulated in the event
            temperature_celsius: Air temperature
            humidity_percent: Relative humidity
            wind_speed_kmh: Wind speed
            effective_sun_exposure_hours: Daily direct-sun hours after cloud
                cover, before aspect and canopy. None uses the seasonal typical.
            tree_coverage_percent: Canopy cover; None assumes open rock
            aspect: Face aspect; None uses an east/west-like average
            season: Season, which with aspect scales the sun reaching the face

        Returns:
            DryingEstimate(total_hours_needed, confidence_contribution)
        """
        algo = self.algorithm
        confidence = 100

        hours = algo.porosity_base_hours[porosity_class]
        hours *= self._rain_factor(cumulative_rain_mm)
        hours *= _factor_below(
            temperature_celsius, algo.temperature_steps, algo.temperature_hot_factor
        )
        hours *= _factor_below(
            humidity_percent, algo.humidity_steps, algo.humidity_saturated_factor
        )
        hours *= _factor_below(wind_speed_kmh, algo.wind_steps, algo.wind_strong_factor)

        if effective_sun_exposure_hours is None:
            effective_sun_exposure_hours = typical_sun_hours(season)
            confidence -= algo.missing_sun_exposure_penalty

        if aspect is None:
            aspect_factor = algo.unknown_aspect_sun_factor
            confidence -= algo.missing_aspect_penalty
        else:
            aspect_factor = algo.aspect_sun_factors[season][aspect]

        if tree_coverage_percent is None:
            tree_coverage_percent = 0.0
            confidence -= algo.missing_tree_coverage_penalty

        face_sun_hours = max(effective_sun_exposure_hours, 0.0) * aspect_factor
        hours *= _factor_at_least(face_sun_hours, algo.sun_steps, algo.sun_minimal_factor)
        hours *= _factor_at_least(tree_coverage_percent, algo.tree_steps, 1.0)

        if hours_since_rain is not None and hours_since_rain < algo.recent_rain_hours:
            confidence -= algo.recent_rain_penalty

        return DryingEstimate(round(hours, 2), max(confidence, 0))

    def is_freezing(self, temperature_celsius: float) -> bool:
        """Whether the air is cold enough for wet rock to ice over."""
        return temperature_celsius <= self.algorithm.freezing_temperature_celsius

    def estimate_ice_melt_hours(
        self,
        porosity_class: PorosityClass,
        recent_precipitation_mm: float,
        season: Season,
    ) -> float:
        """
        Estimate hours until iced rock is clear and dry.

        Ice lingers longest in winter and grows with the precipitation that
        froze on the rock. Once it melts the rock still needs a share of its
        normal drying time.

        Args:
            porosity_class: Porosity bucket of the rock
            recent_precipitation_mm: Precipitation within the ice lookback window
            season: Season at the route

        Returns:
            Hours until the rock is free of ice and dry
        """
        algo = self.algorithm
        melt = algo.ice_melt_base_hours[season] + algo.ice_melt_hours_per_mm[season] * max(
            recent_precipitation_mm, 0.0
        )
        melt = min(melt, algo.max_ice_melt_hours)
        drying = algo.porosity_base_hours[porosity_class] * algo.ice_rock_drying_fraction
        return round(melt + drying, 2)

    def _rain_factor(self, cumulative_rain_mm: float) -> float:
        """Scale relative to the reference rain, clamped to the configured range."""
        factor = max(cumulative_rain_mm, 0.0) / self.algorithm.reference_rain_mm
        return min(
            max(factor, self.algorithm.min_rain_factor), self.algorithm.max_rain_factor
        )
