"""Forward drying timeline over the forecast horizon."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from models.drying import DryingForecastPeriod, ForecastStatus
from models.route import ClimbingRoute
from models.weather import WeatherContext, WeatherSample
from services.drying_status_service import DryingStatusCalculator
from utils.constants import FORECAST_HORIZON_HOURS
from utils.errors import DataUnavailableError, NotApplicableError

logger = logging.getLogger(__name__)


@dataclass
class _OpenPeriod:
    start_time: datetime
    status: ForecastStatus
    hours_until_dry: float
    rain_amount_mm: float = 0.0


class TimelineBuilder:
    """Append-only accumulator of forecast periods.

    Periods can only be appended, each starting strictly after the previous
    one and before the horizon end. ``build()`` closes every period at the
    next one's start and leaves the last one open, so the result is ordered,
    contiguous and covers ``[start, horizon_end)`` by construction.
    """

    def __init__(self, start: datetime, horizon_end: datetime):
        if horizon_end <= start:
            raise ValueError("horizon_end must be after start")
        self.start = start
        self.horizon_end = horizon_end
        self._periods: list[_OpenPeriod] = []

    @property
    def current_status(self) -> ForecastStatus | None:
        return self._periods[-1].status if self._periods else None

    def __len__(self) -> int:
        return len(self._periods)

    def append(self, start_time: datetime, status: ForecastStatus, hours_until_dry: float) -> None:
        """Close the current period at ``start_time`` and open a new one."""
        if not self._periods:
            if start_time != self.start:
                raise ValueError("first period must start at the timeline start")
        elif start_time <= self._periods[-1].start_time:
            raise ValueError("periods must start strictly after the previous period")
        if start_time >= self.horizon_end:
            raise ValueError("period starts beyond the horizon")
        self._periods.append(
            _OpenPeriod(
                start_time=start_time,
                status=status,
                hours_until_dry=round(max(hours_until_dry, 0.0), 1),
            )
        )

    def add_rain(self, amount_mm: float) -> None:
        """Accrue precipitation into the open period."""
        if not self._periods:
            raise ValueError("no open period to add rain to")
        self._periods[-1].rain_amount_mm += amount_mm

    def build(self) -> list[DryingForecastPeriod]:
        if not self._periods:
            raise ValueError("timeline has no periods")
        periods = []
        for i, period in enumerate(self._periods):
            is_last = i == len(self._periods) - 1
            periods.append(
                DryingForecastPeriod(
                    start_time=period.start_time,
                    end_time=None if is_last else self._periods[i + 1].start_time,
                    status=period.status,
                    hours_until_dry=period.hours_until_dry,
                    rain_amount_mm=round(period.rain_amount_mm, 2),
                )
            )
        return periods


class ForecastTimelineBuilder:
    """Projects a route's drying status across the forecast horizon."""

    def __init__(
        self,
        calculator: DryingStatusCalculator = None,
        horizon_hours: int = FORECAST_HORIZON_HOURS,
    ):
        self.calculator = calculator or DryingStatusCalculator()
        self.horizon_hours = horizon_hours

    def compute_forecast(
        self, route: ClimbingRoute, context: WeatherContext
    ) -> list[DryingForecastPeriod]:
        """
        Build the drying timeline for a route.

        A new period opens whenever forecast rain starts or stops, and when a
        drying period reaches dry (at the first sample boundary at or after
        the estimated dry time). Adjacent periods with the same status are
        not merged.

        Raises:
            NotApplicableError: The route has no GPS coordinates
        """
        if not route.has_gps:
            raise NotApplicableError(route.route_id)

        as_of = context.as_of
        horizon_end = as_of + timedelta(hours=self.horizon_hours)
        threshold = self.calculator.thresholds.rain_threshold_mm

        try:
            current = self.calculator.compute_status(route, context)
            hours_left = current.hours_until_dry
            event_rain = current.factors.rain_amount_mm if current.is_wet else 0.0
        except DataUnavailableError as e:
            logger.warning(f"Forecast for {route.route_id} starting dry: {e}")
            hours_left = 0.0
            event_rain = 0.0

        samples = self._forecast_window(context, route.area_id, as_of, horizon_end)
        builder = TimelineBuilder(as_of, horizon_end)

        dry_at = as_of + timedelta(hours=hours_left) if hours_left > 0 else None
        starts_with_rain = (
            bool(samples)
            and samples[0].timestamp == as_of
            and samples[0].precipitation_mm > threshold
        )
        if not starts_with_rain:
            builder.append(
                as_of,
                ForecastStatus.DRYING if hours_left > 0 else ForecastStatus.DRY,
                hours_left,
            )

        for sample in samples:
            if sample.precipitation_mm > threshold:
                if builder.current_status != ForecastStatus.WET:
                    # Rain on rock that already dried starts a fresh event
                    if dry_at is None or sample.timestamp >= dry_at:
                        event_rain = 0.0
                    event_rain += sample.precipitation_mm
                    estimate = self.calculator.estimate_from_sample(
                        route, context, event_rain, sample
                    )
                    builder.append(
                        sample.timestamp, ForecastStatus.WET, estimate.total_hours_needed
                    )
                else:
                    event_rain += sample.precipitation_mm
                dry_at = None
            elif builder.current_status == ForecastStatus.WET:
                estimate = self.calculator.estimate_from_sample(
                    route, context, event_rain, sample
                )
                hours_needed = estimate.total_hours_needed
                dry_at = sample.timestamp + timedelta(hours=hours_needed)
                builder.append(
                    sample.timestamp,
                    ForecastStatus.DRYING if hours_needed > 0 else ForecastStatus.DRY,
                    hours_needed,
                )
            elif (
                builder.current_status == ForecastStatus.DRYING
                and dry_at is not None
                and sample.timestamp >= dry_at
            ):
                builder.append(sample.timestamp, ForecastStatus.DRY, 0.0)

            builder.add_rain(sample.precipitation_mm)

        periods = builder.build()
        logger.debug(
            f"Built {len(periods)} forecast periods for {route.route_id} "
            f"from {len(samples)} samples"
        )
        return periods

    def _forecast_window(
        self, context: WeatherContext, area_id: str, as_of: datetime, horizon_end: datetime
    ) -> list[WeatherSample]:
        """Forecast samples in [as_of, horizon_end), one per timestamp."""
        snapshot = context.snapshot_for(area_id)
        if snapshot is None or not snapshot.forecast:
            logger.warning(f"No forecast for area {area_id}, timeline holds current status")
            return []
        samples: list[WeatherSample] = []
        for sample in snapshot.forecast:
            if not as_of <= sample.timestamp < horizon_end:
                continue
            if samples and samples[-1].timestamp == sample.timestamp:
                continue
            samples.append(sample)
        return samples


def consolidate_periods(periods: list[DryingForecastPeriod]) -> list[DryingForecastPeriod]:
    """
    Merge adjacent periods that share a status, for presentation.

    The merged period keeps the first period's start and hours until dry,
    takes the last period's end, and sums rain.
    """
    merged: list[DryingForecastPeriod] = []
    for period in periods:
        if merged and merged[-1].status == period.status:
            last = merged[-1]
            merged[-1] = last.model_copy(
                update={
                    "end_time": period.end_time,
                    "rain_amount_mm": round(last.rain_amount_mm + period.rain_amount_mm, 2),
                }
            )
        else:
            merged.append(period)
    return merged
