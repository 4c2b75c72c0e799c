"""Area-level aggregation of per-route drying status."""

import logging
import os
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed

from models.drying import AreaDryingStats, AreaNoData, DryingStatus
from models.route import ClimbingRoute
from models.weather import WeatherContext
from services.drying_status_service import DryingStatusCalculator
from utils.constants import AREA_DRYING_WINDOW_HOURS
from utils.errors import DataUnavailableError, NotApplicableError

logger = logging.getLogger(__name__)

# Number of routes computed concurrently within one area
AREA_CONCURRENCY = int(os.environ.get("DRYING_AREA_CONCURRENCY", "4"))


class AreaAggregator:
    """Folds per-route drying statuses into area statistics."""

    def __init__(
        self,
        calculator: DryingStatusCalculator = None,
        max_workers: int = AREA_CONCURRENCY,
        drying_window_hours: float = AREA_DRYING_WINDOW_HOURS,
    ):
        self.calculator = calculator or DryingStatusCalculator()
        self.max_workers = max(1, max_workers)
        self.drying_window_hours = drying_window_hours

    def compute_area_stats(
        self,
        area_id: str,
        routes: list[ClimbingRoute],
        context: WeatherContext,
        cancel_event: threading.Event | None = None,
    ) -> AreaDryingStats | AreaNoData:
        """
        Compute drying statistics for the routes of an area.

        Routes without GPS, without any usable data, or whose computation
        fails are excluded from counts but lower the confidence score.

        Args:
            area_id: Area identifier
            routes: Routes belonging to the area
            context: Shared, pre-fetched weather and tree coverage
            cancel_event: When set, remaining routes are skipped and
                CancelledError is raised

        Returns:
            AreaDryingStats, or AreaNoData when no route could be included
        """
        if not routes:
            return AreaNoData(area_id=area_id)

        statuses, excluded = self._compute_statuses(routes, context, cancel_event)
        if cancel_event is not None and cancel_event.is_set():
            raise CancelledError(f"Area {area_id} computation cancelled")

        logger.info(
            f"Area {area_id}: {len(statuses)} routes included, {excluded} excluded"
        )
        return self.summarize(area_id, statuses, excluded)

    def summarize(
        self, area_id: str, statuses: list[DryingStatus], excluded_count: int
    ) -> AreaDryingStats | AreaNoData:
        """Aggregate already-computed statuses."""
        if not statuses:
            return AreaNoData(area_id=area_id, excluded_count=excluded_count)

        dry_count = drying_count = wet_count = 0
        wet_hours: list[float] = []
        tree_values: list[float] = []
        confidence_total = 0
        degraded_count = 0
        last_rain = None

        for status in statuses:
            if not status.is_wet:
                dry_count += 1
            else:
                if status.hours_until_dry <= self.drying_window_hours:
                    drying_count += 1
                else:
                    wet_count += 1
                wet_hours.append(status.hours_until_dry)

            if status.factors.tree_coverage_percent is not None:
                tree_values.append(status.factors.tree_coverage_percent)
            if status.data_unavailable:
                degraded_count += 1
            if status.last_rain_timestamp is not None and (
                last_rain is None or status.last_rain_timestamp > last_rain
            ):
                last_rain = status.last_rain_timestamp
            confidence_total += status.confidence_score

        total = len(statuses)
        inclusion = total / (total + excluded_count)
        confidence = confidence_total / total * inclusion

        return AreaDryingStats(
            area_id=area_id,
            total_routes=total,
            dry_count=dry_count,
            drying_count=drying_count,
            wet_count=wet_count,
            percent_dry=round(dry_count / total * 100),
            avg_hours_until_dry=round(sum(wet_hours) / len(wet_hours), 1) if wet_hours else 0.0,
            avg_tree_coverage=round(sum(tree_values) / len(tree_values), 1)
            if tree_values
            else None,
            confidence_score=int(round(confidence)),
            last_rain_timestamp=last_rain,
            excluded_count=excluded_count,
            degraded_count=degraded_count,
        )

    def _compute_statuses(
        self,
        routes: list[ClimbingRoute],
        context: WeatherContext,
        cancel_event: threading.Event | None,
    ) -> tuple[list[DryingStatus], int]:
        """Run the calculator for every route on a bounded pool.

        Returns statuses in input order and the number of excluded routes.
        """
        results: dict[int, DryingStatus] = {}
        excluded = 0

        def compute_one(route: ClimbingRoute) -> DryingStatus | None:
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.calculator.compute_status(route, context)

        with ThreadPoolExecutor(max_workers=min(len(routes), self.max_workers)) as executor:
            futures = {
                executor.submit(compute_one, route): i for i, route in enumerate(routes)
            }
            for future in as_completed(futures):
                index = futures[future]
                route_id = routes[index].route_id
                try:
                    status = future.result()
                except NotApplicableError:
                    logger.debug(f"Route {route_id} has no GPS data, excluded")
                    excluded += 1
                    continue
                except DataUnavailableError as e:
                    logger.warning(f"Route {route_id} excluded: {e}")
                    excluded += 1
                    continue
                except Exception as e:
                    logger.error(f"Error computing drying status for {route_id}: {e}")
                    excluded += 1
                    continue
                if status is not None:
                    results[index] = status

        return [results[i] for i in sorted(results)], excluded
