"""Bounded concurrent batch computation of drying statuses and area stats."""

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from typing import Any, Callable

from models.drying import AreaDryingStats, AreaNoData, DryingStatus
from models.route import ClimbingRoute
from models.weather import WeatherContext
from services.area_aggregator import AreaAggregator
from services.drying_status_service import DryingStatusCalculator
from utils.cache import cached_drying_status
from utils.constants import MAX_BATCH_AREA_IDS, MAX_BATCH_ROUTE_IDS
from utils.errors import InvalidArgumentError, NotApplicableError

logger = logging.getLogger(__name__)

# Worker pool size for batch requests
BATCH_CONCURRENCY = int(os.environ.get("DRYING_BATCH_CONCURRENCY", "8"))
MAX_BATCH_ROUTES = int(os.environ.get("DRYING_MAX_BATCH_ROUTES", str(MAX_BATCH_ROUTE_IDS)))
MAX_BATCH_AREAS = int(os.environ.get("DRYING_MAX_BATCH_AREAS", str(MAX_BATCH_AREA_IDS)))
# How often the coordinator re-checks cancellation while waiting on workers
POLL_INTERVAL_SECONDS = 0.05

RouteLookup = Callable[[str], ClimbingRoute | None]
AreaRoutesLookup = Callable[[str], list[ClimbingRoute] | None]


class BatchCoordinator:
    """Fans drying computations out over a fixed-size worker pool.

    Failed ids are omitted from the result rather than failing the batch.
    Only request validation raises.
    """

    def __init__(
        self,
        route_lookup: RouteLookup | None = None,
        area_routes_lookup: AreaRoutesLookup | None = None,
        calculator: DryingStatusCalculator = None,
        aggregator: AreaAggregator = None,
        max_workers: int = BATCH_CONCURRENCY,
        max_route_ids: int = MAX_BATCH_ROUTES,
        max_area_ids: int = MAX_BATCH_AREAS,
        use_cache: bool = False,
    ):
        """Initialize the coordinator.

        Args:
            route_lookup: Resolves a route id to a route (None if unknown).
                May raise; failures only drop that id.
            area_routes_lookup: Resolves an area id to its routes
            calculator: Per-route status calculator
            aggregator: Area aggregator; defaults to one sharing ``calculator``
            max_workers: Worker pool size
            max_route_ids: Cap on route ids per request
            max_area_ids: Cap on area ids per request
            use_cache: Memoize per-route statuses keyed by their inputs
        """
        self.route_lookup = route_lookup
        self.area_routes_lookup = area_routes_lookup
        self.calculator = calculator or DryingStatusCalculator()
        self.aggregator = aggregator or AreaAggregator(calculator=self.calculator)
        self.max_workers = max(1, max_workers)
        self.max_route_ids = max_route_ids
        self.max_area_ids = max_area_ids
        self._compute_status = (
            cached_drying_status(
                self.calculator.compute_status, namespace=self.calculator.cache_namespace()
            )
            if use_cache
            else self.calculator.compute_status
        )

    def compute_batch(
        self,
        route_ids: list[str],
        context: WeatherContext,
        deadline: datetime | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, DryingStatus]:
        """
        Compute drying statuses for many routes.

        Args:
            route_ids: Route ids, at most ``max_route_ids``
            context: Shared weather and tree coverage for the request
            deadline: Tz-aware time after which pending work is abandoned
            cancel_event: Caller-owned cancellation signal

        Returns:
            Statuses keyed by route id, omitting ids that failed, have no
            GPS, or were not computed before cancellation

        Raises:
            InvalidArgumentError: Empty, oversized or malformed id list, or a
                deadline without a timezone
        """
        ids = self._validate_ids(route_ids, self.max_route_ids, "route")
        self._validate_deadline(deadline)
        if self.route_lookup is None:
            raise InvalidArgumentError("No route lookup configured for route batches")

        def compute_one(route_id: str, stop_event: threading.Event) -> DryingStatus:
            route = self.route_lookup(route_id)
            if route is None:
                raise LookupError(f"Route {route_id} not found")
            return self._compute_status(route, context)

        return self._run(ids, compute_one, deadline, cancel_event, "route")

    def compute_area_batch(
        self,
        area_ids: list[str],
        context: WeatherContext,
        deadline: datetime | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, AreaDryingStats | AreaNoData]:
        """
        Compute area statistics for many areas.

        Areas with no usable routes map to AreaNoData; areas whose lookup or
        computation failed are omitted.

        Raises:
            InvalidArgumentError: Empty, oversized or malformed id list, or a
                deadline without a timezone
        """
        ids = self._validate_ids(area_ids, self.max_area_ids, "area")
        self._validate_deadline(deadline)
        if self.area_routes_lookup is None:
            raise InvalidArgumentError("No area lookup configured for area batches")

        def compute_one(area_id: str, stop_event: threading.Event):
            routes = self.area_routes_lookup(area_id)
            if routes is None:
                raise LookupError(f"Area {area_id} not found")
            return self.aggregator.compute_area_stats(
                area_id, routes, context, cancel_event=stop_event
            )

        return self._run(ids, compute_one, deadline, cancel_event, "area")

    def _validate_ids(self, ids: list[str], cap: int, kind: str) -> list[str]:
        """Reject bad requests before any work; de-duplicate, keeping order."""
        if not ids:
            raise InvalidArgumentError(f"No {kind} IDs provided")
        if len(ids) > cap:
            raise InvalidArgumentError(f"Maximum {cap} {kind}s per batch request")
        if any(not isinstance(i, str) or not i.strip() for i in ids):
            raise InvalidArgumentError(f"Malformed {kind} ID in batch request")
        return list(dict.fromkeys(i.strip() for i in ids))

    @staticmethod
    def _validate_deadline(deadline: datetime | None) -> None:
        """Naive deadlines can't be compared against the UTC clock."""
        if deadline is None:
            return
        if not isinstance(deadline, datetime):
            raise InvalidArgumentError("Batch deadline must be a datetime")
        if deadline.tzinfo is None or deadline.utcoffset() is None:
            raise InvalidArgumentError("Batch deadline must be timezone-aware")

    def _run(
        self,
        ids: list[str],
        compute_one: Callable[[str, threading.Event], Any],
        deadline: datetime | None,
        cancel_event: threading.Event | None,
        kind: str,
    ) -> dict[str, Any]:
        """Run ``compute_one`` for each id on the pool, isolating failures."""
        start = time.time()
        if self._should_stop(deadline, cancel_event):
            logger.warning(f"Batch of {len(ids)} {kind}s cancelled before start")
            return {}

        stop_event = threading.Event()
        results: dict[str, Any] = {}
        errors = 0

        def worker(item_id: str):
            # Skip items picked up after a stop
            if stop_event.is_set():
                return None
            return compute_one(item_id, stop_event)

        def collect(future: Future, item_id: str) -> None:
            nonlocal errors
            try:
                result = future.result()
            except NotApplicableError as e:
                logger.debug(f"Skipping {kind} {item_id}: {e}")
                return
            except Exception as e:
                errors += 1
                logger.warning(f"Failed to compute {kind} {item_id}: {e}")
                return
            if result is not None:
                results[item_id] = result

        executor = ThreadPoolExecutor(max_workers=min(len(ids), self.max_workers))
        try:
            futures = {executor.submit(worker, item_id): item_id for item_id in ids}
            pending = set(futures)
            while pending:
                if self._should_stop(deadline, cancel_event):
                    stop_event.set()
                    logger.warning(
                        f"Batch of {len(ids)} {kind}s stopped with "
                        f"{len(pending)} unfinished, returning partial results"
                    )
                    break
                timeout = POLL_INTERVAL_SECONDS
                if deadline is not None:
                    remaining = (deadline - datetime.now(UTC)).total_seconds()
                    timeout = max(0.0, min(timeout, remaining))
                done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
                for future in done:
                    collect(future, futures[future])

            # Keep anything that finished while we were deciding to stop
            for future in pending:
                if future.done() and not future.cancelled():
                    collect(future, futures[future])
        finally:
            # In-flight work is abandoned, not awaited
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            f"Batch computed {len(results)}/{len(ids)} {kind}s "
            f"({errors} errors) in {time.time() - start:.2f}s"
        )
        return {item_id: results[item_id] for item_id in ids if item_id in results}

    @staticmethod
    def _should_stop(deadline: datetime | None, cancel_event: threading.Event | None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and datetime.now(UTC) >= deadline
