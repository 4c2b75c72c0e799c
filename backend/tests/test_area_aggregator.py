"""Tests for area-level drying aggregation."""

import threading
from concurrent.futures import CancelledError
from datetime import timedelta
from unittest.mock import Mock

import pytest
from conftest import AREA_ID, AS_OF, make_context, make_history, make_route

from models.drying import (
    AreaDryingStats,
    AreaNoData,
    DryingFactors,
    DryingStatus,
    DryingStatusTier,
)
from models.rock import PorosityClass, RockGroup
from models.weather import Season
from services.area_aggregator import AreaAggregator
from utils.errors import DataUnavailableError, NotApplicableError


def make_status(
    route_id: str,
    hours_until_dry: float = 0.0,
    confidence: int = 80,
    tree_coverage: float | None = None,
    last_rain_hours_ago: float | None = None,
    data_unavailable: bool = False,
) -> DryingStatus:
    is_wet = hours_until_dry > 0
    return DryingStatus(
        route_id=route_id,
        is_wet=is_wet,
        is_safe=True,
        status=DryingStatusTier.FAIR if is_wet else DryingStatusTier.GOOD,
        hours_until_dry=hours_until_dry,
        confidence_score=confidence,
        last_rain_timestamp=AS_OF - timedelta(hours=last_rain_hours_ago)
        if last_rain_hours_ago is not None
        else None,
        message="test",
        factors=DryingFactors(
            rock_group=RockGroup.FAST_DRYING,
            porosity_class=PorosityClass.LOW,
            season=Season.SUMMER,
            tree_coverage_percent=tree_coverage,
        ),
        data_unavailable=data_unavailable,
    )


def aggregator_for(outcomes: dict) -> AreaAggregator:
    """Aggregator whose calculator returns (or raises) a canned outcome per route."""

    def compute_status(route, context):
        outcome = outcomes[route.route_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    calculator = Mock()
    calculator.compute_status.side_effect = compute_status
    return AreaAggregator(calculator=calculator, max_workers=4)


class TestComputeAreaStats:
    """Test aggregation across an area's routes."""

    def test_eight_dry_two_wet(self):
        outcomes = {f"dry-{i}": make_status(f"dry-{i}") for i in range(8)}
        outcomes["drying"] = make_status("drying", hours_until_dry=10.0)
        outcomes["wet"] = make_status("wet", hours_until_dry=48.0)
        routes = [make_route(route_id) for route_id in outcomes]

        stats = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert isinstance(stats, AreaDryingStats)
        assert stats.total_routes == 10
        assert stats.dry_count == 8
        assert stats.drying_count == 1
        assert stats.wet_count == 1
        assert stats.percent_dry == 80
        assert stats.avg_hours_until_dry == 29.0
        assert stats.confidence_score == 80
        assert stats.excluded_count == 0

    def test_full_inclusion_keeps_mean_confidence(self):
        outcomes = {f"dry-{i}": make_status(f"dry-{i}", confidence=90) for i in range(8)}
        outcomes["wet-1"] = make_status("wet-1", hours_until_dry=40.0, confidence=60)
        outcomes["wet-2"] = make_status("wet-2", hours_until_dry=50.0, confidence=60)
        routes = [make_route(route_id) for route_id in outcomes]

        stats = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert stats.percent_dry == 80
        assert stats.dry_count == 8
        assert stats.wet_count == 2
        assert stats.drying_count == 0
        assert stats.excluded_count == 0
        assert stats.confidence_score == 84

    def test_excluded_routes_lower_confidence(self):
        outcomes = {f"dry-{i}": make_status(f"dry-{i}") for i in range(8)}
        outcomes["no-gps"] = NotApplicableError("no-gps")
        outcomes["broken"] = RuntimeError("upstream exploded")
        routes = [make_route(route_id) for route_id in outcomes]

        stats = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert stats.total_routes == 8
        assert stats.excluded_count == 2
        assert stats.percent_dry == 100
        # 80 scaled by 8 included of 10 considered
        assert stats.confidence_score == 64

    def test_data_unavailable_routes_excluded(self):
        outcomes = {
            "ok": make_status("ok"),
            "bare": DataUnavailableError("bare"),
        }
        routes = [make_route(route_id) for route_id in outcomes]

        stats = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert stats.total_routes == 1
        assert stats.excluded_count == 1

    def test_tree_coverage_and_last_rain(self):
        outcomes = {
            "a": make_status("a", tree_coverage=20.0, last_rain_hours_ago=30),
            "b": make_status("b", tree_coverage=60.0, last_rain_hours_ago=5),
            "c": make_status("c", data_unavailable=True),
        }
        routes = [make_route(route_id) for route_id in outcomes]

        stats = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert stats.avg_tree_coverage == 40.0
        assert stats.last_rain_timestamp == AS_OF - timedelta(hours=5)
        assert stats.degraded_count == 1

    def test_all_routes_excluded_is_no_data(self):
        outcomes = {"x": NotApplicableError("x"), "y": ValueError("bad")}
        routes = [make_route(route_id) for route_id in outcomes]

        result = aggregator_for(outcomes).compute_area_stats(AREA_ID, routes, make_context())

        assert isinstance(result, AreaNoData)
        assert result.area_id == AREA_ID
        assert result.excluded_count == 2

    def test_empty_area_is_no_data(self):
        result = AreaAggregator().compute_area_stats(AREA_ID, [], make_context())

        assert isinstance(result, AreaNoData)
        assert result.excluded_count == 0

    def test_cancelled(self):
        outcomes = {"a": make_status("a")}
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(CancelledError):
            aggregator_for(outcomes).compute_area_stats(
                AREA_ID, [make_route("a")], make_context(), cancel_event=cancel
            )

    def test_with_real_calculator(self):
        routes = [
            make_route("granite", "granite"),
            make_route("sandstone", "sandstone"),
            make_route("no-gps", "granite", latitude=None, longitude=None),
        ]
        context = make_context(historical=make_history(rain={2: 6.0}))

        stats = AreaAggregator().compute_area_stats(AREA_ID, routes, context)

        assert stats.total_routes == 2
        assert stats.excluded_count == 1
        assert stats.dry_count + stats.drying_count + stats.wet_count == 2
        assert stats.last_rain_timestamp == AS_OF - timedelta(hours=2)


class TestSummarize:
    """Test folding precomputed statuses."""

    def test_no_statuses(self):
        result = AreaAggregator().summarize(AREA_ID, [], excluded_count=3)
        assert isinstance(result, AreaNoData)
        assert result.excluded_count == 3

    def test_drying_window_boundary(self):
        statuses = [
            make_status("edge", hours_until_dry=24.0),
            make_status("over", hours_until_dry=24.1),
        ]
        stats = AreaAggregator().summarize(AREA_ID, statuses, excluded_count=0)

        assert stats.drying_count == 1
        assert stats.wet_count == 1
        assert stats.percent_dry == 0

    def test_percent_rounds(self):
        statuses = [make_status("a"), make_status("b"), make_status("c", hours_until_dry=2.0)]
        stats = AreaAggregator().summarize(AREA_ID, statuses, excluded_count=0)
        assert stats.percent_dry == 67
