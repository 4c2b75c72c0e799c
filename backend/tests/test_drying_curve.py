"""Tests for the drying curve model."""

import pytest

from models.drying import DryingCurveAlgorithm
from models.rock import PorosityClass
from models.route import Aspect
from models.weather import Season
from services.drying_curve import DryingCurveModel, DryingEstimate


def estimate(model: DryingCurveModel, **overrides) -> DryingEstimate:
    """Estimate with complete, mild summer inputs unless overridden."""
    values = {
        "porosity_class": PorosityClass.LOW,
        "hours_since_rain": 12.0,
        "cumulative_rain_mm": 5.0,
        "temperature_celsius": 20.0,
        "humidity_percent": 50.0,
        "wind_speed_kmh": 10.0,
        "effective_sun_exposure_hours": 7.56,
        "tree_coverage_percent": 0.0,
        "aspect": Aspect.S,
        "season": Season.SUMMER,
    }
    values.update(overrides)
    return model.estimate_drying_hours(**values)


@pytest.fixture
def model():
    return DryingCurveModel()


class TestEstimateDryingHours:
    """Test the drying time estimate."""

    def test_known_value(self, model):
        """6h base x2 rain x0.85 temp x1.0 humidity x0.8 wind x0.85 sun."""
        result = estimate(model)
        assert result.total_hours_needed == pytest.approx(6.94)
        assert result.confidence_contribution == 100

    def test_deterministic(self, model):
        assert estimate(model) == estimate(model)

    def test_porosity_ordering(self, model):
        hours = [
            estimate(model, porosity_class=p).total_hours_needed
            for p in (
                PorosityClass.LOW,
                PorosityClass.MEDIUM,
                PorosityClass.HIGH,
                PorosityClass.VERY_HIGH,
            )
        ]
        assert hours == sorted(hours)
        assert len(set(hours)) == 4

    def test_more_rain_never_dries_faster(self, model):
        amounts = [0.0, 0.5, 1.0, 2.5, 5.0, 7.5, 10.0, 50.0]
        hours = [estimate(model, cumulative_rain_mm=mm).total_hours_needed for mm in amounts]
        assert hours == sorted(hours)

    def test_rain_factor_is_clamped(self, model):
        light = estimate(model, cumulative_rain_mm=0.1).total_hours_needed
        assert light == estimate(model, cumulative_rain_mm=1.0).total_hours_needed
        heavy = estimate(model, cumulative_rain_mm=50.0).total_hours_needed
        assert heavy == estimate(model, cumulative_rain_mm=100.0).total_hours_needed

    def test_elapsed_time_does_not_change_total(self, model):
        totals = {
            estimate(model, hours_since_rain=h).total_hours_needed for h in (None, 0.0, 3.0, 48.0)
        }
        assert len(totals) == 1

    def test_warmer_never_slower(self, model):
        temps = [0.0, 10.0, 12.0, 15.0, 19.0, 25.0, 35.0]
        hours = [estimate(model, temperature_celsius=t).total_hours_needed for t in temps]
        assert hours == sorted(hours, reverse=True)

    def test_more_humid_never_faster(self, model):
        values = [20.0, 45.0, 60.0, 75.0, 95.0]
        hours = [estimate(model, humidity_percent=h).total_hours_needed for h in values]
        assert hours == sorted(hours)

    def test_windier_never_slower(self, model):
        values = [0.0, 6.0, 15.0, 40.0]
        hours = [estimate(model, wind_speed_kmh=w).total_hours_needed for w in values]
        assert hours == sorted(hours, reverse=True)

    def test_more_canopy_never_faster(self, model):
        values = [0.0, 30.0, 60.0, 90.0]
        hours = [estimate(model, tree_coverage_percent=t).total_hours_needed for t in values]
        assert hours == sorted(hours)

    def test_north_face_dries_slower_in_winter(self, model):
        south = estimate(model, season=Season.WINTER, aspect=Aspect.S)
        north = estimate(model, season=Season.WINTER, aspect=Aspect.N)
        assert north.total_hours_needed > south.total_hours_needed

    def test_custom_algorithm(self):
        algo = DryingCurveAlgorithm(
            porosity_base_hours={
                PorosityClass.LOW: 12.0,
                PorosityClass.MEDIUM: 20.0,
                PorosityClass.HIGH: 40.0,
                PorosityClass.VERY_HIGH: 72.0,
            }
        )
        doubled = estimate(DryingCurveModel(algo)).total_hours_needed
        assert doubled == pytest.approx(estimate(DryingCurveModel()).total_hours_needed * 2, abs=0.02)


class TestConfidenceContribution:
    """Test confidence penalties for substituted inputs."""

    def test_missing_aspect(self, model):
        result = estimate(model, aspect=None)
        assert result.confidence_contribution == 80

    def test_missing_tree_coverage(self, model):
        result = estimate(model, tree_coverage_percent=None)
        assert result.confidence_contribution == 85

    def test_missing_sun_exposure(self, model):
        result = estimate(model, effective_sun_exposure_hours=None)
        assert result.confidence_contribution == 90

    def test_recent_rain(self, model):
        assert estimate(model, hours_since_rain=2.0).confidence_contribution == 95
        assert estimate(model, hours_since_rain=None).confidence_contribution == 100

    def test_penalties_accumulate(self, model):
        result = estimate(
            model,
            aspect=None,
            tree_coverage_percent=None,
            effective_sun_exposure_hours=None,
            hours_since_rain=1.0,
        )
        assert result.confidence_contribution == 50

    def test_missing_inputs_still_estimate(self, model):
        result = estimate(
            model, aspect=None, tree_coverage_percent=None, effective_sun_exposure_hours=None
        )
        assert result.total_hours_needed > 0


class TestIceMelt:
    """Test the ice melt estimate for frozen rock."""

    def test_known_value(self, model):
        """24h summer base + 3.15h/mm x 10mm, plus 40% of the 6h granite base."""
        assert model.estimate_ice_melt_hours(PorosityClass.LOW, 10.0, Season.SUMMER) == 57.9

    def test_winter_slowest(self, model):
        hours = {
            season: model.estimate_ice_melt_hours(PorosityClass.LOW, 10.0, season)
            for season in Season
        }
        assert hours[Season.WINTER] > hours[Season.SPRING] > hours[Season.SUMMER]
        assert hours[Season.SPRING] == hours[Season.FALL]

    def test_more_precipitation_never_faster(self, model):
        values = [
            model.estimate_ice_melt_hours(PorosityClass.MEDIUM, mm, Season.WINTER)
            for mm in (0, 5, 10, 20, 40)
        ]
        assert values == sorted(values)

    def test_melt_is_capped(self, model):
        # 168h cap on melting, then 40% of the 36h very-high porosity base
        hours = model.estimate_ice_melt_hours(PorosityClass.VERY_HIGH, 200.0, Season.WINTER)
        assert hours == pytest.approx(182.4)

    @pytest.mark.parametrize(
        "temperature,expected",
        [(-10.0, True), (0.0, True), (0.5, False), (20.0, False)],
    )
    def test_is_freezing(self, model, temperature, expected):
        assert model.is_freezing(temperature) is expected

    def test_custom_freezing_point(self):
        model = DryingCurveModel(DryingCurveAlgorithm(freezing_temperature_celsius=1.0))
        assert model.is_freezing(0.5)
