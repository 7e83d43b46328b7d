"""Tests for the KPI engine."""

import math

import pytest

from adlens.analyzer.kpi_engine import (
    KPI_FIELDS,
    KPIVector,
    RawTotals,
    average_kpis,
    calculate_kpis,
    weighted_average_kpis,
)


def test_calculate_kpis_day_one():
    kpis = calculate_kpis(
        RawTotals(
            impressions=1000, clicks=50, spend=25, conversions=5,
            reach=800, video_views=100, leads=2, conversion_value=45,
        )
    )
    assert kpis.cpm == pytest.approx(25.0)
    assert kpis.cpr == pytest.approx(31.25)
    assert kpis.ctr == pytest.approx(5.0)
    assert kpis.cpc == pytest.approx(0.5)
    assert kpis.view_rate == pytest.approx(10.0)
    assert kpis.cpv == pytest.approx(0.25)
    assert kpis.cpl == pytest.approx(12.5)
    assert kpis.lead_conv_rate == pytest.approx(4.0)
    assert kpis.roas == pytest.approx(1.8)
    assert kpis.cpa == pytest.approx(5.0)


def test_zero_denominators_yield_zero():
    kpis = calculate_kpis(RawTotals(spend=10, conversion_value=5))
    for name in KPI_FIELDS:
        value = getattr(kpis, name)
        assert math.isfinite(value)
    assert kpis.cpm == 0.0
    assert kpis.cpc == 0.0
    assert kpis.cpa == 0.0
    assert kpis.roas == pytest.approx(0.5)


def test_all_zero_totals():
    assert calculate_kpis(RawTotals()) == KPIVector()


def test_raw_totals_sum():
    total = RawTotals.sum([RawTotals(impressions=1, spend=2), RawTotals(impressions=3, leads=4)])
    assert total == RawTotals(impressions=4, spend=2, leads=4)


def test_average_is_arithmetic_mean():
    avg = average_kpis([KPIVector(ctr=1), KPIVector(ctr=2), KPIVector(ctr=3)])
    assert avg.ctr == pytest.approx(2.0)


def test_average_of_nothing_is_zero():
    assert average_kpis([]) == KPIVector()


def test_weighted_average_by_spend():
    result = weighted_average_kpis([(KPIVector(cpa=4), 100), (KPIVector(cpa=6), 100)])
    assert result.cpa == pytest.approx(5.0)

    skewed = weighted_average_kpis([(KPIVector(cpa=4), 300), (KPIVector(cpa=8), 100)])
    assert skewed.cpa == pytest.approx(5.0)


def test_weighted_average_zero_weight():
    result = weighted_average_kpis([(KPIVector(cpa=4), 0), (KPIVector(cpa=6), 0)])
    assert result == KPIVector()


def test_ten_kpis():
    assert len(KPI_FIELDS) == 10


# Each KPI with its guard at zero and every other input non-zero
ZERO_GUARD_CASES = [
    ("cpm", {"impressions": 0}),
    ("cpr", {"reach": 0}),
    ("ctr", {"impressions": 0}),
    ("cpc", {"clicks": 0}),
    ("view_rate", {"impressions": 0}),
    ("cpv", {"video_views": 0}),
    ("cpl", {"leads": 0}),
    ("lead_conv_rate", {"clicks": 0}),
    ("roas", {"spend": 0}),
    ("cpa", {"conversions": 0}),
]


@pytest.mark.parametrize("kpi,guard", ZERO_GUARD_CASES, ids=[k for k, _ in ZERO_GUARD_CASES])
def test_zero_guard_ignores_other_inputs(kpi, guard):
    measures = {
        "impressions": 1000, "clicks": 50, "spend": 25, "conversions": 5,
        "reach": 800, "video_views": 100, "leads": 2, "conversion_value": 45,
    }
    measures.update(guard)
    assert getattr(calculate_kpis(RawTotals(**measures)), kpi) == 0.0
