"""AdLens — KPI Engine.

Computes the ten derived KPIs (CPM, CPR, CTR, CPC, View Rate, CPV, CPL,
Lead Conv. Rate, ROAS, CPA) from raw daily totals, and rolls per-day KPI
vectors up into one figure per ad (simple average) or per campaign
(spend-weighted average across its ads).

Every ratio is guarded: a zero denominator yields 0.0, never NaN or inf.
"""

from dataclasses import dataclass, fields
from typing import Iterable, Sequence, Tuple


RAW_MEASURES = (
    "impressions",
    "clicks",
    "spend",
    "conversions",
    "reach",
    "video_views",
    "leads",
    "conversion_value",
)


@dataclass
class RawTotals:
    """The eight raw measures for one day, or summed over a group of days."""

    impressions: float = 0.0
    clicks: float = 0.0
    spend: float = 0.0
    conversions: float = 0.0
    reach: float = 0.0
    video_views: float = 0.0
    leads: float = 0.0
    conversion_value: float = 0.0

    def __add__(self, other: "RawTotals") -> "RawTotals":
        return RawTotals(**{m: getattr(self, m) + getattr(other, m) for m in RAW_MEASURES})

    @classmethod
    def sum(cls, items: Iterable["RawTotals"]) -> "RawTotals":
        total = cls()
        for item in items:
            total = total + item
        return total


@dataclass
class KPIVector:
    cpm: float = 0.0
    cpr: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    view_rate: float = 0.0
    cpv: float = 0.0
    cpl: float = 0.0
    lead_conv_rate: float = 0.0
    roas: float = 0.0
    cpa: float = 0.0


KPI_FIELDS = tuple(f.name for f in fields(KPIVector))


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if denominator > 0:
        return numerator / denominator * scale
    return 0.0


def calculate_kpis(t: RawTotals) -> KPIVector:
    """KPI vector for one day's (or one group's) raw measures."""
    return KPIVector(
        cpm=_ratio(t.spend, t.impressions, 1000),
        cpr=_ratio(t.spend, t.reach, 1000),
        ctr=_ratio(t.clicks, t.impressions, 100),
        cpc=_ratio(t.spend, t.clicks),
        view_rate=_ratio(t.video_views, t.impressions, 100),
        cpv=_ratio(t.spend, t.video_views),
        cpl=_ratio(t.spend, t.leads),
        lead_conv_rate=_ratio(t.leads, t.clicks, 100),
        roas=_ratio(t.conversion_value, t.spend),
        cpa=_ratio(t.spend, t.conversions),
    )


def average_kpis(vectors: Sequence[KPIVector]) -> KPIVector:
    """Arithmetic mean of each KPI field. Empty input → all zeros."""
    if not vectors:
        return KPIVector()
    n = len(vectors)
    return KPIVector(**{f: sum(getattr(v, f) for v in vectors) / n for f in KPI_FIELDS})


def weighted_average_kpis(weighted: Sequence[Tuple[KPIVector, float]]) -> KPIVector:
    """Σ(kpi × weight) / Σ(weight) per field. Zero total weight → all zeros."""
    total_weight = sum(weight for _, weight in weighted)
    if total_weight <= 0:
        return KPIVector()
    return KPIVector(
        **{
            f: sum(getattr(v, f) * weight for v, weight in weighted) / total_weight
            for f in KPI_FIELDS
        }
    )
