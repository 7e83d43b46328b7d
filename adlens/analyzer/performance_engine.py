"""AdLens — Performance Aggregation Engine.

Turns daily insight rows into report rows:
  group → sum raw measures → per-day KPIs → average / spend-weighted average
  → project requested columns → sort → paginate

Pure functions only; row selection happens in storage/entity_store.py.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from adlens.analyzer.kpi_engine import (
    KPIVector,
    RawTotals,
    average_kpis,
    calculate_kpis,
    weighted_average_kpis,
)
from adlens.core.column_registry import COLUMNS, ColumnId, Grouping
from adlens.models.report_models import (
    PerformanceMeta,
    PerformanceRequest,
    PerformanceResponse,
    SortDirection,
    Sorting,
)


@dataclass
class InsightRow:
    """One insight joined with its ad, campaign and creative."""

    date: str
    ad_id: str
    campaign_id: str
    campaign_name: str
    campaign_objective: str
    campaign_status: str
    ad_name: str
    ad_status: str
    creative_type: str
    thumbnail_url: str
    measures: RawTotals


@dataclass
class ReportGroup:
    """All daily rows of one campaign (or one ad) plus its display metadata."""

    campaign_id: str
    campaign_name: str
    campaign_objective: str
    status: str
    ad_id: Optional[str] = None
    ad_name: Optional[str] = None
    creative_type: Optional[str] = None
    thumbnail_url: Optional[str] = None
    days: List[InsightRow] = field(default_factory=list)
    totals: RawTotals = field(default_factory=RawTotals)
    kpis: KPIVector = field(default_factory=KPIVector)


# ── Grouping ──


def _group_key(row: InsightRow, grouping: Grouping) -> Tuple[str, ...]:
    if grouping == Grouping.CAMPAIGN:
        return (row.campaign_id,)
    return (row.ad_id, row.campaign_id)


def group_rows(rows: List[InsightRow], grouping: Grouping) -> List[ReportGroup]:
    """Partition rows; display metadata comes from each group's first row."""
    groups: Dict[Tuple[str, ...], ReportGroup] = {}
    for row in rows:
        key = _group_key(row, grouping)
        group = groups.get(key)
        if group is None:
            if grouping == Grouping.CAMPAIGN:
                group = ReportGroup(
                    campaign_id=row.campaign_id,
                    campaign_name=row.campaign_name,
                    campaign_objective=row.campaign_objective,
                    status=row.campaign_status,
                )
            else:
                group = ReportGroup(
                    campaign_id=row.campaign_id,
                    campaign_name=row.campaign_name,
                    campaign_objective=row.campaign_objective,
                    status=row.ad_status,
                    ad_id=row.ad_id,
                    ad_name=row.ad_name,
                    creative_type=row.creative_type,
                    thumbnail_url=row.thumbnail_url,
                )
            groups[key] = group
        group.days.append(row)
    return list(groups.values())


# ── KPI rollup ──


def ad_level_kpis(days: List[InsightRow]) -> KPIVector:
    """Mean of the per-day KPI vectors."""
    return average_kpis([calculate_kpis(d.measures) for d in days])


def campaign_level_kpis(days: List[InsightRow]) -> KPIVector:
    """Per-ad averaged KPIs, weighted by each ad's spend in range."""
    by_ad: Dict[str, List[InsightRow]] = defaultdict(list)
    for d in days:
        by_ad[d.ad_id].append(d)

    weighted = [
        (ad_level_kpis(ad_days), sum(d.measures.spend for d in ad_days))
        for ad_days in by_ad.values()
    ]
    return weighted_average_kpis(weighted)


def summarize_group(group: ReportGroup, grouping: Grouping) -> ReportGroup:
    group.totals = RawTotals.sum(d.measures for d in group.days)
    if grouping == Grouping.AD:
        group.kpis = ad_level_kpis(group.days)
    else:
        group.kpis = campaign_level_kpis(group.days)
    return group


# ── Projection ──

COLUMN_EXTRACTORS: Dict[ColumnId, Callable[[ReportGroup], Any]] = {
    ColumnId.CAMPAIGN_NAME: lambda g: g.campaign_name,
    ColumnId.CAMPAIGN_OBJECTIVE: lambda g: g.campaign_objective,
    ColumnId.STATUS: lambda g: g.status,
    ColumnId.AD_NAME: lambda g: g.ad_name,
    ColumnId.CREATIVE_TYPE: lambda g: g.creative_type,
    ColumnId.THUMBNAIL_URL: lambda g: g.thumbnail_url,
    ColumnId.IMPRESSIONS: lambda g: g.totals.impressions,
    ColumnId.CLICKS: lambda g: g.totals.clicks,
    ColumnId.SPEND: lambda g: g.totals.spend,
    ColumnId.CONVERSIONS: lambda g: g.totals.conversions,
    ColumnId.REACH: lambda g: g.totals.reach,
    ColumnId.VIDEO_VIEWS: lambda g: g.totals.video_views,
    ColumnId.LEADS: lambda g: g.totals.leads,
    ColumnId.CONVERSION_VALUE: lambda g: g.totals.conversion_value,
    ColumnId.CPM: lambda g: g.kpis.cpm,
    ColumnId.CPR: lambda g: g.kpis.cpr,
    ColumnId.CTR: lambda g: g.kpis.ctr,
    ColumnId.CPC: lambda g: g.kpis.cpc,
    ColumnId.VIEW_RATE: lambda g: g.kpis.view_rate,
    ColumnId.CPV: lambda g: g.kpis.cpv,
    ColumnId.CPL: lambda g: g.kpis.cpl,
    ColumnId.LEAD_CONV_RATE: lambda g: g.kpis.lead_conv_rate,
    ColumnId.ROAS: lambda g: g.kpis.roas,
    ColumnId.CPA: lambda g: g.kpis.cpa,
}

_missing = set(ColumnId) - set(COLUMN_EXTRACTORS)
if _missing:
    raise RuntimeError(f"No extractor for columns: {sorted(c.value for c in _missing)}")


def project_row(
    group: ReportGroup, columns: List[ColumnId], grouping: Grouping
) -> Dict[str, Any]:
    """Only the requested columns that exist at this grouping level."""
    row: Dict[str, Any] = {}
    for column in columns:
        if not COLUMNS[column].applies_to(grouping):
            continue
        row[column.value] = COLUMN_EXTRACTORS[column](group)
    return row


# ── Sorting & pagination ──


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def sort_rows(rows: List[Dict[str, Any]], sorting: Optional[Sorting]) -> List[Dict[str, Any]]:
    """Strings compare case-insensitively, everything else numerically."""
    if sorting is None:
        return rows

    reverse = sorting.direction == SortDirection.DESC
    values = [r.get(sorting.field) for r in rows]
    present = [v for v in values if v is not None]

    if present and all(isinstance(v, str) for v in present):
        def key(r: Dict[str, Any]):
            v = r.get(sorting.field) or ""
            return (v.casefold(), v)
    else:
        def key(r: Dict[str, Any]):
            return _as_number(r.get(sorting.field))

    return sorted(rows, key=key, reverse=reverse)


def paginate(
    rows: List[Dict[str, Any]], page: int, page_size: int
) -> Tuple[List[Dict[str, Any]], PerformanceMeta]:
    total_rows = len(rows)
    start = (page - 1) * page_size
    meta = PerformanceMeta(
        total_rows=total_rows,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total_rows / page_size),
    )
    return rows[start : start + page_size], meta


# ── Entry point ──


def build_performance_report(
    rows: List[InsightRow], request: PerformanceRequest
) -> PerformanceResponse:
    """Aggregate already-filtered insight rows into one report page."""
    grouping = request.grouping
    groups = [summarize_group(g, grouping) for g in group_rows(rows, grouping)]
    projected = [project_row(g, request.columns, grouping) for g in groups]
    ordered = sort_rows(projected, request.sorting)
    page_rows, meta = paginate(ordered, request.pagination.page, request.pagination.page_size)
    return PerformanceResponse(data=page_rows, meta=meta)
