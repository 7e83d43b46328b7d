"""AdLens — Report Column Registry.

Single source of truth for every column a performance report can contain.
The /api/columns endpoint publishes this table verbatim and the aggregation
engine projects rows from it, so a column added here must also get an
extractor in analyzer/performance_engine.py (checked at import time).
"""

from enum import Enum
from typing import Dict, List, Optional

from adlens.models.entity_models import Objective


class Grouping(str, Enum):
    """Granularity of one report row."""

    CAMPAIGN = "campaign"
    AD = "ad"


class ColumnCategory(str, Enum):
    INFO = "info"  # Display metadata: names, status, creative
    METRICS = "metrics"  # Summed raw measures
    KPI = "kpi"  # Derived ratios, one objective each


class ColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    RATIO = "ratio"


class ColumnId(str, Enum):
    # Info
    CAMPAIGN_NAME = "campaign_name"
    CAMPAIGN_OBJECTIVE = "campaign_objective"
    STATUS = "status"
    AD_NAME = "ad_name"
    CREATIVE_TYPE = "creative_type"
    THUMBNAIL_URL = "thumbnail_url"
    # Metrics
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    SPEND = "spend"
    CONVERSIONS = "conversions"
    REACH = "reach"
    VIDEO_VIEWS = "video_views"
    LEADS = "leads"
    CONVERSION_VALUE = "conversion_value"
    # KPIs
    CPM = "cpm"
    CPR = "cpr"
    CTR = "ctr"
    CPC = "cpc"
    VIEW_RATE = "view_rate"
    CPV = "cpv"
    CPL = "cpl"
    LEAD_CONV_RATE = "lead_conv_rate"
    ROAS = "roas"
    CPA = "cpa"


BOTH_LEVELS = (Grouping.CAMPAIGN, Grouping.AD)
AD_LEVEL = (Grouping.AD,)


class ColumnDefinition:
    """Describes a single report column."""

    def __init__(
        self,
        column_id: ColumnId,
        label: str,
        category: ColumnCategory,
        value_type: ColumnType,
        available_for: tuple[Grouping, ...] = BOTH_LEVELS,
        objective: Optional[Objective] = None,
    ):
        self.id = column_id
        self.label = label
        self.category = category
        self.value_type = value_type
        self.available_for = available_for
        self.objective = objective

    def applies_to(self, grouping: Grouping) -> bool:
        return grouping in self.available_for

    def to_dict(self) -> dict:
        """Wire shape served by GET /api/columns."""
        payload = {
            "id": self.id.value,
            "label": self.label,
            "category": self.category.value,
            "type": self.value_type.value,
            "availableFor": [g.value for g in self.available_for],
        }
        if self.objective is not None:
            payload["objective"] = self.objective.value
        return payload

    def __repr__(self) -> str:
        return f"<Column {self.id.value} ({self.category.value})>"


def _column(*args, **kwargs) -> tuple[ColumnId, ColumnDefinition]:
    definition = ColumnDefinition(*args, **kwargs)
    return definition.id, definition


# ─────────────────────────────────────────────
# COLUMNS: canonical registry (display order)
# ─────────────────────────────────────────────

COLUMNS: Dict[ColumnId, ColumnDefinition] = dict(
    [
        # Info
        _column(ColumnId.CAMPAIGN_NAME, "Campaign", ColumnCategory.INFO, ColumnType.STRING),
        _column(ColumnId.CAMPAIGN_OBJECTIVE, "Objective", ColumnCategory.INFO, ColumnType.STRING),
        _column(ColumnId.STATUS, "Status", ColumnCategory.INFO, ColumnType.STRING),
        _column(ColumnId.AD_NAME, "Ad", ColumnCategory.INFO, ColumnType.STRING, AD_LEVEL),
        _column(
            ColumnId.CREATIVE_TYPE, "Creative Type", ColumnCategory.INFO, ColumnType.STRING, AD_LEVEL
        ),
        _column(
            ColumnId.THUMBNAIL_URL, "Thumbnail", ColumnCategory.INFO, ColumnType.STRING, AD_LEVEL
        ),
        # Metrics
        _column(ColumnId.IMPRESSIONS, "Impressions", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(ColumnId.CLICKS, "Clicks", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(ColumnId.SPEND, "Spend", ColumnCategory.METRICS, ColumnType.CURRENCY),
        _column(ColumnId.CONVERSIONS, "Conversions", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(ColumnId.REACH, "Reach", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(ColumnId.VIDEO_VIEWS, "Video Views", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(ColumnId.LEADS, "Leads", ColumnCategory.METRICS, ColumnType.NUMBER),
        _column(
            ColumnId.CONVERSION_VALUE, "Revenue", ColumnCategory.METRICS, ColumnType.CURRENCY
        ),
        # KPIs: AWARENESS
        _column(
            ColumnId.CPM, "CPM", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.AWARENESS,
        ),
        _column(
            ColumnId.CPR, "CPR", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.AWARENESS,
        ),
        # KPIs: TRAFFIC
        _column(
            ColumnId.CTR, "CTR", ColumnCategory.KPI, ColumnType.PERCENTAGE,
            objective=Objective.TRAFFIC,
        ),
        _column(
            ColumnId.CPC, "CPC", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.TRAFFIC,
        ),
        # KPIs: ENGAGEMENT
        _column(
            ColumnId.VIEW_RATE, "View Rate", ColumnCategory.KPI, ColumnType.PERCENTAGE,
            objective=Objective.ENGAGEMENT,
        ),
        _column(
            ColumnId.CPV, "CPV", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.ENGAGEMENT,
        ),
        # KPIs: LEADS
        _column(
            ColumnId.CPL, "CPL", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.LEADS,
        ),
        _column(
            ColumnId.LEAD_CONV_RATE, "Lead Conv. Rate", ColumnCategory.KPI, ColumnType.PERCENTAGE,
            objective=Objective.LEADS,
        ),
        # KPIs: SALES
        _column(
            ColumnId.ROAS, "ROAS", ColumnCategory.KPI, ColumnType.RATIO,
            objective=Objective.SALES,
        ),
        _column(
            ColumnId.CPA, "CPA", ColumnCategory.KPI, ColumnType.CURRENCY,
            objective=Objective.SALES,
        ),
    ]
)


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def column_metadata() -> List[dict]:
    return [c.to_dict() for c in COLUMNS.values()]
