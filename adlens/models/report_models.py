"""AdLens — Performance Report Request / Response Schemas.

Field names are snake_case in Python and camelCase on the wire
(dateRange, campaignObjective, pageSize, totalRows, ...).
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from adlens.core.column_registry import ColumnId, Grouping
from adlens.models.entity_models import EntityStatus, Objective


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class DateRange(BaseModel):
    """Inclusive calendar range."""

    date_from: date = Field(alias="from")
    date_to: date = Field(alias="to")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.date_from > self.date_to:
            raise ValueError("dateRange.from must not be after dateRange.to")
        return self


class PerformanceFilters(BaseModel):
    date_range: DateRange = Field(alias="dateRange")
    status: Optional[EntityStatus] = None
    campaign_objective: Objective = Field(alias="campaignObjective")
    search: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("search")
    @classmethod
    def _blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, ge=1, le=1000, alias="pageSize")

    model_config = {"populate_by_name": True}


class Sorting(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


class PerformanceRequest(BaseModel):
    """Request body for POST /api/performance."""

    grouping: Grouping
    filters: PerformanceFilters
    pagination: Pagination = Pagination()
    sorting: Optional[Sorting] = None
    columns: List[ColumnId] = Field(min_length=1)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "grouping": "campaign",
                    "filters": {
                        "dateRange": {"from": "2025-01-01", "to": "2025-01-31"},
                        "campaignObjective": "SALES",
                        "status": "active",
                    },
                    "pagination": {"page": 1, "pageSize": 25},
                    "sorting": {"field": "spend", "direction": "desc"},
                    "columns": ["campaign_name", "spend", "roas", "cpa"],
                }
            ]
        },
    }

    def cache_fingerprint(self) -> Dict[str, Any]:
        """Normalized, JSON-safe form of the request used as a cache key."""
        return self.model_dump(mode="json", by_alias=True)


class PerformanceMeta(BaseModel):
    total_rows: int = Field(alias="totalRows")
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")

    model_config = {"populate_by_name": True}


class PerformanceResponse(BaseModel):
    """Response for POST /api/performance."""

    data: List[Dict[str, Any]] = []
    meta: PerformanceMeta
