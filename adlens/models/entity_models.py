"""AdLens — Synced Entity Models.

Mirror of the upstream collections. All four tables are truncated and
re-populated on every sync; nothing else writes to them.
"""

from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class EntityStatus(str, Enum):
    """Delivery status shared by campaigns and ads."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Objective(str, Enum):
    """Campaign objective; decides which KPI pair is meaningful."""

    AWARENESS = "AWARENESS"
    TRAFFIC = "TRAFFIC"
    ENGAGEMENT = "ENGAGEMENT"
    LEADS = "LEADS"
    SALES = "SALES"


class CreativeType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class Campaign(SQLModel, table=True):
    __tablename__ = "campaigns"

    campaign_id: str = Field(primary_key=True)
    campaign_name: str = Field(default="", index=True)
    status: str = Field(default=EntityStatus.ACTIVE.value, index=True)
    campaign_objective: str = Field(index=True, description="AWARENESS | TRAFFIC | ...")


class Creative(SQLModel, table=True):
    __tablename__ = "creatives"

    creative_id: str = Field(primary_key=True)
    creative_type: str = Field(default=CreativeType.IMAGE.value)
    thumbnail_url: str = Field(default="")


class Ad(SQLModel, table=True):
    """One ad, owned by exactly one campaign and one creative."""

    __tablename__ = "ads"

    ad_id: str = Field(primary_key=True)
    campaign_id: str = Field(foreign_key="campaigns.campaign_id", index=True)
    creative_id: str = Field(foreign_key="creatives.creative_id", index=True)
    date_start: str = Field(default="", description="YYYY-MM-DD, inclusive")
    date_end: str = Field(default="", description="YYYY-MM-DD, inclusive")
    name: str = Field(default="", index=True)
    description: str = Field(default="")
    status: str = Field(default=EntityStatus.ACTIVE.value, index=True)


class Insight(SQLModel, table=True):
    """One ad's delivery on one calendar day.

    campaign_id is a denormalized copy of the ad's campaign so reports can
    filter on campaign attributes without going through the ads table.
    """

    __tablename__ = "insights"

    insight_id: str = Field(primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    ad_id: str = Field(foreign_key="ads.ad_id", index=True)
    campaign_id: str = Field(foreign_key="campaigns.campaign_id", index=True)
    impressions: float = 0
    clicks: float = 0
    spend: float = 0
    conversions: float = 0
    reach: float = 0
    video_views: float = 0
    leads: float = 0
    conversion_value: float = 0


# Bulk-insert order respects the foreign keys; truncation runs in reverse.
ENTITY_TABLES: list[type[SQLModel]] = [Campaign, Creative, Ad, Insight]

ENTITY_PRIMARY_KEYS: dict[str, str] = {
    "campaigns": "campaign_id",
    "creatives": "creative_id",
    "ads": "ad_id",
    "insights": "insight_id",
}


def model_for(collection: str) -> Optional[type[SQLModel]]:
    """Map an upstream collection name to its table model."""
    return {
        "campaigns": Campaign,
        "creatives": Creative,
        "ads": Ad,
        "insights": Insight,
    }.get(collection)
