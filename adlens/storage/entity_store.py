"""AdLens — Entity Store.

Bulk writes for the sync pipeline and the joined insight query behind
performance reports. Every public method opens its own transaction, so
callers can run them in a worker thread with asyncio.to_thread().
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from adlens.analyzer.kpi_engine import RawTotals
from adlens.analyzer.performance_engine import InsightRow
from adlens.core.column_registry import Grouping
from adlens.core.logging import get_logger
from adlens.models.entity_models import (
    ENTITY_TABLES,
    Ad,
    Campaign,
    Creative,
    Insight,
)
from adlens.models.report_models import PerformanceFilters

logger = get_logger("storage")


def _primary_key(model: type[SQLModel]) -> str:
    return model.__table__.primary_key.columns.values()[0].name  # type: ignore[attr-defined]


def dedupe_first_wins(rows: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """Drop rows whose key was already seen; the first occurrence is kept."""
    seen: set = set()
    unique: List[Dict[str, Any]] = []
    for row in rows:
        value = row.get(key)
        if value in seen:
            continue
        seen.add(value)
        unique.append(row)
    return unique


class EntityStore:
    """Durable store for campaigns, creatives, ads and insights."""

    def __init__(self, engine: Engine):
        self.engine = engine

    # ── Writes (sync pipeline) ──

    def truncate_all(self) -> None:
        """Delete every synced entity, children first."""
        with self.engine.begin() as conn:
            for model in reversed(ENTITY_TABLES):
                conn.execute(delete(model))
        logger.info("Cleared campaigns, creatives, ads and insights")

    def _insert_ignoring_conflicts(self, model: type[SQLModel], pk: str):
        table = model.__table__  # type: ignore[attr-defined]
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None
        return insert(table).on_conflict_do_nothing(index_elements=[pk])

    def bulk_insert(self, model: type[SQLModel], rows: List[Dict[str, Any]]) -> int:
        """Insert rows in one transaction, skipping duplicate primary keys.

        Returns the number of distinct rows submitted.
        """
        if not rows:
            return 0
        pk = _primary_key(model)
        unique = dedupe_first_wins(rows, pk)
        if len(unique) < len(rows):
            logger.warning(
                f"Dropped {len(rows) - len(unique)} duplicate {model.__tablename__} rows"
            )

        stmt = self._insert_ignoring_conflicts(model, pk)
        with self.engine.begin() as conn:
            if stmt is None:
                # Generic dialect: filter out keys that already exist
                table = model.__table__  # type: ignore[attr-defined]
                keys = [r[pk] for r in unique]
                existing = set(
                    conn.execute(select(table.c[pk]).where(table.c[pk].in_(keys))).scalars()
                )
                unique = [r for r in unique if r[pk] not in existing]
                if unique:
                    conn.execute(table.insert(), unique)
            else:
                conn.execute(stmt, unique)
        return len(unique)

    # ── Reads ──

    def count(self, model: type[SQLModel]) -> int:
        with Session(self.engine) as session:
            return session.exec(select(func.count()).select_from(model)).one()

    def list_entities(
        self,
        model: type[SQLModel],
        page: int = 1,
        page_size: int = 100,
        where: Optional[list] = None,
    ) -> Tuple[List[SQLModel], int]:
        """One page of a table, ordered by primary key, plus the total count."""
        pk = getattr(model, _primary_key(model))
        conditions = where or []
        with Session(self.engine) as session:
            total = session.exec(
                select(func.count()).select_from(model).where(*conditions)
            ).one()
            items = session.exec(
                select(model)
                .where(*conditions)
                .order_by(pk)
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
        return list(items), total

    def query_insight_rows(
        self, filters: PerformanceFilters, grouping: Grouping
    ) -> List[InsightRow]:
        """Insights in range, joined with ad / campaign / creative, report filters applied.

        Objective and status are ANDed outside the search disjunction so a
        name match can never pull in another objective's rows.
        """
        stmt = (
            select(Insight, Ad, Campaign, Creative)
            .join(Ad, Insight.ad_id == Ad.ad_id)
            .join(Campaign, Insight.campaign_id == Campaign.campaign_id)
            .join(Creative, Ad.creative_id == Creative.creative_id)
            .where(
                Insight.date >= filters.date_range.date_from.isoformat(),
                Insight.date <= filters.date_range.date_to.isoformat(),
                Campaign.campaign_objective == filters.campaign_objective.value,
            )
        )

        if filters.status is not None:
            if grouping == Grouping.CAMPAIGN:
                stmt = stmt.where(Campaign.status == filters.status.value)
            else:
                stmt = stmt.where(Ad.status == filters.status.value)

        if filters.search:
            matches = [Campaign.campaign_name.icontains(filters.search, autoescape=True)]  # type: ignore[attr-defined]
            if grouping == Grouping.AD:
                matches.append(Ad.name.icontains(filters.search, autoescape=True))  # type: ignore[attr-defined]
            stmt = stmt.where(or_(*matches))

        stmt = stmt.order_by(Insight.date, Insight.insight_id)

        with Session(self.engine) as session:
            results = session.exec(stmt).all()

        rows = [
            InsightRow(
                date=insight.date,
                ad_id=insight.ad_id,
                campaign_id=insight.campaign_id,
                campaign_name=campaign.campaign_name,
                campaign_objective=campaign.campaign_objective,
                campaign_status=campaign.status,
                ad_name=ad.name,
                ad_status=ad.status,
                creative_type=creative.creative_type,
                thumbnail_url=creative.thumbnail_url,
                measures=RawTotals(
                    impressions=insight.impressions,
                    clicks=insight.clicks,
                    spend=insight.spend,
                    conversions=insight.conversions,
                    reach=insight.reach,
                    video_views=insight.video_views,
                    leads=insight.leads,
                    conversion_value=insight.conversion_value,
                ),
            )
            for insight, ad, campaign, creative in results
        ]
        logger.debug(f"Selected {len(rows)} insight rows for {grouping.value} report")
        return rows
