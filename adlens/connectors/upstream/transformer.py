"""AdLens — Upstream Raw → Table Row Transformer.

Maps raw upstream records onto the entity tables: keeps only known fields,
coerces numeric measures, drops records without an id and collapses
duplicate ids (first occurrence wins).
"""

from typing import Any, Dict, List

from adlens.analyzer.kpi_engine import RAW_MEASURES
from adlens.core.logging import get_logger
from adlens.models.entity_models import ENTITY_PRIMARY_KEYS
from adlens.storage.entity_store import dedupe_first_wins

logger = get_logger("upstream.transformer")

# Text fields copied as-is for each collection (primary key first)
TEXT_FIELDS: Dict[str, tuple[str, ...]] = {
    "campaigns": ("campaign_id", "campaign_name", "status", "campaign_objective"),
    "creatives": ("creative_id", "creative_type", "thumbnail_url"),
    "ads": (
        "ad_id",
        "campaign_id",
        "creative_id",
        "date_start",
        "date_end",
        "name",
        "description",
        "status",
    ),
    "insights": ("insight_id", "date", "ad_id", "campaign_id"),
}

NUMERIC_FIELDS: Dict[str, tuple[str, ...]] = {
    "insights": RAW_MEASURES,
}


def _safe_float(value: Any) -> float:
    """Safely convert a value to a non-negative float."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number < 0:  # NaN or negative
        return 0.0
    return number


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def transform_records(collection: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Turn raw records of one collection into insertable row dicts."""
    if collection not in TEXT_FIELDS:
        raise ValueError(f"Unknown collection: {collection}")

    pk = ENTITY_PRIMARY_KEYS[collection]
    rows: List[Dict[str, Any]] = []
    skipped = 0

    for record in records:
        if not record.get(pk):
            skipped += 1
            continue
        row = {name: _text(record.get(name)) for name in TEXT_FIELDS[collection]}
        for name in NUMERIC_FIELDS.get(collection, ()):
            row[name] = _safe_float(record.get(name))
        rows.append(row)

    unique = dedupe_first_wins(rows, pk)
    if skipped or len(unique) < len(rows):
        logger.warning(
            f"{collection}: skipped {skipped} records without {pk}, "
            f"dropped {len(rows) - len(unique)} duplicates"
        )
    return unique
