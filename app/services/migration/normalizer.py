"""
Field normalization applied to legacy rows at extraction time.

Only the recipes table carries legacy encodings; every other table passes
through untouched.
"""
import json
import logging
from typing import Any, Mapping

from app.core.exceptions import NormalizationError
from app.database.models import Marked

logger = logging.getLogger(__name__)


def normalize_marked(raw: Any, row_id: Any = None) -> Marked:
    """
    Map the legacy integer flag onto the three-state Marked value.

    1 -> TRUE, 0 -> FALSE, anything else (missing, 2, "yes", ...) -> UNKNOWN.
    A single-byte BIT(1) value is read as its integer first.
    """
    if isinstance(raw, (list, tuple, dict, set)):
        raise NormalizationError("recipes", row_id, f"marked holds a {type(raw).__name__}")

    if isinstance(raw, (bytes, bytearray)) and len(raw) == 1:
        raw = raw[0]

    # bool is an int subclass, so True/False land on the same branches as 1/0;
    # FLOAT/DOUBLE columns compare by value
    if isinstance(raw, (int, float)) and raw == 1:
        return Marked.TRUE
    if isinstance(raw, (int, float)) and raw == 0:
        return Marked.FALSE
    return Marked.UNKNOWN


def normalize_tags(raw: Any, row_id: Any = None) -> str | None:
    """Canonicalize the tags column to a JSON array of strings, or None."""
    if raw is None:
        return None

    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise NormalizationError("recipes", row_id, f"tags is not valid JSON: {e}") from e

    if not isinstance(raw, list) or not all(isinstance(tag, str) for tag in raw):
        raise NormalizationError("recipes", row_id, "tags must be a JSON array of strings")

    return json.dumps(raw)


def normalize_recipe(row: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(row, Mapping):
        raise NormalizationError("recipes", None, f"expected a mapping, got {type(row).__name__}")

    row_id = row.get("id")
    normalized = dict(row)
    normalized["marked"] = normalize_marked(row.get("marked"), row_id)
    if "tags" in row:
        normalized["tags"] = normalize_tags(row["tags"], row_id)
    return normalized


def normalize_tables(tables: dict[str, list[dict[str, Any]]]) -> dict[str, list[dict[str, Any]]]:
    """Return a copy of the extracted tables with recipe rows normalized."""
    normalized = dict(tables)
    recipes = [normalize_recipe(row) for row in tables.get("recipes", [])]

    unknown = sum(1 for row in recipes if row["marked"] is Marked.UNKNOWN)
    if unknown:
        logger.warning(f"{unknown} of {len(recipes)} recipes have an unknown marked flag")

    normalized["recipes"] = recipes
    return normalized
