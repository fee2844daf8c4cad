"""
Firestore query helpers shared by the services.

NOTE: For firebase_admin SDK, we use positional arguments for where() which
still work. The deprecation warning is just a warning.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "citizen_id", "==", citizen_id)
        query = where_filter(query, "status", "in", ["pending", "assigned"])
    """
    return query.where(field_path, op_string, value)


def snapshot_to_dict(doc) -> Optional[Dict[str, Any]]:
    """Document snapshot to dict with its id, or None when it does not exist."""
    if not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def count_query(query) -> int:
    """Run a count() aggregation and return the number."""
    results = query.count().get()
    return int(results[0][0].value) if results and results[0] else 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so they compare with Firestore timestamps."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
