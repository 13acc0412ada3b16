from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId


def parse_oid(value: Any) -> Optional[ObjectId]:
    """ObjectId for a 24-hex string (or an ObjectId), else None."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def serialize_mongo(obj: Any) -> Any:
    """
    Recursively convert Mongo documents to JSON-safe values.
    Stored datetimes are UTC; naive ones get the offset attached.
    """
    if isinstance(obj, ObjectId):
        return str(obj)

    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        return obj.isoformat()

    if isinstance(obj, (list, tuple)):
        return [serialize_mongo(i) for i in obj]

    if isinstance(obj, dict):
        return {k: serialize_mongo(v) for k, v in obj.items()}

    return obj
