"""Helper functions for MongoDB operations."""

from bson import ObjectId
from typing import Any, Dict, Optional


def json_serialize_mongodb_object(obj: Any) -> Any:
    """
    Recursively convert MongoDB documents to JSON-serializable types.

    This function converts:
    - ObjectId to string
    - datetime to ISO format string
    - Recursively processes lists and dictionaries

    Args:
        obj: Any object that might contain MongoDB types

    Returns:
        JSON-serializable version of the object
    """
    if isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: json_serialize_mongodb_object(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [json_serialize_mongodb_object(item) for item in obj]
    elif hasattr(obj, 'isoformat'):  # datetime and date
        return obj.isoformat()
    else:
        return obj


def sanitize_mongodb_document(doc: Optional[Dict]) -> Dict:
    """
    Convert a MongoDB document to a JSON-serializable dictionary.

    The document's ``_id`` is kept as a string and mirrored to ``id`` when the
    record has no ``id`` of its own, so report payloads can be sent back to the
    classifier (which looks for ``id``/``_id`` interchangeably).

    Args:
        doc: MongoDB document

    Returns:
        JSON-serializable dictionary
    """
    if doc is None:
        return {}

    sanitized = json_serialize_mongodb_object(doc)
    if "_id" in sanitized and not sanitized.get("id"):
        sanitized["id"] = sanitized["_id"]
    return sanitized


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a valid 24-hex id string, else None."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None
