"""
BSON to JSON-serializable converter utility.

Converts MongoDB BSON types to JSON-serializable Python types so change
stream documents can be indexed into Elasticsearch and dumped into logs.
"""

from bson import ObjectId, Decimal128
from datetime import datetime
import base64
import json
from typing import Any, Dict, Mapping


def bson_safe(value: Any) -> Any:
    """
    Recursively convert BSON types to JSON-serializable Python types.

    Handles:
    - ObjectId -> str
    - datetime -> ISO string
    - Decimal128 -> str
    - bytes -> base64 string
    - Nested dicts and lists

    Args:
        value: Value to convert (can be any BSON type)

    Returns:
        JSON-serializable Python value

    Example:
        >>> from bson import ObjectId
        >>> doc = {"_id": ObjectId(), "name": "test"}
        >>> safe = bson_safe(doc)
        >>> isinstance(safe["_id"], str)
        True
    """
    if value is None:
        return None

    if isinstance(value, ObjectId):
        return str(value)

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, Decimal128):
        return str(value)

    if isinstance(value, bytes):
        return base64.b64encode(value).decode('ascii')

    if isinstance(value, Mapping):
        return {k: bson_safe(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [bson_safe(v) for v in value]

    return value


def to_entity_fields(document: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Prepare a raw MongoDB document for validation into an entity.

    The Mongo ``_id`` always becomes the string ``id`` the index is keyed on.
    A document's own ``id`` field is replaced here; see ``own_id_field``.

    Example:
        >>> to_entity_fields({"_id": 1, "amount": 10})
        {'amount': 10, 'id': '1'}
    """
    fields = bson_safe(dict(document))
    raw_id = fields.pop("_id", None)
    if raw_id is not None:
        fields["id"] = str(raw_id)
    return fields


def own_id_field(document: Mapping[str, Any]) -> Any:
    """
    The document's own ``id`` field when it is not just a copy of ``_id``.

    Returns None when there is no such field or it equals ``str(_id)``.

    Example:
        >>> own_id_field({"_id": "abc", "id": "SKU-9"})
        'SKU-9'
    """
    if "id" not in document:
        return None
    value = bson_safe(document["id"])
    if "_id" in document and value == str(bson_safe(document["_id"])):
        return None
    return value


def snapshot(value: Any) -> str:
    """Serialize a document (entity, dict or None) to a JSON string for logs."""
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    elif hasattr(value, "__dict__") and not isinstance(value, Mapping):
        value = vars(value)
    return json.dumps(bson_safe(value), default=str, sort_keys=True)
