"""
Models for change stream events and the mirrored document contract.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, TypeAdapter

from ...core.utils import own_id_field, to_entity_fields


@runtime_checkable
class Entity(Protocol):
    """Anything with a stable string identifier.

    The identifier doubles as the Elasticsearch document id, so a later
    insert or update with the same id overwrites instead of duplicating.
    """

    id: str


class SourceDocument(BaseModel):
    """Default entity: any collection document, keyed by its ``_id``."""

    model_config = ConfigDict(extra="allow")

    id: str


class OperationType(str, Enum):
    """Change stream operations the observer mirrors."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


T = TypeVar("T", bound=Entity)


@dataclass(frozen=True)
class ChangeEvent(Generic[T]):
    """One mutation read from the change stream.

    ``source_id`` holds the document's own ``id`` field when it has one that
    differs from ``_id``; it is indexed as a regular field.
    """
    operation_type: OperationType
    document_id: str
    full_document: Optional[T] = None
    source_id: Optional[Any] = None

    @classmethod
    def from_change(cls, change: Mapping[str, Any], adapter: TypeAdapter) -> "ChangeEvent[T]":
        """Build an event from a raw change stream document.

        Args:
            change: Raw change document as yielded by pymongo
            adapter: TypeAdapter for the entity type

        Raises:
            ValueError: Unsupported operation type or missing document key
            pydantic.ValidationError: Post-image does not fit the entity type
        """
        operation_type = OperationType(change.get("operationType"))

        document_key = change.get("documentKey") or {}
        if "_id" not in document_key:
            raise ValueError(f"Change event without documentKey._id: {change.get('_id')}")

        full_document = None
        source_id = None
        raw_document = change.get("fullDocument")
        if raw_document is not None:
            full_document = adapter.validate_python(to_entity_fields(raw_document))
            source_id = own_id_field(raw_document)

        return cls(
            operation_type=operation_type,
            document_id=str(document_key["_id"]),
            full_document=full_document,
            source_id=source_id,
        )


def index_body(adapter: TypeAdapter, entity: Entity, source_id: Optional[Any] = None) -> Dict[str, Any]:
    """Document body to index: every entity field except the identifier.

    A document's own ``id`` field (``source_id``) is kept in the body.
    """
    body = adapter.dump_python(entity, mode="json")
    body.pop("id", None)
    if source_id is not None:
        body["id"] = source_id
    return body
