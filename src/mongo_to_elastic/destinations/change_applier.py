"""
Applies change stream events to the Elasticsearch index.
"""

import logging
from typing import Generic, Optional, Type, Union

from elasticsearch import Elasticsearch, NotFoundError
from pydantic import TypeAdapter

from ..connectors.cdc.models import ChangeEvent, OperationType, T, index_body
from ..core.utils import snapshot

logger = logging.getLogger(__name__)


class ChangeApplier(Generic[T]):
    """
    Maps one change event to one index write.

    - insert/update: full replace of the document keyed by its id. Update
      events carry the complete post-image, so this is never a field merge.
    - delete: removes the id; a missing id is not an error.

    Writes use refresh=True so they are visible to the next read. A failed
    write is logged with the event's document and dropped; there is no retry.
    """

    def __init__(
        self,
        client: Elasticsearch,
        index_name: str,
        entity_type: Type[T],
        log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.client = client
        self.index_name = index_name
        self.adapter = TypeAdapter(entity_type)
        self.log = log or logger

    def apply(self, event: ChangeEvent[T]) -> bool:
        """
        Apply a single change event.

        Args:
            event: Change event to mirror

        Returns:
            True if the write succeeded, False if the event was dropped
        """
        self.log.info(
            f"HandleChange begin, changeType: {event.operation_type.value}, document.id: {event.document_id}",
            extra={"operation": event.operation_type.value, "document_id": event.document_id}
        )

        try:
            if event.operation_type in (OperationType.INSERT, OperationType.UPDATE):
                if event.full_document is None:
                    # updateLookup found nothing: the document was deleted after this update
                    self.log.warning(
                        f"Dropping {event.operation_type.value} without post-image",
                        extra={"operation": event.operation_type.value, "document_id": event.document_id}
                    )
                    return False
                self._upsert(event)
            elif event.operation_type == OperationType.DELETE:
                self._delete(event.document_id)

        except Exception as e:
            self.log.error(
                f"HandleChange failed, changeType: {event.operation_type.value}, "
                f"document: {snapshot(event.full_document or {'id': event.document_id})}",
                exc_info=True,
                extra={
                    "operation": event.operation_type.value,
                    "document_id": event.document_id,
                    "error_type": type(e).__name__
                }
            )
            return False

        self.log.info("HandleChange end", extra={"document_id": event.document_id})
        return True

    def _upsert(self, event: ChangeEvent[T]) -> None:
        self.client.index(
            index=self.index_name,
            id=event.document_id,
            document=index_body(self.adapter, event.full_document, event.source_id),
            refresh=True
        )

    def _delete(self, document_id: str) -> None:
        try:
            self.client.delete(index=self.index_name, id=document_id, refresh=True)
        except NotFoundError:
            self.log.info(
                "Delete of missing document ignored",
                extra={"document_id": document_id}
            )
