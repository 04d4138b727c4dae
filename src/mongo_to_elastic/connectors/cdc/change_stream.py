"""
MongoDB change stream watcher.

Opens a server-filtered change stream over one collection and hands out the
currently available changes one pull at a time:
1. Only insert, update and delete operations reach the client
2. Updates carry the full post-image (``updateLookup``), never a delta
3. Pulls never reopen the cursor; a failing pull is the caller's to retry
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type

from pydantic import TypeAdapter, ValidationError
from pymongo.change_stream import CollectionChangeStream
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .models import ChangeEvent, OperationType, T

logger = logging.getLogger(__name__)

WATCHED_OPERATIONS = [op.value for op in OperationType]


def build_pipeline() -> List[Dict[str, Any]]:
    """Server-side filter restricting the stream to watched operations."""
    return [{"$match": {"operationType": {"$in": WATCHED_OPERATIONS}}}]


class ChangeStreamWatcher(Generic[T]):
    """
    Pull-based reader over a collection change stream.

    Thread Safety: NOT thread-safe. One instance per worker.

    Example:
        >>> watcher = ChangeStreamWatcher(db['orders'], SourceDocument)
        >>> with watcher:
        ...     for event in watcher.next_batch():
        ...         applier.apply(event)
    """

    def __init__(
        self,
        collection: Collection,
        entity_type: Type[T],
        batch_size: int = 100,
        max_await_time_ms: int = 1000,
        log: Optional[logging.LoggerAdapter] = None
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if max_await_time_ms <= 0:
            raise ValueError("max_await_time_ms must be positive")

        self.collection = collection
        self.collection_name = collection.name
        self.adapter = TypeAdapter(entity_type)
        self.batch_size = batch_size
        self.max_await_time_ms = max_await_time_ms
        self.log = log or logger
        self.stream: Optional[CollectionChangeStream] = None

    def open(self) -> "ChangeStreamWatcher[T]":
        """Open the change stream, starting from the current oplog position.

        Raises:
            PyMongoError: If the stream cannot be opened (e.g. not a replica set)
        """
        self.log.info(
            f"Opening changestream for collection {self.collection_name}",
            extra={"operations": WATCHED_OPERATIONS}
        )
        self.stream = self.collection.watch(
            pipeline=build_pipeline(),
            full_document="updateLookup",
            batch_size=self.batch_size,
            max_await_time_ms=self.max_await_time_ms
        )
        return self

    def next_batch(self) -> List[ChangeEvent[T]]:
        """
        Pull the changes currently available on the stream.

        Collects events in arrival order until the cursor has nothing more
        right now or ``batch_size`` events were read. A change that cannot
        be parsed is logged and dropped without affecting its neighbours.
        A cursor error after some events were read ends the batch early and
        those events are returned.

        Returns:
            Parsed events, possibly empty

        Raises:
            RuntimeError: If the stream is not open
            PyMongoError: On a cursor error before any event was read
                (caller retries the same cursor)
        """
        if self.stream is None:
            raise RuntimeError("Change stream is not open")

        events: List[ChangeEvent[T]] = []
        while len(events) < self.batch_size:
            try:
                change = self.stream.try_next()
            except PyMongoError as e:
                if not events:
                    raise
                # The cursor already moved past these; hand them out now
                self.log.error(
                    f"Pull failed after {len(events)} change events, returning partial batch: {e}",
                    extra={"batch_size": len(events), "error_type": type(e).__name__}
                )
                break
            if change is None:
                break

            event = self._parse(change)
            if event is not None:
                events.append(event)

        if events:
            self.log.debug(
                f"Pulled {len(events)} change events",
                extra={"batch_size": len(events)}
            )
        return events

    def _parse(self, change: Dict[str, Any]) -> Optional[ChangeEvent[T]]:
        try:
            return ChangeEvent.from_change(change, self.adapter)
        except (ValueError, ValidationError) as e:
            self.log.error(
                f"Dropping unparseable change event: {e}",
                extra={
                    "operation": change.get("operationType"),
                    "document_key": str(change.get("documentKey")),
                    "error_type": type(e).__name__
                }
            )
            return None

    def close(self) -> None:
        """Close the change stream cursor if open."""
        if self.stream is not None:
            self.stream.close()
            self.stream = None
            self.log.info(f"Closed changestream for collection {self.collection_name}")

    def __enter__(self) -> "ChangeStreamWatcher[T]":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
