"""
Observes a MongoDB collection and synchronizes its changes into an Elasticsearch index.

Synchronization uses MongoDB change streams (MongoDB 3.6+, replica set or
sharded cluster). The MongoDB user needs the changeStream and find actions
on the watched collection.

There is no checkpoint: every start watches from the current oplog position,
so changes made while the observer is stopped are not mirrored.
"""

import logging
import threading
import time
import uuid
from enum import Enum
from typing import Generic, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from .config import Settings, get_settings
from .connectors.cdc import ChangeStreamWatcher, SourceDocument
from .connectors.cdc.models import T
from .destinations import ChangeApplier, ensure_index
from .elastic import connection as elastic_conn
from .errors import ConfigurationError, ObserverStateError
from .mongodb import connection as mongo_conn
from .utils.logging import ContextLoggerAdapter, CorrelationContext, get_logger


class WorkerPhase(str, Enum):
    """Where the worker currently is in its run."""
    STARTING = "starting"
    BOOTSTRAPPING = "bootstrapping"
    WATCHING = "watching"
    APPLYING = "applying"
    IDLE = "idle"
    CANCELLING = "cancelling"
    STOPPED = "stopped"


class ObserverConfig(BaseModel):
    """Immutable names and connection strings for one observer."""

    model_config = ConfigDict(frozen=True)

    database_name: str
    collection_name: str
    index_name: str
    source_connection: str
    target_connection: str

    @field_validator("*")
    @classmethod
    def validate_not_empty(cls, v: str, info: ValidationInfo) -> str:
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} must be a non-empty string")
        return v


class MongoToElasticObserver(Generic[T]):
    """
    Mirrors one collection into one index from a single background thread.

    Example:
        >>> observer = MongoToElasticObserver("orders", "orders", "orders")
        >>> observer.start()
        >>> ...
        >>> observer.stop()
    """

    def __init__(
        self,
        database_name: str,
        collection_name: str,
        index_name: str,
        entity_type: Type[T] = SourceDocument,
        settings: Optional[Settings] = None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        """
        Initialize the observer.

        Connection strings are read from the MONGO_CONNECTION_STRING and
        ELASTIC_CONNECTION_STRING settings.

        Args:
            database_name: MongoDB database name
            collection_name: MongoDB collection name
            index_name: Elasticsearch index name
            entity_type: Type documents are validated into; must expose a string ``id``
            settings: Settings to use instead of the global ones
            logger: Logger scoped to this observer (defaults to a JSON logger)

        Raises:
            ConfigurationError: If a name or connection string is missing or empty
        """
        settings = settings or get_settings()

        try:
            self.config = ObserverConfig(
                database_name=database_name,
                collection_name=collection_name,
                index_name=index_name,
                source_connection=settings.connections.mongo_connection_string,
                target_connection=settings.connections.elastic_connection_string,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid observer configuration: {e}") from e

        self.entity_type = entity_type
        self.settings = settings.observer

        if logger is None:
            logger = get_logger(
                f"{__name__}.{collection_name}",
                level=getattr(logging, self.settings.log_level)
            )
        self.log = ContextLoggerAdapter(logger, {
            "database": database_name,
            "collection": collection_name,
            "index": index_name,
        })

        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._phase = WorkerPhase.STOPPED

    def start(self) -> None:
        """
        Start handling changes on a background thread.

        Raises:
            ObserverStateError: If a worker from a previous start is still alive
        """
        if self._thread is not None and self._thread.is_alive():
            raise ObserverStateError(
                f"Observer for {self.config.collection_name} is already running"
            )

        run_id = str(uuid.uuid4())
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._handle_changes,
            args=(self._stop_event, run_id),
            name=f"mongo-to-elastic-{self.config.collection_name}",
            daemon=True
        )
        self._phase = WorkerPhase.STARTING
        self._thread.start()

        self.log.info("Observer started", extra={"run_id": run_id})

    def stop(self) -> None:
        """
        Stop handling changes.

        Waits at most ``stop_timeout_seconds`` for the worker to finish its
        current iteration. A worker that is still busy after that is left
        to exit on its own.
        """
        if self._thread is None or self._stop_event is None:
            self.log.warning("Stop called on an observer that was never started")
            return

        self._stop_event.set()
        self._thread.join(timeout=self.settings.stop_timeout_seconds)

        if self._thread.is_alive():
            self.log.warning(
                "Worker did not exit within stop timeout, abandoning it",
                extra={"stop_timeout_seconds": self.settings.stop_timeout_seconds}
            )
        else:
            self.log.info("Observer stopped")

    def __enter__(self) -> "MongoToElasticObserver[T]":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def _set_phase(self, phase: WorkerPhase) -> None:
        if phase != self._phase:
            self.log.debug(f"Worker phase {self._phase.value} -> {phase.value}")
        self._phase = phase

    def _handle_changes(self, stop_event: threading.Event, run_id: str) -> None:
        """Listen to collection changes and sync them to the index until stopped."""
        with CorrelationContext(run_id):
            self.log.info("HandleChanges begin")

            mongo_client = None
            elastic_client = None
            try:
                mongo_client = mongo_conn.get_client(self.config.source_connection)
                elastic_client = elastic_conn.get_client(self.config.target_connection)
                collection = mongo_client[self.config.database_name][self.config.collection_name]

                if stop_event.is_set():
                    return

                self._set_phase(WorkerPhase.BOOTSTRAPPING)
                ensure_index(elastic_client, self.config.index_name, self.log)

                applier = ChangeApplier(elastic_client, self.config.index_name, self.entity_type, self.log)
                watcher = ChangeStreamWatcher(
                    collection,
                    self.entity_type,
                    batch_size=self.settings.batch_size,
                    max_await_time_ms=self.settings.max_await_time_ms,
                    log=self.log
                )
                with watcher:
                    self._consume(watcher, applier, stop_event)

            except Exception as e:
                self.log.error(
                    f"HandleChanges failed: {e}",
                    exc_info=True,
                    extra={"phase": self._phase.value, "error_type": type(e).__name__}
                )

            finally:
                self._close_clients(mongo_client, elastic_client)
                self._set_phase(WorkerPhase.STOPPED)
                self.log.info("HandleChanges end")

    def _consume(
        self,
        watcher: ChangeStreamWatcher[T],
        applier: ChangeApplier[T],
        stop_event: threading.Event
    ) -> None:
        """
        Pull and apply until the stop event is observed.

        Cancellation is checked before each pull and after each batch, never
        during a pull or the idle sleep. Pull errors are logged and the same
        cursor is retried after the idle interval.
        """
        while not stop_event.is_set():
            self._set_phase(WorkerPhase.WATCHING)
            try:
                events = watcher.next_batch()
                if events:
                    self._set_phase(WorkerPhase.APPLYING)
                    for event in events:
                        applier.apply(event)
            except Exception as e:
                self.log.error(
                    f"HandleChanges failed, retrying in {self.settings.idle_interval_seconds}s: {e}",
                    exc_info=True,
                    extra={"error_type": type(e).__name__}
                )

            if stop_event.is_set():
                break

            self._set_phase(WorkerPhase.IDLE)
            time.sleep(self.settings.idle_interval_seconds)

        self._set_phase(WorkerPhase.CANCELLING)
        self.log.info("Stop requested, closing changestream")

    def _close_clients(self, mongo_client, elastic_client) -> None:
        for client in (mongo_client, elastic_client):
            if client is None:
                continue
            try:
                client.close()
            except Exception as e:
                self.log.warning(f"Error closing client: {e}", extra={"client": type(client).__name__})
