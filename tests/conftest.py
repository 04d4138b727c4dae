"""Shared fixtures: in-memory Elasticsearch and change stream doubles."""

import copy
import queue
import time
from types import SimpleNamespace
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
from elasticsearch import NotFoundError

from mongo_to_elastic.config import ConnectionSettings, ObserverSettings, Settings


def not_found(index: str, doc_id: str) -> NotFoundError:
    return NotFoundError(
        message="not_found",
        meta=SimpleNamespace(status=404),
        body={"_index": index, "_id": doc_id, "found": False}
    )


class FakeIndices:
    """Subset of the indices namespace used by the bootstrapper."""

    def __init__(self, store: "FakeElasticsearch"):
        self.store = store
        self.create_calls = []

    def exists(self, index: str) -> bool:
        return index in self.store.indexes

    def create(self, index: str, **kwargs) -> Dict[str, Any]:
        self.create_calls.append((index, kwargs))
        self.store.indexes.setdefault(index, {})
        return {"acknowledged": True, "index": index}


class FakeElasticsearch:
    """Dict-backed stand-in for the Elasticsearch client.

    Writes are visible immediately, matching refresh=True semantics.
    """

    def __init__(self):
        self.indexes: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.indices = FakeIndices(self)
        self.write_calls = []
        self.closed = False

    def index(self, index: str, id: str, document: Dict[str, Any], refresh=None) -> Dict[str, Any]:
        self.write_calls.append(("index", index, id, refresh))
        self.indexes.setdefault(index, {})[id] = copy.deepcopy(document)
        return {"_index": index, "_id": id, "result": "created"}

    def delete(self, index: str, id: str, refresh=None) -> Dict[str, Any]:
        self.write_calls.append(("delete", index, id, refresh))
        docs = self.indexes.get(index, {})
        if id not in docs:
            raise not_found(index, id)
        del docs[id]
        return {"_index": index, "_id": id, "result": "deleted"}

    def get(self, index: str, id: str) -> Dict[str, Any]:
        docs = self.indexes.get(index, {})
        if id not in docs:
            raise not_found(index, id)
        return {"_index": index, "_id": id, "found": True, "_source": copy.deepcopy(docs[id])}

    def close(self) -> None:
        self.closed = True


class FakeChangeStream:
    """Queue-backed change stream cursor exposing try_next()/close()."""

    def __init__(self):
        self.changes: "queue.Queue[Any]" = queue.Queue()
        self.closed = False
        self.pulls = 0

    def push(self, change: Any) -> None:
        """Queue a change dict, or an exception to raise from the next pull."""
        self.changes.put(change)

    def try_next(self) -> Optional[Dict[str, Any]]:
        self.pulls += 1
        try:
            item = self.changes.get_nowait()
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_es():
    return FakeElasticsearch()


@pytest.fixture
def change_stream():
    return FakeChangeStream()


@pytest.fixture
def mock_collection(change_stream):
    """Mock pymongo collection whose watch() returns the fake stream."""
    collection = MagicMock()
    collection.name = "orders"
    collection.watch.return_value = change_stream
    return collection


@pytest.fixture
def make_change():
    """Build a raw change stream document as pymongo yields it."""

    def _make(operation: str, doc_id: Any, full_document: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        change = {
            "_id": {"_data": f"token-{operation}-{doc_id}"},
            "operationType": operation,
            "ns": {"db": "orders", "coll": "orders"},
            "documentKey": {"_id": doc_id},
        }
        if full_document is not None:
            change["fullDocument"] = {"_id": doc_id, **full_document}
        return change

    return _make


@pytest.fixture
def settings():
    """Settings with fast timings and dummy connection strings."""
    return Settings(
        connections=ConnectionSettings(
            mongo_connection_string="mongodb://localhost:27017/?replicaSet=rs0",
            elastic_connection_string="http://localhost:9200",
        ),
        observer=ObserverSettings(
            idle_interval_seconds=0.01,
            stop_timeout_seconds=2.0,
            max_await_time_ms=10,
            batch_size=100,
        ),
    )


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or the timeout expires."""

    def _wait(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
