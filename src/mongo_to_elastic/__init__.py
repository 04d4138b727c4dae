"""
Mirror a MongoDB collection into an Elasticsearch index using change streams.
"""

from .connectors.cdc import ChangeEvent, Entity, OperationType, SourceDocument
from .errors import ConfigurationError, IndexBootstrapError, ObserverError, ObserverStateError
from .observer import MongoToElasticObserver, ObserverConfig, WorkerPhase

__version__ = "0.1.0"

__all__ = [
    "ChangeEvent",
    "Entity",
    "OperationType",
    "SourceDocument",
    "ConfigurationError",
    "IndexBootstrapError",
    "ObserverError",
    "ObserverStateError",
    "MongoToElasticObserver",
    "ObserverConfig",
    "WorkerPhase",
]
