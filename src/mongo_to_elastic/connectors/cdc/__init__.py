"""
CDC (Change Data Capture) module for MongoDB changestream processing.
"""

from .change_stream import ChangeStreamWatcher, build_pipeline
from .models import ChangeEvent, Entity, OperationType, SourceDocument, index_body

__all__ = [
    "ChangeStreamWatcher",
    "build_pipeline",
    "ChangeEvent",
    "Entity",
    "OperationType",
    "SourceDocument",
    "index_body",
]
