"""
Utility functions for core operations.
"""

from .bson_convert import bson_safe, own_id_field, snapshot, to_entity_fields

__all__ = ["bson_safe", "own_id_field", "snapshot", "to_entity_fields"]
