"""
Elasticsearch side of the sync: index bootstrap and change application.
"""

from .change_applier import ChangeApplier
from .index_bootstrap import ensure_index

__all__ = ["ChangeApplier", "ensure_index"]
