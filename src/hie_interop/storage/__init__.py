"""Storage module.

This module provides the whole-file JSON store used by every service.
"""

from hie_interop.storage.json_store import JsonStore, StoreData, find_by_id

__all__ = [
    "JsonStore",
    "StoreData",
    "find_by_id",
]
