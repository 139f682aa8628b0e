"""
Repository layer exports.
"""

from db.repositories.errors import KeyValueEncodingError, KeyValueStoreError
from db.repositories.kv_store import InMemoryKeyValueStore, KeyValueStore, SQLAlchemyKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SQLAlchemyKeyValueStore",
    "KeyValueStoreError",
    "KeyValueEncodingError",
]
