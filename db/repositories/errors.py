"""
Repository-layer exceptions for the key-value store.
"""

from __future__ import annotations


class KeyValueStoreError(RuntimeError):
    """Raised when a store backend cannot read, write, or delete an entry."""


class KeyValueEncodingError(KeyValueStoreError):
    """Raised when a value cannot be encoded to, or decoded from, JSON."""
