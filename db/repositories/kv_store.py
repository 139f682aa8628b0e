"""
Key-value store backends for JSON-serializable documents.

Both backends speak the same small protocol: ``get`` returns ``None`` for a
missing key, ``set`` replaces the whole value, ``delete`` is idempotent.
Backend failures are raised as :class:`KeyValueStoreError`; deciding whether
a failure is fatal belongs to the caller.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.kv_entry import KeyValueEntry
from db.repositories.errors import KeyValueEncodingError, KeyValueStoreError


class KeyValueStore(Protocol):
    """
    String-keyed store for JSON-serializable values.
    """

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise KeyValueEncodingError(f"Value for key '{key}' is not JSON-serializable.") from exc


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise KeyValueEncodingError(f"Stored value for key '{key}' is not valid JSON.") from exc


class InMemoryKeyValueStore:
    """
    Process-local store. Values are kept as JSON text so callers never share
    mutable references with the store.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._entries.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        encoded = _encode(key, value)
        with self._lock:
            self._entries[key] = encoded

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class SQLAlchemyKeyValueStore:
    """
    Store entries in the ``herd_kv_entries`` table, one short-lived session per call.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Any | None:
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                raw = entry.value_json if entry is not None else None
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Failed to read key '{key}'.") from exc
        if raw is None:
            return None
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        encoded = _encode(key, value)
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value_json=encoded))
                else:
                    entry.value_json = encoded
                session.commit()
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Failed to write key '{key}'.") from exc

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is not None:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Failed to delete key '{key}'.") from exc
