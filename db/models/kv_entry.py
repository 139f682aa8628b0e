"""
db/models/kv_entry.py

One string-keyed JSON document in the persistent key-value store.
"""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class KeyValueEntry(TimestampMixin, Base):
    __tablename__ = "herd_kv_entries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"KeyValueEntry(key={self.key!r}, size={len(self.value_json or '')})"
