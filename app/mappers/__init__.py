"""
app/mappers package marker.
"""

from app.mappers.schema_mapper import (
    ColumnMapping,
    SchemaMapper,
    detect_delimiter,
)

__all__ = [
    "ColumnMapping",
    "SchemaMapper",
    "detect_delimiter",
]
