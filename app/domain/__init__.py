"""
app/domain package marker.
"""

from app.domain.herd import (
    DateRange,
    HerdImportOptions,
    ProgressCallback,
    ProgressEvent,
    Site,
    WeatherReading,
    WeighRecord,
)

__all__ = [
    "DateRange",
    "HerdImportOptions",
    "ProgressCallback",
    "ProgressEvent",
    "Site",
    "WeatherReading",
    "WeighRecord",
]
