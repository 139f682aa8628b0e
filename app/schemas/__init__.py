"""
app/schemas package marker.
"""

from app.schemas.herd_reports import AlertRow, GroupForecast, TargetsUpdate
from app.schemas.herd_state import (
    AnimalResult,
    GroupAggregate,
    HerdConfig,
    HerdMeta,
    HerdState,
    SiteConfig,
    Targets,
)

__all__ = [
    "AlertRow",
    "AnimalResult",
    "GroupAggregate",
    "GroupForecast",
    "HerdConfig",
    "HerdMeta",
    "HerdState",
    "SiteConfig",
    "Targets",
    "TargetsUpdate",
]
