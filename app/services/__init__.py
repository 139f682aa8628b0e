"""
app/services package marker.
"""

from app.services.growth_model import GrowthInput, GrowthModel, GrowthProjection, projected_weight
from app.services.herd_ingestion_service import HerdIngestionError, HerdIngestionService
from app.services.weather_enrichment_service import WeatherEnrichmentService, climate_factor

__all__ = [
    "GrowthInput",
    "GrowthModel",
    "GrowthProjection",
    "projected_weight",
    "HerdIngestionError",
    "HerdIngestionService",
    "WeatherEnrichmentService",
    "climate_factor",
]
