"""
app/api/dependencies.py

Shared FastAPI dependencies: upload validation and service wiring.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, File, HTTPException, UploadFile, status

from app.config import get_weather_http_settings
from app.connectors.open_meteo_connector import OpenMeteoConnector
from app.repositories.herd_state_repository import HerdStateRepository
from app.services.herd_ingestion_service import HerdIngestionService
from db.repositories.kv_store import KeyValueStore, SQLAlchemyKeyValueStore
from db.session import SessionLocal

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def get_kv_store() -> KeyValueStore:
    return SQLAlchemyKeyValueStore(SessionLocal)


def get_herd_state_repository(store: KeyValueStore = Depends(get_kv_store)) -> HerdStateRepository:
    return HerdStateRepository(store)


@lru_cache(maxsize=1)
def get_weather_connector() -> OpenMeteoConnector:
    """One connector per process so requests share its HTTP connection pool."""
    return OpenMeteoConnector(http_settings=get_weather_http_settings())


def get_herd_ingestion_service(
    repository: HerdStateRepository = Depends(get_herd_state_repository),
    connector: OpenMeteoConnector = Depends(get_weather_connector),
) -> HerdIngestionService:
    return HerdIngestionService(repository=repository, connector=connector)
