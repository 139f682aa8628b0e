"""
app/api/routers/herd.py

Herd import, snapshot, alert, forecast and target endpoints.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, UploadFile, status

from app.api.dependencies import get_csv_upload, get_herd_ingestion_service, get_herd_state_repository
from app.domain.herd import HerdImportOptions
from app.repositories.herd_state_repository import HerdStateRepository
from app.schemas.herd_reports import AlertRow, GroupForecast, TargetsUpdate
from app.schemas.herd_state import HerdState, Targets
from app.services.herd_ingestion_service import HerdIngestionError, HerdIngestionService
from forecast.orchestrator import ForecastOrchestrator
from risk.alerts import build_alerts

router = APIRouter(prefix="/herd", tags=["herd"])


def _require_state(repository: HerdStateRepository) -> HerdState:
    state = repository.load_state()
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No herd data imported yet.",
        )
    return state


@router.post("/import", response_model=HerdState)
def import_weigh_ins(
    file: UploadFile = Depends(get_csv_upload),
    today: date | None = Query(default=None, description="Reference date; defaults to today (UTC)"),
    ingestion_service: HerdIngestionService = Depends(get_herd_ingestion_service),
) -> HerdState:
    """
    Import a weigh-in CSV and replace the stored snapshot.
    """

    try:
        csv_text = file.file.read().decode("utf-8-sig")
        return ingestion_service.import_csv_text(csv_text, HerdImportOptions(today=today))
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV must be UTF-8 encoded.",
        ) from exc
    except HerdIngestionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()


@router.get("/state", response_model=HerdState)
def get_state(repository: HerdStateRepository = Depends(get_herd_state_repository)) -> HerdState:
    return _require_state(repository)


@router.delete("/state", status_code=status.HTTP_204_NO_CONTENT)
def clear_state(repository: HerdStateRepository = Depends(get_herd_state_repository)) -> Response:
    repository.clear_state()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/alerts", response_model=list[AlertRow])
def get_alerts(repository: HerdStateRepository = Depends(get_herd_state_repository)) -> list[AlertRow]:
    return build_alerts(_require_state(repository).groups)


@router.get("/forecast", response_model=list[GroupForecast])
def get_forecast(
    male_kg: float | None = Query(default=None, gt=0),
    female_kg: float | None = Query(default=None, gt=0),
    repository: HerdStateRepository = Depends(get_herd_state_repository),
) -> list[GroupForecast]:
    """
    Readiness forecast; query targets override the stored ones for this call only.
    """

    state = _require_state(repository)
    targets = Targets(
        male_kg=male_kg if male_kg is not None else state.targets.male_kg,
        female_kg=female_kg if female_kg is not None else state.targets.female_kg,
    )
    return ForecastOrchestrator().compute_forecast(state, targets)


@router.get("/targets", response_model=Targets)
def get_targets(repository: HerdStateRepository = Depends(get_herd_state_repository)) -> Targets:
    return repository.get_targets()


@router.put("/targets", response_model=Targets)
def put_targets(
    payload: TargetsUpdate,
    repository: HerdStateRepository = Depends(get_herd_state_repository),
) -> Targets:
    return repository.set_targets(payload.male_kg, payload.female_kg)


@router.delete("/weather-cache", status_code=status.HTTP_204_NO_CONTENT)
def clear_weather_cache(repository: HerdStateRepository = Depends(get_herd_state_repository)) -> Response:
    repository.clear_weather_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
