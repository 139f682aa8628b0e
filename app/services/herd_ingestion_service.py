"""
app/services/herd_ingestion_service.py

Service layer for the weigh-in ingestion pipeline.

One run executes, strictly in order:

    1. Split and trim lines, detect the delimiter, resolve columns.
    2. Parse every row into a WeighRecord (growth-rate sample included).
    3. Resolve weather for each distinct (current weigh date, today) range
       through the bounded worker pool, then persist the weather cache.
    4. Derive group mean / estimate rates from the samples.
    5. Project and classify each animal.
    6. Fold animals into ranked group aggregates.

Only an input without a header and at least one data row aborts the run;
row defects, weather failures and store failures degrade locally.
"""

from __future__ import annotations

import csv
import logging
import math
import re
from collections.abc import Sequence
from datetime import date, datetime, timezone

from app.config import (
    GrowthSettings,
    SiteSettings,
    WeatherHTTPSettings,
    get_growth_settings,
    get_site_settings,
    get_weather_http_settings,
)
from app.connectors.open_meteo_connector import OpenMeteoConnector
from app.domain.herd import (
    UNKNOWN,
    DateRange,
    HerdImportOptions,
    ProgressCallback,
    ProgressEvent,
    Site,
    WeighRecord,
)
from app.logging_utils import log_event
from app.mappers.schema_mapper import ColumnMapping, SchemaMapper, detect_delimiter
from app.repositories.herd_state_repository import HerdStateRepository
from app.schemas.herd_state import AnimalResult, HerdConfig, HerdMeta, HerdState, SiteConfig
from app.services.growth_model import GrowthInput, GrowthModel
from app.services.performance_rules import (
    INCOMPLETE_ROW,
    confidence_by_days,
    performance_status,
)
from app.services.weather_enrichment_service import WeatherEnrichmentService
from app.validators.value_parsers import (
    days_between,
    format_celsius,
    format_date,
    format_kg,
    parse_date,
    parse_number,
    utc_today,
)
from risk.aggregator import GroupAggregator

logger = logging.getLogger(__name__)

PARSE_PROGRESS_EVERY = 200
PARSING_MESSAGE = "Reading weigh-in rows…"
WEATHER_MESSAGE = "Fetching weather history…"

_LINE_SPLIT_RE = re.compile(r"\r\n|\n|\r")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class HerdIngestionError(ValueError):
    """
    Raised when the CSV text has no header plus at least one data row.
    """


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def compute_growth_rate(
    previous_date: date | None,
    previous_weight: float | None,
    current_date: date | None,
    current_weight: float | None,
) -> float | None:
    """
    Gain per day between two weigh-ins; ``None`` when a field is missing or
    the current date is not after the previous one.
    """

    if previous_weight is None or current_weight is None:
        return None
    elapsed = days_between(previous_date, current_date)
    if elapsed is None or elapsed <= 0:
        return None
    return (current_weight - previous_weight) / elapsed


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _positive_or(value: float | None, default: float) -> float:
    if value is not None and math.isfinite(value) and value > 0:
        return value
    return default


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class HerdIngestionService:
    """
    Coordinates parsing, weather enrichment, projection, classification and
    aggregation, and persists the resulting snapshot.
    """

    def __init__(
        self,
        *,
        repository: HerdStateRepository,
        connector: OpenMeteoConnector | None = None,
        mapper: SchemaMapper | None = None,
        growth_model: GrowthModel | None = None,
        aggregator: GroupAggregator | None = None,
        site_settings: SiteSettings | None = None,
        growth_settings: GrowthSettings | None = None,
        weather_settings: WeatherHTTPSettings | None = None,
    ) -> None:
        self._repository = repository
        self._weather_settings = weather_settings or get_weather_http_settings()
        self._connector = connector or OpenMeteoConnector(http_settings=self._weather_settings)
        self._mapper = mapper or SchemaMapper()
        self._growth_model = growth_model or GrowthModel()
        self._aggregator = aggregator or GroupAggregator()
        self._site_settings = site_settings or get_site_settings()
        self._growth_settings = growth_settings or get_growth_settings()

    def import_csv_text(self, csv_text: str, options: HerdImportOptions | None = None) -> HerdState:
        """
        Run the pipeline and replace the stored snapshot with its result.

        Nothing is stored when the run raises :class:`HerdIngestionError`.
        """

        state = self.process_csv_text(csv_text, options)
        if not self._repository.save_state(state):
            logger.warning("Herd state could not be persisted; returning it unsaved.")
        return state

    def process_csv_text(self, csv_text: str, options: HerdImportOptions | None = None) -> HerdState:
        """
        Run the pipeline without persisting the snapshot (the weather cache is
        still saved).
        """

        options = options or HerdImportOptions()
        site = options.site or Site(
            latitude=self._site_settings.latitude,
            longitude=self._site_settings.longitude,
        )
        fallback_rate = _positive_or(options.fallback_growth_rate, self._growth_settings.fallback_growth_rate)
        timeout_seconds = _positive_or(options.timeout_seconds, self._weather_settings.timeout_seconds)
        concurrency = options.concurrency or self._weather_settings.concurrency
        today = options.today or utc_today()
        notify = _ProgressNotifier(options.on_progress)

        lines = [line.strip() for line in _LINE_SPLIT_RE.split(csv_text or "")]
        lines = [line for line in lines if line]
        if len(lines) < 2:
            raise HerdIngestionError("CSV is empty or has no data rows.")

        delimiter = detect_delimiter(lines[0])
        rows = csv.reader(lines, delimiter=delimiter, quoting=csv.QUOTE_NONE)
        mapping = self._mapper.resolve_mapping(next(rows))
        total_rows = len(lines) - 1

        log_event(
            logger,
            logging.INFO,
            "herd_import_started",
            rows=total_rows,
            delimiter=delimiter,
            today=today.isoformat(),
            strategies=mapping.match_strategies,
        )

        notify("parsing", PARSING_MESSAGE, 0, total_rows)
        records: list[WeighRecord] = []
        for index, cells in enumerate(rows, start=1):
            records.append(self._parse_record(cells, mapping, row_number=index + 1))
            if index % PARSE_PROGRESS_EVERY == 0:
                notify("parsing", PARSING_MESSAGE, index, total_rows)

        weather = WeatherEnrichmentService(
            connector=self._connector,
            cache=self._repository.load_weather_cache(),
            concurrency=concurrency,
            timeout_seconds=timeout_seconds,
        )
        ranges = [
            DateRange(start=record.current_date, end=today)
            for record in records
            if record.current_date is not None
        ]
        distinct_ranges = len({date_range.key for date_range in ranges})
        notify("weather", WEATHER_MESSAGE, 0, distinct_ranges)
        weather.resolve_all(
            site,
            ranges,
            on_progress=lambda done, total: notify("weather", WEATHER_MESSAGE, done, total),
        )
        self._repository.save_weather_cache(weather.snapshot())

        samples_by_group: dict[str, list[float]] = {}
        for record in records:
            bucket = samples_by_group.setdefault(record.group, [])
            if record.growth_rate is not None:
                bucket.append(record.growth_rate)
        group_mean_rates = {group: _mean(samples) for group, samples in samples_by_group.items()}
        group_estimate_rates = {
            group: mean if mean is not None else fallback_rate
            for group, mean in group_mean_rates.items()
        }

        animals: list[AnimalResult] = []
        processed_ok = 0
        processed_fail = 0
        for record in records:
            if not record.is_viable:
                processed_fail += 1
                animals.append(self._incomplete_result(record))
                continue
            processed_ok += 1
            reading = weather.resolve(site, DateRange(start=record.current_date, end=today))
            days_since = days_between(record.current_date, today)
            confidence = confidence_by_days(days_since)
            projection = self._growth_model.project(
                GrowthInput(
                    current_weight=record.current_weight,
                    days_elapsed=days_since,
                    growth_rate_sample=record.growth_rate,
                    group_average_rate=group_estimate_rates.get(record.group),
                    fallback_rate=fallback_rate,
                    sex=record.sex,
                    climate_factor=reading.climate_factor,
                )
            )
            status = performance_status(record.growth_rate, group_mean_rates.get(record.group))
            animals.append(
                AnimalResult(
                    animal_id=record.animal_id,
                    group=record.group,
                    sex=record.sex,
                    current_weight=record.current_weight,
                    current_weight_display=format_kg(record.current_weight),
                    current_date=record.current_date,
                    current_date_display=format_date(record.current_date),
                    mean_temperature=reading.mean_temperature,
                    temperature_display=format_celsius(reading.mean_temperature),
                    climate_factor=reading.climate_factor,
                    growth_rate=record.growth_rate,
                    final_growth_rate=projection.final_rate,
                    projected_weight=projection.projected_weight,
                    projected_weight_display=format_kg(projection.projected_weight),
                    confidence=confidence.label,
                    confidence_class=confidence.css_class,
                    status=status.label,
                    status_class=status.css_class,
                    sort_rank=status.sort_rank,
                    bucket=status.bucket,
                )
            )

        animals.sort(key=lambda animal: (animal.sort_rank, animal.group, animal.animal_id))
        groups = self._aggregator.aggregate(animals)

        state = HerdState(
            generated_at=datetime.now(timezone.utc),
            config=HerdConfig(
                site=SiteConfig(latitude=site.latitude, longitude=site.longitude),
                fallback_growth_rate=fallback_rate,
            ),
            meta=HerdMeta(
                delimiter=delimiter,
                lines=total_rows,
                processed_ok=processed_ok,
                processed_fail=processed_fail,
            ),
            today=today,
            animals=animals,
            groups=groups,
            group_mean_rates=group_mean_rates,
            group_estimate_rates=group_estimate_rates,
        )
        log_event(
            logger,
            logging.INFO,
            "herd_import_finished",
            rows=total_rows,
            processed_ok=processed_ok,
            processed_fail=processed_fail,
            groups=len(groups),
            weather_ranges=distinct_ranges,
        )
        return state

    @staticmethod
    def _parse_record(cells: Sequence[str], mapping: ColumnMapping, *, row_number: int) -> WeighRecord:
        raw = mapping.read_row(cells)
        previous_date = parse_date(raw["previous_date"])
        previous_weight = parse_number(raw["previous_weight"])
        current_date = parse_date(raw["current_date"])
        current_weight = parse_number(raw["current_weight"])
        return WeighRecord(
            row_number=row_number,
            animal_id=raw["animal_id"] or UNKNOWN,
            sex=raw["sex"].upper() or UNKNOWN,
            group=raw["group"] or UNKNOWN,
            previous_date=previous_date,
            previous_weight=previous_weight,
            current_date=current_date,
            current_weight=current_weight,
            growth_rate=compute_growth_rate(previous_date, previous_weight, current_date, current_weight),
        )

    @staticmethod
    def _incomplete_result(record: WeighRecord) -> AnimalResult:
        logger.debug("Row %d has no usable current weigh-in; kept unranked.", record.row_number)
        return AnimalResult(
            animal_id=record.animal_id,
            group=record.group,
            sex=record.sex,
            growth_rate=record.growth_rate,
            status=INCOMPLETE_ROW.label,
            status_class=INCOMPLETE_ROW.css_class,
            sort_rank=INCOMPLETE_ROW.sort_rank,
            bucket="none",
        )


class _ProgressNotifier:
    """
    Wraps the optional caller callback; progress is observational only.
    """

    def __init__(self, callback: ProgressCallback | None) -> None:
        self._callback = callback

    def __call__(self, phase: str, message: str, done: int, total: int) -> None:
        if self._callback is None:
            return
        self._callback(ProgressEvent(phase=phase, message=message, done=done, total=total))
