"""
app/connectors/open_meteo_connector.py

Open-Meteo historical archive connector for daily mean temperatures.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any

import requests

from app.config import WeatherHTTPSettings
from app.connectors.base import BaseConnector
from app.domain.herd import Site

logger = logging.getLogger(__name__)

DAILY_MEAN_TEMPERATURE = "temperature_2m_mean"


class OpenMeteoConnector(BaseConnector):
    """
    Fetches the daily mean 2 m temperature series for a site and date range.
    """

    def __init__(
        self,
        *,
        http_settings: WeatherHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="open_meteo", http_settings=http_settings, session=session)
        self._base_url = http_settings.base_url

    def fetch_daily_mean_temperatures(
        self,
        *,
        site: Site,
        start: date,
        end: date,
        timeout_seconds: float | None = None,
    ) -> list[float]:
        """
        Return the numeric daily means for ``start``..``end`` inclusive.

        Missing days (``null`` in the payload) are skipped, so the result may be
        empty. Transport failures and non-2xx responses raise
        :class:`~app.connectors.base.ConnectorRequestError`.
        """

        payload = self._request_json(
            method="GET",
            url=self._base_url,
            params={
                "latitude": site.latitude,
                "longitude": site.longitude,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "daily": DAILY_MEAN_TEMPERATURE,
                "timezone": "auto",
            },
            timeout_seconds=timeout_seconds,
        )
        return self._extract_series(payload)

    @staticmethod
    def _extract_series(payload: Any) -> list[float]:
        daily = payload.get("daily") if isinstance(payload, dict) else None
        if not isinstance(daily, dict):
            logger.warning("Unexpected Open-Meteo payload shape.")
            return []

        raw_values = daily.get(DAILY_MEAN_TEMPERATURE)
        if not isinstance(raw_values, list):
            return []

        values: list[float] = []
        for raw in raw_values:
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                continue
            if math.isfinite(raw):
                values.append(float(raw))
        return values
