"""
app/connectors/base.py

Shared HTTP mechanics for external data connectors.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from typing import Any

import requests

from app.config import WeatherHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data (after retries, if any).
    """


class _TransientFailure(Exception):
    """A failed attempt that may succeed if repeated."""


class BaseConnector:
    """
    JSON-over-HTTP base with a per-request timeout, optional retry with
    exponential backoff, and optional client-side rate limiting.

    One instance is shared by every weather worker thread; ``requests``
    sessions tolerate that, and the rate limiter holds its own lock.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: WeatherHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._settings = http_settings
        rate = http_settings.rate_limit_per_second
        self._min_interval_seconds = 1.0 / rate if rate > 0 else 0.0
        self._next_slot_monotonic = 0.0
        self._rate_lock = threading.Lock()

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        response = self._request(method=method, url=url, params=params, timeout_seconds=timeout_seconds)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        timeout_seconds: float | None = None,
    ) -> requests.Response:
        """
        Send the request, repeating transient failures up to ``max_retries`` times.
        """

        timeout = timeout_seconds if timeout_seconds is not None else self._settings.timeout_seconds
        delays = self._backoff_delays()
        attempts = self._settings.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                return self._send_once(method=method, url=url, params=params, timeout=timeout)
            except _TransientFailure as failure:
                if attempt == attempts:
                    logger.warning(
                        "Connector request gave up source=%s attempts=%s url=%s error=%s",
                        self.source,
                        attempts,
                        url,
                        failure.__cause__ or failure,
                    )
                    raise ConnectorRequestError(f"{self.source}: request failed.") from failure.__cause__
                wait_seconds = next(delays)
                logger.warning(
                    "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                    self.source,
                    attempt,
                    self._settings.max_retries,
                    wait_seconds,
                    url,
                )
                time.sleep(wait_seconds)

        raise ConnectorRequestError(f"{self.source}: request failed.")

    def _send_once(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        timeout: float,
    ) -> requests.Response:
        self._apply_rate_limit()
        try:
            response = self._session.request(method=method, url=url, params=params, timeout=timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise _TransientFailure(str(exc)) from exc
        except requests.RequestException as exc:
            raise ConnectorRequestError(f"{self.source}: invalid request.") from exc

        if response.status_code in RETRYABLE_STATUS_CODES:
            error = requests.HTTPError(f"Retryable HTTP status code: {response.status_code}", response=response)
            raise _TransientFailure(str(error)) from error
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.warning(
                "Connector request failed source=%s status=%s url=%s",
                self.source,
                response.status_code,
                url,
            )
            raise ConnectorRequestError(f"{self.source}: non-retryable request failure.") from exc
        return response

    def _backoff_delays(self) -> Iterator[float]:
        delay = self._settings.backoff_initial_seconds
        while True:
            yield delay
            delay *= self._settings.backoff_multiplier

    def _apply_rate_limit(self) -> None:
        """
        Reserve the next send slot, sleeping until it opens.
        """

        if self._min_interval_seconds <= 0:
            return

        with self._rate_lock:
            now = time.monotonic()
            wait_seconds = self._next_slot_monotonic - now
            if wait_seconds > 0:
                time.sleep(wait_seconds)
            self._next_slot_monotonic = max(now, self._next_slot_monotonic) + self._min_interval_seconds
