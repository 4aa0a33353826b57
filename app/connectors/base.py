"""
app/connectors/base.py

Shared HTTP mechanics for backend connectors: rate limiting, retries with
exponential backoff, and unwrapping of the backend's response envelope.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping

import requests

from app.config import ExternalHTTPSettings
from stats.records import SourceResult

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ConnectorRequestError(RuntimeError):
    """
    Raised when a backend request cannot be completed after retries.
    """


def unwrap_envelope(payload: Any) -> SourceResult[Any]:
    """
    Convert a ``{success, data, message}`` envelope into a :class:`SourceResult`.

    Payloads without a ``success`` key are taken as bare data.  An envelope
    with ``success: true`` but no ``data`` yields the envelope itself, since
    some endpoints put their counters at the top level.
    """

    if not isinstance(payload, Mapping) or "success" not in payload:
        return SourceResult.success(payload)
    if payload.get("success") is False:
        message = payload.get("message")
        return SourceResult.failure(str(message) if message else "backend reported failure")
    if "data" in payload:
        return SourceResult.success(payload["data"])
    return SourceResult.success(payload)


class BaseConnector:
    """
    HTTP client base with per-instance rate limiting and retry policy.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0
        self._rate_lock = threading.Lock()

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute an HTTP request and return parsed JSON.
        """

        response = self._request(method=method, url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response from {url} was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with rate limiting and exponential backoff.

        Timeouts, connection errors and :data:`RETRYABLE_STATUS_CODES` are
        retried; any other HTTP error fails immediately.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    timeout=self._timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Backend request failed source=%s status=%s url=%s error=%s",
                        self.source,
                        status_code,
                        url,
                        exc,
                    )
                    raise ConnectorRequestError(
                        f"{self.source}: HTTP {status_code} from {url}."
                    ) from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._max_retries:
                break
            self._sleep_before_retry(attempt, url)

        logger.error(
            "Backend request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        raise ConnectorRequestError(f"{self.source}: request to {url} failed after retries.") from last_error

    def _sleep_before_retry(self, attempt: int, url: str) -> None:
        backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
        logger.warning(
            "Backend request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
            self.source,
            attempt + 1,
            self._max_retries,
            backoff_seconds,
            url,
        )
        time.sleep(backoff_seconds)

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests across threads.
        """

        if self._min_request_interval_seconds <= 0:
            return

        with self._rate_lock:
            elapsed = time.monotonic() - self._last_request_monotonic
            remaining = self._min_request_interval_seconds - elapsed
            if remaining > 0:
                time.sleep(remaining)
            self._last_request_monotonic = time.monotonic()
