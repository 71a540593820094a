from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Any

import requests

from metrics_grid.io.read import ReportPayload, parse_payload

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ReportFetchError(RuntimeError):
    pass


class FetchCancelled(ReportFetchError):
    pass


class CancelToken:
    """Scoped cancellation for a fetch; callers cancel on teardown."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise FetchCancelled("report fetch cancelled")


def report_endpoint(base_url: str, report_type: str, brand_id: str) -> str:
    return f"{base_url.rstrip('/')}/api/analytics/{report_type}Report/{brand_id}"


def _iso(value: date | str) -> str:
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return value


def fetch_report(
    base_url: str,
    report_type: str,
    brand_id: str,
    start_date: date | str,
    end_date: date | str,
    *,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    headers: dict[str, str] | None = None,
    cancel: CancelToken | None = None,
) -> ReportPayload:
    """Fetch one report payload; no retries, failures raise :class:`ReportFetchError`."""
    if cancel is not None:
        cancel.raise_if_cancelled()
    url = report_endpoint(base_url, report_type, brand_id)
    body: dict[str, Any] = {"startDate": _iso(start_date), "endDate": _iso(end_date)}
    http = session or requests.Session()
    try:
        response = http.post(url, json=body, headers=headers, timeout=timeout)
        response.raise_for_status()
        raw = response.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        LOGGER.error("Error fetching %s report for brand %s: %s", report_type, brand_id, exc)
        raise ReportFetchError(f"Failed to fetch {report_type} report: {exc}") from exc
    finally:
        if session is None:
            http.close()

    if cancel is not None:
        cancel.raise_if_cancelled()
    payload = parse_payload(raw)
    LOGGER.info(
        "Fetched %s report for brand %s: %d rows", report_type, brand_id, len(payload.data)
    )
    return payload
