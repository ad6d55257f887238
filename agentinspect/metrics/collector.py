"""Scraping of Beat stats and OTel Prometheus endpoints."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, NamedTuple

import requests

from .prometheus import OTelSnapshot, parse_prometheus_text


@dataclass
class Snapshot:
    """Normalized Beat metrics view."""

    events_in_per_sec: float = 0.0
    events_out_per_sec: float = 0.0
    error_count: float = 0.0
    drop_count: float = 0.0


class _Counters(NamedTuple):
    events_in: float = 0.0
    events_out: float = 0.0
    errors: float = 0.0
    drops: float = 0.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _lookup_number(payload: Any, *keys: str) -> float:
    current = payload
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return 0.0
        current = current[key]
    return float(current) if _is_number(current) else 0.0


def _sum_nested_event_value(payload: dict[str, Any], section: str, name: str) -> float:
    root = payload.get(section)
    if not isinstance(root, dict):
        return 0.0
    total = 0.0
    for entry in root.values():
        events = entry.get("events") if isinstance(entry, dict) else None
        if isinstance(events, dict) and _is_number(events.get(name)):
            total += float(events[name])
    return total


def _read_counters(payload: dict[str, Any]) -> _Counters:
    events_in = _lookup_number(payload, "libbeat", "pipeline", "events", "published")
    if events_in == 0:
        events_in = _lookup_number(payload, "libbeat", "pipeline", "events", "total")
    drops = _sum_nested_event_value(payload, "output", "dropped")
    if drops == 0:
        drops = _lookup_number(payload, "libbeat", "output", "events", "dropped")
    return _Counters(
        events_in=events_in,
        events_out=_lookup_number(payload, "libbeat", "output", "events", "acked"),
        errors=_lookup_number(payload, "libbeat", "output", "events", "failed"),
        drops=drops,
    )


def _positive_rate(current: float, previous: float, seconds: float) -> float:
    delta = current - previous
    if delta <= 0 or seconds <= 0:
        return 0.0
    return delta / seconds


class Collector:
    """Scrapes agent metrics endpoints and keeps the previous sample per endpoint."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 5.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._now = now if now is not None else _utc_now
        self._previous: dict[str, tuple[datetime, _Counters]] = {}
        self._lock = threading.Lock()

    def _fetch(self, url: str, what: str) -> requests.Response:
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ConnectionError(f"request {what}: {exc}") from exc
        if response.status_code != 200:
            response.close()
            raise RuntimeError(
                f"{what} endpoint returned {response.status_code} {response.reason or ''}".rstrip()
            )
        return response

    def _rates(self, endpoint: str, current: _Counters, now: datetime) -> _Counters:
        with self._lock:
            previous = self._previous.get(endpoint)
            self._previous[endpoint] = (now, current)
        if previous is None:
            return _Counters()
        taken_at, counters = previous
        seconds = (now - taken_at).total_seconds()
        if seconds <= 0:
            return _Counters()
        return _Counters(
            events_in=_positive_rate(current.events_in, counters.events_in, seconds),
            events_out=_positive_rate(current.events_out, counters.events_out, seconds),
        )

    def collect_beat_stats(self, endpoint: str) -> Snapshot:
        """Read a Beat /stats payload; rates are zero on the first sample."""
        url = endpoint.strip()
        if not url:
            raise ValueError("beat stats endpoint is required")
        with self._fetch(url, "beat stats") as response:
            try:
                payload = response.json()
            except ValueError as exc:
                raise ValueError(f"decode beat stats response: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValueError("decode beat stats response: expected a JSON object")

        counters = _read_counters(payload)
        rates = self._rates(url, counters, self._now())
        return Snapshot(
            events_in_per_sec=rates.events_in,
            events_out_per_sec=rates.events_out,
            error_count=counters.errors,
            drop_count=counters.drops,
        )

    def collect_otel_prometheus(self, endpoint: str) -> OTelSnapshot:
        """Scrape and parse an OTel collector Prometheus endpoint."""
        url = endpoint.strip()
        if not url:
            raise ValueError("prometheus endpoint is required")
        with self._fetch(url, "prometheus") as response:
            text = response.text
        return parse_prometheus_text(text)