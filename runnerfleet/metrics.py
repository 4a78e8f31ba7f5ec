"""Gauges for GitHub API rate limits and a transport that feeds them."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Any

import requests
from requests.adapters import BaseAdapter, HTTPAdapter

HEADER_RATE_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass
class Gauge:
    """A named value that can go up and down."""

    name: str
    help: str
    value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def set(self, value: float) -> None:
        with self._lock:
            self.value = float(value)


METRIC_RATE_LIMIT = Gauge(
    "github_rate_limit",
    "The maximum number of requests you're permitted to make per hour",
)
METRIC_RATE_LIMIT_REMAINING = Gauge(
    "github_rate_limit_remaining",
    "The number of requests remaining in the current rate limit window",
)


def _parse_int(text: str | None) -> int | None:
    if text is None or not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def parse_response(response: requests.Response) -> None:
    """Update the rate limit gauges from the response headers.

    A missing or malformed header leaves its gauge unchanged.
    """
    limit = _parse_int(response.headers.get(HEADER_RATE_LIMIT))
    if limit is not None:
        METRIC_RATE_LIMIT.set(limit)
    remaining = _parse_int(response.headers.get(HEADER_RATE_LIMIT_REMAINING))
    if remaining is not None:
        METRIC_RATE_LIMIT_REMAINING.set(remaining)


class MetricsTransport(BaseAdapter):
    """Transport adapter that records rate limits of every response."""

    def __init__(self, transport: BaseAdapter | None = None):
        super().__init__()
        self.transport = transport if transport is not None else HTTPAdapter()

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        response = self.transport.send(request, **kwargs)
        if response is not None:
            parse_response(response)
        return response

    def close(self) -> None:
        self.transport.close()