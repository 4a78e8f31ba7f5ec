"""Logger construction and an HTTP transport that logs round trips."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime
from typing import Any

import requests
from requests.adapters import BaseAdapter, HTTPAdapter

LOG_LEVEL_DEBUG = "debug"
LOG_LEVEL_INFO = "info"
LOG_LEVEL_WARN = "warn"
LOG_LEVEL_ERROR = "error"

LOGGER_NAME = "runnerfleet"

HEADER_RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"
HEADER_FROM_CACHE = "X-From-Cache"

# Named levels on the signed scale where negative numbers are verbosity.
_NAMED_LEVELS = {
    LOG_LEVEL_DEBUG: -1,
    LOG_LEVEL_INFO: 0,
    LOG_LEVEL_WARN: 1,
    LOG_LEVEL_ERROR: 2,
}

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _verbosity(v: int) -> int:
    """Return the logging level used for messages of verbosity ``v``."""
    return logging.INFO - v


def _to_logging_level(level: int) -> int:
    if level <= 0:
        return max(1, logging.INFO + level)
    return logging.INFO + 10 * level


def _parse_level(log_level: str) -> int:
    if log_level in _NAMED_LEVELS:
        return _NAMED_LEVELS[log_level]
    if not _INTEGER.fullmatch(log_level):
        raise ValueError(f"Failed to parse --log-level={log_level}: invalid syntax")
    value = int(log_level)
    if not -128 <= value <= 127:
        raise ValueError(f"Failed to parse --log-level={log_level}: value out of range")
    return value


class _Rfc3339Formatter(logging.Formatter):
    """Formats timestamps as RFC 3339 and appends structured fields."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = getattr(record, "fields", None)
        if fields:
            text += "\t" + json.dumps(fields, default=str)
        return text


def new_logger(log_level: str) -> logging.Logger:
    """Configure and return the package logger for the given level.

    ``log_level`` is one of debug, info, warn, error, or an integer in
    the signed 8-bit range where -n enables messages of verbosity n.
    Raises ValueError for anything else.
    """
    level = _to_logging_level(_parse_level(log_level))

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if log_level == LOG_LEVEL_DEBUG:
        fmt = "%(asctime)s\t%(levelname)s\t%(name)s\t%(pathname)s:%(lineno)d\t%(message)s"
    else:
        fmt = "%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s"
    handler.setFormatter(_Rfc3339Formatter(fmt))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


class LoggingTransport(BaseAdapter):
    """Transport adapter that logs every HTTP response it sees."""

    def __init__(self, transport: BaseAdapter | None = None, log: logging.Logger | None = None):
        super().__init__()
        self.transport = transport if transport is not None else HTTPAdapter()
        self.log = log

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        response = self.transport.send(request, **kwargs)
        if response is not None:
            self._log_round_trip(request, response)
        return response

    def close(self) -> None:
        self.transport.close()

    def _log_round_trip(self, request: requests.PreparedRequest, response: requests.Response) -> None:
        if self.log is None:
            return

        marked = response.headers.get(HEADER_FROM_CACHE) == "1"
        fields: dict[str, Any] = {
            "from_cache": marked,
            "method": request.method,
            "url": request.url,
        }
        if not marked:
            # A cached response carries an outdated rate limit.
            fields["ratelimit_remaining"] = response.headers.get(HEADER_RATE_LIMIT_REMAINING, "")

        if self.log.isEnabledFor(_verbosity(4)):
            try:
                body = response.text
            except (requests.RequestException, OSError) as exc:
                self.log.log(
                    _verbosity(3),
                    "unable to copy http response",
                    extra={"fields": {"error": str(exc)}},
                )
                body = ""
            self.log.log(
                _verbosity(4),
                "Logging HTTP round-trip",
                extra={
                    "fields": {
                        "method": request.method,
                        "requestHeader": dict(request.headers),
                        "statusCode": response.status_code,
                        "responseHeader": dict(response.headers),
                        "responseBody": body,
                    }
                },
            )

        self.log.log(_verbosity(3), "Seen HTTP response", extra={"fields": fields})