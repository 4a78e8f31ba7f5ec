import io
import logging
import re
from datetime import datetime

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from runnerfleet.logs import LoggingTransport, new_logger

URL = "https://api.example.com/repos/owner/repo/actions/runners"


def _response(headers=None, body=b"", status=200):
    response = requests.Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = io.BytesIO(body)
    response.url = URL
    return response


class _StubAdapter(BaseAdapter):
    def __init__(self, response=None, error=None):
        super().__init__()
        self.response = response
        self.error = error
        self.calls = []

    def send(self, request, **kwargs):
        self.calls.append((request, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        pass


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=1)
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _make_logger(level):
    logger = logging.Logger("test-transport")
    logger.setLevel(level)
    handler = _ListHandler()
    logger.addHandler(handler)
    return logger, handler


def _request():
    return requests.Request("GET", URL).prepare()


@pytest.mark.parametrize(
    "name, expected",
    [("info", logging.INFO), ("warn", logging.WARNING), ("error", logging.ERROR)],
)
def test_named_levels(name, expected):
    assert new_logger(name).getEffectiveLevel() == expected


def test_debug_enables_first_verbosity_only():
    logger = new_logger("debug")
    assert logger.isEnabledFor(logging.INFO - 1)
    assert not logger.isEnabledFor(logging.INFO - 2)


def test_numeric_level_enables_matching_verbosity():
    logger = new_logger("-2")
    assert logger.isEnabledFor(logging.INFO - 2)
    assert not logger.isEnabledFor(logging.INFO - 3)


def test_numeric_level_matches_named_level():
    warn_level = new_logger("warn").level
    assert new_logger("1").level == warn_level
    debug_level = new_logger("debug").level
    assert new_logger("-1").level == debug_level


@pytest.mark.parametrize("value", ["verbose", "128", "-129", "", "1.5"])
def test_invalid_level_raises(value):
    with pytest.raises(ValueError):
        new_logger(value)


def test_repeated_configuration_keeps_one_handler():
    new_logger("info")
    logger = new_logger("info")
    assert len(logger.handlers) == 1


def test_timestamps_are_rfc3339():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)
    formatter = new_logger("info").handlers[0].formatter
    stamp = formatter.formatTime(record)

    match = re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d[+-]\d\d:\d\d", stamp)
    assert match is not None, stamp

    parsed = datetime.fromisoformat(stamp)
    assert parsed.utcoffset() is not None
    assert int(parsed.timestamp()) == int(record.created)


def test_logs_rate_limit_for_fresh_response():
    logger, handler = _make_logger(logging.INFO - 3)
    stub = _StubAdapter(_response({"X-RateLimit-Remaining": "42"}))
    result = LoggingTransport(stub, logger).send(_request())

    assert result is stub.response
    assert len(handler.records) == 1
    fields = handler.records[0].fields
    assert fields["from_cache"] is False
    assert fields["method"] == "GET"
    assert fields["url"] == URL
    assert fields["ratelimit_remaining"] == "42"


def test_cached_response_omits_rate_limit():
    logger, handler = _make_logger(logging.INFO - 3)
    stub = _StubAdapter(_response({"X-From-Cache": "1", "X-RateLimit-Remaining": "42"}))
    result = LoggingTransport(stub, logger).send(_request())

    assert result.headers["X-From-Cache"] == "1"
    fields = handler.records[0].fields
    assert fields["from_cache"] is True
    assert "ratelimit_remaining" not in fields


def test_without_logger_response_is_passed_through():
    response = _response()
    stub = _StubAdapter(response)
    assert LoggingTransport(stub).send(_request()) is response


def test_high_verbosity_logs_body_and_keeps_it_readable():
    logger, handler = _make_logger(1)
    stub = _StubAdapter(_response({"X-RateLimit-Remaining": "7"}, body=b"hello"))
    response = LoggingTransport(stub, logger).send(_request())

    messages = [record.getMessage() for record in handler.records]
    assert messages == ["Logging HTTP round-trip", "Seen HTTP response"]
    assert handler.records[0].fields["responseBody"] == "hello"
    assert handler.records[0].fields["statusCode"] == 200
    assert response.content == b"hello"


def test_disabled_logger_records_nothing():
    logger, handler = _make_logger(logging.INFO)
    stub = _StubAdapter(_response(status=204))
    result = LoggingTransport(stub, logger).send(_request())
    assert result.status_code == 204
    assert handler.records == []


def test_errors_propagate_without_logging():
    logger, handler = _make_logger(1)
    stub = _StubAdapter(error=requests.ConnectionError("refused"))
    with pytest.raises(requests.ConnectionError):
        LoggingTransport(stub, logger).send(_request())
    assert handler.records == []


def test_keyword_arguments_are_forwarded():
    stub = _StubAdapter(_response())
    LoggingTransport(stub).send(_request(), timeout=5)
    assert stub.calls[0][1] == {"timeout": 5}