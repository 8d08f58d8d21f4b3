import logging

import mock
import pytest

from flipt_openfeature.internal import logger as flipt_logger
from flipt_openfeature.internal.logger import FliptFormatter
from flipt_openfeature.internal.logger import RateLimiter
from flipt_openfeature.internal.logger import get_logger
from flipt_openfeature.internal.logger import log_filter


@pytest.fixture
def rate_limited(monkeypatch):
    monkeypatch.setattr(flipt_logger, "rate_limiter", RateLimiter(60))
    log = get_logger("flipt_openfeature.test_logger")
    log.setLevel(logging.WARNING)
    yield log
    log.setLevel(logging.NOTSET)


def make_record(name="flipt_openfeature.test_logger", level=logging.WARNING, lineno=10):
    return logging.LogRecord(name, level, "/path/to/file.py", lineno, "message", None, None)


def test_get_logger_adds_filter():
    log = get_logger("flipt_openfeature.some.module")

    assert log_filter in log.filters
    get_logger("flipt_openfeature.some.module")
    assert log.filters.count(log_filter) == 1


def test_no_rate_limit():
    for _ in range(5):
        assert log_filter(make_record()) is True


def test_rate_limit(rate_limited):
    with mock.patch("flipt_openfeature.internal.logger.time.monotonic") as monotonic:
        monotonic.return_value = 1000.0
        first = make_record()
        assert log_filter(first) is True
        assert first.skipped == 0

        assert log_filter(make_record()) is False
        assert log_filter(make_record()) is False

        # Other lines are tracked separately
        assert log_filter(make_record(lineno=11)) is True
        assert log_filter(make_record(level=logging.ERROR)) is True

        monotonic.return_value = 1060.0
        record = make_record()
        assert log_filter(record) is True
        assert record.skipped == 2

        assert log_filter(make_record()) is False


def test_debug_level_is_not_rate_limited(rate_limited):
    rate_limited.setLevel(logging.DEBUG)

    for _ in range(3):
        assert log_filter(make_record(level=logging.DEBUG)) is True


def test_formatter_appends_skipped_count():
    formatter = FliptFormatter()
    record = make_record()

    assert formatter.format(record) == "WARNING message"

    record.skipped = 3
    assert formatter.format(record) == "WARNING message [3 skipped]"
