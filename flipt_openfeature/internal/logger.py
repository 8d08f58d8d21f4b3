"""
Logging utilities for internal use.
Usage:
    from flipt_openfeature.internal.logger import get_logger
    log = get_logger(__name__)

    log.debug("flipt: evaluating flag %s", flag_key)

Records are rate limited per logger name, level, filename and line number.
By default one record per minute goes through; ``FLIPT_LOGGING_RATE`` changes
the period in seconds and ``FLIPT_LOGGING_RATE=0`` disables rate limiting. The
number of records skipped since the last emitted one is appended to the output.
"""

import collections
import logging
import os
import threading
import time
from typing import Counter
from typing import Dict
from typing import Tuple


SECOND = 1
MINUTE = 60 * SECOND

_Key = Tuple[str, int, str, int]


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve or create a ``Logger`` instance with consistent behavior for internal use.

    Configure all loggers with a rate limiter filter to prevent excessive logging.

    """
    logger = logging.getLogger(name)
    # addFilter will only add the filter if it is not already present
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


class RateLimiter:
    """Lets one record per log call site through every ``rate`` seconds."""

    def __init__(self, rate: float) -> None:
        self.rate = rate
        self._last_emitted: Dict[_Key, float] = {}
        self._skipped: Counter[_Key] = collections.Counter()
        self._lock = threading.Lock()

    def __repr__(self):
        return f"RateLimiter(rate={self.rate})"

    def allow(self, record: logging.LogRecord) -> bool:
        """
        Return whether ``record`` may be emitted, storing the number of records
        skipped before it on ``record.skipped``.
        """
        key = (record.name, record.levelno, record.pathname, record.lineno)
        now = time.monotonic()
        with self._lock:
            last = self._last_emitted.get(key)
            if last is not None and now - last < self.rate:
                self._skipped[key] += 1
                return False
            self._last_emitted[key] = now
            record.skipped = self._skipped.pop(key, 0)
        return True


rate_limiter = RateLimiter(int(os.getenv("FLIPT_LOGGING_RATE", default=MINUTE)))


def log_filter(record: logging.LogRecord) -> bool:
    """
    Function used to determine if a log record should be outputted or not (True = output, False = skip).

    Nothing is filtered when rate limiting is disabled or when the logger is
    set to debug.
    """
    if not rate_limiter.rate or logging.getLogger(record.name).getEffectiveLevel() == logging.DEBUG:
        return True
    return rate_limiter.allow(record)


class FliptFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = f"{record.levelname} {super().format(record)}"
        skipped = getattr(record, "skipped", 0)
        if skipped:
            message += f" [{skipped} skipped]"
        return message


# setup the default formatter for all flipt_openfeature loggers
_handler = logging.StreamHandler()
_handler.setFormatter(FliptFormatter())
root_logger = logging.getLogger("flipt_openfeature")
root_logger.addHandler(_handler)
root_logger.propagate = True
