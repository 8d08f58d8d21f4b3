import pytest

from flipt_openfeature.internal import logger


@pytest.fixture(autouse=True)
def no_log_rate_limit(monkeypatch):
    """Disable log rate limiting so every record reaches caplog."""
    monkeypatch.setattr(logger.rate_limiter, "rate", 0)
    yield
