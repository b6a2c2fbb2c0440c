import asyncio

import pytest

from bankai.errors import ProviderError
from bankai.services.retry import is_quota_error, is_transient_error, retry_operation

from conftest import rate_limited


def _flaky(failures, result="ok"):
    attempts = []

    async def operation():
        attempts.append(1)
        if len(attempts) <= len(failures):
            raise failures[len(attempts) - 1]
        return result

    return operation, attempts


def test_two_rate_limits_then_success_waits_with_doubling(sleep):
    operation, attempts = _flaky([rate_limited(), RuntimeError("HTTP 429 Too Many Requests")])
    result = asyncio.run(retry_operation(operation, retries=2, initial_delay=1.0, sleep=sleep))
    assert result == "ok"
    assert len(attempts) == 3
    assert sleep.waits == [1.0, 2.0]


def test_budget_exhausted_propagates_last_error(sleep):
    error = ProviderError("overloaded", status_code=503)
    operation, attempts = _flaky([error, error, error])
    with pytest.raises(ProviderError) as exc:
        asyncio.run(retry_operation(operation, retries=2, initial_delay=1.0, sleep=sleep))
    assert exc.value is error
    assert len(attempts) == 3


def test_non_transient_error_is_not_retried(sleep):
    operation, attempts = _flaky([ValueError("bad request")])
    with pytest.raises(ValueError):
        asyncio.run(retry_operation(operation, sleep=sleep))
    assert len(attempts) == 1
    assert sleep.waits == []


def test_error_classification():
    assert is_transient_error(ProviderError("x", status_code=503))
    assert is_transient_error(RuntimeError("503 Service Unavailable"))
    assert not is_transient_error(ProviderError("x", status_code=400))
    assert is_quota_error(rate_limited())
    assert not is_quota_error(ProviderError("x", status_code=503))
