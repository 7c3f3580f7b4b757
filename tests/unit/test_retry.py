"""Tests for rate-limit aware retry."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from utils.retry import (
    CallOutcome,
    ErrorKind,
    NetworkError,
    RateLimitedExecutor,
    RateLimitExceeded,
    RemoteTimeoutError,
    backoff_delay,
    classify_error,
    retry_delay,
)


def _http_status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/v1")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


@pytest.mark.unit
class TestClassifyError:
    """Tests for error classification."""

    def test_rate_limit_exception(self):
        assert classify_error(RateLimitExceeded("slow down")) == ErrorKind.RATE_LIMITED

    def test_http_429_is_rate_limited(self):
        assert classify_error(_http_status_error(429)) == ErrorKind.RATE_LIMITED

    def test_http_500_is_transport(self):
        assert classify_error(_http_status_error(500)) == ErrorKind.TRANSPORT

    def test_timeouts(self):
        assert classify_error(asyncio.TimeoutError()) == ErrorKind.TIMEOUT
        assert classify_error(RemoteTimeoutError("slow")) == ErrorKind.TIMEOUT

    def test_network_error(self):
        assert classify_error(NetworkError("reset")) == ErrorKind.TRANSPORT

    def test_other(self):
        assert classify_error(ValueError("bad")) == ErrorKind.OTHER


@pytest.mark.unit
class TestBackoff:
    """Tests for backoff delay computation."""

    def test_exponential_growth(self):
        assert backoff_delay(0) == 1.0
        assert backoff_delay(1) == 2.0
        assert backoff_delay(2) == 4.0

    def test_capped_at_max_delay(self):
        assert backoff_delay(10, base_delay=1.0, max_delay=10.0) == 10.0

    def test_no_retry_for_non_rate_limit(self):
        outcome = CallOutcome.failure(ValueError("bad"), attempts=1)
        assert retry_delay(outcome, max_retries=3) is None

    def test_no_retry_after_last_attempt(self):
        outcome = CallOutcome.failure(RateLimitExceeded("429"), attempts=3)
        assert retry_delay(outcome, max_retries=3) is None

    def test_retry_delay_for_rate_limit(self):
        outcome = CallOutcome.failure(RateLimitExceeded("429"), attempts=2)
        assert retry_delay(outcome, max_retries=3, base_delay=1.0) == 2.0


@pytest.mark.unit
class TestRateLimitedExecutor:
    """Tests for RateLimitedExecutor."""

    def test_rejects_zero_retries(self):
        with pytest.raises(ValueError):
            RateLimitedExecutor(max_retries=0)

    @pytest.mark.asyncio
    async def test_success_first_try(self, no_sleep):
        executor = RateLimitedExecutor(sleep=no_sleep)
        operation = AsyncMock(return_value="ok")

        outcome = await executor.execute(operation)

        assert outcome.ok
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        no_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_retries_rate_limit_then_succeeds(self, no_sleep):
        executor = RateLimitedExecutor(max_retries=3, base_delay=1.0, sleep=no_sleep)
        operation = AsyncMock(side_effect=[RateLimitExceeded("429"), "ok"])

        result = await executor.execute_with_retry(operation)

        assert result == "ok"
        assert operation.await_count == 2
        no_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, no_sleep):
        """Three rate-limited attempts wait 1s then 2s, with no wait after the last."""
        executor = RateLimitedExecutor(max_retries=3, base_delay=1.0, sleep=no_sleep)
        operation = AsyncMock(side_effect=RateLimitExceeded("429"))

        with pytest.raises(RateLimitExceeded) as exc_info:
            await executor.execute_with_retry(operation)

        assert operation.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, no_sleep):
        executor = RateLimitedExecutor(max_retries=3, sleep=no_sleep)
        operation = AsyncMock(side_effect=NetworkError("connection reset"))

        outcome = await executor.execute(operation)

        assert not outcome.ok
        assert outcome.kind == ErrorKind.TRANSPORT
        assert operation.await_count == 1
        no_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_429_is_retried(self, no_sleep):
        executor = RateLimitedExecutor(max_retries=2, sleep=no_sleep)
        operation = AsyncMock(side_effect=[_http_status_error(429), {"data": 1}])

        assert await executor.execute_with_retry(operation) == {"data": 1}
        assert operation.await_count == 2
