"""Rate-limit aware retry for remote API calls.

Only throttling is treated as transient: a call that fails with a
rate-limit signal (HTTP 429 from any of our HTTP clients or from the
Gemini SDK) is retried with exponential backoff, every other failure is
surfaced to the caller on the first attempt.

Retry policy is expressed over typed outcomes rather than exception
classification at the call site:

    executor = RateLimitedExecutor(max_retries=3, base_delay=1.0)

    outcome = await executor.execute(lambda: client.fetch(url))
    if outcome.ok:
        use(outcome.value)

    # or, raising on failure
    value = await executor.execute_with_retry(lambda: client.fetch(url))
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import aiohttp
import httpx
from google.genai import errors as genai_errors

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0

RATE_LIMIT_STATUS = 429


class RateLimitExceeded(Exception):
    """Remote service asked us to back off (HTTP 429 or equivalent)."""

    pass


class NetworkError(Exception):
    """Non rate-limit transport failure. Never retried automatically."""

    pass


class RemoteTimeoutError(NetworkError):
    """Remote call or subprocess exceeded its time budget."""

    pass


class ErrorKind(str, Enum):
    """Classification of a failed remote call."""

    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    OTHER = "other"


@dataclass
class CallOutcome:
    """Result of one executor run: either a value or a classified error."""

    ok: bool
    value: Any = None
    error: Optional[BaseException] = None
    kind: Optional[ErrorKind] = None
    attempts: int = 0

    @classmethod
    def success(cls, value: Any, attempts: int) -> "CallOutcome":
        return cls(ok=True, value=value, attempts=attempts)

    @classmethod
    def failure(cls, error: BaseException, attempts: int) -> "CallOutcome":
        return cls(ok=False, error=error, kind=classify_error(error), attempts=attempts)

    def unwrap(self) -> Any:
        """Return the value or raise the stored error, tagged with attempt count."""
        if self.ok:
            return self.value
        try:
            self.error.attempts = self.attempts  # type: ignore[union-attr]
        except AttributeError:
            pass
        raise self.error  # type: ignore[misc]


def _status_of(error: BaseException) -> Optional[int]:
    """Extract an HTTP status code from the client errors we know about."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status
    if isinstance(error, genai_errors.APIError):
        return error.code
    return None


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception raised by a remote call."""
    if isinstance(error, RateLimitExceeded):
        return ErrorKind.RATE_LIMITED
    if _status_of(error) == RATE_LIMIT_STATUS:
        return ErrorKind.RATE_LIMITED
    if isinstance(error, (asyncio.TimeoutError, RemoteTimeoutError, httpx.TimeoutException)):
        return ErrorKind.TIMEOUT
    if isinstance(error, (NetworkError, httpx.TransportError, aiohttp.ClientError, ConnectionError)):
        return ErrorKind.TRANSPORT
    if isinstance(error, (httpx.HTTPStatusError, genai_errors.APIError)):
        return ErrorKind.TRANSPORT
    return ErrorKind.OTHER


def backoff_delay(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> float:
    """Exponential backoff for a zero-based attempt index, capped at max_delay."""
    return min(base_delay * (2 ** attempt), max_delay)


def retry_delay(
    outcome: CallOutcome,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> Optional[float]:
    """Decide whether a failed outcome gets another attempt.

    Returns:
        Seconds to wait before the next attempt, or None to stop.
    """
    if outcome.ok or outcome.kind != ErrorKind.RATE_LIMITED:
        return None
    if outcome.attempts >= max_retries:
        return None
    return backoff_delay(outcome.attempts - 1, base_delay, max_delay)


class RateLimitedExecutor:
    """Runs a zero-argument coroutine factory, retrying on rate limits only."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize executor.

        Args:
            max_retries: Total number of attempts allowed for rate-limited calls
            base_delay: Delay before the first retry in seconds
            max_delay: Upper bound for any single backoff wait
            sleep: Awaitable sleep function (injected in tests)
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep

    async def execute(self, operation: Callable[[], Awaitable[Any]]) -> CallOutcome:
        """Run operation under the retry policy. Never raises for call errors."""
        attempts = 0
        while True:
            attempts += 1
            try:
                value = await operation()
            except Exception as e:
                outcome = CallOutcome.failure(e, attempts)
            else:
                return CallOutcome.success(value, attempts)

            delay = retry_delay(outcome, self.max_retries, self.base_delay, self.max_delay)
            if delay is None:
                if outcome.kind == ErrorKind.RATE_LIMITED:
                    logger.error(
                        f"API request failed after {attempts} attempts "
                        f"(rate limited): {outcome.error}"
                    )
                return outcome

            logger.warning(
                f"Rate limited (attempt {attempts}/{self.max_retries}), "
                f"retrying in {delay:.1f}s..."
            )
            await self._sleep(delay)

    async def execute_with_retry(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """Run operation and return its value, raising the last error on failure."""
        outcome = await self.execute(operation)
        return outcome.unwrap()
