"""
Retry Executor
==============
Runs one logical provider call with a bounded retry budget.

Policy
------
1. Up to `max_retries + 1` attempts (default 3).
2. Fixed linear back-off: attempt *i* waits `i * backoff_seconds` first
   (0 s, 1 s, 2 s with the defaults).
3. Each attempt is bounded by `timeout_seconds` via asyncio.wait_for; an
   attempt that overruns is recorded as a TransportError.
4. A call that returns a falsy result (content missing) is recorded as an
   EmptyResponseError and retried, like a transport failure.
5. Only `retryable` GatewayErrors are absorbed. Any other GatewayError is
   raised on the spot; non-gateway exceptions are bugs and propagate as-is.

The executor keeps no state between `run` calls, so each logical call starts
with a fresh budget and instances can be shared between concurrent requests.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import EmptyResponseError, GatewayError, TransportError

logger = get_logger(__name__)

T = TypeVar("T")


class RetryExecutor:
    def __init__(
        self,
        timeout_seconds: float,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        operation: str = "provider call",
    ) -> None:
        settings = get_settings()
        self._timeout = timeout_seconds
        self._max_retries = max_retries if max_retries is not None else settings.ai_max_retries
        self._backoff = backoff_seconds if backoff_seconds is not None else settings.ai_backoff_seconds
        self._operation = operation
        if self._max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def run(self, call: Callable[[], Awaitable[T]]) -> T:
        """
        Execute `call` under the retry policy.

        Parameters
        ----------
        call : zero-argument factory returning a fresh awaitable per attempt

        Returns
        -------
        The first non-empty result.

        Raises
        ------
        The last retryable GatewayError, with `attempts` set, once the budget
        is spent; any non-retryable GatewayError immediately.
        """
        last_exc: Optional[GatewayError] = None

        for attempt in range(self.max_attempts):
            delay = self._backoff * attempt
            if attempt > 0:
                logger.warning(
                    f"Retrying {self._operation}",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": self.max_attempts,
                        "delay_s": delay,
                        "cause": str(last_exc),
                    },
                )
                if delay > 0:
                    await asyncio.sleep(delay)

            try:
                result = await asyncio.wait_for(call(), timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                last_exc = TransportError(
                    f"{self._operation} timed out after {self._timeout:g}s", cause=exc
                )
                logger.error(
                    f"{self._operation} timed out",
                    extra={"attempt": attempt + 1, "timeout_s": self._timeout},
                )
                continue
            except GatewayError as exc:
                if not exc.retryable:
                    raise
                last_exc = exc
                logger.error(
                    f"{self._operation} failed",
                    extra={"attempt": attempt + 1, "error": str(exc), "kind": type(exc).__name__},
                )
                continue

            if not result:
                last_exc = EmptyResponseError(f"{self._operation} returned empty content")
                logger.error(
                    f"{self._operation} returned empty content",
                    extra={"attempt": attempt + 1},
                )
                continue

            if attempt > 0:
                logger.info(
                    f"{self._operation} recovered after retry",
                    extra={"attempt": attempt + 1},
                )
            return result

        last_exc = last_exc or TransportError(f"{self._operation} failed without a recorded error")
        last_exc.attempts = self.max_attempts
        logger.error(
            f"{self._operation} gave up",
            extra={"attempts": self.max_attempts, "kind": type(last_exc).__name__, "error": last_exc.message},
        )
        raise last_exc
