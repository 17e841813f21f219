"""
Backoff Supervisor

Bounded (or unbounded) retry-with-backoff for establishing a connection to an
external dependency.

MECHANISM OF ACTION:
-------------------
1.  **Policy**:
    A BackoffPolicy is an immutable description of the retry budget. Its
    ``delay(attempt)`` function is pure: the same attempt number always yields
    the same delay, delays never decrease, and they are capped at ``max_delay``.

    - FIXED  (durable store): constant delay, bounded attempt count.
    - LINEAR (cache): ``attempt * base_delay`` capped at ``max_delay``; bounded
      by a give-up threshold, or unbounded when ``max_attempts`` is None.

2.  **Retry loop**:
    The loop itself is tenacity's AsyncRetrying; the policy supplies the stop
    condition and the wait. Sleeps are non-blocking (``asyncio.sleep`` by
    default, injectable for tests).

3.  **Observability**:
    Every attempt produces an AttemptEvent (attempt number, delay chosen,
    outcome) delivered to subscribed listeners and written to the log.

4.  **Exhaustion**:
    After ``max_attempts`` consecutive failures ``connect`` raises
    DependencyExhaustedError once and performs no further attempts.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
)
from tenacity.wait import wait_base

from item_service.core.exceptions import DependencyExhaustedError
from item_service.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BackoffStrategy(str, Enum):
    """How the delay grows between attempts."""

    FIXED = "fixed"
    LINEAR = "linear"


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Immutable retry budget for one dependency.

    Attributes:
        base_delay: Fixed delay (FIXED) or per-attempt increment (LINEAR), seconds
        max_delay: Ceiling for any single delay, seconds
        max_attempts: Attempts before giving up; None retries forever
        strategy: Delay growth strategy
    """

    base_delay: float
    max_delay: float
    max_attempts: int | None = None
    strategy: BackoffStrategy = BackoffStrategy.FIXED

    def __post_init__(self):
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")

    @classmethod
    def fixed(cls, delay: float, max_attempts: int | None) -> "BackoffPolicy":
        """Constant delay between attempts."""
        return cls(
            base_delay=delay,
            max_delay=delay,
            max_attempts=max_attempts,
            strategy=BackoffStrategy.FIXED,
        )

    @classmethod
    def linear(cls, step: float, ceiling: float, max_attempts: int | None = None) -> "BackoffPolicy":
        """Delay of ``attempt * step`` seconds, capped at ``ceiling``."""
        return cls(
            base_delay=step,
            max_delay=ceiling,
            max_attempts=max_attempts,
            strategy=BackoffStrategy.LINEAR,
        )

    @property
    def bounded(self) -> bool:
        return self.max_attempts is not None

    def delay(self, attempt: int) -> float:
        """
        Delay to wait after failed attempt number ``attempt`` (1-based).

        Args:
            attempt: Number of the attempt that just failed

        Returns:
            Seconds to sleep before the next attempt
        """
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")
        if self.strategy == BackoffStrategy.LINEAR:
            return min(self.base_delay * attempt, self.max_delay)
        return min(self.base_delay, self.max_delay)


class AttemptOutcome(str, Enum):
    """Result of a single connection attempt."""

    SUCCESS = "success"
    FAILURE = "failure"  # another attempt follows
    EXHAUSTED = "exhausted"  # retry budget consumed, no further attempts


@dataclass(frozen=True)
class AttemptEvent:
    """Observable record of one connection attempt."""

    dependency: str
    attempt: int
    outcome: AttemptOutcome
    delay: float | None = None
    error: str | None = None


AttemptListener = Callable[[AttemptEvent], None]


class wait_policy(wait_base):
    """tenacity wait strategy backed by a BackoffPolicy."""

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.policy.delay(retry_state.attempt_number)


class BackoffSupervisor:
    """
    Runs connection attempts under a BackoffPolicy.

    Usage:
        supervisor = BackoffSupervisor()
        supervisor.subscribe(metrics.record_connection_attempt)

        engine = await supervisor.connect(
            "primaryStore",
            verify_connection,
            BackoffPolicy.fixed(delay=5.0, max_attempts=5),
        )
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ):
        self._sleep = sleep
        self._retry_on = retry_on
        self._listeners: list[AttemptListener] = []

    def subscribe(self, listener: AttemptListener) -> Callable[[], None]:
        """
        Register an attempt listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def connect(
        self,
        dependency: str,
        connect_fn: Callable[[], Awaitable[T]],
        policy: BackoffPolicy,
    ) -> T:
        """
        Attempt ``connect_fn`` until it succeeds or the policy gives up.

        Args:
            dependency: Dependency name for logs, events and errors
            connect_fn: Coroutine function performing one attempt
            policy: Retry budget

        Returns:
            Whatever ``connect_fn`` returned on the successful attempt

        Raises:
            DependencyExhaustedError: After ``policy.max_attempts`` consecutive failures
        """
        stop = stop_after_attempt(policy.max_attempts) if policy.bounded else stop_never

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop,
            wait=wait_policy(policy),
            retry=retry_if_exception_type(self._retry_on),
            before_sleep=self._before_sleep(dependency, policy),
            reraise=False,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    handle = await connect_fn()
        except RetryError as e:
            last = e.last_attempt
            error = last.exception()
            self._emit(
                AttemptEvent(
                    dependency=dependency,
                    attempt=last.attempt_number,
                    outcome=AttemptOutcome.EXHAUSTED,
                    error=str(error),
                )
            )
            logger.error(
                "Dependency connection attempts exhausted",
                dependency=dependency,
                attempts=last.attempt_number,
                error=str(error),
            )
            raise DependencyExhaustedError(
                f"Failed to connect to {dependency} after {last.attempt_number} attempts",
                details={
                    "dependency": dependency,
                    "attempts": last.attempt_number,
                    "last_error": str(error),
                },
            ) from error

        attempt_number = attempt.retry_state.attempt_number
        self._emit(
            AttemptEvent(
                dependency=dependency,
                attempt=attempt_number,
                outcome=AttemptOutcome.SUCCESS,
            )
        )
        logger.info("Dependency connected", dependency=dependency, attempt=attempt_number)
        return handle

    def _before_sleep(self, dependency: str, policy: BackoffPolicy) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else None
            self._emit(
                AttemptEvent(
                    dependency=dependency,
                    attempt=retry_state.attempt_number,
                    outcome=AttemptOutcome.FAILURE,
                    delay=delay,
                    error=str(error) if error else None,
                )
            )
            logger.warning(
                "Dependency connection attempt failed",
                dependency=dependency,
                attempt=retry_state.attempt_number,
                max_attempts=policy.max_attempts,
                retry_in_seconds=delay,
                error=str(error) if error else None,
            )

        return before_sleep

    def _emit(self, event: AttemptEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(
                    "Attempt listener failed",
                    dependency=event.dependency,
                    error=str(e),
                    exc_info=True,
                )
