"""
Unit Tests for Backoff Policies and the Backoff Supervisor

Delays are recorded by a fake sleep, so no test waits in real time.
"""

import pytest

from item_service.core.exceptions import DependencyExhaustedError
from item_service.core.resilience.backoff import (
    AttemptOutcome,
    BackoffPolicy,
    BackoffStrategy,
    BackoffSupervisor,
)
from tests.test_fixtures.fake_redis import RecordingSleep


class FlakyConnect:
    """Fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result="handle"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionRefusedError(f"refused #{self.calls}")
        return self.result


@pytest.mark.unit
class TestBackoffPolicy:
    def test_fixed_policy_uses_constant_delay(self):
        policy = BackoffPolicy.fixed(delay=5.0, max_attempts=5)

        assert policy.strategy == BackoffStrategy.FIXED
        assert [policy.delay(n) for n in range(1, 6)] == [5.0] * 5
        assert policy.bounded

    def test_linear_policy_grows_and_caps(self):
        policy = BackoffPolicy.linear(step=0.1, ceiling=3.0, max_attempts=10)

        assert policy.delay(1) == pytest.approx(0.1)
        assert policy.delay(5) == pytest.approx(0.5)
        assert policy.delay(30) == pytest.approx(3.0)
        assert policy.delay(100) == pytest.approx(3.0)

    def test_unbounded_policy(self):
        policy = BackoffPolicy.linear(step=0.1, ceiling=3.0)
        assert not policy.bounded

    def test_attempt_numbers_start_at_one(self):
        with pytest.raises(ValueError):
            BackoffPolicy.fixed(delay=1.0, max_attempts=3).delay(0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_delay": -1.0, "max_delay": 1.0},
            {"base_delay": 1.0, "max_delay": -1.0},
            {"base_delay": 1.0, "max_delay": 1.0, "max_attempts": 0},
        ],
    )
    def test_invalid_policies_rejected(self, kwargs):
        with pytest.raises(ValueError):
            BackoffPolicy(**kwargs)

    def test_policy_is_immutable(self):
        policy = BackoffPolicy.fixed(delay=1.0, max_attempts=3)
        with pytest.raises(AttributeError):
            policy.base_delay = 2.0


@pytest.mark.unit
class TestBackoffSupervisor:
    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self):
        sleep = RecordingSleep()
        supervisor = BackoffSupervisor(sleep=sleep)
        connect = FlakyConnect(failures=0)

        result = await supervisor.connect("primaryStore", connect, BackoffPolicy.fixed(5.0, 5))

        assert result == "handle"
        assert connect.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_succeeds_on_final_attempt(self):
        sleep = RecordingSleep()
        supervisor = BackoffSupervisor(sleep=sleep)
        connect = FlakyConnect(failures=4)

        result = await supervisor.connect("primaryStore", connect, BackoffPolicy.fixed(5.0, 5))

        assert result == "handle"
        assert connect.calls == 5
        assert sleep.delays == [5.0, 5.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_after_exact_attempt_count(self):
        sleep = RecordingSleep()
        supervisor = BackoffSupervisor(sleep=sleep)
        connect = FlakyConnect(failures=100)

        with pytest.raises(DependencyExhaustedError) as exc_info:
            await supervisor.connect("primaryStore", connect, BackoffPolicy.fixed(5.0, 5))

        assert connect.calls == 5
        assert sleep.delays == [5.0] * 4
        assert exc_info.value.details["dependency"] == "primaryStore"
        assert exc_info.value.details["attempts"] == 5
        assert "refused #5" in exc_info.value.details["last_error"]

    @pytest.mark.asyncio
    async def test_linear_delays_follow_policy(self):
        sleep = RecordingSleep()
        supervisor = BackoffSupervisor(sleep=sleep)

        with pytest.raises(DependencyExhaustedError):
            await supervisor.connect(
                "cache", FlakyConnect(failures=100), BackoffPolicy.linear(0.1, 3.0, max_attempts=10)
            )

        assert sleep.delays == pytest.approx([0.1 * n for n in range(1, 10)])

    @pytest.mark.asyncio
    async def test_unbounded_policy_keeps_trying(self):
        sleep = RecordingSleep()
        supervisor = BackoffSupervisor(sleep=sleep)
        connect = FlakyConnect(failures=40)

        result = await supervisor.connect("cache", connect, BackoffPolicy.linear(0.1, 3.0))

        assert result == "handle"
        assert connect.calls == 41
        assert max(sleep.delays) == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_events_emitted_per_attempt(self):
        events = []
        supervisor = BackoffSupervisor(sleep=RecordingSleep())
        supervisor.subscribe(events.append)

        await supervisor.connect("cache", FlakyConnect(failures=2), BackoffPolicy.fixed(1.0, 5))

        assert [e.outcome for e in events] == [
            AttemptOutcome.FAILURE,
            AttemptOutcome.FAILURE,
            AttemptOutcome.SUCCESS,
        ]
        assert [e.attempt for e in events] == [1, 2, 3]
        assert events[0].delay == 1.0
        assert events[0].error == "refused #1"

    @pytest.mark.asyncio
    async def test_exhausted_event_emitted(self):
        events = []
        supervisor = BackoffSupervisor(sleep=RecordingSleep())
        supervisor.subscribe(events.append)

        with pytest.raises(DependencyExhaustedError):
            await supervisor.connect("cache", FlakyConnect(failures=10), BackoffPolicy.fixed(1.0, 2))

        assert events[-1].outcome == AttemptOutcome.EXHAUSTED
        assert events[-1].attempt == 2

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_connect(self):
        supervisor = BackoffSupervisor(sleep=RecordingSleep())

        def broken(event):
            raise RuntimeError("listener bug")

        supervisor.subscribe(broken)

        assert await supervisor.connect("cache", FlakyConnect(0), BackoffPolicy.fixed(1.0, 1)) == "handle"

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_events(self):
        events = []
        supervisor = BackoffSupervisor(sleep=RecordingSleep())
        unsubscribe = supervisor.subscribe(events.append)
        unsubscribe()

        await supervisor.connect("cache", FlakyConnect(0), BackoffPolicy.fixed(1.0, 1))

        assert events == []
