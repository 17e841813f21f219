"""Unit Tests for StatusTracker."""

import pytest

from item_service.core.config.constants import ConnectionStatus
from item_service.core.resilience.status import StatusTracker


@pytest.mark.unit
class TestStatusTracker:
    def test_starts_disconnected(self):
        assert StatusTracker("cache").status == ConnectionStatus.DISCONNECTED

    def test_transition_notifies_listeners(self):
        seen = []
        tracker = StatusTracker("cache")
        tracker.subscribe(lambda dep, old, new: seen.append((dep, old, new)))

        assert tracker.transition(ConnectionStatus.CONNECTING)
        assert tracker.transition(ConnectionStatus.CONNECTED)

        assert seen == [
            ("cache", ConnectionStatus.DISCONNECTED, ConnectionStatus.CONNECTING),
            ("cache", ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED),
        ]

    def test_same_status_is_a_no_op(self):
        seen = []
        tracker = StatusTracker("cache", initial=ConnectionStatus.CONNECTED)
        tracker.subscribe(lambda *args: seen.append(args))

        assert not tracker.transition(ConnectionStatus.CONNECTED)
        assert seen == []

    def test_failed_is_terminal(self):
        tracker = StatusTracker("cache")
        tracker.transition(ConnectionStatus.FAILED)

        assert not tracker.transition(ConnectionStatus.CONNECTED)
        assert not tracker.transition(ConnectionStatus.CONNECTING)
        assert tracker.status == ConnectionStatus.FAILED

    def test_listener_errors_are_contained(self):
        tracker = StatusTracker("primaryStore")

        def broken(*args):
            raise RuntimeError("boom")

        tracker.subscribe(broken)

        assert tracker.transition(ConnectionStatus.CONNECTED)
        assert tracker.status == ConnectionStatus.CONNECTED

    def test_unsubscribe(self):
        seen = []
        tracker = StatusTracker("cache")
        unsubscribe = tracker.subscribe(lambda *args: seen.append(args))
        unsubscribe()

        tracker.transition(ConnectionStatus.CONNECTED)

        assert seen == []
