"""
Connection Status Tracking

Each connector owns one StatusTracker. The tracker is the only place a
dependency's ConnectionStatus changes: connectors call ``transition`` from
their attempt callbacks, driver error hooks and explicit probes. Other
components read ``status`` or subscribe to transitions; they never write.
"""

from collections.abc import Callable

from item_service.core.config.constants import ConnectionStatus
from item_service.core.logging.logger import get_logger

logger = get_logger(__name__)

# (dependency, previous, current)
StatusListener = Callable[[str, ConnectionStatus, ConnectionStatus], None]


class StatusTracker:
    """
    Explicit state holder for one dependency's ConnectionStatus.

    Usage:
        tracker = StatusTracker("cache")
        tracker.subscribe(lambda dep, old, new: print(dep, old, new))
        tracker.transition(ConnectionStatus.CONNECTED)
    """

    def __init__(self, dependency: str, initial: ConnectionStatus = ConnectionStatus.DISCONNECTED):
        self.dependency = dependency
        self._status = initial
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a transition listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def transition(self, new_status: ConnectionStatus, reason: str | None = None) -> bool:
        """
        Move to ``new_status``.

        FAILED is terminal: once a dependency has given up, nothing moves it
        back until the process restarts.

        Returns:
            True if the status changed
        """
        previous = self._status
        if previous == new_status:
            return False
        if previous == ConnectionStatus.FAILED:
            logger.debug(
                "Ignoring transition out of terminal state",
                dependency=self.dependency,
                requested=new_status.value,
            )
            return False

        self._status = new_status
        logger.info(
            "Dependency status changed",
            dependency=self.dependency,
            previous=previous.value,
            current=new_status.value,
            reason=reason,
        )

        for listener in list(self._listeners):
            try:
                listener(self.dependency, previous, new_status)
            except Exception as e:
                logger.warning(
                    "Status listener failed",
                    dependency=self.dependency,
                    error=str(e),
                    exc_info=True,
                )
        return True
