#!/usr/bin/env python3
"""
Service entry point.

Runs the application under uvicorn. SIGINT/SIGTERM first start the
lifecycle controller's shutdown (which arms the forced-exit watchdog), then
let uvicorn stop accepting connections and run the lifespan shutdown.
"""

import signal
import sys
from types import FrameType

import uvicorn

from item_service.application.app import create_app
from item_service.application.lifecycle import LifecycleController
from item_service.core.config.settings import get_settings
from item_service.core.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)


class ManagedServer(uvicorn.Server):
    """uvicorn server that notifies the lifecycle controller on exit signals."""

    def __init__(self, config: uvicorn.Config, lifecycle: LifecycleController):
        super().__init__(config)
        self._lifecycle = lifecycle

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        self._lifecycle.request_shutdown(signal.Signals(sig).name)
        super().handle_exit(sig, frame)


def main() -> None:
    settings = get_settings()
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
        lifespan="on",
    )
    server = ManagedServer(config, app.state.lifecycle)
    server.run()

    if not server.started:
        logger.critical("Server failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
