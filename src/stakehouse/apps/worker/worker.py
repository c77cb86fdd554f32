from __future__ import annotations

import asyncio
import logging
import signal

from stakehouse.core.config import Settings, load_settings
from stakehouse.core.container import build_container
from stakehouse.core.logging import configure_logging

logger = logging.getLogger(__name__)


class Worker:
    """Runs the job scheduler without the HTTP surface."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._stop = asyncio.Event()

    def _handle_signal(self, signum: int) -> None:
        logger.info("Received signal %s; shutting down", signum)
        self._stop.set()

    async def run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._handle_signal, signum)

        container = build_container(self.settings)
        if not self.settings.cron_enabled:
            logger.warning("STAKEHOUSE_CRON_ENABLED is off; the worker schedules jobs anyway")
        container.scheduler.start()
        logger.info("Scheduler started with jobs: %s", ", ".join(container.scheduler.status()) or "none")
        try:
            await self._stop.wait()
        finally:
            await container.scheduler.stop()
            await container.aclose()
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(signum)


def run() -> None:
    settings = load_settings()
    configure_logging(settings.state_dir)
    asyncio.run(Worker(settings).run_forever())


if __name__ == "__main__":
    run()
