from __future__ import annotations

import asyncio
import logging
from typing import Iterable
from uuid import uuid4
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from stakehouse.core.logging import log_context

from .schemas import JobDefinition, JobFunc, JobInfo, JobSpec

logger = logging.getLogger(__name__)


async def run_job(name: str, func: JobFunc) -> None:
    with log_context(job_id=name, correlation_id=str(uuid4())):
        logger.info("Job %s started", name)
        try:
            await func()
        except Exception:
            logger.exception("Job %s failed", name)
        else:
            logger.info("Job %s finished", name)


class JobScheduler:
    """Registry of named cron jobs on the process event loop.

    ``start`` is not idempotent: calling it twice without ``stop`` registers
    every job a second time. ``stop`` waits for runs already in progress before
    shutting the scheduler down.
    """

    def __init__(self, specs: Iterable[JobSpec], timezone: ZoneInfo, scheduler: AsyncIOScheduler | None = None) -> None:
        self.timezone = timezone
        self.specs = {spec.name: spec for spec in specs}
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self.registry: dict[str, JobDefinition] = {}
        self._in_flight: set[asyncio.Task] = set()

    def start(self) -> None:
        for name, spec in self.specs.items():
            trigger = CronTrigger.from_crontab(spec.cron, timezone=self.timezone)
            job = self.scheduler.add_job(self._run_tracked, trigger=trigger, kwargs={"name": name, "func": spec.func}, name=name)
            definition = self.registry.get(name)
            if definition is None:
                definition = self.registry[name] = JobDefinition(spec=spec)
            else:
                logger.warning("Job %s registered again without stop(); it will fire twice", name)
            definition.job_ids.append(job.id)
            logger.info("Registered job %s (%s, %s)", name, spec.cron, self.timezone.key)

        if not self.scheduler.running:
            self.scheduler.start()

    async def _run_tracked(self, name: str, func: JobFunc) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._in_flight.add(task)
        try:
            await run_job(name, func)
        finally:
            self._in_flight.discard(task)

    async def stop(self, timeout: float | None = None) -> None:
        self.scheduler.remove_all_jobs()
        self.registry.clear()
        pending = [task for task in self._in_flight if not task.done()]
        if pending:
            logger.info("Waiting for %s running job(s) to finish", len(pending))
            _, still_running = await asyncio.wait(pending, timeout=timeout)
            if still_running:
                logger.warning("%s job(s) still running after %ss; they will be cancelled", len(still_running), timeout)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def restart(self, name: str) -> bool:
        definition = self.registry.get(name)
        if definition is None:
            logger.warning("Cannot restart unknown job %s", name)
            return False
        for job_id in definition.job_ids:
            self.scheduler.pause_job(job_id)
            self.scheduler.resume_job(job_id)
        logger.info("Restarted job %s", name)
        return True

    def _next_run_time(self, definition: JobDefinition):
        times = []
        for job_id in definition.job_ids:
            job = self.scheduler.get_job(job_id)
            next_run_time = getattr(job, "next_run_time", None) if job is not None else None
            if next_run_time is not None:
                times.append(next_run_time)
        return min(times) if times else None

    def status(self) -> dict[str, bool]:
        return {name: self._next_run_time(definition) is not None for name, definition in self.registry.items()}

    def list_jobs(self) -> list[JobInfo]:
        jobs: list[JobInfo] = []
        for name, spec in self.specs.items():
            definition = self.registry.get(name)
            next_run_time = self._next_run_time(definition) if definition else None
            jobs.append(
                JobInfo(
                    name=name,
                    cron=spec.cron,
                    timezone=self.timezone.key,
                    running=next_run_time is not None,
                    next_run_time_iso=next_run_time.isoformat() if next_run_time else None,
                )
            )
        return jobs
