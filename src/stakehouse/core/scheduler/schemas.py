from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

JobFunc = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class JobSpec:
    name: str
    cron: str
    func: JobFunc


@dataclass
class JobDefinition:
    spec: JobSpec
    job_ids: list[str] = field(default_factory=list)


class JobInfo(BaseModel):
    name: str
    cron: str
    timezone: str
    running: bool
    next_run_time_iso: str | None = None
