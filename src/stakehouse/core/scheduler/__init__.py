from .jobs import DISTRIBUTION_JOB, TRANSFER_JOB, build_job_specs
from .scheduler import JobScheduler, run_job
from .schemas import JobDefinition, JobInfo, JobSpec

__all__ = [
    "DISTRIBUTION_JOB",
    "TRANSFER_JOB",
    "JobDefinition",
    "JobInfo",
    "JobScheduler",
    "JobSpec",
    "build_job_specs",
    "run_job",
]
