from __future__ import annotations

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from stellar_sdk import Keypair

from fakes import CONTRACT_ADDRESS, FakeNetwork, FakePipeline
from stakehouse.core.config import Settings, TransferJobSettings
from stakehouse.core.distribution import DistributionOrchestrator
from stakehouse.core.scheduler import DISTRIBUTION_JOB, TRANSFER_JOB, JobScheduler, JobSpec, build_job_specs, run_job
from stakehouse.core.transfers import TransferService

TZ = ZoneInfo("America/Sao_Paulo")


async def _noop() -> None:
    return None


def _scheduler() -> JobScheduler:
    return JobScheduler(
        [JobSpec(name="distribution", cron="*/5 * * * *", func=_noop), JobSpec(name="transfer", cron="0 0 * * *", func=_noop)],
        TZ,
    )


@pytest.mark.asyncio
async def test_start_registers_and_runs_all_jobs() -> None:
    scheduler = _scheduler()
    scheduler.start()
    try:
        assert scheduler.status() == {"distribution": True, "transfer": True}
        assert scheduler.scheduler.running
        assert all(job.next_run_time_iso for job in scheduler.list_jobs())
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_clears_registry_and_cancels_timers() -> None:
    scheduler = _scheduler()
    scheduler.start()
    await scheduler.stop()

    assert scheduler.registry == {}
    assert scheduler.status() == {}
    assert scheduler.scheduler.get_jobs() == []
    assert not scheduler.scheduler.running


@pytest.mark.asyncio
async def test_stop_without_start_is_safe() -> None:
    scheduler = JobScheduler([], TZ)
    await scheduler.stop()
    assert scheduler.registry == {}


@pytest.mark.asyncio
async def test_restart_unknown_job_is_a_logged_no_op() -> None:
    scheduler = _scheduler()
    scheduler.start()
    try:
        before = dict(scheduler.registry)
        assert scheduler.restart("unknown-job") is False
        assert scheduler.registry == before
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_restart_known_job_keeps_it_running() -> None:
    scheduler = _scheduler()
    scheduler.start()
    try:
        assert scheduler.restart("distribution") is True
        assert scheduler.status()["distribution"] is True
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_second_start_double_registers_jobs() -> None:
    scheduler = _scheduler()
    scheduler.start()
    scheduler.start()
    try:
        assert len(scheduler.registry["distribution"].job_ids) == 2
        assert len(scheduler.scheduler.get_jobs()) == 4
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_run_job_logs_but_does_not_raise_job_errors() -> None:
    calls = {"count": 0}

    async def failing() -> None:
        calls["count"] += 1
        raise RuntimeError("cycle exploded")

    await run_job("distribution", failing)
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_stop_waits_for_running_job_to_finish() -> None:
    started = asyncio.Event()
    release = asyncio.Event()
    finished: list[str] = []

    async def slow_cycle() -> None:
        started.set()
        await release.wait()
        finished.append("distribution")

    scheduler = JobScheduler([JobSpec(name="distribution", cron="0 0 1 1 *", func=slow_cycle)], TZ)
    scheduler.start()
    job_id = scheduler.registry["distribution"].job_ids[0]
    scheduler.scheduler.modify_job(job_id, next_run_time=datetime.now(TZ))
    await asyncio.wait_for(started.wait(), timeout=5)

    stopping = asyncio.create_task(scheduler.stop())
    await asyncio.sleep(0.05)
    assert not stopping.done()
    assert scheduler.scheduler.get_jobs() == []

    release.set()
    await asyncio.wait_for(stopping, timeout=5)
    assert finished == ["distribution"]
    assert not scheduler.scheduler.running


def _services() -> tuple[DistributionOrchestrator, TransferService]:
    network = FakeNetwork()
    pipeline = FakePipeline()
    signer = Keypair.random()
    orchestrator = DistributionOrchestrator(network, pipeline, signer)
    transfers = TransferService(network, pipeline, network_name="testnet", contract_address=CONTRACT_ADDRESS, signer=signer)
    return orchestrator, transfers


def test_build_job_specs_requires_contract_address() -> None:
    orchestrator, transfers = _services()
    assert build_job_specs(Settings(), orchestrator, transfers) == []


def test_build_job_specs_adds_transfer_job_when_configured() -> None:
    orchestrator, transfers = _services()
    settings = Settings(
        contract_address=CONTRACT_ADDRESS,
        transfer_job=TransferJobSettings(
            from_address=Keypair.random().public_key,
            to_address=Keypair.random().public_key,
            amount=10_000_000,
        ),
    )
    specs = build_job_specs(settings, orchestrator, transfers)

    assert [spec.name for spec in specs] == [DISTRIBUTION_JOB, TRANSFER_JOB]
    assert [spec.cron for spec in specs] == ["*/5 * * * *", "0 0 * * *"]


def test_build_job_specs_without_transfer_settings_only_distributes() -> None:
    orchestrator, transfers = _services()
    specs = build_job_specs(Settings(contract_address=CONTRACT_ADDRESS), orchestrator, transfers)
    assert [spec.name for spec in specs] == [DISTRIBUTION_JOB]
