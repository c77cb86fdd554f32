from __future__ import annotations

import logging
from functools import partial

from stakehouse.core.config import Settings, TransferJobSettings
from stakehouse.core.distribution import CycleError, DistributionOrchestrator
from stakehouse.core.transfers import TransferService

from .schemas import JobSpec

logger = logging.getLogger(__name__)

DISTRIBUTION_JOB = "distribution"
TRANSFER_JOB = "transfer_xlm_sac"


async def run_distribution(orchestrator: DistributionOrchestrator, contract_address: str) -> None:
    outcome = await orchestrator.run_cycle(contract_address)
    if isinstance(outcome, CycleError):
        level = logging.WARNING if outcome.ambiguous else logging.ERROR
        logger.log(level, "Distribution cycle ended with error: %s", outcome.message)


async def run_transfer(transfers: TransferService, transfer: TransferJobSettings) -> None:
    receipt = await transfers.transfer_from_xlm_sac(transfer.from_address, transfer.to_address, transfer.amount)
    logger.info("Scheduled transfer confirmed: %s", receipt.tx_hash)


def build_job_specs(
    settings: Settings,
    orchestrator: DistributionOrchestrator,
    transfers: TransferService,
) -> list[JobSpec]:
    if not settings.contract_address:
        logger.warning("STAKEHOUSE_CONTRACT_ADDRESS is not set; no jobs will be scheduled")
        return []

    specs = [
        JobSpec(
            name=DISTRIBUTION_JOB,
            cron=settings.distribution_cron,
            func=partial(run_distribution, orchestrator, settings.contract_address),
        )
    ]
    if settings.transfer_job is not None:
        specs.append(
            JobSpec(name=TRANSFER_JOB, cron=settings.transfer_cron, func=partial(run_transfer, transfers, settings.transfer_job))
        )
    return specs
