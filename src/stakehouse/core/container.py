"""Explicit wiring of the process-wide service instances."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from stakehouse.core.config import Settings
from stakehouse.core.distribution import DistributionOrchestrator
from stakehouse.core.http import build_http_client
from stakehouse.core.network import NetworkClient
from stakehouse.core.scheduler import JobScheduler, build_job_specs
from stakehouse.core.transactions import TransactionPipeline
from stakehouse.core.transfers import TransferService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    network: NetworkClient
    pipeline: TransactionPipeline
    orchestrator: DistributionOrchestrator
    transfers: TransferService
    scheduler: JobScheduler

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_container(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> ServiceContainer:
    signer = settings.signer_keypair() if settings.signer_secret else None
    if signer is None:
        logger.warning("No signer configured; distribution and transfers are disabled")

    http_client = build_http_client(transport)
    network = NetworkClient(http_client, settings.rpc_url, settings.horizon_url)
    pipeline = TransactionPipeline(network, settings.network_passphrase)
    orchestrator = DistributionOrchestrator(network, pipeline, signer, fallback_rate=settings.apr_fallback_rate)
    transfers = TransferService(
        network,
        pipeline,
        network_name=settings.network,
        contract_address=settings.contract_address,
        signer=signer,
    )
    scheduler = JobScheduler(build_job_specs(settings, orchestrator, transfers), settings.timezone)
    return ServiceContainer(
        settings=settings,
        http_client=http_client,
        network=network,
        pipeline=pipeline,
        orchestrator=orchestrator,
        transfers=transfers,
        scheduler=scheduler,
    )
