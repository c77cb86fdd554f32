from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from stakehouse import __version__
from stakehouse.core.container import ServiceContainer
from stakehouse.core.errors import ConnectivityError

from .deps import get_container, require_contract_address

router = APIRouter()


@router.get("/status")
def get_status(container: ServiceContainer = Depends(get_container)) -> dict:
    settings = container.settings
    return {
        "status": "running",
        "version": __version__,
        "network": settings.network,
        "contract_address": settings.contract_address,
        "cron_enabled": settings.cron_enabled,
    }


@router.get("/stellar/status")
async def get_stellar_status(container: ServiceContainer = Depends(get_container)) -> dict:
    return await container.transfers.check_connection()


@router.get("/stellar/events")
async def get_stellar_events(
    limit: int = Query(default=20),
    container: ServiceContainer = Depends(get_container),
    contract_address: str = Depends(require_contract_address),
) -> dict:
    normalized_limit = max(1, min(200, limit))
    try:
        events = await container.network.recent_events(contract_address, limit=normalized_limit)
    except ConnectivityError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {
        "contract_address": contract_address,
        "events": [
            {
                "id": event.event_id,
                "ledger": event.ledger,
                "contract_id": event.contract_id,
                "topics": list(event.topics),
                "value": event.value_xdr,
                "tx_hash": event.tx_hash,
            }
            for event in events
        ],
    }


@router.get("/cronjobs/status")
def get_cronjobs_status(container: ServiceContainer = Depends(get_container)) -> dict:
    return {
        "cronjobs": container.scheduler.status(),
        "enabled": container.settings.cron_enabled,
        "jobs": [job.model_dump() for job in container.scheduler.list_jobs()],
    }


@router.post("/cronjobs/{name}/restart")
def restart_cronjob(name: str, container: ServiceContainer = Depends(get_container)) -> dict:
    restarted = container.scheduler.restart(name)
    return {"name": name, "restarted": restarted}


@router.post("/distribution/run")
async def run_distribution(
    container: ServiceContainer = Depends(get_container),
    contract_address: str = Depends(require_contract_address),
) -> dict:
    outcome = await container.orchestrator.run_cycle(contract_address)
    return outcome.to_dict()
