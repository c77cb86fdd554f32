from __future__ import annotations

from fastapi import HTTPException, Request

from stakehouse.core.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def require_contract_address(request: Request) -> str:
    contract_address = get_container(request).settings.contract_address
    if not contract_address:
        raise HTTPException(status_code=400, detail="STAKEHOUSE_CONTRACT_ADDRESS is not configured")
    return contract_address
