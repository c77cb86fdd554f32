from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from stakehouse.core.container import ServiceContainer
from stakehouse.core.errors import StakehouseError

from .deps import get_container

logger = logging.getLogger(__name__)

router = APIRouter()

_REQUIRED_FIELDS = ["spender", "from", "to", "amount"]


class TransferFromRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    spender: str | None = None
    from_address: str | None = Field(default=None, alias="from")
    to: str | None = None
    amount: int | str | None = None

    def missing_fields(self) -> list[str]:
        values = {"spender": self.spender, "from": self.from_address, "to": self.to, "amount": self.amount}
        return [name for name in _REQUIRED_FIELDS if values[name] in (None, "")]


def _parse_amount(raw: int | str) -> int | None:
    try:
        amount = int(raw)
    except (TypeError, ValueError):
        return None
    return amount if amount > 0 else None


@router.post("/transfer-from")
async def transfer_from(
    payload: TransferFromRequest | None = None,
    container: ServiceContainer = Depends(get_container),
):
    payload = payload or TransferFromRequest()
    missing = payload.missing_fields()
    if missing:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "required": _REQUIRED_FIELDS, "missing": missing},
        )
    amount = _parse_amount(payload.amount)
    if amount is None:
        return JSONResponse(status_code=400, content={"error": "amount must be a positive integer number of stroops"})

    try:
        receipt = await container.transfers.transfer_from(payload.spender, payload.from_address, payload.to, amount)
    except StakehouseError as exc:
        logger.error("transfer_from failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Transfer failed", "details": str(exc)})
    return {"success": True, "result": receipt.to_dict()}
