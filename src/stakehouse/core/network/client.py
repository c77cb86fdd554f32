"""
Stateless facade over the Soroban RPC endpoint and the Horizon balance API.

Every method either returns a typed record from ``schemas`` or raises one of
the errors in ``stakehouse.core.errors``; raw transport exceptions and JSON
payloads never leave this module.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from stellar_sdk.exceptions import Ed25519PublicKeyInvalidError

from stakehouse.core.errors import (
    AccountNotFound,
    ConnectivityError,
    RpcError,
    StakehouseError,
    SubmissionError,
)
from stakehouse.core.http.client import request_with_retry
from stakehouse.core.http.errors import StakehouseHTTPError, StakehouseHTTPNetworkError, StakehouseHTTPStatusError

from .decode import account_ledger_key, decode_account_entry, decode_scval, describe_failure, return_value_from_meta
from .schemas import (
    Account,
    ContractEvent,
    NativeBalance,
    SimulationResult,
    SubmissionReceipt,
    TransactionStatus,
    TxStatus,
)

logger = logging.getLogger(__name__)

_ACCEPTED_SUBMIT_STATUSES = {"PENDING", "DUPLICATE"}


class NetworkClient:
    def __init__(self, http_client: httpx.AsyncClient, rpc_url: str, horizon_url: str) -> None:
        self._http = http_client
        self.rpc_url = rpc_url
        self.horizon_url = horizon_url.rstrip("/")

    async def _rpc(self, method: str, params: dict[str, Any] | None = None, *, retries: int | None = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}}
        response = await request_with_retry(self._http, "POST", self.rpc_url, json=payload, retries=retries)
        try:
            body = response.json()
        except ValueError as exc:
            raise RpcError(f"{method}: response is not JSON") from exc

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(f"{method}: {message}", code=code)
        if not isinstance(body, dict) or "result" not in body:
            raise RpcError(f"{method}: response has no result")
        return body["result"]

    async def latest_ledger(self) -> int:
        try:
            result = await self._rpc("getLatestLedger")
            return int(result["sequence"])
        except (StakehouseHTTPError, RpcError, KeyError, TypeError, ValueError) as exc:
            raise ConnectivityError(f"ledger RPC unreachable at {self.rpc_url}: {exc}") from exc

    async def get_account(self, address: str) -> Account:
        try:
            key = account_ledger_key(address)
        except Ed25519PublicKeyInvalidError as exc:
            raise AccountNotFound(address) from exc

        try:
            result = await self._rpc("getLedgerEntries", {"keys": [key]})
        except StakehouseHTTPError as exc:
            raise ConnectivityError(f"getLedgerEntries failed: {exc}") from exc

        entries = result.get("entries") or []
        if not entries:
            raise AccountNotFound(address)
        return decode_account_entry(address, entries[0]["xdr"])

    async def get_balance(self, address: str) -> NativeBalance:
        url = f"{self.horizon_url}/accounts/{address}"
        try:
            response = await request_with_retry(self._http, "GET", url, allowed_statuses={404})
        except StakehouseHTTPNetworkError as exc:
            raise ConnectivityError(f"balance API unreachable: {exc}") from exc
        except StakehouseHTTPStatusError as exc:
            raise StakehouseError(f"balance API error for {address}: {exc}") from exc

        if response.status_code == 404:
            return NativeBalance(address=address, balance=Decimal(0))

        try:
            body = response.json()
        except ValueError as exc:
            raise StakehouseError(f"balance API returned a non-JSON body for {address}") from exc
        balances = (body.get("balances") if isinstance(body, dict) else None) or []
        native = next((entry for entry in balances if entry.get("asset_type") == "native"), None)
        raw = native.get("balance", "0") if native else "0"
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            logger.warning("Unparseable native balance %r for %s; treating as zero", raw, address)
            amount = Decimal(0)
        return NativeBalance(address=address, balance=amount)

    async def submit(self, envelope_xdr: str) -> SubmissionReceipt:
        try:
            result = await self._rpc("sendTransaction", {"transaction": envelope_xdr}, retries=0)
        except (StakehouseHTTPError, RpcError) as exc:
            raise SubmissionError(f"sendTransaction failed: {exc}", cause=exc) from exc

        status = str(result.get("status", "")).upper()
        if status not in _ACCEPTED_SUBMIT_STATUSES:
            reason = describe_failure(result.get("errorResultXdr")) if result.get("errorResultXdr") else status
            raise SubmissionError(f"transaction rejected with status {status}: {reason}", cause=result)
        return SubmissionReceipt(tx_hash=result["hash"], status=status, latest_ledger=result.get("latestLedger"))

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        try:
            result = await self._rpc("getTransaction", {"hash": tx_hash})
        except StakehouseHTTPError as exc:
            raise ConnectivityError(f"getTransaction failed: {exc}") from exc

        status = str(result.get("status", "")).upper()
        if status == "SUCCESS":
            return_value = None
            if result.get("returnValue"):
                return_value = decode_scval(result["returnValue"])
            else:
                return_value = return_value_from_meta(result.get("resultMetaXdr"))
            return TransactionStatus(
                tx_hash=tx_hash,
                status=TxStatus.SUCCESS,
                ledger=result.get("ledger"),
                result_xdr=result.get("resultXdr"),
                return_value=return_value,
            )
        if status == "FAILED":
            return TransactionStatus(
                tx_hash=tx_hash,
                status=TxStatus.FAILED,
                ledger=result.get("ledger"),
                result_xdr=result.get("resultXdr"),
            )
        return TransactionStatus(tx_hash=tx_hash, status=TxStatus.PENDING)

    async def simulate(self, envelope_xdr: str) -> SimulationResult:
        try:
            result = await self._rpc("simulateTransaction", {"transaction": envelope_xdr})
        except StakehouseHTTPError as exc:
            raise ConnectivityError(f"simulateTransaction failed: {exc}") from exc

        results = result.get("results") or []
        first = results[0] if results else {}
        return SimulationResult(
            transaction_data=result.get("transactionData"),
            min_resource_fee=int(result.get("minResourceFee") or 0),
            auth=tuple(first.get("auth") or ()),
            return_value_xdr=first.get("xdr"),
            error=result.get("error"),
            latest_ledger=result.get("latestLedger"),
        )

    async def recent_events(self, contract_address: str, lookback_ledgers: int = 1000, limit: int = 50) -> list[ContractEvent]:
        latest = await self.latest_ledger()
        params = {
            "startLedger": max(1, latest - lookback_ledgers),
            "filters": [{"type": "contract", "contractIds": [contract_address]}],
            "pagination": {"limit": limit},
        }
        try:
            result = await self._rpc("getEvents", params)
        except StakehouseHTTPError as exc:
            raise ConnectivityError(f"getEvents failed: {exc}") from exc

        events: list[ContractEvent] = []
        for item in result.get("events") or []:
            events.append(
                ContractEvent(
                    event_id=str(item.get("id", "")),
                    ledger=int(item.get("ledger", 0)),
                    contract_id=item.get("contractId"),
                    topics=tuple(item.get("topic") or ()),
                    value_xdr=item.get("value"),
                    tx_hash=item.get("txHash"),
                    raw=item,
                )
            )
        return events
