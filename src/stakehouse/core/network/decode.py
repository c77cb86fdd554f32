"""
XDR helpers shared by the network client and the transaction pipeline.

Everything that turns base64 XDR coming back from the RPC into plain Python
values lives here, so callers never touch raw ``stellar_sdk.xdr`` objects.
"""

from __future__ import annotations

import logging
from typing import Any

from stellar_sdk import Address, Keypair, scval
from stellar_sdk import xdr as stellar_xdr

from .schemas import Account, AssetBalance, stroops_to_units

logger = logging.getLogger(__name__)

_TX_CODE_HINTS = {
    "txFAILED": "one or more operations failed",
    "txTOO_EARLY": "ledger closed before the validity window opened",
    "txTOO_LATE": "validity window expired before inclusion",
    "txMISSING_OPERATION": "no operation in transaction",
    "txBAD_SEQ": "sequence number mismatch",
    "txBAD_AUTH": "missing or invalid signature",
    "txINSUFFICIENT_BALANCE": "fee would drop the source below its reserve",
    "txNO_ACCOUNT": "source account not found",
    "txINSUFFICIENT_FEE": "fee too small",
    "txINTERNAL_ERROR": "internal network error",
    "txSOROBAN_INVALID": "soroban resource data invalid",
}


def account_ledger_key(address: str) -> str:
    """Base64 ``LedgerKey`` for an account; raises on a malformed address."""
    key = stellar_xdr.LedgerKey(
        type=stellar_xdr.LedgerEntryType.ACCOUNT,
        account=stellar_xdr.LedgerKeyAccount(account_id=Keypair.from_public_key(address).xdr_account_id()),
    )
    return key.to_xdr()


def decode_account_entry(address: str, entry_xdr: str) -> Account:
    data = stellar_xdr.LedgerEntryData.from_xdr(entry_xdr)
    entry = data.account
    return Account(
        address=address,
        sequence=entry.seq_num.sequence_number.int64,
        balances=(AssetBalance(asset="native", balance=stroops_to_units(entry.balance.int64)),),
    )


def to_plain(value: Any) -> Any:
    """Normalise ``scval.to_native`` output: addresses become strkeys, containers recurse."""
    if isinstance(value, Address):
        return value.address
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    if isinstance(value, tuple):
        return tuple(to_plain(item) for item in value)
    if isinstance(value, dict):
        return {to_plain(key): to_plain(item) for key, item in value.items()}
    return value


def decode_scval(value: str | stellar_xdr.SCVal) -> Any:
    sc_val = stellar_xdr.SCVal.from_xdr(value) if isinstance(value, str) else value
    return to_plain(scval.to_native(sc_val))


def return_value_from_meta(meta_xdr: str | None) -> Any:
    if not meta_xdr:
        return None
    try:
        meta = stellar_xdr.TransactionMeta.from_xdr(meta_xdr)
        for version in ("v4", "v3"):
            body = getattr(meta, version, None)
            soroban_meta = getattr(body, "soroban_meta", None) if body is not None else None
            if soroban_meta is not None and soroban_meta.return_value is not None:
                return decode_scval(soroban_meta.return_value)
    except Exception as exc:
        logger.debug("Could not decode transaction meta: %s", exc)
    return None


def _operation_code(op_result: stellar_xdr.OperationResult) -> str:
    if op_result.code != stellar_xdr.OperationResultCode.opINNER or op_result.tr is None:
        return op_result.code.name
    for name, value in vars(op_result.tr).items():
        if name == "type" or value is None:
            continue
        code = getattr(value, "code", None)
        if code is not None:
            return code.name
    return op_result.tr.type.name


def describe_failure(result_xdr: str | None) -> str:
    """Best-effort human-readable reason for a failed transaction result."""
    if not result_xdr:
        return "transaction failed without a result payload"
    try:
        result = stellar_xdr.TransactionResult.from_xdr(result_xdr)
        code = result.result.code.name
        op_codes = [_operation_code(op) for op in (result.result.results or [])]
    except Exception as exc:
        logger.debug("Could not decode result XDR: %s", exc)
        return f"transaction failed (undecodable result {result_xdr[:32]}...)"

    reason = f"{code}: {_TX_CODE_HINTS.get(code, 'rejected by the network')}"
    if op_codes:
        reason += f" (operations: {', '.join(op_codes)})"
    return reason
