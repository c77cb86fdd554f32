from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from stellar_sdk import TransactionEnvelope

from stakehouse.core.errors import TransactionFailed

from .intents import TransactionIntent


@dataclass(frozen=True)
class UnsignedTransaction:
    intent: TransactionIntent
    source_address: str
    sequence: int
    envelope_xdr: str
    network_passphrase: str

    def envelope(self) -> TransactionEnvelope:
        return TransactionEnvelope.from_xdr(self.envelope_xdr, self.network_passphrase)


@dataclass(frozen=True)
class PreparedTransaction:
    intent: TransactionIntent
    source_address: str
    envelope_xdr: str
    tx_hash: str
    network_passphrase: str
    resource_fee: int = 0
    footprint_xdr: str | None = None

    def envelope(self) -> TransactionEnvelope:
        return TransactionEnvelope.from_xdr(self.envelope_xdr, self.network_passphrase)


@dataclass(frozen=True)
class SignedTransaction:
    prepared: PreparedTransaction
    envelope_xdr: str
    signers: tuple[str, ...]

    @property
    def tx_hash(self) -> str:
        return self.prepared.tx_hash


@dataclass(frozen=True)
class Confirmed:
    tx_hash: str
    ledger_sequence: int | None
    result_payload: Any = None
    result_xdr: str | None = None


@dataclass(frozen=True)
class Failed:
    tx_hash: str
    reason: str
    result_xdr: str | None = None

    def to_error(self) -> TransactionFailed:
        return TransactionFailed(self.tx_hash, self.reason)


ConfirmationResult = Union[Confirmed, Failed]
