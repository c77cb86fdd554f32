from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

STROOPS_PER_UNIT = 10_000_000


def stroops_to_units(stroops: int) -> Decimal:
    return Decimal(stroops) / Decimal(STROOPS_PER_UNIT)


def units_to_stroops(units: Decimal | str) -> int:
    return int(Decimal(units) * STROOPS_PER_UNIT)


@dataclass(frozen=True)
class AssetBalance:
    asset: str
    balance: Decimal


@dataclass(frozen=True)
class Account:
    address: str
    sequence: int
    balances: tuple[AssetBalance, ...] = ()

    def native_balance(self) -> Decimal:
        for entry in self.balances:
            if entry.asset == "native":
                return entry.balance
        return Decimal(0)


@dataclass(frozen=True)
class NativeBalance:
    address: str
    balance: Decimal

    @property
    def stroops(self) -> int:
        return units_to_stroops(self.balance)

    @property
    def has_balance(self) -> bool:
        return self.balance > 0


class TxStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionStatus:
    tx_hash: str
    status: TxStatus
    ledger: int | None = None
    result_xdr: str | None = None
    return_value: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not TxStatus.PENDING


@dataclass(frozen=True)
class SubmissionReceipt:
    tx_hash: str
    status: str
    latest_ledger: int | None = None


@dataclass(frozen=True)
class SimulationResult:
    transaction_data: str | None
    min_resource_fee: int
    auth: tuple[str, ...] = ()
    return_value_xdr: str | None = None
    error: str | None = None
    latest_ledger: int | None = None


@dataclass(frozen=True)
class ContractEvent:
    event_id: str
    ledger: int
    contract_id: str | None
    topics: tuple[str, ...] = ()
    value_xdr: str | None = None
    tx_hash: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
