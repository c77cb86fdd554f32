from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Union

from stakehouse.core.network.schemas import STROOPS_PER_UNIT


@dataclass(frozen=True)
class Participant:
    address: str
    stake: int


@dataclass(frozen=True)
class ValidatedParticipant:
    address: str
    stake: int
    balance: Decimal


@dataclass(frozen=True)
class AprData:
    rate: float
    daily_rate: float
    owner_balance: int
    total_stakes: int

    def scaled_daily_rate(self) -> int:
        # Contract arithmetic is integer; carry the rate at stroop precision.
        return int(round(self.daily_rate * STROOPS_PER_UNIT))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DistributionResult:
    total_distributed: int
    participants_rewarded: int
    timestamp: datetime = field(default_factory=_utc_now)
    tx_hash: str | None = None
    participants: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": "distributed",
            "total_distributed": self.total_distributed,
            "participants_rewarded": self.participants_rewarded,
            "timestamp": self.timestamp.isoformat(),
            "tx_hash": self.tx_hash,
            "participants": list(self.participants),
        }


@dataclass(frozen=True)
class Skipped:
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": "skipped", "reason": self.reason}


@dataclass(frozen=True)
class CycleError:
    """A cycle that stopped on an error. ``ambiguous`` means the outcome is unknown."""

    cause: BaseException
    message: str
    ambiguous: bool = False
    tx_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": "error",
            "error": type(self.cause).__name__,
            "message": self.message,
            "ambiguous": self.ambiguous,
            "tx_hash": self.tx_hash,
        }


CycleOutcome = Union[DistributionResult, Skipped, CycleError]
