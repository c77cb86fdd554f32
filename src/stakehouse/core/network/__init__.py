from .client import NetworkClient
from .schemas import (
    STROOPS_PER_UNIT,
    Account,
    AssetBalance,
    ContractEvent,
    NativeBalance,
    SimulationResult,
    SubmissionReceipt,
    TransactionStatus,
    TxStatus,
)

__all__ = [
    "NetworkClient",
    "STROOPS_PER_UNIT",
    "Account",
    "AssetBalance",
    "ContractEvent",
    "NativeBalance",
    "SimulationResult",
    "SubmissionReceipt",
    "TransactionStatus",
    "TxStatus",
]
