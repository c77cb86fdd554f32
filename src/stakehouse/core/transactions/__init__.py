from .intents import ContractArg, ContractInvocation, Payment, TransactionIntent
from .pipeline import BASE_FEE, MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS, TX_TIMEOUT_SECONDS, TransactionPipeline
from .schemas import ConfirmationResult, Confirmed, Failed, PreparedTransaction, SignedTransaction, UnsignedTransaction

__all__ = [
    "BASE_FEE",
    "MAX_POLL_ATTEMPTS",
    "POLL_INTERVAL_SECONDS",
    "TX_TIMEOUT_SECONDS",
    "ConfirmationResult",
    "Confirmed",
    "ContractArg",
    "ContractInvocation",
    "Failed",
    "Payment",
    "PreparedTransaction",
    "SignedTransaction",
    "TransactionIntent",
    "TransactionPipeline",
    "UnsignedTransaction",
]
