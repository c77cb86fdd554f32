from __future__ import annotations


class StakehouseError(RuntimeError):
    """Base error for every failure the core classifies."""


class ConfigurationError(StakehouseError):
    """Raised at startup when process configuration is unusable."""


class ConnectivityError(StakehouseError):
    """The ledger network could not be reached."""


class RpcError(StakehouseError):
    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class AccountNotFound(StakehouseError):
    def __init__(self, address: str) -> None:
        super().__init__(f"account {address} does not exist on the ledger; fund it with the minimum reserve first")
        self.address = address


class AccountNotFunded(StakehouseError):
    def __init__(self, address: str) -> None:
        super().__init__(f"account {address} holds no native balance")
        self.address = address


class BuildError(StakehouseError):
    """The transaction intent could not be turned into an envelope."""


class PreparationError(StakehouseError):
    """Simulation rejected the transaction (it would fail or revert)."""


class KeyMismatchError(StakehouseError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"signing key {actual} does not match transaction source {expected}")
        self.expected = expected
        self.actual = actual


class SubmissionError(StakehouseError):
    def __init__(self, message: str, cause: object | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransactionFailed(StakehouseError):
    def __init__(self, tx_hash: str, reason: str) -> None:
        super().__init__(f"transaction {tx_hash} failed: {reason}")
        self.tx_hash = tx_hash
        self.reason = reason


class PollingTimeout(StakehouseError):
    """No terminal status within the attempt budget. The outcome is unknown, not failed."""

    def __init__(self, tx_hash: str, attempts: int) -> None:
        super().__init__(f"transaction {tx_hash} not final after {attempts} status checks")
        self.tx_hash = tx_hash
        self.attempts = attempts
