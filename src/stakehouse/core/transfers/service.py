from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from stellar_sdk import Keypair

from stakehouse.core.distribution.contract import StakeContract
from stakehouse.core.errors import ConfigurationError, ConnectivityError
from stakehouse.core.network.client import NetworkClient
from stakehouse.core.transactions import ConfirmationResult, Failed, TransactionPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferReceipt:
    function: str
    tx_hash: str
    ledger: int | None
    from_address: str
    to_address: str
    amount: int
    spender: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.function,
            "hash": self.tx_hash,
            "ledger": self.ledger,
            "from": self.from_address,
            "to": self.to_address,
            "amount": str(self.amount),
        }
        if self.spender is not None:
            payload["spender"] = self.spender
        return payload


class TransferService:
    """Allowance-based transfers through the stake contract, signed by the distribution signer."""

    def __init__(
        self,
        network: NetworkClient,
        pipeline: TransactionPipeline,
        *,
        network_name: str,
        contract_address: str | None,
        signer: Keypair | None,
    ) -> None:
        self.network = network
        self.pipeline = pipeline
        self.network_name = network_name
        self.contract_address = contract_address
        self.signer = signer

    def _contract(self) -> StakeContract:
        if not self.contract_address:
            raise ConfigurationError("STAKEHOUSE_CONTRACT_ADDRESS is not set")
        if self.signer is None:
            raise ConfigurationError("STAKEHOUSE_SIGNER_SECRET is not set; transfers need the distribution signer")
        return StakeContract(self.pipeline, self.contract_address, self.signer)

    async def check_connection(self) -> dict[str, Any]:
        try:
            ledger = await self.network.latest_ledger()
        except ConnectivityError as exc:
            logger.warning("Connection check failed: %s", exc)
            return {"connected": False, "network": self.network_name, "error": str(exc)}
        return {
            "connected": True,
            "network": self.network_name,
            "rpc_url": self.network.rpc_url,
            "latest_ledger": ledger,
        }

    async def transfer_from(self, spender: str, from_address: str, to_address: str, amount: int) -> TransferReceipt:
        logger.info("transfer_from %s -> %s (%s stroops, spender %s)", from_address, to_address, amount, spender)
        result = await self._contract().transfer_from(spender, from_address, to_address, amount)
        return self._receipt("transfer_from", result, from_address, to_address, amount, spender=spender)

    async def transfer_from_xlm_sac(self, from_address: str, to_address: str, amount: int) -> TransferReceipt:
        logger.info("transfer_from_xlm_sac %s -> %s (%s stroops)", from_address, to_address, amount)
        result = await self._contract().transfer_from_xlm_sac(from_address, to_address, amount)
        return self._receipt("transfer_from_xlm_sac", result, from_address, to_address, amount)

    @staticmethod
    def _receipt(
        function: str,
        result: ConfirmationResult,
        from_address: str,
        to_address: str,
        amount: int,
        spender: str | None = None,
    ) -> TransferReceipt:
        if isinstance(result, Failed):
            raise result.to_error()
        logger.info("%s confirmed in ledger %s", function, result.ledger_sequence)
        return TransferReceipt(
            function=function,
            tx_hash=result.tx_hash,
            ledger=result.ledger_sequence,
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            spender=spender,
        )
