"""
One distribution cycle, run as a five-step saga:

1. owner balance            (contract read)
2. participant list         (contract read)
3. funded-balance filter    (concurrent balance fan-out)
4. reward rate              (local computation)
5. distribution call        (signed contract invocation, polled to finality)

A connectivity probe gates the whole cycle. Every step either feeds the next or
ends the cycle with a ``Skipped`` or ``CycleError`` value; nothing raised by
the layers below escapes ``run_cycle``. A failed cycle is not retried here,
the next scheduled tick is the retry.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from stellar_sdk import Keypair

from stakehouse.core.errors import ConfigurationError, ConnectivityError, PollingTimeout, StakehouseError
from stakehouse.core.logging import log_context
from stakehouse.core.network.client import NetworkClient
from stakehouse.core.transactions import Failed, TransactionPipeline
from stakehouse.core.transactions.intents import is_account_address

from .apr import DEFAULT_FALLBACK_RATE, compute_apr
from .contract import StakeContract
from .schemas import CycleError, CycleOutcome, DistributionResult, Participant, Skipped, ValidatedParticipant

logger = logging.getLogger(__name__)


class DistributionOrchestrator:
    def __init__(
        self,
        network: NetworkClient,
        pipeline: TransactionPipeline,
        signer: Keypair | None,
        fallback_rate: float = DEFAULT_FALLBACK_RATE,
    ) -> None:
        self.network = network
        self.pipeline = pipeline
        self.signer = signer
        self.fallback_rate = fallback_rate

    async def run_cycle(self, contract_address: str) -> CycleOutcome:
        cycle_id = uuid.uuid4().hex[:12]
        with log_context(cycle_id=cycle_id):
            logger.info("Starting distribution cycle for %s", contract_address)
            try:
                outcome = await self._run(contract_address)
            except Exception as exc:
                logger.exception("Distribution cycle failed unexpectedly")
                outcome = CycleError(cause=exc, message=str(exc))

            if isinstance(outcome, DistributionResult):
                logger.info(
                    "Distributed %s stroops to %s participants",
                    outcome.total_distributed,
                    outcome.participants_rewarded,
                )
            elif isinstance(outcome, Skipped):
                logger.info("Cycle skipped: %s", outcome.reason)
            return outcome

    async def _run(self, contract_address: str) -> CycleOutcome:
        try:
            ledger = await self.network.latest_ledger()
        except ConnectivityError as exc:
            logger.error("Ledger network unreachable, skipping cycle: %s", exc)
            return Skipped("connectivity")
        logger.info("Connected at ledger %s", ledger)

        if self.signer is None:
            return self._error("configuration", ConfigurationError("no distribution signer configured"))
        contract = StakeContract(self.pipeline, contract_address, self.signer)

        try:
            _, owner_balance = await contract.owner_balance()
            participants = await contract.participants()
        except StakehouseError as exc:
            return self._error("reading contract state", exc)

        if not participants:
            return Skipped("no participants")
        logger.info("Found %s participants", len(participants))

        candidates = [participant for participant in participants if is_account_address(participant.address)]
        if len(candidates) < len(participants):
            logger.warning("Dropped %s participants with malformed addresses", len(participants) - len(candidates))
        if not candidates:
            return Skipped("no valid participants")

        try:
            funded = await self._funded(candidates)
        except StakehouseError as exc:
            return self._error("checking participant balances", exc)
        if not funded:
            return Skipped("no funded participants")
        logger.info("%s of %s participants hold a native balance", len(funded), len(candidates))

        total_stakes = sum(participant.stake for participant in participants)
        apr = compute_apr(owner_balance, total_stakes, self.fallback_rate)
        logger.info("APR %.2f%% (daily %.4f%%) over %s staked stroops", apr.rate * 100, apr.daily_rate * 100, total_stakes)

        addresses = tuple(participant.address for participant in funded)
        try:
            result = await contract.distribute(addresses, apr)
        except PollingTimeout as exc:
            logger.warning("Distribution outcome unknown: %s", exc)
            return CycleError(cause=exc, message=str(exc), ambiguous=True, tx_hash=exc.tx_hash)
        except StakehouseError as exc:
            return self._error("distributing", exc)

        if isinstance(result, Failed):
            return self._error("distributing", result.to_error(), tx_hash=result.tx_hash)

        payload = result.result_payload
        total = payload if isinstance(payload, int) and not isinstance(payload, bool) else 0
        return DistributionResult(
            total_distributed=total,
            participants_rewarded=len(funded),
            tx_hash=result.tx_hash,
            participants=addresses,
        )

    async def _funded(self, participants: list[Participant]) -> list[ValidatedParticipant]:
        balances = await asyncio.gather(*(self.network.get_balance(participant.address) for participant in participants))
        return [
            ValidatedParticipant(address=participant.address, stake=participant.stake, balance=balance.balance)
            for participant, balance in zip(participants, balances)
            if balance.has_balance
        ]

    @staticmethod
    def _error(step: str, exc: StakehouseError, tx_hash: str | None = None) -> CycleError:
        logger.error("Cycle failed while %s: %s", step, exc)
        return CycleError(cause=exc, message=f"{step}: {exc}", tx_hash=tx_hash)
