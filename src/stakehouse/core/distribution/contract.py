"""
Typed facade over the stake contract.

Reads are read-only simulations sourced from the distribution signer; writes go
through the full transaction pipeline and are signed by the same key.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from stellar_sdk import Keypair

from stakehouse.core.errors import PreparationError
from stakehouse.core.transactions import ConfirmationResult, ContractArg, ContractInvocation, TransactionPipeline
from stakehouse.core.transactions.intents import is_account_address

from .schemas import AprData, Participant

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer contract value %r", value)
        return 0


class StakeContract:
    def __init__(self, pipeline: TransactionPipeline, contract_address: str, signer: Keypair) -> None:
        self.pipeline = pipeline
        self.contract_address = contract_address
        self.signer = signer

    @property
    def source_address(self) -> str:
        return self.signer.public_key

    def invocation(self, function_name: str, *arguments: ContractArg) -> ContractInvocation:
        return ContractInvocation(self.contract_address, function_name, tuple(arguments))

    async def call(self, function_name: str, *arguments: ContractArg) -> Any:
        return await self.pipeline.simulate_call(self.source_address, self.invocation(function_name, *arguments))

    async def invoke(self, function_name: str, *arguments: ContractArg) -> ConfirmationResult:
        return await self.pipeline.execute(self.source_address, self.invocation(function_name, *arguments), self.signer)

    async def get_owner(self) -> str:
        return str(await self.call("get_owner"))

    async def balance_of(self, address: str) -> int:
        return _to_int(await self.call("balance_of", ContractArg.address(address)))

    async def owner_balance(self) -> tuple[str, int]:
        owner = await self.get_owner()
        balance = await self.balance_of(owner)
        logger.info("Owner %s holds %s stroops", owner, balance)
        return owner, balance

    async def staked_amount(self, address: str) -> int:
        try:
            return _to_int(await self.call("get_staked_amount", ContractArg.address(address)))
        except PreparationError as exc:
            logger.warning("No stake readable for %s: %s", address, exc)
            return 0

    async def participants(self) -> list[Participant]:
        raw = await self.call("get_participants")
        participants: list[Participant] = []
        for entry in raw or []:
            if isinstance(entry, str):
                stake = await self.staked_amount(entry) if is_account_address(entry) else 0
                participants.append(Participant(address=entry, stake=stake))
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                participants.append(Participant(address=str(entry[0]), stake=_to_int(entry[1])))
            elif isinstance(entry, dict) and "address" in entry:
                participants.append(Participant(address=str(entry["address"]), stake=_to_int(entry.get("stake"))))
            else:
                logger.warning("Skipping unrecognised participant entry %r", entry)
        return participants

    async def distribute(self, addresses: Iterable[str], apr: AprData) -> ConfirmationResult:
        participants = ContractArg.vec([ContractArg.address(address) for address in addresses])
        return await self.invoke("distribute", participants, ContractArg.i128(apr.scaled_daily_rate()))

    async def transfer_from(self, spender: str, from_address: str, to_address: str, amount: int) -> ConfirmationResult:
        return await self.invoke(
            "transfer_from",
            ContractArg.address(spender),
            ContractArg.address(from_address),
            ContractArg.address(to_address),
            ContractArg.i128(amount),
        )

    async def transfer_from_xlm_sac(self, from_address: str, to_address: str, amount: int) -> ConfirmationResult:
        return await self.invoke(
            "transfer_from_xlm_sac",
            ContractArg.address(from_address),
            ContractArg.address(to_address),
            ContractArg.i128(amount),
        )
