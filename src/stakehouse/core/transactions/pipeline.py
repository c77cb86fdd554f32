"""
Transaction lifecycle: build -> prepare -> sign -> submit -> poll to finality.

Each stage returns a new immutable record (``schemas``); nothing is mutated in
place, so a prepared transaction can be signed more than once and a failed
stage never corrupts the previous one.

Polling is a fixed-interval, bounded loop on the event loop: ``max_attempts``
status checks ``poll_interval`` seconds apart. A terminal FAILED status ends
the loop immediately and the transaction is never resubmitted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from stellar_sdk import Account as SdkAccount
from stellar_sdk import InvokeHostFunction, Keypair, TransactionBuilder
from stellar_sdk import xdr as stellar_xdr

from stakehouse.core.errors import (
    AccountNotFunded,
    BuildError,
    ConnectivityError,
    KeyMismatchError,
    PollingTimeout,
    PreparationError,
    RpcError,
)
from stakehouse.core.logging import log_context
from stakehouse.core.network.client import NetworkClient
from stakehouse.core.network.decode import decode_scval, describe_failure
from stakehouse.core.network.schemas import SubmissionReceipt, TxStatus, stroops_to_units

from .intents import ContractInvocation, Payment, TransactionIntent, is_account_address
from .schemas import ConfirmationResult, Confirmed, Failed, PreparedTransaction, SignedTransaction, UnsignedTransaction

logger = logging.getLogger(__name__)

BASE_FEE = 100
TX_TIMEOUT_SECONDS = 30
POLL_INTERVAL_SECONDS = 2.0
MAX_POLL_ATTEMPTS = 30


class TransactionPipeline:
    def __init__(
        self,
        network: NetworkClient,
        network_passphrase: str,
        *,
        base_fee: int = BASE_FEE,
        timeout_seconds: int = TX_TIMEOUT_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.network = network
        self.network_passphrase = network_passphrase
        self.base_fee = base_fee
        self.timeout_seconds = timeout_seconds
        self.poll_interval = poll_interval
        self.max_attempts = max(1, max_attempts)
        self._sleep = sleep

    async def build(self, source_address: str, intent: TransactionIntent) -> UnsignedTransaction:
        if not is_account_address(source_address):
            raise BuildError(f"malformed source account: {source_address!r}")
        intent.validate()

        account = await self.network.get_account(source_address)
        if account.balances and account.native_balance() <= 0:
            raise AccountNotFunded(source_address)
        builder = TransactionBuilder(
            source_account=SdkAccount(account.address, account.sequence),
            network_passphrase=self.network_passphrase,
            base_fee=self.base_fee,
        )
        try:
            if isinstance(intent, Payment):
                builder.append_payment_op(
                    destination=intent.destination,
                    asset=intent.stellar_asset(),
                    amount=stroops_to_units(intent.amount),
                )
            else:
                builder.append_invoke_contract_function_op(
                    contract_id=intent.contract_address,
                    function_name=intent.function_name,
                    parameters=intent.parameters(),
                )
            envelope = builder.set_timeout(self.timeout_seconds).build()
        except ValueError as exc:
            raise BuildError(f"could not build transaction: {exc}") from exc

        logger.info("Built %s transaction from %s at sequence %s", type(intent).__name__, source_address, account.sequence + 1)
        return UnsignedTransaction(
            intent=intent,
            source_address=source_address,
            sequence=account.sequence + 1,
            envelope_xdr=envelope.to_xdr(),
            network_passphrase=self.network_passphrase,
        )

    async def prepare(self, built: UnsignedTransaction) -> PreparedTransaction:
        envelope = built.envelope()
        if isinstance(built.intent, Payment):
            return PreparedTransaction(
                intent=built.intent,
                source_address=built.source_address,
                envelope_xdr=envelope.to_xdr(),
                tx_hash=envelope.hash_hex(),
                network_passphrase=built.network_passphrase,
            )

        simulation = await self.network.simulate(built.envelope_xdr)
        if simulation.error:
            raise PreparationError(f"simulation of {built.intent.function_name} failed: {simulation.error}")
        if not simulation.transaction_data:
            raise PreparationError(f"simulation of {built.intent.function_name} returned no resource footprint")

        try:
            transaction = envelope.transaction
            transaction.soroban_data = stellar_xdr.SorobanTransactionData.from_xdr(simulation.transaction_data)
            transaction.fee += simulation.min_resource_fee
            operation = transaction.operations[0]
            if isinstance(operation, InvokeHostFunction) and not operation.auth:
                operation.auth = [stellar_xdr.SorobanAuthorizationEntry.from_xdr(entry) for entry in simulation.auth]
        except ValueError as exc:
            raise PreparationError(f"could not apply simulation result: {exc}") from exc

        tx_hash = envelope.hash_hex()
        logger.info("Prepared %s (resource fee %s stroops)", tx_hash, simulation.min_resource_fee)
        return PreparedTransaction(
            intent=built.intent,
            source_address=built.source_address,
            envelope_xdr=envelope.to_xdr(),
            tx_hash=tx_hash,
            network_passphrase=built.network_passphrase,
            resource_fee=simulation.min_resource_fee,
            footprint_xdr=simulation.transaction_data,
        )

    def sign(self, prepared: PreparedTransaction, signing_key: Keypair) -> SignedTransaction:
        if signing_key.public_key != prepared.source_address:
            raise KeyMismatchError(expected=prepared.source_address, actual=signing_key.public_key)
        envelope = prepared.envelope()
        envelope.sign(signing_key)
        return SignedTransaction(prepared=prepared, envelope_xdr=envelope.to_xdr(), signers=(signing_key.public_key,))

    async def submit(self, signed: SignedTransaction) -> SubmissionReceipt:
        with log_context(tx_hash=signed.tx_hash):
            receipt = await self.network.submit(signed.envelope_xdr)
            if receipt.tx_hash != signed.tx_hash:
                logger.warning("Network reported hash %s for submitted transaction %s", receipt.tx_hash, signed.tx_hash)
            logger.info("Submitted transaction (status %s)", receipt.status)
            return receipt

    async def confirm(self, receipt: SubmissionReceipt) -> ConfirmationResult:
        with log_context(tx_hash=receipt.tx_hash):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    status = await self.network.get_transaction_status(receipt.tx_hash)
                except (ConnectivityError, RpcError) as exc:
                    logger.warning("Status check %s/%s failed: %s", attempt, self.max_attempts, exc)
                else:
                    if status.status is TxStatus.SUCCESS:
                        logger.info("Transaction confirmed in ledger %s", status.ledger)
                        return Confirmed(
                            tx_hash=receipt.tx_hash,
                            ledger_sequence=status.ledger,
                            result_payload=status.return_value,
                            result_xdr=status.result_xdr,
                        )
                    if status.status is TxStatus.FAILED:
                        reason = describe_failure(status.result_xdr)
                        logger.error("Transaction failed: %s", reason)
                        return Failed(tx_hash=receipt.tx_hash, reason=reason, result_xdr=status.result_xdr)

                if attempt < self.max_attempts:
                    await self._sleep(self.poll_interval)

            logger.warning("Transaction not final after %s status checks", self.max_attempts)
            raise PollingTimeout(receipt.tx_hash, self.max_attempts)

    async def submit_and_confirm(self, signed: SignedTransaction) -> ConfirmationResult:
        receipt = await self.submit(signed)
        return await self.confirm(receipt)

    async def execute(self, source_address: str, intent: TransactionIntent, signing_key: Keypair) -> ConfirmationResult:
        built = await self.build(source_address, intent)
        prepared = await self.prepare(built)
        signed = self.sign(prepared, signing_key)
        return await self.submit_and_confirm(signed)

    async def simulate_call(self, source_address: str, invocation: ContractInvocation) -> Any:
        """Run a read-only contract call and return its decoded value."""
        built = await self.build(source_address, invocation)
        simulation = await self.network.simulate(built.envelope_xdr)
        if simulation.error:
            raise PreparationError(f"{invocation.function_name} simulation failed: {simulation.error}")
        if simulation.return_value_xdr is None:
            return None
        return decode_scval(simulation.return_value_xdr)
