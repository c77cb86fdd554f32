from __future__ import annotations

import pytest
from stellar_sdk import Keypair, SorobanDataBuilder, TransactionEnvelope

from fakes import CONTRACT_ADDRESS, PASSPHRASE, FakeNetwork, new_address
from stakehouse.core.errors import (
    AccountNotFunded,
    BuildError,
    ConnectivityError,
    KeyMismatchError,
    PollingTimeout,
    PreparationError,
    RpcError,
)
from stakehouse.core.network.schemas import SimulationResult, SubmissionReceipt, TxStatus
from stakehouse.core.transactions import Confirmed, ContractArg, ContractInvocation, Failed, Payment, TransactionPipeline


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _pipeline(network: FakeNetwork, sleep: RecordingSleep | None = None, max_attempts: int = 30) -> TransactionPipeline:
    return TransactionPipeline(network, PASSPHRASE, sleep=sleep or RecordingSleep(), max_attempts=max_attempts)


@pytest.mark.asyncio
async def test_build_payment_uses_fixed_fee_and_next_sequence() -> None:
    network = FakeNetwork(sequence=100)
    source = Keypair.random()
    built = await _pipeline(network).build(source.public_key, Payment(destination=new_address(), amount=25_000_000))

    envelope = built.envelope()
    assert built.sequence == 101
    assert envelope.transaction.sequence == 101
    assert envelope.transaction.fee == 100
    assert len(envelope.transaction.operations) == 1
    assert envelope.transaction.preconditions.time_bounds.max_time > 0


@pytest.mark.asyncio
async def test_build_rejects_malformed_destination_before_fetching_account() -> None:
    network = FakeNetwork()
    with pytest.raises(BuildError):
        await _pipeline(network).build(Keypair.random().public_key, Payment(destination="GBAD", amount=10))
    assert network.calls == []


@pytest.mark.asyncio
async def test_build_rejects_malformed_contract_address() -> None:
    network = FakeNetwork()
    invocation = ContractInvocation(contract_address="CNOTACONTRACT", function_name="distribute")
    with pytest.raises(BuildError):
        await _pipeline(network).build(Keypair.random().public_key, invocation)


@pytest.mark.asyncio
async def test_build_rejects_malformed_address_argument() -> None:
    network = FakeNetwork()
    invocation = ContractInvocation(CONTRACT_ADDRESS, "balance_of", (ContractArg.address("nobody"),))
    with pytest.raises(BuildError):
        await _pipeline(network).build(Keypair.random().public_key, invocation)


@pytest.mark.asyncio
async def test_prepare_payment_skips_simulation() -> None:
    network = FakeNetwork()
    pipeline = _pipeline(network)
    built = await pipeline.build(Keypair.random().public_key, Payment(destination=new_address(), amount=10))
    prepared = await pipeline.prepare(built)

    assert "simulate" not in network.calls
    assert prepared.tx_hash == built.envelope().hash_hex()
    assert prepared.resource_fee == 0


@pytest.mark.asyncio
async def test_prepare_invocation_surfaces_simulation_failure() -> None:
    network = FakeNetwork(simulation=SimulationResult(transaction_data=None, min_resource_fee=0, error="HostError: contract panicked"))
    pipeline = _pipeline(network)
    invocation = ContractInvocation(CONTRACT_ADDRESS, "distribute", (ContractArg.i128(1),))
    built = await pipeline.build(Keypair.random().public_key, invocation)

    with pytest.raises(PreparationError) as excinfo:
        await pipeline.prepare(built)
    assert "contract panicked" in str(excinfo.value)


@pytest.mark.asyncio
async def test_sign_requires_matching_key_and_leaves_prepared_untouched() -> None:
    network = FakeNetwork()
    pipeline = _pipeline(network)
    source = Keypair.random()
    built = await pipeline.build(source.public_key, Payment(destination=new_address(), amount=10))
    prepared = await pipeline.prepare(built)

    with pytest.raises(KeyMismatchError):
        pipeline.sign(prepared, Keypair.random())

    signed = pipeline.sign(prepared, source)
    assert signed.signers == (source.public_key,)
    assert signed.tx_hash == prepared.tx_hash
    assert len(prepared.envelope().signatures) == 0


@pytest.mark.asyncio
async def test_confirm_polls_at_fixed_interval_until_success() -> None:
    network = FakeNetwork(statuses=[TxStatus.PENDING, TxStatus.PENDING, TxStatus.SUCCESS])
    sleep = RecordingSleep()
    result = await _pipeline(network, sleep).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))

    assert isinstance(result, Confirmed)
    assert result.ledger_sequence == 777
    assert sleep.delays == [2.0, 2.0]
    assert network.calls.count("get_transaction_status") == 3


@pytest.mark.asyncio
async def test_confirm_returns_failed_immediately_without_resubmitting() -> None:
    network = FakeNetwork(statuses=[TxStatus.FAILED])
    sleep = RecordingSleep()
    result = await _pipeline(network, sleep).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))

    assert isinstance(result, Failed)
    assert result.reason
    assert sleep.delays == []
    assert "submit" not in network.calls
    assert result.to_error().tx_hash == "ab" * 32


@pytest.mark.asyncio
async def test_confirm_times_out_after_attempt_budget() -> None:
    network = FakeNetwork()
    sleep = RecordingSleep()
    with pytest.raises(PollingTimeout) as excinfo:
        await _pipeline(network, sleep, max_attempts=4).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))

    assert excinfo.value.attempts == 4
    assert network.calls.count("get_transaction_status") == 4
    assert len(sleep.delays) == 3


@pytest.mark.asyncio
async def test_confirm_counts_transient_errors_as_attempts() -> None:
    network = FakeNetwork(statuses=[ConnectivityError("down"), TxStatus.SUCCESS])
    result = await _pipeline(network).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))

    assert isinstance(result, Confirmed)
    assert network.calls.count("get_transaction_status") == 2


@pytest.mark.asyncio
async def test_confirm_keeps_polling_through_rpc_errors() -> None:
    network = FakeNetwork(statuses=[RpcError("internal", code=-32603), TxStatus.SUCCESS])
    sleep = RecordingSleep()
    result = await _pipeline(network, sleep).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))

    assert isinstance(result, Confirmed)
    assert network.calls.count("get_transaction_status") == 2
    assert sleep.delays == [2.0]


@pytest.mark.asyncio
async def test_confirm_times_out_when_every_poll_errors() -> None:
    network = FakeNetwork(statuses=[RpcError("internal", code=-32603)])
    with pytest.raises(PollingTimeout):
        await _pipeline(network, max_attempts=3).confirm(SubmissionReceipt(tx_hash="ab" * 32, status="PENDING"))
    assert network.calls.count("get_transaction_status") == 3


@pytest.mark.asyncio
async def test_prepare_and_sign_contract_invocation() -> None:
    soroban_data = SorobanDataBuilder().set_resource_fee(5_000).build().to_xdr()
    network = FakeNetwork(simulation=SimulationResult(transaction_data=soroban_data, min_resource_fee=5_000))
    pipeline = _pipeline(network)
    source = Keypair.random()
    invocation = ContractInvocation(
        CONTRACT_ADDRESS,
        "distribute",
        (ContractArg.vec([ContractArg.address(new_address())]), ContractArg.i128(13_698)),
    )
    built = await pipeline.build(source.public_key, invocation)
    prepared = await pipeline.prepare(built)
    signed = pipeline.sign(prepared, source)

    envelope = prepared.envelope()
    assert envelope.transaction.fee == 100 + 5_000
    assert envelope.transaction.soroban_data is not None
    assert prepared.resource_fee == 5_000
    assert prepared.footprint_xdr == soroban_data
    assert prepared.tx_hash == envelope.hash_hex()
    assert prepared.tx_hash != built.envelope().hash_hex()

    signed_envelope = TransactionEnvelope.from_xdr(signed.envelope_xdr, PASSPHRASE)
    assert len(signed_envelope.signatures) == 1
    assert signed_envelope.hash_hex() == prepared.tx_hash


@pytest.mark.asyncio
async def test_execute_payment_submits_once_and_confirms() -> None:
    network = FakeNetwork(statuses=[TxStatus.SUCCESS])
    source = Keypair.random()
    result = await _pipeline(network).execute(source.public_key, Payment(destination=new_address(), amount=10), source)

    assert isinstance(result, Confirmed)
    assert len(network.submitted) == 1
    assert network.calls == ["get_account", "submit", "get_transaction_status"]


@pytest.mark.asyncio
async def test_build_rejects_source_without_native_balance() -> None:
    network = FakeNetwork(source_balance="0")
    source = Keypair.random().public_key
    with pytest.raises(AccountNotFunded) as excinfo:
        await _pipeline(network).build(source, Payment(destination=new_address(), amount=10))
    assert excinfo.value.address == source
