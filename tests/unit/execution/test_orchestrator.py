"""Tests for approval/action sequencing over the fake chain."""

import asyncio

import pytest

from swapengine.chain import abi
from swapengine.errors import ErrorKind, ProviderError
from swapengine.execution import ReceiptStatus, build_swap_plan
from swapengine.models.quote import QuoteDirection, RouteQuote
from swapengine.models.transaction import TransactionStep
from tests.helpers.constants import ONE, TKA, TOKEN_A, TOKEN_B, USER
from tests.helpers.factories import make_config, make_engine

S = TransactionStep


@pytest.fixture
def router(config):
    return config.router("reachswap").router


@pytest.fixture
def plan(config, router):
    quote = RouteQuote(
        token_in=TOKEN_A,
        token_out=TOKEN_B,
        direction=QuoteDirection.EXACT_IN,
        amount_in=10 * ONE,
        amount_out=19 * ONE,
        slippage_bps=50,
        minimum_received=18 * ONE,
        maximum_input=10 * ONE,
        router="reachswap",
        path=(TOKEN_A.address, TOKEN_B.address),
    )
    return build_swap_plan(quote, router, USER, config)


@pytest.fixture
def funded(chain):
    chain.set_balance(TKA, USER, 100 * ONE)
    return chain


def run(engine, plan, steps=None):
    observers = [lambda s: steps.append(s.step)] if steps is not None else None
    return asyncio.run(engine.orchestrator.run(plan, observers))


class TestHappyPath:
    def test_approve_then_swap(self, funded, engine, plan, router):
        steps = []
        result = run(engine, plan, steps)

        assert result.success and result.confirmed
        assert result.state.history == [S.INPUT, S.APPROVING, S.APPROVED, S.EXECUTING, S.SUCCESS]
        assert [tx.function for tx in funded.sent] == ["approve", "swapExactTokensForTokens"]
        assert result.state.approval_tx_hash == funded.sent[0].tx_hash
        assert result.tx_hash == funded.sent[1].tx_hash
        assert result.state.tx_hashes == [tx.tx_hash for tx in funded.sent]
        assert funded.allowance_of(TKA, USER, router) == 12 * ONE
        assert steps[-1] is S.SUCCESS

    def test_existing_allowance_skips_approval(self, funded, engine, plan, router):
        funded.set_allowance(TKA, USER, router, 12 * ONE)
        result = run(engine, plan)

        assert result.state.history == [S.INPUT, S.EXECUTING, S.SUCCESS]
        assert not result.state.needs_approval
        assert [tx.function for tx in funded.sent] == ["swapExactTokensForTokens"]

    def test_gas_limit_from_estimate(self, funded, engine, plan):
        run(engine, plan)
        assert funded.sent[-1].tx["gas"] == hex(130_000)

    def test_gas_fallback(self, funded, engine, plan, config):
        funded.gas_estimate = None
        result = run(engine, plan)
        assert result.success
        assert funded.sent[0].tx["gas"] == hex(config.gas.approve_fallback)
        assert funded.sent[1].tx["gas"] == hex(config.gas.swap_fallback)


class TestFailures:
    def test_insufficient_balance(self, chain, engine, plan):
        chain.set_balance(TKA, USER, ONE)
        result = run(engine, plan)

        assert not result.success
        assert result.state.error_kind is ErrorKind.INSUFFICIENT_BALANCE
        assert result.error == "Insufficient TKA balance"
        assert chain.sent == []

    def test_user_rejection_is_not_retried(self, funded, engine, plan):
        funded.fail_next("eth_sendTransaction", ProviderError("User denied transaction signature", code=4001))
        result = run(engine, plan)

        assert result.state.error_kind is ErrorKind.USER_REJECTED
        assert result.state.history == [S.INPUT, S.APPROVING, S.ERROR]
        assert len(funded.requests_for("eth_sendTransaction")) == 1

    def test_transient_send_is_retried(self, funded, engine, plan, router):
        funded.set_allowance(TKA, USER, router, 12 * ONE)
        funded.fail_next("eth_sendTransaction", ConnectionError("connection reset by peer"))
        result = run(engine, plan)

        assert result.success
        assert len(funded.requests_for("eth_sendTransaction")) == 2

    def test_revert(self, funded, engine, plan):
        funded.reverting.add("swapExactTokensForTokens")
        result = run(engine, plan)

        assert result.state.error_kind is ErrorKind.TRANSACTION_FAILED
        assert result.tx_hash == funded.sent[-1].tx_hash

    def test_approval_not_reflected(self, funded, engine, plan):
        funded.apply_approvals = False
        result = run(engine, plan)

        assert result.state.error_kind is ErrorKind.INSUFFICIENT_ALLOWANCE
        assert [tx.function for tx in funded.sent] == ["approve"]

    def test_no_account(self, funded, plan):
        engine = make_engine(funded, account=None)
        result = run(engine, plan)
        assert result.state.error_kind is ErrorKind.PROVIDER_UNAVAILABLE
        assert result.error == "Wallet is not connected"


class TestConfirmation:
    def test_pending_is_unconfirmed(self, funded, engine, plan):
        funded.receipt_status = None
        funded.set_allowance(TKA, USER, plan.call.to, 12 * ONE)
        result = run(engine, plan)

        assert result.success
        assert not result.confirmed
        assert result.state.step is S.UNCONFIRMED

    def test_pending_without_optimism_times_out(self, funded, plan):
        engine = make_engine(funded, make_config(optimistic_confirmation=False))
        funded.receipt_status = None
        funded.set_allowance(TKA, USER, plan.call.to, 12 * ONE)
        result = run(engine, plan)

        assert not result.success
        assert result.state.error_kind is ErrorKind.CONFIRMATION_TIMEOUT
        assert result.tx_hash is not None

    def test_receipt_statuses(self, funded, engine):
        funded.receipts["0x01"] = {"status": "0x1"}
        funded.receipts["0x02"] = {"status": "0x0"}
        wait = engine.orchestrator.wait_for_receipt
        assert asyncio.run(wait("0x01")) is ReceiptStatus.CONFIRMED
        assert asyncio.run(wait("0x02")) is ReceiptStatus.REVERTED
        assert asyncio.run(wait("0x03")) is ReceiptStatus.PENDING

    def test_receipt_poll_survives_errors(self, funded, engine):
        funded.receipts["0x01"] = {"status": "0x1"}
        funded.fail_next("eth_getTransactionReceipt", ConnectionError("timeout"))
        assert asyncio.run(engine.orchestrator.wait_for_receipt("0x01")) is ReceiptStatus.CONFIRMED


class TestSingleFlight:
    def test_second_flow_is_rejected(self, funded, engine, plan, router):
        funded.set_allowance(TKA, USER, router, 12 * ONE)

        async def both():
            return await asyncio.gather(engine.orchestrator.run(plan), engine.orchestrator.run(plan))

        first, second = asyncio.run(both())

        assert first.success
        assert second.state.error_kind is ErrorKind.FLOW_IN_PROGRESS
        assert len(funded.sent) == 1

    def test_lock_released_after_flow(self, funded, engine, plan, router):
        funded.set_allowance(TKA, USER, router, 100 * ONE)
        assert run(engine, plan).success
        assert run(engine, plan).success
        assert not engine.context.flight_lock.locked()


def test_approve_calldata(funded, engine, plan, router):
    run(engine, plan)
    spender, amount = abi.APPROVE.decode_input(funded.sent[0].tx["data"])
    assert spender.lower() == router
    assert amount == 12 * ONE
