"""Approval and action sequencing.

TransactionOrchestrator runs one ActionPlan through the state machine:

    input -> [approving -> approved] -> executing -> success | unconfirmed
                     \\                       \\
                      +-------> error <-------+

Within a flow every step is strictly sequential: an approval is confirmed and
the allowance re-read before the action is sent. Only one flow may run per
wallet connection at a time.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from swapengine.chain import abi
from swapengine.chain.client import ChainClient
from swapengine.chain.retry import retry_async
from swapengine.constants import BPS_DENOMINATOR
from swapengine.errors import (
    ConfirmationTimeout,
    FlowInProgress,
    InsufficientAllowance,
    InsufficientBalance,
    InvalidTransition,
    SwapEngineError,
    TransactionFailed,
    classify_error,
)
from swapengine.execution.calls import ActionPlan, AllowanceRequirement, ContractCall, GasKind
from swapengine.execution.state import Observer, TransactionStateMachine
from swapengine.models.transaction import TransactionState, TransactionStep
from swapengine.safe_int import S

logger = structlog.get_logger()


class ReceiptStatus(str, Enum):
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    PENDING = "pending"


@dataclass(frozen=True)
class FlowResult:
    """Outcome of an orchestrated flow.

    Attributes:
        success: True for SUCCESS and, optimistically, UNCONFIRMED
        tx_hash: Hash of the action transaction, if it was sent
        error: User-facing error message on failure
        state: Final state snapshot
    """

    success: bool
    tx_hash: str | None
    error: str | None
    state: TransactionState

    @property
    def confirmed(self) -> bool:
        return self.state.step is TransactionStep.SUCCESS


class TransactionOrchestrator:
    """Drives ActionPlans through approval, execution and confirmation."""

    def __init__(self, client: ChainClient) -> None:
        self.client = client
        self.config = client.config

    def start(
        self, machine: TransactionStateMachine | None = None, observers: list[Observer] | None = None
    ) -> TransactionStateMachine:
        """Machine ready to run a flow.

        A machine left in ERROR by an earlier run is reset to INPUT through
        retry(), keeping the hashes it already observed.

        Raises:
            InvalidTransition: If the machine finished in SUCCESS or UNCONFIRMED, or is mid-flow
        """
        if machine is None:
            return TransactionStateMachine(observers)
        for observer in observers or []:
            machine.subscribe(observer)
        if machine.step is TransactionStep.ERROR:
            machine.retry()
        elif machine.step is not TransactionStep.INPUT:
            raise InvalidTransition(f"Cannot start a flow from {machine.step.value}")
        return machine

    async def run(
        self,
        plan: ActionPlan,
        observers: list[Observer] | None = None,
        machine: TransactionStateMachine | None = None,
    ) -> FlowResult:
        """Execute a plan.

        Never raises for chain or wallet failures; they end the flow in
        ERROR. A second flow on the same connection while one is running
        fails immediately. Passing the machine of a failed flow retries it.
        """
        machine = self.start(machine, observers)
        lock = self.client.context.flight_lock
        if lock.locked():
            error = FlowInProgress()
            logger.warning("transaction_flow_rejected", reason=error.message, action=plan.description)
            machine.fail(error)
            return self._result(machine)

        async with lock:
            try:
                await self._execute(machine, plan)
            except SwapEngineError as e:
                self._fail(machine, e)
            except Exception as e:
                logger.exception("transaction_flow_unexpected_error", action=plan.description)
                self._fail(machine, classify_error(e))
        return self._result(machine)

    def _fail(self, machine: TransactionStateMachine, error: SwapEngineError) -> None:
        logger.warning(
            "transaction_flow_failed",
            step=machine.step.value,
            kind=error.kind.value,
            error=error.message,
        )
        machine.fail(error)

    def _result(self, machine: TransactionStateMachine) -> FlowResult:
        state = machine.state.snapshot()
        success = state.step in (TransactionStep.SUCCESS, TransactionStep.UNCONFIRMED)
        return FlowResult(success=success, tx_hash=state.action_tx_hash, error=state.error, state=state)

    async def _execute(self, machine: TransactionStateMachine, plan: ActionPlan) -> None:
        account = self.client.context.require_account()

        try:
            await self._check_balances(plan, account)
            pending = await self._pending_approvals(plan, account)
        except SwapEngineError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        machine.state.needs_approval = bool(pending)
        if pending:
            machine.transition(TransactionStep.APPROVING)
            for requirement in pending:
                await self._approve(machine, requirement, account)
            machine.transition(TransactionStep.APPROVED)

        machine.transition(TransactionStep.EXECUTING)
        tx_hash = await self._send(plan.call, account)
        machine.record_hash(tx_hash, approval=False)
        logger.info("transaction_sent", action=plan.description, function=plan.call.function, tx_hash=tx_hash)

        status = await self.wait_for_receipt(tx_hash)
        if status is ReceiptStatus.CONFIRMED:
            machine.transition(TransactionStep.SUCCESS)
        elif status is ReceiptStatus.REVERTED:
            raise TransactionFailed("Transaction reverted on-chain")
        elif self.config.optimistic_confirmation:
            logger.warning("transaction_unconfirmed", tx_hash=tx_hash)
            machine.transition(TransactionStep.UNCONFIRMED)
        else:
            raise ConfirmationTimeout(f"Transaction {tx_hash} was not confirmed in time")

    async def _check_balances(self, plan: ActionPlan, account: str) -> None:
        checks = [r for r in plan.balances if r.amount > 0]
        balances = await self.client.gather_bounded(
            self.client.token_balance(r.token, account) for r in checks
        )
        for requirement, balance in zip(checks, balances):
            if balance < requirement.amount:
                raise InsufficientBalance(f"Insufficient {requirement.symbol} balance")

    async def _pending_approvals(self, plan: ActionPlan, account: str) -> list[AllowanceRequirement]:
        pending = []
        for requirement in plan.allowances:
            current = await self.client.allowance_with_retry(requirement.token, account, requirement.spender)
            if current < requirement.required:
                pending.append(requirement)
        return pending

    async def _approve(self, machine: TransactionStateMachine, requirement: AllowanceRequirement, account: str) -> None:
        call = ContractCall(
            to=requirement.token,
            data=abi.APPROVE.encode(requirement.spender, requirement.approve_amount),
            value=0,
            function=abi.APPROVE.name,
            gas_kind=GasKind.APPROVE,
        )
        tx_hash = await self._send(call, account)
        machine.record_hash(tx_hash, approval=True)
        logger.info("approval_sent", token=requirement.token, spender=requirement.spender, tx_hash=tx_hash)

        status = await self.wait_for_receipt(tx_hash)
        if status is ReceiptStatus.REVERTED:
            raise TransactionFailed(f"{requirement.symbol} approval reverted on-chain")

        # A confirmed receipt can precede the node serving the new allowance
        if not await self._wait_for_allowance(requirement, account):
            raise InsufficientAllowance(
                f"{requirement.symbol} allowance is still below the required amount after approval"
            )

    async def _wait_for_allowance(self, requirement: AllowanceRequirement, account: str) -> bool:
        poll = self.config.allowance_poll
        for attempt in range(poll.max_attempts):
            current = await self.client.allowance_with_retry(requirement.token, account, requirement.spender)
            if current >= requirement.required:
                return True
            if attempt < poll.max_attempts - 1:
                await asyncio.sleep(poll.interval_seconds)
        return False

    async def estimate_gas(self, call: ContractCall, account: str) -> int:
        """Gas limit for a call: estimate times the kind's multiplier, or its fallback."""
        policy = self.config.gas
        try:
            estimate = await self.client.estimate_gas(call.to_tx(account))
        except Exception as e:
            fallback = call.gas_kind.fallback(policy)
            logger.warning("gas_estimate_failed", function=call.function, fallback=fallback, error=str(e))
            return fallback
        multiplier = call.gas_kind.multiplier_bps(policy)
        return (S(estimate) * multiplier).ceiling_div(BPS_DENOMINATOR).value

    async def _send(self, call: ContractCall, account: str) -> str:
        """Estimate gas and submit, retrying transient failures.

        Raises:
            SwapEngineError: Classified send failure (user rejection is never retried)
        """
        gas = await self.estimate_gas(call, account)
        tx: dict[str, Any] = call.to_tx(account)
        tx["gas"] = hex(gas)
        try:
            return await retry_async(
                lambda: self.client.send_transaction(tx),
                self.config.send_retry,
                operation=call.function,
            )
        except Exception as e:
            raise classify_error(e) from e

    async def wait_for_receipt(self, tx_hash: str) -> ReceiptStatus:
        """Poll for a receipt within the configured budget.

        Returns:
            ReceiptStatus.CONFIRMED, REVERTED, or PENDING when the budget runs out
        """
        poll = self.config.receipt_poll
        for attempt in range(poll.max_attempts):
            try:
                receipt = await self.client.get_receipt(tx_hash)
            except Exception as e:
                logger.warning("receipt_poll_failed", tx_hash=tx_hash, attempt=attempt + 1, error=str(e))
                receipt = None
            if receipt:
                status = receipt.get("status")
                if status in ("0x1", 1, "1"):
                    return ReceiptStatus.CONFIRMED
                return ReceiptStatus.REVERTED
            if attempt < poll.max_attempts - 1:
                await asyncio.sleep(poll.interval_seconds)
        logger.warning("receipt_poll_exhausted", tx_hash=tx_hash, attempts=poll.max_attempts)
        return ReceiptStatus.PENDING


__all__ = ["FlowResult", "ReceiptStatus", "TransactionOrchestrator"]
