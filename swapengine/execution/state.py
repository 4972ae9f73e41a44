"""Transaction flow state machine."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from swapengine.errors import InvalidTransition, SwapEngineError
from swapengine.models.transaction import TransactionState, TransactionStep

logger = structlog.get_logger()

Observer = Callable[[TransactionState], None]

_S = TransactionStep

ALLOWED_TRANSITIONS: dict[TransactionStep, frozenset[TransactionStep]] = {
    _S.INPUT: frozenset({_S.APPROVING, _S.EXECUTING, _S.ERROR}),
    _S.APPROVING: frozenset({_S.APPROVED, _S.ERROR}),
    _S.APPROVED: frozenset({_S.EXECUTING, _S.ERROR}),
    _S.EXECUTING: frozenset({_S.SUCCESS, _S.UNCONFIRMED, _S.ERROR}),
    _S.SUCCESS: frozenset(),
    _S.UNCONFIRMED: frozenset(),
    _S.ERROR: frozenset({_S.INPUT}),
}


class TransactionStateMachine:
    """Owns a TransactionState and enforces legal transitions.

    Observers are called with a snapshot after every change.
    """

    def __init__(self, observers: list[Observer] | None = None) -> None:
        self.state = TransactionState()
        self._observers: list[Observer] = list(observers or [])

    @property
    def step(self) -> TransactionStep:
        return self.state.step

    def subscribe(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def _notify(self) -> None:
        snapshot = self.state.snapshot()
        for observer in self._observers:
            try:
                observer(snapshot)
            except Exception:
                logger.exception("transaction_observer_failed", step=snapshot.step.value)

    def transition(self, step: TransactionStep, **changes: object) -> None:
        """Move to step, applying field changes.

        Raises:
            InvalidTransition: If the move is not allowed from the current step
        """
        current = self.state.step
        if step not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot move from {current.value} to {step.value}")
        for name, value in changes.items():
            setattr(self.state, name, value)
        self.state.step = step
        self.state.history.append(step)
        logger.info("transaction_step", previous=current.value, step=step.value)
        self._notify()

    def record_hash(self, tx_hash: str, *, approval: bool) -> None:
        if approval:
            self.state.approval_tx_hash = tx_hash
        else:
            self.state.action_tx_hash = tx_hash
        self.state.record_hash(tx_hash)
        self._notify()

    def fail(self, error: SwapEngineError) -> None:
        self.transition(TransactionStep.ERROR, error=error.message, error_kind=error.kind)

    def cancel(self) -> bool:
        """Abandon the flow; only possible before anything is broadcast."""
        if self.state.step is not TransactionStep.INPUT:
            logger.info("transaction_cancel_refused", step=self.state.step.value)
            return False
        self.state = TransactionState()
        self._notify()
        return True

    def retry(self) -> None:
        """Return from ERROR to INPUT, keeping the hashes already observed.

        Raises:
            InvalidTransition: If the flow is not in ERROR
        """
        self.transition(
            TransactionStep.INPUT,
            error=None,
            error_kind=None,
            needs_approval=False,
            approval_tx_hash=None,
            action_tx_hash=None,
        )


__all__ = ["ALLOWED_TRANSITIONS", "Observer", "TransactionStateMachine"]
