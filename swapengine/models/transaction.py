"""Transaction flow state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from swapengine.errors import ErrorKind


class TransactionStep(str, Enum):
    """Steps of an orchestrated transaction flow.

    SUCCESS, UNCONFIRMED and ERROR are terminal for a run; ERROR may be
    reset to INPUT for an explicit retry.
    """

    INPUT = "input"
    APPROVING = "approving"
    APPROVED = "approved"
    EXECUTING = "executing"
    SUCCESS = "success"
    UNCONFIRMED = "unconfirmed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStep.SUCCESS, TransactionStep.UNCONFIRMED, TransactionStep.ERROR)


@dataclass
class TransactionState:
    """Mutable state of one flow, owned by the orchestrator.

    Observers receive copies via snapshot().

    Attributes:
        tx_hashes: Every hash observed during the flow, in submission order
        history: Steps visited, starting with INPUT
    """

    step: TransactionStep = TransactionStep.INPUT
    needs_approval: bool = False
    approval_tx_hash: str | None = None
    action_tx_hash: str | None = None
    tx_hashes: list[str] = field(default_factory=list)
    error: str | None = None
    error_kind: ErrorKind | None = None
    history: list[TransactionStep] = field(default_factory=lambda: [TransactionStep.INPUT])

    def record_hash(self, tx_hash: str) -> None:
        if tx_hash not in self.tx_hashes:
            self.tx_hashes.append(tx_hash)

    def snapshot(self) -> TransactionState:
        return replace(self, tx_hashes=list(self.tx_hashes), history=list(self.history))
