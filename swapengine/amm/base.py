"""Base classes for AMM math."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SwapResult:
    """Result of simulating one leg of a swap against a pool."""

    amount_in: int
    amount_out: int
    pool_address: str
    token_in: str
    token_out: str
    reserve_in: int
    reserve_out: int


class AMM(ABC):
    """Swap math for a pool family.

    Implementations may extend the signatures with pool-specific optional
    parameters, e.g. ConstantProduct takes fee_bps.
    """

    @abstractmethod
    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Output amount for an exact input (rounded down)."""
        ...

    @abstractmethod
    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Input amount required for an exact output (rounded up)."""
        ...
