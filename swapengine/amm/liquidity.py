"""Liquidity provision math for V2 pairs.

Mirrors the pair contract: the first deposit mints sqrt(a * b) minus the
permanently locked MINIMUM_LIQUIDITY; later deposits mint pro rata to the
smaller of the two contributions.
"""

from __future__ import annotations

from dataclasses import dataclass

from swapengine.amm.constant_product import constant_product
from swapengine.constants import BPS_DENOMINATOR, MINIMUM_LIQUIDITY
from swapengine.errors import InsufficientLiquidity
from swapengine.safe_int import S


@dataclass(frozen=True)
class MintQuote:
    """Outcome of adding liquidity.

    Attributes:
        amount_a: Token A actually deposited
        amount_b: Token B actually deposited
        liquidity: LP tokens minted to the provider
        share_of_pool_bps: Provider's share of the pool after the deposit
        first_liquidity: True if this deposit creates the pool's price
    """

    amount_a: int
    amount_b: int
    liquidity: int
    share_of_pool_bps: int
    first_liquidity: bool


@dataclass(frozen=True)
class BurnQuote:
    """Outcome of removing liquidity."""

    liquidity: int
    amount_a: int
    amount_b: int
    share_of_pool_bps: int


class LiquidityMath:
    """Deposit and withdrawal amounts for a V2 pair."""

    def optimal_amounts(
        self,
        desired_a: int,
        desired_b: int,
        reserve_a: int,
        reserve_b: int,
    ) -> tuple[int, int]:
        """Largest deposit within (desired_a, desired_b) at the pool ratio.

        An empty pool accepts both desired amounts as-is.
        """
        if reserve_a == 0 and reserve_b == 0:
            return desired_a, desired_b

        optimal_b = constant_product.quote(desired_a, reserve_a, reserve_b)
        if optimal_b <= desired_b:
            return desired_a, optimal_b
        optimal_a = constant_product.quote(desired_b, reserve_b, reserve_a)
        return optimal_a, desired_b

    def liquidity_minted(
        self,
        amount_a: int,
        amount_b: int,
        reserve_a: int,
        reserve_b: int,
        total_supply: int,
    ) -> int:
        """LP tokens minted for a deposit.

        Raises:
            InsufficientLiquidity: If the deposit would mint nothing
        """
        if total_supply == 0:
            root = (S(amount_a) * amount_b).isqrt()
            if root <= MINIMUM_LIQUIDITY:
                raise InsufficientLiquidity("Initial deposit is too small to mint liquidity")
            return (root - MINIMUM_LIQUIDITY).value

        if reserve_a <= 0 or reserve_b <= 0:
            raise InsufficientLiquidity()
        liquidity = (S(amount_a) * total_supply // reserve_a).min(S(amount_b) * total_supply // reserve_b)
        if liquidity <= 0:
            raise InsufficientLiquidity("Deposit is too small to mint liquidity")
        return liquidity.value

    def mint(
        self,
        desired_a: int,
        desired_b: int,
        reserve_a: int,
        reserve_b: int,
        total_supply: int,
    ) -> MintQuote:
        amount_a, amount_b = self.optimal_amounts(desired_a, desired_b, reserve_a, reserve_b)
        liquidity = self.liquidity_minted(amount_a, amount_b, reserve_a, reserve_b, total_supply)
        first = total_supply == 0
        # The locked minimum counts toward supply but belongs to nobody
        supply_after = total_supply + liquidity + (MINIMUM_LIQUIDITY if first else 0)
        return MintQuote(
            amount_a=amount_a,
            amount_b=amount_b,
            liquidity=liquidity,
            share_of_pool_bps=share_bps(liquidity, supply_after),
            first_liquidity=first,
        )

    def burn(self, liquidity: int, reserve_a: int, reserve_b: int, total_supply: int) -> BurnQuote:
        """Underlying amounts returned for burning LP tokens.

        Raises:
            InsufficientLiquidity: If the pool has no supply or liquidity exceeds it
        """
        if total_supply <= 0:
            raise InsufficientLiquidity("Pool has no liquidity")
        if liquidity > total_supply:
            raise InsufficientLiquidity(f"Liquidity {liquidity} exceeds total supply {total_supply}")
        return BurnQuote(
            liquidity=liquidity,
            amount_a=(S(liquidity) * reserve_a // total_supply).value,
            amount_b=(S(liquidity) * reserve_b // total_supply).value,
            share_of_pool_bps=share_bps(liquidity, total_supply),
        )


def share_bps(balance: int, total_supply: int) -> int:
    """balance / total_supply in basis points, rounded down; 0 for an empty pool."""
    if total_supply <= 0:
        return 0
    return (S(balance) * BPS_DENOMINATOR // total_supply).value


liquidity_math = LiquidityMath()
