"""Liquidity quotes and LP positions."""

from __future__ import annotations

from dataclasses import dataclass

from swapengine.models.token import Token


@dataclass(frozen=True)
class LiquidityQuote:
    """A deposit into a pair on one router.

    Attributes:
        amount_a: Token A to deposit (after ratio adjustment)
        amount_b: Token B to deposit (after ratio adjustment)
        minimum_a: Slippage-adjusted floor passed to the router
        minimum_b: Slippage-adjusted floor passed to the router
        liquidity: LP tokens expected to be minted
        share_of_pool_bps: Share of the pool after the deposit
        first_liquidity: The deposit sets the pool price
        pair_address: None when the pair does not exist yet
    """

    router: str
    token_a: Token
    token_b: Token
    amount_a: int
    amount_b: int
    minimum_a: int
    minimum_b: int
    liquidity: int
    share_of_pool_bps: int
    first_liquidity: bool
    slippage_bps: int
    pair_address: str | None = None


@dataclass(frozen=True)
class RemovalQuote:
    """A withdrawal of LP tokens from a pair."""

    router: str
    pair_address: str
    token_a: Token
    token_b: Token
    liquidity: int
    amount_a: int
    amount_b: int
    minimum_a: int
    minimum_b: int
    share_of_pool_bps: int
    slippage_bps: int
    fee_on_transfer: bool = False


@dataclass(frozen=True)
class Position:
    """An account's LP holding in one pair."""

    router: str
    pair_address: str
    token_a: Token
    token_b: Token
    liquidity: int
    total_supply: int
    share_of_pool_bps: int
    amount_a: int
    amount_b: int

    @property
    def is_empty(self) -> bool:
        return self.liquidity == 0
