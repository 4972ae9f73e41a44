"""Constant-product (x * y = k) pool math.

The fee is taken from the input amount:
    amount_out = amount_in * (10000 - fee) * reserve_out
                 / (reserve_in * 10000 + amount_in * (10000 - fee))

This is exactly what a V2 router's getAmountOut computes on-chain, so local
quotes match what the router will enforce.
"""

from __future__ import annotations

from dataclasses import dataclass

from swapengine.amm.base import AMM, SwapResult
from swapengine.constants import FEE_DENOMINATOR
from swapengine.errors import InsufficientLiquidity
from swapengine.models.types import normalize_address
from swapengine.safe_int import S


@dataclass(frozen=True)
class ConstantProductPool:
    """A V2 pair snapshot.

    Attributes:
        address: Pair contract address
        token0: Lower-sorted token (as reported by the pair)
        token1: Higher-sorted token
        reserve0: Reserve of token0 in base units
        reserve1: Reserve of token1 in base units
        router: Id of the router whose factory created the pair
        fee_bps: Router swap fee in basis points
        total_supply: LP token supply
    """

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    router: str = ""
    fee_bps: int = 30
    total_supply: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token0", normalize_address(self.token0))
        object.__setattr__(self, "token1", normalize_address(self.token1))

    @property
    def fee_multiplier(self) -> int:
        """10000 - fee_bps (9970 for a 30 bps pool)."""
        return FEE_DENOMINATOR - self.fee_bps

    @property
    def has_liquidity(self) -> bool:
        return self.reserve0 > 0 and self.reserve1 > 0

    def has_token(self, token: str) -> bool:
        return normalize_address(token) in (self.token0, self.token1)

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Reserves ordered as (reserve_in, reserve_out)."""
        token = normalize_address(token_in)
        if token == self.token0:
            return self.reserve0, self.reserve1
        if token == self.token1:
            return self.reserve1, self.reserve0
        raise ValueError(f"Token {token_in} not in pool {self.address}")

    def get_token_out(self, token_in: str) -> str:
        token = normalize_address(token_in)
        if token == self.token0:
            return self.token1
        if token == self.token1:
            return self.token0
        raise ValueError(f"Token {token_in} not in pool {self.address}")


class ConstantProduct(AMM):
    """V2 swap math with a configurable fee.

    All functions are pure integer arithmetic. Exact-output always rounds up
    (floor division + 1) so the pool is never under-paid.
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_bps: int = 30,
    ) -> int:
        """Output for an exact input.

        Returns 0 for a non-positive input.

        Raises:
            InsufficientLiquidity: If either reserve is empty
        """
        if amount_in <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity()

        amount_in_with_fee = S(amount_in) * (FEE_DENOMINATOR - fee_bps)
        numerator = amount_in_with_fee * reserve_out
        denominator = S(reserve_in) * FEE_DENOMINATOR + amount_in_with_fee
        return (numerator // denominator).value

    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
        fee_bps: int = 30,
    ) -> int:
        """Input required for an exact output.

        Formula: reserve_in * out * 10000 // ((reserve_out - out) * (10000 - fee)) + 1

        Raises:
            InsufficientLiquidity: If the output would drain the reserve or reserves are empty
        """
        if amount_out <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity()
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"Requested output {amount_out} exceeds available liquidity {reserve_out}"
            )

        numerator = S(reserve_in) * amount_out * FEE_DENOMINATOR
        denominator = (S(reserve_out) - amount_out) * (FEE_DENOMINATOR - fee_bps)
        return ((numerator // denominator) + 1).value

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        """Amount of B equivalent to amount_a at the current pool ratio (no fee).

        Raises:
            InsufficientLiquidity: If either reserve is empty
        """
        if reserve_a <= 0 or reserve_b <= 0:
            raise InsufficientLiquidity()
        return (S(amount_a) * reserve_b // reserve_a).value

    def simulate_swap(self, pool: ConstantProductPool, token_in: str, amount_in: int) -> SwapResult:
        """Exact-input leg through a pool."""
        reserve_in, reserve_out = pool.get_reserves(token_in)
        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)
        return SwapResult(
            amount_in=amount_in,
            amount_out=amount_out,
            pool_address=pool.address,
            token_in=normalize_address(token_in),
            token_out=pool.get_token_out(token_in),
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

    def simulate_swap_exact_output(
        self, pool: ConstantProductPool, token_in: str, amount_out: int
    ) -> SwapResult:
        """Exact-output leg through a pool.

        The reported amount_out is the requested one; the router delivers
        exactly that for an exact-output call.
        """
        reserve_in, reserve_out = pool.get_reserves(token_in)
        amount_in = self.get_amount_in(amount_out, reserve_in, reserve_out, pool.fee_bps)
        return SwapResult(
            amount_in=amount_in,
            amount_out=amount_out,
            pool_address=pool.address,
            token_in=normalize_address(token_in),
            token_out=pool.get_token_out(token_in),
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )


constant_product = ConstantProduct()

__all__ = ["ConstantProductPool", "ConstantProduct", "constant_product"]
