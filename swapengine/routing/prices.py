"""Reference token prices from wrapped-native pair reserves.

Each token is priced against wrapped native on the highest-priority router
whose pair has liquidity, in units of the configured native reference price:

    price = native_reference_price * reserve_native / reserve_token
            * 10^(token decimals - 18)

Reserves stay integers until the final Decimal division.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, localcontext

import structlog

from swapengine.models.token import Token
from swapengine.routing.resolver import PairResolver

logger = structlog.get_logger()

NATIVE_DECIMALS = 18

# Enough digits for a ratio of uint112 reserves
_PRECISION = 80


@dataclass(frozen=True)
class PriceEstimate:
    """Result of a price estimation.

    Attributes:
        token: The token being priced
        price: Reference price of one whole token, or None without a priced pair
        source: 'native' for native and wrapped native, the router id for a
            pair price, 'none' when no pair with liquidity exists
    """

    token: str
    price: Decimal | None
    source: str


class ReservePriceEstimator:
    """Prices tokens from their wrapped-native pair on the configured routers."""

    def __init__(self, resolver: PairResolver) -> None:
        self.resolver = resolver
        self.config = resolver.config

    async def estimate_price(self, token: Token) -> PriceEstimate:
        reference = self.config.native_reference_price
        if self.resolver.canonical(token.address) == self.config.wrapped_native:
            return PriceEstimate(token=token.address, price=reference, source="native")

        state = await self.resolver.best(token.address, self.config.wrapped_native)
        if state is None or state.reserve_a == 0 or state.reserve_b == 0:
            logger.debug("price_unavailable", token=token.symbol, reason="no wrapped native pair with liquidity")
            return PriceEstimate(token=token.address, price=None, source="none")

        with localcontext() as ctx:
            ctx.prec = _PRECISION
            ratio = Decimal(state.reserve_b * 10**token.decimals) / Decimal(state.reserve_a * 10**NATIVE_DECIMALS)
            price = ratio * reference
        return PriceEstimate(token=token.address, price=price, source=state.router)

    async def estimate_prices(self, tokens: Sequence[Token]) -> dict[str, PriceEstimate]:
        """Estimates by token address; pair reads share the client's read-concurrency limit."""
        estimates = await asyncio.gather(*(self.estimate_price(t) for t in tokens))
        return {e.token: e for e in estimates}


__all__ = ["NATIVE_DECIMALS", "PriceEstimate", "ReservePriceEstimator"]
