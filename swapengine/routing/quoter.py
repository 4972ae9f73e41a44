"""Route selection and amount calculation across the configured routers.

Supports:
- Direct pairs on the highest-priority router that has liquidity
- One hop through wrapped native when no direct pair has liquidity
- Exact input (amount out rounded down) and exact output (amount in rounded up)

Deeper paths are not searched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from swapengine.amm.base import SwapResult
from swapengine.amm.constant_product import ConstantProduct, ConstantProductPool, constant_product
from swapengine.config import RouterConfig
from swapengine.constants import BPS_DENOMINATOR
from swapengine.errors import ErrorKind, InsufficientLiquidity
from swapengine.models.quote import NoRoute, QuoteDirection
from swapengine.routing.resolver import PairResolver, PairState
from swapengine.safe_int import S

logger = structlog.get_logger()


@dataclass(frozen=True)
class Candidate:
    """Pools forming a path on one router, in trade order."""

    router: RouterConfig
    path: tuple[str, ...]
    pools: tuple[ConstantProductPool, ...]


@dataclass(frozen=True)
class PathQuote:
    """Amounts for a trade along a candidate path."""

    router: str
    path: tuple[str, ...]
    hops: tuple[SwapResult, ...]
    direction: QuoteDirection

    @property
    def amount_in(self) -> int:
        return self.hops[0].amount_in

    @property
    def amount_out(self) -> int:
        return self.hops[-1].amount_out


def _no_liquidity(token_in: str, token_out: str) -> NoRoute:
    return NoRoute(
        reason=f"No liquidity for {token_in} -> {token_out} on any router",
        kind=ErrorKind.INSUFFICIENT_LIQUIDITY,
    )


class QuoteCalculator:
    """Finds the route for a pair and computes its amounts.

    Args:
        resolver: Pair resolver bound to a chain client
        amm: Constant-product math; defaults to the shared instance
    """

    def __init__(self, resolver: PairResolver, amm: ConstantProduct | None = None) -> None:
        self.resolver = resolver
        self.config = resolver.config
        self.amm = amm if amm is not None else constant_product

    async def candidates(self, token_in: str, token_out: str) -> list[Candidate]:
        """Usable paths, best first.

        Direct pairs with liquidity come first (router priority order). Hop
        paths through wrapped native are only returned when no direct pair
        has liquidity.
        """
        a, b = self.resolver.canonical(token_in), self.resolver.canonical(token_out)
        routers = self.config.routers_by_priority

        direct = await self.resolver.resolve_all(a, b)
        found = [
            Candidate(router=r, path=(a, b), pools=(s.pool,))
            for r, s in zip(routers, direct)
            if s.has_liquidity and s.pool is not None
        ]
        if found:
            return found

        wnative = self.config.wrapped_native
        if wnative in (a, b):
            return []

        legs = await asyncio.gather(
            *(self._hop_legs(a, wnative, b, r) for r in routers),
        )
        hops = []
        for r, (first, second) in zip(routers, legs):
            if first.has_liquidity and second.has_liquidity and first.pool and second.pool:
                hops.append(Candidate(router=r, path=(a, wnative, b), pools=(first.pool, second.pool)))
        return hops

    async def _hop_legs(
        self, a: str, mid: str, b: str, router: RouterConfig
    ) -> tuple[PairState, PairState]:
        first, second = await asyncio.gather(
            self.resolver.resolve(a, mid, router),
            self.resolver.resolve(mid, b, router),
        )
        return first, second

    def simulate(self, candidate: Candidate, amount: int, direction: QuoteDirection) -> PathQuote:
        """Amounts along a candidate path.

        Raises:
            InsufficientLiquidity: If an exact output cannot be met
        """
        if direction is QuoteDirection.EXACT_IN:
            hops = self._forward(candidate, amount)
        else:
            hops = self._backward(candidate, amount)
        return PathQuote(router=candidate.router.id, path=candidate.path, hops=hops, direction=direction)

    def _forward(self, candidate: Candidate, amount_in: int) -> tuple[SwapResult, ...]:
        hops: list[SwapResult] = []
        amount = amount_in
        for token, pool in zip(candidate.path, candidate.pools):
            leg = self.amm.simulate_swap(pool, token, amount)
            hops.append(leg)
            amount = leg.amount_out
        return tuple(hops)

    def _backward(self, candidate: Candidate, amount_out: int) -> tuple[SwapResult, ...]:
        hops: list[SwapResult] = []
        amount = amount_out
        for token, pool in reversed(list(zip(candidate.path, candidate.pools))):
            leg = self.amm.simulate_swap_exact_output(pool, token, amount)
            hops.append(leg)
            amount = leg.amount_in
        return tuple(reversed(hops))

    def _better(self, challenger: PathQuote, incumbent: PathQuote, threshold_bps: int) -> bool:
        """True if challenger beats incumbent by more than threshold_bps."""
        scale = BPS_DENOMINATOR + threshold_bps
        if challenger.direction is QuoteDirection.EXACT_IN:
            return S(challenger.amount_out) * BPS_DENOMINATOR > S(incumbent.amount_out) * scale
        return S(challenger.amount_in) * scale < S(incumbent.amount_in) * BPS_DENOMINATOR

    async def quote(
        self, token_in: str, token_out: str, amount: int, direction: QuoteDirection
    ) -> PathQuote | NoRoute:
        """Best path quote, or NoRoute.

        The first candidate wins unless switch_threshold_bps is configured and
        a later router on the same kind of path beats it by more than the
        threshold.
        """
        candidates = await self.candidates(token_in, token_out)
        if not candidates:
            return _no_liquidity(token_in, token_out)

        best: PathQuote | None = None
        failure: InsufficientLiquidity | None = None
        threshold = self.config.switch_threshold_bps
        for candidate in candidates:
            try:
                result = self.simulate(candidate, amount, direction)
            except InsufficientLiquidity as e:
                failure = e
                continue
            if best is None:
                best = result
                if threshold is None:
                    break
            elif len(result.path) == len(best.path) and self._better(result, best, threshold or 0):
                logger.info(
                    "router_switched",
                    preferred=best.router,
                    chosen=result.router,
                    threshold_bps=threshold,
                )
                best = result

        if best is None:
            assert failure is not None
            return NoRoute(reason=failure.message, kind=ErrorKind.INSUFFICIENT_LIQUIDITY)
        return best

    async def quote_exact_in(self, token_in: str, token_out: str, amount_in: int) -> PathQuote | NoRoute:
        return await self.quote(token_in, token_out, amount_in, QuoteDirection.EXACT_IN)

    async def quote_exact_out(self, token_in: str, token_out: str, amount_out: int) -> PathQuote | NoRoute:
        return await self.quote(token_in, token_out, amount_out, QuoteDirection.EXACT_OUT)


__all__ = ["Candidate", "PathQuote", "QuoteCalculator"]
