"""Pair resolution across router factories.

Looks up the V2 pair for a token pair on each configured factory and reads
its reserves. RPC failures degrade to a missing pair flagged lookup_failed, so a
flaky node never turns a quote into an exception.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from swapengine.amm.constant_product import ConstantProductPool
from swapengine.chain.client import ChainClient
from swapengine.config import RouterConfig
from swapengine.constants import ZERO_ADDRESS
from swapengine.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class PairState:
    """State of one pair on one router.

    Reserves are ordered to match the (token_a, token_b) the caller asked
    for, not the pair's internal token0/token1 order.
    """

    router: str
    token_a: str
    token_b: str
    pair_exists: bool = False
    has_liquidity: bool = False
    reserve_a: int = 0
    reserve_b: int = 0
    total_supply: int = 0
    pool_address: str | None = None
    pool: ConstantProductPool | None = None
    lookup_failed: bool = False

    @classmethod
    def missing(cls, router: str, token_a: str, token_b: str, lookup_failed: bool = False) -> PairState:
        return cls(router=router, token_a=token_a, token_b=token_b, lookup_failed=lookup_failed)


class PairResolver:
    """Finds and reads V2 pairs on the configured routers."""

    def __init__(self, client: ChainClient):
        self.client = client
        self.config = client.config

    def canonical(self, token: str) -> str:
        """Map the native sentinel to wrapped native; pairs only hold ERC-20s."""
        address = normalize_address(token)
        if address == self.config.native_address:
            return self.config.wrapped_native
        return address

    async def resolve(self, token_a: str, token_b: str, router: RouterConfig) -> PairState:
        """Pair state for (token_a, token_b) on one router.

        Never raises for provider failures; those are logged and reported as
        a missing pair with lookup_failed set.
        """
        a, b = self.canonical(token_a), self.canonical(token_b)
        if a == b:
            return PairState.missing(router.id, a, b)

        try:
            pair = await self.client.bounded(self.client.get_pair(router.factory, a, b))
            if pair == ZERO_ADDRESS:
                return PairState.missing(router.id, a, b)

            (reserve0, reserve1), token0, token1, total_supply = await asyncio.gather(
                self.client.bounded(self.client.get_reserves(pair)),
                self.client.bounded(self.client.token0(pair)),
                self.client.bounded(self.client.token1(pair)),
                self.client.bounded(self.client.total_supply(pair)),
            )
        except Exception as e:
            logger.warning("pair_lookup_failed", router=router.id, token_a=a, token_b=b, error=str(e))
            return PairState.missing(router.id, a, b, lookup_failed=True)

        pool = ConstantProductPool(
            address=pair,
            token0=token0,
            token1=token1,
            reserve0=reserve0,
            reserve1=reserve1,
            router=router.id,
            fee_bps=router.fee_bps,
            total_supply=total_supply,
        )
        if not (pool.has_token(a) and pool.has_token(b)):
            logger.warning("pair_tokens_mismatch", router=router.id, pair=pair, token0=token0, token1=token1)
            return PairState.missing(router.id, a, b)

        reserve_a, reserve_b = pool.get_reserves(a)
        return PairState(
            router=router.id,
            token_a=a,
            token_b=b,
            pair_exists=True,
            has_liquidity=pool.has_liquidity,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            total_supply=total_supply,
            pool_address=pair,
            pool=pool,
        )

    async def resolve_all(self, token_a: str, token_b: str) -> list[PairState]:
        """Pair state on every router, queried concurrently, in priority order."""
        routers = self.config.routers_by_priority
        return list(await asyncio.gather(*(self.resolve(token_a, token_b, r) for r in routers)))

    async def best(self, token_a: str, token_b: str) -> PairState | None:
        """Highest-priority pair that has liquidity, or None."""
        for state in await self.resolve_all(token_a, token_b):
            if state.has_liquidity:
                return state
        return None


__all__ = ["PairState", "PairResolver"]
