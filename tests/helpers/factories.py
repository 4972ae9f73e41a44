"""Factory functions for creating test objects.

Usage:
    from tests.helpers.factories import make_pool, make_config, make_engine
"""

from dataclasses import replace

from swapengine.amm.constant_product import ConstantProductPool
from swapengine.chain.provider import ChainContext, WalletType
from swapengine.config import DEFAULT_CONFIG, EngineConfig, PollPolicy, RetryPolicy
from swapengine.engine import SwapEngine
from tests.helpers.constants import TKA, TKB, USER
from tests.helpers.fake_chain import FakeChain

_pool_counter = 0


def make_pool(
    token0: str = TKA,
    token1: str = TKB,
    reserve0: int = 1_000_000,
    reserve1: int = 2_000_000,
    fee_bps: int = 30,
    router: str = "reachswap",
    total_supply: int = 0,
) -> ConstantProductPool:
    """Create a pool with a unique address."""
    global _pool_counter
    _pool_counter += 1
    return ConstantProductPool(
        address=f"0x{0xDEAD0000 + _pool_counter:040x}",
        token0=token0,
        token1=token1,
        reserve0=reserve0,
        reserve1=reserve1,
        router=router,
        fee_bps=fee_bps,
        total_supply=total_supply,
    )


def make_config(**overrides: object) -> EngineConfig:
    """DEFAULT_CONFIG with no waiting: zero backoff and small poll budgets."""
    fast = replace(
        DEFAULT_CONFIG,
        send_retry=RetryPolicy(attempts=3, delay_seconds=0),
        allowance_retry=RetryPolicy(attempts=2, delay_seconds=0),
        receipt_poll=PollPolicy(max_attempts=3, interval_seconds=0),
        allowance_poll=PollPolicy(max_attempts=3, interval_seconds=0),
    )
    return replace(fast, **overrides)  # type: ignore[arg-type]


def make_engine(
    chain: FakeChain,
    config: EngineConfig | None = None,
    account: str | None = USER,
) -> SwapEngine:
    """Engine over a fake chain, connected as account."""
    context = ChainContext(provider=chain, account=account, wallet_type=WalletType.LOCAL)
    return SwapEngine(context, config or make_config())
