"""Engine configuration.

All tunables live in frozen dataclasses so a configured engine cannot drift.
DEFAULT_CONFIG targets the Loop network; EngineConfig.from_env() overlays
SWAPENGINE_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from decimal import Decimal

from swapengine import constants
from swapengine.models.types import normalize_address


@dataclass(frozen=True)
class RouterConfig:
    """A V2-style router deployment.

    Attributes:
        id: Stable identifier ("reachswap", "sphynx")
        name: Display name
        router: Router contract address
        factory: Factory contract address
        fee_bps: Swap fee in basis points
        priority: Lower values are preferred
        gas_cost_wei: Flat network-fee estimate reported with quotes
    """

    id: str
    name: str
    router: str
    factory: str
    fee_bps: int
    priority: int
    gas_cost_wei: int = constants.REACHSWAP_GAS_COST_WEI

    def __post_init__(self) -> None:
        if not 0 <= self.fee_bps < constants.FEE_DENOMINATOR:
            raise ValueError(f"fee_bps must be in [0, {constants.FEE_DENOMINATOR}), got {self.fee_bps}")
        object.__setattr__(self, "router", normalize_address(self.router, validate=True))
        object.__setattr__(self, "factory", normalize_address(self.factory, validate=True))


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with fixed backoff."""

    attempts: int = 3
    delay_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {self.delay_seconds}")


@dataclass(frozen=True)
class PollPolicy:
    """Receipt/allowance polling budget."""

    max_attempts: int = 60
    interval_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


@dataclass(frozen=True)
class GasPolicy:
    """Gas-limit estimation: estimate * multiplier, or a fallback ceiling."""

    swap_multiplier_bps: int = constants.GAS_BUFFER_SWAP_BPS
    approve_multiplier_bps: int = constants.GAS_BUFFER_APPROVE_BPS
    liquidity_multiplier_bps: int = constants.GAS_BUFFER_LIQUIDITY_BPS
    swap_fallback: int = constants.GAS_FALLBACK_SWAP
    approve_fallback: int = constants.GAS_FALLBACK_APPROVE
    wrap_fallback: int = constants.GAS_FALLBACK_WRAP
    add_liquidity_fallback: int = constants.GAS_FALLBACK_ADD_LIQUIDITY
    remove_liquidity_fallback: int = constants.GAS_FALLBACK_REMOVE_LIQUIDITY
    default_fallback: int = constants.GAS_FALLBACK_DEFAULT


DEFAULT_ROUTERS = (
    RouterConfig(
        id="reachswap",
        name="ReachSwap",
        router=constants.REACHSWAP_ROUTER,
        factory=constants.REACHSWAP_FACTORY,
        fee_bps=constants.REACHSWAP_FEE_BPS,
        priority=1,
        gas_cost_wei=constants.REACHSWAP_GAS_COST_WEI,
    ),
    RouterConfig(
        id="sphynx",
        name="Sphynx",
        router=constants.SPHYNX_ROUTER,
        factory=constants.SPHYNX_FACTORY,
        fee_bps=constants.SPHYNX_FEE_BPS,
        priority=2,
        gas_cost_wei=constants.SPHYNX_GAS_COST_WEI,
    ),
)


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for quoting and transaction orchestration.

    Attributes:
        routers: Router deployments, any order (sorted by priority on access)
        wrapped_native: Wrapped native token address
        native_address: Sentinel address for the native coin
        chain_id: Expected chain id
        default_slippage_bps: Slippage used when the caller gives none
        high_impact_threshold_bps: Impact above which a higher slippage is recommended
        impact_safety_margin_bps: Added to the impact when recommending slippage
        fee_on_transfer_slippage_bps: Minimum slippage recommended/used for fee tokens
        switch_threshold_bps: If set, a lower-priority router wins a direct pair
            only when its output beats the preferred router by more than this
        allowance_buffer_bps: Extra allowance requested over the spend
        fee_token_allowance_buffer_bps: Extra allowance for fee-on-transfer tokens
        approve_unlimited: Approve uint256 max instead of the buffered amount
        gas: Gas estimation policy
        send_retry: Retry policy for transient send failures
        allowance_retry: Retry policy for allowance reads
        receipt_poll: Receipt polling budget
        allowance_poll: Post-approval allowance polling budget
        optimistic_confirmation: Treat an exhausted receipt poll as "unconfirmed"
            instead of an error
        read_concurrency: Upper bound on concurrent RPC reads per fan-out
        wrap_gas_cost_wei: Flat network-fee estimate for wrap/unwrap quotes
        deadline_seconds: Router-call deadline offset
        native_reference_price: Reference price of one native coin; token
            prices are quoted in the same unit through their wrapped-native pair
        rpc_url: HTTP RPC endpoint for the read-only service
    """

    routers: tuple[RouterConfig, ...] = DEFAULT_ROUTERS
    wrapped_native: str = constants.WNATIVE
    native_address: str = constants.NATIVE_ADDRESS
    chain_id: int = constants.LOOP_CHAIN_ID
    default_slippage_bps: int = 50
    high_impact_threshold_bps: int = 300
    impact_safety_margin_bps: int = 100
    fee_on_transfer_slippage_bps: int = 500
    switch_threshold_bps: int | None = None
    allowance_buffer_bps: int = 2_000
    fee_token_allowance_buffer_bps: int = 10_000
    approve_unlimited: bool = False
    gas: GasPolicy = field(default_factory=GasPolicy)
    send_retry: RetryPolicy = field(default_factory=RetryPolicy)
    allowance_retry: RetryPolicy = field(default_factory=lambda: RetryPolicy(attempts=5, delay_seconds=1.0))
    receipt_poll: PollPolicy = field(default_factory=PollPolicy)
    allowance_poll: PollPolicy = field(default_factory=lambda: PollPolicy(max_attempts=30))
    optimistic_confirmation: bool = True
    read_concurrency: int = 8
    wrap_gas_cost_wei: int = constants.WRAP_GAS_COST_WEI
    deadline_seconds: int = constants.DEADLINE_SECONDS
    native_reference_price: Decimal = Decimal("0.15")
    rpc_url: str = "https://api.mainnetloop.com"

    def __post_init__(self) -> None:
        if not self.routers:
            raise ValueError("At least one router must be configured")
        ids = [r.id for r in self.routers]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate router ids: {ids}")
        if self.read_concurrency < 1:
            raise ValueError(f"read_concurrency must be >= 1, got {self.read_concurrency}")
        if self.native_reference_price < 0:
            raise ValueError(f"native_reference_price must be >= 0, got {self.native_reference_price}")
        for name in ("default_slippage_bps", "fee_on_transfer_slippage_bps"):
            value = getattr(self, name)
            if not 0 <= value <= constants.BPS_DENOMINATOR:
                raise ValueError(f"{name} must be in [0, 10000], got {value}")
        object.__setattr__(self, "wrapped_native", normalize_address(self.wrapped_native, validate=True))
        object.__setattr__(self, "native_address", normalize_address(self.native_address, validate=True))

    @property
    def routers_by_priority(self) -> list[RouterConfig]:
        return sorted(self.routers, key=lambda r: r.priority)

    def router(self, router_id: str) -> RouterConfig:
        """Look up a router by id.

        Raises:
            KeyError: If no router has that id
        """
        for r in self.routers:
            if r.id == router_id:
                return r
        raise KeyError(f"Unknown router: {router_id}")

    @classmethod
    def from_env(cls, base: EngineConfig | None = None) -> EngineConfig:
        """Overlay SWAPENGINE_* environment variables on a base config."""
        cfg = base or cls()
        env = os.environ
        receipt_poll = PollPolicy(
            max_attempts=int(env.get("SWAPENGINE_RECEIPT_POLL_ATTEMPTS", cfg.receipt_poll.max_attempts)),
            interval_seconds=float(env.get("SWAPENGINE_RECEIPT_POLL_INTERVAL", cfg.receipt_poll.interval_seconds)),
        )
        switch = env.get("SWAPENGINE_SWITCH_THRESHOLD_BPS")
        return replace(
            cfg,
            rpc_url=env.get("SWAPENGINE_RPC_URL", cfg.rpc_url),
            chain_id=int(env.get("SWAPENGINE_CHAIN_ID", cfg.chain_id)),
            read_concurrency=int(env.get("SWAPENGINE_READ_CONCURRENCY", cfg.read_concurrency)),
            default_slippage_bps=int(env.get("SWAPENGINE_DEFAULT_SLIPPAGE_BPS", cfg.default_slippage_bps)),
            optimistic_confirmation=_env_flag(
                env.get("SWAPENGINE_OPTIMISTIC_CONFIRMATION"), cfg.optimistic_confirmation
            ),
            switch_threshold_bps=int(switch) if switch else cfg.switch_threshold_bps,
            native_reference_price=Decimal(env.get("SWAPENGINE_NATIVE_REFERENCE_PRICE", cfg.native_reference_price)),
            receipt_poll=receipt_poll,
        )


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_CONFIG = EngineConfig()
