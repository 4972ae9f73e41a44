"""Quote result types.

A quote request resolves to either a Route (with a RouteQuote) or a NoRoute
carrying the reason; callers match on the two variants instead of probing
optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum

from swapengine.amm.base import SwapResult
from swapengine.constants import PPM_DENOMINATOR
from swapengine.errors import ErrorKind
from swapengine.models.token import Token


class QuoteDirection(str, Enum):
    """Which side of the trade the user fixed."""

    EXACT_IN = "exact_in"
    EXACT_OUT = "exact_out"


class Operation(str, Enum):
    SWAP = "swap"
    WRAP = "wrap"
    UNWRAP = "unwrap"


@dataclass(frozen=True)
class PriceImpact:
    """Price impact in parts per million, or not yet computed.

    A computed impact of zero and a missing impact are different states;
    use is_computed before reading ppm.
    """

    ppm: int | None = None

    @classmethod
    def not_computed(cls) -> PriceImpact:
        return cls(None)

    @classmethod
    def zero(cls) -> PriceImpact:
        return cls(0)

    @property
    def is_computed(self) -> bool:
        return self.ppm is not None

    @property
    def bps(self) -> int | None:
        """Impact in basis points, rounded up."""
        if self.ppm is None:
            return None
        return -(-self.ppm // 100)

    @property
    def percent(self) -> Decimal | None:
        if self.ppm is None:
            return None
        return Decimal(self.ppm) * 100 / PPM_DENOMINATOR

    def exceeds(self, threshold_bps: int) -> bool:
        return self.ppm is not None and self.ppm > threshold_bps * 100


NOT_COMPUTED = PriceImpact.not_computed()


@dataclass(frozen=True)
class RouteQuote:
    """A fully computed quote.

    Amounts are integers in base units. exchange_rate and price_impact.percent
    are presentation values derived from them.

    Attributes:
        minimum_received: Slippage-adjusted output floor (exact input)
        maximum_input: Slippage-adjusted input ceiling (exact output)
        recommended_slippage_bps: Suggested tolerance when the current one looks
            too tight; None when no change is suggested
        router: Router id, or None for wrap/unwrap
        gas_estimate_wei: Flat network-fee estimate in native units
        path: Token addresses from input to output (wrapped native for the coin)
        hops: Per-pool legs; empty for wrap/unwrap
    """

    token_in: Token
    token_out: Token
    direction: QuoteDirection
    amount_in: int
    amount_out: int
    slippage_bps: int
    minimum_received: int
    maximum_input: int
    price_impact: PriceImpact = NOT_COMPUTED
    recommended_slippage_bps: int | None = None
    router: str | None = None
    gas_estimate_wei: int = 0
    fee_on_transfer: bool = False
    path: tuple[str, ...] = ()
    hops: tuple[SwapResult, ...] = field(default=())
    liquidity_available: bool = True
    operation: Operation = Operation.SWAP

    @property
    def is_multi_hop(self) -> bool:
        return len(self.hops) > 1

    @property
    def exchange_rate(self) -> Decimal:
        """Output per one input token, in display units."""
        if self.amount_in == 0:
            return Decimal(0)
        with localcontext() as ctx:
            ctx.prec = 40
            out_units = Decimal(self.amount_out).scaleb(-self.token_out.decimals)
            in_units = Decimal(self.amount_in).scaleb(-self.token_in.decimals)
            return out_units / in_units


@dataclass(frozen=True)
class Route:
    """A tradable route."""

    quote: RouteQuote

    @property
    def router(self) -> str | None:
        return self.quote.router


@dataclass(frozen=True)
class NoRoute:
    """No tradable route exists for the request.

    Attributes:
        reason: Human-readable explanation
        kind: Taxonomy category when the cause is known
    """

    reason: str
    kind: ErrorKind | None = None


RouteOutcome = Route | NoRoute
