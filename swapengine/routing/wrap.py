"""Native coin <-> wrapped native detection.

Wrapping and unwrapping are 1:1 deposits/withdrawals on the wrapped-native
contract, so they bypass pair resolution and AMM math entirely.
"""

from __future__ import annotations

from enum import Enum

from swapengine.config import EngineConfig
from swapengine.models.quote import Operation, PriceImpact, QuoteDirection, RouteQuote
from swapengine.models.token import Token
from swapengine.models.types import normalize_address


class WrapKind(str, Enum):
    WRAP = "wrap"
    UNWRAP = "unwrap"
    NONE = "none"


def classify(token_in: str, token_out: str, config: EngineConfig) -> WrapKind:
    """WRAP for native -> wrapped, UNWRAP for wrapped -> native, else NONE."""
    a, b = normalize_address(token_in), normalize_address(token_out)
    if a == config.native_address and b == config.wrapped_native:
        return WrapKind.WRAP
    if a == config.wrapped_native and b == config.native_address:
        return WrapKind.UNWRAP
    return WrapKind.NONE


def wrap_quote(
    token_in: Token,
    token_out: Token,
    amount: int,
    direction: QuoteDirection,
    slippage_bps: int,
    config: EngineConfig,
) -> RouteQuote:
    """1:1 quote for a wrap or unwrap.

    Raises:
        ValueError: If the pair is not a wrap/unwrap pair
    """
    kind = classify(token_in.address, token_out.address, config)
    if kind is WrapKind.NONE:
        raise ValueError(f"{token_in.symbol}->{token_out.symbol} is not a wrap or unwrap")
    return RouteQuote(
        token_in=token_in,
        token_out=token_out,
        direction=direction,
        amount_in=amount,
        amount_out=amount,
        slippage_bps=slippage_bps,
        minimum_received=amount,
        maximum_input=amount,
        price_impact=PriceImpact.zero(),
        router=None,
        gas_estimate_wei=config.wrap_gas_cost_wei,
        path=(token_in.address, token_out.address),
        operation=Operation.WRAP if kind is WrapKind.WRAP else Operation.UNWRAP,
    )


__all__ = ["WrapKind", "classify", "wrap_quote"]
