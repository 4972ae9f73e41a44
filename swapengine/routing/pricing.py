"""Price impact and slippage.

Price impact compares the executed rate with the spot rate implied by the
reserves along the path:

    impact = 1 - (amount_out / amount_in) / prod(reserve_out / reserve_in)

computed in integer parts per million. Slippage bounds use basis points:
minimum received rounds down, maximum input rounds up.
"""

from __future__ import annotations

from collections.abc import Sequence

from swapengine.amm.base import SwapResult
from swapengine.config import EngineConfig
from swapengine.constants import BPS_DENOMINATOR, PPM_DENOMINATOR
from swapengine.models.quote import NOT_COMPUTED, PriceImpact
from swapengine.safe_int import S


def price_impact(amount_in: int, amount_out: int, hops: Sequence[SwapResult]) -> PriceImpact:
    """Impact of a trade along its hops.

    Returns NOT_COMPUTED when no reserves are known or any reserve is empty.
    A zero-size trade has zero impact.
    """
    if not hops or any(h.reserve_in <= 0 or h.reserve_out <= 0 for h in hops):
        return NOT_COMPUTED
    if amount_in <= 0:
        return PriceImpact.zero()

    spot_out = S(amount_in)
    spot_in = S(1)
    for hop in hops:
        spot_out = spot_out * hop.reserve_out
        spot_in = spot_in * hop.reserve_in
    # amount_out at the spot rate is spot_out / spot_in
    executed = S(amount_out) * spot_in
    if executed >= spot_out:
        return PriceImpact.zero()
    ppm = ((spot_out - executed) * PPM_DENOMINATOR // spot_out).min(PPM_DENOMINATOR)
    return PriceImpact(ppm.value)


def minimum_received(amount_out: int, slippage_bps: int) -> int:
    """floor(amount_out * (10000 - slippage) / 10000)."""
    _check_slippage(slippage_bps)
    return (S(amount_out) * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR).value


def maximum_input(amount_in: int, slippage_bps: int) -> int:
    """ceil(amount_in * (10000 + slippage) / 10000)."""
    _check_slippage(slippage_bps)
    return (S(amount_in) * (BPS_DENOMINATOR + slippage_bps)).ceiling_div(BPS_DENOMINATOR).value


def recommend_slippage(
    impact: PriceImpact,
    slippage_bps: int,
    fee_on_transfer: bool,
    config: EngineConfig,
) -> int | None:
    """Slippage to suggest to the user, or None if the current one is fine.

    Above the high-impact threshold the suggestion is impact + safety margin;
    fee-on-transfer tokens never get less than the configured floor. The
    suggestion is advisory and never applied automatically.
    """
    candidate = 0
    if impact.exceeds(config.high_impact_threshold_bps):
        candidate = (impact.bps or 0) + config.impact_safety_margin_bps
    if fee_on_transfer:
        candidate = max(candidate, config.fee_on_transfer_slippage_bps)
    candidate = min(candidate, BPS_DENOMINATOR)
    if candidate > slippage_bps:
        return candidate
    return None


def is_high_impact(impact: PriceImpact, config: EngineConfig) -> bool:
    return impact.exceeds(config.high_impact_threshold_bps)


def _check_slippage(slippage_bps: int) -> None:
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps must be in [0, {BPS_DENOMINATOR}], got {slippage_bps}")


__all__ = [
    "price_impact",
    "minimum_received",
    "maximum_input",
    "recommend_slippage",
    "is_high_impact",
]
