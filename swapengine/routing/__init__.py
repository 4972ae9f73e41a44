"""Pair resolution, quoting, price impact and wrap detection."""

from swapengine.routing.pricing import maximum_input, minimum_received, price_impact, recommend_slippage
from swapengine.routing.quoter import Candidate, PathQuote, QuoteCalculator
from swapengine.routing.resolver import PairResolver, PairState
from swapengine.routing.wrap import WrapKind, classify, wrap_quote

__all__ = [
    "Candidate",
    "PathQuote",
    "QuoteCalculator",
    "PairResolver",
    "PairState",
    "WrapKind",
    "classify",
    "wrap_quote",
    "price_impact",
    "minimum_received",
    "maximum_input",
    "recommend_slippage",
]
