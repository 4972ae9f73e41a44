"""Tests for route selection and path quoting."""

import asyncio

from swapengine.constants import WNATIVE
from swapengine.errors import ErrorKind
from swapengine.models.quote import NoRoute, QuoteDirection
from swapengine.routing.quoter import PathQuote
from tests.helpers.constants import TKA, TKB, TKC
from tests.helpers.factories import make_config, make_engine

EXACT_IN = QuoteDirection.EXACT_IN
EXACT_OUT = QuoteDirection.EXACT_OUT


def quote(engine, token_in, token_out, amount, direction=EXACT_IN):
    return asyncio.run(engine.calculator.quote(token_in, token_out, amount, direction))


class TestRouterSelection:
    def test_preferred_router_wins(self, chain, engine):
        chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)
        chain.add_pair("sphynx", TKA, TKB, 1_000_000, 2_100_000)

        result = quote(engine, TKA, TKB, 1000)

        assert isinstance(result, PathQuote)
        assert result.router == "reachswap"
        assert result.amount_out == 1992

    def test_falls_back_when_preferred_missing(self, chain, engine):
        """Router A has no pair, router B has liquidity: B is chosen."""
        chain.add_pair("sphynx", TKA, TKB, 1_000_000, 2_000_000)

        result = quote(engine, TKA, TKB, 1000)

        assert isinstance(result, PathQuote)
        assert result.router == "sphynx"
        # 25 bps pays slightly more than 30 bps
        assert result.amount_out == 1993

    def test_falls_back_when_preferred_empty(self, chain, engine):
        chain.add_pair("reachswap", TKA, TKB, 0, 0)
        chain.add_pair("sphynx", TKA, TKB, 1_000_000, 2_000_000)
        assert quote(engine, TKA, TKB, 1000).router == "sphynx"

    def test_switch_threshold(self, chain):
        """With a threshold, a router beating the preferred one by more than it wins."""
        chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)
        chain.add_pair("sphynx", TKA, TKB, 1_000_000, 2_100_000)
        engine = make_engine(chain, make_config(switch_threshold_bps=200))

        assert quote(engine, TKA, TKB, 1000).router == "sphynx"

    def test_switch_threshold_not_met(self, chain):
        chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)
        chain.add_pair("sphynx", TKA, TKB, 1_000_000, 2_010_000)
        engine = make_engine(chain, make_config(switch_threshold_bps=200))

        assert quote(engine, TKA, TKB, 1000).router == "reachswap"


class TestPaths:
    def test_hop_through_wrapped_native(self, chain, engine):
        chain.add_pair("reachswap", TKA, WNATIVE, 1_000_000, 1_000_000)
        chain.add_pair("reachswap", WNATIVE, TKC, 1_000_000, 1_000_000)

        result = quote(engine, TKA, TKC, 1000)

        assert isinstance(result, PathQuote)
        assert result.path == (TKA, WNATIVE, TKC)
        assert len(result.hops) == 2
        assert result.hops[0].amount_out == result.hops[1].amount_in

    def test_hop_legs_on_one_router(self, chain, engine):
        """Legs split across routers do not form a path."""
        chain.add_pair("reachswap", TKA, WNATIVE, 1_000_000, 1_000_000)
        chain.add_pair("sphynx", WNATIVE, TKC, 1_000_000, 1_000_000)

        result = quote(engine, TKA, TKC, 1000)

        assert isinstance(result, NoRoute)

    def test_direct_pair_preferred_over_hop(self, chain, engine):
        chain.add_pair("sphynx", TKA, TKC, 1_000_000, 1_000_000)
        chain.add_pair("reachswap", TKA, WNATIVE, 1_000_000, 1_000_000)
        chain.add_pair("reachswap", WNATIVE, TKC, 1_000_000, 1_000_000)

        result = quote(engine, TKA, TKC, 1000)

        assert result.path == (TKA, TKC)
        assert result.router == "sphynx"

    def test_no_liquidity(self, engine):
        result = quote(engine, TKA, TKB, 1000)
        assert isinstance(result, NoRoute)
        assert result.kind is ErrorKind.INSUFFICIENT_LIQUIDITY


class TestExactOutput:
    def test_exact_output_amounts(self, chain, engine):
        chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)

        result = quote(engine, TKA, TKB, 1992, EXACT_OUT)

        assert result.amount_out == 1992
        assert result.amount_in == 1000

    def test_exact_output_multi_hop_covers_target(self, chain, engine):
        chain.add_pair("reachswap", TKA, WNATIVE, 3_000_000, 1_000_000)
        chain.add_pair("reachswap", WNATIVE, TKC, 1_000_000, 7_000_000)

        result = quote(engine, TKA, TKC, 5_000, EXACT_OUT)
        forward = quote(engine, TKA, TKC, result.amount_in)

        assert forward.amount_out >= 5_000

    def test_exact_output_beyond_reserve(self, chain, engine):
        chain.add_pair("reachswap", TKA, TKB, 1_000_000, 2_000_000)
        result = quote(engine, TKA, TKB, 2_000_000, EXACT_OUT)
        assert isinstance(result, NoRoute)
        assert result.kind is ErrorKind.INSUFFICIENT_LIQUIDITY
