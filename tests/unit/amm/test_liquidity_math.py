"""Tests for liquidity provision math."""

import pytest

from swapengine.amm.liquidity import liquidity_math, share_bps
from swapengine.constants import MINIMUM_LIQUIDITY
from swapengine.errors import InsufficientLiquidity


class TestOptimalAmounts:
    def test_empty_pool_takes_desired(self):
        assert liquidity_math.optimal_amounts(10, 20, 0, 0) == (10, 20)

    def test_limits_b_to_ratio(self):
        """Pool is 1:2; offering 100 A and 500 B deposits 100 A and 200 B."""
        assert liquidity_math.optimal_amounts(100, 500, 1_000, 2_000) == (100, 200)

    def test_limits_a_when_b_is_short(self):
        assert liquidity_math.optimal_amounts(100, 100, 1_000, 2_000) == (50, 100)


class TestMint:
    def test_first_deposit_locks_minimum(self):
        """First liquidity mints sqrt(a * b) - 1000."""
        quote = liquidity_math.mint(1_000_000, 4_000_000, 0, 0, 0)
        assert quote.first_liquidity
        assert quote.liquidity == 2_000_000 - MINIMUM_LIQUIDITY
        # share excludes the locked minimum from the provider
        assert quote.share_of_pool_bps == 9995

    def test_tiny_first_deposit_rejected(self):
        with pytest.raises(InsufficientLiquidity):
            liquidity_math.mint(1_000, 1_000, 0, 0, 0)

    def test_proportional_deposit(self):
        """Later deposits mint min(a * S / Ra, b * S / Rb)."""
        quote = liquidity_math.mint(100, 200, 1_000, 2_000, 1_000)
        assert not quote.first_liquidity
        assert quote.liquidity == 100
        assert quote.share_of_pool_bps == 100 * 10_000 // 1_100

    def test_deposit_too_small(self):
        with pytest.raises(InsufficientLiquidity):
            liquidity_math.mint(1, 1, 10**18, 10**18, 10**6)


class TestBurn:
    def test_pro_rata(self):
        quote = liquidity_math.burn(250, 1_000, 4_000, 1_000)
        assert (quote.amount_a, quote.amount_b) == (250, 1_000)
        assert quote.share_of_pool_bps == 2_500

    def test_rounds_down(self):
        quote = liquidity_math.burn(1, 10, 10, 3)
        assert (quote.amount_a, quote.amount_b) == (3, 3)

    def test_exceeding_supply_raises(self):
        with pytest.raises(InsufficientLiquidity):
            liquidity_math.burn(11, 100, 100, 10)

    def test_empty_pool_raises(self):
        with pytest.raises(InsufficientLiquidity):
            liquidity_math.burn(1, 0, 0, 0)


def test_share_bps_empty_pool():
    assert share_bps(5, 0) == 0
    assert share_bps(1, 3) == 3333
