"""Tests for constant-product swap math."""

import pytest

from swapengine.amm.constant_product import ConstantProduct, ConstantProductPool, constant_product
from swapengine.errors import InsufficientLiquidity
from tests.helpers.constants import TKA, TKB


class TestGetAmountOut:
    """Exact-input math."""

    def test_reference_example(self):
        """1,000 in against 1,000,000 / 2,000,000 at 30 bps yields 1,992."""
        assert constant_product.get_amount_out(1000, 1_000_000, 2_000_000, 30) == 1992

    def test_lower_fee_pays_more(self):
        at_30 = constant_product.get_amount_out(10**18, 10**21, 10**21, 30)
        at_25 = constant_product.get_amount_out(10**18, 10**21, 10**21, 25)
        assert at_25 > at_30

    def test_zero_input_returns_zero(self):
        assert constant_product.get_amount_out(0, 100, 100) == 0

    def test_empty_reserves_raise(self):
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_amount_out(100, 0, 100)
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_amount_out(100, 100, 0)

    def test_output_never_reaches_reserve(self):
        """Even an enormous input cannot drain the pool."""
        assert constant_product.get_amount_out(10**40, 1000, 1000) < 1000


class TestGetAmountIn:
    """Exact-output math."""

    def test_reference_inverse(self):
        assert constant_product.get_amount_in(1992, 1_000_000, 2_000_000, 30) == 1000

    def test_output_at_or_above_reserve_raises(self):
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_amount_in(2_000_000, 1_000_000, 2_000_000)
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_amount_in(3_000_000, 1_000_000, 2_000_000)

    @pytest.mark.parametrize(
        "reserve_in,reserve_out,fee_bps",
        [
            (1_000_000, 2_000_000, 30),
            (10**21, 3 * 10**9, 25),
            (7_919, 104_729, 30),
            (5 * 10**24, 10**18, 0),
        ],
    )
    def test_round_trip_favors_pool(self, reserve_in, reserve_out, fee_bps):
        """Paying get_amount_in(y) always buys at least y."""
        for desired in (1, 17, reserve_out // 1000 or 1, reserve_out // 3):
            required = constant_product.get_amount_in(desired, reserve_in, reserve_out, fee_bps)
            assert constant_product.get_amount_out(required, reserve_in, reserve_out, fee_bps) >= desired

    def test_rounds_up(self):
        """A result that divides evenly still gets +1."""
        amm = ConstantProduct()
        # 100 * 50 * 10000 / ((150 - 50) * 10000) = 50 exactly, fee 0
        assert amm.get_amount_in(50, 100, 150, 0) == 51


class TestQuote:
    def test_proportional(self):
        assert constant_product.quote(500, 1_000, 4_000) == 2_000

    def test_empty_pool_raises(self):
        with pytest.raises(InsufficientLiquidity):
            constant_product.quote(1, 0, 10)


class TestPool:
    """Pool helpers and leg simulation."""

    def make_pool(self) -> ConstantProductPool:
        return ConstantProductPool(
            address="0x" + "AB" * 20,
            token0=TKA.upper().replace("0X", "0x"),
            token1=TKB,
            reserve0=1_000_000,
            reserve1=2_000_000,
            fee_bps=30,
        )

    def test_addresses_normalized(self):
        pool = self.make_pool()
        assert pool.address == "0x" + "ab" * 20
        assert pool.token0 == TKA

    def test_reserves_ordered_by_input(self):
        pool = self.make_pool()
        assert pool.get_reserves(TKA) == (1_000_000, 2_000_000)
        assert pool.get_reserves(TKB) == (2_000_000, 1_000_000)
        assert pool.get_token_out(TKB) == TKA

    def test_unknown_token(self):
        with pytest.raises(ValueError):
            self.make_pool().get_reserves("0x" + "99" * 20)

    def test_simulate_swap(self):
        result = constant_product.simulate_swap(self.make_pool(), TKA, 1000)
        assert result.amount_out == 1992
        assert result.token_out == TKB
        assert (result.reserve_in, result.reserve_out) == (1_000_000, 2_000_000)

    def test_simulate_exact_output(self):
        result = constant_product.simulate_swap_exact_output(self.make_pool(), TKA, 1992)
        assert result.amount_in == 1000
        assert result.amount_out == 1992

    def test_has_liquidity(self):
        pool = self.make_pool()
        assert pool.has_liquidity
        empty = ConstantProductPool(address=pool.address, token0=TKA, token1=TKB, reserve0=0, reserve1=5)
        assert not empty.has_liquidity
        assert pool.fee_multiplier == 9970
