"""Tests for wrap/unwrap detection."""

import pytest

from swapengine.config import DEFAULT_CONFIG
from swapengine.models.quote import Operation, QuoteDirection
from swapengine.routing.wrap import WrapKind, classify, wrap_quote
from tests.helpers.constants import NATIVE, TOKEN_A, WRAPPED


class TestClassify:
    def test_wrap_and_unwrap(self):
        assert classify(NATIVE.address, WRAPPED.address, DEFAULT_CONFIG) is WrapKind.WRAP
        assert classify(WRAPPED.address, NATIVE.address, DEFAULT_CONFIG) is WrapKind.UNWRAP

    def test_case_insensitive(self):
        assert classify(NATIVE.address, WRAPPED.address.upper().replace("0X", "0x"), DEFAULT_CONFIG) is WrapKind.WRAP

    def test_other_pairs(self):
        assert classify(NATIVE.address, TOKEN_A.address, DEFAULT_CONFIG) is WrapKind.NONE
        assert classify(WRAPPED.address, TOKEN_A.address, DEFAULT_CONFIG) is WrapKind.NONE
        assert classify(WRAPPED.address, WRAPPED.address, DEFAULT_CONFIG) is WrapKind.NONE


class TestWrapQuote:
    @pytest.mark.parametrize("direction", list(QuoteDirection))
    def test_one_to_one(self, direction):
        quote = wrap_quote(NATIVE, WRAPPED, 12345, direction, 50, DEFAULT_CONFIG)
        assert quote.amount_in == quote.amount_out == 12345
        assert quote.minimum_received == quote.maximum_input == 12345
        assert quote.price_impact.ppm == 0
        assert quote.router is None
        assert quote.operation is Operation.WRAP
        assert quote.gas_estimate_wei == DEFAULT_CONFIG.wrap_gas_cost_wei

    def test_unwrap(self):
        quote = wrap_quote(WRAPPED, NATIVE, 7, QuoteDirection.EXACT_IN, 50, DEFAULT_CONFIG)
        assert quote.operation is Operation.UNWRAP

    def test_rejects_non_wrap_pair(self):
        with pytest.raises(ValueError):
            wrap_quote(NATIVE, TOKEN_A, 1, QuoteDirection.EXACT_IN, 50, DEFAULT_CONFIG)
