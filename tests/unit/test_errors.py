"""Tests for error taxonomy and provider-error classification."""

import pytest

from swapengine.errors import (
    ConfirmationTimeout,
    ErrorKind,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientLiquidity,
    ProviderError,
    ProviderUnavailable,
    QuoteStale,
    TransactionFailed,
    UserRejected,
    classify_error,
    clean_message,
    error_for_kind,
    format_user_error,
    is_transient,
    is_user_rejection,
)


class TestClassifyError:
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("MetaMask Tx Signature: User denied transaction signature.", UserRejected),
            ("insufficient funds for gas * price + value", InsufficientBalance),
            ("gas required exceeds allowance (8000000)", TransactionFailed),
            ("execution reverted: TransferHelper: TRANSFER_FROM_FAILED", InsufficientAllowance),
            ("execution reverted: UniswapV2Router: EXPIRED", QuoteStale),
            ("execution reverted: UniswapV2Router: INSUFFICIENT_OUTPUT_AMOUNT", QuoteStale),
            ("execution reverted: UniswapV2Library: INSUFFICIENT_LIQUIDITY", InsufficientLiquidity),
            ("execution reverted: UniswapV2: K", QuoteStale),
            ("Internal JSON-RPC error.", ProviderUnavailable),
        ],
    )
    def test_patterns(self, message, expected):
        assert isinstance(classify_error(Exception(message)), expected)

    def test_codes(self):
        assert isinstance(classify_error(ProviderError("nope", code=4001)), UserRejected)
        assert isinstance(classify_error(ProviderError("gone", code=4900)), ProviderUnavailable)
        assert classify_error(ProviderError("no account", code=4100)).message == "Wallet is not connected"

    def test_network_exceptions(self):
        assert isinstance(classify_error(ConnectionError()), ProviderUnavailable)
        assert isinstance(classify_error(TimeoutError()), ProviderUnavailable)

    def test_passthrough(self):
        error = ConfirmationTimeout("slow")
        assert classify_error(error) is error

    def test_unmatched_is_cleaned(self):
        error = classify_error(Exception("execution reverted: Custom pool rule"))
        assert isinstance(error, TransactionFailed)
        assert error.message == "Custom pool rule"
        assert error.kind is ErrorKind.TRANSACTION_FAILED

    def test_format_user_error(self):
        assert format_user_error(ProviderError("x", code=4001)) == UserRejected.default_message


class TestCleanMessage:
    def test_strips_prefixes(self):
        assert clean_message("Error: execution reverted: Boom") == "Boom"

    def test_truncates(self):
        cleaned = clean_message("x" * 500)
        assert len(cleaned) == 200
        assert cleaned.endswith("...")

    def test_empty_falls_back(self):
        assert clean_message("execution reverted") == TransactionFailed.default_message


class TestPredicates:
    def test_user_rejection(self):
        assert is_user_rejection(UserRejected())
        assert is_user_rejection(ProviderError("x", code=4001))
        assert is_user_rejection(Exception("User rejected the request."))
        assert not is_user_rejection(Exception("timeout"))

    def test_transient(self):
        assert is_transient(ConnectionError())
        assert is_transient(Exception("502 Bad Gateway"))
        assert is_transient(ProviderUnavailable())
        assert is_transient(ProviderError("busy", code=-32002))
        assert not is_transient(ProviderError("User denied", code=4001))
        assert not is_transient(InsufficientBalance())
        assert not is_transient(Exception("execution reverted"))


class TestErrorForKind:
    def test_builds_matching_class(self):
        error = error_for_kind(ErrorKind.INSUFFICIENT_LIQUIDITY, "dry")
        assert isinstance(error, InsufficientLiquidity)
        assert error.message == "dry"

    def test_unknown_kind(self):
        assert isinstance(error_for_kind(None, "x"), TransactionFailed)

    def test_default_message(self):
        assert error_for_kind(ErrorKind.QUOTE_STALE).message == QuoteStale.default_message
