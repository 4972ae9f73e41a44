"""Error taxonomy and provider-error classification.

Every failure that reaches a caller is a SwapEngineError carrying an ErrorKind
and a message suitable for display. Raw provider exceptions are mapped onto
the taxonomy by classify_error().
"""

from __future__ import annotations

import re
from enum import Enum


class ErrorKind(Enum):
    """Categories of user-visible failures."""

    USER_REJECTED = "user_rejected"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
    QUOTE_STALE = "quote_stale"
    TRANSACTION_FAILED = "transaction_failed"
    CONFIRMATION_TIMEOUT = "confirmation_timeout"
    INVALID_TOKEN = "invalid_token"
    FLOW_IN_PROGRESS = "flow_in_progress"


class SwapEngineError(Exception):
    """Base class for engine failures.

    Attributes:
        kind: Taxonomy category
        message: Human-readable message
    """

    kind: ErrorKind = ErrorKind.TRANSACTION_FAILED
    default_message = "Transaction failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UserRejected(SwapEngineError):
    kind = ErrorKind.USER_REJECTED
    default_message = "Transaction was rejected in the wallet"


class ProviderUnavailable(SwapEngineError):
    kind = ErrorKind.PROVIDER_UNAVAILABLE
    default_message = "Network error. Please check your connection and try again"


class InsufficientLiquidity(SwapEngineError):
    kind = ErrorKind.INSUFFICIENT_LIQUIDITY
    default_message = "Insufficient liquidity for this trade"


class InsufficientBalance(SwapEngineError):
    kind = ErrorKind.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance for this transaction"


class InsufficientAllowance(SwapEngineError):
    kind = ErrorKind.INSUFFICIENT_ALLOWANCE
    default_message = "Token allowance is too low. Please approve again"


class QuoteStale(SwapEngineError):
    kind = ErrorKind.QUOTE_STALE
    default_message = "Price moved beyond your slippage tolerance. Refresh the quote and retry"


class TransactionFailed(SwapEngineError):
    kind = ErrorKind.TRANSACTION_FAILED
    default_message = "Transaction failed"


class ConfirmationTimeout(SwapEngineError):
    kind = ErrorKind.CONFIRMATION_TIMEOUT
    default_message = "Transaction was not confirmed in time"


class InvalidToken(SwapEngineError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid token"


class FlowInProgress(SwapEngineError):
    kind = ErrorKind.FLOW_IN_PROGRESS
    default_message = "Another transaction is already in progress"


class InvalidTransition(RuntimeError):
    """Illegal transaction state machine transition (programming error)."""


class ProviderError(Exception):
    """Error returned by a wallet provider, with its JSON-RPC / EIP-1193 code."""

    def __init__(self, message: str, code: int | None = None, data: object = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


# EIP-1193 / JSON-RPC codes
USER_REJECTED_CODE = 4001
UNAUTHORIZED_CODE = 4100
DISCONNECTED_CODES = (4900, 4901)
RESOURCE_UNAVAILABLE_CODE = -32002

MAX_MESSAGE_LENGTH = 200

# Ordered: the first matching pattern wins
_PATTERNS: list[tuple[re.Pattern[str], type[SwapEngineError], str | None]] = [
    (re.compile(r"user (denied|rejected)|rejected by user|user cancel", re.I), UserRejected, None),
    (
        re.compile(r"insufficient funds", re.I),
        InsufficientBalance,
        "Insufficient balance to pay for this transaction and network fees",
    ),
    (
        re.compile(r"gas required exceeds|out of gas|intrinsic gas", re.I),
        TransactionFailed,
        "Transaction would run out of gas. Try a smaller amount",
    ),
    (
        re.compile(r"nonce too low|nonce too high|invalid nonce", re.I),
        TransactionFailed,
        "Transaction nonce conflict. Please reset your wallet activity and retry",
    ),
    (
        re.compile(r"transfer_from_failed|transfer amount exceeds allowance|insufficient allowance", re.I),
        InsufficientAllowance,
        None,
    ),
    (re.compile(r"\bexpired\b|deadline", re.I), QuoteStale, "Transaction deadline passed. Please retry"),
    (re.compile(r"insufficient_output_amount|excessive_input_amount|slippage", re.I), QuoteStale, None),
    (
        re.compile(r"transfer amount exceeds balance|transfer_failed|transfer failed", re.I),
        InsufficientBalance,
        "Token transfer failed. Check your balance",
    ),
    (re.compile(r"pair.*(not exist|does not exist)|invalid_path", re.I), InsufficientLiquidity,
     "No trading pair exists for these tokens"),
    (re.compile(r"insufficient_liquidity|insufficient liquidity", re.I), InsufficientLiquidity, None),
    (re.compile(r"uniswapv2: k\b|: k$", re.I), QuoteStale, "Pool reserves changed during the swap. Please retry"),
    (
        re.compile(
            r"internal json-rpc error|network|timeout|timed out|connection|unreachable|"
            r"service unavailable|bad gateway|failed to fetch",
            re.I,
        ),
        ProviderUnavailable,
        None,
    ),
]

_TRANSIENT_KEYWORDS = (
    "connection",
    "timeout",
    "timed out",
    "network",
    "unreachable",
    "refused",
    "reset",
    "broken pipe",
    "failed to connect",
    "unavailable",
    "bad gateway",
    "internal json-rpc error",
    "header not found",
    "rate limit",
    "too many requests",
)

_REVERT_PREFIX = re.compile(r"^(error:\s*)?(execution reverted:?\s*)?(vm exception[^:]*:\s*)?", re.I)


def is_user_rejection(error: BaseException) -> bool:
    """True if the wallet refused to sign."""
    if isinstance(error, UserRejected):
        return True
    if isinstance(error, ProviderError) and error.code == USER_REJECTED_CODE:
        return True
    text = str(error).lower()
    return "denied" in text or "rejected" in text


def is_transient(error: BaseException) -> bool:
    """True for network/provider failures worth retrying.

    A user rejection is never transient.
    """
    if is_user_rejection(error):
        return False
    if isinstance(error, ProviderUnavailable):
        return True
    if isinstance(error, SwapEngineError):
        return False
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    if isinstance(error, ProviderError) and error.code in (*DISCONNECTED_CODES, RESOURCE_UNAVAILABLE_CODE):
        return True
    text = str(error).lower()
    return any(keyword in text for keyword in _TRANSIENT_KEYWORDS)


def clean_message(message: str) -> str:
    """Strip revert prefixes and bound the length of a raw error message."""
    cleaned = _REVERT_PREFIX.sub("", message.strip()).strip()
    if not cleaned:
        cleaned = TransactionFailed.default_message
    if len(cleaned) > MAX_MESSAGE_LENGTH:
        cleaned = cleaned[: MAX_MESSAGE_LENGTH - 3] + "..."
    return cleaned


def classify_error(error: BaseException) -> SwapEngineError:
    """Map any exception onto the error taxonomy.

    SwapEngineErrors pass through unchanged.
    """
    if isinstance(error, SwapEngineError):
        return error
    if isinstance(error, ProviderError):
        if error.code == USER_REJECTED_CODE:
            return UserRejected()
        if error.code == UNAUTHORIZED_CODE:
            return ProviderUnavailable("Wallet is not connected")
        if error.code in (*DISCONNECTED_CODES, RESOURCE_UNAVAILABLE_CODE):
            return ProviderUnavailable()
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ProviderUnavailable()

    text = str(error) or type(error).__name__
    for pattern, error_cls, message in _PATTERNS:
        if pattern.search(text):
            return error_cls(message)
    return TransactionFailed(clean_message(text))


def format_user_error(error: BaseException) -> str:
    """User-facing message for any exception."""
    return classify_error(error).message


def error_for_kind(kind: ErrorKind | None, message: str | None = None) -> SwapEngineError:
    """Build the error class for a kind; unknown kinds become TransactionFailed."""
    for error_cls in SwapEngineError.__subclasses__():
        if error_cls.kind is kind:
            return error_cls(message)
    return TransactionFailed(message)
