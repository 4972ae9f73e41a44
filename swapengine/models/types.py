"""Shared type definitions for token, quote and API models."""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

UINT256_MAX = 2**256 - 1


def validate_amount(value: Any) -> int:
    """Coerce a base-unit amount (int or decimal string) into a uint256 int.

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be an integer, got bool")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Amount must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Amount must be string or int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Amount overflow: {value} > 2^256-1")
    return value


# EVM address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Token amount in base units, accepted as int or decimal string
Amount = Annotated[
    int,
    BeforeValidator(validate_amount),
    Field(description="Token amount in base units"),
]

# Slippage tolerance in basis points (0-10000)
SlippageBps = Annotated[int, Field(ge=0, le=10_000)]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an EVM address to lowercase with 0x prefix.

    Args:
        address: An address (with or without 0x prefix, any case)
        validate: If True, raises ValueError for malformed addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and the address is malformed
    """
    addr = address.strip().lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed, 40-hex-character address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x") or len(address) != 42:
        return False
    try:
        int(address, 16)
    except ValueError:
        return False
    return True
