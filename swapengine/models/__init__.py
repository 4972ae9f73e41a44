"""Data models shared across the engine."""

from swapengine.models.types import Address, Amount, SlippageBps, is_valid_address, normalize_address

__all__ = [
    "Address",
    "Amount",
    "SlippageBps",
    "is_valid_address",
    "normalize_address",
]
