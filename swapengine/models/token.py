"""Token model and base-unit conversion helpers."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swapengine.constants import NATIVE_ADDRESS
from swapengine.models.types import Address, normalize_address

# Enough digits for any uint256 amount at any decimals
_PRECISION = 160


class Token(BaseModel):
    """An ERC-20 token, or the native coin under the sentinel address.

    Addresses are stored lowercase so tokens compare by value.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(min_length=1)
    name: str = ""
    address: Address
    # Most tokens use 18 decimals; uint256 tops out at 77
    decimals: int = Field(ge=0, le=77)
    price: Decimal | None = Field(default=None, ge=0, description="Optional reference price")
    imported: bool = False

    @field_validator("address", mode="before")
    @classmethod
    def _lowercase_address(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_address(value)
        return value

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_ADDRESS

    def to_units(self, amount: str | Decimal) -> int:
        """Parse a human-readable amount into base units (rounds down)."""
        return parse_amount(amount, self.decimals)

    def from_units(self, amount: int) -> Decimal:
        """Render base units as a Decimal amount."""
        return format_amount(amount, self.decimals)


def parse_amount(amount: str | Decimal, decimals: int) -> int:
    """Convert a decimal amount to integer base units, truncating extra precision.

    Raises:
        ValueError: If amount is not a non-negative number
    """
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError) as err:
        raise ValueError(f"Invalid amount: {amount!r}") from err
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = (value * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def format_amount(amount: int, decimals: int) -> Decimal:
    """Convert integer base units to a Decimal amount."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(amount).scaleb(-decimals)
