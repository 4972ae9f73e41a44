"""Token list and on-chain token import."""

from __future__ import annotations

import asyncio

import structlog

from swapengine import constants
from swapengine.chain.client import ChainClient
from swapengine.errors import InvalidToken
from swapengine.models.token import Token
from swapengine.models.types import is_valid_address, normalize_address

logger = structlog.get_logger()

LOOP = Token(symbol="LOOP", name="Loop Network", address=constants.NATIVE_ADDRESS, decimals=18)
WLOOP = Token(symbol="wLOOP", name="Wrapped Loop", address=constants.WNATIVE, decimals=18)

DEFAULT_TOKENS: tuple[Token, ...] = (
    LOOP,
    WLOOP,
    Token(symbol="GIKO", name="Giko Cat", address=constants.GIKO, decimals=18),
    Token(symbol="KYC", name="KYCURITY", address=constants.KYC, decimals=18),
    Token(symbol="LMEME", name="Loop Meme", address="0x992044E352627C8b2C53A50cb23E5C7576Af7D45", decimals=8),
    Token(symbol="ARC", name="ARC Technology", address="0x6927568448672477F675D1EAcbfFB20C1E5B7EEC", decimals=18),
    Token(symbol="$44", name="$44", address="0x5c450BD14869cCf77C3D935A776B3b0B7792035A", decimals=18),
    Token(symbol="DOOG", name="Doog", address="0xAd90e7Ad355fB1e19Df909b21B9117b0f56cB222", decimals=18),
    Token(symbol="MAKO", name="Mako Inu", address="0x0260f0bF5362Bc5b1a14A5605Df1Cff6cA4FE72b", decimals=18),
    Token(symbol="DRAGON", name="Dragon Soul", address="0xe350ea6fce40870564da7e96077210d9d412cfec", decimals=18),
    Token(symbol="LSHIB", name="Loop Shib", address="0xA91b36a561305b7F3A26c890A8afE3c4F719E1AA", decimals=9),
)


class TokenRegistry:
    """Known tokens by address, plus tokens imported at runtime."""

    def __init__(self, tokens: tuple[Token, ...] | list[Token] = DEFAULT_TOKENS):
        self._tokens: dict[str, Token] = {t.address: t for t in tokens}

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and normalize_address(address) in self._tokens

    def __iter__(self):
        return iter(self._tokens.values())

    def __len__(self) -> int:
        return len(self._tokens)

    def get(self, address: str) -> Token | None:
        return self._tokens.get(normalize_address(address))

    def by_symbol(self, symbol: str) -> Token | None:
        wanted = symbol.lower()
        return next((t for t in self._tokens.values() if t.symbol.lower() == wanted), None)

    def add(self, token: Token) -> Token:
        self._tokens[token.address] = token
        return token

    def remove(self, address: str) -> bool:
        """Forget an imported token; listed tokens cannot be removed."""
        token = self.get(address)
        if token is None or not token.imported:
            return False
        del self._tokens[token.address]
        return True


async def fetch_token(client: ChainClient, address: str) -> Token:
    """Read token metadata from chain.

    Decimals are required; a missing symbol or name falls back to a
    placeholder derived from the address.

    Raises:
        InvalidToken: If the address is malformed, has no code, or its code or
            decimals cannot be read
    """
    if not is_valid_address(address):
        raise InvalidToken(f"Invalid token address: {address}")
    token_address = normalize_address(address)
    if token_address == client.config.native_address:
        return LOOP

    try:
        code = await client.get_code(token_address)
    except Exception as e:
        logger.warning("token_code_unreadable", token=token_address, error=str(e))
        raise InvalidToken(f"Could not read contract code at {token_address}") from e
    if code in ("0x", "0x0", ""):
        raise InvalidToken(f"No contract deployed at {token_address}")

    decimals, symbol, name = await asyncio.gather(
        client.decimals(token_address),
        client.symbol(token_address),
        client.name(token_address),
        return_exceptions=True,
    )
    if isinstance(decimals, BaseException) or not 0 <= decimals <= 77:
        logger.warning("token_decimals_unreadable", token=token_address, error=str(decimals))
        raise InvalidToken(f"Could not read decimals for {token_address}")

    placeholder = f"TOKEN_{token_address[-4:].upper()}"
    if isinstance(symbol, BaseException) or not symbol.strip():
        logger.warning("token_symbol_unreadable", token=token_address, error=str(symbol))
        symbol = placeholder
    if isinstance(name, BaseException) or not name.strip():
        name = symbol

    return Token(symbol=symbol.strip(), name=name.strip(), address=token_address, decimals=decimals, imported=True)
