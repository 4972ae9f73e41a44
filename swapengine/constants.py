"""Network constants for the Loop network deployment.

Centralizes well-known addresses and protocol parameters.
"""

from swapengine.models.types import is_valid_address


def _validate_address(name: str, address: str) -> str:
    """Validate and lowercase a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address.lower()


LOOP_CHAIN_ID = 15551

# Fee arithmetic is in basis points
FEE_DENOMINATOR = 10_000
BPS_DENOMINATOR = 10_000

# Price impact is carried in parts per million
PPM_DENOMINATOR = 1_000_000

# Locked on the first mint of every V2 pair
MINIMUM_LIQUIDITY = 1_000

# Sentinel address standing in for the native coin
NATIVE_ADDRESS = _validate_address("native", "0x0000000000000000000000000000000000000000")
ZERO_ADDRESS = NATIVE_ADDRESS

# Wrapped native token (wLOOP)
WNATIVE = _validate_address("wLOOP", "0x3936D20a39eD4b0d44EaBfC91757B182f14A38d5")

# Router deployments
REACHSWAP_ROUTER = _validate_address("ReachSwap router", "0xdc1eB9E0a9E1c589D42a5B7A48aCF59aa5e589A3")
REACHSWAP_FACTORY = _validate_address("ReachSwap factory", "0xD5f79e2cfA1d7DEc6C231FC7447e432a4DAFA3Cc")
REACHSWAP_FEE_BPS = 30

SPHYNX_ROUTER = _validate_address("Sphynx router", "0x021745980c4b9c2F60262a0B140B1640471fb5E7")
SPHYNX_FACTORY = _validate_address("Sphynx factory", "0xc0246B4f24475A11EE4383D29575394dc237Fc36")
SPHYNX_FEE_BPS = 25

# Listed tokens that take a fee on transfer
GIKO = _validate_address("GIKO", "0x0C6E54f51be9A01C10d0c233806B44b0c5EE5bD3")
KYC = _validate_address("KYC", "0x44b9e1C3431E777B446B3ac4A0ec5375a4D26E66")

# Flat network-fee estimates shown with quotes, in wei
REACHSWAP_GAS_COST_WEI = 10**15
SPHYNX_GAS_COST_WEI = 2 * 10**15
WRAP_GAS_COST_WEI = 10**15

# Gas limits used when eth_estimateGas fails
GAS_FALLBACK_SWAP = 1_000_000
GAS_FALLBACK_APPROVE = 90_000
GAS_FALLBACK_WRAP = 90_000
GAS_FALLBACK_ADD_LIQUIDITY = 320_000
GAS_FALLBACK_REMOVE_LIQUIDITY = 280_000
GAS_FALLBACK_DEFAULT = 500_000

# Multipliers applied to eth_estimateGas results, in basis points
GAS_BUFFER_SWAP_BPS = 13_000
GAS_BUFFER_APPROVE_BPS = 12_000
GAS_BUFFER_LIQUIDITY_BPS = 15_000

# Router calls carry a deadline this far in the future
DEADLINE_SECONDS = 1_200
