"""Protocol constants and well-known mainnet addresses."""

from typing import TypedDict


class MainnetContracts(TypedDict):
    STETH_ETH_FEED: str
    WSTETH: str


# Largest value an int256 can hold; exchange rates above it cannot be
# reinterpreted as signed.
INT256_MAX = 2**255 - 1
UINT256_MAX = 2**256 - 1

# Collateral factors are fractions scaled by FACTOR_SCALE.
FACTOR_SCALE = 10**18
# Packed factors keep four decimal places.
FACTOR_DESCALE = 10**14

ADDRESS_BITS = 160
FACTOR_BITS = 16
DECIMALS_BITS = 8
SUPPLY_CAP_BITS = 64
MAX_DECIMALS = 2**DECIMALS_BITS - 1

PRICE_FEED_VERSION = 1
DEFAULT_DESCRIPTION = "Custom price feed for wstETH / ETH"
DEFAULT_EXCHANGE_RATE_METHOD = "tokensPerStEth"

MAINNET_CONTRACTS: MainnetContracts = {
    "STETH_ETH_FEED": "0x86392dC19c0b719886221c78AB11eb8Cf5c52812",
    "WSTETH": "0x7f39C581F595B53c5cb19bD0b3f8dA6c935E2Ca0",
}

# Deployment names whose contracts are recorded under a different key.
CONTRACT_NAME_ALIASES: dict[str, str] = {
    "USDC": "FiatTokenProxy",
    "WBTC.e": "BridgeToken",
}
