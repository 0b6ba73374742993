"""Collateral asset configuration and its two-word storage encoding.

``AssetConfig`` is the interchange form used by configuration tooling;
``PackedAssetConfig`` is what the protocol stores. The packed layout is::

    word_a = asset                          bits   0..159
           | borrow_collateral_factor / 1e14     160..175
           | liquidate_collateral_factor / 1e14  176..191
           | liquidation_factor / 1e14           192..207

    word_b = price_feed                     bits   0..159
           | decimals                            160..167
           | supply_cap / 10**decimals           168..231

Only configs that survive this layout exactly are valid, so
``unpack_asset_config(pack_asset_config(c)) == c`` always holds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from web3 import Web3

from .constants import (
    ADDRESS_BITS,
    DECIMALS_BITS,
    FACTOR_BITS,
    FACTOR_DESCALE,
    FACTOR_SCALE,
    MAX_DECIMALS,
    SUPPLY_CAP_BITS,
    UINT256_MAX,
)
from .errors import ConfigurationError

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

_BORROW_CF_OFFSET = ADDRESS_BITS
_LIQUIDATE_CF_OFFSET = _BORROW_CF_OFFSET + FACTOR_BITS
_LIQUIDATION_FACTOR_OFFSET = _LIQUIDATE_CF_OFFSET + FACTOR_BITS
_DECIMALS_OFFSET = ADDRESS_BITS
_SUPPLY_CAP_OFFSET = _DECIMALS_OFFSET + DECIMALS_BITS

_ADDRESS_MASK = (1 << ADDRESS_BITS) - 1
_FACTOR_MASK = (1 << FACTOR_BITS) - 1
_DECIMALS_MASK = (1 << DECIMALS_BITS) - 1
_SUPPLY_CAP_MASK = (1 << SUPPLY_CAP_BITS) - 1

FACTOR_FIELDS = (
    "borrow_collateral_factor",
    "liquidate_collateral_factor",
    "liquidation_factor",
)


def is_address(value: object) -> bool:
    return isinstance(value, str) and _ADDRESS_RE.match(value) is not None


def checksum_address(value: str, field_name: str = "address") -> str:
    """Validate an address syntactically and return its checksummed form.

    Raises:
        ConfigurationError: If ``value`` is not ``0x`` followed by 40 hex digits.
    """
    if not is_address(value):
        raise ConfigurationError(f"{field_name}: expected address, got `{value}`")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True)
class AssetConfig:
    """Risk parameters and price source of one collateral asset.

    Factors are fractions scaled by ``FACTOR_SCALE`` (1e18 == 100%) and must
    be multiples of 1e14. ``supply_cap`` is in the asset's base units and must
    be a whole number of tokens.
    """

    asset: str
    price_feed: str
    decimals: int
    borrow_collateral_factor: int
    liquidate_collateral_factor: int
    liquidation_factor: int
    supply_cap: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "asset", checksum_address(self.asset, "asset"))
        object.__setattr__(
            self, "price_feed", checksum_address(self.price_feed, "price_feed")
        )
        validate_asset_config(self)

    @property
    def scale(self) -> int:
        return 10**self.decimals


def validate_asset_config(config: AssetConfig) -> None:
    """Check that ``config`` is in range and representable in packed form.

    Raises:
        ConfigurationError: On the first violated constraint. Values are never
            clamped.
    """
    if not isinstance(config.decimals, int) or not 0 <= config.decimals <= MAX_DECIMALS:
        raise ConfigurationError(
            f"decimals must be an integer in [0, {MAX_DECIMALS}], got {config.decimals}"
        )

    for name in FACTOR_FIELDS:
        value = getattr(config, name)
        if not isinstance(value, int):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if value < 0:
            raise ConfigurationError(f"{name} less than 0% [received={value}]")
        if value > FACTOR_SCALE:
            raise ConfigurationError(f"{name} greater than 100% [received={value}]")
        if value % FACTOR_DESCALE:
            raise ConfigurationError(
                f"{name} has more than 4 decimal places of precision [received={value}]"
            )

    supply_cap = config.supply_cap
    if not isinstance(supply_cap, int) or supply_cap < 0:
        raise ConfigurationError(
            f"supply_cap must be a non-negative integer, got {supply_cap!r}"
        )
    whole_tokens, remainder = divmod(supply_cap, config.scale)
    if remainder:
        raise ConfigurationError(
            f"supply_cap {supply_cap} is not a whole number of tokens "
            f"(scale {config.scale})"
        )
    if whole_tokens > _SUPPLY_CAP_MASK:
        raise ConfigurationError(
            f"supply_cap {supply_cap} exceeds {SUPPLY_CAP_BITS}-bit storage"
        )


@dataclass(frozen=True)
class PackedAssetConfig:
    """Storage form of an AssetConfig: exactly two 256-bit words."""

    word_a: int
    word_b: int

    def __post_init__(self) -> None:
        for name in ("word_a", "word_b"):
            value = getattr(self, name)
            if not 0 <= value <= UINT256_MAX:
                raise ConfigurationError(f"{name} does not fit in 256 bits: {value}")

    def to_hex(self) -> tuple[str, str]:
        return (f"0x{self.word_a:064x}", f"0x{self.word_b:064x}")

    @classmethod
    def from_hex(cls, word_a: str, word_b: str) -> "PackedAssetConfig":
        return cls(word_a=int(word_a, 16), word_b=int(word_b, 16))


def pack_asset_config(config: AssetConfig) -> PackedAssetConfig:
    word_a = (
        int(config.asset, 16)
        | (config.borrow_collateral_factor // FACTOR_DESCALE) << _BORROW_CF_OFFSET
        | (config.liquidate_collateral_factor // FACTOR_DESCALE)
        << _LIQUIDATE_CF_OFFSET
        | (config.liquidation_factor // FACTOR_DESCALE) << _LIQUIDATION_FACTOR_OFFSET
    )
    word_b = (
        int(config.price_feed, 16)
        | config.decimals << _DECIMALS_OFFSET
        | (config.supply_cap // config.scale) << _SUPPLY_CAP_OFFSET
    )
    return PackedAssetConfig(word_a=word_a, word_b=word_b)


def unpack_asset_config(packed: PackedAssetConfig) -> AssetConfig:
    """Decode a PackedAssetConfig.

    Raises:
        ConfigurationError: If the words carry bits outside the layout or
            decode to an invalid config.
    """
    if packed.word_a >> (_LIQUIDATION_FACTOR_OFFSET + FACTOR_BITS):
        raise ConfigurationError("word_a has bits set above the packed layout")
    if packed.word_b >> (_SUPPLY_CAP_OFFSET + SUPPLY_CAP_BITS):
        raise ConfigurationError("word_b has bits set above the packed layout")

    word_a, word_b = packed.word_a, packed.word_b
    decimals = (word_b >> _DECIMALS_OFFSET) & _DECIMALS_MASK
    return AssetConfig(
        asset=_word_to_address(word_a),
        price_feed=_word_to_address(word_b),
        decimals=decimals,
        borrow_collateral_factor=((word_a >> _BORROW_CF_OFFSET) & _FACTOR_MASK)
        * FACTOR_DESCALE,
        liquidate_collateral_factor=((word_a >> _LIQUIDATE_CF_OFFSET) & _FACTOR_MASK)
        * FACTOR_DESCALE,
        liquidation_factor=((word_a >> _LIQUIDATION_FACTOR_OFFSET) & _FACTOR_MASK)
        * FACTOR_DESCALE,
        supply_cap=((word_b >> _SUPPLY_CAP_OFFSET) & _SUPPLY_CAP_MASK) * 10**decimals,
    )


def pack_asset_configs(configs: list[AssetConfig]) -> list[PackedAssetConfig]:
    return [pack_asset_config(config) for config in configs]


def _word_to_address(word: int) -> str:
    return Web3.to_checksum_address(f"0x{word & _ADDRESS_MASK:040x}")
