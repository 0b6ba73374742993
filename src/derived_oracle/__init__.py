"""Derived price feeds for wrapped, yield-bearing collateral tokens."""

from __future__ import annotations

from .asset_config import (
    AssetConfig,
    PackedAssetConfig,
    pack_asset_config,
    unpack_asset_config,
)
from .errors import ConfigurationError, DerivedOracleError, InvalidMagnitudeError
from .feeds import (
    BasePriceFeed,
    ChainlinkPriceFeed,
    PriceObservation,
    SimplePriceFeed,
    WrappedTokenPriceFeed,
)

__all__ = [
    "AssetConfig",
    "BasePriceFeed",
    "ChainlinkPriceFeed",
    "ConfigurationError",
    "DerivedOracleError",
    "InvalidMagnitudeError",
    "PackedAssetConfig",
    "PriceObservation",
    "SimplePriceFeed",
    "WrappedTokenPriceFeed",
    "pack_asset_config",
    "unpack_asset_config",
]
