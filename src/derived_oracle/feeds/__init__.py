from __future__ import annotations

from .base import BasePriceFeed, PriceObservation
from .chainlink import ChainlinkPriceFeed
from .simple import SimplePriceFeed
from .wrapped import AdapterConfig, WrappedTokenPriceFeed

__all__ = [
    "AdapterConfig",
    "BasePriceFeed",
    "ChainlinkPriceFeed",
    "PriceObservation",
    "SimplePriceFeed",
    "WrappedTokenPriceFeed",
]
