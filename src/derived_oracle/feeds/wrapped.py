from __future__ import annotations

import logging
from dataclasses import dataclass

from web3 import Web3
from web3.types import BlockIdentifier

from ..constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_EXCHANGE_RATE_METHOD,
    PRICE_FEED_VERSION,
)
from ..errors import ConfigurationError
from ..rates import ContractRateSource, ExchangeRateSource
from ..units import scale_down, to_signed, truncating_div
from .base import BasePriceFeed, PriceObservation
from .chainlink import ChainlinkPriceFeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdapterConfig:
    """Parameters captured once when a WrappedTokenPriceFeed is built."""

    reference_feed_address: str | None
    wrapped_token_address: str | None
    reference_decimals: int
    wrapped_token_scale: int
    decimals: int
    description: str = DEFAULT_DESCRIPTION
    version: int = PRICE_FEED_VERSION


class WrappedTokenPriceFeed(BasePriceFeed):
    """Price of a wrapped token derived from its underlying's feed.

    Every query reads the reference feed and the token's exchange rate anew:

        price = answer * wrapped_token_scale / exchange_rate
        price = price / 10**(reference_decimals - decimals)

    Both divisions truncate toward zero. The exchange rate is always the
    current one, so ``get_round_data`` on an old round combines that round's
    answer with today's rate.
    """

    def __init__(
        self,
        reference_feed: BasePriceFeed,
        wrapped_token: ExchangeRateSource,
        decimals: int,
        description: str = DEFAULT_DESCRIPTION,
    ):
        reference_decimals = reference_feed.decimals
        if decimals < 0:
            raise ConfigurationError(f"decimals must be non-negative, got {decimals}")
        if decimals > reference_decimals:
            raise ConfigurationError(
                f"Output decimals ({decimals}) exceed reference feed decimals "
                f"({reference_decimals})"
            )

        self.reference_feed = reference_feed
        self.wrapped_token = wrapped_token
        self.config = AdapterConfig(
            reference_feed_address=getattr(reference_feed, "address", None),
            wrapped_token_address=getattr(wrapped_token, "address", None),
            reference_decimals=reference_decimals,
            wrapped_token_scale=10**wrapped_token.decimals,
            decimals=decimals,
            description=description,
        )

    @classmethod
    def from_addresses(
        cls,
        w3: Web3,
        reference_feed_address: str,
        wrapped_token_address: str,
        decimals: int,
        description: str = DEFAULT_DESCRIPTION,
        rate_method: str = DEFAULT_EXCHANGE_RATE_METHOD,
        block_identifier: BlockIdentifier = "latest",
    ) -> "WrappedTokenPriceFeed":
        reference_feed = ChainlinkPriceFeed.from_address(
            w3, reference_feed_address, block_identifier
        )
        wrapped_token = ContractRateSource.from_address(
            w3, wrapped_token_address, rate_method, block_identifier
        )
        return cls(reference_feed, wrapped_token, decimals, description)

    @property
    def decimals(self) -> int:
        return self.config.decimals

    @property
    def description(self) -> str:
        return self.config.description

    @property
    def version(self) -> int:
        return self.config.version

    def get_round_data(self, round_id: int) -> PriceObservation:
        return self._derive(self.reference_feed.get_round_data(round_id))

    def latest_round_data(self) -> PriceObservation:
        return self._derive(self.reference_feed.latest_round_data())

    def derive_price(self, underlying_price: int, exchange_rate: int) -> int:
        """Convert an underlying price into the wrapped token's price.

        Raises:
            InvalidMagnitudeError: If ``exchange_rate`` does not fit an int256.
        """
        rate = to_signed(exchange_rate)
        price = truncating_div(underlying_price * self.config.wrapped_token_scale, rate)
        return scale_down(price, self.config.reference_decimals, self.config.decimals)

    def _derive(self, reference: PriceObservation) -> PriceObservation:
        exchange_rate = self.wrapped_token.exchange_rate()
        price = self.derive_price(reference.answer, exchange_rate)
        logger.debug(
            "Round %s: underlying=%d rate=%d derived=%d",
            reference.round_id,
            reference.answer,
            exchange_rate,
            price,
        )
        return reference._replace(answer=price)
