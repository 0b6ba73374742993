from __future__ import annotations

from ..constants import PRICE_FEED_VERSION
from ..errors import ConfigurationError
from .base import BasePriceFeed, PriceObservation


class SimplePriceFeed(BasePriceFeed):
    """In-memory primary feed for development networks and tests.

    Each call to ``set_price`` opens a new round; earlier rounds stay
    readable through ``get_round_data``.
    """

    def __init__(
        self,
        initial_price: int,
        decimals: int,
        description: str = "Simple price feed",
        timestamp: int = 0,
    ):
        if decimals < 0:
            raise ConfigurationError(f"decimals must be non-negative, got {decimals}")
        self._decimals = decimals
        self._description = description
        self._rounds: dict[int, PriceObservation] = {}
        self._latest_round_id = 0
        self.set_price(initial_price, timestamp)

    @property
    def decimals(self) -> int:
        return self._decimals

    @property
    def description(self) -> str:
        return self._description

    @property
    def version(self) -> int:
        return PRICE_FEED_VERSION

    def set_price(self, price: int, timestamp: int = 0) -> PriceObservation:
        round_id = self._latest_round_id + 1
        observation = PriceObservation(
            round_id=round_id,
            answer=price,
            started_at=timestamp,
            updated_at=timestamp,
            answered_in_round=round_id,
        )
        self._rounds[round_id] = observation
        self._latest_round_id = round_id
        return observation

    def get_round_data(self, round_id: int) -> PriceObservation:
        try:
            return self._rounds[round_id]
        except KeyError:
            raise LookupError(f"No data present for round {round_id}") from None

    def latest_round_data(self) -> PriceObservation:
        return self._rounds[self._latest_round_id]
