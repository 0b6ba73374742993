from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NamedTuple


class PriceObservation(NamedTuple):
    """One round of an AggregatorV3Interface-style price feed."""

    round_id: int
    answer: int  # scaled by 10**decimals of the reporting feed
    started_at: int
    updated_at: int
    answered_in_round: int


class BasePriceFeed(ABC):
    """Abstract base class for round-data price feeds.

    Primary and derived feeds share this interface so callers never need to
    know which kind they were handed.
    """

    @property
    @abstractmethod
    def decimals(self) -> int:
        """Decimal precision of the reported answers."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def version(self) -> int:
        ...

    @abstractmethod
    def get_round_data(self, round_id: int) -> PriceObservation:
        """Return the observation recorded for ``round_id``."""
        ...

    @abstractmethod
    def latest_round_data(self) -> PriceObservation:
        """Return the most recent observation."""
        ...
