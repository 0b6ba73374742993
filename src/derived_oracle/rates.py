"""Exchange-rate sources for wrapped, yield-bearing tokens."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from web3 import Web3
from web3.contract import Contract
from web3.types import BlockIdentifier

from .abi import get_contract, load_wsteth_abi, with_uint256_getter
from .constants import DEFAULT_EXCHANGE_RATE_METHOD

logger = logging.getLogger(__name__)


class ExchangeRateSource(ABC):
    """A wrapped token that reports its own exchange rate.

    ``exchange_rate()`` returns the unsigned number of wrapped-token units per
    one unit of the underlying, scaled by the underlying's decimals.
    """

    @property
    @abstractmethod
    def decimals(self) -> int:
        """Decimal precision of the wrapped token itself."""
        ...

    @abstractmethod
    def exchange_rate(self) -> int:
        """Read the current exchange rate. Never cached."""
        ...


class ContractRateSource(ExchangeRateSource):
    """Exchange rate read from a token contract through web3.

    The rate getter differs between tokens (``tokensPerStEth`` on wstETH,
    ``getExchangeRate`` on rETH); ``rate_method`` names the one to call.
    """

    def __init__(
        self,
        contract: Contract,
        rate_method: str = DEFAULT_EXCHANGE_RATE_METHOD,
        block_identifier: BlockIdentifier = "latest",
    ):
        self.contract = contract
        self.rate_method = rate_method
        self.block_identifier = block_identifier

    @classmethod
    def from_address(
        cls,
        w3: Web3,
        address: str,
        rate_method: str = DEFAULT_EXCHANGE_RATE_METHOD,
        block_identifier: BlockIdentifier = "latest",
        abi: list[dict] | None = None,
    ) -> "ContractRateSource":
        # Any getter missing from the ABI is assumed to be a plain uint256 view.
        abi = with_uint256_getter(abi or load_wsteth_abi(), rate_method)
        contract = get_contract(w3, address, abi)
        return cls(contract, rate_method, block_identifier)

    @property
    def address(self) -> str:
        return self.contract.address

    @property
    def decimals(self) -> int:
        return int(
            self.contract.functions.decimals().call(
                block_identifier=self.block_identifier
            )
        )

    def exchange_rate(self) -> int:
        rate_fn = getattr(self.contract.functions, self.rate_method)
        rate = int(rate_fn().call(block_identifier=self.block_identifier))
        logger.debug("%s.%s() = %d", self.address, self.rate_method, rate)
        return rate


class StaticRateSource(ExchangeRateSource):
    """Fixed exchange rate, for development networks and tests."""

    def __init__(self, rate: int, decimals: int = 18, address: str | None = None):
        self.rate = rate
        self._decimals = decimals
        self.address = address

    @property
    def decimals(self) -> int:
        return self._decimals

    def exchange_rate(self) -> int:
        return self.rate
