from __future__ import annotations

import logging

from web3 import Web3
from web3.contract import Contract
from web3.types import BlockIdentifier

from ..abi import get_contract, load_aggregator_abi
from .base import BasePriceFeed, PriceObservation

logger = logging.getLogger(__name__)


class ChainlinkPriceFeed(BasePriceFeed):
    """Primary feed backed by an on-chain Chainlink aggregator."""

    def __init__(
        self,
        contract: Contract,
        block_identifier: BlockIdentifier = "latest",
    ):
        self.contract = contract
        self.block_identifier = block_identifier

    @classmethod
    def from_address(
        cls,
        w3: Web3,
        address: str,
        block_identifier: BlockIdentifier = "latest",
    ) -> "ChainlinkPriceFeed":
        return cls(get_contract(w3, address, load_aggregator_abi()), block_identifier)

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

    @property
    def description(self) -> str:
        return self.contract.functions.description().call(
            block_identifier=self.block_identifier
        )

    @property
    def version(self) -> int:
        return int(
            self.contract.functions.version().call(
                block_identifier=self.block_identifier
            )
        )

    def get_round_data(self, round_id: int) -> PriceObservation:
        raw = self.contract.functions.getRoundData(round_id).call(
            block_identifier=self.block_identifier
        )
        return self._to_observation(raw)

    def latest_round_data(self) -> PriceObservation:
        raw = self.contract.functions.latestRoundData().call(
            block_identifier=self.block_identifier
        )
        return self._to_observation(raw)

    def _to_observation(self, raw) -> PriceObservation:
        round_id, answer, started_at, updated_at, answered_in_round = raw
        logger.debug(
            "Feed %s round %s: answer=%s updated_at=%s",
            self.address,
            round_id,
            answer,
            updated_at,
        )
        return PriceObservation(
            round_id=int(round_id),
            answer=int(answer),
            started_at=int(started_at),
            updated_at=int(updated_at),
            answered_in_round=int(answered_in_round),
        )
