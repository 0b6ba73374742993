"""Load a per-network protocol configuration file and build asset configs.

The file is the ``configuration.json`` used when deploying a market: human
friendly floats for rates and factors, asset names instead of addresses.
Everything is converted to on-chain integer form and validated here, so a bad
value fails at load time instead of producing a mispriced market.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .asset_config import AssetConfig, checksum_address, is_address
from .constants import CONTRACT_NAME_ALIASES, FACTOR_SCALE
from .errors import ConfigurationError
from .units import decimals_from_scale

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class RateConfiguration(_CamelModel):
    kink: float
    slope_low: float
    slope_high: float
    base: float


class TrackingConfiguration(_CamelModel):
    # int first: large JSON integers must not round-trip through float.
    index_scale: int | float
    base_supply_speed: int | float
    base_borrow_speed: int | float
    base_min_for_rewards: int | float


class AssetConfiguration(_CamelModel):
    borrow_cf: float = Field(alias="borrowCF")
    liquidate_cf: float = Field(alias="liquidateCF")
    liquidation_factor: float
    supply_cap: int | float
    price_feed: str
    scale: int | None = None
    decimals: int | None = None

    @model_validator(mode="after")
    def require_scale_or_decimals(self) -> "AssetConfiguration":
        if self.scale is None and self.decimals is None:
            raise ValueError("one of scale or decimals is required")
        return self


class NetworkConfiguration(_CamelModel):
    governor: str
    pause_guardian: str
    base_token: str
    base_token_price_feed: str
    reserve_rate: float
    borrow_min: int | float
    target_reserves: int | float
    rates: RateConfiguration
    tracking: TrackingConfiguration
    assets: dict[str, AssetConfiguration] = Field(default_factory=dict)


@dataclass(frozen=True)
class InterestRateInfo:
    kink: int
    per_year_interest_rate_slope_low: int
    per_year_interest_rate_slope_high: int
    per_year_interest_rate_base: int


@dataclass(frozen=True)
class TrackingInfo:
    tracking_index_scale: int
    base_tracking_supply_speed: int
    base_tracking_borrow_speed: int
    base_min_for_rewards: int


@dataclass(frozen=True)
class ProtocolConfiguration:
    """Fully resolved market configuration, ready to deploy."""

    governor: str
    pause_guardian: str
    base_token: str
    base_token_price_feed: str
    interest_rates: InterestRateInfo
    reserve_rate: int
    tracking: TrackingInfo
    base_borrow_min: int
    target_reserves: int
    asset_configs: list[AssetConfig] = field(default_factory=list)


def _to_decimal(n: float | int) -> Decimal:
    # str() keeps the literal the user wrote: Decimal(0.95) would not.
    return Decimal(str(n))


def number(n: float | int) -> int:
    """Floor a configured number to an integer."""
    value = _to_decimal(n)
    if not value.is_finite():
        raise ConfigurationError(f"expected a finite number, got {n}")
    return math.floor(value)


def percentage(n: float | int, check_range: bool = True) -> int:
    """Convert a fraction (``0.8`` == 80%) to its 1e18-scaled integer form.

    Raises:
        ConfigurationError: If ``n`` is not finite, or if ``check_range`` is
            set and ``n`` lies outside ``[0, 1]``.
    """
    value = _to_decimal(n)
    if not value.is_finite():
        raise ConfigurationError(f"expected a finite percentage, got {n}")
    if check_range:
        if n > 1.0:
            raise ConfigurationError(f"percentage greater than 100% [received={n}]")
        elif n < 0:
            raise ConfigurationError(f"percentage less than 0% [received={n}]")

    return math.floor(value * FACTOR_SCALE)


def address(a: str) -> str:
    """Return ``a`` unchanged if it is a syntactically valid address.

    Raises:
        ConfigurationError: Otherwise.
    """
    if not is_address(a):
        raise ConfigurationError(f"expected address, got `{a}`")
    return a


def get_contract_address(contract_name: str, contract_map: dict[str, str]) -> str:
    """Resolve a deployed contract name to its address.

    Some deployments record a token under its implementation name (USDC is a
    ``FiatTokenProxy``); those aliases are tried when the name is missing.

    Raises:
        ConfigurationError: If neither the name nor its alias is in the map.
    """
    contract = contract_map.get(contract_name)
    if contract is None:
        alias = CONTRACT_NAME_ALIASES.get(contract_name)
        if alias is not None:
            return get_contract_address(alias, contract_map)
        raise ConfigurationError(
            f"Cannot find contract `{contract_name}` in contract map with keys "
            f"`{', '.join(contract_map.keys())}`"
        )
    return contract


def resolve_address(name_or_address: str, contract_map: dict[str, str]) -> str:
    """Accept either a literal address or a contract name from the map."""
    if is_address(name_or_address):
        return name_or_address
    return get_contract_address(name_or_address, contract_map)


def get_interest_rate_info(rates: RateConfiguration) -> InterestRateInfo:
    return InterestRateInfo(
        kink=percentage(rates.kink),
        per_year_interest_rate_slope_low=percentage(rates.slope_low),
        per_year_interest_rate_slope_high=percentage(rates.slope_high),
        per_year_interest_rate_base=percentage(rates.base),
    )


def get_tracking_info(tracking: TrackingConfiguration) -> TrackingInfo:
    return TrackingInfo(
        tracking_index_scale=number(tracking.index_scale),
        base_tracking_supply_speed=number(tracking.base_supply_speed),
        base_tracking_borrow_speed=number(tracking.base_borrow_speed),
        base_min_for_rewards=number(tracking.base_min_for_rewards),
    )


def get_asset_decimals(asset_name: str, asset: AssetConfiguration) -> int:
    if asset.scale is not None:
        try:
            decimals = decimals_from_scale(asset.scale)
        except ValueError as e:
            raise ConfigurationError(f"{asset_name}: {e}") from e
        if asset.decimals is not None and asset.decimals != decimals:
            raise ConfigurationError(
                f"{asset_name}: scale {asset.scale} disagrees with "
                f"decimals {asset.decimals}"
            )
        return decimals
    elif asset.decimals is not None:
        return asset.decimals
    else:
        raise ConfigurationError(f"{asset_name}: one of scale or decimals is required")


def get_asset_configs(
    assets: dict[str, AssetConfiguration], contract_map: dict[str, str]
) -> list[AssetConfig]:
    asset_configs: list[AssetConfig] = []
    for asset_name, asset in assets.items():
        asset_address = resolve_address(asset_name, contract_map)
        try:
            asset_config = AssetConfig(
                asset=asset_address,
                price_feed=address(asset.price_feed),
                decimals=get_asset_decimals(asset_name, asset),
                borrow_collateral_factor=percentage(asset.borrow_cf),
                liquidate_collateral_factor=percentage(asset.liquidate_cf),
                liquidation_factor=percentage(asset.liquidation_factor),
                supply_cap=number(asset.supply_cap),
            )
        except ConfigurationError as e:
            raise ConfigurationError(f"Asset `{asset_name}`: {e}") from e
        logger.debug("Loaded asset %s at %s", asset_name, asset_config.asset)
        asset_configs.append(asset_config)
    return asset_configs


def load_network_configuration(path: str | Path) -> NetworkConfiguration:
    """Read and parse a ``configuration.json`` file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid JSON or misses fields.
    """
    p = Path(path)
    with p.open() as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{p}: invalid JSON: {e}") from e
    try:
        return NetworkConfiguration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"{p}: {e}") from e


def load_contract_map(path: str | Path) -> dict[str, str]:
    """Read a ``{name: address}`` JSON file of deployed contracts."""
    p = Path(path)
    with p.open() as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{p}: invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object of name -> address")
    return {str(name): str(addr) for name, addr in data.items()}


def get_configuration(
    network_configuration: NetworkConfiguration,
    contract_map: dict[str, str] | None = None,
) -> ProtocolConfiguration:
    """Convert a parsed network configuration into on-chain values.

    Raises:
        ConfigurationError: On any out-of-range value, malformed address or
            unknown contract name.
    """
    contract_map = contract_map or {}
    nc = network_configuration

    configuration = ProtocolConfiguration(
        governor=checksum_address(address(nc.governor), "governor"),
        pause_guardian=checksum_address(address(nc.pause_guardian), "pause_guardian"),
        base_token=checksum_address(
            resolve_address(nc.base_token, contract_map), "base_token"
        ),
        base_token_price_feed=checksum_address(
            address(nc.base_token_price_feed), "base_token_price_feed"
        ),
        interest_rates=get_interest_rate_info(nc.rates),
        reserve_rate=percentage(nc.reserve_rate),
        tracking=get_tracking_info(nc.tracking),
        base_borrow_min=number(nc.borrow_min),
        target_reserves=number(nc.target_reserves),
        asset_configs=get_asset_configs(nc.assets, contract_map),
    )
    logger.info(
        "Loaded configuration for base token %s with %d asset(s)",
        configuration.base_token,
        len(configuration.asset_configs),
    )
    return configuration
