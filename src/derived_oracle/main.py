"""CLI entrypoint for derived-oracle."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer

from .abi import connect
from .asset_config import AssetConfig, pack_asset_config
from .errors import DerivedOracleError
from .feeds import PriceObservation, WrappedTokenPriceFeed
from .logger import setup_logging
from .network_config import (
    get_configuration,
    load_contract_map,
    load_network_configuration,
)
from .settings import CONFIG_ENV_VAR, OracleSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Derived price feeds for wrapped collateral tokens.",
)


def _build_logger() -> logging.Logger:
    return logging.getLogger("derived_oracle")


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _observation_dict(observation: PriceObservation, decimals: int) -> dict[str, Any]:
    return {**observation._asdict(), "decimals": decimals}


def _asset_config_dict(config: AssetConfig) -> dict[str, Any]:
    word_a, word_b = pack_asset_config(config).to_hex()
    return {**asdict(config), "packed": [word_a, word_b]}


def build_feed(settings: OracleSettings) -> WrappedTokenPriceFeed:
    """Connect to the configured RPC and build the derived feed."""
    w3 = connect(settings.rpc_url_required)
    return WrappedTokenPriceFeed.from_addresses(
        w3,
        settings.reference_feed_address,
        settings.wrapped_token_address,
        settings.output_decimals,
        description=settings.description,
        rate_method=settings.exchange_rate_method,
        block_identifier=settings.block_identifier,
    )


def _feed_from_context(ctx: typer.Context) -> WrappedTokenPriceFeed:
    state: AppState = ctx.obj
    try:
        return build_feed(state.settings)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    except ConnectionError as e:
        state.logger.error("%s", e)
        raise typer.Exit(code=1) from e


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [derived_oracle] table).",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint used to read both feeds."),
    ] = None,
    block_number: Annotated[
        int | None,
        typer.Option(
            "--block-number",
            help="Block number to use for rpc calls. If not provided, the latest block will be used.",
        ),
    ] = None,
    output_decimals: Annotated[
        int | None,
        typer.Option("--decimals", help="Decimals of the derived price."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
):
    """Load settings once and share them with the selected command."""
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    init_kwargs: dict[str, int | str] = {}
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if block_number is not None:
        init_kwargs["block_number"] = block_number
    if output_decimals is not None:
        init_kwargs["output_decimals"] = output_decimals
    if log_level is not None:
        init_kwargs["log_level"] = log_level

    settings = OracleSettings(**init_kwargs)
    setup_logging(settings.log_level)
    ctx.obj = AppState(settings=settings, logger=_build_logger())


@app.command()
def latest(ctx: typer.Context):
    """Print the latest derived round."""
    feed = _feed_from_context(ctx)
    _echo_json(_observation_dict(feed.latest_round_data(), feed.decimals))


@app.command(name="round")
def round_data(
    ctx: typer.Context,
    round_id: Annotated[int, typer.Argument(help="Round of the reference feed.")],
):
    """Print the derived price for a reference feed round.

    The exchange rate is read live, not as of the round.
    """
    feed = _feed_from_context(ctx)
    _echo_json(_observation_dict(feed.get_round_data(round_id), feed.decimals))


@app.command()
def describe(ctx: typer.Context):
    """Print the derived feed's immutable configuration."""
    feed = _feed_from_context(ctx)
    _echo_json(asdict(feed.config))


@app.command()
def assets(
    ctx: typer.Context,
    configuration_path: Annotated[
        Path, typer.Argument(help="Network configuration.json to validate.")
    ],
    contracts_path: Annotated[
        Path | None,
        typer.Option(
            "--contracts",
            help="JSON object mapping contract names to deployed addresses.",
        ),
    ] = None,
):
    """Validate a network configuration and print its packed asset configs."""
    state: AppState = ctx.obj
    try:
        contract_map = load_contract_map(contracts_path) if contracts_path else {}
        configuration = get_configuration(
            load_network_configuration(configuration_path), contract_map
        )
    except (DerivedOracleError, FileNotFoundError) as e:
        state.logger.error("Invalid configuration: %s", e)
        raise typer.Exit(code=1) from e

    _echo_json(
        {
            "base_token": configuration.base_token,
            "base_token_price_feed": configuration.base_token_price_feed,
            "assets": [_asset_config_dict(c) for c in configuration.asset_configs],
        }
    )


@app.command(name="show-config")
def show_config(ctx: typer.Context):
    """Print effective settings (RPC URL redacted)."""
    state: AppState = ctx.obj
    _echo_json(state.settings.as_safe_dict())


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
