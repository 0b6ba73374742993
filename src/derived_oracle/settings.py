"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_EXCHANGE_RATE_METHOD,
    MAINNET_CONTRACTS,
    MAX_DECIMALS,
)

load_dotenv()

CONFIG_ENV_VAR = "DERIVED_ORACLE_CONFIG"
CONFIG_TABLE = "derived_oracle"


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file.

    The file may hold settings at top level or under a ``[derived_oracle]``
    table.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _find_path(self) -> Path | None:
        if self._path:
            return self._path
        local_config = Path("derived-oracle.toml")
        user_config = Path.home() / ".config" / "derived-oracle" / "config.toml"
        if local_config.exists():
            return local_config
        if user_config.exists():
            return user_config
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._find_path()
        if path is None or not path.exists():
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get(CONFIG_TABLE, data)
        if not isinstance(body, dict):
            return {}
        return body


class OracleSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with DERIVED_ORACLE_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- endpoints ---
    rpc_url: str | None = None
    block_number: int | None = None

    # --- feed ---
    reference_feed_address: str = MAINNET_CONTRACTS["STETH_ETH_FEED"]
    wrapped_token_address: str = MAINNET_CONTRACTS["WSTETH"]
    exchange_rate_method: str = DEFAULT_EXCHANGE_RATE_METHOD
    output_decimals: int = Field(default=18, ge=0, le=MAX_DECIMALS)
    description: str = DEFAULT_DESCRIPTION

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DERIVED_ORACLE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with the RPC URL redacted.

        Hosted RPC URLs usually embed an API key.
        """
        data = self.model_dump()
        if self.rpc_url:
            data["rpc_url"] = "***redacted***"
        return data

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, raising ValueError if not set."""
        if self.rpc_url is None:
            raise ValueError("rpc_url must be configured")
        return self.rpc_url

    @property
    def block_identifier(self) -> int | str:
        return self.block_number if self.block_number is not None else "latest"
