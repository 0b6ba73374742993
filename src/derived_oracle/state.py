"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import OracleSettings


@dataclass
class AppState:
    """Settings and logger shared by CLI commands through the typer context."""

    settings: OracleSettings
    logger: logging.Logger
