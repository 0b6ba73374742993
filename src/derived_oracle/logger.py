"""Logging configuration for derived-oracle."""

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVEL_ENV_VAR = "DERIVED_ORACLE_LOG_LEVEL"


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def resolve_level(log_level: str | None = None) -> int:
    """Map a level name (including TRACE) to its numeric value, INFO if unknown."""
    name = (log_level or os.getenv(LOG_LEVEL_ENV_VAR, "INFO")).upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str | None = None) -> None:
    """Configure a colored stderr handler on the root logger.

    ``log_level`` falls back to DERIVED_ORACLE_LOG_LEVEL, then INFO. Output
    goes to stderr so command results on stdout stay machine-readable.

    web3 and urllib3 are held at WARNING unless TRACE is requested.
    """
    level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)

    third_party_level = TRACE if level == TRACE else logging.WARNING
    for name in ("web3", "urllib3"):
        logging.getLogger(name).setLevel(third_party_level)
