from __future__ import annotations


class DerivedOracleError(ValueError):
    """Base class for errors raised by derived_oracle."""


class ConfigurationError(DerivedOracleError):
    """Raised when a feed or asset is constructed from invalid parameters.

    Not recoverable within the offending instance: the caller has to build a
    new one from corrected inputs.
    """


class InvalidMagnitudeError(DerivedOracleError):
    """Raised when an unsigned upstream value does not fit a signed int256."""
