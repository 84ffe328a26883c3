"""Exceptions raised by faro-lite.

Only configuration problems surface to callers. Everything on the push path
is caught and logged instead.
"""


class FaroError(Exception):
    """Base exception for faro-lite errors."""
    pass


class ConfigError(FaroError):
    """Invalid client or collector configuration."""
    pass
