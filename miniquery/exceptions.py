class ConfigurationError(Exception):
    """Raised when a table, primary key or column set is missing or invalid."""


class ArgumentError(ValueError):
    """Raised when clause text and supplied parameters do not line up."""
