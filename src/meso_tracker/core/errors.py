"""Exceptions raised by the progression core."""


class ConfigurationError(Exception):
    """Raised when a program template is malformed (e.g. no days)."""

    pass
