"""
Demofolio exception hierarchy.

All demofolio exceptions inherit from DemofolioError. Domain reads never
raise for absent data; these cover misconfiguration and invalid input at
the edges (config files, CLI arguments).
"""


class DemofolioError(Exception):
    """Base exception class for all demofolio errors."""


class ConfigurationError(DemofolioError):
    """Raised for configuration errors (missing files, invalid values)."""


class InvalidInputError(DemofolioError, ValueError):
    """Raised when caller-supplied input cannot be interpreted."""
