"""Request handlers and shared domain types for the D2C platform API."""

__version__ = "0.1.0"
