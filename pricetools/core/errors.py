"""Centralized custom exception hierarchy for the pricing tools."""
from __future__ import annotations


class ToolError(Exception):
    """Base class for all tool related errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigError(ToolError):
    pass


class RegistrationError(ToolError):
    pass


class ToolNotFoundError(ToolError):
    pass


class ValidationError(ToolError):
    """Malformed or missing input field. Raised before any database access."""


class NotFoundError(ToolError):
    """Valid lookup that matched no row."""


class DatabaseError(ToolError):
    """Query execution failure; message wraps the driver's message."""


class StartupError(ToolError):
    """Worker thread, config or pool construction failed. Terminal for a bridge."""


class TransportError(ToolError):
    """A response slot was dropped or abandoned before it resolved."""


__all__ = [
    "ToolError",
    "ConfigError",
    "RegistrationError",
    "ToolNotFoundError",
    "ValidationError",
    "NotFoundError",
    "DatabaseError",
    "StartupError",
    "TransportError",
]
