"""Error taxonomy shared by the gateway components."""

from __future__ import annotations

from typing import Iterable


class GatewayError(RuntimeError):
    """Base class for errors surfaced to callers as flagged responses."""


class ConfigurationError(GatewayError):
    """Raised when no target database can be resolved."""

    def __init__(self, message: str, known_names: Iterable[str] = ()) -> None:
        self.known_names = tuple(known_names)
        super().__init__(f"{message}. Available databases: {_format_names(self.known_names)}")


class NotFoundError(GatewayError):
    """Raised when an explicitly named database is not registered."""

    def __init__(self, name: str, known_names: Iterable[str] = ()) -> None:
        self.name = name
        self.known_names = tuple(known_names)
        super().__init__(
            f"Database '{name}' not found. Available databases: {_format_names(self.known_names)}"
        )


class AddressError(GatewayError):
    """Raised for malformed resource addresses."""


class ValidationError(GatewayError):
    """Raised when a request fails a safety or identifier precondition."""


class DatabaseError(GatewayError):
    """Raised when the database rejects or fails a statement."""


def _format_names(names: tuple[str, ...]) -> str:
    return ", ".join(names) if names else "(none)"


__all__ = [
    "AddressError",
    "ConfigurationError",
    "DatabaseError",
    "GatewayError",
    "NotFoundError",
    "ValidationError",
]
