"""Shared dataclasses used across registry, resolver and operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ResourceAddress:
    """Table addressed by a resource URI."""

    database: str
    schema: str
    table: str


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Normalized statement output."""

    rows: tuple[dict[str, Any], ...] = ()
    row_count: int = 0
    command_tag: str = ""


@dataclass(frozen=True, slots=True)
class OperationResponse:
    """Uniform envelope returned by every operation."""

    text: str
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class OperationArgument:
    """Argument accepted by an operation."""

    name: str
    description: str
    required: bool = True


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Descriptor advertised for an operation."""

    name: str
    description: str
    arguments: tuple[OperationArgument, ...] = field(default_factory=tuple)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(arg.name for arg in self.arguments if arg.required)


__all__ = [
    "OperationArgument",
    "OperationResponse",
    "OperationSpec",
    "QueryResult",
    "ResourceAddress",
]
