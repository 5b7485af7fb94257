"""
Domain error kinds raised by the sale use cases.

All three are detected before anything is mutated or persisted, so callers can
surface them verbatim. Database and driver failures are not wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class SaleError(Exception):
    """Base class for sale domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationFailure(SaleError):
    """Input breaks one or more shape rules; carries every violation found."""

    def __init__(self, errors: list[FieldError], message: str = "Validation failed") -> None:
        self.errors = list(errors)
        super().__init__(message)


class NotFound(SaleError):
    """A referenced sale, sale number or sale item does not exist."""


class ConflictViolation(SaleError):
    """A business rule conflict such as a duplicate sale number or mutating a cancelled sale."""


def field_path(loc: tuple[str | int, ...] | list[str | int]) -> str:
    """Render a pydantic error location as `items[0].quantity`; the leading `body`/`query` is dropped."""
    parts = list(loc)
    if parts and parts[0] in {"body", "query", "path"}:
        parts = parts[1:]
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path
