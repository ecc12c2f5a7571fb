"""Exception taxonomy for the trade core."""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    """Error categories surfaced to callers of the trade core."""

    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"
    CONFLICT = "conflict"
    ALREADY_COMPLETED = "already_completed"
    UNAUTHORIZED = "unauthorized"
    INVALID_INPUT = "invalid_input"


class MarketError(Exception):
    """
    Base exception for marketplace errors.

    Provides structured error information for logging and API responses.
    None of these errors are retried internally.
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Initialize MarketError with detailed error information.

        Args:
            message: Human-readable error message
            entity: Kind of record involved ("home", "offer", "request", "trade")
            entity_id: Identifier of the record involved
            field: Specific field that caused the error
            value: The offending value
            errors: List of detailed error dictionaries (e.g., from Pydantic)
        """
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id
        self.field = field
        self.value = value
        self.errors = errors or []

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.kind.value

    def __str__(self) -> str:
        """Return detailed error message."""
        parts = [self.message]

        if self.entity:
            parts.append(f"Entity: {self.entity}")

        if self.entity_id:
            parts.append(f"Id: {self.entity_id}")

        if self.field:
            parts.append(f"Field: {self.field}")

        if self.value is not None:
            parts.append(f"Value: {self.value}")

        if self.errors:
            parts.append(f"Errors: {self.errors}")

        return " | ".join(parts)


class NotFoundError(MarketError):
    """Referenced household, entry or trade does not exist."""

    kind = ErrorKind.NOT_FOUND


class IneligibleError(MarketError):
    """A business rule rejected the operation (user-actionable)."""

    kind = ErrorKind.INELIGIBLE


class ConflictError(MarketError):
    """Lost a race for a single-match resource.

    Callers may retry against a freshly fetched record.
    """

    kind = ErrorKind.CONFLICT


class AlreadyCompletedError(MarketError):
    """Trade completion was already recorded; the ledger was not re-applied."""

    kind = ErrorKind.ALREADY_COMPLETED


class UnauthorizedError(MarketError):
    """Caller does not own a household with standing for the operation."""

    kind = ErrorKind.UNAUTHORIZED


class InvalidInputError(MarketError):
    """Numeric or validation violation rejected at construction time."""

    kind = ErrorKind.INVALID_INPUT
