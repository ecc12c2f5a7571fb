"""Error taxonomy and input validation helpers."""

from .exceptions import (
    ErrorKind,
    MarketError,
    NotFoundError,
    IneligibleError,
    ConflictError,
    AlreadyCompletedError,
    UnauthorizedError,
    InvalidInputError,
)

__all__ = [
    "ErrorKind",
    "MarketError",
    "NotFoundError",
    "IneligibleError",
    "ConflictError",
    "AlreadyCompletedError",
    "UnauthorizedError",
    "InvalidInputError",
]
