"""Domain exceptions raised by the service layer.

The API layer maps them to HTTP responses (see api/middleware/error_handler.py).
"""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


class ServiceError(Exception):
    """Base class for service-layer errors."""

    error_type = "service_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(ServiceError):
    """Requested resource does not exist."""

    error_type = "not_found"


class ConflictError(ServiceError):
    """Uniqueness or state conflict (duplicate email, code already used...)."""

    error_type = "conflict"


class BusinessRuleError(ServiceError):
    """Request is well-formed but violates a business rule."""

    error_type = "business_rule_violation"


async def flush_unique(session: AsyncSession, message: str) -> None:
    """Flush pending inserts, reporting a unique-constraint violation as a conflict.

    The services check for duplicates before inserting; two concurrent
    requests can both pass that check, and the loser fails here instead.

    Raises:
        ConflictError: If the flush violates a unique constraint
    """
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(message) from e
