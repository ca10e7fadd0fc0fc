"""Business logic services for the membership back-office."""

from backoffice.services.database import DatabaseManager, get_db_session
from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, ServiceError

__all__ = [
    "BusinessRuleError",
    "ConflictError",
    "DatabaseManager",
    "NotFoundError",
    "ServiceError",
    "get_db_session",
]
