"""Shared SQLAlchemy declarative base for all models."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint
from sqlalchemy.orm import declarative_base

# Single Base for all models to ensure metadata consistency
# and allow foreign key relationships across model modules
Base = declarative_base()

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def utcnow() -> datetime:
    """Timezone-aware current time used for column defaults."""
    return datetime.now(timezone.utc)


def reject_null(value):
    """Refuse an explicit null sent for a NOT NULL column in a partial update.

    Used from ``field_validator`` hooks, which only run for keys present in
    the payload, so omitted fields keep meaning "unchanged".
    """
    if value is None:
        raise ValueError("ne peut pas être nul")
    return value


def enum_check(column: str, enum_cls: type[Enum], name: str) -> CheckConstraint:
    """Build a CHECK constraint restricting a string column to enum values."""
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=name)
