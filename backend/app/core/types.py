"""Custom SQLAlchemy types and time helpers shared by the models"""
from datetime import datetime, timezone
import enum
import uuid
from typing import Type

from sqlalchemy import TypeDecorator, String, Enum as SQLEnum


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    """Stores UUIDs as VARCHAR(36) on every backend (SQLite and PostgreSQL)"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


def value_enum(enum_cls: Type[enum.Enum]) -> SQLEnum:
    """
    Enum column that persists member values ("under_review") rather than names,
    stored as VARCHAR so adding a member needs no ALTER TYPE.
    """
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
        validate_strings=True,
    )
