"""Helpers shared by the list endpoints' filter parsing"""
import enum
from datetime import datetime, time, timezone
from typing import Optional, Type, TypeVar

from app.core.exceptions import ValidationError

E = TypeVar("E", bound=enum.Enum)

ALL = "all"


def parse_enum_filter(enum_cls: Type[E], value: Optional[str], field: str) -> Optional[E]:
    """None for an absent / "all" filter, the member otherwise"""
    if value is None or value == "" or value == ALL:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}, all", field=field)


def parse_date_bound(value: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime into a naive UTC datetime.

    A bare date used as an upper bound covers the whole day.
    """
    if not value:
        return None
    raw = value.strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO 8601 date", field=field)

    if end_of_day and len(raw) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def like_pattern(term: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped (escape char: backslash)"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
