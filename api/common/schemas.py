"""
This module defines common Pydantic models used across multiple API modules.
These models represent shared data structures to ensure consistency throughout the application.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, TypeVar, Generic, Any

from pydantic import BaseModel


def parse_datetime_value(value: Any) -> Optional[datetime]:
    """
    Coerce a stored timestamp into a timezone-aware datetime.

    Firestore returns aware datetimes; older documents may hold ISO strings.
    Naive values are assumed to be UTC. Unparsable values yield None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """
    Base response envelope: {success, data, message, error}.
    """
    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> 'ApiResponse':
        """Create a success response with data"""
        return cls(success=True, data=data, message=message)
