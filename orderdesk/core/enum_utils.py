"""
Enum utilities for VARCHAR-based status fields.

Status columns are stored as plain strings (VARCHAR(50), never native DB
enums). Pydantic schemas accept the Python enums from orderdesk.models, and
services compare against `.value`. These helpers bridge the two without
callers caring which one they were handed.
"""
from enum import Enum
from typing import Any, Optional, Type, TypeVar

T = TypeVar('T', bound=Enum)


def get_enum_value(value: Any) -> Optional[str]:
    """
    Safely get string value from an enum or string.

    Examples:
        >>> get_enum_value(OrderStatus.PENDING)
        'Pending'
        >>> get_enum_value("Pending")
        'Pending'
        >>> get_enum_value(None)
        None
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


def to_enum(value: Any, enum_class: Type[T]) -> Optional[T]:
    """Convert a string (or enum) to `enum_class`, returning None if it is not a member."""
    if value is None:
        return None
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        return None
