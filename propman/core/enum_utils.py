"""
Enum Utilities for VARCHAR-based Status Fields

Database columns hold plain strings (VARCHAR), never PostgreSQL ENUMs.
Python enums are used for validation and comparison only.

Bill statuses and roles are stored lowercase ("issued", "manager"),
billing cycles uppercase ("MONTHLY"). The helpers here accept either an
enum member or a raw database string.
"""

from enum import Enum
from typing import Any, Optional, TypeVar, Type


T = TypeVar('T', bound=Enum)


def get_enum_value(value: Any) -> Optional[str]:
    """
    Safely get string value from an enum or string.

    Examples:
        >>> get_enum_value(BillStatus.ISSUED)
        'issued'
        >>> get_enum_value("issued")
        'issued'
        >>> get_enum_value(None)
        None
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


def to_enum(value: Any, enum_class: Type[T]) -> Optional[T]:
    """
    Convert a string value to an enum instance.

    Matching is case-insensitive and ignores surrounding whitespace, so
    " monthly " resolves to BillingCycle.MONTHLY.

    Returns:
        Enum instance or None if not found
    """
    if value is None:
        return None
    if isinstance(value, enum_class):
        return value
    text = str(value).strip()
    for member in enum_class:
        if member.value.lower() == text.lower():
            return member
    return None


def enum_comment(enum_class: Type[Enum]) -> str:
    """
    Generate a comment string for VARCHAR column.

    Examples:
        >>> enum_comment(BillingCycle)
        'WEEKLY, MONTHLY, EVERY_2_MONTHS, HALF_A_YEAR, YEARLY'
    """
    return ", ".join(e.value for e in enum_class)


def normalize_role(value: Any) -> Optional[str]:
    """
    Normalize a role string for comparison.

    Roles arrive from tokens in mixed case ("Manager", " OWNER ").
    """
    if value is None:
        return None
    role = get_enum_value(value).strip().lower()
    return role or None
