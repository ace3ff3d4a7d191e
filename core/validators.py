"""
Input validation utilities shared by the services.
Each helper raises ValueError with a message fit to show the user.
"""
from datetime import date
from typing import Optional, Type, TypeVar
import enum

E = TypeVar("E", bound=enum.Enum)


def require_text(value: Optional[str], field_label: str) -> str:
    """
    Validate a required free-text field on create.

    Missing -> "<Field> is required"; whitespace only -> "<Field> cannot be empty".
    Returns the stripped value.
    """
    if value is None:
        raise ValueError(f"{field_label} is required")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_label} cannot be empty")
    return stripped


def update_text(value: str, field_label: str) -> str:
    """Validate a required text field supplied on update. It may not be blanked."""
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_label} cannot be empty")
    return stripped


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip optional text; blank strings are stored as NULL."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def require_value(value, field_label: str):
    """Validate a required non-text field (date, id, time)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{field_label} is required")
    return value


def parse_enum(enum_class: Type[E], value, field_label: str) -> E:
    """Coerce a string (or enum member) to enum_class, case-insensitive."""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_class)
        raise ValueError(f"Invalid {field_label}: {value}. Allowed: {allowed}")


def validate_rating(rating: Optional[int]) -> int:
    """Evaluations are rated 1 to 5."""
    if rating is None:
        raise ValueError("Rating is required")
    if rating < 1 or rating > 5:
        raise ValueError("Rating must be between 1 and 5")
    return rating


def validate_date_range(start: date, end: date, start_label: str, end_label: str) -> None:
    """Start must fall strictly before end."""
    if start >= end:
        raise ValueError(f"{start_label} must be before {end_label.lower()}")
