"""Shared validation utilities"""

import re
from typing import Iterable, Optional

from ..models import WEEKDAYS

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_url(url: Optional[str]) -> Optional[str]:
    """Accept empty values and absolute http(s) URLs"""
    if not url:
        return url
    url = url.strip()
    if not URL_PATTERN.match(url):
        raise ValueError("Must be a valid http(s) URL")
    return url


def validate_choice(value: Optional[str], choices: Iterable[str], label: str) -> Optional[str]:
    """Ensure value is one of the allowed choices"""
    if value is None:
        return value
    choices = tuple(choices)
    if value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value


def validate_weekdays(days: Optional[list[str]]) -> Optional[list[str]]:
    """Normalize weekday names ("monday" -> "Monday") and reject unknown ones"""
    if days is None:
        return days
    normalized = []
    for day in days:
        name = day.strip().capitalize()
        if name not in WEEKDAYS:
            raise ValueError(f"Invalid weekday: {day}")
        if name not in normalized:
            normalized.append(name)
    return normalized


def clean_string_list(values: Optional[list[str]], max_items: Optional[int] = None) -> Optional[list[str]]:
    """Strip entries, drop blanks and duplicates while keeping order"""
    if values is None:
        return values
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    if max_items is not None and len(cleaned) > max_items:
        raise ValueError(f"At most {max_items} items allowed")
    return cleaned
