"""Shared validation utilities"""

import re
import uuid
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"
SUPPORTED_COUNTRIES = {"DE", "AT", "CH"}


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid or too long
    """
    if not email:
        raise ValueError("Bitte geben Sie eine gültige E-Mail-Adresse ein")

    email = email.strip().lower()

    if len(email) > 254:
        raise ValueError("E-Mail-Adresse ist zu lang")

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Bitte geben Sie eine gültige E-Mail-Adresse ein")

    return email


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize an international phone number (E.164 without formatting).

    Spaces, dashes and parentheses are dropped; an empty value becomes None.

    Raises:
        ValueError: If the remaining digits are not a valid number
    """
    if phone is None:
        return None

    cleaned = re.sub(r"[\s\-()]", "", phone)
    if not cleaned:
        return None

    if not re.match(PHONE_PATTERN, cleaned):
        raise ValueError("Bitte geben Sie eine gültige Telefonnummer ein")

    return cleaned


def validate_length(
    value: str, min_length: int, max_length: int, too_short: str, too_long: str
) -> str:
    """Strip and check the length of a required text field"""
    value = (value or "").strip()
    if len(value) < min_length:
        raise ValueError(too_short)
    if len(value) > max_length:
        raise ValueError(too_long)
    return value


def validate_country(country: str) -> str:
    """Validate a supported ISO 3166-1 alpha-2 country code"""
    country = (country or "").strip().upper()
    if len(country) != 2:
        raise ValueError("Ungültiger Ländercode")
    if country not in SUPPORTED_COUNTRIES:
        raise ValueError("Land wird nicht unterstützt")
    return country
