"""Shared validation utilities"""

import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "52"


def validate_phone(phone: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Ten-digit local numbers get the default country code; numbers written with
    a leading "+" keep their own.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if has_plus:
        if not 8 <= len(digits) <= 15:
            raise ValueError("Phone number must have between 8 and 15 digits")
        return f"+{digits}"

    if len(digits) == 10:
        return f"+{country_code}{digits}"

    if digits.startswith(country_code) and len(digits) == 10 + len(country_code):
        return f"+{digits}"

    raise ValueError("Phone number must be 10 digits or include a country code")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_choice(value: Optional[str], choices: list[str], field: str) -> Optional[str]:
    """Ensure a string-enum field holds one of the allowed values"""
    if value is None:
        return value
    if value not in choices:
        raise ValueError(f"{field} must be one of: {', '.join(choices)}")
    return value
