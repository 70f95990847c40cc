"""
utils/validation_utils.py

Purpose: Input validation

- Email, phone and SKU format checks
- Period (YYYY-MM) validation
- Money rounding and amount checks
- Input sanitization
"""

import re
from typing import Any


def validate_email(email: str) -> bool:
    """
    Validates a basic email address format.

    Args:
        email: Email string to validate

    Returns:
        True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$"
    return bool(re.match(pattern, email.strip()))


def validate_phone_number(phone: str) -> bool:
    """
    Validates South African / Mozambican mobile numbers.

    Accepts local format (0821234567) or international (+27821234567,
    +258841234567); separators are ignored.

    Args:
        phone: Phone number string

    Returns:
        True if valid mobile number
    """
    if not phone:
        return False

    # Remove common separators and spaces
    phone = re.sub(r"[\s\-\(\)]", "", phone)

    if re.match(r"^0[6-8]\d{8}$", phone):
        return True
    if re.match(r"^\+?27[6-8]\d{8}$", phone):
        return True
    return bool(re.match(r"^\+?258[8]\d{8}$", phone))


def validate_sku(sku: str) -> bool:
    """
    SKUs are 2-32 characters of letters, digits, dash or underscore.
    """
    if not sku:
        return False
    return bool(re.match(r"^[A-Za-z0-9_\-]{2,32}$", sku.strip()))


def validate_period_format(period: str) -> bool:
    """
    Validates a contribution/payout period key (YYYY-MM).

    Args:
        period: Period string

    Returns:
        True if valid period format
    """
    if not period:
        return False
    return bool(re.match(r"^\d{4}-(0[1-9]|1[0-2])$", period.strip()))


def to_amount(value: Any, default: float = 0.0) -> float:
    """
    Coerces stored numeric shapes ("12.50", 12, None) into a float.
    """
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def round_money(value: float) -> float:
    """Rounds a currency amount to cents."""
    return round(float(value), 2)


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitizes free-text input (names, descriptions, references).

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    # Remove characters that could break out of HTML email bodies
    text = re.sub(r"[<>{}\[\]]", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()
