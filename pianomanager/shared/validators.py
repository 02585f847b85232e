"""Shared validation utilities"""

import re
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an international phone number.

    Args:
        phone: Phone number string in various formats ("+34 600 11 22 33", "600-112-233")

    Returns:
        Digits only, keeping a leading "+" when present

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)

    # E.164 allows up to 15 digits; shorter local numbers still have at least 6
    if not 6 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 6 and 15 digits")

    return f"+{digits}" if phone.startswith("+") else digits


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

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_slug(slug: str) -> str:
    """Lowercase URL slug made of letters, digits and hyphens"""
    if not slug:
        raise ValueError("Slug is required")

    slug = slug.strip().lower()
    if not re.match(r"^[a-z0-9]+(?:-[a-z0-9]+)*$", slug):
        raise ValueError("Slug may only contain lowercase letters, digits and hyphens")
    return slug


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    if not color:
        return color
    if not re.match(r"^#[0-9a-fA-F]{6}$", color):
        raise ValueError("Color must be a hex value like #3b82f6")
    return color.lower()
