"""
Input checks for registration and login payloads.
"""

import re
from typing import Any, Dict

from email_validator import validate_email, EmailNotValidError

from backend.common.errors import ValidationError

# --- CONSTANTS FOR VALIDATION ---
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
ZIPCODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


def _required_string(data: Dict[str, Any], key: str, label: str) -> str:
    value = data.get(key)
    if value is None or value == "":
        raise ValidationError(f"{label} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    return value


def normalize_email(value: str) -> str:
    """
    Check email syntax and return the trimmed, lower-cased address.

    Raises:
        ValidationError: if the address is not syntactically valid.
    """
    email = value.strip().lower()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Please enter a valid email address")
    return email


def validate_registration(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate and normalize a registration payload.

    Returns:
        dict: username (trimmed), email (lower-cased), password (as given),
              zipcode (trimmed).

    Raises:
        ValidationError: naming the first rule that failed.
    """
    username = _required_string(data, "username", "Username").strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be less than {USERNAME_MAX_LENGTH} characters")

    email = normalize_email(_required_string(data, "email", "Email"))

    password = _required_string(data, "password", "Password")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError("Password is too long")

    zipcode = _required_string(data, "zipcode", "Zip code").strip()
    if not ZIPCODE_PATTERN.match(zipcode):
        raise ValidationError("Please enter a valid zip code (5 digits, e.g., 12345)")

    return {"username": username, "email": email, "password": password, "zipcode": zipcode}


def validate_login(data: Dict[str, Any]) -> Dict[str, str]:
    """Validate a login payload; returns the normalized email and the password."""
    email = normalize_email(_required_string(data, "email", "Email"))
    password = _required_string(data, "password", "Password")
    return {"email": email, "password": password}
