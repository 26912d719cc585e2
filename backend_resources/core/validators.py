"""Input validation helpers for user data."""
from __future__ import annotations
import re
from typing import Any, Dict, Optional

from .errors import ValidationError
from .models import UserRequest

USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 30
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 4
EMAIL_MAX_LENGTH = 254

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s.]+(\.[^@\s.]+)+$")


def _require_text(value: Any, field: str) -> str:
    if value is None:
        raise ValueError(f"{field} is required")
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    if not value.strip():
        raise ValueError(f"{field} must not be blank")
    return value


def validate_username(raw: Any) -> str:
    """Validate username.

    Args:
        raw: Raw username input

    Returns:
        Trimmed username

    Raises:
        ValueError: If username is invalid
    """
    username = _require_text(raw, "Username").strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValueError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return username


def validate_email(raw: Any) -> str:
    """Validate email address.

    Args:
        raw: Email address to validate

    Returns:
        Trimmed email address

    Raises:
        ValueError: If email is invalid
    """
    email = _require_text(raw, "Email").strip()
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValueError("Email exceeds maximum length")
    if not _EMAIL_RE.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_password(raw: Any) -> str:
    """Validate password. The value is returned untouched (no trimming)."""
    password = _require_text(raw, "Password")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    return password


def validate_name(raw: Any, field: str) -> str:
    """Validate first/last name fields.

    Args:
        raw: Name to validate
        field: Field name for error messages (e.g., "First name")

    Returns:
        Trimmed name

    Raises:
        ValueError: If name is invalid
    """
    name = _require_text(raw, field).strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValueError(f"{field} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    return name


def validate_user_request(payload: Optional[Any]) -> UserRequest:
    """Validate a user-creation payload and build a UserRequest.

    Every field is checked so the caller gets the full list of violations
    in one response.

    Args:
        payload: Decoded JSON body

    Returns:
        UserRequest with trimmed fields

    Raises:
        ValidationError: Mapping of JSON field name to violation reason
    """
    if not isinstance(payload, dict):
        raise ValidationError({"body": "Request body must be a JSON object"})

    checks = {
        "username": lambda: validate_username(payload.get("username")),
        "email": lambda: validate_email(payload.get("email")),
        "password": lambda: validate_password(payload.get("password")),
        "firstName": lambda: validate_name(payload.get("firstName"), "First name"),
        "lastName": lambda: validate_name(payload.get("lastName"), "Last name"),
    }

    values: Dict[str, str] = {}
    errors: Dict[str, str] = {}
    for field, check in checks.items():
        try:
            values[field] = check()
        except ValueError as exc:
            errors[field] = str(exc)

    if errors:
        raise ValidationError(errors)

    return UserRequest(
        username=values["username"],
        email=values["email"],
        password=values["password"],
        first_name=values["firstName"],
        last_name=values["lastName"],
    )
