# This file validates and sanitizes free-text input from unauthenticated guest submissions.
# It exists so contact details and scenario names are checked with one set of rules before storage.
# Markup is stripped and values are trimmed and truncated; HTML escaping happens at render time instead.
# Validation returns field-level messages so the API can report every problem in one response.

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s+\-()]+$")
_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

MAX_LENGTHS: dict[str, int] = {
    "email": 255,
    "phone_number": 20,
    "first_name": 100,
    "last_name": 100,
    "company_name": 200,
    "scenario_name": 500,
    "client_name": 200,
    "project_name": 200,
    "prepared_by": 200,
}
DEFAULT_MAX_LENGTH = 1000

REQUIRED_CONTACT_FIELDS: tuple[tuple[str, str], ...] = (
    ("email", "Email"),
    ("phone_number", "Phone number"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("company_name", "Company name"),
)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value)) and len(value) <= MAX_LENGTHS["email"]


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_RE.match(value)) and len(value) <= MAX_LENGTHS["phone_number"]


def sanitize_string(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Strip tags and control characters, trim, and truncate."""

    if value is None:
        return ""
    cleaned = _TAG_RE.sub("", str(value))
    cleaned = _CONTROL_RE.sub("", cleaned).strip()
    return cleaned[:max_length]


def sanitize_object(value: Any, *, max_length: int = DEFAULT_MAX_LENGTH) -> Any:
    """Recursively sanitize strings inside nested dicts and lists."""

    if isinstance(value, str):
        return sanitize_string(value, max_length)
    if isinstance(value, Mapping):
        return {
            sanitize_string(key, max_length): sanitize_object(item, max_length=max_length)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize_object(item, max_length=max_length) for item in value]
    return value


def validate_guest_contact(contact: Mapping[str, Any]) -> tuple[dict[str, str], list[dict[str, str]]]:
    """Return sanitized contact fields plus a list of `{field, message}` errors."""

    errors: list[dict[str, str]] = []
    cleaned: dict[str, str] = {}
    for field_name, label in REQUIRED_CONTACT_FIELDS:
        raw = contact.get(field_name)
        if raw is None or not str(raw).strip():
            errors.append({"field": field_name, "message": f"{label} is required."})
            continue
        cleaned[field_name] = sanitize_string(raw)

    email = cleaned.get("email")
    if email is not None:
        cleaned["email"] = email.lower()
        if not is_valid_email(cleaned["email"]):
            errors.append({"field": "email", "message": "Email address is not valid."})

    phone = cleaned.get("phone_number")
    if phone is not None and not is_valid_phone(phone):
        errors.append({"field": "phone_number", "message": "Phone number is not valid."})

    truncated = {name: value[: MAX_LENGTHS[name]] for name, value in cleaned.items()}
    return truncated, errors
