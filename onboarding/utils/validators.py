from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from onboarding.constants.fields import (
    ACCEPTED_IMAGE_TYPES,
    ADDRESS,
    EMAIL,
    LOGO,
    NAME,
    PHONE_NUMBER,
    PREFIX,
    STAMP,
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_REQUIRED_MESSAGES: dict[str, str] = {
    NAME: "School name is required",
    EMAIL: "Email is required",
    PHONE_NUMBER: "Phone number is required",
    ADDRESS: "Address is required",
    PREFIX: "Prefix is required",
    LOGO: "School logo is required",
    STAMP: "School stamp is required",
}

FILE_TYPE_MESSAGE = "Only *.jpeg, *.webp and *.png images will be accepted"


def is_non_empty_text(text: str | None) -> bool:
    return bool((text or "").strip())


def is_valid_email(text: str | None) -> bool:
    return bool(_EMAIL_RE.match((text or "").strip()))


def is_accepted_image(value: Any) -> bool:
    ext = (getattr(value, "extension", "") or "").lower()
    return ext in ACCEPTED_IMAGE_TYPES


def validate_field(field_name: str, value: Any) -> str | None:
    if field_name in (LOGO, STAMP):
        if value is None:
            return _REQUIRED_MESSAGES[field_name]
        if not is_accepted_image(value):
            return FILE_TYPE_MESSAGE
        return None

    if field_name not in _REQUIRED_MESSAGES:
        return None
    if not is_non_empty_text(value if isinstance(value, str) else None):
        return _REQUIRED_MESSAGES[field_name]
    if field_name == EMAIL and not is_valid_email(value):
        return "Invalid email address"
    return None


def validate_school_setup(snapshot: Mapping[str, Any]) -> dict[str, str | None]:
    """Поле -> сообщение об ошибке или None (валидно)."""
    return {name: validate_field(name, snapshot.get(name)) for name in _REQUIRED_MESSAGES}
