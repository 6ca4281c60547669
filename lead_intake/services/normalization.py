# lead_intake/services/normalization.py
from __future__ import annotations

import re
from typing import Any

DEFAULT_PHONE_DIGITS = 10

_NON_DIGITS = re.compile(r"\D+")


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_email(email: Any) -> str:
    """Trim and lowercase. Syntax is not checked; an empty value means "no email"."""
    return normalize_text(email).lower()


def normalize_phone(phone: Any, max_digits: int = DEFAULT_PHONE_DIGITS) -> str:
    """Digits only, keeping the last ``max_digits`` when longer.

    Keeping the trailing digits drops a leading country code, so
    ``+1 (555) 123-4567`` and ``555-123-4567`` compare equal.
    ``max_digits=0`` leaves the digit string unbounded.
    """
    digits = _NON_DIGITS.sub("", normalize_text(phone))
    if max_digits and len(digits) > max_digits:
        return digits[-max_digits:]
    return digits


def parse_flag(value: Any) -> bool:
    """Checkbox-style truthiness for form fields ("on", "yes", "true", 1)."""
    if isinstance(value, bool):
        return value
    return normalize_text(value).lower() in ("1", "true", "yes", "y", "on", "checked")
