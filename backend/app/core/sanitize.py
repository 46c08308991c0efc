"""Text normalization for values read from export files."""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")


def _strip_control_chars(value: str) -> str:
    return "".join(ch for ch in value if unicodedata.category(ch) != "Cc" or ch in "\t\n\r")


def clean_single_line(value: Any) -> str:
    """Collapse whitespace and drop control characters; ``None`` becomes ``""``."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    value = _strip_control_chars(value).strip()
    return _WHITESPACE_RE.sub(" ", value)


def clean_email(value: Any) -> str:
    email = clean_single_line(value).lower()
    # Anything that is not an address counts as missing.
    if " " in email or "@" not in email:
        return ""
    return email
