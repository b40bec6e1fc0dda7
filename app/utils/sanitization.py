import html
import re
from typing import Any, Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[Any]) -> str:
    """
    Escape HTML special characters before a value is placed into an email template.
    Returns an empty string for None.
    """
    if value is None:
        return ""
    return html.escape(CONTROL_CHARS.sub("", str(value)), quote=True)


def strip_control_chars(value: Optional[str]) -> Optional[str]:
    """Remove non-printable control characters from free text input"""
    if value is None:
        return None
    return CONTROL_CHARS.sub("", value)
