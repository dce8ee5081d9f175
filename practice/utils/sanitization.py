import html
from typing import Optional

import bleach


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def strip_tags(value: Optional[str]) -> Optional[str]:
    """Remove any markup from free text (contact messages, notes) before it is stored"""
    if value is None:
        return None
    # bleach escapes the text it keeps; undo that so values are stored as plain text
    return html.unescape(bleach.clean(value, tags=[], attributes={}, strip=True)).strip()


def text_to_html(value: Optional[str]) -> str:
    """Escape free text and keep its line breaks"""
    if not value:
        return ""
    return sanitize_string(value).replace("\n", "<br/>")
