"""Input cleanup for user-supplied text."""

from __future__ import annotations

import re

_SCRIPT_BLOCK = re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE)
_EVENT_ATTR_DOUBLE = re.compile(r"on\w+=\"[^\"]*\"", re.IGNORECASE)
_EVENT_ATTR_SINGLE = re.compile(r"on\w+='[^']*'", re.IGNORECASE)


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email address. Missing input becomes ''."""
    return email.strip().lower() if email else ""


def sanitize_text(value: object) -> str:
    """Strip <script> blocks and inline event handler attributes, then trim."""
    if value is None or value == "":
        return ""
    text = _SCRIPT_BLOCK.sub("", str(value))
    text = _EVENT_ATTR_DOUBLE.sub("", text)
    text = _EVENT_ATTR_SINGLE.sub("", text)
    return text.strip()
