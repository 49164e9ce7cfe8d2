import html
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters in free text (ticket descriptions, comments,
    feedback) before it is stored and echoed into emails.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value.strip(), quote=True)


def sanitize_fields(data: dict[str, Any], fields: list[str]) -> dict[str, Any]:
    """Return a copy of data with the named string fields escaped"""
    if not data:
        return data
    return {
        key: sanitize_string(value) if key in fields and isinstance(value, str) else value
        for key, value in data.items()
    }
