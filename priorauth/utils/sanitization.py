"""Input sanitization utilities."""

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def clean_code(value: str | None, strip_chars: str = "") -> str:
    """Normalize a billing or identifier code for matching.

    Trims surrounding whitespace, removes any characters listed in
    ``strip_chars`` plus internal whitespace, and uppercases.

    Args:
        value: The raw code from user input
        strip_chars: Extra separator characters to drop (e.g. "-" or ".")

    Returns:
        The cleaned code, or an empty string for empty input
    """
    if not value:
        return ""
    cleaned = re.sub(r"\s+", "", value)
    for ch in strip_chars:
        cleaned = cleaned.replace(ch, "")
    return cleaned.upper()


def sanitize_free_text(text: str | None, max_length: int = 8000) -> str:
    """Sanitize user-provided free text (clinical summaries, names).

    Removes control characters other than newlines and tabs, and limits
    the overall length.

    Args:
        text: The raw text
        max_length: Maximum allowed length

    Returns:
        A safe text string (possibly empty)
    """
    if not text:
        return ""
    safe = _CONTROL_CHARS.sub("", text).strip()
    if len(safe) > max_length:
        safe = safe[:max_length]
    return safe
