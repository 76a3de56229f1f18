# core/sanitizers.py
"""
Input sanitization for the program admin.

All user-submitted strings should pass through these functions
before being validated or stored.
"""
import re
from typing import List, Optional


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_title(title: Optional[str]) -> str:
    """
    Single-line text: newlines become spaces, runs of spaces collapse.
    """
    text = sanitize_text(title)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def split_options(raw) -> List[str]:
    """
    Question options arrive either as a list or as newline-separated text.
    Returns the trimmed, non-empty entries in their original order.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.splitlines()
    else:
        items = list(raw)
    return [opt for opt in (sanitize_title(item) for item in items) if opt]
