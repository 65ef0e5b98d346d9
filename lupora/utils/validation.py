"""
Input sanitization and identifier helpers
"""
import re
import unicodedata
from typing import Any, Optional
from uuid import UUID

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
_ANGLE_BRACKETS = re.compile(r'[<>]')
_WHITESPACE = re.compile(r'\s+')


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """
    Clean free text coming from clients

    Args:
        value: Raw text

    Returns:
        NFKC-normalized text without control characters or angle brackets,
        with runs of whitespace collapsed and the ends trimmed
    """
    if value is None:
        return None
    text = unicodedata.normalize('NFKC', value)
    text = _CONTROL_CHARS.sub('', text)
    text = _ANGLE_BRACKETS.sub('', text)
    text = _WHITESPACE.sub(' ', text)
    return text.strip()


def is_valid_id(value: Any) -> bool:
    """True when value is a UUID string (the primary key format of every table)"""
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True
