"""Whitespace normalisation for text comparison."""

from __future__ import annotations

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Trim and collapse whitespace (including newlines and tabs) to single spaces."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.strip())


def truncate(text: str, limit: int) -> tuple[str, bool]:
    """Cut ``text`` to ``limit`` characters; the flag tells whether it was cut."""
    if len(text) <= limit:
        return text, False
    return text[:limit].rstrip(), True


_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PHONE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
_CARD = re.compile(r"\b(?:\d[ -]?){13,19}\b")
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
PHONE_MIN_DIGITS = 9


def _looks_like_phone(text: str) -> bool:
    for match in _PHONE.finditer(text):
        candidate = match.group()
        if _ISO_DATE.fullmatch(candidate.strip()):
            continue
        if sum(char.isdigit() for char in candidate) >= PHONE_MIN_DIGITS:
            return True
    return False


def looks_like_pii(text: str) -> bool:
    """True for text shaped like an e-mail address, phone number or card number."""
    return bool(_EMAIL.search(text) or _CARD.search(text) or _looks_like_phone(text))
