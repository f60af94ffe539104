import re
from typing import Optional

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Keep only ASCII digits; returns None when nothing is left"""
    if phone is None:
        return None
    digits = _NON_DIGITS.sub("", phone)
    return digits or None
