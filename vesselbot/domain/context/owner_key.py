import re
from typing import Any

_NON_DIGITS = re.compile(r"\D")


def normalize_owner_key(raw: Any) -> str:
    """Reduce a phone number to its digits so every formatting maps to one key.

    ``whatsapp:+1 234-567-8900`` and ``12345678900`` both become
    ``12345678900``. Anything that is not a string normalizes to ``""``.
    """
    if not raw or not isinstance(raw, str):
        return ""
    return _NON_DIGITS.sub("", raw)


def mask_owner_key(owner_key: str) -> str:
    """Log-safe form of an owner key"""
    if not owner_key:
        return ""
    return f"{owner_key[:4]}****"
