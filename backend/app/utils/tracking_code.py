"""Public tracking codes: <PREFIX>-<base36 ms timestamp>-<4 random base36 chars>"""
import re
import secrets
import time
from typing import Optional

BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
RANDOM_SUFFIX_LENGTH = 4

TRACKING_CODE_PATTERN = re.compile(r"^[A-Z]+-[A-Z0-9]+-[A-Z0-9]{4}$")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_tracking_code(prefix: str = "VISI", now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"{prefix.upper()}-{to_base36(now_ms)}-{suffix}"


def normalize_tracking_code(code: str) -> str:
    """Lookups are case-insensitive; stored codes are upper case"""
    return (code or "").strip().upper()
