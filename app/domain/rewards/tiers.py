"""Loyalty tiers by lifetime points"""

import time
from typing import Optional

# (tier, minimum lifetime points), highest first
TIERS = [
    ("platinum", 10000),
    ("gold", 5000),
    ("silver", 2000),
    ("bronze", 0),
]

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def tier_for(lifetime_points: int) -> str:
    for tier, minimum in TIERS:
        if lifetime_points >= minimum:
            return tier
    return "bronze"


def next_tier(lifetime_points: int) -> tuple[Optional[str], int]:
    """The next tier up and the points still needed; (None, 0) at the top"""
    for tier, minimum in reversed(TIERS):
        if lifetime_points < minimum:
            return tier, minimum - lifetime_points
    return None, 0


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def make_referral_code(user_id: str, now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{user_id[:8].upper()}-{to_base36(now_ms).upper()}"
