import math
from typing import Any

MAX_AMOUNT = 100_000_000  # 100 juta


def round_half_up(value: float) -> int:
    """Round .5 away from zero instead of Python's banker's rounding."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def validate_amount(value: Any) -> int | None:
    """Return the amount as an int if it is a whole number in (0, MAX_AMOUNT]."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or number <= 0 or number > MAX_AMOUNT:
        return None
    if not number.is_integer():
        return None
    return int(number)


def parse_int(value: Any) -> int | None:
    """Whole number from a model argument: 6, 6.0 and "6" all give 6."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def parse_rate(value: Any) -> float:
    """Interest rate as a fraction. "2%" means 0.02; anything unreadable is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    percent = False
    if isinstance(value, str):
        value = value.strip()
        if value.endswith("%"):
            percent = True
            value = value[:-1]
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(rate) or rate < 0:
        return 0.0
    return rate / 100 if percent else rate


def sanitize_string(text: Any, limit: int = 200) -> str:
    """Escape HTML for Telegram replies and cap the length."""
    # & must be replaced first
    cleaned = str(text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return cleaned[:limit]


def format_rupiah(amount: float) -> str:
    """59000 → 'Rp59.000'."""
    rounded = round_half_up(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}Rp{abs(rounded):,}".replace(",", ".")
