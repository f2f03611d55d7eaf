"""Calendar helpers. All "today" values are in WIB (UTC+7)."""

import calendar
from datetime import date, datetime, timedelta, timezone

WIB = timezone(timedelta(hours=7))


def now_wib() -> datetime:
    return datetime.now(WIB)


def today_wib() -> date:
    return now_wib().date()


def date_from_offset(offset: int = 0, today: date | None = None) -> date:
    """Date `offset` days from today; -1 is yesterday."""
    return (today or today_wib()) + timedelta(days=offset)


def date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Inclusive (start, end) for a summary period."""
    today = today or today_wib()

    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == "this_week":
        # Weeks start on Monday
        return today - timedelta(days=today.weekday()), today
    if period == "this_month":
        return today.replace(day=1), today
    return today, today


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_midnight_wib_epoch(now: datetime | None = None) -> int:
    """Unix timestamp of the next 00:00 WIB, used as an absolute key expiry."""
    now = (now or now_wib()).astimezone(WIB)
    midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), WIB)
    return int(midnight.timestamp())
