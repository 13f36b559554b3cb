import calendar
import re
from datetime import date, datetime

_EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])-(\d{4})$")


def month_start(value):
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)


def parse_expiry(value):
    """Parse an ``MM-YYYY`` expiry into the first day of that month.

    Blank or missing values mean the batch has no tracked expiry and return
    None. Anything else that is not ``MM-YYYY`` raises ValueError.
    """
    if value is None:
        return None
    value_text = str(value).strip()
    if not value_text:
        return None
    match = _EXPIRY_PATTERN.match(value_text)
    if not match:
        raise ValueError("Expiry date must be in MM-YYYY format: {!r}".format(value))
    month, year = int(match.group(1)), int(match.group(2))
    return date(year, month, 1)


def normalize_expiry(value):
    parsed = parse_expiry(value)
    if parsed is None:
        return None
    return "{:02d}-{:04d}".format(parsed.month, parsed.year)


def months_between(start, end):
    """Whole calendar months from ``start`` to ``end`` (day of month ignored)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(value, months):
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def is_expired(expiry, today=None):
    expiry_month = parse_expiry(expiry) if not isinstance(expiry, date) else expiry
    if expiry_month is None:
        return False
    today = today or date.today()
    return expiry_month < month_start(today)


def expiry_status(expiry, today=None, warning_months=6):
    expiry_month = parse_expiry(expiry)
    if expiry_month is None:
        return "unknown"
    today = today or date.today()
    if is_expired(expiry_month, today):
        return "expired"
    if months_between(today, expiry_month) < warning_months:
        return "expiring"
    return "good"
