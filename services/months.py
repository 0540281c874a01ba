import datetime
import re
from services.errors import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(value: str) -> str:
    """Validate a YYYY-MM string and return it normalized."""
    match = _MONTH_RE.match((value or "").strip())
    if not match:
        raise ValidationError(f"Invalid month '{value}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1900:
        raise ValidationError(f"Invalid month '{value}', expected YYYY-MM")
    return f"{year:04d}-{month:02d}"


def month_of(day: datetime.date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def current_month(today=None) -> str:
    return month_of(today or datetime.date.today())


def next_month(month: str) -> str:
    year, mon = int(month[:4]), int(month[5:])
    if mon == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{mon + 1:02d}"


def month_range(start: str, end: str):
    """Inclusive list of months from start to end."""
    start, end = parse_month(start), parse_month(end)
    if start > end:
        raise ValidationError("from_month must not be after to_month")
    months = [start]
    while months[-1] < end:
        months.append(next_month(months[-1]))
    return months


def parse_month_list(values):
    """Parse a selection of months; must be non-empty, unique and ascending."""
    if not values:
        raise ValidationError("At least one month must be selected")
    months = [parse_month(v) for v in values]
    for prev, cur in zip(months, months[1:]):
        if cur == prev:
            raise ValidationError(f"Month {cur} selected more than once")
        if cur < prev:
            raise ValidationError("Months must be sorted in ascending order")
    return months
