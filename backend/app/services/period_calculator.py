"""
Internship period calculation.

Offer letters derive their internship window from the submission timestamp;
certificates receive their dates from the caller and only need parsing and
reformatting. Everything here is pure: no I/O, no settings lookups.
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union

from app.core.exceptions import InvalidDateError


BILLING_CYCLE = "billing_cycle"
SIMPLE = "simple"

# Simple rule: one week notice, four week internship
SIMPLE_NOTICE_DAYS = 7
SIMPLE_DURATION_DAYS = 28

# Billing cycle rule: mid-month starts run for 30 days
MID_MONTH_START_DAY = 15
MID_MONTH_DURATION_DAYS = 30
LAST_MID_MONTH_SUBMISSION_DAY = 12

_DISPLAY_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def _as_date(value: Union[date, datetime]) -> date:
    # Calendar fields as given, no timezone conversion
    if isinstance(value, datetime):
        return value.date()
    return value


def billing_cycle_period(submitted_at: Union[date, datetime]) -> Tuple[date, date]:
    """
    Submissions on days 1-12 start on the 15th of the same month and run for
    30 days. Later submissions start on the 1st of the next month and end on
    the last day of that month.
    """
    day = _as_date(submitted_at)

    if day.day <= LAST_MID_MONTH_SUBMISSION_DAY:
        start = day.replace(day=MID_MONTH_START_DAY)
    elif day.month == 12:
        start = date(day.year + 1, 1, 1)
    else:
        start = date(day.year, day.month + 1, 1)

    if start.day == MID_MONTH_START_DAY:
        end = start + timedelta(days=MID_MONTH_DURATION_DAYS)
    else:
        last_day = calendar.monthrange(start.year, start.month)[1]
        end = start.replace(day=last_day)

    return start, end


def simple_period(submitted_at: Union[date, datetime]) -> Tuple[date, date]:
    """Start one week after submission, end four weeks after start."""
    start = _as_date(submitted_at) + timedelta(days=SIMPLE_NOTICE_DAYS)
    return start, start + timedelta(days=SIMPLE_DURATION_DAYS)


_RULES = {
    BILLING_CYCLE: billing_cycle_period,
    SIMPLE: simple_period,
}


def compute_offer_period(
    submitted_at: Union[date, datetime],
    rule: str = BILLING_CYCLE
) -> Tuple[date, date]:
    """Map a submission timestamp to the (start, end) internship window."""
    try:
        calculator = _RULES[rule]
    except KeyError:
        raise ValueError(f"Unknown offer period rule: {rule}")
    return calculator(submitted_at)


def format_display_date(value: Union[date, datetime]) -> str:
    """Format as DD/MM/YYYY"""
    return _as_date(value).strftime("%d/%m/%Y")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp such as ``2025-03-05T00:00:00Z``.

    Returns None for empty or unparseable input so callers can fall back to
    the current time.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_caller_date(value: Optional[str], field: str) -> date:
    """
    Parse a caller-supplied date.

    Accepts ISO dates (``2025-03-15``), ISO datetimes with or without a
    trailing ``Z`` and ``DD/MM/YYYY``. Anything else raises InvalidDateError.
    """
    if value is None or not str(value).strip():
        raise InvalidDateError(field, value)

    text = str(value).strip()

    match = _DISPLAY_DATE_RE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            raise InvalidDateError(field, value)

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    parsed = parse_timestamp(text)
    if parsed is None:
        raise InvalidDateError(field, value)
    return parsed.date()


def issue_date(today: Optional[date] = None) -> date:
    """Offer letters are dated the day after they are generated."""
    return (today or date.today()) + timedelta(days=1)
