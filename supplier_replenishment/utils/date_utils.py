# supplier_replenishment/utils/date_utils.py
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union
import calendar

DAY_IN_SECONDS = 86400

def parse_datetime(value: Union[date, datetime, str, None]) -> Optional[datetime]:
    """Parse a value into a naive datetime, or None if it cannot be parsed.

    Accepts datetime and date objects and the common ``YYYY-MM-DD``,
    ``YYYY-MM-DD HH:MM:SS`` and ISO 8601 string forms.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    text = str(value).strip()
    if not text:
        return None

    for fmt in ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d', '%d/%m/%Y %H:%M', '%d/%m/%Y'):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed

def end_of_day(target_date: Union[date, datetime]) -> datetime:
    """Get the last second of a day (23:59:59)."""
    if isinstance(target_date, datetime):
        target_date = target_date.date()
    return datetime.combine(target_date, time(23, 59, 59))

def get_lookback_window(
    lookback_days: int,
    as_of_date: Union[date, datetime, None] = None
) -> Tuple[datetime, datetime]:
    """Get the analysis window ending at the end of ``as_of_date``.

    Args:
        lookback_days: Length of the window in days
        as_of_date: Last day of the window (defaults to today)

    Returns:
        Tuple with window start and window end
    """
    if as_of_date is None:
        as_of_date = date.today()

    window_end = end_of_day(as_of_date)
    window_start = window_end - timedelta(days=max(0, lookback_days))

    return (window_start, window_end)

def days_between(start: datetime, end: datetime) -> float:
    """Get the (fractional) number of days from start to end."""
    return (end - start).total_seconds() / DAY_IN_SECONDS

def subtract_years(value: datetime, years: int) -> datetime:
    """Subtract whole years, mapping Feb 29 onto Feb 28 when needed."""
    target_year = value.year - years
    last_day = calendar.monthrange(target_year, value.month)[1]
    return value.replace(year=target_year, day=min(value.day, last_day))
