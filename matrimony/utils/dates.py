from datetime import date, datetime, timedelta, timezone
from typing import Optional

_DAYS_PER_YEAR = 365.25

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def calculate_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole years elapsed since *date_of_birth* (365.25-day years)."""
    if date_of_birth is None:
        return None
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or utcnow().date()
    return int((today - date_of_birth).days // _DAYS_PER_YEAR)

def week_start(day: Optional[date] = None) -> date:
    """Monday of the ISO week containing *day*."""
    day = day or utcnow().date()
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())

def week_number(day: Optional[date] = None) -> int:
    day = day or utcnow().date()
    if isinstance(day, datetime):
        day = day.date()
    return day.isocalendar()[1]
