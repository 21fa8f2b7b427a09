"""
Business-day helpers: day windows and date/time conversions in the
configured business timezone.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Tuple
from zoneinfo import ZoneInfo

ONE_DAY = timedelta(days=1)


def resolve_timezone(name: str) -> tzinfo:
    return ZoneInfo(name)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def day_window(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59.999999] window of a calendar day"""
    return start_of_day(day, tz), datetime.combine(day, time.max, tzinfo=tz)


def local_date(moment: datetime, tz: tzinfo) -> date:
    return moment.astimezone(tz).date()
