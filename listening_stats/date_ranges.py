"""Named date ranges used to narrow listening history"""
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

RANGE_NAMES = ('all', 'today', 'week', 'last7', 'month', 'custom')

DateLike = Union[str, date, datetime]

@dataclass(frozen=True)
class DateRange:
    """Inclusive time window. A None bound leaves that side open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        for bound in ('start', 'end'):
            value = getattr(self, bound)
            if value is not None:
                object.__setattr__(self, bound, ensure_utc(value))

    def contains(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if moment.tzinfo is None or moment.tzinfo.utcoffset(moment) is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment

def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)

def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)

def _subtract_month(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)

def parse_date(value: DateLike) -> datetime:
    """
    Parse a custom range bound.

    Raises:
        ValueError: If a string bound is not an ISO date or datetime
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Invalid date bound: {value!r}")

def resolve_range(name: Optional[str], start: Optional[DateLike] = None, end: Optional[DateLike] = None,
                  now: Optional[datetime] = None) -> Optional[DateRange]:
    """
    Resolve a named range to a DateRange.

    Args:
        name: One of RANGE_NAMES; None and unknown names mean 'all'
        start: First day of a custom range
        end: Last day of a custom range
        now: Reference time, defaults to the current UTC time

    Returns:
        The window, or None when no date filter applies
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    name = (name or 'all').lower()

    if name == 'all':
        return None
    if name == 'today':
        return DateRange(start_of_day(now), end_of_day(now))
    if name == 'week':
        monday = now - timedelta(days=now.weekday())
        return DateRange(start_of_day(monday), end_of_day(monday + timedelta(days=6)))
    if name == 'last7':
        return DateRange(start_of_day(now - timedelta(days=7)), end_of_day(now))
    if name == 'month':
        return DateRange(_subtract_month(now), now)
    if name == 'custom':
        if not (start and end):
            logger.info("Custom range requested without both bounds; not filtering by date")
            return None
        return DateRange(start_of_day(parse_date(start)), end_of_day(parse_date(end)))

    logger.warning(f"Unknown date range '{name}', falling back to all")
    return None
