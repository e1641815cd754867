# utils/datetime_utils.py

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

import pytz

from dailyhabit.core.models import ValidationError

DEFAULT_TZ = pytz.utc
DATE_KEY_FORMAT = "%Y-%m-%d"

DateLike = Union[date, datetime]


def get_timezone(name: Optional[str]) -> pytz.BaseTzInfo:
    if not name:
        return DEFAULT_TZ
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ValidationError(f"Unknown timezone: {name}")


def now_in_zone(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    return datetime.now(tz or DEFAULT_TZ)


def today_in_zone(tz: Optional[pytz.BaseTzInfo] = None) -> date:
    return now_in_zone(tz).date()


def utc_timestamp() -> str:
    """ISO-8601 timestamp for the lastUpdated field"""
    return datetime.now(pytz.utc).isoformat()


def normalize_date(value: DateLike, tz: Optional[pytz.BaseTzInfo] = None) -> str:
    """
    Canonical DateKey (YYYY-MM-DD) for a calendar day.

    A plain date is already a civil day. An aware datetime is first moved
    into the reference zone; a naive one is read as reference-zone time.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz or DEFAULT_TZ)
        value = value.date()
    # strftime does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(date_str: str) -> date:
    if not isinstance(date_str, str) or len(date_str) != 10:
        raise ValidationError(f"Invalid date key: {date_str!r}")
    try:
        return datetime.strptime(date_str, DATE_KEY_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date key: {date_str!r}")


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def enumerate_month(year: int, month: int) -> List[date]:
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


@dataclass(frozen=True)
class MonthWindow:
    """Displayed calendar month"""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Month must be within 1-12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise ValidationError(f"Year out of range: {self.year}")

    @classmethod
    def containing(cls, day: DateLike) -> "MonthWindow":
        return cls(day.year, day.month)

    @property
    def dates(self) -> List[date]:
        return enumerate_month(self.year, self.month)

    @property
    def keys(self) -> List[str]:
        return [normalize_date(d) for d in self.dates]

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def previous(self) -> "MonthWindow":
        if self.month == 1:
            return MonthWindow(self.year - 1, 12)
        return MonthWindow(self.year, self.month - 1)

    def next(self) -> "MonthWindow":
        if self.month == 12:
            return MonthWindow(self.year + 1, 1)
        return MonthWindow(self.year, self.month + 1)

    def __contains__(self, day: DateLike) -> bool:
        return day.year == self.year and day.month == self.month
