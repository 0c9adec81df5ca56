"""
Timezone resolution and date formatting.

Caller timezones arrive as free-form profile strings. They are validated once,
at the boundary, into a ``CallerTimezone``; everything downstream works with
the resolved zone.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_TIMEZONE = "UTC"

# Fixed English names; strftime would follow the process locale
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass(frozen=True)
class CallerTimezone:
    """A validated IANA timezone identifier."""
    name: str
    zone: ZoneInfo

    @classmethod
    def resolve(cls, raw: Optional[str], fallback: str = DEFAULT_FALLBACK_TIMEZONE) -> "CallerTimezone":
        """Validate ``raw`` as an IANA zone, falling back when unset or unknown.

        Args:
            raw: Timezone string from the caller's profile, possibly None
            fallback: Zone used when ``raw`` is missing or invalid

        Returns:
            The resolved CallerTimezone
        """
        if raw:
            try:
                return cls(name=raw, zone=ZoneInfo(raw))
            except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
                logger.warning(f"[CallerTimezone] Invalid timezone '{raw}', using {fallback}")
        return cls(name=fallback, zone=ZoneInfo(fallback))

    def now(self, now: Optional[datetime] = None) -> datetime:
        """Current time (or ``now``) expressed in this zone."""
        return (now or utc_now()).astimezone(self.zone)

    def today(self, now: Optional[datetime] = None) -> date:
        """Calendar date in this zone at ``now``."""
        return self.now(now).date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_day_key(now: datetime) -> str:
    """Ledger day key, "YYYY-MM-DD" in UTC."""
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d")


def utc_month_key(now: datetime) -> str:
    """Ledger month key, "YYYY-MM" in UTC."""
    return now.astimezone(timezone.utc).strftime("%Y-%m")


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def format_long_date(day: date) -> str:
    """Format as e.g. "October 17, 2026"."""
    return f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def format_short_date(day: date) -> str:
    """Format as e.g. "10/17/2026"."""
    return f"{day.month}/{day.day}/{day.year}"


def format_clock(moment: datetime) -> str:
    """Format a time of day as e.g. "02:05 PM"."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour:02d}:{moment.minute:02d} {suffix}"
