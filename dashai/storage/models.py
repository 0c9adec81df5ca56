"""
Data models for storage layer.

Defines ledger records and the read-only academic records they sit beside.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class DailyCallCounter:
    """Global count of assistant calls for one UTC calendar day.

    A new day produces a new record; counters are never reset in place.
    """
    day_key: str
    count: int
    last_reset: datetime


@dataclass(frozen=True)
class DailyCostRecord:
    """Additive token and dollar usage for one UTC calendar day."""
    day_key: str
    cost: Decimal
    tokens: int
    calls: int


@dataclass(frozen=True)
class MonthlyCostRecord:
    """Additive token and dollar usage for one UTC calendar month."""
    month_key: str
    total_cost: Decimal
    total_tokens: int
    call_count: int


@dataclass(frozen=True)
class CallerProfile:
    """Display name and preferred timezone of an authenticated caller."""
    caller_id: str
    display_name: Optional[str] = None
    timezone: Optional[str] = None


@dataclass(frozen=True)
class Semester:
    semester_id: int
    name: Optional[str]


@dataclass(frozen=True)
class ClassMeeting:
    """One weekly slot embedded in a course schedule."""
    day: str = ""
    start_time: str = ""
    end_time: str = ""
    location: str = ""


@dataclass(frozen=True)
class Course:
    course_id: int
    course_code: str
    course_name: str
    schedule: List[ClassMeeting] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.course_code} - {self.course_name}"


@dataclass(frozen=True)
class ScheduleBlock:
    """A recurring weekly block that is not tied to a course record."""
    day_of_week: str
    start_time: str
    end_time: str
    title: str
    building: Optional[str] = None
    room: Optional[str] = None


@dataclass(frozen=True)
class CalendarEvent:
    event_date: date
    title: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class Assignment:
    """A course assignment; open while ``completed_at`` is None."""
    name: str
    course_name: str
    due_at: datetime
    completed_at: Optional[datetime] = None
