"""
Context selection for the assistant.

Builds the "User Context" block of the system prompt. The message is
classified first and only the relevant academic records are read, which keeps
both the store round-trips and the prompt tokens down.

Section order:
1. Caller name and timezone
2. Active semester and course list
3. Course meetings (weekly, or filtered to the reference weekday)
4. Schedule blocks (same filtering)
5. Calendar events in the look-ahead window
6. Open assignments due in the look-ahead window

Any read failure degrades to ``CONTEXT_UNAVAILABLE`` rather than failing the
request.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, FrozenSet, List, Optional

from dashai.storage.academic import AcademicRepository
from dashai.storage.models import (
    Assignment,
    CalendarEvent,
    Course,
    ScheduleBlock,
)
from .classifier import ContextCategory, classify_message, mentions_today_or_tomorrow
from .timezones import (
    DEFAULT_FALLBACK_TIMEZONE,
    CallerTimezone,
    format_short_date,
    utc_now,
    weekday_name,
)

logger = logging.getLogger(__name__)

CONTEXT_UNAVAILABLE = "User context unavailable."
DEFAULT_DISPLAY_NAME = "User"
DEFAULT_LOOKAHEAD_DAYS = 7


@dataclass(frozen=True)
class ResolvedProfile:
    """Caller name and validated timezone, with fallbacks applied."""
    display_name: str
    timezone: CallerTimezone


class ContextSelector:
    """Selectively fetches and formats a caller's academic context."""

    def __init__(
        self,
        repository: AcademicRepository,
        fallback_timezone: str = DEFAULT_FALLBACK_TIMEZONE,
        lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.fallback_timezone = fallback_timezone
        self.lookahead_days = lookahead_days
        self.clock = clock

    def fallback_profile(self) -> ResolvedProfile:
        return ResolvedProfile(
            display_name=DEFAULT_DISPLAY_NAME,
            timezone=CallerTimezone.resolve(None, self.fallback_timezone)
        )

    def resolve_profile(self, caller_id: str) -> ResolvedProfile:
        """Read the caller's name and timezone.

        Storage errors propagate; callers decide how to degrade.
        """
        profile = self.repository.get_profile(caller_id)
        if profile is None:
            return self.fallback_profile()
        return ResolvedProfile(
            display_name=profile.display_name or DEFAULT_DISPLAY_NAME,
            timezone=CallerTimezone.resolve(profile.timezone, self.fallback_timezone)
        )

    def gather(
        self,
        caller_id: str,
        reference_date: Optional[date] = None,
        message_text: Optional[str] = None,
        profile: Optional[ResolvedProfile] = None
    ) -> str:
        """Build the context string for one request.

        Args:
            caller_id: Authenticated caller
            reference_date: Caller-local "today"; enables the today-only
                filters and subsections
            message_text: The user's message, used to pick categories
            profile: Profile already resolved by the caller, saving a read

        Returns:
            Sections joined by blank lines, or ``CONTEXT_UNAVAILABLE`` if any
            read fails
        """
        try:
            return self._gather(caller_id, reference_date, message_text, profile)
        except Exception:
            logger.error(
                f"[ContextSelector] Error gathering context for {caller_id}, using placeholder",
                exc_info=True
            )
            return CONTEXT_UNAVAILABLE

    def _gather(
        self,
        caller_id: str,
        reference_date: Optional[date],
        message_text: Optional[str],
        profile: Optional[ResolvedProfile]
    ) -> str:
        profile = profile or self.resolve_profile(caller_id)
        parts = [
            f"User: {profile.display_name}",
            f"Timezone: {profile.timezone.name}",
        ]

        categories = classify_message(message_text)

        semester = self.repository.get_active_semester(caller_id)
        if semester is None:
            return "\n\n".join(parts)
        parts.append(f"Active Semester: {semester.name or 'Unknown'}")

        window_start = reference_date or profile.timezone.today(self.clock())
        window_end = window_start + timedelta(days=self.lookahead_days)
        focus_day = reference_date if reference_date and mentions_today_or_tomorrow(message_text) else None

        want_blocks = ContextCategory.SCHEDULE in categories
        want_events = bool(categories & {ContextCategory.CALENDAR, ContextCategory.SCHEDULE})
        want_assignments = ContextCategory.ASSIGNMENTS in categories

        # Everything below depends only on the semester id
        semester_id = semester.semester_id
        with ThreadPoolExecutor(max_workers=4) as pool:
            courses_future = pool.submit(self.repository.list_courses, semester_id)
            blocks_future = pool.submit(self.repository.list_schedule_blocks, semester_id) if want_blocks else None
            events_future = pool.submit(self.repository.list_calendar_events, semester_id) if want_events else None
            assignments_future = pool.submit(self.repository.list_open_assignments, semester_id) if want_assignments else None

            courses = courses_future.result()
            blocks = blocks_future.result() if blocks_future else []
            events = events_future.result() if events_future else []
            assignments = assignments_future.result() if assignments_future else []

        if courses:
            parts.append("Courses: " + ", ".join(course.label for course in courses))

        if _wants_meetings(categories):
            section = self._meetings_section(courses, focus_day)
            if section:
                parts.append(section)

        if want_blocks:
            section = self._blocks_section(blocks, focus_day)
            if section:
                parts.append(section)

        if want_events:
            parts.extend(self._event_sections(events, window_start, window_end, reference_date))

        if want_assignments:
            parts.extend(self._assignment_sections(
                assignments, window_start, window_end, reference_date, profile.timezone
            ))

        return "\n\n".join(parts)

    def _meetings_section(self, courses: List[Course], focus_day: Optional[date]) -> Optional[str]:
        meetings = [(meeting, course) for course in courses for meeting in course.schedule]
        if not meetings:
            return None

        if focus_day is not None:
            day_name = weekday_name(focus_day)
            lines = [
                f"{m.start_time} - {m.end_time} - {course.label}{_parenthesized(m.location)}"
                for m, course in meetings if m.day == day_name
            ]
            if not lines:
                return f"Today's Schedule ({day_name}): No classes scheduled"
            return f"Today's Schedule ({day_name}):\n" + "\n".join(lines)

        lines = [
            f"{m.day}: {m.start_time} - {m.end_time} - {course.label}{_parenthesized(m.location)}"
            for m, course in meetings
        ]
        return "Weekly Schedule:\n" + "\n".join(lines)

    def _blocks_section(self, blocks: List[ScheduleBlock], focus_day: Optional[date]) -> Optional[str]:
        if not blocks:
            return None

        if focus_day is not None:
            day_name = weekday_name(focus_day)
            lines = [_block_line(block) for block in blocks if block.day_of_week == day_name]
            if not lines:
                return f"Today's Schedule Blocks ({day_name}): No schedule blocks"
            return f"Today's Schedule Blocks ({day_name}):\n" + "\n".join(lines)

        return "Schedule Blocks:\n" + "\n".join(_block_line(block) for block in blocks)

    def _event_sections(
        self,
        events: List[CalendarEvent],
        window_start: date,
        window_end: date,
        reference_date: Optional[date]
    ) -> List[str]:
        upcoming = [e for e in events if window_start <= e.event_date <= window_end]
        if not upcoming:
            return []

        sections = []
        if reference_date is not None:
            todays = [e for e in upcoming if e.event_date == reference_date]
            if todays:
                sections.append(
                    "Today's Calendar Events:\n"
                    + "\n".join(f"{e.title}{_time_range(e)}" for e in todays)
                )

        ordered = sorted(upcoming, key=lambda e: e.event_date)
        sections.append(
            f"Calendar Events (next {self.lookahead_days} days):\n"
            + "\n".join(f"{e.event_date.isoformat()}: {e.title}{_time_range(e)}" for e in ordered)
        )
        return sections

    def _assignment_sections(
        self,
        assignments: List[Assignment],
        window_start: date,
        window_end: date,
        reference_date: Optional[date],
        caller_tz: CallerTimezone
    ) -> List[str]:
        # Due dates are compared as caller-local calendar days
        due = [
            (a, a.due_at.astimezone(caller_tz.zone).date())
            for a in assignments if a.completed_at is None
        ]
        upcoming = sorted(
            ((a, day) for a, day in due if window_start <= day <= window_end),
            key=lambda pair: pair[0].due_at
        )
        if not upcoming:
            return []

        sections = [
            f"Upcoming Assignments (next {self.lookahead_days} days):\n"
            + "\n".join(
                f"{a.name} ({a.course_name}) - Due: {format_short_date(day)}"
                for a, day in upcoming
            )
        ]
        if reference_date is not None:
            todays = [a for a, day in upcoming if day == reference_date]
            if todays:
                sections.append(
                    "Today's Assignments:\n"
                    + "\n".join(f"{a.name} ({a.course_name})" for a in todays)
                )
        return sections


def _wants_meetings(categories: FrozenSet[ContextCategory]) -> bool:
    return bool(categories & {ContextCategory.SCHEDULE, ContextCategory.COURSES})


def _parenthesized(text: Optional[str]) -> str:
    return f" ({text})" if text else ""


def _block_line(block: ScheduleBlock) -> str:
    where = " ".join(part for part in (block.building, block.room) if part)
    return (
        f"{block.day_of_week}: {block.start_time} - {block.end_time} - "
        f"{block.title}{_parenthesized(where)}"
    )


def _time_range(event: CalendarEvent) -> str:
    if event.start_time and event.end_time:
        return f" ({event.start_time} - {event.end_time})"
    if event.start_time:
        return f" ({event.start_time})"
    return ""
