# dashai/demo/seed_demo_data.py

from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dashai.storage.academic import (
    insert_assignment,
    insert_calendar_event,
    insert_course,
    insert_profile,
    insert_schedule_block,
    insert_semester,
)
from dashai.storage.models import CalendarEvent, ClassMeeting, ScheduleBlock
from dashai.storage.repository import initialize_schema

DEMO_TIMEZONE = "America/Halifax"


def seed_demo_data(caller_id: str, db_path: str = ".dashai.db", now: Optional[datetime] = None) -> int:
    """Insert a demo profile and active semester for ``caller_id``.

    Event and assignment dates are placed relative to ``now`` so the
    assistant always has something coming up in the next week.

    Returns:
        The id of the created semester
    """
    initialize_schema(db_path)
    local_today = (now or datetime.now(timezone.utc)).astimezone(ZoneInfo(DEMO_TIMEZONE)).date()

    insert_profile(caller_id, "Demo Student", DEMO_TIMEZONE, db_path=db_path)
    semester_id = insert_semester(caller_id, "Fall Term", db_path=db_path)

    algorithms = insert_course(
        semester_id, "CSCI 3110", "Algorithms",
        schedule=[
            ClassMeeting("Monday", "10:00", "11:30", "Goldberg 127"),
            ClassMeeting("Wednesday", "10:00", "11:30", "Goldberg 127"),
        ],
        db_path=db_path
    )
    statistics = insert_course(
        semester_id, "STAT 2060", "Introductory Statistics",
        schedule=[ClassMeeting("Tuesday", "13:00", "14:30", "Chase 319")],
        db_path=db_path
    )

    insert_schedule_block(
        semester_id,
        ScheduleBlock("Thursday", "15:00", "17:00", "Library study group", "Killam", "G40"),
        db_path=db_path
    )
    insert_calendar_event(
        semester_id,
        CalendarEvent(local_today + timedelta(days=2), "Career fair", "11:00", "15:00"),
        db_path=db_path
    )

    due_at = datetime.combine(local_today + timedelta(days=3), time(23, 59), ZoneInfo(DEMO_TIMEZONE))
    insert_assignment(algorithms, "Problem Set 4", due_at, db_path=db_path)
    insert_assignment(statistics, "Lab Report 2", due_at + timedelta(days=2), db_path=db_path)

    return semester_id
