"""
Read access to per-caller academic records.

The assistant core only reads these tables. The ``insert_*`` helpers exist for
demo seeding and tests; the real records are written by the dashboard's own
CRUD layer.
"""

import json
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from .db import get_connection
from .models import (
    Assignment,
    CalendarEvent,
    CallerProfile,
    ClassMeeting,
    Course,
    ScheduleBlock,
    Semester,
)


class AcademicRepository:
    """Read-only queries over profiles, semesters and their contents.

    Rows are always returned in insertion order so context built from them
    is stable between calls.
    """

    def __init__(self, db_path: str = ".dashai.db"):
        self.db_path = db_path

    def get_profile(self, caller_id: str) -> Optional[CallerProfile]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT caller_id, display_name, timezone FROM caller_profile WHERE caller_id = ?",
                (caller_id,)
            ).fetchone()
            if row is None:
                return None
            return CallerProfile(caller_id=row[0], display_name=row[1], timezone=row[2])
        finally:
            conn.close()

    def get_active_semester(self, caller_id: str) -> Optional[Semester]:
        """Return the caller's active semester, or None if there isn't one."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("""
                SELECT id, name FROM semester
                WHERE caller_id = ? AND is_active = 1
                ORDER BY id LIMIT 1
            """, (caller_id,)).fetchone()
            if row is None:
                return None
            return Semester(semester_id=row[0], name=row[1])
        finally:
            conn.close()

    def list_courses(self, semester_id: int) -> List[Course]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT id, course_code, course_name, schedule
                FROM course WHERE semester_id = ? ORDER BY id
            """, (semester_id,))
            return [
                Course(
                    course_id=row[0],
                    course_code=row[1] or "",
                    course_name=row[2] or "",
                    schedule=_parse_schedule(row[3])
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def list_schedule_blocks(self, semester_id: int) -> List[ScheduleBlock]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT day_of_week, start_time, end_time, title, building, room
                FROM schedule_block WHERE semester_id = ? ORDER BY id
            """, (semester_id,))
            return [
                ScheduleBlock(
                    day_of_week=row[0] or "",
                    start_time=row[1] or "",
                    end_time=row[2] or "",
                    title=row[3] or "",
                    building=row[4],
                    room=row[5]
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def list_calendar_events(self, semester_id: int) -> List[CalendarEvent]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT event_date, title, start_time, end_time
                FROM calendar_event WHERE semester_id = ? ORDER BY id
            """, (semester_id,))
            return [
                CalendarEvent(
                    event_date=date.fromisoformat(row[0]),
                    title=row[1] or "",
                    start_time=row[2],
                    end_time=row[3]
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def list_open_assignments(self, semester_id: int) -> List[Assignment]:
        """List assignments with a due date that have not been completed."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT a.name, c.course_name, a.due_at, a.completed_at
                FROM assignment a
                JOIN course c ON a.course_id = c.id
                WHERE c.semester_id = ?
                  AND a.completed_at IS NULL
                  AND a.due_at IS NOT NULL
                ORDER BY c.id, a.id
            """, (semester_id,))
            return [
                Assignment(
                    name=row[0],
                    course_name=row[1] or "",
                    due_at=_parse_timestamp(row[2]),
                    completed_at=None
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()


def _parse_schedule(raw: Optional[str]) -> List[ClassMeeting]:
    if not raw:
        return []
    return [
        ClassMeeting(
            day=item.get("day") or "",
            start_time=item.get("start_time") or "",
            end_time=item.get("end_time") or "",
            location=item.get("location") or ""
        )
        for item in json.loads(raw)
    ]


def _parse_timestamp(raw: str) -> datetime:
    """Parse a stored ISO timestamp; naive values are taken as UTC.

    A trailing "Z" is accepted; fromisoformat only handles it from 3.11.
    """
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def insert_profile(
    caller_id: str,
    display_name: Optional[str] = None,
    tz_name: Optional[str] = None,
    db_path: str = ".dashai.db"
) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("""
            INSERT OR REPLACE INTO caller_profile (caller_id, display_name, timezone)
            VALUES (?, ?, ?)
        """, (caller_id, display_name, tz_name))
        conn.commit()
    finally:
        conn.close()


def insert_semester(
    caller_id: str,
    name: Optional[str],
    is_active: bool = True,
    db_path: str = ".dashai.db"
) -> int:
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            "INSERT INTO semester (caller_id, name, is_active) VALUES (?, ?, ?)",
            (caller_id, name, 1 if is_active else 0)
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def insert_course(
    semester_id: int,
    course_code: str,
    course_name: str,
    schedule: Iterable[ClassMeeting] = (),
    db_path: str = ".dashai.db"
) -> int:
    conn = get_connection(db_path)
    try:
        cursor = conn.execute("""
            INSERT INTO course (semester_id, course_code, course_name, schedule)
            VALUES (?, ?, ?, ?)
        """, (semester_id, course_code, course_name, json.dumps([asdict(m) for m in schedule])))
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def insert_schedule_block(semester_id: int, block: ScheduleBlock, db_path: str = ".dashai.db") -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("""
            INSERT INTO schedule_block
            (semester_id, day_of_week, start_time, end_time, title, building, room)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            semester_id,
            block.day_of_week,
            block.start_time,
            block.end_time,
            block.title,
            block.building,
            block.room
        ))
        conn.commit()
    finally:
        conn.close()


def insert_calendar_event(semester_id: int, event: CalendarEvent, db_path: str = ".dashai.db") -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("""
            INSERT INTO calendar_event (semester_id, event_date, title, start_time, end_time)
            VALUES (?, ?, ?, ?, ?)
        """, (
            semester_id,
            event.event_date.isoformat(),
            event.title,
            event.start_time,
            event.end_time
        ))
        conn.commit()
    finally:
        conn.close()


def insert_assignment(
    course_id: int,
    name: str,
    due_at: datetime,
    completed_at: Optional[datetime] = None,
    db_path: str = ".dashai.db"
) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("""
            INSERT INTO assignment (course_id, name, due_at, completed_at)
            VALUES (?, ?, ?, ?)
        """, (
            course_id,
            name,
            due_at.isoformat(),
            completed_at.isoformat() if completed_at else None
        ))
        conn.commit()
    finally:
        conn.close()
