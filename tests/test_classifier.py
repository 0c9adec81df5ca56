"""
Tests for keyword classification of assistant messages.
"""

from dashai.core.classifier import (
    ALL_CATEGORIES,
    ContextCategory,
    classify_message,
    match_categories,
    mentions_today_or_tomorrow,
)


class TestClassifyMessage:
    """Test category selection from message text."""

    def test_assignment_question(self):
        """A deadline question needs assignments only."""
        assert classify_message("Which assignment should I finish first?") == frozenset({
            ContextCategory.ASSIGNMENTS,
        })

    def test_overlapping_keyword_selects_both_categories(self):
        """'class' belongs to schedule and courses."""
        assert classify_message("Where is my class?") == frozenset({
            ContextCategory.SCHEDULE,
            ContextCategory.COURSES,
        })

    def test_meeting_selects_schedule_and_calendar(self):
        assert classify_message("Do I have a meeting?") == frozenset({
            ContextCategory.SCHEDULE,
            ContextCategory.CALENDAR,
        })

    def test_case_insensitive(self):
        assert ContextCategory.CALENDAR in classify_message("Any EVENT coming up?")

    def test_whole_words_only(self):
        """Keywords inside longer words don't match."""
        assert match_categories("classical music and taskbar icons") == frozenset()

    def test_no_match_includes_everything(self):
        """A general question gets the full context."""
        assert classify_message("Hello there!") == ALL_CATEGORIES
        assert classify_message("") == ALL_CATEGORIES
        assert classify_message(None) == ALL_CATEGORIES

    def test_deterministic(self):
        text = "When is my homework due this week?"
        assert classify_message(text) == classify_message(text)


class TestMentionsTodayOrTomorrow:
    """Test the day-focus detector."""

    def test_today(self):
        assert mentions_today_or_tomorrow("What's on today's agenda?")

    def test_tomorrow(self):
        assert mentions_today_or_tomorrow("Anything TOMORROW?")

    def test_neither(self):
        assert not mentions_today_or_tomorrow("What is due this week?")
        assert not mentions_today_or_tomorrow(None)
