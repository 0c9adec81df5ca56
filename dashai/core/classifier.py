"""
Keyword classification of assistant messages.

Decides which kinds of academic context a message needs so the context
selector only fetches those. Classification is a pure function of the text;
retrieval code depends only on the returned category set, so a smarter
classifier can replace this one without touching it.
"""

import re
from enum import Enum
from typing import Dict, FrozenSet, Optional


class ContextCategory(Enum):
    """Kinds of context the selector can fetch."""
    SCHEDULE = "schedule"
    ASSIGNMENTS = "assignments"
    CALENDAR = "calendar"
    COURSES = "courses"


ALL_CATEGORIES: FrozenSet[ContextCategory] = frozenset(ContextCategory)

# Whole-word keyword sets; a word may belong to more than one category
CATEGORY_KEYWORDS: Dict[ContextCategory, FrozenSet[str]] = {
    ContextCategory.SCHEDULE: frozenset({
        "schedule", "class", "lecture", "meeting", "appointment",
        "time", "when", "today", "tomorrow", "week", "day",
    }),
    ContextCategory.ASSIGNMENTS: frozenset({
        "assignment", "homework", "due", "deadline", "task", "project",
    }),
    ContextCategory.CALENDAR: frozenset({
        "event", "calendar", "appointment", "meeting", "reminder",
    }),
    ContextCategory.COURSES: frozenset({
        "course", "class", "subject", "semester",
    }),
}

_PATTERNS = {
    category: re.compile(r"\b(" + "|".join(sorted(words)) + r")\b")
    for category, words in CATEGORY_KEYWORDS.items()
}


def match_categories(text: Optional[str]) -> FrozenSet[ContextCategory]:
    """Return the categories whose keywords appear in ``text`` (case-insensitive).

    An empty set means nothing matched.
    """
    lowered = (text or "").lower()
    return frozenset(
        category for category, pattern in _PATTERNS.items()
        if pattern.search(lowered)
    )


def classify_message(text: Optional[str]) -> FrozenSet[ContextCategory]:
    """Return the context categories a message needs.

    When no keyword matches, every category is returned so ambiguous or
    general questions aren't answered from an under-filled context.
    """
    return match_categories(text) or ALL_CATEGORIES


def mentions_today_or_tomorrow(text: Optional[str]) -> bool:
    """True when the message asks about "today" or "tomorrow".

    Substring match, so "today's" and "tomorrow?" count.
    """
    lowered = (text or "").lower()
    return "today" in lowered or "tomorrow" in lowered
