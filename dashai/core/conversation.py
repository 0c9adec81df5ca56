"""
Conversation assembly.

Turns the gathered context, the client-supplied chat history and the new
message into the ordered turn list sent to the model: one system turn, at
most ``history_limit`` prior turns, then the new user turn.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from .timezones import CallerTimezone, format_clock, format_long_date, weekday_name

DEFAULT_HISTORY_LIMIT = 10

HISTORY_ROLES = frozenset({"user", "assistant"})

SYSTEM_PROMPT_TEMPLATE = """You are DashAI, a warm and helpful personal assistant for MyHub. You're friendly, professional, and genuinely care about helping users manage their academic life and beyond.

YOUR PERSONALITY:
- Be warm, approachable, and conversational, like a helpful friend who knows your schedule
- Use natural language and match the user's tone
- Be concise but not terse

CRITICAL RULES:
1. ONLY use data from User Context. Never make up information. If you don't know something, say so honestly.
2. When a day or period has nothing scheduled, say plainly that it is free (for example "You have a free day!").
3. Date handling uses the Current Date information below:
   - 'today' = the current date shown
   - 'tomorrow' = the next day shown
   - 'next [day]' = the next occurrence of that weekday
   - 'in X days' = X days from today
4. Use the conversation history for follow-ups. If the user says 'what about that?' or 'tell me more', refer back to previous messages.

Current Date ({timezone}):
- Today: {today}
- Tomorrow: {tomorrow}
- Current Time: {current_time}

User Context:
{context}

CONVERSATION GUIDELINES:
- Don't end with stock questions like 'How can I help you today?'; end naturally
- Only ask follow-up questions when they add value
- When listing schedules or assignments, make them easy to scan
- Keep responses under 200 words unless the user asks for detail"""


@dataclass(frozen=True)
class ConversationTurn:
    """A single message in the model conversation."""
    role: str
    content: str

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def build_system_prompt(
    context: str,
    caller_timezone: CallerTimezone,
    reference_date: date,
    now: datetime
) -> str:
    """Render the system instruction with the caller-local dates and time."""
    tomorrow = reference_date + timedelta(days=1)
    return SYSTEM_PROMPT_TEMPLATE.format(
        timezone=caller_timezone.name,
        today=f"{format_long_date(reference_date)} ({weekday_name(reference_date)})",
        tomorrow=f"{format_long_date(tomorrow)} ({weekday_name(tomorrow)})",
        current_time=format_clock(caller_timezone.now(now)),
        context=context
    )


def sanitize_history(history_raw: Any, limit: int = DEFAULT_HISTORY_LIMIT) -> List[ConversationTurn]:
    """Keep the last ``limit`` valid history entries, in their original order.

    An entry is valid when it is a mapping whose role is "user" or
    "assistant" and whose content is a string that isn't blank. Invalid
    entries are dropped silently; a non-list history counts as empty.
    """
    if not isinstance(history_raw, list):
        return []

    valid = []
    for item in history_raw:
        if not isinstance(item, dict):
            continue
        role = item.get("role")
        content = item.get("content")
        if role not in HISTORY_ROLES or not isinstance(content, str):
            continue
        content = content.strip()
        if content:
            valid.append(ConversationTurn(role=role, content=content))

    if limit <= 0:
        return []
    return valid[-limit:]


def build_conversation(
    context: str,
    caller_timezone: CallerTimezone,
    reference_date: date,
    history_raw: Any,
    user_message: str,
    now: Optional[datetime] = None,
    history_limit: int = DEFAULT_HISTORY_LIMIT
) -> List[ConversationTurn]:
    """Assemble the turns for one model call.

    Args:
        context: Output of ``ContextSelector.gather``
        caller_timezone: Caller's resolved timezone
        reference_date: Caller-local "today"
        history_raw: Client-supplied history, validated here
        user_message: The new message; trimmed before use
        now: Current instant, for the time-of-day line
        history_limit: Maximum number of prior turns kept

    Returns:
        System turn, up to ``history_limit`` history turns, new user turn
    """
    system_prompt = build_system_prompt(context, caller_timezone, reference_date, now or caller_timezone.now())
    turns = [ConversationTurn(role="system", content=system_prompt)]
    turns.extend(sanitize_history(history_raw, history_limit))
    turns.append(ConversationTurn(role="user", content=user_message.strip()))
    return turns
