"""
Error taxonomy for the assistant request pipeline.

Only terminal outcomes are exceptions. Internal failures (lost context, a
failed ledger write, an unreadable counter) recover where they happen and are
logged instead of raised.
"""


class AssistantError(Exception):
    """Base class for errors surfaced to the caller."""


class AuthenticationRequired(AssistantError):
    """Raised when a request carries no authenticated caller identity."""
    def __init__(self, message: str = "User must be authenticated to use AI chat."):
        super().__init__(message)


class InvalidInput(AssistantError):
    """Raised when the request payload fails validation."""


class RateLimited(AssistantError):
    """Raised when the shared daily call ceiling has been reached."""
    def __init__(self, limit: int):
        super().__init__(
            f"I've reached my daily usage limit of {limit} requests. The app has a "
            "limit to keep costs manageable. Please try again tomorrow, or check "
            "the admin dashboard for more details."
        )
        self.limit = limit


class ModelInvocationFailure(AssistantError):
    """Raised when the language model call fails. Never retried."""


def friendly_error_message(error: BaseException) -> str:
    """Map an underlying model-client error to a message fit for the user."""
    text = str(error).lower()
    if "rate limit" in text or "quota" in text:
        return (
            "I've reached my usage limit for now. Please try again later, "
            "or check the admin dashboard for usage details."
        )
    if "authentication" in text or "unauthorized" in text:
        return "Authentication error. Please refresh the page and try again."
    if "network" in text or "timeout" in text or "timed out" in text:
        return "Connection issue. Please check your internet and try again."
    if "invalid" in text or "format" in text:
        return "I couldn't understand that request. Could you rephrase it?"
    return "I'm having trouble processing that right now. Please try again in a moment."
