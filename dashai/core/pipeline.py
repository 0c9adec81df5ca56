"""
Assistant request pipeline.

Flow for one authenticated request:
1. Validate the payload (no side effects on rejection)
2. Rate limiter check against the shared daily ceiling
3. Resolve the caller's timezone and local "today"
4. Gather the relevant academic context
5. Assemble the bounded conversation
6. Call the model once
7. Price the tokens and record them in the cost ledgers

Stateless across requests apart from the ledgers in the store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from dashai.config.loader import AssistantConfig
from dashai.sdk.openai_client import CompletionInvoker
from dashai.storage.academic import AcademicRepository
from dashai.storage.repository import LedgerRepository
from .context_selector import ContextSelector, ResolvedProfile
from .conversation import DEFAULT_HISTORY_LIMIT, build_conversation
from .cost_ledger import CostLedger
from .errors import AuthenticationRequired, InvalidInput, RateLimited
from .rate_limiter import RateLimiter
from .timezones import utc_now
from .usage_reporter import UsageReporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatRequest:
    """A validated inbound request."""
    message: str
    chat_history: List[Any]


@dataclass(frozen=True)
class ChatResult:
    """Reply and usage accounting returned to the caller."""
    reply: str
    tokens_used: int
    cost: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reply": self.reply,
            "tokensUsed": self.tokens_used,
            "cost": float(self.cost),
        }


def validate_request(caller_id: Optional[str], payload: Any) -> ChatRequest:
    """Check the caller identity and payload shape.

    Raises:
        AuthenticationRequired: If there is no caller identity
        InvalidInput: If the message is missing, not a string or blank, or
            chatHistory is present but not a list
    """
    if not caller_id or not caller_id.strip():
        raise AuthenticationRequired()
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be an object.")

    message = payload.get("message")
    if not isinstance(message, str) or not message.strip():
        raise InvalidInput("Message is required and must be a non-empty string.")

    chat_history = payload.get("chatHistory")
    if chat_history is None:
        chat_history = []
    elif not isinstance(chat_history, list):
        raise InvalidInput("Chat history must be an array.")

    return ChatRequest(message=message, chat_history=chat_history)


class AssistantPipeline:
    """Runs one chat request end to end."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        context_selector: ContextSelector,
        invoker: CompletionInvoker,
        usage_reporter: UsageReporter,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = utc_now
    ):
        self.rate_limiter = rate_limiter
        self.context_selector = context_selector
        self.invoker = invoker
        self.usage_reporter = usage_reporter
        self.history_limit = history_limit
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: AssistantConfig,
        clock: Callable[[], datetime] = utc_now
    ) -> "AssistantPipeline":
        """Wire the pipeline against the SQLite store named in ``config``."""
        ledger_repository = LedgerRepository(config.db_path)
        return cls(
            rate_limiter=RateLimiter(ledger_repository, limit=config.daily_call_limit, clock=clock),
            context_selector=ContextSelector(
                AcademicRepository(config.db_path),
                fallback_timezone=config.fallback_timezone,
                lookahead_days=config.lookahead_days,
                clock=clock
            ),
            invoker=CompletionInvoker(
                model=config.model,
                max_tokens=config.max_tokens,
                temperature=config.temperature
            ),
            usage_reporter=UsageReporter(
                CostLedger(ledger_repository, clock=clock),
                price_per_1k=config.price_per_1k_tokens
            ),
            history_limit=config.history_limit,
            clock=clock
        )

    def handle(self, caller_id: Optional[str], payload: Any) -> ChatResult:
        """Answer one chat request.

        Args:
            caller_id: Identity established by the authentication layer
            payload: Request body, ``{"message": ..., "chatHistory": [...]}``

        Returns:
            ChatResult with the reply, tokens used and cost

        Raises:
            AuthenticationRequired: No caller identity
            InvalidInput: Malformed payload
            RateLimited: Daily ceiling reached; no model call is made
            ModelInvocationFailure: The model call failed
        """
        request = validate_request(caller_id, payload)

        decision = self.rate_limiter.check()
        if not decision.allowed:
            raise RateLimited(self.rate_limiter.limit)

        now = self.clock()
        profile = self._resolve_profile(caller_id)
        reference_date = profile.timezone.today(now)

        context = self.context_selector.gather(
            caller_id,
            reference_date=reference_date,
            message_text=request.message,
            profile=profile
        )
        turns = build_conversation(
            context,
            profile.timezone,
            reference_date,
            request.chat_history,
            request.message,
            now=now,
            history_limit=self.history_limit
        )

        completion = self.invoker.call(turns)
        cost = self.usage_reporter.report(completion.tokens_used)

        logger.info(
            f"[AssistantPipeline] Answered {caller_id}: {completion.tokens_used} tokens, "
            f"${cost} (call {decision.count} today)"
        )
        return ChatResult(reply=completion.reply, tokens_used=completion.tokens_used, cost=cost)

    def _resolve_profile(self, caller_id: str) -> ResolvedProfile:
        try:
            return self.context_selector.resolve_profile(caller_id)
        except Exception:
            logger.warning(
                f"[AssistantPipeline] Profile for {caller_id} unavailable, using fallback timezone",
                exc_info=True
            )
            return self.context_selector.fallback_profile()
