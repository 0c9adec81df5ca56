"""
OpenAI completion invoker.

Sends an assembled conversation to the chat completions API with fixed model
settings and returns the reply with its token count.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from openai import OpenAI

from ..core.conversation import ConversationTurn
from ..core.errors import ModelInvocationFailure, friendly_error_message
from ..core.token_counter import TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7

FALLBACK_REPLY = "I apologize, but I could not generate a response."


@dataclass(frozen=True)
class CompletionResult:
    reply: str
    tokens_used: int


class CompletionInvoker:
    """Calls the language model with a bounded token budget.

    The OpenAI client is created on first use and shared by every call
    through this invoker; it is safe for concurrent requests. Failures are
    never retried.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        api_key: Optional[str] = None
    ):
        """Initialize the invoker.

        Args:
            model: OpenAI model name (required)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            api_key: Explicit API key; defaults to the OPENAI_API_KEY
                environment variable read by the OpenAI client

        Raises:
            ValueError: If model is missing/empty or max_tokens is not positive
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")
        if max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._api_key = api_key
        self._client: Optional[OpenAI] = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = OpenAI(api_key=self._api_key) if self._api_key else OpenAI()
        return self._client

    def call(self, turns: List[ConversationTurn]) -> CompletionResult:
        """Run one chat completion.

        Args:
            turns: Conversation from ``build_conversation``

        Returns:
            CompletionResult; an empty reply is replaced with ``FALLBACK_REPLY``
            and missing usage counts as 0 tokens

        Raises:
            ValueError: If turns is empty
            ModelInvocationFailure: If the client or API call fails
        """
        if not turns:
            raise ValueError("turns is required and cannot be empty")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[turn.to_message() for turn in turns],
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except Exception as e:
            logger.error(f"[CompletionInvoker] Model call failed: {e}", exc_info=True)
            raise ModelInvocationFailure(friendly_error_message(e)) from e

        reply = None
        if response.choices:
            reply = response.choices[0].message.content
        if not reply:
            logger.warning("[CompletionInvoker] Empty reply from model, using fallback")
            reply = FALLBACK_REPLY

        usage = TokenUsage.from_response(response.usage)
        return CompletionResult(reply=reply, tokens_used=usage.total_tokens)
