"""
Unit tests for SDK layer.

Tests the OpenAI completion invoker with a mocked client.
"""

import logging
from unittest.mock import Mock, patch

import pytest

from dashai.core.conversation import ConversationTurn
from dashai.core.errors import ModelInvocationFailure
from dashai.sdk.openai_client import FALLBACK_REPLY, CompletionInvoker, CompletionResult

TURNS = [
    ConversationTurn("system", "You are DashAI."),
    ConversationTurn("user", "What's due?"),
]


def _response(content="An essay on Friday.", prompt_tokens=120, completion_tokens=30, usage=True):
    response = Mock()
    message = Mock()
    message.content = content
    choice = Mock()
    choice.message = message
    response.choices = [choice]
    if usage:
        response.usage = Mock(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    else:
        response.usage = None
    return response


class TestCompletionInvoker:
    """Test CompletionInvoker behaviour."""

    def test_init_missing_model(self):
        """Test initialization fails with missing model."""
        with pytest.raises(ValueError, match="model is required"):
            CompletionInvoker(model="")

    def test_init_invalid_max_tokens(self):
        with pytest.raises(ValueError, match="max_tokens must be > 0"):
            CompletionInvoker(max_tokens=0)

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_client_created_lazily_once(self, mock_openai_class):
        invoker = CompletionInvoker(api_key="sk-test")
        mock_openai_class.assert_not_called()

        assert invoker.client is invoker.client
        mock_openai_class.assert_called_once_with(api_key="sk-test")

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_call_success(self, mock_openai_class):
        """Test reply and token count are returned with fixed settings."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response()
        mock_openai_class.return_value = mock_client

        invoker = CompletionInvoker(model="gpt-3.5-turbo", max_tokens=1000, temperature=0.7)
        result = invoker.call(TURNS)

        assert result == CompletionResult(reply="An essay on Friday.", tokens_used=150)
        mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-3.5-turbo",
            messages=[
                {"role": "system", "content": "You are DashAI."},
                {"role": "user", "content": "What's due?"},
            ],
            max_tokens=1000,
            temperature=0.7
        )

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_empty_reply_uses_fallback(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(content="")
        mock_openai_class.return_value = mock_client

        result = CompletionInvoker().call(TURNS)

        assert result.reply == FALLBACK_REPLY
        assert result.tokens_used == 150

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_no_choices_uses_fallback(self, mock_openai_class):
        response = _response()
        response.choices = []
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = response
        mock_openai_class.return_value = mock_client

        assert CompletionInvoker().call(TURNS).reply == FALLBACK_REPLY

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_missing_usage_counts_zero(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(usage=False)
        mock_openai_class.return_value = mock_client

        assert CompletionInvoker().call(TURNS).tokens_used == 0

    @patch('dashai.sdk.openai_client.OpenAI')
    def test_api_error_wrapped(self, mock_openai_class, caplog):
        """Test API failures surface as ModelInvocationFailure with a friendly message."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = Exception("Request timed out")
        mock_openai_class.return_value = mock_client

        with caplog.at_level(logging.ERROR, logger="dashai.sdk.openai_client"):
            with pytest.raises(ModelInvocationFailure, match="Connection issue"):
                CompletionInvoker().call(TURNS)

        assert "Model call failed" in caplog.text
        mock_client.chat.completions.create.assert_called_once()

    def test_empty_turns_rejected(self):
        with pytest.raises(ValueError, match="turns is required"):
            CompletionInvoker().call([])
