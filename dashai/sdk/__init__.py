"""
SDK for DashAI.

Provides the language model client used by the assistant pipeline.
"""

from .openai_client import CompletionInvoker, CompletionResult

__all__ = ["CompletionInvoker", "CompletionResult"]
