"""
DashAI assistant core.

Rate limiting, cost ledgers, context selection and conversation assembly for
the "ask the assistant" endpoint.
"""

__version__ = "0.1.0"
