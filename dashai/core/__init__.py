"""
Core modules for DashAI.

This package contains the request pipeline and its parts: rate limiting,
cost ledgers, context selection and conversation assembly.
"""
