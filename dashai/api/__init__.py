"""
HTTP API for DashAI.
"""
