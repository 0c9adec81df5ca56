"""
CLI for DashAI.
"""
