"""
Storage layer for DashAI: SQLite ledgers and read-only academic records.
"""
