"""
State Store (SQLite-based).

Lightweight persistent DB for the feedback ledger.
The whole ledger is saved or restored at once.
"""

from .sqlite_store import FeedbackStore

__all__ = [
    "FeedbackStore",
]
